"""
Trade journal persistence.

Trades are append-only: adding a trade never replaces another trade on the
same day.  The JSON-file store keeps the whole journal as one array on
disk and is used when no hosted database is configured.
"""
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import List, Optional

from models import Trade

logger = logging.getLogger(__name__)


class TradeStore:
    """Interface for trade journal backends."""

    def add(self, trade: Trade) -> Trade:
        raise NotImplementedError

    def add_many(self, trades: List[Trade]) -> List[Trade]:
        for t in trades:
            self.add(t)
        return trades

    def list(self) -> List[Trade]:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class InMemoryTradeStore(TradeStore):

    def __init__(self, trades: Optional[List[Trade]] = None):
        self._trades: List[Trade] = list(trades or [])
        self._lock = threading.Lock()

    def add(self, trade: Trade) -> Trade:
        with self._lock:
            self._trades.append(trade)
        return trade

    def list(self) -> List[Trade]:
        with self._lock:
            return list(self._trades)

    def clear(self) -> None:
        with self._lock:
            self._trades.clear()


class JsonFileTradeStore(TradeStore):
    """Journal stored as a JSON array of trade objects."""

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> List[Trade]:
        if not self.path.exists():
            return []
        raw = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        if not isinstance(raw, list):
            raise ValueError(f"{self.path} does not contain a JSON array of trades.")
        return [Trade.model_validate(item) for item in raw]

    def _write(self, trades: List[Trade]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [t.model_dump(exclude_none=True) for t in trades]
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def add(self, trade: Trade) -> Trade:
        with self._lock:
            trades = self._read()
            trades.append(trade)
            self._write(trades)
        return trade

    def add_many(self, trades: List[Trade]) -> List[Trade]:
        with self._lock:
            existing = self._read()
            existing.extend(trades)
            self._write(existing)
        return trades

    def list(self) -> List[Trade]:
        with self._lock:
            return self._read()

    def clear(self) -> None:
        with self._lock:
            self._write([])


def create_store(path: str = "") -> TradeStore:
    """JSON-file store when `path` is set, otherwise in-memory."""
    if path:
        logger.info("Using JSON trade journal at %s", path)
        return JsonFileTradeStore(path)
    logger.info("TRADES_FILE not set, trades are kept in memory only.")
    return InMemoryTradeStore()
