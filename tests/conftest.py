"""
Shared fixtures for the trading-stats tests.
"""
import numpy as np
import pytest
from fastapi.testclient import TestClient

from models import Trade
from trade_store import InMemoryTradeStore


class FixedRandom:
    """Uniform source that always returns the same draw."""

    def __init__(self, value):
        self.value = value

    def random(self, size):
        return np.full(size, self.value, dtype=np.float64)


class SequenceRandom:
    """Uniform source that cycles through a fixed sequence of draws."""

    def __init__(self, seq):
        self.seq = np.asarray(seq, dtype=np.float64)
        self.pos = 0

    def random(self, size):
        n = int(np.prod(size))
        idx = (self.pos + np.arange(n)) % len(self.seq)
        self.pos += n
        return self.seq[idx].reshape(size)


@pytest.fixture
def sample_trades():
    """Two trades on one day plus a single trade the next day."""
    return [
        Trade(date="2025-01-02", pl=100),
        Trade(date="2025-01-02", pl=-40),
        Trade(date="2025-01-03", pl=50),
    ]


@pytest.fixture
def store():
    return InMemoryTradeStore()


@pytest.fixture
def client(store):
    from main import app, get_store

    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
