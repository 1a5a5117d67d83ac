"""
Trade-journal statistics: daily aggregation, win rate, calendar and
monthly views.

A "day" is the exact ``date`` string of a trade.  Every trade on the same
day contributes to that day's aggregate; win rate and best/worst day are
measured on day aggregates, not on individual trades.
"""
from __future__ import annotations

import calendar
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from models import Trade

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
                "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _frame(trades: Sequence[Trade]) -> pd.DataFrame:
    return pd.DataFrame(
        {"date": [t.date for t in trades], "pl": [float(t.pl) for t in trades]},
        columns=["date", "pl"],
    )


def aggregate_by_day(trades: Sequence[Trade]) -> Dict[str, float]:
    """Sum P&L per date key, ordered by date."""
    if not trades:
        return {}
    daily = _frame(trades).groupby("date", sort=True)["pl"].sum()
    return {str(day): float(pl) for day, pl in daily.items()}


def total_pl(trades: Sequence[Trade]) -> float:
    """Sum of every individual trade's P&L."""
    return float(sum(float(t.pl) for t in trades))


def profit_days(trades: Sequence[Trade]) -> int:
    return sum(1 for pl in aggregate_by_day(trades).values() if pl > 0)


def loss_days(trades: Sequence[Trade]) -> int:
    return sum(1 for pl in aggregate_by_day(trades).values() if pl < 0)


def win_rate(trades: Sequence[Trade]) -> float:
    """
    Percentage of trading days that closed with a net profit.

    Net-zero days are in the denominator but never count as wins.
    Returns 0 for an empty journal.
    """
    daily = aggregate_by_day(trades)
    if not daily:
        return 0.0
    wins = sum(1 for pl in daily.values() if pl > 0)
    return wins / len(daily) * 100.0


def best_day(trades: Sequence[Trade]) -> Optional[float]:
    daily = aggregate_by_day(trades)
    return max(daily.values()) if daily else None


def worst_day(trades: Sequence[Trade]) -> Optional[float]:
    daily = aggregate_by_day(trades)
    return min(daily.values()) if daily else None


def compute_trade_stats(trades: Sequence[Trade]) -> Dict[str, Any]:
    """
    Summary statistics for the journal.

    Returns:
        Dictionary compatible with the TradeStats Pydantic model.
    """
    daily = aggregate_by_day(trades)
    values = np.array(list(daily.values()), dtype=np.float64)
    n_days = len(values)

    return {
        "total_trades": len(trades),
        "trading_days": n_days,
        "total_pl": total_pl(trades),
        "profit_days": int(np.sum(values > 0)),
        "loss_days": int(np.sum(values < 0)),
        "win_rate": float(np.sum(values > 0) / n_days * 100.0) if n_days else 0.0,
        "best_day": float(np.max(values)) if n_days else None,
        "worst_day": float(np.min(values)) if n_days else None,
        "average_day": float(np.mean(values)) if n_days else None,
        "skewness": float(stats.skew(values)) if n_days > 2 else 0.0,
    }


def _day_status(pl: Optional[float]) -> Optional[str]:
    if pl is None:
        return None
    if pl > 0:
        return "profit"
    if pl < 0:
        return "loss"
    return "flat"


def month_calendar(trades: Sequence[Trade], year: int, month: int) -> Dict[str, Any]:
    """
    Calendar grid for one month with each day's aggregate P&L.

    Raises:
        ValueError: If ``month`` is outside 1..12 or ``year`` outside 1..9999.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    if not 1 <= year <= 9999:
        raise ValueError(f"year must be between 1 and 9999, got {year}")

    first_weekday, n_days = calendar.monthrange(year, month)
    daily = aggregate_by_day(trades)

    days: List[Dict[str, Any]] = []
    month_pl = 0.0
    for day in range(1, n_days + 1):
        key = f"{year:04d}-{month:02d}-{day:02d}"
        pl = daily.get(key)
        if pl is not None:
            month_pl += pl
        days.append({"date": key, "day": day, "total_pl": pl, "status": _day_status(pl)})

    return {
        "year": year,
        "month": month,
        # calendar.monthrange counts Monday as 0; the grid starts on Sunday.
        "leading_blanks": (first_weekday + 1) % 7,
        "days": days,
        "month_pl": month_pl,
    }


def monthly_cumulative_pl(trades: Sequence[Trade], year: int) -> Dict[str, Any]:
    """Running P&L total through the months of ``year``."""
    per_month = np.zeros(12, dtype=np.float64)
    prefix = f"{year:04d}-"
    for t in trades:
        if t.date.startswith(prefix):
            per_month[int(t.date[5:7]) - 1] += float(t.pl)

    return {
        "year": year,
        "months": list(MONTH_LABELS),
        "cumulative_pl": np.cumsum(per_month).tolist(),
    }
