"""
Position-risk sizing and the prop-firm consistency rule.
"""
from __future__ import annotations

from typing import Any, Dict

DEFAULT_CONSISTENCY_PCT = 35.0


def risk_sizing(
    portfolio_value: float,
    daily_risk_pct: float,
    trade_risk_pct: float,
    trades_per_day: int,
) -> Dict[str, float]:
    """
    Money at risk per trade and per day.

    Rates are fractions (0.02 for 2 %).  A non-positive `trades_per_day`
    is treated as 1.
    """
    n = trades_per_day if trades_per_day > 0 else 1
    max_daily_loss = portfolio_value * daily_risk_pct
    return {
        "risk_per_trade": portfolio_value * trade_risk_pct,
        "max_daily_loss": max_daily_loss,
        "daily_risk_per_trade": max_daily_loss / n,
    }


def consistency_target(
    current_profit_target: float,
    largest_single_day: float,
    rule_pct: float = DEFAULT_CONSISTENCY_PCT,
) -> Dict[str, Any]:
    """
    Check that no single day exceeds `rule_pct` % of the profit target.

    When the largest day is over the limit the target is raised so that
    the day represents exactly `rule_pct` % of it.
    """
    share = rule_pct / 100.0
    ideal = current_profit_target * share
    if current_profit_target:
        representation = largest_single_day * 100.0 / current_profit_target
    else:
        representation = 0.0

    is_error = representation > rule_pct
    new_target = largest_single_day / share if is_error else current_profit_target

    return {
        "ideal_daily_profit": ideal,
        "representation_pct": representation,
        "is_error": is_error,
        "new_target": new_target,
    }
