"""
Expectancy and compounding calculator.

Given a win rate, average win/loss (as fractional returns), a number of
trades and a starting capital, derive the expected return per trade and
the compounded vs. fixed-size equity curves.

The win/loss split is deterministic: ``wins = round(win_rate * trades)``.
Only the sample trade ledger draws random outcomes.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

import numpy as np

from models import ExpectancyInputs
from numeric import saturate, saturate_scalar

logger = logging.getLogger(__name__)

# Reward/risk pairs (percent) used by the sensitivity table.
SENSITIVITY_REWARDS = [4, 6, 8, 10, 12, 14, 16, 18, 20, 22]
SENSITIVITY_RISKS = [2, 3, 4, 5, 6, 7, 8, 9, 10, 11]


def _round_half_up(x: float) -> int:
    # Python's round() is banker's rounding; the journal UI rounds .5 up.
    return int(math.floor(x + 0.5))


def split_wins_losses(win_rate: float, trade_count: int) -> tuple:
    wins = _round_half_up(win_rate * trade_count)
    wins = min(max(wins, 0), trade_count)
    return wins, trade_count - wins


def compute_expectancy(inputs: ExpectancyInputs) -> Dict[str, Any]:
    """
    Expected return per trade and the resulting equity projections.

    Args:
        inputs: Capital, trade count and fractional rates.

    Returns:
        Dictionary compatible with the ExpectancySummary Pydantic model.
    """
    p0 = inputs.initial_capital
    n = inputs.trade_count
    p = inputs.win_rate
    gw = inputs.avg_win_pct
    gl = inputs.avg_loss_pct

    wins, losses = split_wins_losses(p, n)

    reward_risk_ratio: Optional[float]
    if gl == 0:
        logger.debug("Average loss is zero; reward:risk ratio left undefined.")
        reward_risk_ratio = None
    else:
        reward_risk_ratio = gw / gl

    expectancy = p * gw - (1.0 - p) * gl

    # ── Equity curves ────────────────────────────────────────────────────────────
    # Long runs overflow float64; values saturate at the capital ceiling.
    steps = np.arange(n + 1, dtype=np.float64)
    with np.errstate(over="ignore", invalid="ignore"):
        compounded_curve = saturate(p0 * np.power(1.0 + expectancy, steps))
        non_compounded_curve = saturate(p0 * (1.0 + steps * expectancy))

    compounded_final = float(compounded_curve[-1])
    non_comp_return = wins * gw - losses * gl
    non_compounded_final = saturate_scalar(p0 + p0 * non_comp_return)
    compounded_growth = saturate_scalar((compounded_final / p0 - 1.0) * 100.0) if p0 else 0.0

    return {
        "trade_count": n,
        "wins": wins,
        "losses": losses,
        "reward_risk_ratio": reward_risk_ratio,
        "expectancy_per_trade": float(expectancy),
        "compounded_final_capital": compounded_final,
        "compounded_profit": saturate_scalar(compounded_final - p0),
        "compounded_growth_pct": compounded_growth,
        "non_compounded_final_capital": non_compounded_final,
        "non_compounded_profit": saturate_scalar(non_compounded_final - p0),
        "non_compounded_growth_pct": saturate_scalar(non_comp_return * 100.0),
        "compounded_curve": compounded_curve.tolist(),
        "non_compounded_curve": non_compounded_curve.tolist(),
    }


def sensitivity_table(win_rate: float, trade_count: int) -> List[Dict[str, float]]:
    """
    Total compounded gain for a ladder of reward:risk pairs at a fixed
    win rate and trade count.
    """
    wins, losses = split_wins_losses(win_rate, trade_count)
    rows: List[Dict[str, float]] = []
    for reward, risk in zip(SENSITIVITY_REWARDS, SENSITIVITY_RISKS):
        with np.errstate(over="ignore", invalid="ignore"):
            growth = np.power(1.0 + reward / 100.0, wins) * np.power(1.0 - risk / 100.0, losses)
        gain = saturate_scalar(growth - 1.0)
        rows.append({
            "win_rate_pct": win_rate * 100.0,
            "reward_pct": float(reward),
            "risk_pct": float(-risk),
            "gain_pct": saturate_scalar(gain * 100.0),
        })
    return rows


def simulate_trade_ledger(inputs: ExpectancyInputs, rng=None, seed: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    One random compounded trade sequence, trade by trade.

    ``rng`` is anything with a ``random(size)`` method returning uniform
    draws in [0, 1); a NumPy Generator is created when omitted.
    """
    if rng is None:
        rng = np.random.default_rng(seed)

    n = inputs.trade_count
    draws = np.asarray(rng.random(n), dtype=np.float64)

    ledger: List[Dict[str, Any]] = []
    cap = inputs.initial_capital
    for i in range(n):
        is_win = bool(draws[i] < inputs.win_rate)
        rate = inputs.avg_win_pct if is_win else -inputs.avg_loss_pct
        pnl = saturate_scalar(cap * rate)
        final = saturate_scalar(cap + pnl)
        ledger.append({
            "number": i + 1,
            "initial_value": cap,
            "is_win": is_win,
            "pnl": pnl,
            "pnl_pct": rate * 100.0,
            "final_capital": final,
        })
        cap = final
    return ledger
