"""
Vectorised Bernoulli Monte Carlo simulation of compounded equity paths.

Methodology
-----------
For each simulated path:
    1. Start at `initial_capital`.
    2. For each of `steps_per_path` trades draw u ~ U[0, 1).  If u < win_rate
       the capital grows by `avg_win_pct`, otherwise it shrinks by
       `avg_loss_pct`.
    3. Track the running peak and the largest absolute peak-to-trough drop.
    4. Saturate capital at +/- CAPITAL_CEILING so runaway compounding stays
       finite; saturated paths are counted in the result.

Steps 1-4 are expressed as NumPy array operations over a block of paths at
once; paths are processed in blocks so the working matrix never exceeds
`_MAX_ELEMENTS` entries, while every path still contributes to the
aggregate statistics.

Randomness
----------
`rng` may be any object exposing `random(size)` that returns uniform draws
of the requested shape.  Production code passes nothing and gets an
unseeded `numpy.random.Generator`; tests inject a seeded generator or a
fixed-sequence stub.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import numpy as np
from scipy import stats

from models import SimulationRun
from numeric import CAPITAL_CEILING, saturate

logger = logging.getLogger(__name__)

# Maximum elements in one block of the path matrix.
_MAX_ELEMENTS = 5_000_000

HISTOGRAM_BINS = 30


def median_by_index(values: np.ndarray) -> Optional[float]:
    """Element at index n // 2 of the sorted values; None when empty."""
    n = len(values)
    if n == 0:
        return None
    return float(np.sort(values)[n // 2])


def histogram(values: np.ndarray, bins: int = HISTOGRAM_BINS) -> Dict[str, List]:
    """
    Equal-width histogram over [min, max], last bin inclusive of max.

    When every value is identical all of them land in the first bin.
    Non-finite values are left out.
    """
    values = np.asarray(values, dtype=np.float64)
    values = values[np.isfinite(values)]
    if len(values) == 0:
        return {"bin_edges": [], "counts": []}

    lo, hi = float(np.min(values)), float(np.max(values))
    if hi == lo:
        counts = np.zeros(bins, dtype=np.int64)
        counts[0] = len(values)
        edges = np.full(bins + 1, lo)
    else:
        counts, edges = np.histogram(values, bins=bins, range=(lo, hi))
    return {"bin_edges": edges.tolist(), "counts": counts.astype(int).tolist()}


def _simulate_block(
    rng,
    n_paths: int,
    n_steps: int,
    initial_capital: float,
    win_factor: float,
    loss_factor: float,
    win_rate: float,
) -> np.ndarray:
    """
    Return a (n_paths, n_steps + 1) matrix of capital trajectories,
    saturated at +/- CAPITAL_CEILING.
    """
    paths = np.empty((n_paths, n_steps + 1), dtype=np.float64)
    paths[:, 0] = initial_capital
    if n_steps:
        draws = np.asarray(rng.random((n_paths, n_steps)), dtype=np.float64)
        factors = np.where(draws < win_rate, win_factor, loss_factor)
        with np.errstate(over="ignore", invalid="ignore"):
            np.cumprod(factors, axis=1, out=paths[:, 1:])
            paths[:, 1:] *= initial_capital
    return saturate(paths)


def run_simulation(
    run: SimulationRun,
    rng=None,
    seed: Optional[int] = None,
    bins: int = HISTOGRAM_BINS,
) -> Dict[str, Any]:
    """
    Simulate `run.path_count` independent equity paths and aggregate them.

    Args:
        run:  Capital, fractional rates and simulation sizes.
        rng:  Uniform random source with a `random(size)` method.
        seed: Seed for the default generator when `rng` is omitted.
        bins: Number of histogram bins for the final-capital distribution.

    Returns:
        Dictionary with keys matching the SimulationResult Pydantic model.
    """
    if rng is None:
        rng = np.random.default_rng(seed)

    c0 = run.initial_capital
    n_paths = run.path_count
    n_steps = run.steps_per_path
    n_keep = min(run.curves_to_retain, n_paths)

    final_caps = np.empty(n_paths, dtype=np.float64)
    max_drawdowns = np.empty(n_paths, dtype=np.float64)
    curves: List[List[float]] = []
    saturated = 0

    block = max(1, _MAX_ELEMENTS // (n_steps + 1))
    for start in range(0, n_paths, block):
        rows = min(block, n_paths - start)
        paths = _simulate_block(
            rng, rows, n_steps, c0,
            1.0 + run.avg_win_pct, 1.0 - run.avg_loss_pct, run.win_rate,
        )

        # ── Absolute peak-to-trough drawdown ─────────────────────────────────────
        running_max: np.ndarray = np.maximum.accumulate(paths, axis=1)
        max_drawdowns[start:start + rows] = np.max(running_max - paths, axis=1)
        final_caps[start:start + rows] = paths[:, -1]
        saturated += int(np.sum(np.any(np.abs(paths) >= CAPITAL_CEILING, axis=1)))

        if len(curves) < n_keep:
            take = min(n_keep - len(curves), rows)
            curves.extend(paths[:take].tolist())

    if n_paths == 0:
        logger.warning("Monte Carlo run requested with zero paths.")
        return {
            "initial_capital": c0,
            "path_count": 0,
            "steps_per_path": n_steps,
            "curves": [],
            "max_drawdowns": [],
            "final_capitals": [],
            "mean_capital": None,
            "median_capital": None,
            "best_capital": None,
            "worst_capital": None,
            "mean_pnl": None,
            "median_pnl": None,
            "best_pnl": None,
            "worst_pnl": None,
            "global_max_drawdown": 0.0,
            "prob_profit": None,
            "skewness": None,
            "saturated_paths": 0,
            "histogram": {"bin_edges": [], "counts": []},
        }

    # ── Summary statistics ────────────────────────────────────────────────────────
    mean_cap = float(np.mean(final_caps))
    median_cap = median_by_index(final_caps)
    best_cap = float(np.max(final_caps))
    worst_cap = float(np.min(final_caps))

    if saturated:
        logger.warning("%d of %d paths hit the capital ceiling of %.0e.", saturated, n_paths, CAPITAL_CEILING)

    # Skewness is scale-invariant; scaling keeps the third moment from overflowing.
    if n_paths > 2 and best_cap > worst_cap:
        scale = float(np.max(np.abs(final_caps)))
        skewness = float(stats.skew(final_caps / scale))
    else:
        skewness = 0.0

    return {
        "initial_capital": c0,
        "path_count": n_paths,
        "steps_per_path": n_steps,
        "curves": curves,
        "max_drawdowns": max_drawdowns.tolist(),
        "final_capitals": final_caps.tolist(),
        "mean_capital": mean_cap,
        "median_capital": median_cap,
        "best_capital": best_cap,
        "worst_capital": worst_cap,
        "mean_pnl": mean_cap - c0,
        "median_pnl": median_cap - c0,
        "best_pnl": best_cap - c0,
        "worst_pnl": worst_cap - c0,
        "global_max_drawdown": float(np.max(max_drawdowns)),
        "prob_profit": float(np.mean(final_caps > c0)),
        "skewness": skewness,
        "saturated_paths": saturated,
        "histogram": histogram(final_caps, bins),
    }
