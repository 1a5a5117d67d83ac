"""
Pydantic data models for the trading-stats API.

Request models accept raw form values: numbers or strings, with anything
unparseable coerced to 0.  Percentages arrive as whole numbers ("55" for
55 %) and are converted to fractions before reaching the calculators.
"""
import datetime as dt
import re
from typing import List, Optional

from pydantic import BaseModel, field_validator

from parsing import parse_int, parse_number, pct_to_fraction

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# ── Trade journal ─────────────────────────────────────────────────────────────────

class TradeDetails(BaseModel):
    """Optional free-form detail captured by the trade form."""
    type: Optional[str] = None
    asset: Optional[str] = None
    contracts: Optional[str] = None
    strategy: Optional[str] = None
    trade_pl: Optional[str] = None


class Trade(BaseModel):
    """One journal entry: a calendar day and a signed P&L."""
    date: str
    pl: float
    details: Optional[TradeDetails] = None

    @field_validator("date", mode="before")
    @classmethod
    def _check_date(cls, v):
        v = str(v).strip()
        if not _DATE_RE.match(v):
            raise ValueError(f"date must be YYYY-MM-DD, got {v!r}")
        dt.date.fromisoformat(v)
        return v

    @field_validator("pl", mode="before")
    @classmethod
    def _coerce_pl(cls, v):
        return parse_number(v)


class TradeListResponse(BaseModel):
    trades: List[Trade]
    total_trades: int


class UploadResponse(BaseModel):
    trades: List[Trade]
    total_trades: int
    trading_days: int


class DailyPL(BaseModel):
    date: str
    total_pl: float


class DailyResponse(BaseModel):
    days: List[DailyPL]


class TradeStats(BaseModel):
    total_trades: int
    trading_days: int
    total_pl: float
    profit_days: int
    loss_days: int
    win_rate: float              # percentage of trading days with net profit
    best_day: Optional[float]    # None when the journal is empty
    worst_day: Optional[float]
    average_day: Optional[float]
    skewness: float              # of the daily P&L distribution


class CalendarDay(BaseModel):
    date: str
    day: int
    total_pl: Optional[float]
    status: Optional[str]        # "profit" | "loss" | "flat" | None (no trades)


class CalendarMonth(BaseModel):
    year: int
    month: int
    leading_blanks: int          # empty cells before day 1, Sunday-first week
    days: List[CalendarDay]
    month_pl: float


class MonthlyCurve(BaseModel):
    year: int
    months: List[str]
    cumulative_pl: List[float]


# ── Expectancy ────────────────────────────────────────────────────────────────────

class ExpectancyInputs(BaseModel):
    """Calculator inputs with rates already expressed as fractions."""
    initial_capital: float
    trade_count: int
    win_rate: float
    avg_win_pct: float
    avg_loss_pct: float

    @field_validator("initial_capital", "win_rate", "avg_win_pct", "avg_loss_pct", mode="before")
    @classmethod
    def _coerce_float(cls, v):
        return parse_number(v)

    @field_validator("trade_count", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return max(parse_int(v), 0)


class ExpectancyRequest(BaseModel):
    """Form payload of the expectancy panel (percentages as whole numbers)."""
    portfolio: float = 5000.0
    num_trades: int = 10
    win_rate: float = 55.0
    avg_win: float = 55.0
    avg_loss: float = 20.0
    include_ledger: bool = False
    seed: Optional[int] = None

    @field_validator("portfolio", "win_rate", "avg_win", "avg_loss", mode="before")
    @classmethod
    def _coerce_float(cls, v):
        return parse_number(v)

    @field_validator("num_trades", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return parse_int(v)

    def to_inputs(self) -> ExpectancyInputs:
        return ExpectancyInputs(
            initial_capital=self.portfolio,
            trade_count=self.num_trades,
            win_rate=pct_to_fraction(self.win_rate),
            avg_win_pct=pct_to_fraction(self.avg_win),
            avg_loss_pct=pct_to_fraction(self.avg_loss),
        )


class ExpectancySummary(BaseModel):
    trade_count: int
    wins: int
    losses: int
    reward_risk_ratio: Optional[float]   # None when the average loss is 0
    expectancy_per_trade: float          # fractional return per trade
    compounded_final_capital: float
    compounded_profit: float
    compounded_growth_pct: float
    non_compounded_final_capital: float
    non_compounded_profit: float
    non_compounded_growth_pct: float
    compounded_curve: List[float]        # length trade_count + 1
    non_compounded_curve: List[float]


class SensitivityRow(BaseModel):
    win_rate_pct: float
    reward_pct: float
    risk_pct: float
    gain_pct: float


class LedgerEntry(BaseModel):
    number: int
    initial_value: float
    is_win: bool
    pnl: float
    pnl_pct: float
    final_capital: float


class ExpectancyResponse(BaseModel):
    summary: ExpectancySummary
    sensitivity: List[SensitivityRow]
    ledger: Optional[List[LedgerEntry]] = None


# ── Monte Carlo ───────────────────────────────────────────────────────────────────

class SimulationRun(BaseModel):
    """Simulator inputs with rates already expressed as fractions."""
    initial_capital: float
    win_rate: float
    avg_win_pct: float
    avg_loss_pct: float
    path_count: int
    steps_per_path: int
    curves_to_retain: int = 20

    @field_validator("initial_capital", "win_rate", "avg_win_pct", "avg_loss_pct", mode="before")
    @classmethod
    def _coerce_float(cls, v):
        return parse_number(v)

    @field_validator("path_count", "steps_per_path", "curves_to_retain", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return max(parse_int(v), 0)


class MonteCarloRequest(BaseModel):
    """Form payload of the Monte Carlo page (percentages as whole numbers)."""
    initial_capital: float = 10_000.0
    win_rate: float = 50.0
    avg_win: float = 2.0
    avg_loss: float = 1.0
    num_trades: int = 100
    num_sims: int = 500
    max_curves: int = 20
    seed: Optional[int] = None

    @field_validator("initial_capital", "win_rate", "avg_win", "avg_loss", mode="before")
    @classmethod
    def _coerce_float(cls, v):
        return parse_number(v)

    @field_validator("num_trades", "num_sims", "max_curves", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return parse_int(v)

    def to_run(self) -> SimulationRun:
        return SimulationRun(
            initial_capital=self.initial_capital,
            win_rate=pct_to_fraction(self.win_rate),
            avg_win_pct=pct_to_fraction(self.avg_win),
            avg_loss_pct=pct_to_fraction(self.avg_loss),
            path_count=self.num_sims,
            steps_per_path=self.num_trades,
            curves_to_retain=self.max_curves,
        )


class Histogram(BaseModel):
    bin_edges: List[float]       # len(counts) + 1
    counts: List[int]


class SimulationResult(BaseModel):
    initial_capital: float
    path_count: int
    steps_per_path: int
    curves: List[List[float]]    # first curves_to_retain trajectories
    max_drawdowns: List[float]   # absolute peak-to-trough per path
    final_capitals: List[float]
    mean_capital: Optional[float]
    median_capital: Optional[float]
    best_capital: Optional[float]
    worst_capital: Optional[float]
    mean_pnl: Optional[float]
    median_pnl: Optional[float]
    best_pnl: Optional[float]
    worst_pnl: Optional[float]
    global_max_drawdown: float
    prob_profit: Optional[float]  # fraction of paths ending above initial capital
    skewness: Optional[float]
    saturated_paths: int = 0      # paths that reached the capital ceiling
    histogram: Histogram


# ── Risk & consistency ────────────────────────────────────────────────────────────

class RiskRequest(BaseModel):
    portfolio: float = 100_000.0
    daily_max_pct: float = 2.0
    trade_pct: float = 0.5
    trades_per_day: int = 4

    @field_validator("portfolio", "daily_max_pct", "trade_pct", mode="before")
    @classmethod
    def _coerce_float(cls, v):
        return parse_number(v)

    @field_validator("trades_per_day", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return parse_int(v)


class RiskResult(BaseModel):
    risk_per_trade: float
    max_daily_loss: float
    daily_risk_per_trade: float


class ConsistencyRequest(BaseModel):
    current_profit_target: float = 3900.0
    largest_day: float = 1500.0

    @field_validator("current_profit_target", "largest_day", mode="before")
    @classmethod
    def _coerce_float(cls, v):
        return parse_number(v)


class ConsistencyResult(BaseModel):
    ideal_daily_profit: float
    representation_pct: float
    is_error: bool               # largest day above the allowed share of the target
    new_target: float
