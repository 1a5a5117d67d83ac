"""
Trading Hub statistics API — FastAPI backend.

Endpoints
---------
GET  /health                          Health check.
GET  /trades                          List journal entries.
POST /trades                          Add one journal entry.
POST /trades/upload                   Import a journal CSV.
GET  /trades/stats                    Totals, win rate, best/worst day.
GET  /trades/daily                    P&L aggregated per day.
GET  /trades/calendar/{year}/{month}  Month grid with daily P&L.
GET  /trades/monthly/{year}           Cumulative P&L by month.
POST /expectancy                      Expectancy, equity curves, R:R table.
POST /monte-carlo                     Bernoulli Monte Carlo simulation.
POST /risk                            Risk-per-trade sizing.
POST /consistency                     Consistency-rule target check.
"""
from __future__ import annotations

import io
import logging
from typing import Dict, List

import pandas as pd
from fastapi import Depends, FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from analytics import aggregate_by_day, compute_trade_stats, month_calendar, monthly_cumulative_pl
from config import Settings, settings, validate_settings
from expectancy import compute_expectancy, sensitivity_table, simulate_trade_ledger
from models import (
    CalendarMonth,
    ConsistencyRequest,
    ConsistencyResult,
    DailyPL,
    DailyResponse,
    ExpectancyRequest,
    ExpectancyResponse,
    ExpectancySummary,
    LedgerEntry,
    MonteCarloRequest,
    MonthlyCurve,
    RiskRequest,
    RiskResult,
    SensitivityRow,
    SimulationResult,
    Trade,
    TradeDetails,
    TradeListResponse,
    TradeStats,
    UploadResponse,
)
from monte_carlo import run_simulation
from parsing import parse_number, pct_to_fraction
from risk import consistency_target, risk_sizing
from trade_store import TradeStore, create_store

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s  %(name)s  %(message)s")
logger = logging.getLogger(__name__)


def log_settings_problems(s: Settings = settings) -> List[str]:
    """Log every configuration problem at WARNING and return them."""
    problems = validate_settings(s)
    for problem in problems:
        logger.warning("Configuration problem: %s", problem)
    return problems


log_settings_problems()

app = FastAPI(
    title="Trading Hub Statistics API",
    description="Trade journal statistics, expectancy projections and Monte Carlo equity simulations.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_store: TradeStore = create_store(settings.TRADES_FILE)


def get_store() -> TradeStore:
    return _store


# ── Column normalisation ──────────────────────────────────────────────────────────
# Maps canonical column names to the aliases a journal export may use.
_COLUMN_ALIASES: Dict[str, List[str]] = {
    "date":      ["date", "day", "data", "trade date", "time", "datetime"],
    "pl":        ["pl", "p&l", "pnl", "p/l", "profit", "result", "resultado", "net"],
    "type":      ["type", "side", "tipo"],
    "asset":     ["asset", "symbol", "ticker", "ativo", "instrument"],
    "contracts": ["contracts", "qty", "quantity", "contratos", "size"],
    "strategy":  ["strategy", "setup", "estrategia", "estratégia"],
    "trade_pl":  ["trade_pl", "trade pl", "trade p&l"],
}

_DETAIL_FIELDS = ["type", "asset", "contracts", "strategy", "trade_pl"]


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename DataFrame columns to canonical lowercase names via alias lookup."""
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    rename_map: Dict[str, str] = {}
    for canonical, aliases in _COLUMN_ALIASES.items():
        for col in df.columns:
            if col in aliases and canonical not in rename_map.values():
                rename_map[col] = canonical
                break
    return df.rename(columns=rename_map)


def _parse_dates(dates: pd.Series, dayfirst: bool) -> pd.Series:
    """
    Parse journal dates; unreadable values become NaT.

    Year-first values ("2025-01-02", "2025-01-02 10:30") are read as ISO 8601.
    Everything else ("02/01/2025") honours `dayfirst`.
    """
    text = dates.astype("string").str.strip()
    parsed = pd.Series(pd.NaT, index=dates.index, dtype="datetime64[ns]")

    yearfirst = text.str.match(r"^\d{4}-").fillna(False).astype(bool)
    if yearfirst.any():
        parsed[yearfirst] = pd.to_datetime(text[yearfirst], format="ISO8601", errors="coerce")

    rest = ~yearfirst & (text.fillna("") != "")
    if rest.any():
        parsed[rest] = pd.to_datetime(text[rest], dayfirst=dayfirst, errors="coerce")
    return parsed


def _parse_trades(df: pd.DataFrame, dayfirst: bool = True) -> List[Trade]:
    """
    Convert a normalised journal DataFrame into Trade objects.

    Rows with a blank or unreadable date are dropped; unparseable P&L becomes 0.

    Raises:
        ValueError: If the date or P&L column is missing.
    """
    required = {"date", "pl"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(
            f"CSV is missing required columns after normalisation: {missing}. "
            f"Found columns: {list(df.columns)}"
        )

    df = df.copy()
    blank = int((df["date"].astype("string").str.strip().fillna("") == "").sum())
    df["date"] = _parse_dates(df["date"], dayfirst)
    unreadable = int(df["date"].isna().sum()) - blank
    if blank:
        logger.warning("Dropping %d CSV rows with no date.", blank)
    if unreadable:
        logger.warning("Dropping %d CSV rows with an unreadable date (dayfirst=%s).", unreadable, dayfirst)
    df = df.dropna(subset=["date"]).sort_values("date", kind="stable").reset_index(drop=True)

    detail_cols = [c for c in _DETAIL_FIELDS if c in df.columns]
    trades: List[Trade] = []
    for _, row in df.iterrows():
        details = None
        if detail_cols:
            details = TradeDetails(**{
                c: str(row[c]) for c in detail_cols if not pd.isna(row[c])
            })
        trades.append(
            Trade(
                date=row["date"].strftime("%Y-%m-%d"),
                pl=parse_number(row["pl"]),
                details=details,
            )
        )
    return trades


# ── Routes ─────────────────────────────────────────────────────────────────────────

@app.get("/health")
def health() -> Dict[str, str]:
    """Simple liveness probe."""
    return {"status": "ok"}


@app.get("/trades", response_model=TradeListResponse)
def list_trades(store: TradeStore = Depends(get_store)) -> TradeListResponse:
    trades = store.list()
    return TradeListResponse(trades=trades, total_trades=len(trades))


@app.post("/trades", response_model=Trade, status_code=201)
def add_trade(trade: Trade, store: TradeStore = Depends(get_store)) -> Trade:
    """Record one trade; trades on the same day accumulate."""
    store.add(trade)
    logger.info("Trade recorded for %s: %.2f", trade.date, trade.pl)
    return trade


@app.post("/trades/upload", response_model=UploadResponse)
async def upload_csv(
    file: UploadFile = File(...),
    dayfirst: bool = Query(True, description="Read ambiguous dates such as 02/01/2025 as day/month."),
    store: TradeStore = Depends(get_store),
) -> UploadResponse:
    """
    Import a trade journal CSV.

    Column names are matched against common aliases (date/data, pl/pnl/resultado, ...).
    Slash dates are day-first unless `dayfirst=false`; ISO dates are always year-first.
    """
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are accepted.")

    raw = await file.read()

    try:
        df = pd.read_csv(io.StringIO(raw.decode("utf-8")))
    except (UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise HTTPException(status_code=400, detail=f"Failed to parse CSV: {exc}")

    df = _normalize_columns(df)
    logger.info("CSV parsed — columns detected: %s", df.columns.tolist())

    try:
        trades = _parse_trades(df, dayfirst=dayfirst)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    if not trades:
        raise HTTPException(status_code=422, detail="No dated trades could be extracted from the CSV.")

    store.add_many(trades)
    days = len({t.date for t in trades})
    logger.info("Imported %d trades across %d days", len(trades), days)

    return UploadResponse(trades=trades, total_trades=len(trades), trading_days=days)


@app.get("/trades/stats", response_model=TradeStats)
def trade_stats(store: TradeStore = Depends(get_store)) -> TradeStats:
    return TradeStats(**compute_trade_stats(store.list()))


@app.get("/trades/daily", response_model=DailyResponse)
def daily_pl(store: TradeStore = Depends(get_store)) -> DailyResponse:
    daily = aggregate_by_day(store.list())
    return DailyResponse(days=[DailyPL(date=d, total_pl=pl) for d, pl in daily.items()])


@app.get("/trades/calendar/{year}/{month}", response_model=CalendarMonth)
def trade_calendar(year: int, month: int, store: TradeStore = Depends(get_store)) -> CalendarMonth:
    try:
        grid = month_calendar(store.list(), year, month)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return CalendarMonth(**grid)


@app.get("/trades/monthly/{year}", response_model=MonthlyCurve)
def trade_monthly(year: int, store: TradeStore = Depends(get_store)) -> MonthlyCurve:
    return MonthlyCurve(**monthly_cumulative_pl(store.list(), year))


@app.post("/expectancy", response_model=ExpectancyResponse)
def expectancy(request: ExpectancyRequest) -> ExpectancyResponse:
    """
    Expectancy per trade, compounded vs. fixed-size projections and a
    reward:risk sensitivity table at the same win rate.

    The trade count is clamped to the configured maximum.
    """
    inputs = request.to_inputs()
    if inputs.trade_count > settings.EXPECTANCY_MAX_TRADES:
        logger.warning(
            "Clamping expectancy request (%d trades) to limit (%d)",
            inputs.trade_count, settings.EXPECTANCY_MAX_TRADES,
        )
        inputs = inputs.model_copy(update={"trade_count": settings.EXPECTANCY_MAX_TRADES})
    logger.info(
        "Expectancy: %d trades, win_rate=%.4f, win=%.4f, loss=%.4f",
        inputs.trade_count, inputs.win_rate, inputs.avg_win_pct, inputs.avg_loss_pct,
    )

    summary = ExpectancySummary(**compute_expectancy(inputs))
    rows = [SensitivityRow(**r) for r in sensitivity_table(inputs.win_rate, inputs.trade_count)]

    ledger = None
    if request.include_ledger:
        ledger = [LedgerEntry(**e) for e in simulate_trade_ledger(inputs, seed=request.seed)]

    return ExpectancyResponse(summary=summary, sensitivity=rows, ledger=ledger)


@app.post("/monte-carlo", response_model=SimulationResult)
def monte_carlo(request: MonteCarloRequest) -> SimulationResult:
    """
    Simulate compounded equity paths from win rate and average win/loss.

    Path and step counts are clamped to the configured maximums.
    """
    run = request.to_run()
    if run.path_count > settings.MC_MAX_PATHS or run.steps_per_path > settings.MC_MAX_STEPS:
        logger.warning(
            "Clamping MC request (%d paths × %d steps) to limits (%d × %d)",
            run.path_count, run.steps_per_path, settings.MC_MAX_PATHS, settings.MC_MAX_STEPS,
        )
        run = run.model_copy(update={
            "path_count": min(run.path_count, settings.MC_MAX_PATHS),
            "steps_per_path": min(run.steps_per_path, settings.MC_MAX_STEPS),
        })

    logger.info(
        "Starting MC: %d paths, %d steps, initial_capital=%.0f",
        run.path_count, run.steps_per_path, run.initial_capital,
    )

    result = run_simulation(run, seed=request.seed, bins=settings.MC_HISTOGRAM_BINS)

    logger.info("Simulation complete.")
    return SimulationResult(**result)


@app.post("/risk", response_model=RiskResult)
def risk(request: RiskRequest) -> RiskResult:
    return RiskResult(**risk_sizing(
        request.portfolio,
        pct_to_fraction(request.daily_max_pct),
        pct_to_fraction(request.trade_pct),
        request.trades_per_day,
    ))


@app.post("/consistency", response_model=ConsistencyResult)
def consistency(request: ConsistencyRequest) -> ConsistencyResult:
    return ConsistencyResult(**consistency_target(
        request.current_profit_target,
        request.largest_day,
        settings.CONSISTENCY_RULE_PCT,
    ))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
