"""
End-to-end tests for the HTTP API.
"""
import logging

import pytest

import main
from config import Settings, validate_settings
from models import Trade


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


class TestTradeRoutes:

    def test_add_and_list(self, client, store):
        resp = client.post("/trades", json={"date": "2025-01-02", "pl": "350"})
        assert resp.status_code == 201
        assert resp.json()["pl"] == 350.0
        assert client.get("/trades").json()["total_trades"] == 1
        assert len(store.list()) == 1

    def test_invalid_date_rejected(self, client):
        resp = client.post("/trades", json={"date": "02/01/2025", "pl": 10})
        assert resp.status_code == 422
        resp = client.post("/trades", json={"date": "2025-02-30", "pl": 10})
        assert resp.status_code == 422

    def test_stats_and_daily(self, client, store, sample_trades):
        store.add_many(sample_trades)
        stats = client.get("/trades/stats").json()
        assert stats["total_pl"] == pytest.approx(110.0)
        assert stats["win_rate"] == pytest.approx(100.0)
        assert stats["best_day"] == pytest.approx(60.0)

        days = client.get("/trades/daily").json()["days"]
        assert days == [
            {"date": "2025-01-02", "total_pl": pytest.approx(60.0)},
            {"date": "2025-01-03", "total_pl": pytest.approx(50.0)},
        ]

    def test_empty_stats(self, client):
        stats = client.get("/trades/stats").json()
        assert stats["win_rate"] == 0.0
        assert stats["best_day"] is None

    def test_calendar(self, client, store, sample_trades):
        store.add_many(sample_trades)
        grid = client.get("/trades/calendar/2025/1").json()
        assert grid["leading_blanks"] == 3
        assert grid["days"][2]["total_pl"] == pytest.approx(50.0)
        assert client.get("/trades/calendar/2025/0").status_code == 400

    def test_monthly(self, client, store):
        store.add_many([Trade(date="2025-02-10", pl=20), Trade(date="2025-04-01", pl=-5)])
        curve = client.get("/trades/monthly/2025").json()["cumulative_pl"]
        assert curve[:4] == pytest.approx([0.0, 20.0, 20.0, 15.0])


class TestUpload:

    def test_csv_with_aliased_columns(self, client, store):
        csv = (
            "Data,Resultado,Ativo\n"
            "2025-01-02,100,WINZ25\n"
            "2025-01-02,-40,WINZ25\n"
            "2025-01-03,50,WDOF26\n"
            "not a date,10,X\n"
        )
        resp = client.post("/trades/upload", files={"file": ("journal.csv", csv, "text/csv")})
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_trades"] == 3
        assert body["trading_days"] == 2
        assert body["trades"][0]["details"]["asset"] == "WINZ25"
        assert len(store.list()) == 3

    def test_slash_dates_are_day_first(self, client):
        csv = "Data,Resultado\n02/01/2025,100\n13/01/2025,50\n"
        body = client.post("/trades/upload", files={"file": ("journal.csv", csv, "text/csv")}).json()
        assert [t["date"] for t in body["trades"]] == ["2025-01-02", "2025-01-13"]
        assert body["trading_days"] == 2

    def test_month_first_on_request(self, client):
        csv = "date,pl\n01/13/2025,50\n02/01/2025,10\n"
        resp = client.post("/trades/upload?dayfirst=false", files={"file": ("j.csv", csv, "text/csv")})
        assert resp.status_code == 200
        assert [t["date"] for t in resp.json()["trades"]] == ["2025-01-13", "2025-02-01"]

    def test_dropped_rows_are_logged(self, client, caplog):
        csv = "date,pl\n02/01/2025,100\n,10\n31/02/2025,5\n"
        with caplog.at_level(logging.WARNING, logger="main"):
            body = client.post("/trades/upload", files={"file": ("j.csv", csv, "text/csv")}).json()
        assert body["total_trades"] == 1
        assert "Dropping 1 CSV rows with no date." in caplog.messages
        assert any("unreadable date" in m for m in caplog.messages)

    def test_missing_columns(self, client):
        resp = client.post("/trades/upload", files={"file": ("j.csv", "foo,bar\n1,2\n", "text/csv")})
        assert resp.status_code == 422

    def test_rejects_non_csv(self, client):
        resp = client.post("/trades/upload", files={"file": ("j.txt", "date,pl\n", "text/plain")})
        assert resp.status_code == 400


class TestCalculators:

    def test_expectancy_from_form_strings(self, client):
        resp = client.post("/expectancy", json={
            "portfolio": "5000", "num_trades": "10", "win_rate": "55", "avg_win": "55", "avg_loss": "20",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["summary"]["wins"] == 6
        assert body["summary"]["losses"] == 4
        assert body["summary"]["reward_risk_ratio"] == pytest.approx(2.75)
        assert body["summary"]["expectancy_per_trade"] == pytest.approx(0.2125)
        assert len(body["sensitivity"]) == 10
        assert body["ledger"] is None

    def test_expectancy_zero_risk_and_ledger(self, client):
        body = client.post("/expectancy", json={
            "avg_loss": "0", "include_ledger": True, "seed": 5,
        }).json()
        assert body["summary"]["reward_risk_ratio"] is None
        assert len(body["ledger"]) == 10

    def test_monte_carlo(self, client):
        resp = client.post("/monte-carlo", json={
            "initial_capital": "10000", "win_rate": "50", "avg_win": "2", "avg_loss": "1",
            "num_trades": "100", "num_sims": "200", "max_curves": "20", "seed": 9,
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["path_count"] == 200
        assert len(body["curves"]) == 20
        assert len(body["curves"][0]) == 101
        assert len(body["histogram"]["counts"]) == 30
        assert sum(body["histogram"]["counts"]) == 200
        assert body["worst_capital"] <= body["mean_capital"] <= body["best_capital"]

    def test_monte_carlo_is_clamped(self, client, monkeypatch):
        monkeypatch.setattr(main.settings, "MC_MAX_PATHS", 10)
        body = client.post("/monte-carlo", json={"num_sims": 1000, "num_trades": 5, "seed": 1}).json()
        assert body["path_count"] == 10

    def test_monte_carlo_zero_paths(self, client):
        body = client.post("/monte-carlo", json={"num_sims": "abc"}).json()
        assert body["path_count"] == 0
        assert body["median_capital"] is None

    def test_monte_carlo_explosive_growth(self, client):
        resp = client.post("/monte-carlo", json={
            "initial_capital": "10000", "win_rate": "60", "avg_win": "400", "avg_loss": "80",
            "num_trades": "2000", "num_sims": "200", "seed": 1,
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["mean_capital"] is not None
        assert body["saturated_paths"] > 0
        assert sum(body["histogram"]["counts"]) == 200
        assert body["global_max_drawdown"] >= 0.0

    def test_expectancy_long_run_is_finite(self, client, monkeypatch):
        monkeypatch.setattr(main.settings, "EXPECTANCY_MAX_TRADES", 2000)
        body = client.post("/expectancy", json={"num_trades": 5000}).json()
        assert body["summary"]["trade_count"] == 2000
        assert body["summary"]["compounded_final_capital"] is not None
        assert len(body["summary"]["compounded_curve"]) == 2001

    def test_expectancy_is_clamped(self, client, monkeypatch):
        monkeypatch.setattr(main.settings, "EXPECTANCY_MAX_TRADES", 50)
        body = client.post("/expectancy", json={"num_trades": 10 ** 9, "include_ledger": True, "seed": 3}).json()
        assert body["summary"]["trade_count"] == 50
        assert len(body["summary"]["compounded_curve"]) == 51
        assert len(body["ledger"]) == 50

    def test_risk(self, client):
        body = client.post("/risk", json={
            "portfolio": "100000", "daily_max_pct": "2", "trade_pct": "0.5", "trades_per_day": "4",
        }).json()
        assert body["risk_per_trade"] == pytest.approx(500.0)
        assert body["max_daily_loss"] == pytest.approx(2000.0)
        assert body["daily_risk_per_trade"] == pytest.approx(500.0)

    def test_consistency(self, client):
        body = client.post("/consistency", json={"current_profit_target": "3900", "largest_day": "1500"}).json()
        assert body["is_error"] is True
        assert body["new_target"] == pytest.approx(4285.714, rel=1e-6)


def test_default_settings_are_valid():
    assert validate_settings(Settings()) == []


def test_configuration_problems_are_logged(caplog):
    s = Settings()
    s.MC_MAX_PATHS = 0
    with caplog.at_level(logging.WARNING, logger="main"):
        problems = main.log_settings_problems(s)
    assert problems == ["MC_MAX_PATHS must be >= 1"]
    assert "Configuration problem: MC_MAX_PATHS must be >= 1" in caplog.messages
