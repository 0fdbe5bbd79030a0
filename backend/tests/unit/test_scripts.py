import pytest

from scripts import db_preflight, run_planning_task


@pytest.fixture()
def clean_env(monkeypatch):
    for name in (
        "ENVIRONMENT",
        "DATABASE_URL",
        "AUTO_CREATE_TABLES",
        "SUGGESTED_ORDER_BUFFER",
        "RECONCILIATION_PASS_PERCENT",
        "RECONCILIATION_CRITICAL_PERCENT",
        "OPENAI_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_preflight_passes_with_development_defaults(clean_env, capsys):
    assert db_preflight.run() == 0
    out = capsys.readouterr().out
    assert "Preflight passed." in out
    assert "numeric fallback only" in out


def test_preflight_rejects_sqlite_in_production(clean_env, capsys):
    clean_env.setenv("ENVIRONMENT", "production")

    assert db_preflight.run() == 1
    out = capsys.readouterr().out
    assert "[FAIL] DATABASE_URL is not SQLite" in out
    assert "[FAIL] AUTO_CREATE_TABLES is disabled" in out


def test_preflight_accepts_configured_production(clean_env):
    clean_env.setenv("ENVIRONMENT", "production")
    clean_env.setenv("DATABASE_URL", "postgresql://ops:secret@db:5432/opsplan")
    clean_env.setenv("AUTO_CREATE_TABLES", "false")

    assert db_preflight.run() == 0


@pytest.mark.parametrize("name, value", [
    ("SUGGESTED_ORDER_BUFFER", "0.8"),
    ("SUGGESTED_ORDER_BUFFER", "lots"),
    ("RECONCILIATION_PASS_PERCENT", "5"),
])
def test_preflight_rejects_bad_planning_thresholds(clean_env, name, value):
    clean_env.setenv(name, value)

    assert db_preflight.run() == 1


def test_task_runner_rejects_invalid_payload(capsys):
    assert run_planning_task.main(['{"kind": "stocktake"}']) == 2
    assert "kind" in capsys.readouterr().err
