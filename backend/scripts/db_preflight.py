"""Deployment preflight checks.

Usage:
    python scripts/db_preflight.py

Reads the environment directly (not ``opsplan.config``) so a misconfigured
production environment is reported instead of failing on import.
Exits non-zero when any required control fails.
"""

from __future__ import annotations

import os
import sys


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _float_env(name: str, default: float) -> float | None:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return None


def run() -> int:
    environment = os.getenv("ENVIRONMENT", "development").strip().lower()
    database_url = os.getenv("DATABASE_URL", "sqlite:///./opsplan.db")
    auto_create_tables = _bool_env("AUTO_CREATE_TABLES", True)
    order_buffer = _float_env("SUGGESTED_ORDER_BUFFER", 1.1)
    pass_percent = _float_env("RECONCILIATION_PASS_PERCENT", 0.5)
    critical_percent = _float_env("RECONCILIATION_CRITICAL_PERCENT", 3.0)

    checks: list[tuple[str, bool, str]] = [
        (
            "SUGGESTED_ORDER_BUFFER is a number >= 1",
            order_buffer is not None and order_buffer >= 1,
            f"SUGGESTED_ORDER_BUFFER={order_buffer}",
        ),
        (
            "Reconciliation pass threshold is below the critical threshold",
            pass_percent is not None and critical_percent is not None and pass_percent < critical_percent,
            f"pass={pass_percent} critical={critical_percent}",
        ),
    ]

    if environment in {"production", "prod"}:
        checks.extend(
            [
                (
                    "DATABASE_URL is not SQLite",
                    "sqlite" not in database_url.lower(),
                    f"DATABASE_URL={database_url.split('@')[-1]}",
                ),
                (
                    "AUTO_CREATE_TABLES is disabled",
                    not auto_create_tables,
                    f"AUTO_CREATE_TABLES={auto_create_tables}",
                ),
            ]
        )

    has_failures = False
    print("OpsPlan Preflight")
    print(f"- environment: {environment}")
    print(f"- reasoning service: {'openai' if os.getenv('OPENAI_API_KEY') else 'unavailable (numeric fallback only)'}")
    for title, ok, detail in checks:
        marker = "PASS" if ok else "FAIL"
        print(f"[{marker}] {title} ({detail})")
        if not ok:
            has_failures = True

    if has_failures:
        print("\nPreflight failed. Resolve failed checks before deployment.")
        return 1

    print("\nPreflight passed.")
    return 0


if __name__ == "__main__":
    sys.exit(run())
