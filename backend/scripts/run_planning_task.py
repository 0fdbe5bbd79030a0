"""Run one planning task outside the HTTP server (cron, queue workers).

Usage:
    python scripts/run_planning_task.py '{"kind": "forecast", "forecast_months": 3}'
    echo '{"kind": "reconciliation", "channel": "shopify"}' | python scripts/run_planning_task.py -

Prints the task result as JSON. Exits 2 on an invalid payload and 1 when the
task itself fails.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from opsplan.config import settings
from opsplan.core.exceptions import OpsPlanException
from opsplan.database import SessionLocal, create_tables
from opsplan.schemas.planning_task import planning_task_adapter
from opsplan.services.planning_task_service import run_planning_task
from opsplan.utils.events import configure_event_bus
from opsplan.utils.logging import configure_logging

logger = logging.getLogger("opsplan.scripts.run_planning_task")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run an OpsPlan planning task")
    parser.add_argument("payload", help="JSON task payload, or '-' to read it from stdin")
    args = parser.parse_args(argv)

    configure_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)
    configure_event_bus()

    raw = sys.stdin.read() if args.payload == "-" else args.payload
    try:
        task = planning_task_adapter.validate_json(raw)
    except ValidationError as exc:
        print(exc.json(), file=sys.stderr)
        return 2

    create_tables()
    db = SessionLocal()
    try:
        result = run_planning_task(db, task)
    except OpsPlanException as exc:
        logger.error("planning_task_failed kind=%s code=%s error=%s", task.kind, exc.code, exc.message)
        return 1
    finally:
        db.close()

    print(result.model_dump_json())
    return 0


if __name__ == "__main__":
    sys.exit(main())
