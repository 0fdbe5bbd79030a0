# Routers package — Thin Controllers (SRP / DIP)
from opsplan.routers import (
    catalog,
    inventory,
    reconciliation,
    forecasting,
    production_plans,
    suggested_pos,
    purchase_orders,
    planning_tasks,
)

__all__ = [
    "catalog",
    "inventory",
    "reconciliation",
    "forecasting",
    "production_plans",
    "suggested_pos",
    "purchase_orders",
    "planning_tasks",
]
