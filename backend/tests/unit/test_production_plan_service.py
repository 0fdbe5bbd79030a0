from datetime import date, datetime
from decimal import Decimal

import pytest

from opsplan.core.exceptions import EntityNotFoundException, InvalidStateTransitionException
from opsplan.schemas.catalog import BomComponentCreate, BomCreate
from opsplan.services.production_plan_service import (
    ProductionPlanService,
    compute_planned_quantity,
    compute_shortage,
    days_until,
    effective_lead_time_days,
)
from opsplan.services.purchase_order_service import PurchaseOrderService

NOW = datetime(2026, 10, 19, 8, 0)


def test_planned_quantity_is_zero_when_stock_covers_forecast():
    assert compute_planned_quantity(100, 20, 500) == Decimal("0")


def test_planned_quantity_adds_safety_stock_and_nets_inventory():
    assert compute_planned_quantity(300, 20, 50) == Decimal("310")
    assert compute_planned_quantity(300, 0, 0) == Decimal("300")


def test_shortage_never_increases_as_stock_grows():
    shortages = [compute_shortage(620, current, 50) for current in range(0, 800, 25)]

    assert shortages == sorted(shortages, reverse=True)
    assert shortages[-1] == Decimal("0")


def test_days_until_rounds_partial_days_up():
    assert days_until(date(2026, 10, 29), datetime(2026, 10, 19)) == 10
    assert days_until(date(2026, 10, 29), datetime(2026, 10, 19, 12, 0)) == 10
    assert days_until(date(2026, 10, 19), datetime(2026, 10, 19, 12, 0)) == 0


def test_lead_time_prefers_material_override_then_vendor(raw_material, vendor):
    assert effective_lead_time_days(raw_material, vendor) == 14
    raw_material.lead_time_days = 5
    assert effective_lead_time_days(raw_material, vendor) == 5
    assert effective_lead_time_days(None, None) == 14


def test_plan_expands_bom_into_material_requirements(
    db, ledger, product, warehouse, vendor, raw_material, bom, make_forecast,
):
    ledger.receive(product.id, warehouse.id, 50)
    ledger.receive_raw_material(raw_material.id, warehouse.id, 100)
    purchasing = PurchaseOrderService(db)
    po = purchasing.create_purchase_order(
        vendor.id, items=[{"raw_material_id": raw_material.id, "quantity": 50, "unit_price": "2.50"}],
    )
    purchasing.mark_sent(po.id)
    forecast = make_forecast(product.id, 300)

    plan = ProductionPlanService(db).generate_production_plan(forecast.id, safety_stock_percent=20, now=NOW)

    assert plan.plan_number.startswith("PP-20261019-")
    assert plan.status == "draft"
    assert plan.bom_id == bom.id
    assert plan.safety_stock == Decimal("60")
    assert plan.current_inventory == Decimal("50")
    assert plan.planned_quantity == Decimal("310")
    assert plan.planned_start_date == forecast.period_start

    (requirement,) = plan.requirements
    assert requirement.raw_material_id == raw_material.id
    assert requirement.required_quantity == Decimal("620")
    assert requirement.current_inventory == Decimal("100")
    assert requirement.on_order_quantity == Decimal("50")
    assert requirement.shortage_quantity == Decimal("470")
    assert requirement.suggested_order_quantity == Decimal("517")
    assert requirement.estimated_total_cost == Decimal("1292.50")
    assert requirement.preferred_vendor_id == vendor.id
    assert requirement.lead_time_days == 14
    assert requirement.latest_order_date == date(2026, 10, 18)


def test_draft_purchase_orders_do_not_count_as_on_order(
    db, product, vendor, raw_material, bom, make_forecast,
):
    PurchaseOrderService(db).create_purchase_order(
        vendor.id, items=[{"raw_material_id": raw_material.id, "quantity": 500}],
    )
    forecast = make_forecast(product.id, 100)

    plan = ProductionPlanService(db).generate_production_plan(forecast.id, safety_stock_percent=0, now=NOW)

    assert plan.requirements[0].on_order_quantity == Decimal("0")
    assert plan.requirements[0].shortage_quantity == Decimal("200")


def test_wastage_inflates_required_quantity(db, catalog, product, raw_material, make_forecast):
    catalog.create_bom(BomCreate(
        product_id=product.id,
        name="With wastage",
        activate=True,
        components=[BomComponentCreate(
            raw_material_id=raw_material.id, name="Cotton", quantity=Decimal("1.5"), wastage_percent=Decimal("10"),
        )],
    ))
    forecast = make_forecast(product.id, 100)

    plan = ProductionPlanService(db).generate_production_plan(forecast.id, safety_stock_percent=0, now=NOW)

    assert plan.requirements[0].required_quantity == Decimal("165")


def test_surplus_inventory_yields_zero_plan_and_no_shortage(
    db, ledger, product, warehouse, raw_material, bom, make_forecast,
):
    ledger.receive(product.id, warehouse.id, 1000)
    forecast = make_forecast(product.id, 100)

    plan = ProductionPlanService(db).generate_production_plan(forecast.id, now=NOW)

    assert plan.planned_quantity == Decimal("0")
    assert plan.requirements[0].required_quantity == Decimal("0")
    assert plan.requirements[0].shortage_quantity == Decimal("0")
    assert ProductionPlanService(db).list_requirements(plan.id, shortage_only=True) == []


def test_product_without_active_bom_gets_plan_without_requirements(db, product, make_forecast):
    forecast = make_forecast(product.id, 40)

    plan = ProductionPlanService(db).generate_production_plan(forecast.id, safety_stock_percent=0, now=NOW)

    assert plan.planned_quantity == Decimal("40")
    assert plan.requirements == []
    assert plan.bom_id is None
    assert plan.notes


def test_repeated_generation_creates_separate_plans(db, product, bom, make_forecast):
    forecast = make_forecast(product.id, 10)
    service = ProductionPlanService(db)

    first = service.generate_production_plan(forecast.id, now=NOW)
    second = service.generate_production_plan(forecast.id, now=NOW)

    assert first.id != second.id
    assert len(service.list_plans(forecast_id=forecast.id)) == 2


def test_missing_forecast_is_not_found(db):
    with pytest.raises(EntityNotFoundException):
        ProductionPlanService(db).generate_production_plan(404, now=NOW)


def test_plan_status_follows_lifecycle(db, product, make_forecast):
    forecast = make_forecast(product.id, 10)
    service = ProductionPlanService(db)
    plan = service.generate_production_plan(forecast.id, now=NOW)

    assert service.update_plan_status(plan.id, "approved").status == "approved"
    with pytest.raises(InvalidStateTransitionException):
        service.update_plan_status(plan.id, "draft")
