"""
Shared fixtures: an in-memory SQLite database per test, a TestClient bound to
it, and small catalog / inventory records built through the services.
"""
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import opsplan.models  # noqa: F401
from opsplan import main
from opsplan.config import settings
from opsplan.database import Base, get_db
from opsplan.models.forecast import DemandForecast
from opsplan.schemas.catalog import (
    BomComponentCreate,
    BomCreate,
    ProductCreate,
    RawMaterialCreate,
    VendorCreate,
    WarehouseCreate,
)
from opsplan.services.catalog_service import CatalogService
from opsplan.services.inventory_service import InventoryLedgerService
from opsplan.services.reasoning_service import ReasoningResult, ReasoningService
from opsplan.utils.events import DomainEvent, get_event_bus


class ScriptedReasoning(ReasoningService):
    """Returns a fixed result and records every prompt it was given."""

    enabled = True

    def __init__(self, result: ReasoningResult):
        self.result = result
        self.calls = []

    def invoke(self, messages, schema=None):
        self.calls.append({"messages": messages, "schema": schema})
        return self.result


@pytest.fixture(autouse=True)
def _offline_reasoning(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")


@pytest.fixture()
def reasoning_stub():
    return ScriptedReasoning


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(engine, db, monkeypatch):
    def _override_get_db():
        yield db

    monkeypatch.setattr(main, "engine", engine)
    main.app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture()
def events():
    """Collects every domain event published while the test runs."""
    received = []
    bus = get_event_bus()
    bus.clear()
    bus.subscribe(DomainEvent, received.append)
    yield received
    bus.clear()


@pytest.fixture()
def catalog(db):
    return CatalogService(db)


@pytest.fixture()
def ledger(db):
    return InventoryLedgerService(db)


@pytest.fixture()
def product(catalog):
    return catalog.create_product(ProductCreate(sku="SKU-TEE-001", name="Organic Tee", category="apparel"))


@pytest.fixture()
def warehouse(catalog):
    return catalog.create_warehouse(WarehouseCreate(code="MAIN", name="Main Warehouse"))


@pytest.fixture()
def second_warehouse(catalog):
    return catalog.create_warehouse(WarehouseCreate(code="EAST", name="East Fulfilment"))


@pytest.fixture()
def vendor(catalog):
    return catalog.create_vendor(VendorCreate(name="Cotton Mills Ltd", default_lead_time_days=14))


@pytest.fixture()
def raw_material(catalog, vendor):
    return catalog.create_raw_material(RawMaterialCreate(
        sku="RM-COTTON",
        name="Cotton Fabric",
        unit="m",
        unit_cost=Decimal("2.50"),
        preferred_vendor_id=vendor.id,
    ))


@pytest.fixture()
def bom(catalog, product, raw_material):
    return catalog.create_bom(BomCreate(
        product_id=product.id,
        name="Organic Tee BOM",
        activate=True,
        components=[
            BomComponentCreate(raw_material_id=raw_material.id, name="Cotton Fabric", quantity=Decimal("2"), unit="m"),
        ],
    ))


@pytest.fixture()
def lot(ledger, product, warehouse):
    return ledger.receive(product.id, warehouse.id, 100, unit_cost=Decimal("4.00"))


@pytest.fixture()
def make_forecast(db):
    def _make(product_id, quantity, period_start=date(2026, 11, 1), period_end=date(2027, 1, 31)):
        forecast = DemandForecast(
            forecast_number=f"FC-TEST-{product_id}-{quantity}",
            product_id=product_id,
            period_start=period_start,
            period_end=period_end,
            forecasted_quantity=Decimal(str(quantity)),
            confidence_level=Decimal("50"),
            trend_direction="stable",
            method="historical_avg",
            data_points_used=3,
            status="active",
        )
        db.add(forecast)
        db.commit()
        db.refresh(forecast)
        return forecast

    return _make
