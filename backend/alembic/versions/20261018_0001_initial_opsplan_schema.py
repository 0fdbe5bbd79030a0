"""initial opsplan schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = False):
    cols = [sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False))
    return cols


def upgrade() -> None:
    # ── Reference data ──────────────────────────────────────────────────────
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sku", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("unit_cost", sa.Numeric(12, 2), nullable=True),
        sa.Column("selling_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        *_timestamps(),
        sa.CheckConstraint("status IN ('active', 'inactive', 'discontinued')", name="ck_products_status"),
        sa.CheckConstraint("unit_cost IS NULL OR unit_cost >= 0", name="ck_products_unit_cost_non_negative"),
    )
    op.create_index("ix_products_sku", "products", ["sku"], unique=True)

    op.create_table(
        "warehouses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(length=50), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "vendors",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("default_lead_time_days", sa.Integer(), nullable=False, server_default="14"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("default_lead_time_days >= 0", name="ck_vendors_lead_time_non_negative"),
    )

    op.create_table(
        "raw_materials",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sku", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("unit", sa.String(length=20), nullable=False, server_default="ea"),
        sa.Column("unit_cost", sa.Numeric(12, 4), nullable=True),
        sa.Column("preferred_vendor_id", sa.Integer(), sa.ForeignKey("vendors.id"), nullable=True),
        sa.Column("lead_time_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("min_order_qty", sa.Numeric(14, 4), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("unit_cost IS NULL OR unit_cost >= 0", name="ck_raw_materials_unit_cost_non_negative"),
        sa.CheckConstraint("lead_time_days >= 0", name="ck_raw_materials_lead_time_non_negative"),
    )
    op.create_index("ix_raw_materials_sku", "raw_materials", ["sku"], unique=True)
    op.create_index("ix_raw_materials_preferred_vendor_id", "raw_materials", ["preferred_vendor_id"], unique=False)

    op.create_table(
        "bills_of_materials",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("version", sa.String(length=20), nullable=False, server_default="1.0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        *_timestamps(),
        sa.CheckConstraint("status IN ('draft', 'active', 'obsolete')", name="ck_boms_status"),
    )
    op.create_index("ix_boms_product_status", "bills_of_materials", ["product_id", "status"], unique=False)

    op.create_table(
        "bom_components",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "bom_id", sa.Integer(), sa.ForeignKey("bills_of_materials.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("component_type", sa.String(length=20), nullable=False, server_default="raw_material"),
        sa.Column("raw_material_id", sa.Integer(), sa.ForeignKey("raw_materials.id"), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("unit", sa.String(length=20), nullable=False, server_default="ea"),
        sa.Column("wastage_percent", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("unit_cost", sa.Numeric(12, 4), nullable=True),
        sa.CheckConstraint(
            "component_type IN ('raw_material', 'product', 'packaging', 'labor')",
            name="ck_bom_components_type",
        ),
        sa.CheckConstraint("quantity > 0", name="ck_bom_components_quantity_positive"),
        sa.CheckConstraint("wastage_percent >= 0 AND wastage_percent < 100", name="ck_bom_components_wastage_range"),
    )
    op.create_index("ix_bom_components_bom_id", "bom_components", ["bom_id"], unique=False)

    # ── Sales history ───────────────────────────────────────────────────────
    op.create_table(
        "sales_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("channel", sa.String(length=50), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="confirmed"),
        sa.Column("order_date", sa.DateTime(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'shipped', 'delivered', 'cancelled')",
            name="ck_sales_orders_status",
        ),
    )
    op.create_index("ix_sales_orders_order_date", "sales_orders", ["order_date"], unique=False)

    op.create_table(
        "sales_order_lines",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=True),
        sa.CheckConstraint("quantity > 0", name="ck_sales_order_lines_quantity_positive"),
    )
    op.create_index("ix_sales_order_lines_order_id", "sales_order_lines", ["order_id"], unique=False)
    op.create_index("ix_sales_order_lines_product_id", "sales_order_lines", ["product_id"], unique=False)

    # ── Inventory ledger ────────────────────────────────────────────────────
    op.create_table(
        "inventory_lots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("lot_code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("received_quantity", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("unit_cost", sa.Numeric(12, 4), nullable=True),
        sa.Column("expiration_date", sa.Date(), nullable=True),
        sa.Column("source_type", sa.String(length=50), nullable=True),
        sa.Column("source_id", sa.String(length=64), nullable=True),
        sa.Column("received_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("status IN ('active', 'hold', 'expired', 'depleted')", name="ck_inventory_lots_status"),
        sa.CheckConstraint("received_quantity >= 0", name="ck_inventory_lots_received_non_negative"),
    )
    op.create_index("ix_inventory_lots_product_status", "inventory_lots", ["product_id", "status"], unique=False)

    op.create_table(
        "inventory_balances",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("lot_id", sa.Integer(), sa.ForeignKey("inventory_lots.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("warehouse_id", sa.Integer(), sa.ForeignKey("warehouses.id"), nullable=False),
        sa.Column("available_qty", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("reserved_qty", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("hold_qty", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("damaged_qty", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("lot_id", "warehouse_id", name="uq_inventory_balances_lot_warehouse"),
        sa.CheckConstraint("available_qty >= 0", name="ck_inventory_balances_available_non_negative"),
        sa.CheckConstraint("reserved_qty >= 0", name="ck_inventory_balances_reserved_non_negative"),
        sa.CheckConstraint("hold_qty >= 0", name="ck_inventory_balances_hold_non_negative"),
        sa.CheckConstraint("damaged_qty >= 0", name="ck_inventory_balances_damaged_non_negative"),
    )
    op.create_index(
        "ix_inventory_balances_product_warehouse", "inventory_balances", ["product_id", "warehouse_id"], unique=False
    )

    op.create_table(
        "inventory_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("transaction_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("transaction_type", sa.String(length=20), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("lot_id", sa.Integer(), sa.ForeignKey("inventory_lots.id"), nullable=False),
        sa.Column("warehouse_id", sa.Integer(), sa.ForeignKey("warehouses.id"), nullable=False),
        sa.Column("bucket", sa.String(length=20), nullable=False, server_default="available"),
        sa.Column("quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("on_hand_delta", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("previous_quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("new_quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("reference_type", sa.String(length=50), nullable=True),
        sa.Column("reference_id", sa.String(length=64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "transaction_type IN ('receipt', 'reservation', 'release', 'consumption', "
            "'adjustment', 'transfer', 'status_change')",
            name="ck_inventory_transactions_type",
        ),
    )
    op.create_index(
        "ix_inventory_transactions_lot_warehouse", "inventory_transactions", ["lot_id", "warehouse_id"], unique=False
    )
    op.create_index(
        "ix_inventory_transactions_reference",
        "inventory_transactions",
        ["reference_type", "reference_id"],
        unique=False,
    )

    op.create_table(
        "inventory_reservations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("lot_id", sa.Integer(), sa.ForeignKey("inventory_lots.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("warehouse_id", sa.Integer(), sa.ForeignKey("warehouses.id"), nullable=False),
        sa.Column("balance_id", sa.Integer(), sa.ForeignKey("inventory_balances.id"), nullable=False),
        sa.Column("reference_type", sa.String(length=50), nullable=False),
        sa.Column("reference_id", sa.String(length=64), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("released_quantity", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("consumed_quantity", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        *_timestamps(updated=True),
        sa.CheckConstraint("status IN ('active', 'released', 'fulfilled')", name="ck_inventory_reservations_status"),
        sa.CheckConstraint("quantity > 0", name="ck_inventory_reservations_quantity_positive"),
        sa.CheckConstraint(
            "released_quantity + consumed_quantity <= quantity",
            name="ck_inventory_reservations_closed_within_quantity",
        ),
    )
    op.create_index(
        "ix_inventory_reservations_lookup",
        "inventory_reservations",
        ["lot_id", "warehouse_id", "reference_type", "reference_id", "status"],
        unique=False,
    )
    op.create_index("ix_inventory_reservations_balance_id", "inventory_reservations", ["balance_id"], unique=False)

    op.create_table(
        "raw_material_inventory",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("raw_material_id", sa.Integer(), sa.ForeignKey("raw_materials.id"), nullable=False),
        sa.Column("warehouse_id", sa.Integer(), sa.ForeignKey("warehouses.id"), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            "raw_material_id", "warehouse_id", name="uq_raw_material_inventory_material_warehouse"
        ),
        sa.CheckConstraint("quantity >= 0", name="ck_raw_material_inventory_quantity_non_negative"),
    )

    op.create_table(
        "raw_material_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("transaction_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("transaction_type", sa.String(length=20), nullable=False),
        sa.Column("raw_material_id", sa.Integer(), sa.ForeignKey("raw_materials.id"), nullable=False),
        sa.Column("warehouse_id", sa.Integer(), sa.ForeignKey("warehouses.id"), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("previous_quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("new_quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("reference_type", sa.String(length=50), nullable=True),
        sa.Column("reference_id", sa.String(length=64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "transaction_type IN ('receipt', 'consumption', 'adjustment')",
            name="ck_raw_material_transactions_type",
        ),
    )
    op.create_index(
        "ix_raw_material_transactions_raw_material_id", "raw_material_transactions", ["raw_material_id"], unique=False
    )

    # ── Channel reconciliation ──────────────────────────────────────────────
    op.create_table(
        "channel_listings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("channel", sa.String(length=50), nullable=False),
        sa.Column("store_id", sa.String(length=100), nullable=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("warehouse_id", sa.Integer(), sa.ForeignKey("warehouses.id"), nullable=True),
        sa.Column("external_sku", sa.String(length=100), nullable=True),
        sa.Column("channel_reported_quantity", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_synced_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint(
            "channel", "store_id", "product_id", "warehouse_id",
            name="uq_channel_listings_channel_store_product_warehouse",
        ),
        sa.CheckConstraint("channel_reported_quantity >= 0", name="ck_channel_listings_reported_non_negative"),
    )
    op.create_index("ix_channel_listings_channel_store", "channel_listings", ["channel", "store_id"], unique=False)

    op.create_table(
        "reconciliation_runs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("run_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("channel", sa.String(length=50), nullable=False),
        sa.Column("store_id", sa.String(length=100), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="running"),
        sa.Column("total_lines", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("passed_lines", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("warning_lines", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("critical_lines", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('running', 'completed', 'failed')", name="ck_reconciliation_runs_status"),
    )

    op.create_table(
        "reconciliation_lines",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "run_id", sa.Integer(), sa.ForeignKey("reconciliation_runs.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("listing_id", sa.Integer(), sa.ForeignKey("channel_listings.id"), nullable=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("warehouse_id", sa.Integer(), sa.ForeignKey("warehouses.id"), nullable=True),
        sa.Column("internal_qty", sa.Numeric(14, 4), nullable=False),
        sa.Column("channel_qty", sa.Numeric(14, 4), nullable=False),
        sa.Column("delta", sa.Numeric(14, 4), nullable=False),
        sa.Column("variance_percent", sa.Numeric(8, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("suggested_action", sa.String(length=50), nullable=False),
        sa.Column("resolution_note", sa.Text(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('pass', 'warning', 'critical')", name="ck_reconciliation_lines_status"),
    )
    op.create_index("ix_reconciliation_lines_run_id", "reconciliation_lines", ["run_id"], unique=False)

    # ── Forecasting & planning ──────────────────────────────────────────────
    op.create_table(
        "demand_forecasts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("forecast_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("forecasted_quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("confidence_level", sa.Numeric(5, 2), nullable=False),
        sa.Column("trend_direction", sa.String(length=10), nullable=False, server_default="stable"),
        sa.Column("method", sa.String(length=20), nullable=False),
        sa.Column("data_points_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("analysis", sa.Text(), nullable=True),
        sa.Column("monthly_breakdown", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        *_timestamps(),
        sa.CheckConstraint("forecasted_quantity >= 0", name="ck_demand_forecasts_quantity_non_negative"),
        sa.CheckConstraint(
            "confidence_level >= 0 AND confidence_level <= 100", name="ck_demand_forecasts_confidence_range"
        ),
        sa.CheckConstraint("trend_direction IN ('up', 'down', 'stable')", name="ck_demand_forecasts_trend"),
        sa.CheckConstraint("method IN ('ai_trend', 'historical_avg')", name="ck_demand_forecasts_method"),
        sa.CheckConstraint(
            "status IN ('draft', 'active', 'superseded', 'expired')", name="ck_demand_forecasts_status"
        ),
        sa.CheckConstraint("period_end >= period_start", name="ck_demand_forecasts_period_order"),
    )
    op.create_index(
        "ix_demand_forecasts_product_period", "demand_forecasts", ["product_id", "period_start"], unique=False
    )

    op.create_table(
        "production_plans",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("plan_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("forecast_id", sa.Integer(), sa.ForeignKey("demand_forecasts.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("bom_id", sa.Integer(), sa.ForeignKey("bills_of_materials.id"), nullable=True),
        sa.Column("forecasted_quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("safety_stock_percent", sa.Numeric(5, 2), nullable=False),
        sa.Column("safety_stock", sa.Numeric(14, 4), nullable=False),
        sa.Column("current_inventory", sa.Numeric(14, 4), nullable=False),
        sa.Column("planned_quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("planned_start_date", sa.Date(), nullable=True),
        sa.Column("planned_end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(updated=True),
        sa.CheckConstraint("planned_quantity >= 0", name="ck_production_plans_planned_non_negative"),
        sa.CheckConstraint(
            "status IN ('draft', 'approved', 'in_progress', 'completed', 'cancelled')",
            name="ck_production_plans_status",
        ),
    )
    op.create_index("ix_production_plans_forecast_id", "production_plans", ["forecast_id"], unique=False)

    # converted_po_id gets its foreign key once purchase_orders exists.
    op.create_table(
        "suggested_purchase_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("spo_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("production_plan_id", sa.Integer(), sa.ForeignKey("production_plans.id"), nullable=False),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id"), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("suggested_order_date", sa.Date(), nullable=False),
        sa.Column("required_by_date", sa.Date(), nullable=False),
        sa.Column("estimated_delivery_date", sa.Date(), nullable=False),
        sa.Column("vendor_lead_time_days", sa.Integer(), nullable=False),
        sa.Column("days_until_required", sa.Integer(), nullable=False),
        sa.Column("is_urgent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("priority_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rationale", sa.Text(), nullable=True),
        sa.Column("rationale_source", sa.String(length=20), nullable=False, server_default="template"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("converted_po_id", sa.Integer(), nullable=True),
        sa.Column("decided_by", sa.String(length=100), nullable=True),
        sa.Column("decided_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'converted')",
            name="ck_suggested_purchase_orders_status",
        ),
        sa.CheckConstraint(
            "priority_score >= 0 AND priority_score <= 100",
            name="ck_suggested_purchase_orders_priority_range",
        ),
    )
    op.create_index(
        "ix_suggested_purchase_orders_plan_vendor",
        "suggested_purchase_orders",
        ["production_plan_id", "vendor_id"],
        unique=False,
    )

    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("po_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id"), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("order_date", sa.Date(), nullable=True),
        sa.Column("expected_date", sa.Date(), nullable=True),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column(
            "suggested_po_id",
            sa.Integer(),
            sa.ForeignKey("suggested_purchase_orders.id"),
            nullable=True,
            unique=True,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(updated=True),
        sa.CheckConstraint(
            "status IN ('draft', 'sent', 'confirmed', 'partial', 'received', 'cancelled')",
            name="ck_purchase_orders_status",
        ),
    )
    op.create_index("ix_purchase_orders_vendor_status", "purchase_orders", ["vendor_id", "status"], unique=False)

    with op.batch_alter_table("suggested_purchase_orders") as batch_op:
        batch_op.create_foreign_key(
            "fk_suggested_purchase_orders_converted_po_id",
            "purchase_orders",
            ["converted_po_id"],
            ["id"],
        )

    op.create_table(
        "purchase_order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "purchase_order_id",
            sa.Integer(),
            sa.ForeignKey("purchase_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("raw_material_id", sa.Integer(), sa.ForeignKey("raw_materials.id"), nullable=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=True),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("received_quantity", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("unit_price", sa.Numeric(12, 4), nullable=False, server_default="0"),
        sa.Column("total_price", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.CheckConstraint("quantity > 0", name="ck_purchase_order_items_quantity_positive"),
        sa.CheckConstraint(
            "received_quantity >= 0 AND received_quantity <= quantity",
            name="ck_purchase_order_items_received_range",
        ),
        sa.CheckConstraint(
            "raw_material_id IS NOT NULL OR product_id IS NOT NULL",
            name="ck_purchase_order_items_target",
        ),
    )
    op.create_index(
        "ix_purchase_order_items_purchase_order_id", "purchase_order_items", ["purchase_order_id"], unique=False
    )
    op.create_index(
        "ix_purchase_order_items_raw_material_id", "purchase_order_items", ["raw_material_id"], unique=False
    )

    op.create_table(
        "material_requirements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "production_plan_id",
            sa.Integer(),
            sa.ForeignKey("production_plans.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("raw_material_id", sa.Integer(), sa.ForeignKey("raw_materials.id"), nullable=False),
        sa.Column("required_quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("unit", sa.String(length=20), nullable=False, server_default="ea"),
        sa.Column("current_inventory", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("on_order_quantity", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("shortage_quantity", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("suggested_order_quantity", sa.Numeric(14, 4), nullable=False, server_default="0"),
        sa.Column("preferred_vendor_id", sa.Integer(), sa.ForeignKey("vendors.id"), nullable=True),
        sa.Column("estimated_unit_cost", sa.Numeric(12, 4), nullable=True),
        sa.Column("estimated_total_cost", sa.Numeric(14, 2), nullable=True),
        sa.Column("lead_time_days", sa.Integer(), nullable=True),
        sa.Column("required_by_date", sa.Date(), nullable=True),
        sa.Column("latest_order_date", sa.Date(), nullable=True),
        sa.Column("is_urgent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("generated_po_id", sa.Integer(), sa.ForeignKey("purchase_orders.id"), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("required_quantity >= 0", name="ck_material_requirements_required_non_negative"),
        sa.CheckConstraint("shortage_quantity >= 0", name="ck_material_requirements_shortage_non_negative"),
        sa.CheckConstraint(
            "status IN ('pending', 'po_generated', 'ordered', 'received')",
            name="ck_material_requirements_status",
        ),
    )
    op.create_index(
        "ix_material_requirements_plan_vendor",
        "material_requirements",
        ["production_plan_id", "preferred_vendor_id"],
        unique=False,
    )

    op.create_table(
        "suggested_po_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "suggested_po_id",
            sa.Integer(),
            sa.ForeignKey("suggested_purchase_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "material_requirement_id", sa.Integer(), sa.ForeignKey("material_requirements.id"), nullable=False
        ),
        sa.Column("raw_material_id", sa.Integer(), sa.ForeignKey("raw_materials.id"), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("unit", sa.String(length=20), nullable=False, server_default="ea"),
        sa.Column("unit_price", sa.Numeric(12, 4), nullable=False, server_default="0"),
        sa.Column("total_price", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("shortage_ratio", sa.Numeric(6, 4), nullable=False, server_default="0"),
        sa.CheckConstraint("quantity > 0", name="ck_suggested_po_items_quantity_positive"),
    )
    op.create_index("ix_suggested_po_items_suggested_po_id", "suggested_po_items", ["suggested_po_id"], unique=False)


def downgrade() -> None:
    op.drop_table("suggested_po_items")
    op.drop_table("material_requirements")
    op.drop_table("purchase_order_items")
    with op.batch_alter_table("suggested_purchase_orders") as batch_op:
        batch_op.drop_constraint("fk_suggested_purchase_orders_converted_po_id", type_="foreignkey")
    op.drop_table("purchase_orders")
    op.drop_table("suggested_purchase_orders")
    op.drop_table("production_plans")
    op.drop_table("demand_forecasts")
    op.drop_table("reconciliation_lines")
    op.drop_table("reconciliation_runs")
    op.drop_table("channel_listings")
    op.drop_table("raw_material_transactions")
    op.drop_table("raw_material_inventory")
    op.drop_table("inventory_reservations")
    op.drop_table("inventory_transactions")
    op.drop_table("inventory_balances")
    op.drop_table("inventory_lots")
    op.drop_table("sales_order_lines")
    op.drop_table("sales_orders")
    op.drop_table("bom_components")
    op.drop_table("bills_of_materials")
    op.drop_table("raw_materials")
    op.drop_table("vendors")
    op.drop_table("warehouses")
    op.drop_table("products")
