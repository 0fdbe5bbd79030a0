"""forecast accuracy table and one live suggested PO per plan/vendor

Revision ID: 20261019_0002
Revises: 20261018_0001
Create Date: 2026-10-19 10:15:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0002"
down_revision = "20261018_0001"
branch_labels = None
depends_on = None

LIVE_SUGGESTION = sa.text("status != 'rejected'")


def upgrade() -> None:
    op.create_table(
        "forecast_accuracy",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("demand_forecast_id", sa.Integer(), sa.ForeignKey("demand_forecasts.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("forecasted_quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("actual_quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("variance_quantity", sa.Numeric(14, 4), nullable=False),
        sa.Column("variance_percent", sa.Numeric(8, 2), nullable=True),
        sa.Column("mape", sa.Numeric(8, 2), nullable=True),
        sa.Column("months_evaluated", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("calculated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("actual_quantity >= 0", name="ck_forecast_accuracy_actual_non_negative"),
    )
    op.create_index(
        "ix_forecast_accuracy_demand_forecast_id", "forecast_accuracy", ["demand_forecast_id"], unique=False
    )
    op.create_index(
        "ix_forecast_accuracy_product_calculated",
        "forecast_accuracy",
        ["product_id", "calculated_at"],
        unique=False,
    )

    op.drop_index("ix_suggested_purchase_orders_plan_vendor", table_name="suggested_purchase_orders")
    op.create_index(
        "uq_suggested_purchase_orders_plan_vendor_live",
        "suggested_purchase_orders",
        ["production_plan_id", "vendor_id"],
        unique=True,
        sqlite_where=LIVE_SUGGESTION,
        postgresql_where=LIVE_SUGGESTION,
    )


def downgrade() -> None:
    op.drop_index("uq_suggested_purchase_orders_plan_vendor_live", table_name="suggested_purchase_orders")
    op.create_index(
        "ix_suggested_purchase_orders_plan_vendor",
        "suggested_purchase_orders",
        ["production_plan_id", "vendor_id"],
        unique=False,
    )
    op.drop_index("ix_forecast_accuracy_product_calculated", table_name="forecast_accuracy")
    op.drop_index("ix_forecast_accuracy_demand_forecast_id", table_name="forecast_accuracy")
    op.drop_table("forecast_accuracy")
