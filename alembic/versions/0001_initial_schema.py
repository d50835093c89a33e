"""Initial schema: catalogue, spare parts, repairs and workshop settings.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

REPAIR_STATUS = sa.Enum(
    "pending", "in_progress", "completed", "archived", name="repairstatus"
)


def _index(table: str, *columns: str) -> None:
    for column in columns:
        op.create_index(f"ix_{table}_{column}", table, [column])


def upgrade():
    op.create_table(
        "brands",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    _index("brands", "id", "name")

    op.create_table(
        "device_models",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("brand_id", sa.String(32), sa.ForeignKey("brands.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    _index("device_models", "id", "name", "brand_id")

    op.create_table(
        "spare_parts",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("part_type", sa.String(100), nullable=False),
        sa.Column("screen_quality", sa.String(100), nullable=True),
        sa.Column("brand_id", sa.String(32), nullable=False),
        sa.Column("model_id", sa.String(32), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("purchase_price", sa.Float(), nullable=False),
        sa.Column("selling_price", sa.Float(), nullable=False),
        sa.Column("low_stock_alert", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    _index("spare_parts", "id", "name", "part_type", "brand_id", "model_id")

    op.create_table(
        "repair_requests",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_phone", sa.String(50), nullable=False),
        sa.Column("device_brand_id", sa.String(32), nullable=False),
        sa.Column("device_model_id", sa.String(32), nullable=False),
        sa.Column("issue_type", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("labor_cost", sa.Float(), nullable=True),
        sa.Column("total_cost", sa.Float(), nullable=True),
        sa.Column("profit", sa.Float(), nullable=True),
        sa.Column("status", REPAIR_STATUS, nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
    )
    _index("repair_requests", "id", "device_brand_id", "device_model_id", "issue_type", "status", "created_at")

    op.create_table(
        "repair_parts",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("repair_id", sa.String(32), sa.ForeignKey("repair_requests.id"), nullable=False),
        sa.Column("spare_part_id", sa.String(32), nullable=False),
        sa.Column("quantity_used", sa.Integer(), nullable=False),
        sa.Column("price_at_time", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    _index("repair_parts", "id", "repair_id", "spare_part_id")

    op.create_table(
        "workshop_settings",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("thank_you_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    _index("workshop_settings", "id")


def downgrade():
    op.drop_table("workshop_settings")
    op.drop_table("repair_parts")
    op.drop_table("repair_requests")
    op.drop_table("spare_parts")
    op.drop_table("device_models")
    op.drop_table("brands")
    REPAIR_STATUS.drop(op.get_bind(), checkfirst=True)
