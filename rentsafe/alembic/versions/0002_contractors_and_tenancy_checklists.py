"""contractor directory + tenancy checklists

Revision ID: 0002_contractors_checklists
Revises: 0001_init
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


revision = "0002_contractors_checklists"
down_revision = "0001_init"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "contractors",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("owners.id"), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("trade", sa.String(length=80), nullable=False),
        sa.Column("phone", sa.String(length=40), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_contractors_owner_id", "contractors", ["owner_id"])
    op.create_index("ix_contractors_phone", "contractors", ["phone"])

    op.add_column("maintenance_logs", sa.Column("contractor_id", sa.Integer(), nullable=True))
    op.create_foreign_key(
        "fk_maintenance_logs_contractor_id",
        "maintenance_logs",
        "contractors",
        ["contractor_id"],
        ["id"],
    )

    op.create_table(
        "tenancy_checklists",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("owners.id"), nullable=False),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id"), nullable=False),
        sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("completed_date", sa.Date(), nullable=False),
        sa.Column("checklist_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_tenancy_checklists_owner_id", "tenancy_checklists", ["owner_id"])
    op.create_index("ix_tenancy_checklists_property_id", "tenancy_checklists", ["property_id"])
    op.create_index("ix_tenancy_checklists_tenant_id", "tenancy_checklists", ["tenant_id"])


def downgrade():
    op.drop_table("tenancy_checklists")

    op.drop_constraint("fk_maintenance_logs_contractor_id", "maintenance_logs", type_="foreignkey")
    op.drop_column("maintenance_logs", "contractor_id")

    op.drop_table("contractors")
