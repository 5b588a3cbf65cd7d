"""Initial schema: companies, assessments and compliance reports.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "company",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("company_id", sa.String(length=16), nullable=False),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("industry", sa.String(length=64), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("registration_date", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("company_id", name="uq_company_company_id"),
        sa.UniqueConstraint("email", name="uq_company_email"),
    )

    op.create_table(
        "assessment",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("assessment_id", sa.String(length=16), nullable=False),
        sa.Column(
            "company_id",
            sa.String(length=16),
            sa.ForeignKey("company.company_id"),
            nullable=False,
        ),
        sa.Column("general_answers", _JSON, nullable=False),
        sa.Column("industry_answers", _JSON, nullable=False),
        sa.Column("uploaded_documents", _JSON, nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("submission_date", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_modified", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("assessment_id", name="uq_assessment_assessment_id"),
    )
    op.create_index("ix_assessment_company_id", "assessment", ["company_id"])
    op.create_index("ix_assessment_status", "assessment", ["status"])

    op.create_table(
        "compliance_report",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("report_id", sa.String(length=16), nullable=False),
        sa.Column(
            "company_id",
            sa.String(length=16),
            sa.ForeignKey("company.company_id"),
            nullable=False,
        ),
        sa.Column(
            "assessment_id",
            sa.String(length=16),
            sa.ForeignKey("assessment.assessment_id"),
            nullable=False,
        ),
        sa.Column("report_data", _JSON, nullable=False),
        sa.Column("ai_suggestions", _JSON, nullable=False),
        sa.Column("ai_source", sa.String(length=16), nullable=False),
        sa.Column("ai_model", sa.String(length=128), nullable=True),
        sa.Column("ai_error", sa.Text(), nullable=True),
        sa.Column("ai_timestamp", sa.DateTime(), nullable=True),
        sa.Column("summary_source", sa.String(length=16), nullable=False),
        sa.Column("summary_model", sa.String(length=128), nullable=True),
        sa.Column("summary_error", sa.Text(), nullable=True),
        sa.Column("generated_date", sa.DateTime(), nullable=False),
        sa.Column("download_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_downloaded", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint("report_id", name="uq_compliance_report_report_id"),
    )
    op.create_index("ix_compliance_report_company_id", "compliance_report", ["company_id"])
    op.create_index("ix_compliance_report_assessment_id", "compliance_report", ["assessment_id"])


def downgrade() -> None:
    op.drop_index("ix_compliance_report_assessment_id", table_name="compliance_report")
    op.drop_index("ix_compliance_report_company_id", table_name="compliance_report")
    op.drop_table("compliance_report")
    op.drop_index("ix_assessment_status", table_name="assessment")
    op.drop_index("ix_assessment_company_id", table_name="assessment")
    op.drop_table("assessment")
    op.drop_table("company")
