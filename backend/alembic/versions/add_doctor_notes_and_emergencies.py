"""add_doctor_notes_and_emergencies

Revision ID: add_doctor_notes_and_emergencies
Revises: add_report_model
Create Date: 2026-09-21

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "add_doctor_notes_and_emergencies"
down_revision: Union[str, Sequence[str], None] = "add_report_model"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create doctor calendar notes and emergency alert log."""
    op.create_table(
        "doctor_notes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("doctor_id", sa.String(128), nullable=False),
        sa.Column("note_date", sa.Date, nullable=False),
        sa.Column("note", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("doctor_id", "note_date", name="uq_doctor_note_day"),
    )
    op.create_index("ix_doctor_notes_doctor_id", "doctor_notes", ["doctor_id"])

    op.create_table(
        "emergency_alerts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("patient_id", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_emergency_alerts_patient_id", "emergency_alerts", ["patient_id"])


def downgrade() -> None:
    """Drop doctor notes and emergency alerts."""
    op.drop_table("emergency_alerts")
    op.drop_table("doctor_notes")
