"""add_profiles_and_auth_sessions

Revision ID: add_profiles_and_auth_sessions
Revises:
Create Date: 2026-09-14

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "add_profiles_and_auth_sessions"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create patient/doctor profiles and the identity provider's session table."""
    verification_status_enum = postgresql.ENUM(
        "pending",
        "approved",
        "rejected",
        name="verification_status",
        create_type=True,
    )
    verification_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "patient_profiles",
        sa.Column("uid", sa.String(128), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("age", sa.Integer, nullable=False),
        sa.Column("gender", sa.String(50), nullable=False),
        sa.Column("region", sa.String(120), nullable=False, server_default="N/A"),
        sa.Column("skin_tone", sa.String(50), nullable=False, server_default="N/A"),
        sa.Column("photo_url", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "doctor_profiles",
        sa.Column("uid", sa.String(128), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("age", sa.Integer, nullable=False),
        sa.Column("gender", sa.String(50), nullable=False),
        sa.Column("experience", sa.Integer, nullable=False, server_default="0"),
        sa.Column("specialization", sa.String(120), nullable=False, server_default="Dermatology"),
        sa.Column(
            "verification_status",
            postgresql.ENUM(name="verification_status", create_type=False),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("photo_url", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_doctor_profiles_verification_status", "doctor_profiles", ["verification_status"])

    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("token", sa.Text, nullable=False, unique=True),
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_auth_sessions_token", "auth_sessions", ["token"])
    op.create_index("ix_auth_sessions_user_id", "auth_sessions", ["user_id"])


def downgrade() -> None:
    """Drop profile and session tables."""
    op.drop_table("auth_sessions")
    op.drop_table("doctor_profiles")
    op.drop_table("patient_profiles")
    op.execute("DROP TYPE IF EXISTS verification_status")
