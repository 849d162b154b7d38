from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial_schema"
down_revision = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None

PENDING_ONLY = sa.text("status = 'pending'")


def _role_enum() -> sa.Enum:
    return sa.Enum(
        "boss", "helper", name="householdrole", native_enum=False, length=16
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_phone", "users", ["phone"])

    op.create_table(
        "households",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    op.create_table(
        "memberships",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "household_id",
            sa.String(length=36),
            sa.ForeignKey("households.id"),
            nullable=False,
        ),
        sa.Column("role", _role_enum(), nullable=False),
        sa.UniqueConstraint(
            "user_id", "household_id", name="uq_membership_user_household"
        ),
    )
    op.create_index("ix_memberships_user_id", "memberships", ["user_id"])
    op.create_index("ix_memberships_household_id", "memberships", ["household_id"])

    op.create_table(
        "invitations",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "household_id",
            sa.String(length=36),
            sa.ForeignKey("households.id"),
            nullable=False,
        ),
        sa.Column(
            "inviter_id",
            sa.String(length=36),
            sa.ForeignKey("users.id"),
            nullable=False,
        ),
        sa.Column("role", _role_enum(), nullable=False),
        sa.Column("contact", sa.String(), nullable=False),
        sa.Column(
            "contact_kind",
            sa.Enum(
                "email", "phone", name="contactkind", native_enum=False, length=16
            ),
            nullable=False,
        ),
        sa.Column("otp_code_hash", sa.String(length=64), nullable=False),
        sa.Column("otp_expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "revoked",
                "consumed",
                name="invitationstatus",
                native_enum=False,
                length=16,
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("consumed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "consumed_by_id",
            sa.String(length=36),
            sa.ForeignKey("users.id"),
            nullable=True,
        ),
    )
    op.create_index("ix_invitations_household_id", "invitations", ["household_id"])
    op.create_index("ix_invitations_contact", "invitations", ["contact"])
    op.create_index(
        "uq_invitations_pending_contact",
        "invitations",
        ["household_id", "contact"],
        unique=True,
        postgresql_where=PENDING_ONLY,
        sqlite_where=PENDING_ONLY,
    )


def downgrade() -> None:
    op.drop_index("uq_invitations_pending_contact", table_name="invitations")
    op.drop_index("ix_invitations_contact", table_name="invitations")
    op.drop_index("ix_invitations_household_id", table_name="invitations")
    op.drop_table("invitations")
    op.drop_index("ix_memberships_household_id", table_name="memberships")
    op.drop_index("ix_memberships_user_id", table_name="memberships")
    op.drop_table("memberships")
    op.drop_table("households")
    op.drop_index("ix_users_phone", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
