"""Initial schema."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from newsletter.auth.password import hash_password
from newsletter.config import settings

revision = "20261018_01_initial"
down_revision = None
branch_labels = None
depends_on = None

user_role = postgresql.ENUM("admin", "collaborator", name="user_role", create_type=False)
subscription_status = postgresql.ENUM(
    "pending_confirmation",
    "confirmed",
    name="subscription_status",
    create_type=False,
)


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    user_role.create(op.get_bind(), checkfirst=True)
    subscription_status.create(op.get_bind(), checkfirst=True)

    users = op.create_table(
        "users",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
        ),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "subscriptions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("subscribed_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("status", subscription_status, nullable=False),
        sa.UniqueConstraint("email", name="uq_subscriptions_email"),
    )

    op.create_table(
        "subscription_tokens",
        sa.Column("subscription_token", sa.String(30), primary_key=True),
        sa.Column(
            "subscriber_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("subscriptions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("subscriber_id", name="uq_subscription_tokens_subscriber"),
    )

    op.create_table(
        "invitation_tokens",
        sa.Column("invitation_token", sa.String(30), primary_key=True),
        sa.Column("validation_code", sa.String(6), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
        ),
    )

    op.create_table(
        "idempotency",
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("idempotency_key", sa.Text(), primary_key=True),
        sa.Column("response_status_code", sa.SmallInteger(), nullable=True),
        sa.Column("response_headers", postgresql.JSONB(), nullable=True),
        sa.Column("response_body", sa.LargeBinary(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    )
    op.create_index("idx_idempotency_created", "idempotency", ["created_at"])

    op.bulk_insert(
        users,
        [
            {
                "username": settings.initial_admin_username,
                "password_hash": hash_password(
                    settings.initial_admin_password.get_secret_value()
                ),
                "role": "admin",
            }
        ],
    )


def downgrade() -> None:
    op.drop_index("idx_idempotency_created", table_name="idempotency")
    op.drop_table("idempotency")
    op.drop_table("invitation_tokens")
    op.drop_table("subscription_tokens")
    op.drop_table("subscriptions")
    op.drop_table("users")

    subscription_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
    op.execute("DROP EXTENSION IF EXISTS pgcrypto")
