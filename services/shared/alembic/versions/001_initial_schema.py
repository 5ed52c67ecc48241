"""Create users, subscriptions, character quotas, tokens and billing event tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the account and billing schema."""
    op.create_table(
        "Users",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column(
            "email_verified_at",
            sa.DateTime(),
            nullable=True,
            comment="Null while the address is unverified",
        ),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default="pending",
            comment="Account status: 'pending' or 'active'",
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("ix_users_email", "Users", ["email"], unique=True)

    op.create_table(
        "Subscriptions",
        sa.Column("subscription_id", sa.Uuid(), nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("Users.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "plan_type",
            sa.String(20),
            nullable=False,
            comment="'trial', 'monthly' or 'yearly'",
        ),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=False),
        sa.Column(
            "status",
            sa.String(50),
            nullable=False,
            server_default="active",
            comment="'active', 'canceled', 'payment_failed' or a vendor status",
        ),
        sa.PrimaryKeyConstraint("subscription_id"),
        sa.UniqueConstraint("user_id", name="uq_subscriptions_user_id"),
    )

    op.create_table(
        "CharacterQuotas",
        sa.Column("quota_id", sa.Uuid(), nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("Users.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("permanent_quota", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("temporary_quota", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("used_characters", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("quota_expiry", sa.DateTime(), nullable=True),
        sa.Column("last_updated", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("quota_id"),
        sa.UniqueConstraint("user_id", name="uq_character_quotas_user_id"),
        sa.CheckConstraint("permanent_quota >= 0", name="ck_quota_permanent_nonneg"),
        sa.CheckConstraint("temporary_quota >= 0", name="ck_quota_temporary_nonneg"),
        sa.CheckConstraint("used_characters >= 0", name="ck_quota_used_nonneg"),
    )

    op.create_table(
        "ResetTokens",
        sa.Column("token_id", sa.Uuid(), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("Users.user_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("expires", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("token_id"),
        sa.UniqueConstraint("token_hash", name="uq_reset_tokens_hash"),
    )
    op.create_index("ix_reset_tokens_user", "ResetTokens", ["user_id"])

    op.create_table(
        "VerificationTokens",
        sa.Column("token_id", sa.Uuid(), nullable=False),
        sa.Column("identifier", sa.String(255), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("expires", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("token_id"),
        sa.UniqueConstraint("token_hash", name="uq_verification_tokens_hash"),
    )
    op.create_index(
        "ix_verification_tokens_identifier", "VerificationTokens", ["identifier"]
    )

    op.create_table(
        "ProcessedBillingEvents",
        sa.Column("event_id", sa.String(255), nullable=False),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("processed_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("event_id"),
    )


def downgrade() -> None:
    """Drop the account and billing schema."""
    op.drop_table("ProcessedBillingEvents")
    op.drop_index("ix_verification_tokens_identifier", table_name="VerificationTokens")
    op.drop_table("VerificationTokens")
    op.drop_index("ix_reset_tokens_user", table_name="ResetTokens")
    op.drop_table("ResetTokens")
    op.drop_table("CharacterQuotas")
    op.drop_table("Subscriptions")
    op.drop_index("ix_users_email", table_name="Users")
    op.drop_table("Users")
