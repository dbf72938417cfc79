"""initial schema: content, preview tokens, admins, audit log

Revision ID: 5b1e0c7a2d41
Revises:
Create Date: 2026-10-19 10:12:44.512201

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '5b1e0c7a2d41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CONTENT_TYPES = (
    "blog", "case_study", "implementation_guide", "test_result",
    "best_practice", "tool_guide", "news", "static_page",
)
CONTENT_STATUSES = ("draft", "published", "archived")

JSONB = postgresql.JSONB(astext_type=sa.Text())


def _in(column: str, values) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


def upgrade():
    op.create_table(
        "content_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("content_type", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=9), nullable=False, server_default="draft"),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("content_blocks", JSONB, nullable=True),
        sa.Column("author", sa.String(length=160), nullable=True),
        sa.Column("featured_image", sa.String(length=1024), nullable=True),
        sa.Column("meta_title", sa.String(length=255), nullable=True),
        sa.Column("meta_description", sa.String(length=500), nullable=True),
        sa.Column("canonical_url", sa.String(length=1024), nullable=True),
        sa.Column("og_title", sa.String(length=255), nullable=True),
        sa.Column("og_description", sa.String(length=500), nullable=True),
        sa.Column("og_image_url", sa.String(length=1024), nullable=True),
        sa.Column("twitter_title", sa.String(length=255), nullable=True),
        sa.Column("twitter_description", sa.String(length=500), nullable=True),
        sa.Column("twitter_image_url", sa.String(length=1024), nullable=True),
        sa.Column("article_schema", JSONB, nullable=True),
        sa.Column("breadcrumb_schema", JSONB, nullable=True),
        sa.Column("industries", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("tool_categories", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("goals", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("tags", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("show_in_navigation", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("navigation_group", sa.String(length=32), nullable=True),
        sa.Column("navigation_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(_in("content_type", CONTENT_TYPES), name="ck_content_items_content_type"),
        sa.CheckConstraint(_in("status", CONTENT_STATUSES), name="ck_content_items_content_status"),
    )
    op.create_index("ix_content_items_slug", "content_items", ["slug"], unique=True)
    op.create_index("ix_content_items_content_type", "content_items", ["content_type"])
    op.create_index("ix_content_items_status", "content_items", ["status"])
    op.create_index("ix_content_items_type_status", "content_items", ["content_type", "status"])

    op.create_table(
        "content_preview_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "content_id", sa.Integer(),
            sa.ForeignKey("content_items.id", ondelete="CASCADE",
                          name="fk_content_preview_tokens_content_id_content_items"),
            nullable=False,
        ),
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("views_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_viewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_content_preview_tokens_content_id", "content_preview_tokens", ["content_id"])
    op.create_index("ix_content_preview_tokens_token", "content_preview_tokens", ["token"], unique=True)

    op.create_table(
        "admin_users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=160), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=160), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_admin_users_email", "admin_users", ["email"], unique=True)

    op.create_table(
        "password_reset_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("admin_users.id", ondelete="CASCADE",
                          name="fk_password_reset_tokens_user_id_admin_users"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_password_reset_tokens_user_id", "password_reset_tokens", ["user_id"])
    op.create_index("ix_password_reset_tokens_token_hash", "password_reset_tokens", ["token_hash"], unique=True)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("action", sa.String(length=17), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("actor_email", sa.String(length=160), nullable=True),
        sa.Column("resource_type", sa.String(length=64), nullable=True),
        sa.Column("resource_id", sa.String(length=64), nullable=True),
        sa.Column("details", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_audit_logs_resource", "audit_logs", ["resource_type", "resource_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])
    op.create_index(
        "ix_audit_logs_details_gin",
        "audit_logs",
        ["details"],
        unique=False,
        postgresql_using="gin",
    )


def downgrade():
    op.drop_index("ix_audit_logs_details_gin", table_name="audit_logs")
    op.drop_index("ix_audit_logs_created_at", table_name="audit_logs")
    op.drop_index("ix_audit_logs_resource", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_password_reset_tokens_token_hash", table_name="password_reset_tokens")
    op.drop_index("ix_password_reset_tokens_user_id", table_name="password_reset_tokens")
    op.drop_table("password_reset_tokens")

    op.drop_index("ix_admin_users_email", table_name="admin_users")
    op.drop_table("admin_users")

    op.drop_index("ix_content_preview_tokens_token", table_name="content_preview_tokens")
    op.drop_index("ix_content_preview_tokens_content_id", table_name="content_preview_tokens")
    op.drop_table("content_preview_tokens")

    op.drop_index("ix_content_items_type_status", table_name="content_items")
    op.drop_index("ix_content_items_status", table_name="content_items")
    op.drop_index("ix_content_items_content_type", table_name="content_items")
    op.drop_index("ix_content_items_slug", table_name="content_items")
    op.drop_table("content_items")
