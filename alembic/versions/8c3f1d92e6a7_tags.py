"""tags: managed tag vocabulary with usage counts

Revision ID: 8c3f1d92e6a7
Revises: 5b1e0c7a2d41
Create Date: 2026-10-21 09:41:07.118305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '8c3f1d92e6a7'
down_revision: Union[str, Sequence[str], None] = '5b1e0c7a2d41'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TAG_CATEGORIES = ("tactic", "tool", "industry", "topic", "content_type")


def _in(column: str, values) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


def upgrade():
    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("category", sa.String(length=12), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(length=16), nullable=True),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(_in("category", TAG_CATEGORIES), name="ck_tags_tag_category"),
    )
    op.create_index("ix_tags_name", "tags", ["name"], unique=True)
    op.create_index("ix_tags_category", "tags", ["category"])

    # seed the vocabulary from tags already used on content
    op.execute(
        """
        INSERT INTO tags (name, usage_count)
        SELECT t.name, COUNT(*)
        FROM content_items ci, jsonb_array_elements_text(ci.tags) AS t(name)
        WHERE btrim(t.name) <> ''
        GROUP BY t.name
        ON CONFLICT (name) DO NOTHING
        """
    )


def downgrade():
    op.drop_index("ix_tags_category", table_name="tags")
    op.drop_index("ix_tags_name", table_name="tags")
    op.drop_table("tags")
