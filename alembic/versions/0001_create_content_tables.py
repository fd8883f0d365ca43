"""Create series, episodes, assets, upload_sessions and lessons tables

Revision ID: 0001_create_content_tables
Revises:
Create Date: 2026-10-17

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
# alembic_version.version_num is VARCHAR(32) by default, so keep this <= 32 chars.
revision = "0001_create_content_tables"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "series",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("summary", sa.String(length=4000), nullable=False, server_default=""),
        sa.Column("language", sa.String(length=16), nullable=False, server_default=""),
        sa.Column("level", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("tags", postgresql.ARRAY(sa.String(length=128)), nullable=True),
        sa.Column("cover_url", sa.String(length=2048), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="draft"),
        sa.Column("episode_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("author_ids", postgresql.ARRAY(sa.String(length=128)), nullable=True),
        *_timestamps(),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("slug", name="series_slug_key"),
    )
    op.create_index("ix_series_language", "series", ["language"], unique=False)
    op.create_index("ix_series_level", "series", ["level"], unique=False)
    op.create_index("ix_series_status", "series", ["status"], unique=False)
    op.create_index("ix_series_created_at", "series", ["created_at"], unique=False)

    op.create_table(
        "episodes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("series_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("duration_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="draft"),
        sa.Column("resource_asset_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("resource_type", sa.String(length=32), nullable=False, server_default="unspecified"),
        sa.Column("resource_playback_url", sa.Text(), nullable=False, server_default=""),
        sa.Column("resource_mime_type", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("transcript_language", sa.String(length=16), nullable=False, server_default=""),
        sa.Column("transcript_format", sa.String(length=32), nullable=False, server_default="unspecified"),
        sa.Column("transcript_content", sa.Text(), nullable=False, server_default=""),
        *_timestamps(),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["series_id"], ["series.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_episodes_series_id", "episodes", ["series_id"], unique=False)
    op.create_index("ix_episodes_deleted_at", "episodes", ["deleted_at"], unique=False)

    # Soft-deleted episodes release their seq.
    op.create_index(
        "uq_episodes_series_id_seq_live",
        "episodes",
        ["series_id", "seq"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )

    op.create_table(
        "upload_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("asset_key", sa.String(length=1024), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("protocol", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="awaiting_upload"),
        sa.Column("target_method", sa.String(length=16), nullable=False, server_default=""),
        sa.Column("target_url", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "target_headers",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "target_form_fields",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("original_filename", sa.String(length=255), nullable=False),
        sa.Column("mime_type", sa.String(length=255), nullable=False),
        sa.Column("content_length", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("asset_key", name="upload_sessions_asset_key_key"),
    )
    op.create_index("ix_upload_sessions_status", "upload_sessions", ["status"], unique=False)

    op.create_table(
        "assets",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("asset_key", sa.String(length=1024), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("original_filename", sa.String(length=255), nullable=False),
        sa.Column("mime_type", sa.String(length=255), nullable=False),
        sa.Column("filesize", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("duration_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("playback_url", sa.Text(), nullable=False, server_default=""),
        *_timestamps(),
        sa.Column("ready_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("asset_key", name="assets_asset_key_key"),
    )
    op.create_index("ix_assets_type", "assets", ["type"], unique=False)
    op.create_index("ix_assets_status", "assets", ["status"], unique=False)
    op.create_index("ix_assets_created_at", "assets", ["created_at"], unique=False)

    op.create_table(
        "lessons",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=2000), nullable=True),
        sa.Column("teacher", sa.String(length=255), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_lessons_created_at", "lessons", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_lessons_created_at", table_name="lessons")
    op.drop_table("lessons")

    op.drop_index("ix_assets_created_at", table_name="assets")
    op.drop_index("ix_assets_status", table_name="assets")
    op.drop_index("ix_assets_type", table_name="assets")
    op.drop_table("assets")

    op.drop_index("ix_upload_sessions_status", table_name="upload_sessions")
    op.drop_table("upload_sessions")

    op.drop_index("uq_episodes_series_id_seq_live", table_name="episodes")
    op.drop_index("ix_episodes_deleted_at", table_name="episodes")
    op.drop_index("ix_episodes_series_id", table_name="episodes")
    op.drop_table("episodes")

    op.drop_index("ix_series_created_at", table_name="series")
    op.drop_index("ix_series_status", table_name="series")
    op.drop_index("ix_series_level", table_name="series")
    op.drop_index("ix_series_language", table_name="series")
    op.drop_table("series")
