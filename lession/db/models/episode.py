from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lession.db.base import Base

# Seq is unique among live (not soft-deleted) episodes of a series.
EPISODE_SEQ_INDEX = "uq_episodes_series_id_seq_live"


class EpisodeRow(Base):
    __tablename__ = "episodes"
    __table_args__ = (
        Index(
            EPISODE_SEQ_INDEX,
            "series_id",
            "seq",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    series_id: Mapped[UUID] = mapped_column(
        ForeignKey("series.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    seq: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="draft")

    # Media binding (flattened MediaResource).
    resource_asset_id: Mapped[UUID | None] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
    resource_type: Mapped[str] = mapped_column(String(32), nullable=False, default="unspecified")
    resource_playback_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    resource_mime_type: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    transcript_language: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    transcript_format: Mapped[str] = mapped_column(String(32), nullable=False, default="unspecified")
    transcript_content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Soft-delete marker.
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    series = relationship("SeriesRow", back_populates="episodes")
