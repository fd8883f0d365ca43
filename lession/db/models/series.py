from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lession.db.base import Base


class SeriesRow(Base):
    __tablename__ = "series"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    summary: Mapped[str] = mapped_column(String(4000), nullable=False, default="")
    language: Mapped[str] = mapped_column(String(16), nullable=False, default="", index=True)
    level: Mapped[str] = mapped_column(String(64), nullable=False, default="", index=True)
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(String(128)), nullable=True)
    cover_url: Mapped[str] = mapped_column(String(2048), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="draft", index=True)

    # Denormalized: number of episodes with deleted_at IS NULL.
    episode_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    author_ids: Mapped[list[str] | None] = mapped_column(ARRAY(String(128)), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    episodes = relationship(
        "EpisodeRow",
        back_populates="series",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="EpisodeRow.seq",
    )
