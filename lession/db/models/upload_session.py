from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from lession.db.base import Base


class UploadSessionRow(Base):
    __tablename__ = "upload_sessions"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)

    asset_key: Mapped[str] = mapped_column(String(1024), nullable=False, unique=True)

    type: Mapped[str] = mapped_column(String(32), nullable=False)
    protocol: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="awaiting_upload", index=True)

    # Vendor-issued transfer instructions.
    target_method: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    target_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    target_headers: Mapped[dict[str, str]] = mapped_column(JSONB, nullable=False, default=dict)
    target_form_fields: Mapped[dict[str, str]] = mapped_column(JSONB, nullable=False, default=dict)

    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    content_length: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
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
