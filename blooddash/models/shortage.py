# blooddash/models/shortage.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, DateTime, ForeignKey, Index, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from blooddash.db.base import Base, utcnow


class Shortage(Base):
    __tablename__ = "shortages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    center_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("centers.id", ondelete="CASCADE"), nullable=False
    )

    blood_type: Mapped[str] = mapped_column(String(4), nullable=False)  # O+ .. AB-
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'normal'"))
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    center = relationship("Center", back_populates="shortages")

    __table_args__ = (
        Index("ix_shortages_center", "center_id"),
        Index("ix_shortages_status", "status"),
        Index("ix_shortages_created", "created_at"),
    )
