#blooddash/models/user_center.py
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey, Index, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from blooddash.db.base import Base, utcnow


class UserCenter(Base):
    """
    Membership: binds one auth identity to exactly one center with a role.

    One membership per user is enforced by lookup, not by a unique constraint.
    """
    __tablename__ = "user_centers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    center_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("centers.id", ondelete="CASCADE"), nullable=False
    )

    role: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'editor'"))  # admin | editor

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    center = relationship("Center", back_populates="memberships")

    __table_args__ = (
        Index("ix_user_centers_user", "user_id"),
        Index("ix_user_centers_center", "center_id"),
    )
