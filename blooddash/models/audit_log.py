from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import String, DateTime, ForeignKey, Index, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from blooddash.db.base import Base, JSONType, utcnow


class AuditLog(Base):
    """
    Append-only change history for centers and shortages.
    Written by the store triggers (blooddash.db.triggers), never by actions.
    """
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    center_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("centers.id", ondelete="SET NULL"), nullable=True
    )

    action: Mapped[str] = mapped_column(String(16), nullable=False)  # create | update | delete
    table_name: Mapped[str] = mapped_column(String(64), nullable=False)

    old_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    new_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    center = relationship("Center")

    __table_args__ = (
        Index("ix_audit_logs_center", "center_id"),
        Index("ix_audit_logs_action", "action"),
        Index("ix_audit_logs_timestamp", "timestamp"),
    )
