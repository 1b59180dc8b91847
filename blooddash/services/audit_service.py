# blooddash/services/audit_service.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, desc
from sqlalchemy.orm import Session, joinedload

from blooddash.core.config import get_settings
from blooddash.core.errors import ValidationFailed
from blooddash.models.audit_log import AuditLog
from blooddash.models.center import Center
from blooddash.models.enums import AuditAction
from blooddash.policies.membership_policy import enforce_action
from blooddash.policies.rbac import ACTION_VIEW_AUDIT, Principal


class AuditService:
    """
    Read side of audit_logs. Rows are written by the store triggers only.

    Only the first page (newest audit_page_size rows) is served.
    """

    def get_audit_logs(
        self,
        db: Session,
        *,
        principal: Principal,
        center_id: Optional[uuid.UUID] = None,
        action: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[AuditLog]:
        enforce_action(db=db, principal=principal, action=ACTION_VIEW_AUDIT)

        if action:
            try:
                AuditAction(action)
            except ValueError:
                raise ValidationFailed("Action must be one of create, update, delete")

        stmt = select(AuditLog).options(joinedload(AuditLog.center))
        if center_id is not None:
            stmt = stmt.where(AuditLog.center_id == center_id)
        if action:
            stmt = stmt.where(AuditLog.action == action)
        if start_date is not None:
            stmt = stmt.where(AuditLog.timestamp >= start_date)
        if end_date is not None:
            stmt = stmt.where(AuditLog.timestamp <= end_date)

        stmt = stmt.order_by(desc(AuditLog.timestamp)).limit(get_settings().audit_page_size)
        return db.execute(stmt).scalars().all()

    def centers_for_audit(self, db: Session) -> List[Center]:
        return db.execute(select(Center).order_by(Center.name.asc())).scalars().all()
