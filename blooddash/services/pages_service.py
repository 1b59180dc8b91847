# blooddash/services/pages_service.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from blooddash.core.revalidate import view_cache
from blooddash.models.enums import BLOOD_TYPES, MembershipRole
from blooddash.policies.rbac import Principal
from blooddash.schemas.audit import AuditLogOut
from blooddash.schemas.centers import CenterBrief, CenterOut
from blooddash.schemas.shortages import MembershipWithCenter, OfficialOut, ShortageOut, ShortageWithCenter
from blooddash.services.audit_service import AuditService
from blooddash.services.centers_service import CentersService
from blooddash.services.listing import ListingFilters, ListingState, Loaded, count_by_status, reduce, render, unique_districts
from blooddash.services.shortages_service import ShortagesService

PUBLIC_PATH = "/"
DASHBOARD_PATH = "/dashboard"

centers_service = CentersService()
shortages_service = ShortagesService()
audit_service = AuditService()


def listing_rows(db: Session) -> Tuple[List[Dict[str, Any]], List[str]]:
    """All shortages joined with their center plus the district options."""
    rows = [
        ShortageWithCenter.model_validate(s).model_dump(mode="json")
        for s in shortages_service.list_with_centers(db)
    ]
    districts = unique_districts([{"district": c.district} for c in centers_service.list(db)])
    return rows, districts


def public_page(db: Session, filters: ListingFilters) -> Dict[str, Any]:
    rows, districts = view_cache.get_or_compute(PUBLIC_PATH, lambda: listing_rows(db))

    state = reduce(ListingState(filters=filters), Loaded(rows=rows, districts=districts))
    page = render(state)
    page["bloodTypes"] = list(BLOOD_TYPES)
    return page


def dashboard_data(db: Session, *, center_id: uuid.UUID, is_admin: bool) -> Dict[str, Any]:
    center = centers_service.get(db, center_id)
    shortages = [ShortageOut.model_validate(s).model_dump(mode="json") for s in shortages_service.list_by_center(db, center_id)]

    officials: Optional[List[Dict[str, Any]]] = None
    if is_admin:
        officials = [
            OfficialOut.model_validate(m).model_dump(mode="json")
            for m in shortages_service.memberships_for_center(db, center_id)
        ]

    return {
        "center": CenterOut.model_validate(center).model_dump(mode="json") if center else None,
        "shortages": shortages,
        "criticalCount": count_by_status(shortages, "critical"),
        "lowCount": count_by_status(shortages, "low"),
        "officials": officials,
    }


def dashboard_page(db: Session, principal: Principal, *, use_cache: bool = True) -> Dict[str, Any]:
    m = shortages_service.get_user_center(db, principal)
    is_admin = m.role == MembershipRole.admin.value

    def compute() -> Dict[str, Any]:
        return dashboard_data(db, center_id=m.center_id, is_admin=is_admin)

    if use_cache:
        data = view_cache.get_or_compute(f"{DASHBOARD_PATH}:{m.center_id}:{m.role}", compute)
    else:
        data = compute()

    return dict(
        data,
        membership=MembershipWithCenter.model_validate(m).model_dump(mode="json"),
        isAdmin=is_admin,
    )


def audit_page(
    db: Session,
    principal: Principal,
    *,
    center_id: Optional[uuid.UUID] = None,
    action: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Dict[str, Any]:
    logs = audit_service.get_audit_logs(
        db,
        principal=principal,
        center_id=center_id,
        action=action,
        start_date=start_date,
        end_date=end_date,
    )
    return {
        "logs": [AuditLogOut.model_validate(r).model_dump(mode="json") for r in logs],
        "centers": [CenterBrief.model_validate(c).model_dump(mode="json") for c in audit_service.centers_for_audit(db)],
    }
