#blooddash/api/v1/pages.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from blooddash.api.v1.common import ok, optional_filter, parse_datetime, parse_uuid
from blooddash.core.auth_deps import get_current_principal
from blooddash.db.session import get_db
from blooddash.policies.rbac import Principal
from blooddash.services import pages_service
from blooddash.services.listing import ListingFilters

router = APIRouter()


@router.get("/public")
def public_listing(
    q: str = Query(""),
    bloodType: Optional[str] = Query(None),
    district: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    filters = ListingFilters(search=q, blood_type=bloodType, district=district, status=status)
    return ok(pages_service.public_page(db, filters))


@router.get("/dashboard")
def dashboard(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return ok(pages_service.dashboard_page(db, principal))


@router.get("/dashboard/audit")
def audit_logs(
    centerId: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    page = pages_service.audit_page(
        db,
        principal,
        center_id=parse_uuid(centerId, "Invalid center id"),
        action=optional_filter(action),
        start_date=parse_datetime(startDate, "startDate"),
        end_date=parse_datetime(endDate, "endDate"),
    )
    return ok(page)
