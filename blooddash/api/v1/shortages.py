#blooddash/api/v1/shortages.py
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from blooddash.api.v1.common import ok, optional_filter
from blooddash.core.auth_deps import get_actor_db, get_current_principal
from blooddash.db.session import get_db
from blooddash.policies.rbac import Principal
from blooddash.schemas.shortages import MembershipWithCenter, OfficialOut, ShortageForm, ShortageOut, ShortageWithCenter
from blooddash.services.shortages_service import ShortagesService

router = APIRouter()

service = ShortagesService()


def _out(s) -> dict:
    return ShortageOut.model_validate(s).model_dump(mode="json")


@router.get("/shortages")
def get_shortages(
    bloodType: Optional[str] = Query(None),
    district: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    rows = service.list_with_centers(
        db,
        blood_type=optional_filter(bloodType),
        district=optional_filter(district),
        status=optional_filter(status),
    )
    return ok([ShortageWithCenter.model_validate(s).model_dump(mode="json") for s in rows])


@router.post("/shortages")
def create_shortage(
    form: ShortageForm,
    db: Session = Depends(get_actor_db),
    principal: Principal = Depends(get_current_principal),
):
    return ok(_out(service.create(db, principal=principal, form=form)))


@router.patch("/shortages/{shortage_id}")
def update_shortage(
    shortage_id: uuid.UUID,
    form: ShortageForm,
    db: Session = Depends(get_actor_db),
    principal: Principal = Depends(get_current_principal),
):
    return ok(_out(service.update(db, principal=principal, shortage_id=shortage_id, form=form)))


@router.delete("/shortages/{shortage_id}")
def delete_shortage(
    shortage_id: uuid.UUID,
    db: Session = Depends(get_actor_db),
    principal: Principal = Depends(get_current_principal),
):
    service.delete(db, principal=principal, shortage_id=shortage_id)
    return ok({"success": True})


@router.get("/centers/{center_id}/shortages")
def get_shortages_by_center(center_id: uuid.UUID, db: Session = Depends(get_db)):
    return ok([_out(s) for s in service.list_by_center(db, center_id)])


@router.get("/centers/{center_id}/officials")
def get_officials_for_center(
    center_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    rows = service.list_officials(db, principal=principal, center_id=center_id)
    return ok([OfficialOut.model_validate(m).model_dump(mode="json") for m in rows])


@router.get("/me/center")
def get_user_center(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    m = service.get_user_center(db, principal)
    return ok(MembershipWithCenter.model_validate(m).model_dump(mode="json"))
