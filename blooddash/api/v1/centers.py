#blooddash/api/v1/centers.py
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from blooddash.api.v1.common import ok
from blooddash.core.auth_deps import get_actor_db, get_current_principal, get_optional_principal
from blooddash.core.errors import NotFound
from blooddash.db.session import get_db
from blooddash.policies.rbac import Principal
from blooddash.schemas.centers import CenterBrief, CenterForm, CenterOut
from blooddash.services.centers_service import CentersService

router = APIRouter(prefix="/centers")

service = CentersService()


def _out(c) -> dict:
    return CenterOut.model_validate(c).model_dump(mode="json")


@router.get("")
def list_centers(db: Session = Depends(get_db)):
    return ok([_out(c) for c in service.list(db)])


@router.get("/brief")
def list_center_options(db: Session = Depends(get_db)):
    # signup dropdown: id, name, district only
    return ok([CenterBrief.model_validate(c).model_dump(mode="json") for c in service.list(db)])


@router.get("/{center_id}")
def get_center(center_id: uuid.UUID, db: Session = Depends(get_db)):
    c = service.get(db, center_id)
    if not c:
        raise NotFound("Center not found")
    return ok(_out(c))


@router.post("")
def create_center(
    form: CenterForm,
    db: Session = Depends(get_actor_db),
    principal: Optional[Principal] = Depends(get_optional_principal),
):
    return ok(_out(service.create(db, principal=principal, form=form)))


@router.patch("/{center_id}")
def update_center(
    center_id: uuid.UUID,
    form: CenterForm,
    db: Session = Depends(get_actor_db),
    principal: Principal = Depends(get_current_principal),
):
    return ok(_out(service.update(db, principal=principal, center_id=center_id, form=form)))


@router.delete("/{center_id}")
def delete_center(
    center_id: uuid.UUID,
    db: Session = Depends(get_actor_db),
    principal: Principal = Depends(get_current_principal),
):
    service.delete(db, principal=principal, center_id=center_id)
    return ok({"success": True})
