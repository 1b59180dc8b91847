# blooddash/services/centers_service.py
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blooddash.core.errors import ActionError, NotAuthenticated, NotFound, ValidationFailed, store_message
from blooddash.core.revalidate import revalidate_path
from blooddash.models.center import Center
from blooddash.policies.membership_policy import enforce_action
from blooddash.policies.rbac import (
    ACTION_CREATE_CENTER,
    ACTION_DELETE_CENTER,
    ACTION_UPDATE_CENTER,
    Principal,
)
from blooddash.schemas.centers import CenterForm


def _require_name_and_district(form: CenterForm) -> None:
    if not (form.name or "").strip() or not (form.district or "").strip():
        raise ValidationFailed("Center name and district are required")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise ActionError(store_message(e))


class CentersService:
    def list(self, db: Session) -> List[Center]:
        return db.execute(select(Center).order_by(Center.name.asc())).scalars().all()

    def get(self, db: Session, center_id: uuid.UUID) -> Optional[Center]:
        return db.get(Center, center_id)

    def create(self, db: Session, *, principal: Optional[Principal], form: CenterForm) -> Center:
        """
        The very first center may be created without an account (initial
        setup); after that only admins may add centers.
        """
        is_first = db.execute(select(Center.id).limit(1)).first() is None

        if not is_first:
            if principal is None:
                raise NotAuthenticated()
            enforce_action(db=db, principal=principal, action=ACTION_CREATE_CENTER)

        _require_name_and_district(form)

        c = Center(
            name=form.name.strip(),
            district=form.district.strip(),
            address=form.address,
            phone=form.phone,
            opening_hours=form.opening_hours,
        )
        db.add(c)
        _commit(db)
        db.refresh(c)

        revalidate_path("/")
        revalidate_path("/dashboard", layout=True)
        revalidate_path("/signup")
        return c

    def update(self, db: Session, *, principal: Principal, center_id: uuid.UUID, form: CenterForm) -> Center:
        enforce_action(db=db, principal=principal, action=ACTION_UPDATE_CENTER, center_id=center_id)

        c = self.get(db, center_id)
        if not c:
            raise NotFound("Center not found")

        _require_name_and_district(form)

        c.name = form.name.strip()
        c.district = form.district.strip()
        c.address = form.address
        c.phone = form.phone
        c.opening_hours = form.opening_hours
        _commit(db)
        db.refresh(c)

        revalidate_path("/")
        revalidate_path("/dashboard", layout=True)
        return c

    def delete(self, db: Session, *, principal: Principal, center_id: uuid.UUID) -> None:
        enforce_action(db=db, principal=principal, action=ACTION_DELETE_CENTER, center_id=center_id)

        c = self.get(db, center_id)
        if not c:
            raise NotFound("Center not found")

        db.delete(c)
        _commit(db)

        revalidate_path("/")
        revalidate_path("/dashboard", layout=True)
