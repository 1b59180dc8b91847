# blooddash/services/shortages_service.py
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from blooddash.core.errors import ActionError, NotFound, ValidationFailed, store_message
from blooddash.core.revalidate import revalidate_path
from blooddash.models.center import Center
from blooddash.models.enums import BLOOD_TYPES, BloodStatus
from blooddash.models.shortage import Shortage
from blooddash.models.user_center import UserCenter
from blooddash.policies.membership_policy import enforce_action, enforce_same_center, require_membership
from blooddash.policies.rbac import (
    ACTION_DELETE_SHORTAGE,
    ACTION_UPDATE_SHORTAGE,
    ACTION_VIEW_OFFICIALS,
    Principal,
)
from blooddash.schemas.shortages import ShortageForm

STATUSES = {s.value for s in BloodStatus}


def _check_blood_type(v: Optional[str]) -> str:
    if v not in BLOOD_TYPES:
        raise ValidationFailed(f"Blood type must be one of {', '.join(BLOOD_TYPES)}")
    return v


def _check_status(v: Optional[str]) -> str:
    if v not in STATUSES:
        raise ValidationFailed("Status must be one of critical, low, normal")
    return v


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise ActionError(store_message(e))


def _revalidate() -> None:
    revalidate_path("/")
    revalidate_path("/dashboard", layout=True)


class ShortagesService:
    def list_with_centers(
        self,
        db: Session,
        *,
        blood_type: Optional[str] = None,
        district: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Shortage]:
        stmt = (
            select(Shortage)
            .options(joinedload(Shortage.center))
            .order_by(Shortage.created_at.desc())
        )
        if blood_type:
            stmt = stmt.where(Shortage.blood_type == blood_type)
        if status:
            stmt = stmt.where(Shortage.status == status)
        if district:
            stmt = stmt.join(Center, Center.id == Shortage.center_id).where(Center.district == district)
        return db.execute(stmt).scalars().unique().all()

    def list_by_center(self, db: Session, center_id: uuid.UUID) -> List[Shortage]:
        return db.execute(
            select(Shortage)
            .where(Shortage.center_id == center_id)
            .order_by(Shortage.created_at.desc())
        ).scalars().all()

    def get(self, db: Session, shortage_id: uuid.UUID) -> Optional[Shortage]:
        return db.get(Shortage, shortage_id)

    def get_user_center(self, db: Session, principal: Principal) -> UserCenter:
        m = require_membership(db, principal)
        # load the joined center for the caller
        return db.execute(
            select(UserCenter).options(joinedload(UserCenter.center)).where(UserCenter.id == m.id)
        ).scalar_one()

    def create(self, db: Session, *, principal: Principal, form: ShortageForm) -> Shortage:
        m = require_membership(db, principal, message="No center assigned to your account")

        s = Shortage(
            center_id=m.center_id,
            blood_type=_check_blood_type(form.blood_type),
            status=_check_status(form.status or BloodStatus.normal.value),
            notes=form.notes,
        )
        db.add(s)
        _commit(db)
        db.refresh(s)

        _revalidate()
        return s

    def update(self, db: Session, *, principal: Principal, shortage_id: uuid.UUID, form: ShortageForm) -> Shortage:
        s = self.get(db, shortage_id)
        if not s:
            raise NotFound("Shortage not found")

        enforce_action(db=db, principal=principal, action=ACTION_UPDATE_SHORTAGE, center_id=s.center_id)

        s.blood_type = _check_blood_type(form.blood_type)
        s.status = _check_status(form.status)
        s.notes = form.notes
        _commit(db)
        db.refresh(s)

        _revalidate()
        return s

    def delete(self, db: Session, *, principal: Principal, shortage_id: uuid.UUID) -> None:
        # role first: a non-admin learns nothing about the row
        m = enforce_action(db=db, principal=principal, action=ACTION_DELETE_SHORTAGE)

        s = self.get(db, shortage_id)
        if not s:
            raise NotFound("Shortage not found")
        enforce_same_center(m, s.center_id, ACTION_DELETE_SHORTAGE)

        db.delete(s)
        _commit(db)

        _revalidate()

    def list_officials(self, db: Session, *, principal: Principal, center_id: uuid.UUID) -> List[UserCenter]:
        enforce_action(db=db, principal=principal, action=ACTION_VIEW_OFFICIALS, center_id=center_id)
        return self.memberships_for_center(db, center_id)

    def memberships_for_center(self, db: Session, center_id: uuid.UUID) -> List[UserCenter]:
        return db.execute(
            select(UserCenter)
            .options(joinedload(UserCenter.center))
            .where(UserCenter.center_id == center_id)
            .order_by(UserCenter.created_at.desc())
        ).scalars().all()
