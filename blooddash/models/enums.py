#blooddash/models/enums.py
from __future__ import annotations
from enum import Enum


class MembershipRole(str, Enum):
    admin = "admin"
    editor = "editor"


class AccountType(str, Enum):
    # chosen at signup; decides the membership role
    blood_bank = "blood_bank"
    official = "official"


class BloodStatus(str, Enum):
    critical = "critical"
    low = "low"
    normal = "normal"


class AuditAction(str, Enum):
    create = "create"
    update = "update"
    delete = "delete"


BLOOD_TYPES = ("O+", "O-", "A+", "A-", "B+", "B-", "AB+", "AB-")

ROLE_FOR_ACCOUNT = {
    AccountType.blood_bank: MembershipRole.admin,
    AccountType.official: MembershipRole.editor,
}
