# importing the package registers every table on Base.metadata
from blooddash.models.center import Center
from blooddash.models.user_center import UserCenter
from blooddash.models.shortage import Shortage
from blooddash.models.audit_log import AuditLog
from blooddash.auth.models import AuthUser, AuthSession, OneTimeCode

__all__ = [
    "Center",
    "UserCenter",
    "Shortage",
    "AuditLog",
    "AuthUser",
    "AuthSession",
    "OneTimeCode",
]
