#blooddash/core/auth_deps.py
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from blooddash.auth.provider import IdentityProvider, get_identity_provider
from blooddash.core.errors import NotAuthenticated
from blooddash.db.session import get_db
from blooddash.db.triggers import bind_actor
from blooddash.policies.rbac import Principal

bearer = HTTPBearer(auto_error=False)


def _resolve(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials],
    provider: IdentityProvider,
) -> Optional[Principal]:
    if creds is None or not creds.credentials:
        return None

    found = provider.get_user(creds.credentials)
    if found is None:
        return None

    identity, session_id = found
    principal = Principal(user_id=identity.id, session_id=session_id, email=identity.email)

    # Make principal available to downstream middleware / handlers
    request.state.principal = principal
    return principal


def get_current_principal(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Principal:
    """
    Canonical authentication dependency.

    Guarantees:
    - access token signature and expiry are valid
    - the session behind it has not been signed out
    - the identity still exists
    """
    principal = _resolve(request, creds, provider)
    if principal is None:
        raise NotAuthenticated()
    return principal


def get_optional_principal(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Optional[Principal]:
    return _resolve(request, creds, provider)


def get_actor_db(
    request: Request,
    db: Session = Depends(get_db),
    principal: Optional[Principal] = Depends(get_optional_principal),
) -> Session:
    """
    DB session whose writes are attributed to the caller in audit_logs.
    """
    ip = request.client.host if request.client else None
    bind_actor(db, principal.user_id if principal else None, ip)
    return db
