from fastapi import APIRouter

from blooddash.api.v1.health import router as health_router
from blooddash.api.v1.auth import router as auth_router
from blooddash.api.v1.centers import router as centers_router
from blooddash.api.v1.shortages import router as shortages_router
from blooddash.api.v1.pages import router as pages_router
from blooddash.api.v1.realtime import router as realtime_router


v1_router = APIRouter()

# ------------------------------------------------------------------
# SYSTEM / CORE
# ------------------------------------------------------------------
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(auth_router, tags=["auth"])

# ------------------------------------------------------------------
# ACTIONS
# ------------------------------------------------------------------
v1_router.include_router(centers_router, tags=["centers"])
v1_router.include_router(shortages_router, tags=["shortages"])

# ------------------------------------------------------------------
# PAGES + REALTIME
# ------------------------------------------------------------------
v1_router.include_router(pages_router, tags=["pages"])
v1_router.include_router(realtime_router, tags=["realtime"])
