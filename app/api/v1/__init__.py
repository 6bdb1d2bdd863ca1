"""V1 API router aggregation."""

from fastapi import APIRouter, Depends

from app.api.v1.api_keys import router as api_keys_router
from app.api.v1.auth import router as auth_router
from app.api.v1.customer import router as customer_router
from app.api.v1.openkj import router as openkj_router
from app.api.v1.public import router as public_router
from app.api.v1.singer import router as singer_router
from app.api.v1.songdb import router as songdb_router
from app.api.v1.stats import router as stats_router
from app.api.v1.system import router as system_router
from app.api.v1.systems import router as systems_router
from app.api.v1.ws import router as ws_router
from app.core.ratelimit import enforce_rate_limit

rate_limited = [Depends(enforce_rate_limit)]

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(auth_router, dependencies=rate_limited)
v1_router.include_router(public_router, dependencies=rate_limited)
v1_router.include_router(singer_router, dependencies=rate_limited)
v1_router.include_router(customer_router, dependencies=rate_limited)
v1_router.include_router(systems_router, dependencies=rate_limited)
v1_router.include_router(songdb_router, dependencies=rate_limited)
v1_router.include_router(api_keys_router, dependencies=rate_limited)
v1_router.include_router(stats_router, dependencies=rate_limited)
v1_router.include_router(system_router, dependencies=rate_limited)
# WebSocket upgrades bypass HTTP rate limiting
v1_router.include_router(ws_router)

__all__ = ["openkj_router", "rate_limited", "v1_router"]
