from __future__ import annotations

from showroom.api.routes.admin import router as admin_router
from showroom.api.routes.health import router as health_router
from showroom.api.routes.rate_limits import router as rate_limits_router
from showroom.api.routes.search import router as search_router
from showroom.api.routes.vehicles import router as vehicles_router

__all__ = [
    "admin_router",
    "health_router",
    "rate_limits_router",
    "search_router",
    "vehicles_router",
]
