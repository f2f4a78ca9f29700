"""API routers."""

from npo_calendar.api.categories import router as categories_router
from npo_calendar.api.events import router as events_router
from npo_calendar.api.health import router as health_router
from npo_calendar.api.profiles import router as profiles_router

__all__ = [
    "categories_router",
    "events_router",
    "health_router",
    "profiles_router",
]
