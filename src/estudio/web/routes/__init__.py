"""Route handlers for the Web API."""

from estudio.web.routes.health import router as health_router
from estudio.web.routes.sets import router as sets_router
from estudio.web.routes.progress import router as progress_router
from estudio.web.routes.stats import router as stats_router

__all__ = [
    "health_router",
    "sets_router",
    "progress_router",
    "stats_router",
]
