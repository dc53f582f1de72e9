"""API routes for the nhood API."""

from nhood_api.routes.neighborhoods import router as neighborhoods_router
from nhood_api.routes.sales import router as sales_router

__all__ = [
    "neighborhoods_router",
    "sales_router",
]
