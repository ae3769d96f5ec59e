"""API layer module.

Contains the FastAPI routers, the operation registry and the wire schemas.
"""

from catalog_api.api.health import router as health_router
from catalog_api.api.query import router as query_router

__all__ = [
    "health_router",
    "query_router",
]
