"""API routes package."""

from hub.routes.auth_routes import router as auth_router
from hub.routes.file_routes import router as file_router
from hub.routes.peer_routes import router as peer_router

__all__ = ["auth_router", "file_router", "peer_router"]
