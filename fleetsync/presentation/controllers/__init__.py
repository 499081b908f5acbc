"""FastAPI routers of the presentation layer."""

from .system_controller import router as system_router

__all__ = ["system_router"]
