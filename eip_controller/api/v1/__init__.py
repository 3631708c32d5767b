"""API v1 routers"""

from .addresses import router as addresses_router

__all__ = ["addresses_router"]
