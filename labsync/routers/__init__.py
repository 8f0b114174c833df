"""
API routers.
"""
from .samples import router as samples_router
from .sync import router as sync_router

__all__ = [
    "samples_router",
    "sync_router",
]
