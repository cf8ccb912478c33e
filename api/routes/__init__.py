"""
API Routes
"""

from .health import router as health_router
from .recognition import router as recognition_router

__all__ = [
    "health_router",
    "recognition_router",
]
