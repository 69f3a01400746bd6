"""API route modules."""

from .general import router as general_router
from .variables import router as variables_router

__all__ = [
    "general_router",
    "variables_router",
]
