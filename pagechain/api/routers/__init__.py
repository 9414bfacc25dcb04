"""API router factory functions."""
from .jobs import create_jobs_router
from .profiles import create_profiles_router
from .systems import create_systems_router

__all__ = [
    "create_jobs_router",
    "create_profiles_router",
    "create_systems_router",
]
