"""
API v1 package.

Contains versioned routes for accounts and restricted profiles.
"""

from gatekeeper.api.v1.profiles import router as profiles_router
from gatekeeper.api.v1.routes import router

__all__ = ["profiles_router", "router"]
