# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - cars.py: Car CRUD endpoints with image uploads
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import cars

__all__ = [
    "health",
    "cars",
]
