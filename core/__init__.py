# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the car lifecycle logic:
# - models/: Pydantic schemas for car input and output
# - services/: Car lifecycle and image storage services
#
# Services take the authenticated user as an explicit argument and raise
# the API exceptions from app.exceptions; they never see HTTP requests.
# =============================================================================
