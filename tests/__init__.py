# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the CarVault API:
# - test_models.py: Pydantic model validation
# - test_supabase_client.py: Supabase wrapper queries (mocked client)
# - test_storage_service.py: Image storage and asset id derivation
# - test_car_service.py: Car lifecycle logic against in-memory fakes
# - test_auth.py: Bearer token verification
# - test_cars_api.py: HTTP endpoints end to end
#
# Run tests with: pytest
# =============================================================================
