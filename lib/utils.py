# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

import json
from uuid import UUID


# =============================================================================
# ID Utilities
# =============================================================================

def normalize_id(value: str | UUID) -> str:
    """
    Normalize a record or user id to string format.

    Handles both string and UUID objects, ensuring consistent string output.

    Example:
        user_id = normalize_id(uuid_obj)  # "550e8400-..."
        user_id = normalize_id("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Form Parsing
# =============================================================================

def parse_json_string_list(raw: str | None) -> list[str]:
    """
    Parse a JSON-serialized array of strings sent as a form field.

    An empty or missing value means an empty list.

    Raises:
        ValueError: If the value is not a JSON array of strings
    """
    if raw is None or raw.strip() == "":
        return []

    value = json.loads(raw)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError("expected a JSON array of strings")
    return value
