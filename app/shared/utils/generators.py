"""ID and value generators (CUID document ids, project API keys)."""

import secrets

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()

API_KEY_PREFIX = "bb_"


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def generate_api_key() -> str:
    """Return a new project API key: ``bb_`` followed by 64 hex characters."""
    return API_KEY_PREFIX + secrets.token_hex(32)
