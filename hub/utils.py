"""Utility helper functions for the hub."""

import uuid
from datetime import datetime, timezone


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """
    Get the current time as an aware UTC datetime.

    Returns:
        Current UTC timestamp
    """
    return datetime.now(timezone.utc)
