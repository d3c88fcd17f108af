"""Shared helpers for models: ids and timestamps."""

import uuid
from datetime import datetime, timezone


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid.uuid4())


def utc_timestamp() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
