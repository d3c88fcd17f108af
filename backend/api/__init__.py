"""API route handlers."""
from . import accounts, dashboard, points, transfer

__all__ = ["accounts", "dashboard", "points", "transfer"]
