"""Typed exception hierarchy for the points tracker.

Validation errors are raised to the caller synchronously. Row parse errors
are caught by the importer and counted. Serialization errors are caught by
the account store, which then behaves as if nothing was stored.
"""


class TrackerError(Exception):
    """Base exception for all points-tracker errors."""

    pass


class RecordValidationError(TrackerError):
    """Out-of-range input to a daily record upsert (e.g. a negative volume).

    Carries the offending field name so API callers can report it.
    """

    def __init__(self, message: str, field: str = ""):
        self.field = field
        super().__init__(message)


class RowParseError(TrackerError):
    """A CSV row with an unparseable date, number, or missing required field."""

    def __init__(self, message: str, row_number: int | None = None):
        self.row_number = row_number
        super().__init__(message)


class StoreSerializationError(TrackerError):
    """Persisted account data that cannot be decoded."""

    def __init__(self, message: str, storage_key: str = ""):
        self.storage_key = storage_key
        super().__init__(message)
