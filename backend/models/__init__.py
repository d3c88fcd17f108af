"""Domain models and SQLAlchemy ORM models."""

from .account import Account
from .daily_record import DailyRecord, SynthesizedRecord
from .stored_blob import StoredBlob
from .utils import generate_uuid

__all__ = ["Account", "DailyRecord", "StoredBlob", "SynthesizedRecord", "generate_uuid"]
