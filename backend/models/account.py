"""Account model - a tracked trading account and its daily points history."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from models.daily_record import DailyRecord
from models.utils import generate_uuid, utc_timestamp


@dataclass
class Account:
    """A trading account tracked by name.

    ``points_history`` is kept sorted ascending by date with at most one
    record per UTC day. ``balance`` mirrors the end balance of the
    chronologically latest record.
    """

    name: str
    id: str = field(default_factory=generate_uuid)
    balance: Decimal = Decimal("0")
    last_updated: datetime = field(default_factory=utc_timestamp)
    points_history: list[DailyRecord] = field(default_factory=list)
    last_login: datetime | None = None
    risk_date: date | None = None
    created_at: datetime = field(default_factory=utc_timestamp)

    def touch(self) -> None:
        """Record a mutation time."""
        self.last_updated = utc_timestamp()
