"""StoredBlob model - key/value store for serialized account state."""

from sqlalchemy import Column, DateTime, String, Text

from database import Base
from models.utils import generate_uuid, utc_timestamp


class StoredBlob(Base):
    """An opaque JSON payload saved under a fixed storage key."""

    __tablename__ = "stored_blobs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    key = Column(String, unique=True, index=True, nullable=False)
    value = Column(Text, nullable=False)  # JSON-serialized
    created_at = Column(DateTime, default=utc_timestamp)
    updated_at = Column(
        DateTime,
        default=utc_timestamp,
        onupdate=utc_timestamp,
    )
