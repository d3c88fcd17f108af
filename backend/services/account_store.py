"""Account store - persists the account list as one JSON blob.

The blob lives in the ``stored_blobs`` table under ``settings.STORAGE_KEY``;
the last selected account id is kept beside it under
``settings.SELECTED_ACCOUNT_KEY``.
"""

import json
import logging
from typing import Callable

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from models import Account, StoredBlob
from schemas.stored import dump_accounts, load_accounts
from services.exceptions import RecordValidationError, StoreSerializationError

logger = logging.getLogger(__name__)


class AccountStore:
    """Load and save the full account list through a session factory.

    Each call opens its own short-lived session and commits it, so a store
    can be shared by a long-lived registry.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        storage_key: str | None = None,
        selected_key: str | None = None,
    ):
        self._session_factory = session_factory
        self.storage_key = storage_key or settings.STORAGE_KEY
        self.selected_key = selected_key or settings.SELECTED_ACCOUNT_KEY

    @staticmethod
    def _get_blob(db: Session, key: str) -> StoredBlob | None:
        return db.query(StoredBlob).filter(StoredBlob.key == key).first()

    @staticmethod
    def _put_blob(db: Session, key: str, value: str) -> None:
        blob = AccountStore._get_blob(db, key)
        if blob is None:
            db.add(StoredBlob(key=key, value=value))
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                blob = AccountStore._get_blob(db, key)
                blob.value = value
                db.commit()
        else:
            blob.value = value
            db.commit()

    def decode(self, payload: str) -> list[Account]:
        """Decode a stored payload.

        Raises:
            StoreSerializationError: If the payload is not a valid account list.
        """
        try:
            return load_accounts(payload)
        except ValidationError as e:
            raise StoreSerializationError(
                f"Stored accounts under {self.storage_key!r} could not be decoded: "
                f"{e.error_count()} error(s)",
                storage_key=self.storage_key,
            ) from e
        except RecordValidationError as e:
            raise StoreSerializationError(
                f"Stored accounts under {self.storage_key!r} hold an invalid record: {e}",
                storage_key=self.storage_key,
            ) from e

    def load(self) -> list[Account]:
        """Load all accounts. Missing or corrupt data yields an empty list."""
        db = self._session_factory()
        try:
            blob = self._get_blob(db, self.storage_key)
            if blob is None:
                logger.info("No stored accounts under %r", self.storage_key)
                return []
            accounts = self.decode(blob.value)
        except StoreSerializationError:
            logger.warning(
                "Ignoring unreadable stored accounts under %r",
                self.storage_key,
                exc_info=True,
            )
            return []
        finally:
            db.close()

        logger.info("Loaded %d account(s) from storage", len(accounts))
        return accounts

    def save(self, accounts: list[Account]) -> None:
        """Replace the stored account list."""
        payload = dump_accounts(accounts)
        db = self._session_factory()
        try:
            self._put_blob(db, self.storage_key, payload)
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()
        logger.debug("Saved %d account(s) under %r", len(accounts), self.storage_key)

    def load_selected_id(self) -> str | None:
        db = self._session_factory()
        try:
            blob = self._get_blob(db, self.selected_key)
        finally:
            db.close()
        if blob is None:
            return None
        try:
            value = json.loads(blob.value)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable selection under %r", self.selected_key)
            return None
        return value if isinstance(value, str) else None

    def save_selected_id(self, account_id: str | None) -> None:
        db = self._session_factory()
        try:
            if account_id is None:
                blob = self._get_blob(db, self.selected_key)
                if blob is not None:
                    db.delete(blob)
                    db.commit()
            else:
                self._put_blob(db, self.selected_key, json.dumps(account_id))
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()
