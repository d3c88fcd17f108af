"""Tests for AccountStore and the stored blob schemas."""

import json
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from models import Account, StoredBlob
from schemas.stored import dump_accounts, load_accounts
from services.account_store import AccountStore
from services.exceptions import StoreSerializationError
from tests.fixtures import TODAY, add_record


def _account_with_records() -> Account:
    account = Account(
        name="Main",
        last_login=datetime(2024, 6, 27, 10, 0, tzinfo=timezone.utc),
        risk_date=date(2024, 6, 1),
    )
    add_record(account, date(2024, 6, 27), balance=1500, start_balance=1400, profit=3)
    add_record(account, TODAY, balance=1600, bonus_points=2, deducted_points=1)
    return account


class TestSaveLoad:
    """Tests for AccountStore.save and load."""

    def test_load_empty(self, store):
        assert store.load() == []

    def test_round_trip_preserves_history(self, store):
        original = _account_with_records()
        store.save([original])

        [loaded] = store.load()

        assert loaded.id == original.id
        assert loaded.name == "Main"
        assert loaded.risk_date == date(2024, 6, 1)
        assert loaded.last_login == original.last_login
        assert [r.date for r in loaded.points_history] == [date(2024, 6, 27), TODAY]
        assert loaded.points_history[1].total_points == original.points_history[1].total_points
        assert loaded.points_history[0].profit == Decimal("3")

    def test_save_overwrites(self, store, db):
        store.save([Account(name="A")])
        store.save([Account(name="B"), Account(name="C")])

        assert [a.name for a in store.load()] == ["B", "C"]
        assert db.query(StoredBlob).filter(StoredBlob.key == store.storage_key).count() == 1

    def test_default_storage_key(self, store):
        assert store.storage_key == "binance_alpha_accounts"
        assert store.selected_key == "lastSelectedAccount"

    def test_custom_keys_are_isolated(self, session_factory):
        first = AccountStore(session_factory, storage_key="one")
        second = AccountStore(session_factory, storage_key="two")
        first.save([Account(name="A")])
        assert second.load() == []

    def test_corrupt_blob_treated_as_empty(self, store, db, caplog):
        db.add(StoredBlob(key=store.storage_key, value="{not json"))
        db.commit()

        assert store.load() == []
        assert "Ignoring unreadable stored accounts" in caplog.text

    def test_blob_is_camel_case_json(self, store, db):
        store.save([_account_with_records()])
        blob = db.query(StoredBlob).filter(StoredBlob.key == store.storage_key).first()
        payload = json.loads(blob.value)

        assert "pointsHistory" in payload[0]
        assert "totalPoints" in payload[0]["pointsHistory"][0]


class TestSelection:
    def test_no_selection(self, store):
        assert store.load_selected_id() is None

    def test_save_and_clear(self, store):
        store.save_selected_id("abc")
        assert store.load_selected_id() == "abc"
        store.save_selected_id(None)
        assert store.load_selected_id() is None


class TestDecode:
    """Tests for decoding external payloads."""

    def test_decode_invalid(self, store):
        with pytest.raises(StoreSerializationError) as exc_info:
            store.decode('[{"name": "missing id"}]')
        assert exc_info.value.storage_key == store.storage_key

    def test_decode_dashboard_export(self, store):
        """Timestamps on record dates are re-hydrated as calendar days."""
        payload = json.dumps([{
            "id": "acc-1",
            "name": "Imported",
            "balance": 1200,
            "lastUpdated": "2024-06-28T10:00:00.000Z",
            "riskDate": "2024-06-01T00:00:00.000Z",
            "pointsHistory": [{
                "date": "2024-06-28T00:00:00.000Z",
                "balance": 1200,
                "startBalance": 1000,
                "endBalance": 1200,
                "volume": 1024,
                "balancePoints": 2,
                "volumePoints": 10,
                "totalPoints": 12,
                "profit": None,
            }],
        }])

        [account] = store.decode(payload)

        assert account.risk_date == date(2024, 6, 1)
        assert account.last_updated.tzinfo is not None
        record = account.points_history[0]
        assert record.date == date(2024, 6, 28)
        assert record.profit == Decimal("0")
        assert record.pnl == Decimal("200")

    def test_dump_load_helpers(self):
        accounts = [_account_with_records()]
        restored = load_accounts(dump_accounts(accounts))
        assert restored[0].points_history[1].bonus_points == Decimal("2")


class TestDecodeRebuildsHistory:
    """Older exports are normalized through the upsert rules on decode."""

    def _payload(self, *entries) -> str:
        return json.dumps([{
            "id": "acc-1",
            "name": "Imported",
            "balance": 1000,
            "lastUpdated": "2024-06-28T16:00:00.000Z",
            "pointsHistory": list(entries),
        }])

    def _entry(self, when: str, **overrides) -> dict:
        entry = {
            "date": when,
            "balance": 1000,
            "startBalance": 1000,
            "endBalance": 1000,
            "volume": 1024,
            "balancePoints": 2,
            "volumePoints": 10,
            "totalPoints": 12,
        }
        entry.update(overrides)
        return entry

    def test_same_day_entries_merged(self, store):
        payload = self._payload(
            self._entry("2024-06-28T01:00:00.000Z"),
            self._entry("2024-06-28T15:00:00.000Z", endBalance=1300, volume=2048),
        )

        [account] = store.decode(payload)

        assert [r.date for r in account.points_history] == [TODAY]
        record = account.points_history[0]
        assert record.end_balance == Decimal("1300")
        assert record.volume_points == 11
        assert record.modified is True
        assert account.balance == Decimal("1300")
        assert account.last_updated == datetime(2024, 6, 28, 16, 0, tzinfo=timezone.utc)

    def test_totals_recomputed_without_profit(self, store):
        payload = self._payload(
            self._entry("2024-06-28T15:00:00.000Z", profit=100, totalPoints=112),
        )

        [account] = store.decode(payload)

        record = account.points_history[0]
        assert record.profit == Decimal("100")
        assert record.total_points == Decimal("12")

    def test_out_of_order_entries_sorted(self, store):
        payload = self._payload(
            self._entry("2024-06-28T00:00:00.000Z"),
            self._entry("2024-06-20T00:00:00.000Z", endBalance=500),
        )

        [account] = store.decode(payload)

        assert [r.date for r in account.points_history] == [date(2024, 6, 20), TODAY]
        assert account.balance == Decimal("1000")

    @pytest.mark.parametrize("field", ["volume", "startBalance", "endBalance", "deductedPoints"])
    def test_negative_values_rejected(self, store, field):
        payload = self._payload(self._entry("2024-06-28T00:00:00.000Z", **{field: -1}))

        with pytest.raises(StoreSerializationError):
            store.decode(payload)
