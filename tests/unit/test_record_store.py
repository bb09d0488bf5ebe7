"""Tests for the DynamoDB record store."""

from typing import Any
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from src.utils.errors import AppError, ErrorCode
from src.utils.pagination import encode_cursor
from src.utils.record_store import RecordStore
from src.utils.resources import PRODUCT, PRODUCT_CATEGORY, RecordStatus

from tests.unit.fixtures import make_record


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "PutItem")


class TestCreate:
    """Tests for RecordStore.create."""

    def test_assigns_id_version_and_timestamps(self, category_store: RecordStore) -> None:
        """Test create fills in the bookkeeping fields."""
        created = category_store.create(make_record(name="Snacks"))

        assert created["productCategoryId"]
        assert created["version"] == 1
        assert created["createdAt"] == created["updatedAt"]

    def test_index_attributes_stored_but_not_returned(self, category_store: RecordStore, catalog_table: Any) -> None:
        """Test key attributes are written to the item and stripped from records."""
        created = category_store.create(make_record(name="Snacks"))

        item = catalog_table.get_item(Key={"PK": "PRODUCT_CATEGORY", "SK": created["productCategoryId"]})["Item"]
        assert item["GSI1SK"] == "Snacks"
        assert item["GSI2PK"] == "PRODUCT_CATEGORY#ACTIVE"

        record = category_store.find_by_id(created["productCategoryId"])
        assert record is not None
        assert "PK" not in record
        assert "GSI2PK" not in record
        assert record["productCategoryName"] == "Snacks"

    def test_floats_round_trip(self, catalog_table: Any) -> None:
        """Test JSON-valued product fields survive storage."""
        store = RecordStore(catalog_table, PRODUCT)
        created = store.create(
            make_record(PRODUCT, name="Cola", productUnitPrice=[{"priceType": "RETAIL", "price": 1.25}])
        )

        record = store.find_by_id(created["productId"])

        assert record is not None
        assert record["productUnitPrice"] == [{"priceType": "RETAIL", "price": 1.25}]

    def test_database_error(self) -> None:
        """Test unexpected write failures become DATABASE_ERROR."""
        table = MagicMock()
        table.put_item.side_effect = _client_error("ProvisionedThroughputExceededException")

        with pytest.raises(AppError) as exc_info:
            RecordStore(table, PRODUCT_CATEGORY).create(make_record())

        assert exc_info.value.error_code == ErrorCode.DATABASE_ERROR


class TestFind:
    """Tests for find_by_id and find_by_name."""

    def test_missing_id(self, category_store: RecordStore) -> None:
        """Test an unknown id returns None."""
        assert category_store.find_by_id("nope") is None

    def test_find_by_name(self, category_store: RecordStore) -> None:
        """Test a record is found by its exact name."""
        created = category_store.create(make_record(name="Snacks"))
        category_store.create(make_record(name="Drinks"))

        found = category_store.find_by_name("Snacks")

        assert found is not None
        assert found["productCategoryId"] == created["productCategoryId"]
        assert category_store.find_by_name("snacks") is None

    def test_names_are_scoped_per_kind(self, catalog_table: Any, category_store: RecordStore) -> None:
        """Test the same name under another kind is not a match."""
        RecordStore(catalog_table, PRODUCT).create(make_record(PRODUCT, name="Snacks"))

        assert category_store.find_by_name("Snacks") is None


class TestUpdate:
    """Tests for RecordStore.update."""

    def test_increments_version(self, category_store: RecordStore) -> None:
        """Test every write bumps the version."""
        created = category_store.create(make_record(name="Snacks"))

        updated = category_store.update({**created, "productCategoryName": "Chips"})

        assert updated["version"] == 2
        stored = category_store.find_by_id(created["productCategoryId"])
        assert stored is not None
        assert stored["productCategoryName"] == "Chips"
        assert stored["version"] == 2

    def test_name_index_follows_rename(self, category_store: RecordStore) -> None:
        """Test index attributes are rewritten on every update."""
        created = category_store.create(make_record(name="Snacks"))
        category_store.update({**created, "productCategoryName": "Chips"})

        assert category_store.find_by_name("Snacks") is None
        assert category_store.find_by_name("Chips") is not None

    def test_stale_version_conflicts(self, category_store: RecordStore) -> None:
        """Test a write based on an outdated read is rejected."""
        created = category_store.create(make_record(name="Snacks"))
        category_store.update({**created, "productCategoryName": "First"})

        with pytest.raises(AppError) as exc_info:
            category_store.update({**created, "productCategoryName": "Second"})

        assert exc_info.value.error_code == ErrorCode.VERSION_CONFLICT
        assert exc_info.value.status_code == 409
        stored = category_store.find_by_id(created["productCategoryId"])
        assert stored is not None
        assert stored["productCategoryName"] == "First"

    def test_update_of_deleted_record_conflicts(self, category_store: RecordStore) -> None:
        """Test a record removed in the meantime is not resurrected."""
        created = category_store.create(make_record(name="Snacks"))
        category_store.delete(created)

        with pytest.raises(AppError) as exc_info:
            category_store.update(created)

        assert exc_info.value.error_code == ErrorCode.VERSION_CONFLICT
        assert category_store.find_by_id(created["productCategoryId"]) is None


class TestDelete:
    """Tests for RecordStore.delete."""

    def test_removes_and_returns_snapshot(self, category_store: RecordStore) -> None:
        """Test delete removes the item and returns what was deleted."""
        created = category_store.create(make_record(name="Snacks"))

        snapshot = category_store.delete(created)

        assert snapshot == created
        assert category_store.find_by_id(created["productCategoryId"]) is None

    def test_stale_delete_conflicts(self, category_store: RecordStore) -> None:
        """Test delete is guarded by the version that was read."""
        created = category_store.create(make_record(name="Snacks"))
        category_store.update(created)

        with pytest.raises(AppError) as exc_info:
            category_store.delete(created)

        assert exc_info.value.error_code == ErrorCode.VERSION_CONFLICT
        assert category_store.find_by_id(created["productCategoryId"]) is not None


class TestPaginate:
    """Tests for RecordStore.paginate."""

    def _seed(self, store: RecordStore) -> None:
        for name in ["Delta", "Alpha", "Echo", "Charlie", "Bravo"]:
            store.create(make_record(name=name))
        store.create(make_record(name="Pending", status=RecordStatus.FOR_APPROVAL))

    def test_filters_by_status_and_orders_by_name(self, category_store: RecordStore) -> None:
        """Test only the requested status is listed, ascending by name."""
        self._seed(category_store)

        page = category_store.paginate("ACTIVE", 10)

        assert [r["productCategoryName"] for r in page["data"]] == ["Alpha", "Bravo", "Charlie", "Delta", "Echo"]
        assert page["nextCursorPointer"] is None
        assert page["prevCursorPointer"] is None

    def test_descending(self, category_store: RecordStore) -> None:
        """Test DESC reverses the order."""
        self._seed(category_store)

        page = category_store.paginate("ACTIVE", 2, "DESC")

        assert [r["productCategoryName"] for r in page["data"]] == ["Echo", "Delta"]

    def test_walks_pages_with_cursor(self, category_store: RecordStore) -> None:
        """Test the next cursor continues where the page ended."""
        self._seed(category_store)

        first = category_store.paginate("ACTIVE", 2)
        assert [r["productCategoryName"] for r in first["data"]] == ["Alpha", "Bravo"]
        assert first["nextCursorPointer"] is not None

        second = category_store.paginate("ACTIVE", 2, cursor_pointer=first["nextCursorPointer"])
        assert [r["productCategoryName"] for r in second["data"]] == ["Charlie", "Delta"]
        assert second["prevCursorPointer"] is not None

    def test_prev_cursor_walks_back(self, category_store: RecordStore) -> None:
        """Test querying from the prev cursor in reverse returns the previous page."""
        self._seed(category_store)
        first = category_store.paginate("ACTIVE", 2)
        second = category_store.paginate("ACTIVE", 2, cursor_pointer=first["nextCursorPointer"])

        back = category_store.paginate("ACTIVE", 2, "DESC", cursor_pointer=second["prevCursorPointer"])

        assert [r["productCategoryName"] for r in back["data"]] == ["Bravo", "Alpha"]

    def test_pending_listing(self, category_store: RecordStore) -> None:
        """Test pending records are listed under their own status."""
        self._seed(category_store)

        page = category_store.paginate("FOR_APPROVAL", 10)

        assert [r["productCategoryName"] for r in page["data"]] == ["Pending"]

    def test_foreign_cursor_rejected(self) -> None:
        """Test a cursor DynamoDB refuses is reported as invalid input."""
        table = MagicMock()
        table.query.side_effect = ClientError(
            {"Error": {"Code": "ValidationException", "Message": "bad start key"}}, "Query"
        )

        with pytest.raises(AppError) as exc_info:
            RecordStore(table, PRODUCT_CATEGORY).paginate("ACTIVE", 2, cursor_pointer=encode_cursor({"PK": "X"}))

        assert exc_info.value.error_code == ErrorCode.INVALID_INPUT
