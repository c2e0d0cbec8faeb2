"""
Tests for api/store.py — repository contract on both backends.

The ``store`` fixture is parametrized over SqliteStore and MemoryStore so
each test checks that both honour the same CRUD, filter, batch, slug and
foreign-key behaviour.
"""
import sys
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from api.errors import InvalidRequestError, NotFoundError, StoreUnavailableError
from api.models import Bucket, BucketItem, Category, Template, TemplateItem
from api.store import MemoryStore, SqliteStore, build_store
from utils.query import BucketItemFilter


@pytest.fixture()
def bucket(store):
    cid = store.categories.create(Category(name="house"))
    bid = store.buckets.create(Bucket(category_id=cid, name="gas"))
    return store.buckets.get(bid)


def _item(bucket_id, name="paycheck", day=5, deposit="0.00", withdraw="0.00"):
    return BucketItem(
        bucket_id=bucket_id,
        name=name,
        transaction=datetime(2024, 1, day, 12, 0),
        deposit=Decimal(deposit),
        withdraw=Decimal(withdraw),
    )


class TestCrud:
    def test_create_assigns_sequential_ids(self, store):
        first = store.categories.create(Category(name="house", id=77))
        second = store.categories.create(Category(name="living"))
        assert second == first + 1
        assert first != 77

    def test_get_returns_created_fields(self, store):
        cid = store.categories.create(Category(name="house"))
        assert store.categories.get(cid) == Category(name="house", id=cid)

    def test_get_missing_raises(self, store):
        with pytest.raises(NotFoundError):
            store.categories.get(123)

    def test_get_returns_copy(self, store):
        cid = store.categories.create(Category(name="house"))
        record = store.categories.get(cid)
        record.name = "changed"
        assert store.categories.get(cid).name == "house"

    def test_update_overwrites_and_keeps_id(self, store, bucket):
        updated = store.buckets.update(
            bucket.id,
            Bucket(category_id=bucket.category_id, name="fuel", description="car", is_liquid=False),
        )
        assert updated.id == bucket.id
        assert store.buckets.get(bucket.id) == updated

    def test_update_missing_raises(self, store):
        with pytest.raises(NotFoundError):
            store.templates.update(5, Template(name="x"))

    def test_delete_returns_removed_record(self, store):
        tid = store.templates.create(Template(name="paycheck"))
        removed = store.templates.delete(tid)
        assert removed == Template(name="paycheck", id=tid)
        with pytest.raises(NotFoundError):
            store.templates.get(tid)

    def test_delete_missing_raises(self, store):
        with pytest.raises(NotFoundError):
            store.templates.delete(1)

    def test_list_ordered_by_id(self, store):
        for name in ("b", "a", "c"):
            store.templates.create(Template(name=name))
        assert [t.name for t in store.templates.list()] == ["b", "a", "c"]

    def test_amounts_roundtrip(self, store, bucket):
        item_id = store.bucket_items.create(_item(bucket.id, deposit="12.34", withdraw="0.50"))
        item = store.bucket_items.get(item_id)
        assert item.deposit == Decimal("12.34")
        assert item.withdraw == Decimal("0.50")
        assert item.transaction == datetime(2024, 1, 5, 12, 0)


class TestForeignKeys:
    def test_bucket_requires_category(self, store):
        with pytest.raises(InvalidRequestError):
            store.buckets.create(Bucket(category_id=42, name="gas"))

    def test_template_item_requires_both_parents(self, store, bucket):
        tid = store.templates.create(Template(name="paycheck"))
        with pytest.raises(InvalidRequestError):
            store.template_items.create(TemplateItem(template_id=tid, bucket_id=99, name="x"))
        with pytest.raises(InvalidRequestError):
            store.template_items.create(TemplateItem(template_id=99, bucket_id=bucket.id, name="x"))

    def test_delete_referenced_parent_rejected(self, store, bucket):
        with pytest.raises(InvalidRequestError):
            store.categories.delete(bucket.category_id)
        assert store.categories.get(bucket.category_id).name == "house"

    def test_delete_after_children_removed(self, store, bucket):
        store.buckets.delete(bucket.id)
        store.categories.delete(bucket.category_id)
        assert store.categories.list() == []


class TestBucketItems:
    def test_create_many_inserts_all(self, store, bucket):
        count = store.bucket_items.create_many([_item(bucket.id, "a"), _item(bucket.id, "b")])
        assert count == 2
        assert [i.name for i in store.bucket_items.list()] == ["a", "b"]

    def test_create_many_is_all_or_nothing(self, store, bucket):
        with pytest.raises(InvalidRequestError):
            store.bucket_items.create_many([_item(bucket.id, "a"), _item(999, "b")])
        assert store.bucket_items.list() == []

    def test_filters(self, store, bucket):
        other = store.buckets.create(Bucket(category_id=bucket.category_id, name="fun"))
        store.bucket_items.create_many([
            _item(bucket.id, "pay one", day=1),
            _item(bucket.id, "fill up", day=10),
            _item(other, "pay two", day=20),
        ])
        by_bucket = store.bucket_items.list(BucketItemFilter(bucket_id=other))
        assert [i.name for i in by_bucket] == ["pay two"]

        by_date = store.bucket_items.list(
            BucketItemFilter(date_start=date(2024, 1, 2), date_end=date(2024, 1, 20))
        )
        assert [i.name for i in by_date] == ["fill up", "pay two"]

        by_name = store.bucket_items.list(BucketItemFilter(name_part="PAY"))
        assert [i.name for i in by_name] == ["pay one", "pay two"]

        page = store.bucket_items.list(BucketItemFilter(page_size=2, page_offset=1))
        assert [i.name for i in page] == ["pay two"]

    def test_offset_ignored_without_page_size(self, store, bucket):
        store.bucket_items.create_many([_item(bucket.id, "a"), _item(bucket.id, "b")])
        assert len(store.bucket_items.list(BucketItemFilter(page_offset=1))) == 2

    def test_get_by_slug_returns_lowest_id(self, store, bucket):
        first = store.bucket_items.create(_item(bucket.id, "whats up"))
        store.bucket_items.create(_item(bucket.id, "whats, up"))
        assert store.bucket_items.get_by_slug("whats-up").id == first

    def test_get_by_slug_missing(self, store, bucket):
        store.bucket_items.create(_item(bucket.id, "whats up"))
        with pytest.raises(NotFoundError):
            store.bucket_items.get_by_slug("whats")


class TestStoreOperations:
    def test_summaries(self, store, bucket):
        store.bucket_items.create(_item(bucket.id, deposit="10.00"))
        store.bucket_items.create(_item(bucket.id, withdraw="2.50"))
        [summary] = store.bucket_summaries()
        assert summary.bucket_name == "gas"
        assert summary.category_name == "house"
        assert summary.total == Decimal("7.50")
        assert summary.is_liquid is True

    def test_seed(self, store):
        store.seed()
        counts = store.counts()
        assert counts == {
            "category": 2, "bucket": 2, "bucketitem": 1, "template": 1, "templateitem": 1,
        }

    def test_drop_schema_clears_data(self, store):
        store.seed()
        store.drop_schema()
        store.create_schema()
        assert store.categories.list() == []
        assert store.categories.create(Category(name="house")) == 1


class TestSqliteSpecific:
    def test_missing_tables_raise_unavailable(self, tmp_path):
        store = SqliteStore(tmp_path / "empty.sqlite")
        try:
            with pytest.raises(StoreUnavailableError):
                store.categories.list()
        finally:
            store.close()

    def test_data_survives_new_store_instance(self, sqlite_store):
        cid = sqlite_store.categories.create(Category(name="house"))
        reopened = SqliteStore(sqlite_store.pool.db_path)
        try:
            assert reopened.categories.get(cid).name == "house"
        finally:
            reopened.close()


class TestBuildStore:
    def test_memory(self, tmp_path):
        assert isinstance(build_store("memory", tmp_path / "x.sqlite"), MemoryStore)

    def test_sqlite(self, tmp_path):
        store = build_store("sqlite", tmp_path / "x.sqlite", pool_size=2)
        assert isinstance(store, SqliteStore)
        store.close()

    def test_unknown_backend(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown store backend"):
            build_store("redis", tmp_path / "x.sqlite")
