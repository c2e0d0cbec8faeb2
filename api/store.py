"""
Store adapters for the five budget entities.

Every entity gets a ``Repository`` with the same CRUD contract:

    create(record) -> int        assigned id; record.id is ignored
    get(id) -> record            NotFoundError if absent
    list() -> list[record]       ordered by id
    update(id, record) -> record NotFoundError if absent; overwrites all mutable fields
    delete(id) -> record         NotFoundError if absent; returns the removed record

Store rejections (foreign keys) raise InvalidRequestError; an unreachable
database raises StoreUnavailableError.

Two backends implement the contract and are chosen by injection, see
``api.app.create_app``:

- ``SqliteStore``: parameterized queries through a pooled connection.
- ``MemoryStore``: one ordered list per entity, linear scan by id.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any, Generic, TypeVar

from api.database import TABLES, ConnectionPool, create_tables, drop_tables
from api.errors import InvalidRequestError, NotFoundError, StoreUnavailableError
from api.models import (
    ZERO,
    Bucket,
    BucketItem,
    BucketSummary,
    Category,
    Template,
    TemplateItem,
    to_amount,
)
from utils.query import BucketItemFilter, build_page_clause, build_where_clause
from utils.strings import slugify

logger = logging.getLogger(__name__)

R = TypeVar("R")


# ── Contract ──────────────────────────────────────────────────────────────────

class Repository(ABC, Generic[R]):
    """CRUD contract shared by every entity and both backends."""

    entity: str = "record"

    @abstractmethod
    def create(self, record: R) -> int: ...

    @abstractmethod
    def get(self, record_id: int) -> R: ...

    @abstractmethod
    def list(self) -> list[R]: ...

    @abstractmethod
    def update(self, record_id: int, record: R) -> R: ...

    @abstractmethod
    def delete(self, record_id: int) -> R: ...

    def _not_found(self, record_id: int) -> NotFoundError:
        return NotFoundError(f"{self.entity} {record_id} not found")


class BucketItemRepository(Repository[BucketItem]):
    """Bucket items add filtered listing, batch insert and slug lookup."""

    entity = "bucket item"

    @abstractmethod
    def list(self, filters: BucketItemFilter | None = None) -> list[BucketItem]: ...

    @abstractmethod
    def create_many(self, records: Sequence[BucketItem]) -> int:
        """Insert every record or none of them; return the count inserted."""

    @abstractmethod
    def get_by_slug(self, slug: str) -> BucketItem:
        """Return the lowest-id item whose slugified name equals ``slug``."""


class Store(ABC):
    """The five repositories plus schema and reporting operations."""

    backend: str = "abstract"

    categories: Repository[Category]
    buckets: Repository[Bucket]
    bucket_items: BucketItemRepository
    templates: Repository[Template]
    template_items: Repository[TemplateItem]

    @abstractmethod
    def bucket_summaries(self) -> list[BucketSummary]:
        """Return one summary row per bucket, ordered by bucket id."""

    @abstractmethod
    def create_schema(self) -> None: ...

    @abstractmethod
    def drop_schema(self) -> None: ...

    @abstractmethod
    def counts(self) -> dict[str, int]:
        """Return row counts per table; raises StoreUnavailableError if unreachable."""

    def close(self) -> None:
        """Release backend resources."""

    def seed(self) -> None:
        """Insert the starter data set used by ``GET /db/init``."""
        house = self.categories.create(Category(name="house"))
        living = self.categories.create(Category(name="living"))
        gas = self.buckets.create(Bucket(category_id=house, name="gas", is_liquid=True))
        self.buckets.create(Bucket(category_id=living, name="personal", is_liquid=False))
        self.bucket_items.create(BucketItem(
            bucket_id=gas,
            name="initial deposit",
            transaction=datetime(1941, 1, 5),
            deposit=to_amount("3.99"),
        ))
        paycheck = self.templates.create(Template(name="paycheck"))
        self.template_items.create(TemplateItem(
            template_id=paycheck,
            bucket_id=gas,
            name="gas allowance",
            deposit=to_amount("50.00"),
        ))
        logger.info("Seeded %s store with starter data", self.backend)


# ── SQLite backend ────────────────────────────────────────────────────────────

class SqliteRepository(Repository[R]):
    """Repository over one table.  Subclasses map records to rows and back."""

    table: str = ""
    columns: tuple[str, ...] = ()

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    @abstractmethod
    def _to_params(self, record: R) -> tuple[Any, ...]:
        """Row values for ``columns``, in order."""

    @abstractmethod
    def _from_row(self, row: sqlite3.Row) -> R: ...

    @property
    def _select(self) -> str:
        cols = ", ".join(f'"{c}"' for c in self.columns)
        return f"SELECT id, {cols} FROM {self.table}"

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        """Pooled connection with sqlite3 errors translated to API errors."""
        try:
            with self._pool.connection() as conn:
                yield conn
        except sqlite3.IntegrityError as exc:
            logger.warning("%s rejected by store: %s", self.entity, exc)
            raise InvalidRequestError(f"{self.entity} rejected by store: {exc}") from exc
        except OverflowError as exc:
            raise InvalidRequestError(f"{self.entity} id out of range: {exc}") from exc
        except sqlite3.Error as exc:
            logger.error("%s store failure: %s", self.entity, exc)
            raise StoreUnavailableError(str(exc)) from exc

    def _insert_sql(self) -> str:
        cols = ", ".join(f'"{c}"' for c in self.columns)
        placeholders = ", ".join("?" * len(self.columns))
        return f"INSERT INTO {self.table} ({cols}) VALUES ({placeholders})"

    def create(self, record: R) -> int:
        with self._session() as conn:
            cur = conn.execute(self._insert_sql(), self._to_params(record))
            return int(cur.lastrowid)

    def get(self, record_id: int) -> R:
        with self._session() as conn:
            row = conn.execute(f"{self._select} WHERE id = ?", (record_id,)).fetchone()
        if row is None:
            raise self._not_found(record_id)
        return self._from_row(row)

    def list(self) -> list[R]:
        with self._session() as conn:
            rows = conn.execute(f"{self._select} ORDER BY id").fetchall()
        return [self._from_row(r) for r in rows]

    def update(self, record_id: int, record: R) -> R:
        assignments = ", ".join(f'"{c}" = ?' for c in self.columns)
        with self._session() as conn:
            cur = conn.execute(
                f"UPDATE {self.table} SET {assignments} WHERE id = ?",
                (*self._to_params(record), record_id),
            )
            if cur.rowcount == 0:
                raise self._not_found(record_id)
        return replace(record, id=record_id)

    def delete(self, record_id: int) -> R:
        with self._session() as conn:
            row = conn.execute(f"{self._select} WHERE id = ?", (record_id,)).fetchone()
            if row is None:
                raise self._not_found(record_id)
            conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (record_id,))
        return self._from_row(row)


class SqliteCategories(SqliteRepository[Category]):
    entity = "category"
    table = "category"
    columns = ("name",)

    def _to_params(self, record: Category) -> tuple[Any, ...]:
        return (record.name,)

    def _from_row(self, row: sqlite3.Row) -> Category:
        return Category(id=row["id"], name=row["name"])


class SqliteBuckets(SqliteRepository[Bucket]):
    entity = "bucket"
    table = "bucket"
    columns = ("categoryID", "name", "description", "isLiquid")

    def _to_params(self, record: Bucket) -> tuple[Any, ...]:
        return (record.category_id, record.name, record.description, int(record.is_liquid))

    def _from_row(self, row: sqlite3.Row) -> Bucket:
        return Bucket(
            id=row["id"],
            category_id=row["categoryID"],
            name=row["name"],
            description=row["description"],
            is_liquid=bool(row["isLiquid"]),
        )


class SqliteBucketItems(SqliteRepository[BucketItem], BucketItemRepository):
    entity = "bucket item"
    table = "bucketitem"
    columns = ("bucketID", "transaction", "name", "deposit", "withdraw")

    def _to_params(self, record: BucketItem) -> tuple[Any, ...]:
        return (
            record.bucket_id,
            record.transaction.isoformat(timespec="seconds"),
            record.name,
            str(record.deposit),
            str(record.withdraw),
        )

    def _from_row(self, row: sqlite3.Row) -> BucketItem:
        return BucketItem(
            id=row["id"],
            bucket_id=row["bucketID"],
            transaction=datetime.fromisoformat(row["transaction"]),
            name=row["name"],
            deposit=to_amount(row["deposit"]),
            withdraw=to_amount(row["withdraw"]),
        )

    def list(self, filters: BucketItemFilter | None = None) -> list[BucketItem]:
        filters = filters or BucketItemFilter()
        where, params = build_where_clause(filters)
        page, page_params = build_page_clause(filters.page_size, filters.page_offset)
        sql = f"{self._select} {where} ORDER BY id {page}"
        with self._session() as conn:
            rows = conn.execute(sql, params + page_params).fetchall()
        return [self._from_row(r) for r in rows]

    def create_many(self, records: Sequence[BucketItem]) -> int:
        with self._session() as conn:
            conn.executemany(self._insert_sql(), [self._to_params(r) for r in records])
        return len(records)

    def get_by_slug(self, slug: str) -> BucketItem:
        # Narrow with LIKE, then compare slugs exactly.
        pattern = "%" + slug.replace("-", "%") + "%"
        with self._session() as conn:
            rows = conn.execute(
                f"{self._select} WHERE lower(name) LIKE ? ORDER BY id", (pattern,)
            ).fetchall()
        for row in rows:
            if slugify(row["name"]) == slug:
                return self._from_row(row)
        raise NotFoundError(f"{self.entity} '{slug}' not found")


class SqliteTemplates(SqliteRepository[Template]):
    entity = "template"
    table = "template"
    columns = ("name",)

    def _to_params(self, record: Template) -> tuple[Any, ...]:
        return (record.name,)

    def _from_row(self, row: sqlite3.Row) -> Template:
        return Template(id=row["id"], name=row["name"])


class SqliteTemplateItems(SqliteRepository[TemplateItem]):
    entity = "template item"
    table = "templateitem"
    columns = ("templateID", "bucketID", "name", "deposit", "withdraw")

    def _to_params(self, record: TemplateItem) -> tuple[Any, ...]:
        return (
            record.template_id,
            record.bucket_id,
            record.name,
            str(record.deposit),
            str(record.withdraw),
        )

    def _from_row(self, row: sqlite3.Row) -> TemplateItem:
        return TemplateItem(
            id=row["id"],
            template_id=row["templateID"],
            bucket_id=row["bucketID"],
            name=row["name"],
            deposit=to_amount(row["deposit"]),
            withdraw=to_amount(row["withdraw"]),
        )


_SUMMARY_SQL = """
    SELECT b.id AS bucket_id, b.name AS bucket_name, c.name AS category_name,
           COALESCE(SUM(i.deposit - i.withdraw), 0) AS total,
           b.isLiquid AS is_liquid
    FROM bucket b
    JOIN category c ON c.id = b.categoryID
    LEFT JOIN bucketitem i ON i.bucketID = b.id
    GROUP BY b.id, b.name, c.name, b.isLiquid
    ORDER BY b.id
"""


class SqliteStore(Store):
    """Relational store backed by a SQLite file and a bounded connection pool."""

    backend = "sqlite"

    def __init__(self, db_path: Path, pool_size: int = 10) -> None:
        self._pool = ConnectionPool(db_path, pool_size)
        self.categories = SqliteCategories(self._pool)
        self.buckets = SqliteBuckets(self._pool)
        self.bucket_items = SqliteBucketItems(self._pool)
        self.templates = SqliteTemplates(self._pool)
        self.template_items = SqliteTemplateItems(self._pool)

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        try:
            with self._pool.connection() as conn:
                yield conn
        except sqlite3.Error as exc:
            logger.error("Schema operation failed: %s", exc)
            raise StoreUnavailableError(str(exc)) from exc

    def bucket_summaries(self) -> list[BucketSummary]:
        with self._session() as conn:
            rows = conn.execute(_SUMMARY_SQL).fetchall()
        return [
            BucketSummary(
                bucket_id=r["bucket_id"],
                bucket_name=r["bucket_name"],
                category_name=r["category_name"],
                total=to_amount(r["total"]),
                is_liquid=bool(r["is_liquid"]),
            )
            for r in rows
        ]

    def create_schema(self) -> None:
        with self._session() as conn:
            create_tables(conn)
        logger.info("Created tables in %s", self._pool.db_path)

    def drop_schema(self) -> None:
        with self._session() as conn:
            drop_tables(conn)
        logger.info("Dropped tables in %s", self._pool.db_path)

    def counts(self) -> dict[str, int]:
        with self._session() as conn:
            return {
                table: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
                for table in TABLES
            }

    def close(self) -> None:
        self._pool.close_all()


# ── In-memory backend ─────────────────────────────────────────────────────────

class MemoryRepository(Repository[R]):
    """Ordered list of records keyed by a sequential id.

    ``references`` lists ``(field, parent)`` pairs checked on create/update;
    a record still referenced by a dependent repository cannot be deleted.
    All repositories of one store share a lock.
    """

    def __init__(
        self,
        entity: str,
        lock: threading.RLock,
        references: Sequence[tuple[str, "MemoryRepository[Any]"]] = (),
    ) -> None:
        self.entity = entity
        self._lock = lock
        self._records: list[R] = []
        self._next_id = 1
        self._references = tuple(references)
        self._dependents: list[tuple[str, MemoryRepository[Any]]] = []
        for field, parent in self._references:
            parent._dependents.append((field, self))

    def _index(self, record_id: int) -> int:
        for i, record in enumerate(self._records):
            if record.id == record_id:
                return i
        raise self._not_found(record_id)

    def _contains(self, record_id: int) -> bool:
        return any(r.id == record_id for r in self._records)

    def _check_references(self, record: R) -> None:
        for field, parent in self._references:
            if not parent._contains(getattr(record, field)):
                logger.warning("%s rejected: unknown %s %s", self.entity, parent.entity,
                               getattr(record, field))
                raise InvalidRequestError(
                    f"{self.entity} rejected by store: {parent.entity} "
                    f"{getattr(record, field)} does not exist"
                )

    def _check_dependents(self, record_id: int) -> None:
        for field, child in self._dependents:
            if any(getattr(r, field) == record_id for r in child._records):
                logger.warning("%s %s still referenced by %s", self.entity, record_id, child.entity)
                raise InvalidRequestError(
                    f"{self.entity} rejected by store: {self.entity} {record_id} "
                    f"is still referenced by a {child.entity}"
                )

    def _append(self, record: R) -> int:
        record_id = self._next_id
        self._next_id += 1
        self._records.append(replace(record, id=record_id))
        return record_id

    def create(self, record: R) -> int:
        with self._lock:
            self._check_references(record)
            return self._append(record)

    def get(self, record_id: int) -> R:
        with self._lock:
            return replace(self._records[self._index(record_id)])

    def list(self) -> list[R]:
        with self._lock:
            return [replace(r) for r in self._records]

    def update(self, record_id: int, record: R) -> R:
        with self._lock:
            i = self._index(record_id)
            self._check_references(record)
            self._records[i] = replace(record, id=record_id)
            return replace(self._records[i])

    def delete(self, record_id: int) -> R:
        with self._lock:
            i = self._index(record_id)
            self._check_dependents(record_id)
            return self._records.pop(i)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._next_id = 1


class MemoryBucketItems(MemoryRepository[BucketItem], BucketItemRepository):

    def list(self, filters: BucketItemFilter | None = None) -> list[BucketItem]:
        filters = filters or BucketItemFilter()
        with self._lock:
            matches = [replace(r) for r in self._records if _matches(r, filters)]
        if filters.page_size is None:
            return matches
        start = max(filters.page_offset, 0) * filters.page_size
        return matches[start:start + filters.page_size]

    def create_many(self, records: Sequence[BucketItem]) -> int:
        with self._lock:
            for record in records:
                self._check_references(record)
            for record in records:
                self._append(record)
        return len(records)

    def get_by_slug(self, slug: str) -> BucketItem:
        with self._lock:
            for record in self._records:
                if slugify(record.name) == slug:
                    return replace(record)
        raise NotFoundError(f"{self.entity} '{slug}' not found")


def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _matches(item: BucketItem, filters: BucketItemFilter) -> bool:
    if filters.bucket_id is not None and item.bucket_id != filters.bucket_id:
        return False
    if filters.date_start is not None and item.transaction < _start_of(filters.date_start):
        return False
    if (
        filters.date_end is not None
        and filters.date_end < date.max
        and item.transaction >= _start_of(filters.date_end + timedelta(days=1))
    ):
        return False
    if filters.name_part and filters.name_part.lower() not in item.name.lower():
        return False
    return True


class MemoryStore(Store):
    """Process-local store; data lives as long as the instance."""

    backend = "memory"

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.categories = MemoryRepository("category", self._lock)
        self.buckets = MemoryRepository(
            "bucket", self._lock, references=[("category_id", self.categories)]
        )
        self.bucket_items = MemoryBucketItems(
            "bucket item", self._lock, references=[("bucket_id", self.buckets)]
        )
        self.templates = MemoryRepository("template", self._lock)
        self.template_items = MemoryRepository(
            "template item",
            self._lock,
            references=[("template_id", self.templates), ("bucket_id", self.buckets)],
        )

    def _repositories(self) -> dict[str, MemoryRepository[Any]]:
        return {
            "category": self.categories,
            "bucket": self.buckets,
            "bucketitem": self.bucket_items,
            "template": self.templates,
            "templateitem": self.template_items,
        }

    def bucket_summaries(self) -> list[BucketSummary]:
        with self._lock:
            totals: dict[int, Decimal] = {}
            for item in self.bucket_items._records:
                totals[item.bucket_id] = (
                    totals.get(item.bucket_id, ZERO) + item.deposit - item.withdraw
                )
            names = {c.id: c.name for c in self.categories._records}
            return [
                BucketSummary(
                    bucket_id=b.id,
                    bucket_name=b.name,
                    category_name=names[b.category_id],
                    total=to_amount(totals.get(b.id, ZERO)),
                    is_liquid=b.is_liquid,
                )
                for b in self.buckets._records
                if b.category_id in names
            ]

    def create_schema(self) -> None:
        """Nothing to create; the lists exist from construction."""

    def drop_schema(self) -> None:
        with self._lock:
            for repo in self._repositories().values():
                repo.clear()
        logger.info("Cleared memory store")

    def counts(self) -> dict[str, int]:
        with self._lock:
            return {name: len(repo._records) for name, repo in self._repositories().items()}


def build_store(backend: str, db_path: Path, pool_size: int = 10) -> Store:
    """Construct the store named by ``backend`` ("sqlite" or "memory")."""
    if backend == "memory":
        return MemoryStore()
    if backend == "sqlite":
        return SqliteStore(db_path, pool_size)
    raise ValueError(f"Unknown store backend: '{backend}'")
