"""
Entity records and Pydantic request/response models for the API.

Entity records are plain dataclasses owned by the store layer.  The ``*In``
models decode client JSON (short wire keys, client ``id`` dropped, ``name``
lower-cased); the ``*Out`` models wrap a record for serialization under the
same short keys.  Field() descriptions and examples feed the OpenAPI docs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from utils.strings import MAX_ID, normalize_name

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_amount(value: Decimal | float | int | str) -> Decimal:
    """Coerce a stored or decoded amount to a two-place Decimal."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_timestamp(value: datetime) -> datetime:
    """Normalize a timestamp to naive UTC with whole-second precision."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=0)


# ── Entity records ────────────────────────────────────────────────────────────

@dataclass
class Category:
    name: str
    id: int = 0


@dataclass
class Bucket:
    category_id: int
    name: str
    description: str = ""
    is_liquid: bool = True
    id: int = 0


@dataclass
class BucketItem:
    """One deposit or withdrawal against a bucket."""
    bucket_id: int
    name: str
    transaction: datetime
    deposit: Decimal = ZERO
    withdraw: Decimal = ZERO
    id: int = 0


@dataclass
class Template:
    name: str
    id: int = 0


@dataclass
class TemplateItem:
    """A reusable, undated allocation of money into a bucket."""
    template_id: int
    bucket_id: int
    name: str
    deposit: Decimal = ZERO
    withdraw: Decimal = ZERO
    id: int = 0


@dataclass
class BucketSummary:
    """Read-only projection: a bucket, its category and its running balance."""
    bucket_id: int
    bucket_name: str
    category_name: str
    total: Decimal
    is_liquid: bool


# ── Request models ────────────────────────────────────────────────────────────

class _RequestModel(BaseModel):
    """Base for request payloads.

    Unknown keys (including any client-supplied ``id``) are ignored, so the
    identifier is always server-assigned.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("name", check_fields=False)
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        value = normalize_name(value)
        if not value:
            raise ValueError("name must not be blank")
        return value


class _AmountsMixin(BaseModel):
    deposit: Decimal = Field(ZERO, alias="d", description="Amount deposited", examples=[125.5])
    withdraw: Decimal = Field(ZERO, alias="w", description="Amount withdrawn", examples=[0])

    @field_validator("deposit", "withdraw")
    @classmethod
    def _two_places(cls, value: Decimal) -> Decimal:
        return to_amount(value)


class CategoryIn(_RequestModel):
    """Request body for creating or replacing a category."""
    name: str = Field(..., max_length=100, description="Category name (stored lower-case)", examples=["House"])

    def to_record(self) -> Category:
        return Category(name=self.name)


class BucketIn(_RequestModel):
    """Request body for creating or replacing a bucket."""
    category_id: int = Field(..., le=MAX_ID, alias="categoryID", description="Owning category id", examples=[1])
    name: str = Field(..., max_length=100, description="Bucket name (stored lower-case)", examples=["Gas"])
    description: str = Field("", alias="desc", max_length=1000, description="Free-text description")
    is_liquid: bool = Field(True, alias="liq", description="Whether the money is spendable now")

    def to_record(self) -> Bucket:
        return Bucket(
            category_id=self.category_id,
            name=self.name,
            description=self.description,
            is_liquid=self.is_liquid,
        )


class BucketItemIn(_RequestModel, _AmountsMixin):
    """Request body for creating or replacing a bucket item."""
    bucket_id: int = Field(..., le=MAX_ID, alias="bid", description="Owning bucket id", examples=[1])
    name: str = Field(..., max_length=100, description="Item name (stored lower-case)", examples=["Paycheck"])
    transaction: datetime = Field(..., alias="trans", description="When the money moved (ISO-8601)",
                                  examples=["2024-01-05T00:00:00"])

    @field_validator("transaction")
    @classmethod
    def _normalize_transaction(cls, value: datetime) -> datetime:
        return to_timestamp(value)

    def to_record(self) -> BucketItem:
        return BucketItem(
            bucket_id=self.bucket_id,
            name=self.name,
            transaction=self.transaction,
            deposit=self.deposit,
            withdraw=self.withdraw,
        )


class BucketItemBatchIn(BaseModel):
    """Request body for ``POST /bucketItems?batch``."""
    items: list[BucketItemIn] = Field(..., min_length=1, description="Bucket items to insert together")

    def to_records(self) -> list[BucketItem]:
        return [item.to_record() for item in self.items]


class TemplateIn(_RequestModel):
    """Request body for creating or replacing a template."""
    name: str = Field(..., max_length=100, description="Template name (stored lower-case)", examples=["Paycheck"])

    def to_record(self) -> Template:
        return Template(name=self.name)


class TemplateItemIn(_RequestModel, _AmountsMixin):
    """Request body for creating or replacing a template item."""
    template_id: int = Field(..., le=MAX_ID, alias="tid", description="Owning template id", examples=[1])
    bucket_id: int = Field(..., le=MAX_ID, alias="bid", description="Target bucket id", examples=[1])
    name: str = Field(..., max_length=100, description="Item name (stored lower-case)", examples=["Gas allowance"])

    def to_record(self) -> TemplateItem:
        return TemplateItem(
            template_id=self.template_id,
            bucket_id=self.bucket_id,
            name=self.name,
            deposit=self.deposit,
            withdraw=self.withdraw,
        )


# ── Response models ───────────────────────────────────────────────────────────

class _ResponseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class _AmountsOut(_ResponseModel):
    deposit: Decimal = Field(..., alias="d", description="Amount deposited")
    withdraw: Decimal = Field(..., alias="w", description="Amount withdrawn")

    @field_serializer("deposit", "withdraw")
    def _as_number(self, value: Decimal) -> float:
        return float(value)


class CategoryOut(_ResponseModel):
    """A category as returned to clients."""
    id: int = Field(..., description="Server-assigned id", examples=[1])
    name: str = Field(..., description="Category name", examples=["house"])

    @classmethod
    def from_record(cls, record: Category) -> "CategoryOut":
        return cls(id=record.id, name=record.name)


class BucketOut(_ResponseModel):
    """A bucket as returned to clients."""
    id: int = Field(..., description="Server-assigned id", examples=[1])
    category_id: int = Field(..., alias="categoryID", description="Owning category id")
    name: str = Field(..., description="Bucket name", examples=["gas"])
    description: str = Field(..., alias="desc", description="Free-text description")
    is_liquid: bool = Field(..., alias="liq", description="Whether the money is spendable now")

    @classmethod
    def from_record(cls, record: Bucket) -> "BucketOut":
        return cls(
            id=record.id,
            category_id=record.category_id,
            name=record.name,
            description=record.description,
            is_liquid=record.is_liquid,
        )


class BucketItemOut(_AmountsOut):
    """A bucket item as returned to clients."""
    id: int = Field(..., description="Server-assigned id", examples=[1])
    bucket_id: int = Field(..., alias="bid", description="Owning bucket id")
    name: str = Field(..., description="Item name", examples=["initial deposit"])
    transaction: datetime = Field(..., alias="trans", description="When the money moved")

    @classmethod
    def from_record(cls, record: BucketItem) -> "BucketItemOut":
        return cls(
            id=record.id,
            bucket_id=record.bucket_id,
            name=record.name,
            transaction=record.transaction,
            deposit=record.deposit,
            withdraw=record.withdraw,
        )


class TemplateOut(_ResponseModel):
    """A template as returned to clients."""
    id: int = Field(..., description="Server-assigned id", examples=[1])
    name: str = Field(..., description="Template name", examples=["paycheck"])

    @classmethod
    def from_record(cls, record: Template) -> "TemplateOut":
        return cls(id=record.id, name=record.name)


class TemplateItemOut(_AmountsOut):
    """A template item as returned to clients."""
    id: int = Field(..., description="Server-assigned id", examples=[1])
    template_id: int = Field(..., alias="tid", description="Owning template id")
    bucket_id: int = Field(..., alias="bid", description="Target bucket id")
    name: str = Field(..., description="Item name", examples=["gas allowance"])

    @classmethod
    def from_record(cls, record: TemplateItem) -> "TemplateItemOut":
        return cls(
            id=record.id,
            template_id=record.template_id,
            bucket_id=record.bucket_id,
            name=record.name,
            deposit=record.deposit,
            withdraw=record.withdraw,
        )


class BucketSummaryOut(_ResponseModel):
    """One row of ``GET /buckets/summary``."""
    bucket_id: int = Field(..., alias="bid", description="Bucket id", examples=[1])
    bucket_name: str = Field(..., alias="bn", description="Bucket name", examples=["gas"])
    category_name: str = Field(..., alias="cn", description="Category name", examples=["house"])
    total: Decimal = Field(..., alias="t", description="Deposits minus withdrawals", examples=[3.99])
    is_liquid: bool = Field(..., alias="l", description="Whether the money is spendable now")

    @field_serializer("total")
    def _as_number(self, value: Decimal) -> float:
        return float(value)

    @classmethod
    def from_record(cls, record: BucketSummary) -> "BucketSummaryOut":
        return cls(
            bucket_id=record.bucket_id,
            bucket_name=record.bucket_name,
            category_name=record.category_name,
            total=record.total,
            is_liquid=record.is_liquid,
        )


class CountOut(BaseModel):
    """Response body for a batch insert."""
    count: int = Field(..., ge=0, description="Number of records inserted", examples=[2])


class StatusOut(BaseModel):
    """Response body for the administrative /db routes."""
    status: str = Field(..., description="What happened", examples=["created"])


# ── Error model ───────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response body."""
    error: str = Field(..., description="Short error category", examples=["Resource not found"])
    detail: str | None = Field(None, description="Extended error detail")
    status_code: int = Field(..., ge=400, le=599, description="HTTP status code", examples=[404])
