"""
Bucket item endpoints.

GET    /bucketItems             → list, filtered by bid, dstart, dend, namePart, ps, po
POST   /bucketItems             → create one (201)
POST   /bucketItems?batch       → create many from {"items": [...]}, returns {"count": n}
GET    /bucketItems/search      → alias of the list endpoint
GET    /bucketItems/{id|slug}   → get one by id or lowercase-hyphen slug
PUT    /bucketItems/{id}        → replace
DELETE /bucketItems/{id}        → delete, returns the removed item

Dates are ``YYYY-MM-DD``; ``dend`` includes the whole day.  ``po`` is a
zero-based page index and only applies with ``ps``.
"""

from datetime import date
from typing import Any, Union

from fastapi import APIRouter, Body, Depends, Query, status

from api.dependencies import get_store, resolve_bucket_item, resolve_bucket_item_or_slug
from api.errors import InvalidRequestError
from api.models import BucketItem, BucketItemBatchIn, BucketItemIn, BucketItemOut, CountOut
from api.rendering import render, render_list
from api.store import Store
from utils.query import BucketItemFilter
from utils.strings import MAX_ID

router = APIRouter(prefix="/bucketItems", tags=["bucket-items"])

_COMPONENT_REF = "#/components/schemas/{model}"
_BATCH_SCHEMA = BucketItemBatchIn.model_json_schema(by_alias=True, ref_template=_COMPONENT_REF)
_BATCH_SCHEMA.pop("$defs", None)

# The body is decoded by hand, so document both accepted shapes explicitly.
_CREATE_BODY_DOC = {
    "requestBody": {
        "required": True,
        "content": {
            "application/json": {
                "schema": {
                    "oneOf": [
                        {"$ref": _COMPONENT_REF.format(model="BucketItemIn")},
                        _BATCH_SCHEMA,
                    ],
                },
            },
        },
    },
}


def bucket_item_filters(
    bid: int | None = Query(None, le=MAX_ID, description="Only items in this bucket"),
    dstart: date | None = Query(None, description="Earliest transaction date (inclusive)"),
    dend: date | None = Query(None, description="Latest transaction date (inclusive)"),
    name_part: str | None = Query(None, alias="namePart", description="Case-insensitive name substring"),
    ps: int | None = Query(None, ge=1, description="Page size"),
    po: int = Query(0, ge=0, description="Zero-based page index"),
) -> BucketItemFilter:
    """Collect the list-endpoint query string into a BucketItemFilter."""
    if dstart and dend and dstart > dend:
        raise InvalidRequestError("dstart must not be after dend")
    return BucketItemFilter(
        bucket_id=bid,
        date_start=dstart,
        date_end=dend,
        name_part=name_part,
        page_size=ps,
        page_offset=po,
    )


@router.get("", response_model=list[BucketItemOut], summary="List bucket items")
def list_bucket_items(
    filters: BucketItemFilter = Depends(bucket_item_filters),
    store: Store = Depends(get_store),
) -> list[BucketItemOut]:
    """Return the bucket items matching every supplied filter."""
    return render_list(BucketItemOut, store.bucket_items.list(filters))


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=Union[BucketItemOut, CountOut],
    summary="Create one bucket item, or a batch with ?batch",
    openapi_extra=_CREATE_BODY_DOC,
)
def create_bucket_item(
    body: dict[str, Any] = Body(..., description="A bucket item, or {\"items\": [...]} with ?batch"),
    batch: str | None = Query(None, description="Presence flag: treat the body as a batch"),
    store: Store = Depends(get_store),
) -> Union[BucketItemOut, CountOut]:
    """Persist the posted bucket item(s).

    A single item is echoed back with its assigned id.  A batch is inserted
    all-or-nothing and only the inserted count is reported.
    """
    if batch is not None:
        records = BucketItemBatchIn.model_validate(body).to_records()
        return CountOut(count=store.bucket_items.create_many(records))

    record = BucketItemIn.model_validate(body).to_record()
    record.id = store.bucket_items.create(record)
    return render(BucketItemOut, record)


@router.get("/search", response_model=list[BucketItemOut], summary="Search bucket items")
def search_bucket_items(
    filters: BucketItemFilter = Depends(bucket_item_filters),
    store: Store = Depends(get_store),
) -> list[BucketItemOut]:
    """Same as ``GET /bucketItems``; kept as a separate path for clients that use it."""
    return render_list(BucketItemOut, store.bucket_items.list(filters))


@router.get("/{bucket_item_id}", response_model=BucketItemOut, summary="Get a bucket item")
def get_bucket_item(item: BucketItem = Depends(resolve_bucket_item_or_slug)) -> BucketItemOut:
    return render(BucketItemOut, item)


@router.put("/{bucket_item_id}", response_model=BucketItemOut, summary="Replace a bucket item")
def update_bucket_item(
    payload: BucketItemIn,
    item: BucketItem = Depends(resolve_bucket_item),
    store: Store = Depends(get_store),
) -> BucketItemOut:
    return render(BucketItemOut, store.bucket_items.update(item.id, payload.to_record()))


@router.delete("/{bucket_item_id}", response_model=BucketItemOut, summary="Delete a bucket item")
def delete_bucket_item(
    item: BucketItem = Depends(resolve_bucket_item),
    store: Store = Depends(get_store),
) -> BucketItemOut:
    return render(BucketItemOut, store.bucket_items.delete(item.id))
