"""
Bucket endpoints.

GET    /buckets           → list
POST   /buckets           → create (201)
GET    /buckets/summary   → per-bucket balance with category name
GET    /buckets/{id}      → get one
PUT    /buckets/{id}      → replace
DELETE /buckets/{id}      → delete, returns the removed bucket
"""

from fastapi import APIRouter, Depends, status

from api.dependencies import get_store, resolve_bucket
from api.models import Bucket, BucketIn, BucketOut, BucketSummaryOut
from api.rendering import render, render_list
from api.store import Store

router = APIRouter(prefix="/buckets", tags=["buckets"])


@router.get("", response_model=list[BucketOut], summary="List buckets")
def list_buckets(store: Store = Depends(get_store)) -> list[BucketOut]:
    return render_list(BucketOut, store.buckets.list())


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=BucketOut,
    summary="Create a bucket",
)
def create_bucket(payload: BucketIn, store: Store = Depends(get_store)) -> BucketOut:
    """Persist the posted bucket.  ``categoryID`` must name an existing category."""
    record = payload.to_record()
    record.id = store.buckets.create(record)
    return render(BucketOut, record)


# Declared before /{bucket_id} so "summary" is not taken for an id.
@router.get(
    "/summary",
    response_model=list[BucketSummaryOut],
    summary="Bucket balances",
    response_description="One row per bucket: id, name, category name, total, liquidity",
)
def list_bucket_summaries(store: Store = Depends(get_store)) -> list[BucketSummaryOut]:
    """Return every bucket with its category name and deposits-minus-withdrawals total."""
    return render_list(BucketSummaryOut, store.bucket_summaries())


@router.get("/{bucket_id}", response_model=BucketOut, summary="Get a bucket")
def get_bucket(bucket: Bucket = Depends(resolve_bucket)) -> BucketOut:
    return render(BucketOut, bucket)


@router.put("/{bucket_id}", response_model=BucketOut, summary="Replace a bucket")
def update_bucket(
    payload: BucketIn,
    bucket: Bucket = Depends(resolve_bucket),
    store: Store = Depends(get_store),
) -> BucketOut:
    return render(BucketOut, store.buckets.update(bucket.id, payload.to_record()))


@router.delete("/{bucket_id}", response_model=BucketOut, summary="Delete a bucket")
def delete_bucket(
    bucket: Bucket = Depends(resolve_bucket),
    store: Store = Depends(get_store),
) -> BucketOut:
    return render(BucketOut, store.buckets.delete(bucket.id))
