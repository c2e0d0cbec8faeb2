"""
FastAPI dependencies shared by the entity routers.

``get_store`` hands out the store the app was built with.  The ``resolve_*``
dependencies turn the ``{id}`` path segment into a typed record before the
handler runs; a handler that needs the record declares the resolver in its
signature, so it cannot be mounted without it.  An unparseable or unknown
identifier stops the request with 404.

Usage in a route::

    @router.get("/{category_id}")
    def get_category(category: Category = Depends(resolve_category)):
        ...
"""

from fastapi import Depends, Path, Request

from api.errors import NotFoundError
from api.models import Bucket, BucketItem, Category, Template, TemplateItem
from api.store import Store
from utils.strings import is_slug, parse_positive_int


def get_store(request: Request) -> Store:
    """Return the store attached to the running app."""
    return request.app.state.store


def _parse_id(raw: str, entity: str) -> int:
    record_id = parse_positive_int(raw)
    if record_id is None:
        raise NotFoundError(f"{entity} '{raw}' not found")
    return record_id


def resolve_category(
    category_id: str = Path(..., description="Category id"),
    store: Store = Depends(get_store),
) -> Category:
    return store.categories.get(_parse_id(category_id, "category"))


def resolve_bucket(
    bucket_id: str = Path(..., description="Bucket id"),
    store: Store = Depends(get_store),
) -> Bucket:
    return store.buckets.get(_parse_id(bucket_id, "bucket"))


def resolve_bucket_item(
    bucket_item_id: str = Path(..., description="Bucket item id"),
    store: Store = Depends(get_store),
) -> BucketItem:
    return store.bucket_items.get(_parse_id(bucket_item_id, "bucket item"))


def resolve_bucket_item_or_slug(
    bucket_item_id: str = Path(..., description="Bucket item id or lowercase-hyphen slug"),
    store: Store = Depends(get_store),
) -> BucketItem:
    """Resolve a bucket item by numeric id, or by slug (e.g. ``whats-up``)."""
    record_id = parse_positive_int(bucket_item_id)
    if record_id is not None:
        return store.bucket_items.get(record_id)
    if is_slug(bucket_item_id):
        return store.bucket_items.get_by_slug(bucket_item_id)
    raise NotFoundError(f"bucket item '{bucket_item_id}' not found")


def resolve_template(
    template_id: str = Path(..., description="Template id"),
    store: Store = Depends(get_store),
) -> Template:
    return store.templates.get(_parse_id(template_id, "template"))


def resolve_template_item(
    template_item_id: str = Path(..., description="Template item id"),
    store: Store = Depends(get_store),
) -> TemplateItem:
    return store.template_items.get(_parse_id(template_item_id, "template item"))
