"""
Category endpoints.

GET    /categories        → list
POST   /categories        → create (201)
GET    /categories/{id}   → get one
PUT    /categories/{id}   → replace
DELETE /categories/{id}   → delete, returns the removed category
"""

from fastapi import APIRouter, Depends, status

from api.dependencies import get_store, resolve_category
from api.models import Category, CategoryIn, CategoryOut
from api.rendering import render, render_list
from api.store import Store

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryOut], summary="List categories")
def list_categories(store: Store = Depends(get_store)) -> list[CategoryOut]:
    """Return every category."""
    return render_list(CategoryOut, store.categories.list())


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=CategoryOut,
    summary="Create a category",
)
def create_category(payload: CategoryIn, store: Store = Depends(get_store)) -> CategoryOut:
    """Persist the posted category and echo it back with its assigned id."""
    record = payload.to_record()
    record.id = store.categories.create(record)
    return render(CategoryOut, record)


@router.get("/{category_id}", response_model=CategoryOut, summary="Get a category")
def get_category(category: Category = Depends(resolve_category)) -> CategoryOut:
    return render(CategoryOut, category)


@router.put("/{category_id}", response_model=CategoryOut, summary="Replace a category")
def update_category(
    payload: CategoryIn,
    category: Category = Depends(resolve_category),
    store: Store = Depends(get_store),
) -> CategoryOut:
    return render(CategoryOut, store.categories.update(category.id, payload.to_record()))


@router.delete("/{category_id}", response_model=CategoryOut, summary="Delete a category")
def delete_category(
    category: Category = Depends(resolve_category),
    store: Store = Depends(get_store),
) -> CategoryOut:
    """Delete a category.  Rejected with 400 while buckets still reference it."""
    return render(CategoryOut, store.categories.delete(category.id))
