"""
Template item endpoints.

GET    /templateItems          → list
POST   /templateItems          → create (201)
GET    /templateItems/search   → alias of the list endpoint
GET    /templateItems/{id}     → get one
PUT    /templateItems/{id}     → replace
DELETE /templateItems/{id}     → delete, returns the removed item
"""

from fastapi import APIRouter, Depends, status

from api.dependencies import get_store, resolve_template_item
from api.models import TemplateItem, TemplateItemIn, TemplateItemOut
from api.rendering import render, render_list
from api.store import Store

router = APIRouter(prefix="/templateItems", tags=["template-items"])


@router.get("", response_model=list[TemplateItemOut], summary="List template items")
def list_template_items(store: Store = Depends(get_store)) -> list[TemplateItemOut]:
    return render_list(TemplateItemOut, store.template_items.list())


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=TemplateItemOut,
    summary="Create a template item",
)
def create_template_item(
    payload: TemplateItemIn,
    store: Store = Depends(get_store),
) -> TemplateItemOut:
    """Persist the posted template item.  ``tid`` and ``bid`` must both exist."""
    record = payload.to_record()
    record.id = store.template_items.create(record)
    return render(TemplateItemOut, record)


@router.get("/search", response_model=list[TemplateItemOut], summary="Search template items")
def search_template_items(store: Store = Depends(get_store)) -> list[TemplateItemOut]:
    return render_list(TemplateItemOut, store.template_items.list())


@router.get("/{template_item_id}", response_model=TemplateItemOut, summary="Get a template item")
def get_template_item(item: TemplateItem = Depends(resolve_template_item)) -> TemplateItemOut:
    return render(TemplateItemOut, item)


@router.put("/{template_item_id}", response_model=TemplateItemOut, summary="Replace a template item")
def update_template_item(
    payload: TemplateItemIn,
    item: TemplateItem = Depends(resolve_template_item),
    store: Store = Depends(get_store),
) -> TemplateItemOut:
    return render(TemplateItemOut, store.template_items.update(item.id, payload.to_record()))


@router.delete("/{template_item_id}", response_model=TemplateItemOut, summary="Delete a template item")
def delete_template_item(
    item: TemplateItem = Depends(resolve_template_item),
    store: Store = Depends(get_store),
) -> TemplateItemOut:
    return render(TemplateItemOut, store.template_items.delete(item.id))
