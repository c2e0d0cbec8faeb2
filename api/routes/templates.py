"""
Template endpoints.

GET    /templates        → list
POST   /templates        → create (201)
GET    /templates/{id}   → get one
PUT    /templates/{id}   → replace
DELETE /templates/{id}   → delete, returns the removed template
"""

from fastapi import APIRouter, Depends, status

from api.dependencies import get_store, resolve_template
from api.models import Template, TemplateIn, TemplateOut
from api.rendering import render, render_list
from api.store import Store

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=list[TemplateOut], summary="List templates")
def list_templates(store: Store = Depends(get_store)) -> list[TemplateOut]:
    return render_list(TemplateOut, store.templates.list())


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=TemplateOut,
    summary="Create a template",
)
def create_template(payload: TemplateIn, store: Store = Depends(get_store)) -> TemplateOut:
    record = payload.to_record()
    record.id = store.templates.create(record)
    return render(TemplateOut, record)


@router.get("/{template_id}", response_model=TemplateOut, summary="Get a template")
def get_template(template: Template = Depends(resolve_template)) -> TemplateOut:
    return render(TemplateOut, template)


@router.put("/{template_id}", response_model=TemplateOut, summary="Replace a template")
def update_template(
    payload: TemplateIn,
    template: Template = Depends(resolve_template),
    store: Store = Depends(get_store),
) -> TemplateOut:
    return render(TemplateOut, store.templates.update(template.id, payload.to_record()))


@router.delete("/{template_id}", response_model=TemplateOut, summary="Delete a template")
def delete_template(
    template: Template = Depends(resolve_template),
    store: Store = Depends(get_store),
) -> TemplateOut:
    """Delete a template.  Rejected with 400 while template items still reference it."""
    return render(TemplateOut, store.templates.delete(template.id))
