"""
Administrative schema endpoints.

GET /db/create → create every table if missing (201)
GET /db/drop   → drop every table (410)
GET /db/init   → drop, recreate and load the starter data (201)

These are development conveniences; there is no authentication in front
of them.
"""

import logging

from fastapi import APIRouter, Depends, status

from api.dependencies import get_store
from api.models import StatusOut
from api.store import Store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/db", tags=["admin"])


@router.get("/create", status_code=status.HTTP_201_CREATED, response_model=StatusOut)
def create_schema(store: Store = Depends(get_store)) -> StatusOut:
    store.create_schema()
    return StatusOut(status="created")


@router.get("/drop", status_code=status.HTTP_410_GONE, response_model=StatusOut)
def drop_schema(store: Store = Depends(get_store)) -> StatusOut:
    store.drop_schema()
    logger.warning("All budget tables dropped via /db/drop")
    return StatusOut(status="dropped")


@router.get("/init", status_code=status.HTTP_201_CREATED, response_model=StatusOut)
def init_schema(store: Store = Depends(get_store)) -> StatusOut:
    """Reset the store to the starter data set."""
    store.drop_schema()
    store.create_schema()
    store.seed()
    return StatusOut(status="initialized")
