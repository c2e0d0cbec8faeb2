"""
Record -> response-model rendering used by every router.

A stored record that no longer fits its response model (e.g. a row edited
outside the API) is reported as RenderError instead of a bare 500.
"""

from collections.abc import Iterable
from typing import Any, Protocol, TypeVar

from pydantic import ValidationError

from api.errors import RenderError


class _FromRecord(Protocol):
    @classmethod
    def from_record(cls, record: Any) -> Any: ...


M = TypeVar("M", bound=_FromRecord)


def render(model: type[M], record: Any) -> M:
    """Wrap one record in its response model."""
    try:
        return model.from_record(record)
    except ValidationError as exc:
        raise RenderError(f"Cannot render {type(record).__name__}: {exc}") from exc


def render_list(model: type[M], records: Iterable[Any]) -> list[M]:
    """Wrap records in their response model, keeping store order."""
    return [render(model, record) for record in records]
