"""
Error taxonomy for the API.

Every error the store or a route raises on purpose is a ``BudgetAPIError``
subclass.  The exception handlers registered in ``api.app.create_app`` turn
them into the standard ``ErrorResponse`` body with the class's status code.
"""


class BudgetAPIError(Exception):
    """Base class for errors surfaced to the client as JSON."""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.error)
        self.detail = detail


class NotFoundError(BudgetAPIError):
    """Identifier absent from the store, or not parseable."""

    status_code = 404
    error = "Resource not found"


class InvalidRequestError(BudgetAPIError):
    """Request body could not be decoded, or the store rejected the mutation."""

    status_code = 400
    error = "Invalid request"


class RenderError(BudgetAPIError):
    """A stored record could not be serialized into its response model."""

    status_code = 422
    error = "Error rendering response"


class StoreUnavailableError(BudgetAPIError):
    """The backing store could not be reached (connection or pool failure)."""

    status_code = 503
    error = "Store unavailable"
