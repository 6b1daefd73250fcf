"""Maps typed marketplace errors to status codes and a sanitized envelope."""

import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel

from rfq_market.errors import InternalError, MarketError
from rfq_market.logsafe import sanitize_for_log

logger = logging.getLogger(__name__)

INTERNAL_MESSAGE = "An internal server error occurred."


class ApiResponse(BaseModel):
    """Transport-neutral response: what an HTTP layer would send as status + JSON body."""

    status: int
    success: bool
    message: str
    data: Any = None
    meta: Optional[dict] = None

    def body(self) -> dict:
        """JSON-ready body without the status code."""
        out = self.model_dump(mode="json", exclude={"status"})
        if out.get("meta") is None:
            out.pop("meta", None)
        if out.get("data") is None and not self.success:
            out.pop("data", None)
        return out


def error_response(exc: Exception) -> ApiResponse:
    """
    The single place error types become status codes. Internal detail is
    logged and replaced with a fixed message.
    """
    if isinstance(exc, MarketError) and not isinstance(exc, InternalError):
        return ApiResponse(status=exc.status_code, success=False, message=sanitize_for_log(exc.message, 500))
    logger.error("Unexpected error: %s", sanitize_for_log(exc, 500), exc_info=exc)
    return ApiResponse(status=500, success=False, message=INTERNAL_MESSAGE)


def respond(
    operation: Callable[[], Any],
    *,
    message: str,
    status: int = 200,
    meta: Optional[Callable[[Any], dict]] = None,
    data: Optional[Callable[[Any], Any]] = None,
) -> ApiResponse:
    """Run one operation and wrap its result or error in an ApiResponse."""
    try:
        result = operation()
    except Exception as e:
        return error_response(e)
    return ApiResponse(
        status=status,
        success=True,
        message=message,
        data=data(result) if data else result,
        meta=meta(result) if meta else None,
    )
