"""Typed errors raised by the marketplace core.

Each subclass carries the status code the API boundary maps it to, so the
boundary switches on type once instead of inspecting messages.
"""


class MarketError(Exception):
    """Base class for all errors raised by the core."""

    status_code: int = 500
    kind: str = "internal"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(MarketError):
    """Malformed, missing, or out-of-range input."""

    status_code = 400
    kind = "validation"


class NotFoundError(MarketError):
    """Referenced entity does not exist."""

    status_code = 404
    kind = "not_found"


class UnauthorizedError(MarketError):
    """Acting principal lacks ownership or role."""

    status_code = 403
    kind = "unauthorized"


class ConflictError(MarketError):
    """Invariant violation: duplicate bid, wrong state transition, lost race."""

    status_code = 409
    kind = "conflict"


class InternalError(MarketError):
    """Store failure or timeout. Detail is logged, never shown to callers."""

    status_code = 500
    kind = "internal"
