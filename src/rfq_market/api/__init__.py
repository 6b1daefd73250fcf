"""Transport-agnostic API: route handlers and the error boundary."""

from rfq_market.api.boundary import ApiResponse, error_response, respond
from rfq_market.api.routes import MarketplaceApi

__all__ = ["ApiResponse", "MarketplaceApi", "error_response", "respond"]
