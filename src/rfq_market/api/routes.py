"""
Transport-agnostic operation surface. Each method takes what an HTTP layer
would extract from a request (path params as strings, query dict, JSON body,
authenticated principal) and returns an ApiResponse.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional

from rfq_market.api.boundary import ApiResponse, error_response, respond
from rfq_market.errors import NotFoundError, UnauthorizedError, ValidationError
from rfq_market.marketplace import Marketplace
from rfq_market.models.principal import Principal


def _dump(value: Any) -> Any:
    """Models (or lists of models) to JSON-ready dicts."""
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return value


def parse_id(value: Any, label: str) -> int:
    """Path ids must be positive integers."""
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {label} ID provided") from e
    if parsed < 1:
        raise ValidationError(f"Invalid {label} ID provided")
    return parsed


def _int_param(query: dict, name: str) -> Optional[int]:
    raw = query.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be an integer") from e


def _decimal_param(query: dict, name: str) -> Optional[Decimal]:
    raw = query.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = Decimal(str(raw))
    except InvalidOperation as e:
        raise ValidationError(f"{name} must be a number") from e
    if not value.is_finite():
        raise ValidationError(f"{name} must be a number")
    return value


def _list_param(query: dict, name: str) -> list[str]:
    """Comma-separated string or list."""
    raw = query.get(name)
    if not raw:
        return []
    if isinstance(raw, str):
        return [p for p in raw.split(",") if p.strip()]
    return list(raw)


def _body_keywords(body: Optional[dict]) -> list:
    keywords = (body or {}).get("keywords")
    if not isinstance(keywords, list) or not keywords:
        raise ValidationError("Keywords array is required")
    return keywords


def _require_principal(principal: Optional[Principal], role: Optional[str] = None) -> Principal:
    if principal is None:
        raise UnauthorizedError("Authentication required")
    if role is not None and principal.role != role:
        raise UnauthorizedError(f"Only {role}s can perform this action")
    return principal


class MarketplaceApi:
    """Route handlers over a Marketplace. No handler raises; all errors become responses."""

    def __init__(self, market: Marketplace):
        self.market = market

    # --- RFQs ---

    def list_rfqs(self, query: Optional[dict] = None) -> ApiResponse:
        query = query or {}

        def op():
            return self.market.rfqs.list_rfqs(
                limit=_int_param(query, "limit"),
                offset=_int_param(query, "offset"),
                category_id=_int_param(query, "category_id"),
                status=query.get("status") or None,
            )

        return respond(
            op,
            message="RFQs fetched successfully",
            data=lambda page: _dump(page.data),
            meta=lambda page: page.meta(),
        )

    def get_rfq(self, rfq_id: str) -> ApiResponse:
        return respond(
            lambda: _dump(self.market.rfqs.get(parse_id(rfq_id, "RFQ"))),
            message="RFQ fetched successfully",
        )

    def create_rfq(self, principal: Optional[Principal], body: Optional[dict]) -> ApiResponse:
        def op():
            buyer = _require_principal(principal, "buyer")
            return _dump(self.market.rfqs.create(buyer.id, body or {}))

        return respond(op, message="RFQ created successfully", status=201)

    def update_rfq(self, rfq_id: str, principal: Optional[Principal], body: Optional[dict]) -> ApiResponse:
        def op():
            user = _require_principal(principal)
            return _dump(self.market.rfqs.update(parse_id(rfq_id, "RFQ"), body or {}, user.id))

        return respond(op, message="RFQ updated successfully")

    def close_rfq(self, rfq_id: str, principal: Optional[Principal]) -> ApiResponse:
        def op():
            user = _require_principal(principal)
            return _dump(self.market.rfqs.close(parse_id(rfq_id, "RFQ"), user.id))

        return respond(op, message="RFQ closed successfully")

    def related_rfqs(self, rfq_id: str) -> ApiResponse:
        def op():
            rid = parse_id(rfq_id, "RFQ")
            self.market.rfqs.get(rid)
            return _dump(self.market.rfqs.find_related(rid))

        return respond(op, message="Related RFQs fetched")

    # --- Bids ---

    def create_bid(self, rfq_id: str, principal: Optional[Principal], body: Optional[dict]) -> ApiResponse:
        def op():
            vendor = _require_principal(principal, "vendor")
            body_ = body or {}
            return _dump(
                self.market.bids.create(
                    parse_id(rfq_id, "RFQ"),
                    vendor.id,
                    body_.get("amount"),
                    body_.get("description"),
                    body_.get("delivery_time"),
                )
            )

        return respond(op, message="Bid created successfully", status=201)

    def list_bids(self, rfq_id: str, principal: Optional[Principal] = None) -> ApiResponse:
        def op():
            acting = principal.id if principal else None
            return _dump(self.market.bids.list_for_rfq(parse_id(rfq_id, "RFQ"), acting))

        return respond(op, message="Bids fetched successfully")

    def update_bid(self, bid_id: str, principal: Optional[Principal], body: Optional[dict]) -> ApiResponse:
        def op():
            vendor = _require_principal(principal, "vendor")
            return _dump(self.market.bids.update(parse_id(bid_id, "bid"), body or {}, vendor.id))

        return respond(op, message="Bid updated successfully")

    def award_bid(self, bid_id: str, principal: Optional[Principal]) -> ApiResponse:
        def op():
            buyer = _require_principal(principal, "buyer")
            return _dump(self.market.bids.award(parse_id(bid_id, "bid"), buyer.id))

        return respond(op, message="Bid awarded successfully")

    def retract_bid(self, bid_id: str, principal: Optional[Principal]) -> ApiResponse:
        def op():
            vendor = _require_principal(principal, "vendor")
            return _dump(self.market.bids.retract(parse_id(bid_id, "bid"), vendor.id))

        return respond(op, message="Bid retracted successfully")

    # --- Keywords on an RFQ ---

    def get_keywords(self, rfq_id: str) -> ApiResponse:
        return respond(
            lambda: self.market.keywords.list_keywords(parse_id(rfq_id, "RFQ")),
            message="Keywords fetched successfully",
        )

    def add_keywords(self, rfq_id: str, principal: Optional[Principal], body: Optional[dict]) -> ApiResponse:
        def op():
            user = _require_principal(principal)
            rid = parse_id(rfq_id, "RFQ")
            self.market.add_keywords(rid, _body_keywords(body), user.id)
            return self.market.keywords.list_keywords(rid)

        return respond(op, message="Keywords added successfully")

    def remove_keywords(self, rfq_id: str, principal: Optional[Principal], body: Optional[dict]) -> ApiResponse:
        def op():
            user = _require_principal(principal)
            rid = parse_id(rfq_id, "RFQ")
            self.market.remove_keywords(rid, _body_keywords(body), user.id)
            return self.market.keywords.list_keywords(rid)

        return respond(op, message="Keywords removed successfully")

    # --- Discovery ---

    def search(self, query: Optional[dict] = None) -> ApiResponse:
        query = query or {}

        def op():
            return self.market.search.search(
                query=query.get("q") or "",
                keywords=_list_param(query, "keywords"),
                category_id=_int_param(query, "category_id"),
                budget_min=_decimal_param(query, "budget_min"),
                budget_max=_decimal_param(query, "budget_max"),
                limit=_int_param(query, "limit"),
                offset=_int_param(query, "offset"),
                status=query.get("status") or None,
            )

        return respond(
            op,
            message="Search completed successfully",
            data=lambda page: _dump(page.data),
            meta=lambda page: page.meta(),
        )

    def find_by_keywords(self, query: Optional[dict] = None) -> ApiResponse:
        query = query or {}

        def op():
            keywords = _list_param(query, "keywords")
            if not keywords:
                raise ValidationError("Keywords parameter is required")
            return self.market.search.find_by_keywords(
                keywords,
                limit=_int_param(query, "limit"),
                offset=_int_param(query, "offset"),
            )

        return respond(
            op,
            message="RFQs fetched successfully",
            data=lambda page: _dump(page.data),
            meta=lambda page: page.meta(),
        )

    def trending(self, query: Optional[dict] = None) -> ApiResponse:
        query = query or {}
        return respond(
            lambda: _dump(self.market.trends.trending(_int_param(query, "limit"))),
            message="Trending keywords fetched successfully",
        )

    def most_searched(self, query: Optional[dict] = None) -> ApiResponse:
        query = query or {}
        return respond(
            lambda: _dump(self.market.trends.most_searched(_int_param(query, "limit"))),
            message="Most searched keywords fetched successfully",
        )

    def suggestions(self, query: Optional[dict] = None) -> ApiResponse:
        query = query or {}
        return respond(
            lambda: self.market.search.suggest(query.get("q") or "", _int_param(query, "limit")),
            message="Keyword suggestions fetched successfully",
        )

    def recent_searches(self, query: Optional[dict] = None) -> ApiResponse:
        """Logged search texts, newest first. Operator view; not part of the public route table."""
        query = query or {}
        return respond(
            lambda: self.market.trends.recent_queries(_int_param(query, "limit")),
            message="Recent searches fetched successfully",
        )

    # --- Reference REST mapping ---

    def dispatch(
        self,
        method: str,
        path: str,
        *,
        principal: Optional[Principal] = None,
        query: Optional[dict] = None,
        body: Optional[dict] = None,
    ) -> ApiResponse:
        """Resolve METHOD + path against the route table and call the handler."""
        method = method.upper()
        clean_path = "/" + path.strip("/")
        for route_method, pattern, handler in self._routes():
            if route_method != method:
                continue
            match = pattern.fullmatch(clean_path)
            if match:
                return handler(match.groupdict(), principal, query or {}, body)
        return error_response(NotFoundError(f"No route for {method} {clean_path}"))

    def _routes(self) -> list[tuple[str, re.Pattern, Callable[..., ApiResponse]]]:
        return [
            ("GET", _ROUTE["rfq_search"], lambda p, who, q, b: self.search(q)),
            ("GET", _ROUTE["rfq_by_keywords"], lambda p, who, q, b: self.find_by_keywords(q)),
            ("GET", _ROUTE["rfqs"], lambda p, who, q, b: self.list_rfqs(q)),
            ("POST", _ROUTE["rfqs"], lambda p, who, q, b: self.create_rfq(who, b)),
            ("GET", _ROUTE["rfq"], lambda p, who, q, b: self.get_rfq(p["id"])),
            ("PUT", _ROUTE["rfq"], lambda p, who, q, b: self.update_rfq(p["id"], who, b)),
            ("POST", _ROUTE["rfq_close"], lambda p, who, q, b: self.close_rfq(p["id"], who)),
            ("GET", _ROUTE["rfq_related"], lambda p, who, q, b: self.related_rfqs(p["id"])),
            ("POST", _ROUTE["rfq_bids"], lambda p, who, q, b: self.create_bid(p["id"], who, b)),
            ("GET", _ROUTE["rfq_bids"], lambda p, who, q, b: self.list_bids(p["id"], who)),
            ("GET", _ROUTE["rfq_keywords"], lambda p, who, q, b: self.get_keywords(p["id"])),
            ("POST", _ROUTE["rfq_keywords"], lambda p, who, q, b: self.add_keywords(p["id"], who, b)),
            ("DELETE", _ROUTE["rfq_keywords"], lambda p, who, q, b: self.remove_keywords(p["id"], who, b)),
            ("PUT", _ROUTE["bid"], lambda p, who, q, b: self.update_bid(p["id"], who, b)),
            ("POST", _ROUTE["bid_award"], lambda p, who, q, b: self.award_bid(p["id"], who)),
            ("POST", _ROUTE["bid_retract"], lambda p, who, q, b: self.retract_bid(p["id"], who)),
            ("GET", _ROUTE["kw_trending"], lambda p, who, q, b: self.trending(q)),
            ("GET", _ROUTE["kw_most_searched"], lambda p, who, q, b: self.most_searched(q)),
            ("GET", _ROUTE["kw_suggestions"], lambda p, who, q, b: self.suggestions(q)),
        ]


_ROUTE = {
    "rfqs": re.compile(r"/rfq"),
    "rfq_search": re.compile(r"/rfq/search"),
    "rfq_by_keywords": re.compile(r"/rfq/by-keywords"),
    "rfq": re.compile(r"/rfq/(?P<id>[^/]+)"),
    "rfq_close": re.compile(r"/rfq/(?P<id>[^/]+)/close"),
    "rfq_related": re.compile(r"/rfq/(?P<id>[^/]+)/related"),
    "rfq_bids": re.compile(r"/rfq/(?P<id>[^/]+)/bids"),
    "rfq_keywords": re.compile(r"/rfq/(?P<id>[^/]+)/keywords"),
    "bid": re.compile(r"/bids/(?P<id>[^/]+)"),
    "bid_award": re.compile(r"/bids/(?P<id>[^/]+)/award"),
    "bid_retract": re.compile(r"/bids/(?P<id>[^/]+)/retract"),
    "kw_trending": re.compile(r"/keywords/trending"),
    "kw_most_searched": re.compile(r"/keywords/most-searched"),
    "kw_suggestions": re.compile(r"/keywords/suggestions"),
}
