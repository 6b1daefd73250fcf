"""Main CLI entry point."""

import argparse
import json
import logging
import sys
from pathlib import Path


def main(argv: list[str] | None = None) -> None:
    """Parse args and dispatch to subcommands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "rfq":
        _run_rfq(args)
    elif args.command == "bid":
        _run_bid(args)
    elif args.command == "keywords":
        _run_keywords(args)
    elif args.command == "search":
        _run_search(args)
    elif args.command == "trends":
        _run_trends(args)
    else:
        parser.print_help()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rfq-market", description="RFQ marketplace: RFQs, bids and keyword search")
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to SQLite database (default: settings or rfq_market.db)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings YAML (database/bids/search/trends/logging sections)",
    )
    parser.add_argument("--log-level", type=str, default=None, help="Logging level, e.g. INFO or DEBUG")
    parser.add_argument("--as-user", type=int, default=None, metavar="USER_ID", help="Acting user id")
    parser.add_argument(
        "--role",
        type=str,
        choices=["buyer", "vendor"],
        default=None,
        help="Role of the acting user",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # rfq
    rfq_parser = subparsers.add_parser("rfq", help="Create, browse and manage RFQs")
    rfq_parser.add_argument(
        "action",
        choices=["list", "get", "create", "update", "close", "related"],
        help="RFQ operation",
    )
    rfq_parser.add_argument("--id", type=str, default=None, help="RFQ id (get/update/close/related)")
    rfq_parser.add_argument("--title", type=str, default=None)
    rfq_parser.add_argument("--description", type=str, default=None)
    rfq_parser.add_argument("--category-id", type=int, default=None)
    rfq_parser.add_argument("--subcategory-id", type=int, default=None)
    rfq_parser.add_argument("--budget-min", type=str, default=None)
    rfq_parser.add_argument("--budget-max", type=str, default=None)
    rfq_parser.add_argument("--currency", type=str, default=None)
    rfq_parser.add_argument("--status", type=str, choices=["open", "closed"], default=None, help="List filter")
    rfq_parser.add_argument("--limit", type=int, default=None)
    rfq_parser.add_argument("--offset", type=int, default=None)

    # bid
    bid_parser = subparsers.add_parser("bid", help="Submit and manage bids")
    bid_parser.add_argument(
        "action",
        choices=["list", "create", "update", "award", "retract"],
        help="Bid operation",
    )
    bid_parser.add_argument("--rfq-id", type=str, default=None, help="RFQ id (list/create)")
    bid_parser.add_argument("--id", type=str, default=None, help="Bid id (update/award/retract)")
    bid_parser.add_argument("--amount", type=str, default=None)
    bid_parser.add_argument("--description", type=str, default=None)
    bid_parser.add_argument("--delivery-time", type=int, default=None, help="Delivery time in days")

    # keywords
    kw_parser = subparsers.add_parser("keywords", help="Manage keywords on an RFQ")
    kw_parser.add_argument("action", choices=["list", "add", "remove"])
    kw_parser.add_argument("--rfq-id", type=str, required=True)
    kw_parser.add_argument("keywords", nargs="*", help="Keywords (add/remove)")

    # search
    search_parser = subparsers.add_parser("search", help="Ranked RFQ search")
    search_parser.add_argument("--q", type=str, default="", help="Free-text query")
    search_parser.add_argument("--keywords", type=str, default=None, help="Comma-separated keywords")
    search_parser.add_argument("--category-id", type=int, default=None)
    search_parser.add_argument("--budget-min", type=str, default=None)
    search_parser.add_argument("--budget-max", type=str, default=None)
    search_parser.add_argument("--status", type=str, choices=["open", "closed"], default=None)
    search_parser.add_argument("--limit", type=int, default=None)
    search_parser.add_argument("--offset", type=int, default=None)
    search_parser.add_argument(
        "--by-keywords",
        action="store_true",
        help="Only list RFQs carrying any of --keywords, newest first",
    )

    # trends
    trends_parser = subparsers.add_parser("trends", help="Keyword trends and suggestions")
    trends_parser.add_argument("action", choices=["trending", "most-searched", "suggest", "recent"])
    trends_parser.add_argument("--q", type=str, default="", help="Partial keyword (suggest)")
    trends_parser.add_argument("--limit", type=int, default=None)

    return parser


def _build_api(args: argparse.Namespace):
    """Load settings, configure logging and wire the marketplace."""
    from rfq_market.api import MarketplaceApi
    from rfq_market.config import Settings
    from rfq_market.marketplace import Marketplace

    settings = Settings.load(args.config)
    update: dict = {}
    if args.db is not None:
        update["db_path"] = args.db
    if args.log_level:
        update["log_level"] = args.log_level.upper()
    if update:
        settings = settings.model_copy(update=update)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return MarketplaceApi(Marketplace.from_settings(settings))


def _principal(args: argparse.Namespace):
    from rfq_market.models.principal import Principal

    if args.as_user is None:
        return None
    if args.role is None:
        raise SystemExit("--as-user requires --role buyer|vendor")
    return Principal(id=args.as_user, role=args.role)


def _emit(response) -> None:
    """Print the response envelope; exit non-zero on failure."""
    print(json.dumps({"status": response.status, **response.body()}, indent=2, default=str))
    if response.status >= 300:
        raise SystemExit(1)


def _fields(args: argparse.Namespace, names: list[str]) -> dict:
    """Collect given (non-None) CLI options into a request body."""
    return {n: getattr(args, n) for n in names if getattr(args, n, None) is not None}


def _run_rfq(args: argparse.Namespace) -> None:
    """Run rfq command."""
    api = _build_api(args)
    who = _principal(args)
    body = _fields(
        args,
        ["title", "description", "category_id", "subcategory_id", "budget_min", "budget_max", "currency"],
    )
    if args.action == "list":
        _emit(api.list_rfqs(_fields(args, ["limit", "offset", "category_id", "status"])))
        return
    if args.action == "create":
        _emit(api.create_rfq(who, body))
        return
    if args.id is None:
        raise SystemExit(f"rfq {args.action} requires --id")
    if args.action == "get":
        _emit(api.get_rfq(args.id))
    elif args.action == "update":
        _emit(api.update_rfq(args.id, who, body))
    elif args.action == "close":
        _emit(api.close_rfq(args.id, who))
    elif args.action == "related":
        _emit(api.related_rfqs(args.id))


def _run_bid(args: argparse.Namespace) -> None:
    """Run bid command."""
    api = _build_api(args)
    who = _principal(args)
    body = _fields(args, ["amount", "description", "delivery_time"])
    if args.action in ("list", "create"):
        if args.rfq_id is None:
            raise SystemExit(f"bid {args.action} requires --rfq-id")
        if args.action == "list":
            _emit(api.list_bids(args.rfq_id, who))
        else:
            _emit(api.create_bid(args.rfq_id, who, body))
        return
    if args.id is None:
        raise SystemExit(f"bid {args.action} requires --id")
    if args.action == "update":
        _emit(api.update_bid(args.id, who, body))
    elif args.action == "award":
        _emit(api.award_bid(args.id, who))
    elif args.action == "retract":
        _emit(api.retract_bid(args.id, who))


def _run_keywords(args: argparse.Namespace) -> None:
    """Run keywords command."""
    api = _build_api(args)
    who = _principal(args)
    if args.action == "list":
        _emit(api.get_keywords(args.rfq_id))
    elif args.action == "add":
        _emit(api.add_keywords(args.rfq_id, who, {"keywords": args.keywords}))
    elif args.action == "remove":
        _emit(api.remove_keywords(args.rfq_id, who, {"keywords": args.keywords}))


def _run_search(args: argparse.Namespace) -> None:
    """Run search command."""
    api = _build_api(args)
    query = _fields(args, ["q", "keywords", "category_id", "budget_min", "budget_max", "status", "limit", "offset"])
    if args.by_keywords:
        _emit(api.find_by_keywords(query))
    else:
        _emit(api.search(query))


def _run_trends(args: argparse.Namespace) -> None:
    """Run trends command."""
    api = _build_api(args)
    query = _fields(args, ["q", "limit"])
    if args.action == "trending":
        _emit(api.trending(query))
    elif args.action == "most-searched":
        _emit(api.most_searched(query))
    elif args.action == "suggest":
        _emit(api.suggestions(query))
    elif args.action == "recent":
        _emit(api.recent_searches(query))


if __name__ == "__main__":
    main()
