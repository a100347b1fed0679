from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from typing import Any, List, Optional

from .client import CFClient
from .config_loader import load_config
from .errors import CFClientError

logger = logging.getLogger("cf-resources-cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Read Cloud Foundry resources with the CF CLI credentials",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to the CF CLI config.json (defaults to $CF_HOME/.cf/config.json)",
    )
    common.add_argument(
        "--insecure",
        action="store_true",
        default=None,
        help="Skip TLS certificate verification (self-signed endpoints only)",
    )
    common.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: no timeout)",
    )
    common.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_cmd = subparsers.add_parser("list", parents=[common], help="Fetch every page of a listing")
    list_cmd.add_argument("endpoint", help="Listing path, e.g. /v2/apps")

    subparsers.add_parser("orgs", parents=[common], help="List organizations")
    subparsers.add_parser("spaces", parents=[common], help="List spaces")

    summary_cmd = subparsers.add_parser(
        "summary", parents=[common], help="Apps, audit events and bindings of one space"
    )
    summary_cmd.add_argument("space_guid", help="GUID of the space")

    return parser.parse_args(argv)


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    return value


def run(args: argparse.Namespace) -> Any:
    config = load_config(
        config_path=args.config,
        allow_insecure_tls=args.insecure,
        request_timeout=args.timeout,
    )
    with CFClient(config) as client:
        if args.command == "list":
            return client.fetch_all_pages(args.endpoint)
        if args.command == "orgs":
            return client.get_organizations()
        if args.command == "spaces":
            return client.get_spaces()
        space = client.get_space(args.space_guid)
        return client.summarize_space(space)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s %(message)s",
    )

    try:
        result = run(args)
    except CFClientError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1

    json.dump(_to_jsonable(result), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
