#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Command line entry point for dealve.

Usage:
    dealve                         # Full TUI mode
    dealve list -n 20              # One-shot text listing (no TUI)
    dealve list --search "hades"   # One-shot search (no TUI)
    dealve set-key KEY             # Validate and store an API key
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from dealve._version import __version__
from dealve.client import ItadClient
from dealve.config import API_KEY_ENV_VAR, Config, load_api_key
from dealve.errors import DealveError
from dealve.models import MAX_SEARCH_RESULTS, Deal

NO_KEY_HELP = f"""No IsThereAnyDeal API key found.

Get a free key at https://isthereanydeal.com/apps/my/ and then either:
  export {API_KEY_ENV_VAR}=<your key>
or
  dealve set-key <your key>
"""


def format_deal_line(deal: Deal) -> str:
    cut = f"-{deal.price.discount}%" if deal.price.discount else ""
    atl = " ATL" if deal.is_all_time_low() else ""
    return f"{deal.price.format():>10} {cut:>5}  {deal.title} ({deal.shop.name}){atl}"


async def _fetch_listing(api_key: str, config: Config, limit: int, search: Optional[str]) -> List[Deal]:
    platform = config.get_default_platform()
    region = config.get_region()
    async with ItadClient(api_key=api_key) as client:
        if search:
            return await client.search_deals(
                search, region.code, platform.shop_id, min(limit, MAX_SEARCH_RESULTS)
            )
        return await client.get_deals(
            region.code, limit, 0, platform.shop_id, config.get_default_sort().api_param()
        )


def cmd_list(args, api_key: str) -> int:
    config = Config.load(args.config)
    try:
        deals = asyncio.run(_fetch_listing(api_key, config, args.lines, args.search))
    except DealveError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if not deals:
        print("No deals found.")
        return 0
    for deal in deals:
        print(format_deal_line(deal))
    return 0


def cmd_set_key(args) -> int:
    key = args.key.strip()
    if not key:
        print("Error: API key must not be empty", file=sys.stderr)
        return 1
    if not args.no_validate:
        try:
            asyncio.run(ItadClient.validate_api_key(key))
        except DealveError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    config = Config.load(args.config)
    try:
        path = config.set_api_key(key, args.config)
    except OSError as e:
        print(f"Error: could not save settings: {e}", file=sys.stderr)
        return 1
    print(f"API key saved to {path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Dealve - browse game deals from IsThereAnyDeal",
    )
    parser.add_argument(
        "--version", action="version", version=f"dealve {__version__}"
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="Settings file (default: ~/.config/dealve/config.json)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    list_parser = subparsers.add_parser("list", help="Print current deals (no TUI)")
    list_parser.add_argument(
        "--lines", "-n", type=int, default=20, help="Number of deals to print"
    )
    list_parser.add_argument("--search", "-s", help="Search titles instead of listing deals")

    key_parser = subparsers.add_parser("set-key", help="Store an API key in the settings file")
    key_parser.add_argument("key", help="IsThereAnyDeal API key")
    key_parser.add_argument(
        "--no-validate", action="store_true", help="Skip the online key check"
    )

    args = parser.parse_args(argv)

    if args.command == "set-key":
        return cmd_set_key(args)

    api_key = load_api_key(args.config)
    if not api_key:
        print(NO_KEY_HELP, file=sys.stderr)
        return 1

    if args.command == "list":
        if args.lines <= 0:
            print("Error: --lines must be positive", file=sys.stderr)
            return 1
        return cmd_list(args, api_key)

    from dealve.tui.app import run_app

    run_app(api_key, config_path=args.config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
