#!/usr/bin/env python3
"""
Concert watch CLI - commands for running and inspecting the platform.

Usage: python scraper_cli.py <command> [options]

Commands:
    run             - Run all due sources once
    sources         - Show configured sources and their last scrape status
    parse <file>    - Parse a saved calendar HTML file and print the concerts
    matches         - Score stored concerts against the stored preferences
    preferences     - Show the stored preferences
"""

import asyncio
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Add project root to PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.config import load_config
from core.identity import assign_identities
from core.matcher import find_matches, score
from core.storage import DataStore
from main import Services, build_store, run_once, setup_logging
from plugins.heavymetal_dk import parse_calendar
from sinks.console_notifier import format_record


class Colors:
    """ANSI color codes for terminal output."""
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BLUE = "\033[94m"
    BOLD = "\033[1m"
    END = "\033[0m"


def format_timestamp(dt: Optional[datetime]) -> str:
    if not dt:
        return "never"
    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


async def show_sources(store: DataStore) -> None:
    sources = await store.get_sources()
    if not sources:
        print(f"{Colors.YELLOW}No sources registered{Colors.END}")
        return

    for source in sources:
        if source.last_scrape_success is None:
            status = f"{Colors.BLUE}○ pending{Colors.END}"
        elif source.last_scrape_success:
            status = f"{Colors.GREEN}● ok{Colors.END}"
        else:
            status = f"{Colors.RED}● failed{Colors.END}"
        due = "due" if source.is_due() else "waiting"
        enabled = "" if source.enabled else f" {Colors.YELLOW}(disabled){Colors.END}"
        print(f"{Colors.BOLD}{source.name}{Colors.END} [{source.id}]{enabled}")
        print(f"  {status}  last: {format_timestamp(source.last_scraped_at)}  ({due})")
        print(f"  scraper: {source.scraper}  url: {source.url}")
        if source.last_scrape_error:
            print(f"  {Colors.RED}error: {source.last_scrape_error}{Colors.END}")


def show_parsed_file(path: str) -> None:
    html = Path(path).read_text(encoding="utf-8")
    records = assign_identities(parse_calendar(html))
    print(f"{Colors.BLUE}Parsed {len(records)} concert(s) from {path}{Colors.END}")
    for record in records:
        print(f"[{record.id}] {format_record(record)}")


async def show_matches(store: DataStore) -> None:
    records = await store.get_previous_records()
    preferences = await store.get_preferences()
    matches = find_matches(records, preferences)
    print(f"{Colors.BLUE}{len(matches)} of {len(records)} stored concert(s) match{Colors.END}")
    for record in matches:
        print(f"{Colors.GREEN}{score(record, preferences):>4}{Colors.END} {format_record(record)}")


async def show_preferences(store: DataStore) -> None:
    preferences = await store.get_preferences()
    print(preferences.model_dump_json(by_alias=True, indent=2))


async def main() -> None:
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        print(__doc__)
        return

    load_dotenv()
    setup_logging()
    command = sys.argv[1].lower()

    if command == "parse":
        if len(sys.argv) < 3:
            print(f"{Colors.RED}Usage: python scraper_cli.py parse <file>{Colors.END}")
            return
        show_parsed_file(sys.argv[2])
        return

    cfg = load_config()

    if command == "run":
        services = Services(cfg)
        try:
            await services.seed()
            outcomes = await run_once(services)
        finally:
            await services.close()
        for outcome in outcomes:
            colour = Colors.GREEN if outcome.success else Colors.RED
            print(
                f"{colour}{outcome.source_name}: scraped {outcome.records_scraped}, "
                f"new {outcome.new_records}{Colors.END}"
                + (f" - {outcome.error}" if outcome.error else "")
            )
        return

    store = build_store(cfg.storage)
    try:
        if command == "sources":
            for source_cfg in cfg.sources:
                await store.register_source(source_cfg.to_source())
            await show_sources(store)
        elif command == "matches":
            await show_matches(store)
        elif command == "preferences":
            await show_preferences(store)
        else:
            print(f"{Colors.RED}Unknown command: {command}{Colors.END}")
            print(__doc__)
    finally:
        close = getattr(store, "close", None)
        if close is not None:
            await close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print(f"\n{Colors.YELLOW}Interrupted{Colors.END}")
