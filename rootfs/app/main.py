"""
Searchlab search widget – entry point.

Every line read from stdin is typed into the query field and submitted with
Enter; after each search the page is written to output_path.

Commands:
  :next / :prev   follow the "&gt;" / "&lt;" pagination item
  :page N         jump to the pagination item labelled N
  :quit           exit

One-shot mode (--query) prints the rendered containers instead.
"""

import argparse
import sys
from typing import Iterable, Optional

from config import load_config
from config_validator import ConfigValidator
from controller import SearchController
from logging_util import log
from page import PAGINATION_CONTAINER, QUERY_FIELD, RESULT_CONTAINER, START_FIELD, SearchPage
from search_client import SearchClient
from search_response import Channel, PageNavItem
from version import VERSION


def prepare_config(cfg) -> bool:
    """Log validation results and apply safe defaults; False on critical errors."""
    validator = ConfigValidator()
    config_errors = validator.validate(cfg)

    for e in config_errors:
        level = "error" if e.severity == "critical" else "warning"
        log(level, f"Config {e.field}: {e.message}")
        if e.suggestion:
            log(level, f"  -> {e.suggestion}")

    for e in config_errors:
        if e.severity == "warning" and e.field == "request_timeout_sec":
            log("warning", f"Setting request_timeout_sec to 15 (was: {cfg.request_timeout_sec})")
            cfg.request_timeout_sec = 15

    return not validator.has_critical(config_errors)


def find_nav_item(channel: Optional[Channel], command: str) -> Optional[PageNavItem]:
    """Pagination item addressed by :next, :prev or :page N."""
    if channel is None:
        return None
    parts = command.split()
    for item in channel.nav_items():
        if parts[0] == ":next" and item.is_next:
            return item
        if parts[0] == ":prev" and item.is_previous:
            return item
        if parts[0] == ":page" and len(parts) > 1 and item.page == parts[1]:
            return item
    return None


def run_interactive(controller: SearchController, cfg, lines: Iterable[str]) -> None:
    page = controller.page
    for line in lines:
        line = line.strip()
        if not line:
            continue
        if line in (":quit", ":q"):
            break

        if line.startswith(":"):
            item = find_nav_item(controller.last_channel, line)
            if item is None:
                log("warning", f"No pagination item for '{line}'")
                continue
            controller.navigate(item)
        else:
            page.set_field_value(QUERY_FIELD, line)
            page.set_field_value(START_FIELD, 0)
            controller.on_key_up("Enter")

        if not controller.wait(cfg.request_timeout_sec + 5):
            log("warning", "Search is still running, continuing without it")
            continue
        try:
            page.write(cfg.output_path)
        except OSError as e:
            log("error", f"Could not write {cfg.output_path}: {e}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Searchlab search widget")
    parser.add_argument("--options", help="path to options.json")
    parser.add_argument("--query", help="run a single search and print the result")
    parser.add_argument("--start", default="0", help="startRecord for --query")
    parser.add_argument("--output", help="overrides output_path")
    args = parser.parse_args(argv)

    log("info", "=" * 60)
    log("info", f"  Searchlab search widget v{VERSION}")
    log("info", "=" * 60)

    cfg = load_config(args.options)
    if args.output:
        cfg.output_path = args.output
    log("info", f"Config: search_api={cfg.search_api}, timeout={cfg.request_timeout_sec}s, "
                f"page={cfg.page_path}")

    if not prepare_config(cfg):
        log("error", "Critical config errors - not starting")
        return 1

    client = SearchClient(cfg)
    page = SearchPage.from_file(cfg.page_path)
    controller = SearchController(client, page)
    try:
        if args.query is not None:
            page.set_field_value(QUERY_FIELD, args.query)
            page.set_field_value(START_FIELD, args.start)
            controller.on_key_up("Enter")
            controller.wait(cfg.request_timeout_sec + 5)
            print(page.inner_html(RESULT_CONTAINER))
            print(page.inner_html(PAGINATION_CONTAINER))
            return 1 if controller.last_error else 0

        log("info", "Type a query and press Enter (:next, :prev, :page N, :quit)")
        run_interactive(controller, cfg, sys.stdin)
        return 0
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
