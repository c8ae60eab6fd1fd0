"""CLI entry point for the realtime log."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import Any, TextIO

import click

from rtlog.colors import hex_to_rgb
from rtlog.events import EventType, FilterSelection, SnapshotError, load_snapshot
from rtlog.format import DEFAULT_LOCALE, LogRow
from rtlog.log import FILTER_OPTIONS, RealtimeLog
from rtlog.window import ViewportConfig

TYPE_ICONS = {
    EventType.PAGEVIEW: "view",
    EventType.SESSION: "visitor",
    EventType.EVENT: "event",
    EventType.UNKNOWN: "",
}

STATUS_LIGHT = "●"


def format_line(row: LogRow) -> str:
    """Render one log row as a terminal line.

    Args:
        row: Formatted log row.

    Returns:
        Line like '● 3:04:05 PM  view     /pricing (//example.com/pricing)'.
    """
    light = click.style(STATUS_LIGHT, fg=hex_to_rgb(row.color))
    detail = row.detail.text
    if row.detail.href is not None:
        detail = f"{detail} ({row.detail.href})"
    return f"{light} {row.time:>11}  {TYPE_ICONS[row.type]:<8} {detail}".rstrip()


def render_log(log: RealtimeLog, config: ViewportConfig, scroll: int, output_json: bool) -> None:
    """Print the rows materialized in the viewport."""
    window = log.window(config)
    if window.is_empty:
        click.echo("No data available.")
        return

    window.scroll_to(scroll)
    rows = window.rendered()

    if output_json:
        for row in rows:
            click.echo(row.content.model_dump_json())
        return

    click.echo(
        f"Realtime logs ({window.item_count} total, "
        f"showing {rows[0].index + 1}-{rows[-1].index + 1})"
    )
    for row in rows:
        click.echo(format_line(row.content))


def view_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by commands that render the log."""
    options = [
        click.option(
            "--type",
            "selection",
            type=click.Choice([selection.value for selection, _ in FILTER_OPTIONS]),
            default=FilterSelection.ALL.value,
            show_default=True,
            help="Show only one kind of activity",
        ),
        click.option(
            "--domain",
            envvar="RTLOG_DOMAIN",
            default="",
            help="Website domain used to build page links",
        ),
        click.option(
            "--locale",
            envvar="RTLOG_LOCALE",
            default=DEFAULT_LOCALE,
            show_default=True,
            help="Locale for time formatting",
        ),
        click.option(
            "--height",
            type=click.IntRange(min=1),
            envvar="RTLOG_HEIGHT",
            default=400,
            show_default=True,
            help="Viewport height in pixels",
        ),
        click.option(
            "--row-height",
            type=click.IntRange(min=1),
            envvar="RTLOG_ROW_HEIGHT",
            default=40,
            show_default=True,
            help="Row height in pixels",
        ),
        click.option(
            "--overscan",
            type=click.IntRange(min=1),
            default=2,
            show_default=True,
            help="Extra rows rendered beyond the viewport",
        ),
        click.option(
            "--scroll",
            type=click.IntRange(min=0),
            default=0,
            help="Scroll offset in pixels",
        ),
        click.option(
            "--json",
            "output_json",
            is_flag=True,
            help="Output rows as JSONL",
        ),
    ]

    for option in reversed(options):
        func = option(func)
    return func


def _make_log(selection: str, domain: str, locale: str) -> RealtimeLog:
    log = RealtimeLog(website_domain=domain, locale=locale)
    log.select(selection)
    return log


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Realtime activity log CLI."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )


@main.command("show")
@click.argument("snapshot", type=click.File("r"), default="-")
@view_options
def show_command(
    snapshot: TextIO,
    selection: str,
    domain: str,
    locale: str,
    height: int,
    row_height: int,
    overscan: int,
    scroll: int,
    output_json: bool,
) -> None:
    """Show the activity log for a snapshot.

    SNAPSHOT is a JSON file with "pageviews", "sessions" and "events" lists
    (default: stdin).

    Example:
        rtlog show snapshot.json --type session
        curl -s $API/realtime | rtlog show --domain example.com
    """
    try:
        parsed = load_snapshot(snapshot.read())
    except SnapshotError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    log = _make_log(selection, domain, locale)
    log.update(parsed)
    config = ViewportConfig(height=height, row_height=row_height, overscan=overscan)
    render_log(log, config, scroll, output_json)


@main.command("tail")
@view_options
def tail_command(
    selection: str,
    domain: str,
    locale: str,
    height: int,
    row_height: int,
    overscan: int,
    scroll: int,
    output_json: bool,
) -> None:
    """Re-render the log for each snapshot read from stdin (one JSON per line).

    Malformed lines are skipped with a warning.

    Example:
        poll-realtime --jsonl | rtlog tail --domain example.com
    """
    log = _make_log(selection, domain, locale)
    config = ViewportConfig(height=height, row_height=row_height, overscan=overscan)

    valid_count = 0
    has_input = False

    for line_number, line in enumerate(sys.stdin, 1):
        stripped = line.strip()
        if not stripped:
            continue

        has_input = True

        try:
            snapshot = load_snapshot(stripped)
        except SnapshotError as e:
            click.echo(f"Warning: line {line_number}: {e}", err=True)
            continue

        if valid_count:
            click.echo()
        valid_count += 1
        log.update(snapshot)
        render_log(log, config, scroll, output_json)

    # Exit code 1 if we had input but no valid snapshots
    if has_input and valid_count == 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
