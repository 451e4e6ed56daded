"""Scan command implementation.

Lists the devices currently known to the kernel by crawling sysfs.
"""

import json
import queue
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from devcrawl.core.settings import DevcrawlSettings, SettingsError, load_settings_or_default
from devcrawl.crawler import (
    CrawlAbortedError,
    CrawlerError,
    CrawlerSettings,
    Matcher,
    RuleDefinition,
    RuleDefinitions,
    existing_devices,
    iter_devices,
    parse_match_expression,
)
from devcrawl.models.device import Device
from devcrawl.models.scan_result import DeviceScanResult, count_by_subsystem
from devcrawl.utils.formatting import (
    console,
    create_device_table,
    format_device_row,
    print_error,
    print_info,
    print_warning,
)

app = typer.Typer(
    help="Scan sysfs for existing devices.",
    invoke_without_command=True,
)


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"
    JSONL = "jsonl"


@dataclass
class CrawlOutcome:
    """What a crawl delivered to the CLI.

    Attributes:
        devices: Devices received, in crawl order.
        error: Error that ended the crawl, if it did not complete.
        timed_out: True if the crawl was cancelled by the timeout.
        limited: True if the crawl was cancelled because the limit was reached.
    """

    devices: list[Device] = field(default_factory=list)
    error: CrawlerError | None = None
    timed_out: bool = False
    limited: bool = False

    @property
    def complete(self) -> bool:
        """Whether every matching device was received."""
        return self.error is None and not self.limited


def _build_filters(match: list[str] | None, subsystem: str | None) -> list[str]:
    """Collect the command line filters as KEY=REGEX expressions."""
    filters = list(match or [])
    if subsystem:
        filters.append(f"SUBSYSTEM=^{re.escape(subsystem)}$")
    return filters


def _build_matcher(
    filters: list[str],
    settings: DevcrawlSettings,
) -> tuple[Matcher | None, list[str]]:
    """Build the matcher for this scan.

    Command line filters form a single rule and replace the rules stored
    in the config file.

    Returns:
        Tuple of (matcher or None, human-readable filter descriptions).

    Raises:
        ValueError: If a filter expression is not KEY=REGEX.
    """
    if filters:
        env = dict(parse_match_expression(expr) for expr in filters)
        return RuleDefinitions(rules=[RuleDefinition(env=env)]), filters

    matcher = settings.build_matcher()
    descriptions = [
        " ".join(f"{key}={pattern}" for key, pattern in rule.env.items())
        for rule in settings.rules
    ]
    return matcher, descriptions


def run_crawl(
    crawler_settings: CrawlerSettings,
    matcher: Matcher | None,
    *,
    limit: int | None = None,
    timeout: float | None = None,
    on_device: Callable[[Device], None] | None = None,
) -> CrawlOutcome:
    """Run one crawl session and collect what it delivers.

    Reaching the limit cancels the crawl; the resulting abort is not
    reported as an error. The timeout cancels the crawl from a timer
    thread, and that abort is reported.

    Args:
        crawler_settings: Where to crawl.
        matcher: Optional device predicate.
        limit: Stop after this many devices.
        timeout: Cancel the crawl after this many seconds.
        on_device: Called for each device as soon as it is received.

    Returns:
        CrawlOutcome with the received devices and the terminating error.
    """
    devices: queue.Queue[Device | None] = queue.Queue(maxsize=crawler_settings.queue_size)
    errors: queue.Queue[CrawlerError] = queue.Queue()
    outcome = CrawlOutcome()

    handle = existing_devices(devices, errors, matcher, settings=crawler_settings)

    timed_out = threading.Event()

    def _on_timeout() -> None:
        timed_out.set()
        handle.cancel()

    timer: threading.Timer | None = None
    if timeout is not None:
        timer = threading.Timer(timeout, _on_timeout)
        timer.daemon = True
        timer.start()

    try:
        # Keep draining after the limit so the crawl thread can finish
        for device in iter_devices(devices):
            if outcome.limited:
                continue
            outcome.devices.append(device)
            if on_device is not None:
                on_device(device)
            if limit is not None and len(outcome.devices) >= limit:
                outcome.limited = True
                handle.cancel()
    finally:
        if timer is not None:
            timer.cancel()

    handle.wait()

    try:
        error = errors.get_nowait()
    except queue.Empty:
        error = None

    if isinstance(error, CrawlAbortedError):
        if outcome.limited:
            error = None
        else:
            outcome.timed_out = timed_out.is_set()
    outcome.error = error
    return outcome


def _print_device_line(device: Device) -> None:
    """Print one device as a JSON line."""
    console.print(json.dumps(device.to_dict()), markup=False, highlight=False, soft_wrap=True)


@app.callback(invoke_without_command=True)
def scan_devices(
    ctx: typer.Context,
    match: Annotated[
        list[str] | None,
        typer.Option(
            "--match",
            "-m",
            help="Only show devices whose attribute KEY matches REGEX (KEY=REGEX, repeatable).",
        ),
    ] = None,
    subsystem: Annotated[
        str | None,
        typer.Option(
            "--subsystem",
            "-s",
            help="Only show devices of this subsystem (e.g. net, block, usb).",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table, json, or jsonl (streamed).",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
    limit: Annotated[
        int | None,
        typer.Option(
            "--limit",
            "-n",
            min=1,
            help="Stop after this many devices.",
        ),
    ] = None,
    count_only: Annotated[
        bool,
        typer.Option(
            "--count",
            "-c",
            help="Only show device counts per subsystem.",
        ),
    ] = False,
    export_path: Annotated[
        Path | None,
        typer.Option(
            "--export",
            "-e",
            help="Export scan results to JSON file.",
        ),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            "-t",
            min=0.0,
            min_open=True,
            help="Cancel the scan after this many seconds.",
        ),
    ] = None,
    root: Annotated[
        Path | None,
        typer.Option(
            "--root",
            help="sysfs mount point (default: /sys or the config file value).",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            help="Read settings and rules from this file.",
        ),
    ] = None,
) -> None:
    """Scan and display the devices currently known to the kernel.

    Examples:
        devcrawl scan                            # All devices, as a table
        devcrawl scan --subsystem net            # Network devices only
        devcrawl scan -m DRIVER=^usb -m DEVTYPE=usb_device
        devcrawl scan --format jsonl             # Stream one JSON object per device
        devcrawl scan --count                    # Counts per subsystem
        devcrawl scan --export devices.json      # Export to JSON file
        devcrawl scan --timeout 5                # Give up after 5 seconds
    """
    if ctx.invoked_subcommand is not None:
        return

    try:
        settings = load_settings_or_default(config_path)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    crawler_settings = settings.crawler
    if root is not None:
        crawler_settings = crawler_settings.model_copy(update={"sysfs_root": root.resolve()})

    try:
        matcher, filter_descriptions = _build_matcher(_build_filters(match, subsystem), settings)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    effective_timeout = timeout if timeout is not None else crawler_settings.timeout_seconds
    streaming = output_format == OutputFormat.JSONL and not count_only

    outcome = run_crawl(
        crawler_settings,
        matcher,
        limit=limit,
        timeout=effective_timeout,
        on_device=_print_device_line if streaming else None,
    )
    found = outcome.devices

    # Handle export (always JSON regardless of format option)
    if export_path is not None:
        _export_results(outcome, crawler_settings, filter_descriptions, export_path)

    if count_only:
        _print_counts(found)
    elif output_format == OutputFormat.JSON:
        scan_result = DeviceScanResult.create(
            devices=found,
            sysfs_root=str(crawler_settings.sysfs_root),
            filters=filter_descriptions,
            complete=outcome.complete,
        )
        console.print_json(json.dumps(scan_result.to_dict()))
    elif output_format == OutputFormat.TABLE:
        _print_table(found, limit, outcome.limited)

    if outcome.timed_out:
        print_error(f"Scan timed out after {effective_timeout:g}s ({len(found)} devices received)")
        raise typer.Exit(code=1)
    if outcome.error is not None:
        print_error(str(outcome.error))
        raise typer.Exit(code=1)


# === Private helper functions ===


def _print_table(found: list[Device], limit: int | None, limited: bool) -> None:
    """Display devices as a Rich table with a summary line."""
    if not found:
        print_info("No matching devices found.")
        return

    table = create_device_table("Devices")
    for device in found:
        table.add_row(*format_device_row(device))
    console.print(table)

    summary = f"Showing {len(found)} devices"
    if limited:
        summary += f" (limited to {limit})"
    console.print(f"\n[dim]{summary}[/]")


def _print_counts(found: list[Device]) -> None:
    """Display device counts per subsystem."""
    print_info(f"Total devices: {len(found)}")
    for name, count in count_by_subsystem(found).items():
        console.print(f"  [subsystem]{name}:[/] {count}")


def _export_results(
    outcome: CrawlOutcome,
    crawler_settings: CrawlerSettings,
    filters: list[str],
    export_path: Path,
) -> None:
    """Export scan results to a JSON file."""
    export_path = export_path.resolve()
    if export_path.is_dir():
        print_error(f"Export path is a directory: {export_path}")
        raise typer.Exit(code=1)

    scan_result = DeviceScanResult.create(
        devices=outcome.devices,
        sysfs_root=str(crawler_settings.sysfs_root),
        filters=filters,
        complete=outcome.complete,
    )
    try:
        export_path.parent.mkdir(parents=True, exist_ok=True)
        export_path.write_text(json.dumps(scan_result.to_dict(), indent=2))
        print_info(f"Scan results exported to {export_path}")
        if outcome.limited:
            print_warning("Exported results are incomplete, the scan stopped at --limit")
    except OSError as e:
        print_error(f"Failed to export: {e}")
        raise typer.Exit(code=1) from e
