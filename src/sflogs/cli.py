"""Typer CLI for sflogs — search, list, download and count debug logs."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Annotated

import typer
from result import Err

from sflogs.config import DEFAULT_API_VERSION, Config
from sflogs.errors import ValidationError
from sflogs.formatting import format_bytes, format_timestamp
from sflogs.models.download import DownloadReport, DownloadRequest
from sflogs.models.filters import LogFilter
from sflogs.models.logs import LogRecord
from sflogs.models.search import SearchReport, SearchRequest
from sflogs.models.stats import LogStats
from sflogs.services.container import ServiceContainer

app = typer.Typer(
    name="sflogs",
    help="Search Salesforce debug logs using session tokens.",
    no_args_is_help=True,
)

_GRAY = typer.colors.BRIGHT_BLACK
_RULE = "─" * 80

UserOption = Annotated[
    str | None, typer.Option("--user-id", "-u", help="Filter logs by user ID")
]
DateFromOption = Annotated[
    str | None,
    typer.Option("--date-from", help="Filter logs from date (YYYY-MM-DD or ISO format)"),
]
DateToOption = Annotated[
    str | None,
    typer.Option("--date-to", help="Filter logs to date (YYYY-MM-DD or ISO format)"),
]
CaseOption = Annotated[
    bool, typer.Option("--case-sensitive", "-c", help="Case sensitive search")
]
OutputDirOption = Annotated[
    Path, typer.Option("--output-dir", "-o", help="Output directory for downloaded logs")
]
NoMetadataOption = Annotated[
    bool, typer.Option("--no-metadata", help="Skip saving metadata files")
]
NoSummaryOption = Annotated[
    bool, typer.Option("--no-summary", help="Skip creating download summary")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", help="Show detailed download progress")]


@app.callback()
def main(
    ctx: typer.Context,
    instance_url: Annotated[
        str,
        typer.Option(
            "--instance-url", "-i", envvar="SF_INSTANCE_URL", help="Salesforce instance URL"
        ),
    ] = "",
    session_token: Annotated[
        str,
        typer.Option(
            "--session-token", "-t", envvar="SF_SESSION_TOKEN", help="Salesforce session token"
        ),
    ] = "",
    api_version: Annotated[
        str,
        typer.Option("--api-version", envvar="SF_API_VERSION", help="Salesforce API version"),
    ] = DEFAULT_API_VERSION,
    log_level: Annotated[
        str, typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    ] = "WARNING",
) -> None:
    """Configure logging and connection settings shared by all commands."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = Config(
        instance_url=instance_url,
        session_token=session_token,
        api_version=api_version,
    )


def _fail(message: str) -> typer.Exit:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    return typer.Exit(code=1)


def _require_config(ctx: typer.Context) -> Config:
    config: Config = ctx.obj
    missing = config.missing_fields()
    if missing:
        typer.secho("Missing required configuration:", fg=typer.colors.RED, err=True)
        if "instance_url" in missing:
            typer.secho(
                "  - Instance URL (use --instance-url or SF_INSTANCE_URL env var)",
                fg=typer.colors.RED,
                err=True,
            )
        if "session_token" in missing:
            typer.secho(
                "  - Session Token (use --session-token or SF_SESSION_TOKEN env var)",
                fg=typer.colors.RED,
                err=True,
            )
        raise typer.Exit(code=1)
    return config


def _build_filter(user_id: str | None, date_from: str | None, date_to: str | None) -> LogFilter:
    try:
        return LogFilter.from_options(user_id, date_from, date_to)
    except ValidationError as exc:
        raise _fail(str(exc)) from exc


async def _connect(config: Config) -> ServiceContainer:
    """Build services and verify the session token works."""
    container = await ServiceContainer.create(config)
    typer.secho("Testing connection...", fg=_GRAY)
    if not await container.store.test_connection():
        await container.close()
        raise _fail("Failed to connect to Salesforce. Please check your credentials.")
    typer.secho("Connected to Salesforce", fg=typer.colors.GREEN)
    return container


def _print_progress(current: int, total: int, message: str) -> None:
    typer.secho(f"  [{current}/{total}] {message}", fg=typer.colors.GREEN)


# --- search -----------------------------------------------------------------


@app.command()
def search(
    ctx: typer.Context,
    search_text: Annotated[str, typer.Argument(help="Text to search for")],
    case_sensitive: CaseOption = False,
    max_results: Annotated[
        int, typer.Option("--max-results", "-m", help="Maximum number of logs to search")
    ] = 100,
    user_id: UserOption = None,
    date_from: DateFromOption = None,
    date_to: DateToOption = None,
    search_all: Annotated[
        bool, typer.Option("--all", help="Search through ALL logs using pagination")
    ] = False,
    search_max: Annotated[
        int, typer.Option("--search-max", help="Cap on logs searched with --all (0 = unlimited)")
    ] = 0,
    download: Annotated[
        bool, typer.Option("--download", "-d", help="Download matching logs")
    ] = False,
    output_dir: OutputDirOption = Path("logs"),
    no_metadata: NoMetadataOption = False,
    no_summary: NoSummaryOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Search for text in debug logs."""
    config = _require_config(ctx)
    request = SearchRequest(
        search_text=search_text,
        case_sensitive=case_sensitive,
        max_results=(search_max or None) if search_all else max_results,
        user_id=user_id,
        date_from=date_from,
        date_to=date_to,
    )
    _build_filter(user_id, date_from, date_to)

    typer.secho("Searching Salesforce debug logs...", fg=typer.colors.BLUE)
    typer.secho(f'Search term: "{search_text}"', fg=_GRAY)
    if search_all:
        typer.secho(
            "Searching through ALL logs (this may take a while for large datasets)...",
            fg=typer.colors.YELLOW,
        )

    download_request = None
    if download:
        download_request = DownloadRequest(
            output_dir=output_dir,
            include_metadata=not no_metadata,
            create_summary=not no_summary,
            verbose=verbose,
        )
    asyncio.run(_do_search(config, request, search_all, download_request))


async def _do_search(
    config: Config,
    request: SearchRequest,
    exhaustive: bool,
    download_request: DownloadRequest | None,
) -> None:
    container = await _connect(config)
    try:
        started = time.perf_counter()
        if download_request is not None:
            typer.secho(
                f"Download mode enabled. Output directory: {download_request.output_dir.resolve()}",
                fg=typer.colors.BLUE,
            )
            outcome = await container.download_service.search_and_download(
                request, download_request, exhaustive, progress_callback=_print_progress
            )
            if isinstance(outcome, Err):
                raise _fail(outcome.err_value)
            _print_download_report(outcome.ok_value, download_request.verbose)
            typer.echo(f"   Total time: {time.perf_counter() - started:.2f} seconds")
            return

        result = await container.search_service.search(request, exhaustive)
        if isinstance(result, Err):
            raise _fail(result.err_value)
        _print_search_report(result.ok_value, time.perf_counter() - started)
    finally:
        await container.close()


def _print_record_header(index: int, record: LogRecord) -> None:
    typer.secho(f"Log {index}: {record.id}", fg=typer.colors.CYAN)
    typer.secho(f"   User: {record.log_user_id}", fg=_GRAY)
    typer.secho(f"   Date: {format_timestamp(record.last_modified_date)}", fg=_GRAY)
    typer.secho(f"   Operation: {record.operation}", fg=_GRAY)
    typer.secho(f"   Status: {record.status}", fg=_GRAY)
    typer.secho(f"   Duration: {record.duration_milliseconds}ms", fg=_GRAY)
    typer.secho(f"   Length: {record.log_length} bytes", fg=_GRAY)


def _print_search_report(report: SearchReport, elapsed: float) -> None:
    typer.secho("\nSearch Summary:", fg=typer.colors.BLUE)
    typer.echo(f'   Search term: "{report.search_text}"')
    typer.echo(f"   Total logs searched: {report.total_logs_searched}")
    typer.echo(f"   Logs with matches: {report.matching_logs}")
    typer.echo(f"   Search time: {elapsed:.2f} seconds")

    if not report.results:
        typer.secho("\nNo matches found.", fg=typer.colors.YELLOW)
        return

    typer.secho("\nDetailed Results:", fg=typer.colors.GREEN)
    for index, result in enumerate(report.results, 1):
        typer.echo("")
        _print_record_header(index, result.log)
        typer.secho(f"\n   {len(result.matches)} matches found:", fg=typer.colors.YELLOW)
        for match_index, match in enumerate(result.matches, 1):
            typer.echo(f"\n   Match {match_index} (line {match.line_number}):")
            typer.secho(f"   → {match.line}", fg=typer.colors.GREEN)
            if match.context:
                typer.secho("   Context:", fg=_GRAY)
                for line in match.context:
                    typer.secho(f"     {line}", fg=_GRAY)
        typer.secho(f"   {_RULE}", fg=_GRAY)


def _print_download_report(report: DownloadReport, verbose: bool) -> None:
    typer.secho("\nDownload Summary:", fg=typer.colors.GREEN)
    typer.echo(f'   Search term: "{report.search_text}"')
    typer.echo(f"   Total logs searched: {report.total_logs_searched}")
    typer.echo(f"   Logs with matches: {report.matching_logs}")
    typer.secho(f"   Successfully downloaded: {report.downloaded_logs}", fg=typer.colors.GREEN)
    if report.failed_downloads:
        typer.secho(f"   Failed downloads: {len(report.failed_downloads)}", fg=typer.colors.RED)
        if verbose:
            for log_id in report.failed_downloads:
                typer.secho(f"      - {log_id}", fg=typer.colors.RED)
    typer.echo(f"   Download location: {report.download_path}")
    typer.echo(f"   Total size: {format_bytes(report.estimated_size)}")


# --- multi-search -----------------------------------------------------------


@app.command("multi-search")
def multi_search(
    ctx: typer.Context,
    patterns: Annotated[list[str], typer.Argument(help="Patterns to search for")],
    case_sensitive: CaseOption = False,
    max_results: Annotated[
        int, typer.Option("--max-results", "-m", help="Maximum number of logs to search")
    ] = 100,
    user_id: UserOption = None,
    date_from: DateFromOption = None,
    date_to: DateToOption = None,
) -> None:
    """Search for multiple patterns in debug logs."""
    config = _require_config(ctx)
    _build_filter(user_id, date_from, date_to)
    request = SearchRequest(
        case_sensitive=case_sensitive,
        max_results=max_results,
        user_id=user_id,
        date_from=date_from,
        date_to=date_to,
    )
    typer.secho("Searching Salesforce debug logs for multiple patterns...", fg=typer.colors.BLUE)
    typer.secho(f"Patterns: {', '.join(patterns)}", fg=_GRAY)
    asyncio.run(_do_multi_search(config, patterns, request))


async def _do_multi_search(config: Config, patterns: list[str], request: SearchRequest) -> None:
    container = await _connect(config)
    try:
        outcome = await container.search_service.search_multiple_patterns(patterns, request)
    finally:
        await container.close()
    if isinstance(outcome, Err):
        raise _fail(outcome.err_value)

    total_matches = 0
    for pattern, report in outcome.ok_value.items():
        total_matches += report.matching_logs
        typer.secho(
            f'\nPattern "{pattern}": {report.matching_logs} logs with matches',
            fg=typer.colors.CYAN,
        )
        for index, result in enumerate(report.results, 1):
            typer.echo(f"  Log {index}: {result.log.id} ({len(result.matches)} matches)")
    if total_matches == 0:
        typer.secho("No matches found for any pattern.", fg=typer.colors.YELLOW)


# --- list -------------------------------------------------------------------


@app.command("list")
def list_logs(
    ctx: typer.Context,
    max_results: Annotated[
        int, typer.Option("--max-results", "-m", help="Maximum number of logs to list")
    ] = 20,
    user_id: UserOption = None,
    date_from: DateFromOption = None,
    date_to: DateToOption = None,
) -> None:
    """List recent debug logs."""
    config = _require_config(ctx)
    log_filter = _build_filter(user_id, date_from, date_to)
    typer.secho("Listing recent debug logs...", fg=typer.colors.BLUE)
    asyncio.run(_do_list(config, log_filter, max_results))


async def _do_list(config: Config, log_filter: LogFilter, limit: int) -> None:
    container = await _connect(config)
    try:
        outcome = await container.log_service.list_logs(log_filter, limit)
    finally:
        await container.close()
    if isinstance(outcome, Err):
        raise _fail(outcome.err_value)

    records = outcome.ok_value
    if not records:
        typer.secho("No debug logs found.", fg=typer.colors.YELLOW)
        return
    typer.secho(f"\nFound {len(records)} debug logs:\n", fg=typer.colors.GREEN)
    for index, record in enumerate(records, 1):
        _print_record_header(index, record)
        typer.echo("")


# --- download ---------------------------------------------------------------


@app.command()
def download(
    ctx: typer.Context,
    log_ids: Annotated[list[str], typer.Argument(help="IDs of the logs to download")],
    output_dir: OutputDirOption = Path("logs"),
    no_metadata: NoMetadataOption = False,
    no_summary: NoSummaryOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Download specific logs by their IDs."""
    config = _require_config(ctx)
    request = DownloadRequest(
        output_dir=output_dir,
        include_metadata=not no_metadata,
        create_summary=not no_summary,
        verbose=verbose,
    )
    typer.secho(f"Downloading {len(log_ids)} specific logs...", fg=typer.colors.BLUE)
    asyncio.run(_do_download(config, log_ids, request))


async def _do_download(config: Config, log_ids: list[str], request: DownloadRequest) -> None:
    container = await _connect(config)
    try:
        outcome = await container.download_service.download_by_ids(
            log_ids, request, progress_callback=_print_progress
        )
    finally:
        await container.close()
    if isinstance(outcome, Err):
        raise _fail(outcome.err_value)

    report = outcome.ok_value
    typer.secho("\nDownload Summary:", fg=typer.colors.GREEN)
    typer.echo(f"   Requested logs: {len(log_ids)}")
    typer.secho(f"   Successfully downloaded: {report.downloaded_logs}", fg=typer.colors.GREEN)
    if report.failed_downloads:
        typer.secho(f"   Failed downloads: {len(report.failed_downloads)}", fg=typer.colors.RED)
        if request.verbose:
            for log_id in report.failed_downloads:
                typer.secho(f"      - {log_id}", fg=typer.colors.RED)
    typer.echo(f"   Download location: {report.download_path}")


# --- count ------------------------------------------------------------------


@app.command()
def count(
    ctx: typer.Context,
    user_id: UserOption = None,
    date_from: DateFromOption = None,
    date_to: DateToOption = None,
    detailed: Annotated[
        bool, typer.Option("--detailed", help="Show breakdown by user, operation and status")
    ] = False,
    fetch_all: Annotated[
        bool, typer.Option("--all", help="Fetch ALL logs for the breakdown using pagination")
    ] = False,
    max_logs: Annotated[
        int, typer.Option("--max", help="Maximum number of logs to fetch for the breakdown")
    ] = 2000,
) -> None:
    """Show the number of debug logs available."""
    config = _require_config(ctx)
    log_filter = _build_filter(user_id, date_from, date_to)
    typer.secho("Counting debug logs...", fg=typer.colors.BLUE)
    asyncio.run(_do_count(config, log_filter, detailed, fetch_all, max_logs))


async def _do_count(
    config: Config,
    log_filter: LogFilter,
    detailed: bool,
    fetch_all: bool,
    max_logs: int,
) -> None:
    container = await _connect(config)
    try:
        counted = await container.log_service.count_logs(log_filter)
        if isinstance(counted, Err):
            raise _fail(counted.err_value)
        total = counted.ok_value
        suffix = " (estimate from a sample)" if total.is_estimate else ""
        typer.secho(
            f"\nLogs ({log_filter.describe()}): {total.total}{suffix}", fg=typer.colors.GREEN
        )
        if not detailed:
            return

        if fetch_all:
            typer.secho(
                "Fetching ALL logs (this may take a while for large datasets)...",
                fg=typer.colors.YELLOW,
            )
        summarized = await container.log_service.summarize(
            log_filter, None if fetch_all else max_logs, exhaustive=fetch_all
        )
        if isinstance(summarized, Err):
            raise _fail(summarized.err_value)
        _print_stats(summarized.ok_value)
    finally:
        await container.close()


def _print_stats(stats: LogStats) -> None:
    if stats.total_logs == 0:
        typer.secho("   No logs found for the specified criteria.", fg=typer.colors.YELLOW)
        return
    typer.secho("\nDetailed Breakdown:", fg=typer.colors.BLUE)
    typer.echo(f"   Logs fetched: {stats.total_logs}")
    typer.echo(f"   Total size: {format_bytes(stats.total_size)}")
    if stats.oldest and stats.newest:
        typer.echo(
            f"   Date range: {format_timestamp(stats.oldest)} to {format_timestamp(stats.newest)}"
        )
    for title, entries in (
        ("By User", stats.by_user),
        ("By Operation", stats.by_operation),
        ("By Status", stats.by_status),
    ):
        typer.secho(f"\n{title}:", fg=typer.colors.YELLOW)
        for entry in entries:
            typer.echo(f"   {entry.key}: {entry.count} logs")
    typer.echo(f"\nAverage log size: {format_bytes(stats.average_size)}")


# --- test -------------------------------------------------------------------


@app.command("test")
def check_connection(ctx: typer.Context) -> None:
    """Test connection to Salesforce."""
    config = _require_config(ctx)
    typer.secho("Testing connection to Salesforce...", fg=typer.colors.BLUE)
    asyncio.run(_do_test(config))


async def _do_test(config: Config) -> None:
    container = await _connect(config)
    try:
        sample = await container.log_service.list_logs(LogFilter.all(), 1)
    finally:
        await container.close()
    typer.secho("Connection successful!", fg=typer.colors.GREEN)
    if not isinstance(sample, Err) and sample.ok_value:
        typer.secho(f"Sample log found: {sample.ok_value[0].id}", fg=_GRAY)
