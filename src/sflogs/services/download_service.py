"""Download service — write matching or requested logs to disk."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeAlias

from result import Err, Ok, Result

from sflogs.data import files
from sflogs.errors import PersistenceError
from sflogs.formatting import format_bytes
from sflogs.models.download import DIRECT_DOWNLOAD_LABEL, DownloadReport
from sflogs.models.filters import LogFilter

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from sflogs.data.protocols import LogStoreProtocol
    from sflogs.models.download import DownloadRequest
    from sflogs.models.logs import LogRecord
    from sflogs.models.search import LogMatch, SearchRequest
    from sflogs.services.search_service import SearchService

logger = logging.getLogger(__name__)

ProgressCallback: TypeAlias = "Callable[[int, int, str], None]"

# There is no get-by-id endpoint; metadata for explicit ids is recovered from
# this many of the most recent logs.
METADATA_LOOKUP_LIMIT = 1000


class DownloadService:
    """Service for persisting log bodies and metadata."""

    def __init__(self, store: LogStoreProtocol, search_service: SearchService) -> None:
        self._store = store
        self._search = search_service

    async def search_and_download(
        self,
        search_request: SearchRequest,
        download_request: DownloadRequest,
        exhaustive: bool = False,
        progress_callback: ProgressCallback | None = None,
    ) -> Result[DownloadReport, str]:
        """Search, then save every log with matches.

        Nothing is written and no bodies are re-fetched when the search finds
        no matches.

        Args:
            search_request: Pattern and filters.
            download_request: Output directory and which extras to write.
            exhaustive: Search every log via pagination.
            progress_callback: Called per saved file when
                ``download_request.verbose`` is set.
        """
        outcome = await self._search.search(search_request, exhaustive)
        if isinstance(outcome, Err):
            return outcome
        report = outcome.ok_value
        output_dir = download_request.output_dir.resolve()

        if not report.results:
            return Ok(
                DownloadReport(
                    search_text=report.search_text,
                    total_logs_searched=report.total_logs_searched,
                    download_path=output_dir,
                )
            )

        logger.info("Found %d logs with matches", len(report.results))
        records = [result.log for result in report.results]
        prepared = self._prepare_output(records, output_dir)
        if isinstance(prepared, Err):
            return prepared

        bodies = await self._store.fetch_log_bodies_batch([record.id for record in records])

        downloaded = 0
        failed: list[str] = []
        total = len(report.results)
        for index, result in enumerate(report.results, 1):
            name = self._save(
                result.log.id,
                bodies.get(result.log.id),
                result.log,
                result.matches,
                download_request,
                output_dir,
            )
            if name is None:
                failed.append(result.log.id)
                continue
            downloaded += 1
            if progress_callback and download_request.verbose:
                progress_callback(index, total, f"Downloaded: {name}")

        if download_request.create_summary:
            try:
                self._write_summary(
                    output_dir,
                    report.search_text,
                    report.total_logs_searched,
                    len(report.results),
                    downloaded,
                    failed,
                )
            except PersistenceError as exc:
                return Err(str(exc))

        logger.info("Download complete: %d/%d logs saved", downloaded, total)
        return Ok(
            DownloadReport(
                search_text=report.search_text,
                total_logs_searched=report.total_logs_searched,
                matching_logs=len(report.results),
                downloaded_logs=downloaded,
                failed_downloads=failed,
                download_path=output_dir,
                estimated_size=prepared.ok_value,
            )
        )

    async def download_by_ids(
        self,
        log_ids: list[str],
        download_request: DownloadRequest,
        progress_callback: ProgressCallback | None = None,
    ) -> Result[DownloadReport, str]:
        """Save the given logs.

        Metadata is only recoverable for ids among the most recent
        ``METADATA_LOOKUP_LIMIT`` logs. Older ids are left out of the size
        estimate, get no sidecar and are saved as ``{id}.log``.
        """
        requested = list(dict.fromkeys(log_ids))
        if not requested:
            return Err("No log ids given")

        wanted = set(requested)
        recent = await self._store.fetch_all_logs(LogFilter.all(), METADATA_LOOKUP_LIMIT)
        known = {record.id: record for record in recent if record.id in wanted}
        if len(known) < len(requested):
            logger.warning(
                "No metadata for %d of %d logs (older than the %d most recent)",
                len(requested) - len(known),
                len(requested),
                METADATA_LOOKUP_LIMIT,
            )

        output_dir = download_request.output_dir.resolve()
        prepared = self._prepare_output(list(known.values()), output_dir)
        if isinstance(prepared, Err):
            return prepared

        bodies = await self._store.fetch_log_bodies_batch(requested)

        downloaded = 0
        failed: list[str] = []
        for index, log_id in enumerate(requested, 1):
            name = self._save(
                log_id, bodies.get(log_id), known.get(log_id), [], download_request, output_dir
            )
            if name is None:
                failed.append(log_id)
                continue
            downloaded += 1
            if progress_callback and download_request.verbose:
                progress_callback(index, len(requested), f"Downloaded: {name}")

        if download_request.create_summary:
            try:
                self._write_summary(
                    output_dir,
                    DIRECT_DOWNLOAD_LABEL,
                    len(requested),
                    len(requested),
                    downloaded,
                    failed,
                )
            except PersistenceError as exc:
                return Err(str(exc))

        return Ok(
            DownloadReport(
                search_text=DIRECT_DOWNLOAD_LABEL,
                total_logs_searched=len(requested),
                matching_logs=len(requested),
                downloaded_logs=downloaded,
                failed_downloads=failed,
                download_path=output_dir,
                estimated_size=prepared.ok_value,
            )
        )

    @staticmethod
    def _prepare_output(records: list[LogRecord], output_dir: Path) -> Result[int, str]:
        """Check space and create the output directory; Ok holds the estimate."""
        estimate = files.estimate_and_check_space(records, output_dir)
        if not estimate.ok:
            needed = format_bytes(estimate.estimated_bytes)
            return Err(f"Insufficient disk space. Estimated size needed: {needed}")
        try:
            files.ensure_directory(output_dir)
        except PersistenceError as exc:
            return Err(str(exc))
        logger.info("Estimated download size: %s", format_bytes(estimate.estimated_bytes))
        return Ok(estimate.estimated_bytes)

    @staticmethod
    def _save(
        log_id: str,
        body: str | None,
        record: LogRecord | None,
        matches: list[LogMatch],
        download_request: DownloadRequest,
        output_dir: Path,
    ) -> str | None:
        """Write one body (and sidecar); return the file name or None on failure."""
        if body is None:
            return None
        name = files.log_file_name(record) if record else files.fallback_file_name(log_id)
        try:
            files.write_file(output_dir / name, body)
            if download_request.include_metadata and record is not None:
                files.write_json(
                    output_dir / files.metadata_file_name(record),
                    files.metadata_document(record, matches),
                )
        except PersistenceError as exc:
            logger.warning("Failed to save log %s: %s", log_id, exc)
            return None
        return name

    @staticmethod
    def _write_summary(
        output_dir: Path,
        search_text: str,
        total_logs_searched: int,
        matching_logs: int,
        downloaded_logs: int,
        failed: list[str],
    ) -> None:
        """Write ``download-summary.json``; raises PersistenceError."""
        document = files.summary_document(
            search_text, total_logs_searched, matching_logs, downloaded_logs, failed
        )
        files.write_json(output_dir / files.SUMMARY_FILE_NAME, document)
