"""Tests for DownloadService writing to a temp directory."""

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace

import pytest
from result import Err, Ok

from sflogs.data import files
from sflogs.errors import PersistenceError
from sflogs.models.download import DownloadRequest
from sflogs.models.filters import FilterKind
from sflogs.models.search import SearchRequest
from sflogs.services.download_service import METADATA_LOOKUP_LIMIT, DownloadService
from sflogs.services.search_service import SearchService
from tests.conftest import FakeLogStore, make_record


@pytest.fixture
def fake_store() -> FakeLogStore:
    records = [make_record(i, LogLength=100 * (i + 1)) for i in range(3)]
    fake = FakeLogStore(records)
    fake.bodies = {
        records[0].id: "header\nneedle found\nfooter",
        records[1].id: "nothing here",
        records[2].id: "NEEDLE again",
    }
    return fake


@pytest.fixture
def service(fake_store: FakeLogStore) -> DownloadService:
    return DownloadService(fake_store, SearchService(fake_store))


@pytest.mark.asyncio
async def test_search_and_download_writes_logs_sidecars_and_summary(
    service: DownloadService, fake_store: FakeLogStore, tmp_path: Path
) -> None:
    output_dir = tmp_path / "out"
    result = await service.search_and_download(
        SearchRequest(search_text="needle"), DownloadRequest(output_dir=output_dir)
    )

    assert isinstance(result, Ok)
    report = result.ok_value
    assert report.total_logs_searched == 3
    assert report.matching_logs == 2
    assert report.downloaded_logs == 2
    assert report.failed_downloads == []
    assert report.download_path == output_dir.resolve()
    assert report.estimated_size == 100 + 300 + 2 * files.FILE_OVERHEAD_BYTES

    record = fake_store.records[0]
    log_path = output_dir / files.log_file_name(record)
    assert log_path.read_text(encoding="utf-8") == "header\nneedle found\nfooter"
    sidecar = json.loads((output_dir / files.metadata_file_name(record)).read_text("utf-8"))
    assert sidecar["log"]["id"] == record.id
    assert sidecar["matches"][0]["lineNumber"] == 2

    summary = json.loads((output_dir / files.SUMMARY_FILE_NAME).read_text("utf-8"))
    assert summary["searchText"] == "needle"
    assert summary["statistics"] == {
        "totalLogsSearched": 3,
        "logsWithMatches": 2,
        "logsDownloaded": 2,
        "downloadsFailed": 0,
    }
    suffixes = sorted(p.suffix for p in output_dir.iterdir())
    assert suffixes == [".json", ".json", ".json", ".log", ".log"]


@pytest.mark.asyncio
async def test_zero_matches_writes_nothing(
    service: DownloadService, fake_store: FakeLogStore, tmp_path: Path
) -> None:
    output_dir = tmp_path / "out"
    result = await service.search_and_download(
        SearchRequest(search_text="absent"), DownloadRequest(output_dir=output_dir)
    )

    assert isinstance(result, Ok)
    assert result.ok_value.downloaded_logs == 0
    assert result.ok_value.estimated_size == 0
    assert result.ok_value.total_logs_searched == 3
    assert not output_dir.exists()
    assert "fetch_log_bodies_batch" not in fake_store.call_names()


@pytest.mark.asyncio
async def test_failed_bodies_are_listed(
    service: DownloadService, fake_store: FakeLogStore, tmp_path: Path
) -> None:
    failing_id = fake_store.records[2].id

    async def batch_without_last(log_ids: list[str]) -> dict[str, str]:
        return {i: fake_store.bodies[i] for i in log_ids if i != failing_id}

    fake_store.fetch_log_bodies_batch = batch_without_last  # type: ignore[method-assign]
    result = await service.search_and_download(
        SearchRequest(search_text="needle"), DownloadRequest(output_dir=tmp_path)
    )

    assert isinstance(result, Ok)
    assert result.ok_value.downloaded_logs == 1
    assert result.ok_value.failed_downloads == [failing_id]
    summary = json.loads((tmp_path / files.SUMMARY_FILE_NAME).read_text("utf-8"))
    assert summary["failedDownloads"] == [{"logId": failing_id, "reason": "API Error"}]


@pytest.mark.asyncio
async def test_options_skip_metadata_and_summary(
    service: DownloadService, tmp_path: Path
) -> None:
    request = DownloadRequest(output_dir=tmp_path, include_metadata=False, create_summary=False)
    result = await service.search_and_download(SearchRequest(search_text="needle"), request)

    assert isinstance(result, Ok)
    assert sorted(p.suffix for p in tmp_path.iterdir()) == [".log", ".log"]


@pytest.mark.asyncio
async def test_empty_body_counts_as_downloaded(
    service: DownloadService, fake_store: FakeLogStore, tmp_path: Path
) -> None:
    fake_store.bodies[fake_store.records[1].id] = ""
    result = await service.download_by_ids(
        [fake_store.records[1].id], DownloadRequest(output_dir=tmp_path)
    )
    assert isinstance(result, Ok)
    assert result.ok_value.downloaded_logs == 1


@pytest.mark.asyncio
async def test_progress_only_when_verbose(service: DownloadService, tmp_path: Path) -> None:
    calls: list[tuple[int, int, str]] = []

    def progress(current: int, total: int, message: str) -> None:
        calls.append((current, total, message))

    await service.search_and_download(
        SearchRequest(search_text="needle"),
        DownloadRequest(output_dir=tmp_path / "quiet"),
        progress_callback=progress,
    )
    assert calls == []

    await service.search_and_download(
        SearchRequest(search_text="needle"),
        DownloadRequest(output_dir=tmp_path / "loud", verbose=True),
        progress_callback=progress,
    )
    assert [(c, t) for c, t, _ in calls] == [(1, 2), (2, 2)]
    assert calls[0][2].startswith("Downloaded: ")


@pytest.mark.asyncio
async def test_insufficient_space_is_err(
    service: DownloadService, tmp_path: Path, monkeypatch
) -> None:
    monkeypatch.setattr(
        "sflogs.data.files.shutil.disk_usage", lambda _path: SimpleNamespace(free=1)
    )
    output_dir = tmp_path / "out"
    result = await service.search_and_download(
        SearchRequest(search_text="needle"), DownloadRequest(output_dir=output_dir)
    )

    assert isinstance(result, Err)
    assert result.err_value.startswith("Insufficient disk space. Estimated size needed:")
    assert not output_dir.exists()


@pytest.mark.asyncio
async def test_search_error_propagates(service: DownloadService, tmp_path: Path) -> None:
    result = await service.search_and_download(
        SearchRequest(search_text=""), DownloadRequest(output_dir=tmp_path)
    )
    assert isinstance(result, Err)


@pytest.mark.asyncio
async def test_download_by_ids_recovers_metadata(
    service: DownloadService, fake_store: FakeLogStore, tmp_path: Path
) -> None:
    known = fake_store.records[1]
    fake_store.bodies["07LOLD"] = "old body"

    result = await service.download_by_ids(
        [known.id, "07LOLD", known.id], DownloadRequest(output_dir=tmp_path)
    )

    assert isinstance(result, Ok)
    report = result.ok_value
    assert report.search_text == "Direct download"
    assert report.downloaded_logs == 2
    assert report.total_logs_searched == 2
    assert report.estimated_size == known.log_length + files.FILE_OVERHEAD_BYTES

    name, (log_filter, limit) = fake_store.calls[0]
    assert name == "fetch_all_logs"
    assert log_filter.kind is FilterKind.ALL
    assert limit == METADATA_LOOKUP_LIMIT
    assert ("fetch_log_bodies_batch", [known.id, "07LOLD"]) in fake_store.calls

    assert (tmp_path / files.log_file_name(known)).exists()
    assert (tmp_path / files.metadata_file_name(known)).exists()
    assert (tmp_path / "07LOLD.log").read_text(encoding="utf-8") == "old body"
    assert not (tmp_path / "07LOLD.json").exists()
    summary = json.loads((tmp_path / files.SUMMARY_FILE_NAME).read_text("utf-8"))
    assert summary["searchText"] == "Direct download"


@pytest.mark.asyncio
async def test_download_by_ids_reports_missing_bodies(
    service: DownloadService, tmp_path: Path
) -> None:
    result = await service.download_by_ids(["07LGONE"], DownloadRequest(output_dir=tmp_path))

    assert isinstance(result, Ok)
    assert result.ok_value.downloaded_logs == 0
    assert result.ok_value.failed_downloads == ["07LGONE"]


@pytest.mark.asyncio
async def test_download_by_ids_requires_ids(service: DownloadService, tmp_path: Path) -> None:
    result = await service.download_by_ids([], DownloadRequest(output_dir=tmp_path))
    assert isinstance(result, Err)


def _reject_summary(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    real_write_json = files.write_json

    def write_json(path: Path, data: object) -> None:
        if path.name == files.SUMMARY_FILE_NAME:
            raise PersistenceError(path, "read-only file system")
        real_write_json(path, data)

    monkeypatch.setattr("sflogs.data.files.write_json", write_json)


@pytest.mark.asyncio
async def test_summary_write_failure_is_err(
    service: DownloadService, tmp_path: Path, monkeypatch
) -> None:
    _reject_summary(monkeypatch)
    result = await service.search_and_download(
        SearchRequest(search_text="needle"), DownloadRequest(output_dir=tmp_path)
    )

    assert isinstance(result, Err)
    assert files.SUMMARY_FILE_NAME in result.err_value
    assert "read-only file system" in result.err_value


@pytest.mark.asyncio
async def test_download_by_ids_summary_write_failure_is_err(
    service: DownloadService, fake_store: FakeLogStore, tmp_path: Path, monkeypatch
) -> None:
    _reject_summary(monkeypatch)
    result = await service.download_by_ids(
        [fake_store.records[0].id], DownloadRequest(output_dir=tmp_path)
    )

    assert isinstance(result, Err)
    assert not (tmp_path / files.SUMMARY_FILE_NAME).exists()
