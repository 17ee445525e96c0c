"""Download models."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, Field

DIRECT_DOWNLOAD_LABEL = "Direct download"


class DownloadRequest(BaseModel):
    """Where and how to write downloaded logs."""

    output_dir: Path = Path("logs")
    include_metadata: bool = True
    create_summary: bool = True
    verbose: bool = False


class DownloadReport(BaseModel):
    """Outcome of a download session."""

    search_text: str = ""
    total_logs_searched: int = 0
    matching_logs: int = 0
    downloaded_logs: int = 0
    failed_downloads: list[str] = Field(default_factory=list)
    download_path: Path = Path()
    estimated_size: int = 0


@dataclass(slots=True)
class SpaceEstimate:
    """Estimated bytes for a download and whether the disk can hold them."""

    ok: bool = True
    estimated_bytes: int = 0
