"""Protocol module smoke test."""

from __future__ import annotations

from sflogs.data import protocols as data_protocols
from sflogs.services import protocols


def test_protocols_module_imports() -> None:
    assert hasattr(protocols, "SearchServiceProtocol")
    assert hasattr(protocols, "DownloadServiceProtocol")
    assert hasattr(protocols, "LogServiceProtocol")
    assert hasattr(data_protocols, "LogStoreProtocol")
