"""
Shared fixtures for unit tests.
"""

import asyncio
import json
from typing import Dict, List, Optional

import pytest

from symbolicator.models.report import ResolvedErrorReport
from symbolicator.services.map_store import MapUnavailable
from symbolicator.services.transport import ReportTransport


class FakeFetcher:
    """In-memory map document source that counts fetches per URL."""

    def __init__(self, documents: Dict[str, str], delay: float = 0.0):
        self.documents = documents
        self.delay = delay
        self.calls: List[str] = []

    async def fetch(self, script_url: str) -> str:
        self.calls.append(script_url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if script_url not in self.documents:
            raise MapUnavailable(script_url, "not found")
        return self.documents[script_url]


class RecordingTransport(ReportTransport):
    """Transport that keeps every report it is sent."""

    def __init__(self):
        self.reports: List[ResolvedErrorReport] = []

    async def send(self, report: ResolvedErrorReport) -> None:
        self.reports.append(report)


def make_map_document(
    mappings: str,
    sources: Optional[List[str]] = None,
    names: Optional[List[str]] = None,
    **extra,
) -> str:
    """Serialize a minimal version 3 source map."""
    document = {
        "version": 3,
        "file": "bundle.min.js",
        "sources": sources if sources is not None else ["a.js"],
        "names": names if names is not None else [],
        "mappings": mappings,
    }
    document.update(extra)
    return json.dumps(document)


@pytest.fixture
def recording_transport() -> RecordingTransport:
    """Create a recording transport."""
    return RecordingTransport()


@pytest.fixture
def fake_fetcher_factory():
    """Factory for FakeFetcher instances."""
    return FakeFetcher


@pytest.fixture
def map_document():
    """Factory for serialized source map documents."""
    return make_map_document
