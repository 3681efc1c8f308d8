from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from radar.models import SECTION_FIELDS, AnalysisRecord, AnalysisStatus
from radar.orchestrator import AnalysisOrchestrator

BRIEFING = "\n\n".join(
    f"{label}: {label.title()} details for the competitor."
    for label in SECTION_FIELDS.values()
)


class FakeStorage:
    """In-memory stand-in for AnalysisStorage."""

    def __init__(self, events: Optional[List[str]] = None):
        self.records: Dict[str, AnalysisRecord] = {}
        self.updates: List[Dict[str, Any]] = []
        self.events = events if events is not None else []

    def insert_analysis(self, owner_id, url, status=AnalysisStatus.PROCESSING):
        self.events.append("insert")
        record = AnalysisRecord(
            id=str(len(self.records) + 1),
            owner_id=owner_id,
            url=url,
            status=status,
            created_at="2024-05-01T12:00:00+00:00",
        )
        self.records[record.id] = record
        return record

    def update_analysis(self, analysis_id, fields):
        self.events.append("update")
        self.updates.append(dict(fields))
        record = replace(self.records[analysis_id], **fields)
        self.records[analysis_id] = record
        return record

    def get_analysis(self, analysis_id, owner_id):
        record = self.records.get(analysis_id)
        if record is None or record.owner_id != owner_id:
            return None
        return record

    def list_analyses(self, owner_id, limit=100):
        rows = [
            {"id": r.id, "url": r.url, "status": r.status.value, "created_at": r.created_at}
            for r in self.records.values()
            if r.owner_id == owner_id
        ]
        return list(reversed(rows))[:limit]


@pytest.fixture
def events() -> List[str]:
    return []


@pytest.fixture
def storage(events) -> FakeStorage:
    return FakeStorage(events)


@pytest.fixture
def reachability(events) -> MagicMock:
    checker = MagicMock()
    checker.check.side_effect = lambda url: events.append("head") or 200
    return checker


@pytest.fixture
def crawler(events) -> MagicMock:
    def crawl(url, instructions):
        events.append("crawl")
        return {
            "base_url": url,
            "results": [{"url": f"{url}/page-{i}", "raw_content": f"page {i}"} for i in range(3)],
        }

    client = MagicMock()
    client.crawl.side_effect = crawl
    return client


@pytest.fixture
def summarizer(events) -> MagicMock:
    def summarize(url, payload):
        events.append("summarize")
        return BRIEFING

    client = MagicMock()
    client.summarize.side_effect = summarize
    return client


@pytest.fixture
def orchestrator(storage, reachability, crawler, summarizer) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(
        storage=storage,
        reachability=reachability,
        crawler=crawler,
        summarizer=summarizer,
        crawl_instructions="products and news",
        max_crawl_results=10,
    )
