"""Tests for the Supabase analysis storage using a mocked client chain."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from radar.errors import PersistenceError
from radar.models import AnalysisStatus
from radar.storage import LIST_COLUMNS, AnalysisStorage


ROW = {
    "id": 42,
    "user_id": "user-1",
    "url": "https://example.com",
    "status": "processing",
    "created_at": "2024-05-01T12:00:00+00:00",
}


def _storage(client=None):
    return AnalysisStorage(client=client or MagicMock(), table="analysis")


def test_requires_credentials(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
    with pytest.raises(ValueError):
        AnalysisStorage()


class TestInsert:
    def test_insert_returns_record(self):
        client = MagicMock()
        client.table.return_value.insert.return_value.execute.return_value = SimpleNamespace(data=[ROW])

        record = _storage(client).insert_analysis("user-1", "https://example.com")

        client.table.assert_called_with("analysis")
        inserted = client.table.return_value.insert.call_args.args[0]
        assert inserted["user_id"] == "user-1"
        assert inserted["url"] == "https://example.com"
        assert inserted["status"] == "processing"
        assert inserted["created_at"]
        assert record.id == "42"
        assert record.owner_id == "user-1"
        assert record.status == AnalysisStatus.PROCESSING

    def test_insert_exception(self):
        client = MagicMock()
        client.table.return_value.insert.return_value.execute.side_effect = RuntimeError("down")
        with pytest.raises(PersistenceError):
            _storage(client).insert_analysis("user-1", "https://example.com")

    def test_insert_without_row(self):
        client = MagicMock()
        client.table.return_value.insert.return_value.execute.return_value = SimpleNamespace(data=[])
        with pytest.raises(PersistenceError):
            _storage(client).insert_analysis("user-1", "https://example.com")


class TestUpdate:
    def test_status_enum_stored_as_string(self):
        client = MagicMock()
        update = client.table.return_value.update
        update.return_value.eq.return_value.execute.return_value = SimpleNamespace(
            data=[dict(ROW, status="failed", error_message="boom")]
        )

        record = _storage(client).update_analysis(
            "42", {"status": AnalysisStatus.FAILED, "error_message": "boom"}
        )

        assert update.call_args.args[0] == {"status": "failed", "error_message": "boom"}
        update.return_value.eq.assert_called_once_with("id", "42")
        assert record.status == AnalysisStatus.FAILED
        assert record.error_message == "boom"

    def test_update_without_row_is_persistence_error(self):
        client = MagicMock()
        client.table.return_value.update.return_value.eq.return_value.execute.return_value = SimpleNamespace(data=[])
        with pytest.raises(PersistenceError, match="no row updated"):
            _storage(client).update_analysis("42", {"status": "failed"})

    def test_update_exception(self):
        client = MagicMock()
        client.table.return_value.update.return_value.eq.return_value.execute.side_effect = RuntimeError("down")
        with pytest.raises(PersistenceError):
            _storage(client).update_analysis("42", {"status": "failed"})


class TestReads:
    def test_get_scoped_to_owner(self):
        client = MagicMock()
        select = client.table.return_value.select
        chain = select.return_value.eq.return_value.eq.return_value.limit.return_value
        chain.execute.return_value = SimpleNamespace(data=[ROW])

        record = _storage(client).get_analysis("42", "user-1")

        select.assert_called_once_with("*")
        select.return_value.eq.assert_called_once_with("id", "42")
        select.return_value.eq.return_value.eq.assert_called_once_with("user_id", "user-1")
        assert record.url == "https://example.com"

    def test_get_missing(self):
        client = MagicMock()
        chain = client.table.return_value.select.return_value.eq.return_value.eq.return_value.limit.return_value
        chain.execute.return_value = SimpleNamespace(data=[])
        assert _storage(client).get_analysis("42", "user-2") is None

    def test_list_most_recent_first(self):
        client = MagicMock()
        select = client.table.return_value.select
        ordered = select.return_value.eq.return_value.order
        ordered.return_value.limit.return_value.execute.return_value = SimpleNamespace(data=[ROW])

        rows = _storage(client).list_analyses("user-1", limit=5)

        select.assert_called_once_with(LIST_COLUMNS)
        ordered.assert_called_once_with("created_at", desc=True)
        ordered.return_value.limit.assert_called_once_with(5)
        assert rows == [ROW]

    def test_list_failure(self):
        client = MagicMock()
        client.table.return_value.select.side_effect = RuntimeError("down")
        with pytest.raises(PersistenceError):
            _storage(client).list_analyses("user-1")

    def test_ensure_schema(self):
        client = MagicMock()
        assert _storage(client).ensure_schema() is True
        client.table.return_value.select.side_effect = RuntimeError("missing table")
        assert _storage(client).ensure_schema() is False
