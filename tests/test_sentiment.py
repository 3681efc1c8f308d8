"""Tests for BrightData sentiment collection."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from radar.errors import ProviderError, ValidationError
from radar.sentiment import MAX_SENTIMENT_SENTENCES, SentimentCollector, extract_titles


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.json.return_value = payload
    if not response.ok:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(str(status_code))
    return response


def _collector(session=None, summarizer=None):
    return SentimentCollector(
        summarizer=summarizer or MagicMock(),
        api_key="bd-key",
        api_url="https://api.brightdata.test/datasets/v3/",
        dataset_id="gd_test",
        session=session or MagicMock(),
    )


class TestExtractTitles:
    def test_list_of_posts(self):
        data = [{"title": "Love it"}, {"body": "no title"}, {"title": "Too pricey"}, "junk"]
        assert extract_titles(data) == ["Love it", "Too pricey"]

    def test_dict_values_and_top_level_title(self):
        data = {"a": {"title": "First"}, "b": {"title": ""}, "title": "Top"}
        assert extract_titles(data) == ["First", "Top"]

    def test_unusable_payload(self):
        assert extract_titles("nope") == []
        assert extract_titles(None) == []


def test_requires_api_key(monkeypatch):
    monkeypatch.delenv("BRIGHTDATA_API_KEY", raising=False)
    with pytest.raises(ValueError):
        SentimentCollector(summarizer=MagicMock())


class TestTrigger:
    def test_posts_keywords(self):
        session = MagicMock()
        session.post.return_value = _response(payload={"snapshot_id": "s_123"})

        snapshot_id = _collector(session).trigger_collection([" acme ", "", "widgets"])

        assert snapshot_id == "s_123"
        args, kwargs = session.post.call_args
        assert args[0] == "https://api.brightdata.test/datasets/v3/trigger"
        assert kwargs["params"]["dataset_id"] == "gd_test"
        assert kwargs["params"]["discover_by"] == "keyword"
        assert [item["keyword"] for item in kwargs["json"]] == ["acme", "widgets"]
        assert kwargs["headers"] == {"Authorization": "Bearer bd-key"}

    def test_blank_keywords_rejected(self):
        session = MagicMock()
        with pytest.raises(ValidationError):
            _collector(session).trigger_collection(["  ", ""])
        session.post.assert_not_called()

    def test_http_error(self):
        session = MagicMock()
        session.post.return_value = _response(status_code=401)
        with pytest.raises(ProviderError):
            _collector(session).trigger_collection(["acme"])

    def test_missing_snapshot_id(self):
        session = MagicMock()
        session.post.return_value = _response(payload={})
        with pytest.raises(ProviderError):
            _collector(session).trigger_collection(["acme"])


class TestSnapshot:
    def test_not_ready_returns_none(self):
        session = MagicMock()
        session.get.return_value = _response(status_code=404)
        assert _collector(session).fetch_snapshot("s_1") is None

    def test_ready_returns_json(self):
        session = MagicMock()
        session.get.return_value = _response(payload=[{"title": "Great"}])

        assert _collector(session).fetch_snapshot("s_1") == [{"title": "Great"}]
        args, kwargs = session.get.call_args
        assert args[0] == "https://api.brightdata.test/datasets/v3/snapshot/s_1"
        assert kwargs["params"] == {"format": "json"}

    def test_transport_error(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(ProviderError):
            _collector(session).fetch_snapshot("s_1")

    def test_wait_polls_until_ready(self):
        session = MagicMock()
        session.get.side_effect = [
            _response(status_code=202),
            _response(status_code=202),
            _response(payload=[{"title": "Great"}]),
        ]

        data = _collector(session).wait_for_snapshot("s_1", attempts=5, wait_seconds=0)

        assert data == [{"title": "Great"}]
        assert session.get.call_count == 3

    def test_wait_gives_up(self):
        session = MagicMock()
        session.get.return_value = _response(status_code=202)

        with pytest.raises(ProviderError):
            _collector(session).wait_for_snapshot("s_1", attempts=2, wait_seconds=0)
        assert session.get.call_count == 2


class TestSummarize:
    def test_no_titles(self):
        with pytest.raises(ProviderError):
            _collector().summarize_sentiment([])

    def test_uses_sentiment_prompt(self):
        from prompt_manager import PromptManager

        summarizer = MagicMock()
        summarizer.prompts = PromptManager()
        summarizer.generate.return_value = "Customers mostly like it."

        result = _collector(summarizer=summarizer).summarize_sentiment(["Love it", "Too pricey"])

        assert result == "Customers mostly like it."
        prompt = summarizer.generate.call_args.args[0]
        assert "Love it Too pricey" in prompt
        assert f"{MAX_SENTIMENT_SENTENCES} sentences" in prompt
