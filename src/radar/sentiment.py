"""
BrightData-backed social sentiment collection.

A collection is triggered for a list of keywords, BrightData assembles a
snapshot asynchronously, and once ready the post titles are summarized by
the LLM.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, List, Optional

import requests
from tenacity import (
    Retrying,
    RetryError,
    stop_after_attempt,
    wait_fixed,
    retry_if_result,
    before_sleep_log
)

from logging_config import get_logger
from metrics import PROVIDER_ERRORS, PROVIDER_LATENCY
from radar.errors import ProviderError, ValidationError
from radar.summarizer import CompetitorSummarizer

logger = get_logger(__name__)

MAX_SENTIMENT_SENTENCES = 20


def extract_titles(data: Any) -> List[str]:
    """
    Collect post titles from a snapshot.

    Takes the `title` of every object-valued entry (list items or dict
    values) plus a top-level `title`, in that order.
    """
    titles: List[str] = []
    if isinstance(data, list):
        entries = data
    elif isinstance(data, dict):
        entries = list(data.values())
    else:
        return titles

    for entry in entries:
        if isinstance(entry, dict) and entry.get("title"):
            titles.append(str(entry["title"]))

    if isinstance(data, dict) and data.get("title"):
        titles.append(str(data["title"]))
    return titles


class SentimentCollector:
    """Triggers BrightData keyword collections and summarizes the results."""

    def __init__(
        self,
        summarizer: CompetitorSummarizer,
        api_key: Optional[str] = None,
        api_url: str = "https://api.brightdata.com/datasets/v3",
        dataset_id: str = "gd_lvz8ah06191smkebj4",
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            summarizer: LLM client used for the sentiment summary
            api_key: BrightData API key (defaults to BRIGHTDATA_API_KEY env var)
            api_url: BrightData datasets API base URL
            dataset_id: Dataset to collect from
            timeout: HTTP timeout in seconds
            session: Optional requests session

        Raises:
            ValueError: If API key is not provided
        """
        self.api_key = api_key or os.getenv("BRIGHTDATA_API_KEY")
        if not self.api_key:
            raise ValueError("BRIGHTDATA_API_KEY environment variable not set")

        self.summarizer = summarizer
        self.api_url = api_url.rstrip("/")
        self.dataset_id = dataset_id
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def trigger_collection(
        self,
        keywords: List[str],
        date_range: str = "Past year",
        num_of_posts: int = 30,
        sort_by: str = "Hot",
    ) -> str:
        """
        Start a keyword discovery collection.

        Returns:
            The BrightData snapshot id

        Raises:
            ValidationError: If no non-blank keyword is given
            ProviderError: If BrightData rejects the request
        """
        cleaned = [k.strip() for k in keywords if k and k.strip()]
        if not cleaned:
            raise ValidationError("At least one keyword is required")

        body = [
            {"keyword": k, "date": date_range, "num_of_posts": num_of_posts, "sort_by": sort_by}
            for k in cleaned
        ]
        params = {
            "dataset_id": self.dataset_id,
            "include_errors": "true",
            "type": "discover_new",
            "discover_by": "keyword",
        }

        start = time.time()
        try:
            response = self.session.post(
                f"{self.api_url}/trigger",
                params=params,
                json=body,
                headers=self._headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            snapshot_id = response.json().get("snapshot_id")
        except (requests.exceptions.RequestException, ValueError) as e:
            PROVIDER_ERRORS.labels(provider="brightdata", error_type=type(e).__name__).inc()
            logger.error("sentiment_trigger_failed", keywords=cleaned, error=str(e))
            raise ProviderError(f"BrightData API error: {e}", provider="brightdata") from e
        finally:
            PROVIDER_LATENCY.labels(provider="brightdata", operation="trigger").observe(
                time.time() - start
            )

        if not snapshot_id:
            raise ProviderError("BrightData returned no snapshot id", provider="brightdata")

        logger.info("sentiment_triggered", snapshot_id=snapshot_id, keywords=cleaned)
        return snapshot_id

    def fetch_snapshot(self, snapshot_id: str) -> Optional[Any]:
        """
        Download a snapshot.

        Returns:
            Parsed snapshot JSON, or None if it is not ready yet

        Raises:
            ProviderError: On a transport failure or unreadable body
        """
        start = time.time()
        try:
            response = self.session.get(
                f"{self.api_url}/snapshot/{snapshot_id}",
                params={"format": "json"},
                headers=self._headers,
                timeout=self.timeout,
            )
            if not response.ok:
                logger.info(
                    "sentiment_snapshot_not_ready",
                    snapshot_id=snapshot_id,
                    status_code=response.status_code,
                )
                return None
            return response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            PROVIDER_ERRORS.labels(provider="brightdata", error_type=type(e).__name__).inc()
            logger.error("sentiment_snapshot_failed", snapshot_id=snapshot_id, error=str(e))
            raise ProviderError(f"BrightData API error: {e}", provider="brightdata") from e
        finally:
            PROVIDER_LATENCY.labels(provider="brightdata", operation="snapshot").observe(
                time.time() - start
            )

    def wait_for_snapshot(self, snapshot_id: str, attempts: int = 10, wait_seconds: float = 15) -> Any:
        """
        Poll until the snapshot is ready.

        Raises:
            ProviderError: If the snapshot is still not ready after `attempts` polls
        """
        retryer = Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_fixed(wait_seconds),
            retry=retry_if_result(lambda data: data is None),
            before_sleep=before_sleep_log(logging.getLogger(__name__), logging.INFO),
        )
        try:
            return retryer(self.fetch_snapshot, snapshot_id)
        except RetryError as e:
            raise ProviderError(
                f"Snapshot {snapshot_id} not ready after {attempts} attempts",
                provider="brightdata",
            ) from e

    def summarize_sentiment(self, titles: List[str]) -> str:
        """
        Ask the LLM what customers think, based on post titles.

        Raises:
            ProviderError: If there are no titles or the LLM call fails
        """
        if not titles:
            raise ProviderError("No titles found in the collected data", provider="brightdata")

        prompt = self.summarizer.prompts.get_prompt(
            "sentiment_summary",
            titles=" ".join(titles),
            max_sentences=MAX_SENTIMENT_SENTENCES,
        )
        return self.summarizer.generate(prompt["user"], system_prompt=prompt["system"])
