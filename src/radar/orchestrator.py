"""
Competition Radar - Analysis Orchestrator.

Runs one competitor analysis end to end:
1. Validate the submitted domain
2. Create a `processing` record
3. Check the site answers a HEAD request
4. Crawl it with Tavily
5. Cap the crawl payload
6. Summarize with Gemini
7. Extract the seven labeled sections
8. Store the terminal status
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import structlog

from logging_config import get_logger
from metrics import ANALYSES, ANALYSIS_DURATION, CRAWL_RESULTS_DROPPED
from radar.crawler import CompetitorCrawler, cap_results
from radar.errors import (
    ProviderError,
    ProviderUnsupportedError,
    UnreachableError,
)
from radar.models import (
    SECTION_FIELDS,
    AnalysisOutcome,
    AnalysisRecord,
    AnalysisStatus,
)
from radar.reachability import ReachabilityChecker
from radar.sections import extract_sections
from radar.storage import AnalysisStorage, utc_now
from radar.summarizer import CompetitorSummarizer
from radar.validation import validate_domain, validate_owner

logger = get_logger(__name__)

COMPLETED_MESSAGE = "Analysis completed successfully"


class AnalysisOrchestrator:
    """
    Owns the decision logic and every status transition of an analysis.

    All collaborators are injected; `from_settings` builds the real ones.
    """

    def __init__(
        self,
        storage: AnalysisStorage,
        reachability: ReachabilityChecker,
        crawler: CompetitorCrawler,
        summarizer: CompetitorSummarizer,
        crawl_instructions: str,
        max_crawl_results: int = 10,
    ):
        self.storage = storage
        self.reachability = reachability
        self.crawler = crawler
        self.summarizer = summarizer
        self.crawl_instructions = crawl_instructions
        self.max_crawl_results = max_crawl_results

    @classmethod
    def from_settings(cls, cfg: Optional[Any] = None) -> "AnalysisOrchestrator":
        """Build an orchestrator with real provider clients from configuration."""
        if cfg is None:
            from config import settings as cfg

        return cls(
            storage=AnalysisStorage(
                url=cfg.supabase_url,
                key=cfg.supabase_service_role_key,
                table=cfg.analysis_table,
            ),
            reachability=ReachabilityChecker(timeout=cfg.reachability_timeout_sec),
            crawler=CompetitorCrawler(
                api_key=cfg.tavily_api_key,
                unsupported_codes=cfg.unsupported_status_codes,
            ),
            summarizer=CompetitorSummarizer(
                model=cfg.summary_model,
                gemini_key=cfg.gemini_api_key,
                temperature=cfg.llm_temperature,
                max_tokens=cfg.llm_max_tokens,
                timeout=cfg.llm_timeout_sec,
            ),
            crawl_instructions=cfg.crawl_instructions,
            max_crawl_results=cfg.max_crawl_results,
        )

    def run_analysis(self, owner_id: str, raw_domain: str) -> AnalysisOutcome:
        """
        Analyze a competitor domain on behalf of `owner_id`.

        Errors before the record exists propagate with no side effect.
        Provider and reachability errors afterwards end up as the record's
        terminal status and the returned message.

        Raises:
            AuthError: If no owner is given
            ValidationError: If the domain is not a well-formed URL
            PersistenceError: If a record write fails
        """
        owner_id = validate_owner(owner_id)
        url = validate_domain(raw_domain)

        record = self.storage.insert_analysis(owner_id, url, AnalysisStatus.PROCESSING)

        start = time.time()
        with structlog.contextvars.bound_contextvars(analysis_id=record.id, url=url):
            try:
                fields = self._analyze(url)
            except ProviderUnsupportedError as e:
                return self._finish(record, AnalysisStatus.UNSUPPORTED, str(e))
            except (UnreachableError, ProviderError) as e:
                return self._finish(record, AnalysisStatus.FAILED, str(e))
            except Exception as e:
                self._finish(record, AnalysisStatus.FAILED, f"Unexpected error: {e}")
                raise
            finally:
                ANALYSIS_DURATION.observe(time.time() - start)

            return self._finish(record, AnalysisStatus.COMPLETED, COMPLETED_MESSAGE, fields)

    def _analyze(self, url: str) -> Dict[str, str]:
        """Run the provider steps and return the extracted record fields."""
        self.reachability.check(url)

        crawl_response = self.crawler.crawl(url, self.crawl_instructions)

        payload, dropped = cap_results(crawl_response, self.max_crawl_results)
        if dropped:
            CRAWL_RESULTS_DROPPED.inc(dropped)
            logger.info("crawl_results_capped", kept=self.max_crawl_results, dropped=dropped)

        text = self.summarizer.summarize(url, payload)

        sections = extract_sections(text, list(SECTION_FIELDS.values()))
        missing = [label for label, value in sections.items() if not value]
        if missing:
            logger.warning("sections_missing", missing=missing)

        return {name: sections[label] for name, label in SECTION_FIELDS.items()}

    def _finish(
        self,
        record: AnalysisRecord,
        status: AnalysisStatus,
        message: str,
        sections: Optional[Dict[str, str]] = None,
    ) -> AnalysisOutcome:
        """Write the terminal status and return the outcome for the caller."""
        if not record.status.can_transition_to(status):
            raise ValueError(f"Illegal status transition {record.status.value} -> {status.value}")

        fields: Dict[str, Any] = {"status": status}
        if status == AnalysisStatus.COMPLETED:
            fields.update(sections or {})
            fields["completed_at"] = utc_now()
        else:
            fields["error_message"] = message

        updated = self.storage.update_analysis(record.id, fields)

        ANALYSES.labels(status=status.value).inc()
        log = logger.info if status == AnalysisStatus.COMPLETED else logger.warning
        log("analysis_finished", status=status.value, message=message)

        return AnalysisOutcome(record=updated, message=message)
