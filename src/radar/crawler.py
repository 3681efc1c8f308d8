"""
Tavily-based web crawler for competitor intelligence.
Crawls a competitor website guided by natural-language instructions.
"""

from __future__ import annotations

import os
import re
import time
from typing import Any, Dict, Iterable, Optional, Tuple

from tavily import TavilyClient

from logging_config import get_logger
from metrics import PROVIDER_ERRORS, PROVIDER_LATENCY
from radar.errors import ProviderError, ProviderUnsupportedError

logger = get_logger(__name__)

# Only codes the error text presents as an HTTP status, never bare numbers from URLs.
_STATUS_CODE_RE = re.compile(
    r"\bstatus(?: code)?:? ?(\d{3})\b|(?<!\d)(\d{3}) (?:Client|Server) Error\b",
    re.IGNORECASE,
)


def error_status_code(exc: BaseException, candidates: Iterable[int]) -> Optional[int]:
    """
    Find which of `candidates` a provider error carries, if any.

    Looks at a `status_code` attribute, an attached `response.status_code`,
    and finally a status phrase in the error text, such as "status code 432"
    or "432 Client Error".
    """
    candidates = set(candidates)
    for code in (
        getattr(exc, "status_code", None),
        getattr(getattr(exc, "response", None), "status_code", None),
    ):
        if isinstance(code, int) and code in candidates:
            return code

    for match in _STATUS_CODE_RE.finditer(str(exc)):
        code = int(match.group(1) or match.group(2))
        if code in candidates:
            return code
    return None


def cap_results(payload: Dict[str, Any], max_items: int) -> Tuple[Dict[str, Any], int]:
    """
    Truncate the crawl `results` list to at most `max_items` entries.

    The input payload is left untouched; the kept items keep their order.

    Returns:
        Tuple of (capped payload copy, number of dropped items)
    """
    results = payload.get("results")
    if not isinstance(results, list) or len(results) <= max_items:
        return dict(payload), 0

    capped = dict(payload)
    capped["results"] = results[:max_items]
    return capped, len(results) - max_items


class CompetitorCrawler:
    """Crawls competitor websites using the Tavily crawl API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        unsupported_codes: Iterable[int] = (432,),
        client: Optional[Any] = None,
    ):
        """
        Initialize Tavily crawler.

        Args:
            api_key: Tavily API key (defaults to TAVILY_API_KEY env var)
            unsupported_codes: Provider status codes meaning the site cannot be crawled
            client: Pre-built Tavily client (mainly for tests)

        Raises:
            ValueError: If API key is not provided and no client is given
        """
        if client is None:
            api_key = api_key or os.getenv("TAVILY_API_KEY")
            if not api_key:
                raise ValueError("TAVILY_API_KEY environment variable not set")
            client = TavilyClient(api_key=api_key)

        self.client = client
        self.unsupported_codes = frozenset(unsupported_codes)
        logger.info("crawler_initialized", unsupported_codes=sorted(self.unsupported_codes))

    def crawl(self, url: str, instructions: str) -> Dict[str, Any]:
        """
        Crawl a competitor site.

        Args:
            url: Site to crawl
            instructions: Natural-language guidance on what content to prioritize

        Returns:
            The raw Tavily response, e.g.
            {
                'base_url': str,
                'results': [{'url': str, 'raw_content': str}, ...],
                'response_time': float
            }

        Raises:
            ProviderUnsupportedError: If Tavily reports it cannot handle the site
            ProviderError: On any other error or an empty result
        """
        start = time.time()
        logger.info("crawl_started", url=url)

        try:
            response = self.client.crawl(url, instructions=instructions)
        except Exception as e:
            code = error_status_code(e, self.unsupported_codes)
            if code is not None:
                PROVIDER_ERRORS.labels(provider="tavily", error_type="unsupported").inc()
                logger.warning("crawl_unsupported", url=url, status_code=code, error=str(e))
                raise ProviderUnsupportedError(
                    f"Tavily cannot crawl this site (status {code}): {e}",
                    provider="tavily",
                ) from e

            PROVIDER_ERRORS.labels(provider="tavily", error_type=type(e).__name__).inc()
            logger.error("crawl_failed", url=url, error=str(e), error_type=type(e).__name__)
            raise ProviderError(f"Tavily API error: {e}", provider="tavily") from e
        finally:
            PROVIDER_LATENCY.labels(provider="tavily", operation="crawl").observe(
                time.time() - start
            )

        if not response:
            PROVIDER_ERRORS.labels(provider="tavily", error_type="empty").inc()
            logger.error("crawl_empty", url=url)
            raise ProviderError("No data returned from Tavily API", provider="tavily")

        results = response.get("results") if isinstance(response, dict) else None
        if not results:
            PROVIDER_ERRORS.labels(provider="tavily", error_type="empty").inc()
            logger.error("crawl_empty", url=url)
            raise ProviderError("Tavily returned no crawl results", provider="tavily")

        logger.info("crawl_complete", url=url, results=len(results))
        return response
