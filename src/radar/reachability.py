"""
HEAD-request reachability check run before any paid provider call.
"""

from __future__ import annotations

import time
from typing import Optional

import requests

from logging_config import get_logger
from metrics import PROVIDER_ERRORS, PROVIDER_LATENCY
from radar.errors import UnreachableError

logger = get_logger(__name__)


class ReachabilityChecker:
    """Checks that a site answers a HEAD request with a 2xx status."""

    def __init__(self, timeout: float = 5.0, session: Optional[requests.Session] = None):
        """
        Args:
            timeout: Seconds to wait for the HEAD response
            session: Optional requests session to send the request with
        """
        self.timeout = timeout
        self.session = session or requests.Session()

    def check(self, url: str) -> int:
        """
        Send a HEAD request and require a success status.

        Redirects are followed; the final response decides.

        Returns:
            The HTTP status code (always in 200-299)

        Raises:
            UnreachableError: On a non-2xx status or any transport failure
        """
        start = time.time()
        try:
            response = self.session.head(url, timeout=self.timeout, allow_redirects=True)
        except requests.exceptions.Timeout as exc:
            PROVIDER_ERRORS.labels(provider="reachability", error_type="timeout").inc()
            logger.warning("site_unreachable", url=url, reason="timeout", timeout=self.timeout)
            raise UnreachableError(
                f"Failed to access domain: timed out after {self.timeout}s"
            ) from exc
        except requests.exceptions.RequestException as exc:
            PROVIDER_ERRORS.labels(provider="reachability", error_type=type(exc).__name__).inc()
            logger.warning("site_unreachable", url=url, reason=type(exc).__name__, error=str(exc))
            raise UnreachableError(f"Failed to access domain: {exc}") from exc
        finally:
            PROVIDER_LATENCY.labels(provider="reachability", operation="head").observe(
                time.time() - start
            )

        status_code = response.status_code
        if status_code < 200 or status_code >= 300:
            PROVIDER_ERRORS.labels(provider="reachability", error_type="bad_status").inc()
            logger.warning("site_unreachable", url=url, status_code=status_code)
            raise UnreachableError(
                f"Domain returned non-success status code: {status_code}",
                status_code=status_code,
            )

        logger.info("site_reachable", url=url, status_code=status_code)
        return status_code
