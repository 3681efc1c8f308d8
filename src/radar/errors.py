"""Exception types raised by the analysis pipeline and its providers."""

from __future__ import annotations

from typing import Optional


class RadarError(Exception):
    """Base class for all Competition Radar errors."""


class ValidationError(RadarError):
    """The submitted domain is not a well-formed absolute URL."""


class AuthError(RadarError):
    """No authenticated principal is attached to the request."""


class UnreachableError(RadarError):
    """The target site failed the reachability check."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderError(RadarError):
    """A crawling, summarization or sentiment provider call failed."""

    def __init__(self, message: str, provider: str = "unknown"):
        super().__init__(message)
        self.provider = provider


class ProviderUnsupportedError(ProviderError):
    """The crawler cannot handle this site at all."""


class PersistenceError(RadarError):
    """A record store write (or read) failed."""
