"""Domain submission validation."""

from __future__ import annotations

from typing import Any

from pydantic import AnyHttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from radar.errors import AuthError, ValidationError

_URL_ADAPTER = TypeAdapter(AnyHttpUrl)


def validate_domain(raw_domain: Any) -> str:
    """
    Check that a submitted domain is a well-formed absolute http(s) URL.

    The submitted text is returned stripped but otherwise unchanged, so the
    stored record keeps what the user typed.

    Raises:
        ValidationError: If the value is empty, not a string, or not a URL
    """
    if not isinstance(raw_domain, str) or not raw_domain.strip():
        raise ValidationError("Domain is required")

    domain = raw_domain.strip()
    try:
        parsed = _URL_ADAPTER.validate_python(domain)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid domain format. Must be a valid URL: {domain!r}"
        ) from exc

    if not parsed.host:
        raise ValidationError(f"Invalid domain format. Missing host: {domain!r}")

    return domain


def validate_owner(owner_id: Any) -> str:
    """Reject calls without an authenticated principal."""
    if owner_id is None or not str(owner_id).strip():
        raise AuthError("Unauthorized")
    return str(owner_id).strip()
