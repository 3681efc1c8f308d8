"""
Competition Radar - Prompt Versioning.

Manages versioned prompt templates so prompts can be iterated on
systematically instead of editing strings in code.

HOW IT WORKS:
    1. Prompts are stored as versioned templates (v1, v2, ...)
    2. The active version is set via PROMPT_VERSION env var
    3. Each version is a complete prompt with {placeholders}

USAGE:
    from prompt_manager import prompt_manager

    prompt = prompt_manager.get_prompt(
        "competitor_summary",
        url="https://example.com",
        crawl_payload=payload_json,
    )
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Prompt Templates Registry
# =============================================================================

PROMPTS: dict[str, dict[str, dict[str, str]]] = {
    # -----------------------------------------------------------------
    # COMPETITOR SUMMARY (seven labeled sections)
    # -----------------------------------------------------------------
    "competitor_summary": {
        "v1": {
            "system": (
                "You are a competitive intelligence analyst.\n"
                "You write concise, factual briefings about companies using only "
                "the website content you are given."
            ),
            "user": (
                "Analyze the following information crawled from the website {url}:\n\n"
                "{crawl_payload}\n\n"
                "Write your analysis as exactly seven sections, in this order:\n\n"
                "SUMMARY: what the company does, in a short paragraph.\n"
                "DIRECTION: its current strategic direction and focus.\n"
                "COMPLIANCE: compliance posture and notable legal or regulatory details.\n"
                "NEW LAUNCHES: recently launched or announced products and features.\n"
                "FLAGSHIP PRODUCT: the company's main product and why it matters.\n"
                "UNIQUE FINDINGS: other interesting or unusual findings.\n"
                "SENTIMENT SUMMARY: how customers and the market appear to perceive the company.\n\n"
                "Formatting rules:\n"
                "- Start each section with its heading in uppercase exactly as written "
                "above, followed by a colon and the section text.\n"
                "- Separate sections with one blank line.\n"
                "- Do not add any other headings, titles, or introductions.\n"
                "- Do not use bullet points, numbered lists, or markdown formatting.\n"
                "- If the content says nothing about a section, write 'No information found.'"
            ),
        },
    },
    # -----------------------------------------------------------------
    # SOCIAL SENTIMENT (BrightData post titles)
    # -----------------------------------------------------------------
    "sentiment_summary": {
        "v1": {
            "system": (
                "You summarize public sentiment from social media posts."
            ),
            "user": (
                "Give me the sentiment on these phrases and sentences. Say whether "
                "customers like them or not, and what the company is doing right or "
                "wrong. Limit it to {max_sentences} sentences.\n\n"
                "{titles}"
            ),
        },
    },
}


class PromptManager:
    """
    Manages versioned prompt templates.

    Loads the active version from config and allows overrides per-request.
    """

    def __init__(self, default_version: str = "v1") -> None:
        self.default_version = default_version

    def get_prompt(
        self,
        prompt_name: str,
        version: str | None = None,
        **kwargs: Any,
    ) -> dict[str, str]:
        """
        Get a formatted prompt by name and version.

        Args:
            prompt_name: Name of the prompt template (e.g., "competitor_summary")
            version: Version to use (e.g., "v1"). Defaults to active version.
            **kwargs: Values to fill into the template placeholders.

        Returns:
            Dict with "system" and "user" keys containing formatted prompts.
        """
        version = version or self.default_version

        templates = PROMPTS.get(prompt_name)
        if templates is None:
            raise ValueError(f"Unknown prompt: {prompt_name}")

        version_templates = templates.get(version)
        if version_templates is None:
            # Fall back to v1
            version_templates = templates.get("v1")
            if version_templates is None:
                raise ValueError(f"No templates found for {prompt_name}")

        # Format with kwargs, using 'N/A' for missing values
        safe_kwargs = _safe_format_args(kwargs)

        return {
            "system": version_templates["system"].format_map(safe_kwargs),
            "user": version_templates["user"].format_map(safe_kwargs),
        }

    def list_prompts(self) -> dict[str, list[str]]:
        """List all available prompts and their versions."""
        return {name: list(versions.keys()) for name, versions in PROMPTS.items()}

    def get_version(self) -> str:
        """Get the currently active prompt version."""
        return self.default_version


class _SafeDict(dict):
    """Dict that returns 'N/A' for missing keys instead of raising KeyError."""

    def __missing__(self, key: str) -> str:
        return "N/A"


def _safe_format_args(kwargs: dict[str, Any]) -> _SafeDict:
    """Wrap kwargs so missing template vars get 'N/A' instead of errors."""
    return _SafeDict(kwargs)


# Singleton
try:
    from config import settings
    prompt_manager = PromptManager(default_version=settings.prompt_version)
except Exception:
    prompt_manager = PromptManager(default_version="v1")
