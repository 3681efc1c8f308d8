"""
Competitor summarizer using LiteLLM.
Sends crawl data to Gemini and returns the free-text briefing.
"""

from __future__ import annotations

import json
import os
import time
from typing import Any, Dict, Optional, Tuple

import litellm
from litellm import completion

from logging_config import get_logger
from metrics import LLM_TOKENS, PROVIDER_ERRORS, PROVIDER_LATENCY
from prompt_manager import PromptManager, prompt_manager as default_prompts
from radar.errors import ProviderError

logger = get_logger(__name__)

# Configure LiteLLM
litellm.set_verbose = False


class CompetitorSummarizer:
    """
    Generative-text client for competitor briefings.

    One model, one call: there is no fallback chain and no retry.
    """

    def __init__(
        self,
        model: str = "gemini/gemini-2.0-flash",
        gemini_key: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 2000,
        timeout: Optional[float] = None,
        prompts: Optional[PromptManager] = None,
    ):
        """
        Initialize summarizer.

        Args:
            model: LiteLLM model name
            gemini_key: Google Gemini API key (defaults to GEMINI_API_KEY env var)
            temperature: Sampling temperature
            max_tokens: Completion token limit
            timeout: Optional request timeout in seconds (None leaves it to the provider)
            prompts: Prompt registry (defaults to the configured singleton)

        Raises:
            ValueError: If a Gemini model is configured without an API key
        """
        self.model = model
        self.gemini_key = gemini_key or os.getenv("GEMINI_API_KEY")
        if model.startswith("gemini/") and not self.gemini_key:
            raise ValueError("GEMINI_API_KEY environment variable not set")

        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.prompts = prompts or default_prompts

        logger.info("summarizer_initialized", model=model)

    def generate(self, prompt: str, system_prompt: str = "") -> str:
        """
        Run a single completion.

        Returns:
            The response text (never empty)

        Raises:
            ProviderError: If the call fails or returns no text
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs: Dict[str, Any] = dict(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        if self.model.startswith("gemini/") and self.gemini_key:
            kwargs["api_key"] = self.gemini_key
        if self.timeout:
            kwargs["timeout"] = self.timeout

        start = time.time()
        try:
            response = completion(**kwargs)
            content = response.choices[0].message.content
        except Exception as e:
            PROVIDER_ERRORS.labels(provider="gemini", error_type=type(e).__name__).inc()
            logger.error("llm_failed", model=self.model, error=str(e))
            raise ProviderError(f"Gemini API error: {e}", provider="gemini") from e
        finally:
            PROVIDER_LATENCY.labels(provider="gemini", operation="generate").observe(
                time.time() - start
            )

        input_tokens, output_tokens = _token_usage(response)
        LLM_TOKENS.labels(direction="input", model=self.model).inc(input_tokens)
        LLM_TOKENS.labels(direction="output", model=self.model).inc(output_tokens)

        if not content or not content.strip():
            PROVIDER_ERRORS.labels(provider="gemini", error_type="empty").inc()
            logger.error("llm_empty_response", model=self.model)
            raise ProviderError("Gemini returned an empty response", provider="gemini")

        logger.info(
            "llm_complete",
            model=self.model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            chars=len(content),
        )
        return content

    def build_summary_prompt(self, url: str, crawl_payload: Dict[str, Any]) -> Dict[str, str]:
        """Embed the (already capped) crawl payload in the seven-section prompt."""
        return self.prompts.get_prompt(
            "competitor_summary",
            url=url,
            crawl_payload=json.dumps(crawl_payload, indent=2, default=str),
        )

    def summarize(self, url: str, crawl_payload: Dict[str, Any]) -> str:
        """Produce the seven-section briefing text for a crawl payload."""
        prompt = self.build_summary_prompt(url, crawl_payload)
        return self.generate(prompt["user"], system_prompt=prompt["system"])


def _token_usage(response: Any) -> Tuple[int, int]:
    """Extract (input, output) token counts from a LiteLLM response."""
    usage = getattr(response, "usage", None)
    if not usage:
        return 0, 0
    if isinstance(usage, dict):
        counts = (usage.get("prompt_tokens"), usage.get("completion_tokens"))
    else:
        counts = (getattr(usage, "prompt_tokens", 0), getattr(usage, "completion_tokens", 0))
    return tuple(c if isinstance(c, int) else 0 for c in counts)
