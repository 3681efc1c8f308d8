"""
Competition Radar - Centralized Configuration Management.

Uses Pydantic BaseSettings to load configuration from environment variables
and .env files with type safety, validation, and sensible defaults.

Provider credentials are optional here; the client that needs a key raises
when it is constructed without one.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CRAWL_INSTRUCTIONS = (
    "Company overview and what the company does, products and the flagship "
    "product, news and latest product launches, compliance documents, "
    "privacy policy and terms of service, and customer reviews or other "
    "sentiment signals"
)


class Settings(BaseSettings):
    """
    All configuration for Competition Radar in one place.

    Values are loaded in this priority order:
    1. Environment variables (highest priority)
    2. .env file
    3. Default values defined here (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Don't fail on unknown env vars
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # App
    # -------------------------------------------------------------------------
    app_env: str = Field(default="dev", alias="APP_ENV")
    app_name: str = Field(default="competition-radar", alias="APP_NAME")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # -------------------------------------------------------------------------
    # Database (Supabase)
    # -------------------------------------------------------------------------
    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_key: str | None = Field(default=None, alias="SUPABASE_KEY")
    supabase_service_role_key: str | None = Field(
        default=None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    analysis_table: str = Field(default="analysis", alias="ANALYSIS_TABLE")

    # -------------------------------------------------------------------------
    # Crawling (Tavily)
    # -------------------------------------------------------------------------
    tavily_api_key: str | None = Field(default=None, alias="TAVILY_API_KEY")
    crawl_instructions: str = Field(
        default=DEFAULT_CRAWL_INSTRUCTIONS, alias="CRAWL_INSTRUCTIONS"
    )
    crawl_unsupported_codes: str = Field(
        default="432", alias="CRAWL_UNSUPPORTED_CODES"
    )
    max_crawl_results: int = Field(default=10, ge=1, alias="MAX_CRAWL_RESULTS")
    reachability_timeout_sec: float = Field(
        default=5.0, gt=0, alias="REACHABILITY_TIMEOUT_SEC"
    )

    # -------------------------------------------------------------------------
    # LLM (Gemini through LiteLLM)
    # -------------------------------------------------------------------------
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    summary_model: str = Field(
        default="gemini/gemini-2.0-flash", alias="SUMMARY_MODEL"
    )
    llm_temperature: float = Field(default=0.3, alias="LLM_TEMPERATURE")
    llm_max_tokens: int = Field(default=2000, alias="LLM_MAX_TOKENS")
    llm_timeout_sec: float | None = Field(default=None, alias="LLM_TIMEOUT_SEC")

    # -------------------------------------------------------------------------
    # Social sentiment (BrightData)
    # -------------------------------------------------------------------------
    brightdata_api_key: str | None = Field(default=None, alias="BRIGHTDATA_API_KEY")
    brightdata_api_url: str = Field(
        default="https://api.brightdata.com/datasets/v3", alias="BRIGHTDATA_API_URL"
    )
    brightdata_dataset_id: str = Field(
        default="gd_lvz8ah06191smkebj4", alias="BRIGHTDATA_DATASET_ID"
    )
    sentiment_poll_attempts: int = Field(default=10, ge=1, alias="SENTIMENT_POLL_ATTEMPTS")
    sentiment_poll_wait_sec: int = Field(default=15, ge=0, alias="SENTIMENT_POLL_WAIT_SEC")

    # -------------------------------------------------------------------------
    # Metrics
    # -------------------------------------------------------------------------
    metrics_enabled: bool = Field(default=True, alias="METRICS_ENABLED")

    # -------------------------------------------------------------------------
    # Prompt Versioning
    # -------------------------------------------------------------------------
    prompt_version: str = Field(default="v1", alias="PROMPT_VERSION")

    @property
    def unsupported_status_codes(self) -> set[int]:
        """Parse the crawler 'unsupported site' status codes into a set."""
        codes = set()
        for part in self.crawl_unsupported_codes.split(","):
            part = part.strip()
            if part.isdigit():
                codes.add(int(part))
        return codes


# Singleton - created once, imported everywhere
settings = Settings()
