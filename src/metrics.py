"""
Competition Radar - Prometheus Metrics.

Exposes quantitative metrics about the analysis pipeline.
Prometheus scrapes the /metrics endpoint of the backend API.

METRICS EXPOSED:
    competitionradar_analyses_total                   - Finished analyses (by terminal status)
    competitionradar_analysis_duration_seconds        - End-to-end pipeline duration
    competitionradar_provider_latency_seconds         - Outbound call latency
    competitionradar_provider_errors_total            - Outbound call errors
    competitionradar_llm_tokens_total                 - Tokens used (input/output)
    competitionradar_crawl_results_dropped_total      - Crawl results discarded by the payload cap

USAGE:
    from metrics import ANALYSES, PROVIDER_LATENCY

    ANALYSES.labels(status="completed").inc()
    PROVIDER_LATENCY.labels(provider="tavily", operation="crawl").observe(4.2)
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST


# =============================================================================
# Pipeline Metrics
# =============================================================================

ANALYSES = Counter(
    "competitionradar_analyses_total",
    "Analyses that reached a terminal status",
    ["status"],  # completed, failed, unsupported
)

ANALYSIS_DURATION = Histogram(
    "competitionradar_analysis_duration_seconds",
    "Total analysis pipeline duration",
    buckets=(1, 2, 5, 10, 30, 60, 120, 300),
)

CRAWL_RESULTS_DROPPED = Counter(
    "competitionradar_crawl_results_dropped_total",
    "Crawl results discarded before summarization",
)

# =============================================================================
# Provider Metrics
# =============================================================================

PROVIDER_LATENCY = Histogram(
    "competitionradar_provider_latency_seconds",
    "Outbound provider call latency",
    ["provider", "operation"],  # provider: reachability, tavily, gemini, brightdata, supabase
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60),
)

PROVIDER_ERRORS = Counter(
    "competitionradar_provider_errors_total",
    "Outbound provider errors",
    ["provider", "error_type"],
)

# =============================================================================
# LLM Metrics
# =============================================================================

LLM_TOKENS = Counter(
    "competitionradar_llm_tokens_total",
    "Total tokens used",
    ["direction", "model"],  # direction: input, output
)


def get_metrics_response() -> tuple[bytes, str]:
    """Generate Prometheus metrics response."""
    return generate_latest(), CONTENT_TYPE_LATEST
