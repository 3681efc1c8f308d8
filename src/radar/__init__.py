"""Competition Radar

Core components of the competitor analysis pipeline:
- crawler: Tavily website crawling
- summarizer: LiteLLM (Gemini) briefings
- sections: heading-based extraction of the briefing
- storage: Supabase persistence of analysis records
- orchestrator: the end-to-end pipeline
- sentiment: BrightData social sentiment
"""

from .errors import (
    RadarError,
    ValidationError,
    AuthError,
    UnreachableError,
    ProviderError,
    ProviderUnsupportedError,
    PersistenceError,
)
from .models import AnalysisRecord, AnalysisOutcome, AnalysisStatus, SECTION_FIELDS
from .sections import extract_sections, render_sections
from .orchestrator import AnalysisOrchestrator

__all__ = [
    "RadarError",
    "ValidationError",
    "AuthError",
    "UnreachableError",
    "ProviderError",
    "ProviderUnsupportedError",
    "PersistenceError",
    "AnalysisRecord",
    "AnalysisOutcome",
    "AnalysisStatus",
    "SECTION_FIELDS",
    "extract_sections",
    "render_sections",
    "AnalysisOrchestrator",
]
