#!/usr/bin/env python3
"""
Competition Radar - Command Line Interface

Runs competitor analyses and social sentiment collections from the shell,
using the same pipeline as the backend API.
"""

import sys
import argparse
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from config import settings  # noqa: E402
from logging_config import get_logger  # noqa: E402
from radar.errors import RadarError  # noqa: E402
from radar.models import AnalysisRecord, SECTION_FIELDS  # noqa: E402
from radar.orchestrator import AnalysisOrchestrator  # noqa: E402
from radar.sentiment import SentimentCollector, extract_titles  # noqa: E402

logger = get_logger(__name__)


class CompetitionRadar:
    """
    Main entry object for Competition Radar.

    Builds the analysis pipeline once and lazily adds the sentiment
    collector, which needs its own API key.
    """

    def __init__(self, orchestrator: Optional[AnalysisOrchestrator] = None):
        logger.info("radar_initializing", env=settings.app_env)
        self.orchestrator = orchestrator or AnalysisOrchestrator.from_settings(settings)
        self._collector: Optional[SentimentCollector] = None

    @property
    def collector(self) -> SentimentCollector:
        if self._collector is None:
            self._collector = SentimentCollector(
                summarizer=self.orchestrator.summarizer,
                api_key=settings.brightdata_api_key,
                api_url=settings.brightdata_api_url,
                dataset_id=settings.brightdata_dataset_id,
            )
        return self._collector

    def analyze(self, owner_id: str, domain: str) -> AnalysisRecord:
        outcome = self.orchestrator.run_analysis(owner_id, domain)
        print(f"\n{outcome.message}")
        return outcome.record

    def sentiment(self, keywords: list, wait: bool = False) -> Optional[str]:
        snapshot_id = self.collector.trigger_collection(keywords)
        print(f"Collection triggered: snapshot {snapshot_id}")
        if not wait:
            print(f"Fetch it later with: python main.py sentiment-result {snapshot_id}")
            return None
        data = self.collector.wait_for_snapshot(
            snapshot_id,
            attempts=settings.sentiment_poll_attempts,
            wait_seconds=settings.sentiment_poll_wait_sec,
        )
        return self.collector.summarize_sentiment(extract_titles(data))

    def sentiment_result(self, snapshot_id: str) -> Optional[str]:
        data = self.collector.fetch_snapshot(snapshot_id)
        if data is None:
            print("Collection triggered, data not ready yet")
            return None
        return self.collector.summarize_sentiment(extract_titles(data))


def print_record(record: AnalysisRecord) -> None:
    print(f"\n{'='*60}")
    print(f"ANALYSIS {record.id}: {record.url}")
    print(f"{'='*60}")
    print(f"Status: {record.status.value}")
    print(f"Created: {record.created_at}")
    if record.completed_at:
        print(f"Completed: {record.completed_at}")
    if record.error_message:
        print(f"Error: {record.error_message}")
    for name, label in SECTION_FIELDS.items():
        value = getattr(record, name)
        if value:
            print(f"\n{label}:\n{value}")


def run_checks() -> bool:
    """Check configuration and provider connectivity."""
    print(f"\n{'='*60}")
    print("Checking Configuration")
    print(f"{'='*60}")

    required = {
        "SUPABASE_URL": settings.supabase_url,
        "SUPABASE_KEY": settings.supabase_key,
        "SUPABASE_SERVICE_ROLE_KEY": settings.supabase_service_role_key,
        "TAVILY_API_KEY": settings.tavily_api_key,
        "GEMINI_API_KEY": settings.gemini_api_key,
    }
    all_ok = True
    for var, value in required.items():
        if value:
            masked = value[:4] + "*" * max(len(value) - 8, 0) + value[-4:]
            print(f"✓ {var}: {masked}")
        else:
            print(f"✗ {var}: NOT SET")
            all_ok = False
    print(f"{'✓' if settings.brightdata_api_key else '-'} BRIGHTDATA_API_KEY (sentiment only)")

    print(f"\n{'='*60}")
    print("Testing Service Connections")
    print(f"{'='*60}")

    try:
        orchestrator = AnalysisOrchestrator.from_settings(settings)
        print("✓ Tavily and Gemini clients configured")
        if orchestrator.storage.ensure_schema():
            print(f"✓ Supabase connected, table '{settings.analysis_table}' found")
        else:
            print(f"✗ Supabase table '{settings.analysis_table}' not readable")
            all_ok = False
    except ValueError as e:
        print(f"✗ {e}")
        all_ok = False

    return all_ok


def main():
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Competition Radar - AI-powered competitor analysis"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Analyze a competitor domain")
    analyze_parser.add_argument("domain", help="Competitor URL (e.g., https://example.com)")
    analyze_parser.add_argument("--owner", required=True, help="User id that owns the analysis")

    # show command
    show_parser = subparsers.add_parser("show", help="Show a stored analysis")
    show_parser.add_argument("analysis_id", help="Analysis id")
    show_parser.add_argument("--owner", required=True, help="User id that owns the analysis")

    # list command
    list_parser = subparsers.add_parser("list", help="List stored analyses")
    list_parser.add_argument("--owner", required=True, help="User id whose analyses to list")

    # sentiment command
    sentiment_parser = subparsers.add_parser("sentiment", help="Collect social sentiment for keywords")
    sentiment_parser.add_argument("keywords", nargs="+", help="Keywords to search for")
    sentiment_parser.add_argument(
        "--wait",
        action="store_true",
        help="Poll until the collection is ready and print the summary"
    )

    # sentiment-result command
    result_parser = subparsers.add_parser("sentiment-result", help="Summarize a finished collection")
    result_parser.add_argument("snapshot_id", help="BrightData snapshot id")

    # test command
    subparsers.add_parser("test", help="Test configuration and connections")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    if args.command == "test":
        sys.exit(0 if run_checks() else 1)

    try:
        radar = CompetitionRadar()

        if args.command == "analyze":
            print_record(radar.analyze(args.owner, args.domain))

        elif args.command == "show":
            record = radar.orchestrator.storage.get_analysis(args.analysis_id, args.owner)
            if record is None:
                print(f"\nAnalysis {args.analysis_id} not found")
                sys.exit(1)
            print_record(record)

        elif args.command == "list":
            rows = radar.orchestrator.storage.list_analyses(args.owner)
            if not rows:
                print("\nNo analyses yet")
            for row in rows:
                print(f"{row['id']}  {row.get('status', ''):12s} {row.get('created_at', '')}  {row.get('url', '')}")

        elif args.command == "sentiment":
            summary = radar.sentiment(args.keywords, wait=args.wait)
            if summary:
                print(f"\nSENTIMENT:\n{summary}")

        elif args.command == "sentiment-result":
            summary = radar.sentiment_result(args.snapshot_id)
            if summary:
                print(f"\nSENTIMENT:\n{summary}")

    except (RadarError, ValueError) as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
