from __future__ import annotations

import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

ROOT_DIR = Path(__file__).resolve().parents[1]
load_dotenv(ROOT_DIR / ".env")

from config import settings  # noqa: E402
from logging_config import get_logger  # noqa: E402
from metrics import get_metrics_response  # noqa: E402
from radar.errors import (  # noqa: E402
    AuthError,
    PersistenceError,
    ProviderError,
    RadarError,
    ValidationError,
)
from radar.models import AnalysisRecord  # noqa: E402
from radar.orchestrator import AnalysisOrchestrator  # noqa: E402
from radar.sentiment import SentimentCollector, extract_titles  # noqa: E402
from radar.storage import AnalysisStorage  # noqa: E402

from backend.auth import CurrentUser, get_current_user  # noqa: E402
from backend.schemas import (  # noqa: E402
    AnalysisListItem,
    AnalysisRecordOut,
    AnalyzeRequest,
    AnalyzeResponse,
    SentimentResultResponse,
    SentimentTriggerRequest,
    SentimentTriggerResponse,
)

logger = get_logger(__name__)

app = FastAPI(
    title="Competition Radar Backend API",
    version="1.0.0",
    description="Competitor analysis pipeline and dashboard data API",
)

api = APIRouter(prefix="/v1")

_build_lock = threading.Lock()
_orchestrator: AnalysisOrchestrator | None = None
_collector: SentimentCollector | None = None


@app.on_event("startup")
def _startup() -> None:
    app.state.started_at = datetime.now(timezone.utc)


_ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthError: status.HTTP_401_UNAUTHORIZED,
    PersistenceError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ProviderError: status.HTTP_502_BAD_GATEWAY,
}


@app.exception_handler(RadarError)
async def _radar_error_handler(request: Request, exc: RadarError) -> JSONResponse:
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, error_code in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            code = error_code
            break
    if code >= 500:
        logger.error("request_failed", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=code, content={"error": str(exc)})


def get_orchestrator() -> AnalysisOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        with _build_lock:
            if _orchestrator is None:
                try:
                    _orchestrator = AnalysisOrchestrator.from_settings(settings)
                except ValueError as exc:
                    raise HTTPException(
                        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        detail=f"Pipeline initialization failed: {exc}",
                    ) from exc
    return _orchestrator


def get_storage(orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)) -> AnalysisStorage:
    return orchestrator.storage


def get_sentiment_collector(
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> SentimentCollector:
    global _collector
    if _collector is None:
        with _build_lock:
            if _collector is None:
                try:
                    _collector = SentimentCollector(
                        summarizer=orchestrator.summarizer,
                        api_key=settings.brightdata_api_key,
                        api_url=settings.brightdata_api_url,
                        dataset_id=settings.brightdata_dataset_id,
                    )
                except ValueError as exc:
                    raise HTTPException(
                        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        detail=f"Sentiment initialization failed: {exc}",
                    ) from exc
    return _collector


def _record_out(record: AnalysisRecord) -> AnalysisRecordOut:
    data = record.to_dict()
    data.pop("owner_id", None)
    return AnalysisRecordOut(**data)


@api.post("/analyses", response_model=AnalyzeResponse)
def create_analysis(
    payload: AnalyzeRequest,
    user: CurrentUser = Depends(get_current_user),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> AnalyzeResponse:
    logger.info("analysis_requested", user_id=user.id, domain=payload.domain)
    outcome = orchestrator.run_analysis(user.id, payload.domain)

    return AnalyzeResponse(
        analysisId=outcome.record.id,
        domain=outcome.record.url,
        status=outcome.record.status.value,
        message=outcome.message,
        record=_record_out(outcome.record),
    )


@api.get("/analyses", response_model=list[AnalysisListItem])
def list_analyses(
    user: CurrentUser = Depends(get_current_user),
    storage: AnalysisStorage = Depends(get_storage),
) -> list[AnalysisListItem]:
    rows = storage.list_analyses(user.id)
    return [
        AnalysisListItem(
            id=str(row["id"]),
            url=row.get("url") or "",
            status=row.get("status") or "pending",
            created_at=row.get("created_at"),
        )
        for row in rows
    ]


@api.get("/analyses/{analysis_id}", response_model=AnalysisRecordOut)
def get_analysis(
    analysis_id: str,
    user: CurrentUser = Depends(get_current_user),
    storage: AnalysisStorage = Depends(get_storage),
) -> AnalysisRecordOut:
    record = storage.get_analysis(analysis_id, user.id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analysis not found")
    return _record_out(record)


@api.post("/sentiment", response_model=SentimentTriggerResponse)
def trigger_sentiment(
    payload: SentimentTriggerRequest,
    user: CurrentUser = Depends(get_current_user),
    collector: SentimentCollector = Depends(get_sentiment_collector),
) -> SentimentTriggerResponse:
    keywords = [k.strip() for k in payload.keywords if k.strip()]
    snapshot_id = collector.trigger_collection(keywords)
    return SentimentTriggerResponse(snapshotId=snapshot_id, keywords=keywords)


@api.get("/sentiment/{snapshot_id}", response_model=SentimentResultResponse)
def get_sentiment(
    snapshot_id: str,
    user: CurrentUser = Depends(get_current_user),
    collector: SentimentCollector = Depends(get_sentiment_collector),
) -> SentimentResultResponse:
    data = collector.fetch_snapshot(snapshot_id)
    if data is None:
        return SentimentResultResponse(snapshotId=snapshot_id, ready=False)

    titles = extract_titles(data)
    if not titles:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No titles found in the collected data",
        )

    return SentimentResultResponse(
        snapshotId=snapshot_id,
        ready=True,
        titles=titles,
        sentiment=collector.summarize_sentiment(titles),
    )


@app.get("/metrics")
def metrics() -> Response:
    if not settings.metrics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Metrics disabled")
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)


@app.get("/health")
def health() -> dict[str, Any]:
    started_at = getattr(app.state, "started_at", datetime.now(timezone.utc))
    now = datetime.now(timezone.utc)

    def configured(*values: Any) -> dict[str, str]:
        return {"status": "configured" if all(values) else "not_configured"}

    dependencies = {
        "supabase": configured(settings.supabase_url, settings.supabase_service_role_key),
        "supabaseAuth": configured(settings.supabase_url, settings.supabase_key),
        "tavily": configured(settings.tavily_api_key),
        "gemini": configured(settings.gemini_api_key),
        "brightdata": configured(settings.brightdata_api_key),
    }
    core = ("supabase", "supabaseAuth", "tavily", "gemini")
    healthy = all(dependencies[name]["status"] == "configured" for name in core)

    return {
        "status": "ok" if healthy else "degraded",
        "service": "competition-radar-backend",
        "timestamp": now.isoformat(),
        "uptimeSeconds": round((now - started_at).total_seconds(), 3),
        "dependencies": dependencies,
    }


app.include_router(api)
