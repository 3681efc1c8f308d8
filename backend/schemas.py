from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

StatusLiteral = Literal["pending", "processing", "completed", "failed", "unsupported"]


class AnalyzeRequest(BaseModel):
    # Format is checked by the orchestrator so the error maps to ValidationError.
    domain: str = Field(..., max_length=2048)


class AnalysisRecordOut(BaseModel):
    id: str
    url: str
    status: StatusLiteral
    created_at: Optional[str] = None
    completed_at: Optional[str] = None
    summary: Optional[str] = None
    direction: Optional[str] = None
    compliance: Optional[str] = None
    new_launches: Optional[str] = None
    flagship_product: Optional[str] = None
    unique_findings: Optional[str] = None
    sentiment_summary: Optional[str] = None
    error_message: Optional[str] = None


class AnalysisListItem(BaseModel):
    id: str
    url: str
    status: StatusLiteral
    created_at: Optional[str] = None


class AnalyzeResponse(BaseModel):
    analysisId: str
    domain: str
    status: StatusLiteral
    message: str
    record: AnalysisRecordOut


class SentimentTriggerRequest(BaseModel):
    keywords: list[str] = Field(..., min_length=1, max_length=20)


class SentimentTriggerResponse(BaseModel):
    snapshotId: str
    keywords: list[str]


class SentimentResultResponse(BaseModel):
    snapshotId: str
    ready: bool
    titles: list[str] = Field(default_factory=list)
    sentiment: Optional[str] = None
