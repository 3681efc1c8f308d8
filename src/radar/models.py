"""Analysis record model shared by storage, orchestrator and API."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional

from radar.errors import PersistenceError


class AnalysisStatus(str, Enum):
    """Lifecycle status of an analysis record."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    UNSUPPORTED = "unsupported"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    def can_transition_to(self, target: "AnalysisStatus") -> bool:
        """Status only moves forward; terminal states never change."""
        if self.is_terminal:
            return False
        return _STATUS_RANK[target] > _STATUS_RANK[self]


TERMINAL_STATUSES = frozenset(
    {AnalysisStatus.COMPLETED, AnalysisStatus.FAILED, AnalysisStatus.UNSUPPORTED}
)

_STATUS_RANK = {
    AnalysisStatus.PENDING: 0,
    AnalysisStatus.PROCESSING: 1,
    AnalysisStatus.COMPLETED: 2,
    AnalysisStatus.FAILED: 2,
    AnalysisStatus.UNSUPPORTED: 2,
}

# Record field -> heading emitted by the summarization prompt, in prompt order.
SECTION_FIELDS: Dict[str, str] = {
    "summary": "SUMMARY",
    "direction": "DIRECTION",
    "compliance": "COMPLIANCE",
    "new_launches": "NEW LAUNCHES",
    "flagship_product": "FLAGSHIP PRODUCT",
    "unique_findings": "UNIQUE FINDINGS",
    "sentiment_summary": "SENTIMENT SUMMARY",
}


@dataclass
class AnalysisRecord:
    """One row of the `analysis` table."""
    id: str
    owner_id: str
    url: str
    status: AnalysisStatus
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
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AnalysisRecord":
        """
        Build a record from a Supabase row (owner is stored as `user_id`).

        Raises:
            PersistenceError: If the stored status is not a known status
        """
        raw_status = row.get("status") or AnalysisStatus.PENDING.value
        try:
            status = AnalysisStatus(raw_status)
        except ValueError as exc:
            raise PersistenceError(
                f"Analysis {row.get('id')} has unknown status {raw_status!r}"
            ) from exc

        optional = {f.name for f in fields(cls)} - {"id", "owner_id", "url", "status", "extra"}
        consumed = optional | {"id", "user_id", "owner_id", "url", "status"}
        return cls(
            id=str(row["id"]),
            owner_id=str(row.get("user_id") or row.get("owner_id") or ""),
            url=row.get("url") or "",
            status=status,
            extra={k: v for k, v in row.items() if k not in consumed},
            **{k: row.get(k) for k in optional},
        )

    def sections(self) -> Dict[str, Optional[str]]:
        """The seven extracted text fields."""
        return {name: getattr(self, name) for name in SECTION_FIELDS}

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "owner_id": self.owner_id,
            "url": self.url,
            "status": self.status.value,
            "created_at": self.created_at,
            "completed_at": self.completed_at,
            "error_message": self.error_message,
        }
        data.update(self.sections())
        return data


@dataclass
class AnalysisOutcome:
    """Final record of one pipeline run plus a diagnostic for the caller."""
    record: AnalysisRecord
    message: str

    @property
    def succeeded(self) -> bool:
        return self.record.status == AnalysisStatus.COMPLETED
