"""
Supabase storage for competitor analysis records.
Creates and updates rows of the `analysis` table and serves dashboard reads.
"""

from __future__ import annotations

import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from logging_config import get_logger
from metrics import PROVIDER_ERRORS, PROVIDER_LATENCY
from radar.errors import PersistenceError
from radar.models import AnalysisRecord, AnalysisStatus

logger = get_logger(__name__)

LIST_COLUMNS = "id, url, status, created_at"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AnalysisStorage:
    """
    Manages analysis records in Supabase.

    Writes go through the service-role key so row level security does not
    block server-side updates; reads are always scoped to an owner.

    Table:
        - analysis: id, user_id, url, status, created_at, completed_at,
          the seven extracted text fields, error_message
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        table: str = "analysis",
        client: Optional[Client] = None,
    ):
        """
        Initialize Supabase client.

        Args:
            url: Supabase project URL (defaults to SUPABASE_URL env var)
            key: Service role key (defaults to SUPABASE_SERVICE_ROLE_KEY env var)
            table: Name of the analysis table
            client: Pre-built Supabase client (mainly for tests)

        Raises:
            ValueError: If Supabase credentials are missing
        """
        if client is None:
            url = url or os.getenv("SUPABASE_URL")
            key = key or os.getenv("SUPABASE_SERVICE_ROLE_KEY")
            if not url or not key:
                raise ValueError(
                    "Supabase credentials required. Set SUPABASE_URL and "
                    "SUPABASE_SERVICE_ROLE_KEY environment variables or pass them as arguments."
                )
            client = create_client(url, key)

        self.client: Client = client
        self.table = table
        logger.info("storage_initialized", table=table)

    def ensure_schema(self) -> bool:
        """
        Verify that the analysis table exists and is readable.

        Schema is managed outside this service; this only checks for it.
        """
        try:
            self.client.table(self.table).select("id").limit(0).execute()
            return True
        except Exception as e:
            logger.error("schema_check_failed", table=self.table, error=str(e))
            return False

    def insert_analysis(
        self,
        owner_id: str,
        url: str,
        status: AnalysisStatus = AnalysisStatus.PROCESSING,
    ) -> AnalysisRecord:
        """
        Create a new analysis record.

        Args:
            owner_id: Authenticated user id (stored as `user_id`)
            url: Submitted domain
            status: Initial status

        Returns:
            The created record with its store-assigned id

        Raises:
            PersistenceError: If the insert fails or returns no row
        """
        data = {
            "user_id": owner_id,
            "url": url,
            "status": status.value,
            "created_at": utc_now(),
        }

        start = time.time()
        try:
            result = self.client.table(self.table).insert(data).execute()
        except Exception as e:
            PROVIDER_ERRORS.labels(provider="supabase", error_type=type(e).__name__).inc()
            logger.error("analysis_insert_failed", url=url, error=str(e))
            raise PersistenceError(f"Failed to create analysis record: {e}") from e
        finally:
            PROVIDER_LATENCY.labels(provider="supabase", operation="insert").observe(
                time.time() - start
            )

        if not result.data:
            logger.error("analysis_insert_empty", url=url)
            raise PersistenceError("Failed to create analysis record: no row returned")

        record = AnalysisRecord.from_row(result.data[0])
        logger.info("analysis_created", analysis_id=record.id, url=url, status=status.value)
        return record

    def update_analysis(self, analysis_id: str, fields: Dict[str, Any]) -> AnalysisRecord:
        """
        Apply a partial update to an analysis record.

        Args:
            analysis_id: Record id
            fields: Columns to set; an AnalysisStatus value is stored as its string

        Returns:
            The updated record

        Raises:
            PersistenceError: If the update fails or no row was updated
        """
        data = {
            k: (v.value if isinstance(v, AnalysisStatus) else v)
            for k, v in fields.items()
        }

        start = time.time()
        try:
            result = self.client.table(self.table).update(data).eq("id", analysis_id).execute()
        except Exception as e:
            PROVIDER_ERRORS.labels(provider="supabase", error_type=type(e).__name__).inc()
            logger.error("analysis_update_failed", analysis_id=analysis_id, error=str(e))
            raise PersistenceError(f"Failed to update analysis {analysis_id}: {e}") from e
        finally:
            PROVIDER_LATENCY.labels(provider="supabase", operation="update").observe(
                time.time() - start
            )

        if not result.data:
            logger.error("analysis_update_empty", analysis_id=analysis_id)
            raise PersistenceError(f"Failed to update analysis {analysis_id}: no row updated")

        logger.info("analysis_updated", analysis_id=analysis_id, status=data.get("status"))
        return AnalysisRecord.from_row(result.data[0])

    def get_analysis(self, analysis_id: str, owner_id: str) -> Optional[AnalysisRecord]:
        """
        Get one analysis record belonging to `owner_id`.

        Raises:
            PersistenceError: If the query fails
        """
        try:
            result = self.client.table(self.table).select("*").eq(
                "id", analysis_id
            ).eq(
                "user_id", owner_id
            ).limit(1).execute()
        except Exception as e:
            logger.error("analysis_get_failed", analysis_id=analysis_id, error=str(e))
            raise PersistenceError(f"Failed to load analysis {analysis_id}: {e}") from e

        return AnalysisRecord.from_row(result.data[0]) if result.data else None

    def list_analyses(self, owner_id: str, limit: int = 100) -> List[Dict[str, Any]]:
        """
        List an owner's analyses, most recent first.

        Returns:
            Summary rows with id, url, status, created_at
        """
        try:
            result = self.client.table(self.table).select(LIST_COLUMNS).eq(
                "user_id", owner_id
            ).order(
                "created_at", desc=True
            ).limit(limit).execute()
        except Exception as e:
            logger.error("analysis_list_failed", owner_id=owner_id, error=str(e))
            raise PersistenceError(f"Failed to list analyses: {e}") from e

        return result.data if result.data else []
