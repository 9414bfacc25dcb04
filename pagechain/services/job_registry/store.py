from __future__ import annotations

from collections import deque
from datetime import datetime
from typing import Dict, List, Optional

from pagechain.domain.crawl_result import ProgressEvent

from .models import JobRecord, JobStatus


class JobRecordStore:
    def __init__(self, *, max_finished_records: int):
        if max_finished_records < 0:
            raise ValueError("max_finished_records must be >= 0")
        self._records: Dict[str, JobRecord] = {}
        self._max_finished_records = max_finished_records
        self._finished_order = deque()

    def create_queued(self, *, job_id: str, profile_name: str, profile_domain: str, start_url: str, now: datetime) -> JobRecord:
        rec = JobRecord(
            id=job_id,
            profile_name=profile_name,
            profile_domain=profile_domain,
            start_url=start_url,
            status=JobStatus.QUEUED,
            created_at=now,
            last_seen=now,
        )
        self._records[job_id] = rec
        return rec

    def get(self, job_id: str) -> Optional[JobRecord]:
        return self._records.get(job_id)

    def mark_running(self, job_id: str, *, note: Optional[str], now: datetime) -> bool:
        rec = self._records.get(job_id)
        if not rec or rec.status.is_terminal:
            return False
        rec.status = JobStatus.RUNNING
        rec.note = note
        rec.last_seen = now
        return True

    def apply_progress(self, job_id: str, event: ProgressEvent, *, now: datetime) -> bool:
        rec = self._records.get(job_id)
        if not rec or rec.status.is_terminal:
            return False
        # Observers must see a monotonically growing page list.
        if event.sequence <= rec.last_sequence:
            return False
        rec.last_sequence = event.sequence
        rec.pages_processed = event.pages_processed
        rec.pages = tuple(event.pages)
        rec.last_visited_url = event.last_visited_url
        rec.note = event.note
        rec.last_seen = now
        return True

    def finish(
        self,
        job_id: str,
        *,
        status: JobStatus,
        now: datetime,
        stop_reason: Optional[str] = None,
        error: Optional[str] = None,
        error_kind: Optional[str] = None,
        note: Optional[str] = None,
        pages: Optional[tuple] = None,
    ) -> bool:
        rec = self._records.get(job_id)
        if not rec or rec.status.is_terminal:
            return False
        rec.status = status
        rec.completed_at = now
        rec.last_seen = now
        rec.stop_reason = stop_reason
        rec.error = error
        rec.error_kind = error_kind
        if note is not None:
            rec.note = note
        if pages is not None:
            rec.pages = tuple(pages)
            rec.pages_processed = len(rec.pages)
            if rec.pages:
                rec.last_visited_url = rec.pages[-1].url
        self._finished_order.append(job_id)
        return True

    def evict_finished_overflow(self) -> List[str]:
        evicted: List[str] = []
        while len(self._finished_order) > self._max_finished_records:
            oldest = self._finished_order.popleft()
            if oldest in self._records:
                del self._records[oldest]
                evicted.append(oldest)
        return evicted

    def list_active(self) -> List[JobRecord]:
        return [r for r in self._records.values() if not r.status.is_terminal]

    def list_recent(self, limit: Optional[int] = None) -> List[JobRecord]:
        records = sorted(self._records.values(), key=lambda r: r.created_at, reverse=True)
        return records[:limit] if limit else records
