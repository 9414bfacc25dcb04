from __future__ import annotations

import threading
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pagechain.domain.crawl_result import ProgressEvent

from .models import JobHandle, JobStatus
from .store import JobRecordStore


class InMemoryJobRegistry:
    """Thread-safe in-memory registry of crawl jobs.

    Tracks each job from `queued` to a terminal status and receives the
    progress events of running jobs. It is ephemeral and designed for
    single-process visibility; persistence of jobs lives elsewhere.
    """

    def __init__(self, *, max_finished_records: int = 1000, preview_length: int = 280):
        self._lock = threading.Lock()
        self._records = JobRecordStore(max_finished_records=max_finished_records)
        # Stop events of unfinished jobs; dropped (not set) when a job finishes.
        self._stop_events: Dict[str, threading.Event] = {}
        self._preview_length = preview_length

    def start(self, profile_name: str, profile_domain: str, start_url: str) -> JobHandle:
        with self._lock:
            job_id = str(uuid.uuid4())
            self._records.create_queued(
                job_id=job_id,
                profile_name=profile_name,
                profile_domain=profile_domain,
                start_url=start_url,
                now=datetime.utcnow(),
            )
            stop_event = threading.Event()
            self._stop_events[job_id] = stop_event
            return JobHandle(job_id=job_id, stop_event=stop_event)

    def mark_running(self, job_id: str, note: Optional[str] = None) -> bool:
        with self._lock:
            return self._records.mark_running(job_id, note=note, now=datetime.utcnow())

    def apply_progress(self, job_id: str, event: ProgressEvent) -> bool:
        with self._lock:
            return self._records.apply_progress(job_id, event, now=datetime.utcnow())

    def finish(
        self,
        job_id: str,
        *,
        status: JobStatus,
        stop_reason: Optional[str] = None,
        error: Optional[str] = None,
        error_kind: Optional[str] = None,
        note: Optional[str] = None,
        pages: Optional[tuple] = None,
    ) -> bool:
        if not JobStatus(status).is_terminal:
            raise ValueError(f"finish() requires a terminal status, got {status!r}")
        with self._lock:
            ok = self._records.finish(
                job_id,
                status=JobStatus(status),
                now=datetime.utcnow(),
                stop_reason=stop_reason,
                error=error,
                error_kind=error_kind,
                note=note,
                pages=pages,
            )
            if ok:
                self._stop_events.pop(job_id, None)
                for evicted_id in self._records.evict_finished_overflow():
                    self._stop_events.pop(evicted_id, None)
            return ok

    def cancel(self, job_id: str) -> bool:
        """Request cancellation of a queued or running job.

        The job keeps its status until the run observes the stop event and
        finishes it as `cancelled`.
        """
        with self._lock:
            rec = self._records.get(job_id)
            if rec is None or rec.status.is_terminal:
                return False
            stop_event = self._stop_events.get(job_id)
            if stop_event is None:
                return False
            stop_event.set()
            rec.note = "Cancellation requested"
            rec.last_seen = datetime.utcnow()
            return True

    def get(self, job_id: str) -> Optional[Dict]:
        with self._lock:
            rec = self._records.get(job_id)
            return rec.to_dict(self._preview_length) if rec else None

    def get_pages(self, job_id: str) -> Optional[tuple]:
        with self._lock:
            rec = self._records.get(job_id)
            return rec.pages if rec else None

    def get_stop_event(self, job_id: str) -> Optional[threading.Event]:
        with self._lock:
            return self._stop_events.get(job_id)

    def list_active(self) -> List[Dict]:
        with self._lock:
            return [r.to_dict(self._preview_length) for r in self._records.list_active()]

    def list_recent(self, limit: Optional[int] = None) -> List[Dict]:
        with self._lock:
            return [r.to_dict(self._preview_length) for r in self._records.list_recent(limit)]
