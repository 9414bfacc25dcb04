from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class JobStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


@dataclass
class JobRecord:
    id: str
    profile_name: str
    profile_domain: str
    start_url: str
    status: JobStatus
    created_at: datetime
    last_seen: datetime
    completed_at: Optional[datetime] = None
    note: Optional[str] = None
    pages_processed: int = 0
    last_visited_url: Optional[str] = None
    stop_reason: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    last_sequence: int = 0
    # Full page results; exposed separately from the summary.
    pages: tuple = ()

    def to_dict(self, preview_length: int = 280) -> dict:
        extracted_pages: List[dict] = [
            {
                "url": p.url,
                "preview": p.preview(preview_length),
                "stylesheets": sorted(p.stylesheet_urls),
                "scripts": sorted(p.script_urls),
            }
            for p in self.pages
        ]
        return {
            "id": self.id,
            "profile_name": self.profile_name,
            "profile_domain": self.profile_domain,
            "start_url": self.start_url,
            "status": self.status.value,
            "created_at": self.created_at,
            "last_seen": self.last_seen,
            "completed_at": self.completed_at,
            "note": self.note,
            "pages_processed": self.pages_processed,
            "last_visited_url": self.last_visited_url,
            "stop_reason": self.stop_reason,
            "error": self.error,
            "error_kind": self.error_kind,
            "extracted_pages": extracted_pages,
            "extracted_preview": "\n\n".join(
                f"Page {i}: {item['preview']}" for i, item in enumerate(extracted_pages, start=1)
            ),
        }


@dataclass(frozen=True)
class JobHandle:
    job_id: str
    stop_event: threading.Event = field(compare=False)
