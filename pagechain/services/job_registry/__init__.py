from .models import JobHandle, JobRecord, JobStatus
from .registry import InMemoryJobRegistry

__all__ = ["JobHandle", "JobRecord", "JobStatus", "InMemoryJobRegistry"]
