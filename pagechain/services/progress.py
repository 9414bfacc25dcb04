"""Progress channel between a crawl run and the job tracker."""
import logging
import threading
from typing import List, Protocol

from pagechain.domain.crawl_result import ProgressEvent

logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    """Receives progress events of one crawl run, in `sequence` order."""

    def publish(self, event: ProgressEvent) -> None: ...


class NullProgressSink:
    def publish(self, event: ProgressEvent) -> None:
        logger.debug("Progress %s: %s", event.sequence, event.note)


class RecordingProgressSink:
    """Keeps every event in memory; handy for one-off runs and tests."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events: List[ProgressEvent] = []

    def publish(self, event: ProgressEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[ProgressEvent]:
        with self._lock:
            return list(self._events)


class RegistryProgressSink:
    """Writes progress events of one job into the job registry."""

    def __init__(self, registry, job_id: str):
        self._registry = registry
        self._job_id = job_id

    def publish(self, event: ProgressEvent) -> None:
        self._registry.apply_progress(self._job_id, event)
