import logging

from pagechain.domain.crawl_result import CrawlFailure, CrawlOutcome, ErrorKind
from pagechain.domain.profile import CrawlRequest
from pagechain.services.crawl_orchestrator import CrawlOrchestrator
from pagechain.services.job_registry import InMemoryJobRegistry, JobHandle, JobStatus
from pagechain.services.progress import RegistryProgressSink

logger = logging.getLogger(__name__)

_FAILURE_NOTES = {
    ErrorKind.CAPABILITY_UNAVAILABLE: (
        "Headless crawl is not available in this runtime. "
        "Run the job where Playwright and Chromium are installed."
    ),
    ErrorKind.CONTENT_SELECTOR_NO_MATCH: "Required content selector did not match; partial results kept.",
    ErrorKind.CONFIGURATION: "Profile configuration is invalid.",
}


class JobRunner:
    """Runs crawl requests as tracked jobs.

    Every job handed to `run` ends in a definite status (completed, failed or
    cancelled), including when the orchestrator raises.
    """

    def __init__(self, *, orchestrator: CrawlOrchestrator, job_registry: InMemoryJobRegistry):
        self.orchestrator = orchestrator
        self.job_registry = job_registry

    def submit(self, request: CrawlRequest) -> JobHandle:
        handle = self.job_registry.start(
            profile_name=request.profile.name,
            profile_domain=request.domain,
            start_url=request.start_url,
        )
        logger.info("Queued job %s for %s", handle.job_id, request.start_url)
        return handle

    def run(self, request: CrawlRequest, handle: JobHandle) -> CrawlOutcome:
        job_id = handle.job_id
        self.job_registry.mark_running(job_id, note=f"Running {request.profile.fetch_mode} crawl...")
        try:
            outcome = self.orchestrator.run(
                request,
                stop_event=handle.stop_event,
                progress_sink=RegistryProgressSink(self.job_registry, job_id),
            )
        except Exception as e:
            logger.exception("Job %s crashed", job_id)
            self.job_registry.finish(
                job_id,
                status=JobStatus.FAILED,
                stop_reason=ErrorKind.UNEXPECTED.value,
                error=str(e),
                error_kind=ErrorKind.UNEXPECTED.value,
                note="Crawl crashed unexpectedly.",
            )
            raise
        self._finish(job_id, outcome)
        return outcome

    def run_request(self, request: CrawlRequest) -> CrawlOutcome:
        return self.run(request, self.submit(request))

    def _finish(self, job_id: str, outcome: CrawlOutcome) -> None:
        if isinstance(outcome, CrawlFailure):
            status = JobStatus.CANCELLED if outcome.error_kind is ErrorKind.CANCELLED else JobStatus.FAILED
            self.job_registry.finish(
                job_id,
                status=status,
                stop_reason=outcome.error_kind.value,
                error=outcome.message,
                error_kind=outcome.error_kind.value,
                note=_FAILURE_NOTES.get(outcome.error_kind, outcome.message),
                pages=outcome.pages,
            )
            logger.info("Job %s %s: %s", job_id, status.value, outcome.message)
            return

        self.job_registry.finish(
            job_id,
            status=JobStatus.COMPLETED,
            stop_reason=outcome.stop_reason.value,
            note=f"Crawl completed with stop reason: {outcome.stop_reason.value}.",
            pages=outcome.pages,
        )
        logger.info("Job %s completed: %s (%s pages)", job_id, outcome.stop_reason.value, outcome.pages_processed)
