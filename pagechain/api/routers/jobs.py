import json
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException
from pydantic import BaseModel
from starlette.responses import StreamingResponse

from pagechain.domain.profile import CrawlRequest
from pagechain.exceptions import ProfileNotFoundError, ProfileValidationError
from pagechain.services.job_registry import InMemoryJobRegistry
from pagechain.services.job_runner import JobRunner
from pagechain.services.profile_file_store import ProfileFileStore
from pagechain.services.profile_parser import ProfileParser


class StartJobRequest(BaseModel):
    start_url: str
    profile: Optional[str] = None
    profile_data: Optional[dict] = None


def create_jobs_router(
    job_runner: JobRunner,
    job_registry: InMemoryJobRegistry,
    profile_store: ProfileFileStore,
    profile_parser: ProfileParser,
):
    router = APIRouter(prefix="/jobs", tags=["Jobs"])

    def _build_request(req: StartJobRequest) -> CrawlRequest:
        if bool(req.profile) == bool(req.profile_data):
            raise HTTPException(status_code=400, detail="provide exactly one of profile or profile_data")
        try:
            if req.profile:
                profile = profile_store.load_profile(req.profile)
            else:
                profile = profile_parser.parse(req.profile_data)
            return CrawlRequest(start_url=req.start_url.strip(), profile=profile)
        except ProfileNotFoundError:
            raise HTTPException(status_code=404, detail="profile not found")
        except ProfileValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @router.post("", status_code=202)
    def start_job(req: StartJobRequest, background_tasks: BackgroundTasks):
        request = _build_request(req)
        handle = job_runner.submit(request)
        background_tasks.add_task(job_runner.run, request, handle)
        return {"status": "queued", "job_id": handle.job_id}

    @router.get("/active")
    def list_active_jobs():
        return {"active": job_registry.list_active()}

    @router.get("/recent")
    def list_recent_jobs(limit: Optional[int] = 50):
        return {"jobs": job_registry.list_recent(limit)}

    @router.get("/{job_id}")
    def get_job(job_id: str):
        rec = job_registry.get(job_id)
        if not rec:
            raise HTTPException(status_code=404, detail="job not found")
        return rec

    @router.post("/{job_id}/cancel")
    def cancel_job(job_id: str):
        if not job_registry.cancel(job_id):
            raise HTTPException(status_code=404, detail="job not found or already finished")
        return {"status": "cancelling", "job_id": job_id}

    @router.get(
        "/{job_id}/pages",
        responses={
            200: {
                "content": {
                    "application/x-ndjson": {
                        "schema": {"type": "string", "format": "binary"}
                    }
                },
                "description": "NDJSON stream (one page result per line)"
            }
        },
    )
    def export_pages(job_id: str):
        pages = job_registry.get_pages(job_id)
        if pages is None:
            raise HTTPException(status_code=404, detail="job not found")

        def gen_ndjson():
            for p in pages:
                yield (json.dumps(p.to_dict(), default=str) + "\n").encode("utf-8")

        return StreamingResponse(gen_ndjson(), media_type="application/x-ndjson")

    return router
