from fastapi import APIRouter


def create_systems_router(container_env: dict, job_registry=None):
    """System endpoints: liveness plus the effective environment settings."""
    router = APIRouter(prefix="/systems", tags=["System"])

    @router.get("/health")
    def health():
        active = len(job_registry.list_active()) if job_registry is not None else 0
        return {"status": "ok", "active_jobs": active}

    @router.get("/config")
    def get_config():
        return {
            "environment": {
                key: str(value) if value is not None else None
                for key, value in sorted(container_env.items())
            }
        }

    return router
