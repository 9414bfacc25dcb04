from fastapi import FastAPI

from pagechain.api.routers import create_jobs_router, create_profiles_router, create_systems_router


def create_app(container) -> FastAPI:
    """Return the FastAPI application wired from `container`.

    Jobs started through the API run as background tasks in the server's
    thread pool; each run owns its fetch session.
    """
    app = FastAPI(title="PageChain", version="0.1.0")
    app.state.container = container

    job_registry = container.job_registry()
    app.include_router(
        create_jobs_router(
            job_runner=container.job_runner(),
            job_registry=job_registry,
            profile_store=container.profile_store(),
            profile_parser=container.profile_parser(),
        )
    )
    app.include_router(create_profiles_router(container.profile_store()))
    app.include_router(create_systems_router(container.config(), job_registry=job_registry))

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
