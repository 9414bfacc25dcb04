from unittest.mock import Mock

import pytest
from fastapi import HTTPException

from pagechain.api.routers.jobs import StartJobRequest, create_jobs_router
from pagechain.exceptions import ProfileNotFoundError
from pagechain.services.job_registry import InMemoryJobRegistry, JobStatus
from pagechain.services.job_runner import JobRunner
from pagechain.services.profile_parser import ProfileParser

PROFILE_DATA = {
    "name": "inline",
    "domain": "example.com",
    "content": {"selector": ".article"},
    "pagination": {"selector": "a.next"},
}


def _get_endpoint(router, path: str, method: str):
    for route in router.routes:
        if getattr(route, "path", None) != path:
            continue
        methods = getattr(route, "methods", set())
        if method.upper() in methods:
            return route.endpoint
    raise AssertionError(f"No route found for {method} {path}")


@pytest.fixture
def registry():
    return InMemoryJobRegistry()


@pytest.fixture
def runner(registry):
    return JobRunner(orchestrator=Mock(), job_registry=registry)


@pytest.fixture
def profile_store(make_profile):
    store = Mock()
    store.load_profile.return_value = make_profile()
    return store


@pytest.fixture
def router(runner, registry, profile_store):
    return create_jobs_router(runner, registry, profile_store, ProfileParser())


def test_start_job_with_stored_profile_queues_background_run(router, runner, registry, profile_store):
    endpoint = _get_endpoint(router, "/jobs", "POST")
    background_tasks = Mock()

    resp = endpoint(StartJobRequest(start_url=" https://example.com/p1 ", profile="test-profile"), background_tasks)

    assert resp["status"] == "queued"
    profile_store.load_profile.assert_called_once_with("test-profile")
    args, _ = background_tasks.add_task.call_args
    assert args[0] == runner.run
    assert args[1].start_url == "https://example.com/p1"
    assert args[2].job_id == resp["job_id"]
    assert registry.get(resp["job_id"])["status"] == "queued"


def test_start_job_with_inline_profile(router):
    endpoint = _get_endpoint(router, "/jobs", "POST")
    resp = endpoint(StartJobRequest(start_url="https://example.com/", profile_data=PROFILE_DATA), Mock())
    assert resp["status"] == "queued"


@pytest.mark.parametrize("kwargs", [{}, {"profile": "a", "profile_data": PROFILE_DATA}])
def test_start_job_requires_exactly_one_profile_source(router, kwargs):
    endpoint = _get_endpoint(router, "/jobs", "POST")
    with pytest.raises(HTTPException) as exc:
        endpoint(StartJobRequest(start_url="https://example.com/", **kwargs), Mock())
    assert exc.value.status_code == 400


def test_start_job_unknown_profile_404(router, profile_store):
    profile_store.load_profile.side_effect = ProfileNotFoundError("missing")
    endpoint = _get_endpoint(router, "/jobs", "POST")

    with pytest.raises(HTTPException) as exc:
        endpoint(StartJobRequest(start_url="https://example.com/", profile="missing"), Mock())
    assert exc.value.status_code == 404
    assert exc.value.detail == "profile not found"


def test_start_job_invalid_inline_profile_400(router):
    endpoint = _get_endpoint(router, "/jobs", "POST")
    with pytest.raises(HTTPException) as exc:
        endpoint(StartJobRequest(start_url="https://example.com/", profile_data={"name": "x"}), Mock())
    assert exc.value.status_code == 400


def test_start_job_blank_start_url_400(router):
    endpoint = _get_endpoint(router, "/jobs", "POST")
    with pytest.raises(HTTPException) as exc:
        endpoint(StartJobRequest(start_url="   ", profile="test-profile"), Mock())
    assert exc.value.status_code == 400


def test_get_and_cancel_job(router, registry):
    handle = registry.start(profile_name="p", profile_domain="example.com", start_url="https://example.com/")

    assert _get_endpoint(router, "/jobs/{job_id}", "GET")(job_id=handle.job_id)["id"] == handle.job_id
    assert _get_endpoint(router, "/jobs/{job_id}/cancel", "POST")(job_id=handle.job_id) == {
        "status": "cancelling",
        "job_id": handle.job_id,
    }
    assert handle.stop_event.is_set()
    assert [j["id"] for j in _get_endpoint(router, "/jobs/active", "GET")()["active"]] == [handle.job_id]


def test_unknown_job_404(router):
    with pytest.raises(HTTPException) as exc:
        _get_endpoint(router, "/jobs/{job_id}", "GET")(job_id="missing")
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        _get_endpoint(router, "/jobs/{job_id}/pages", "GET")(job_id="missing")
    assert exc.value.status_code == 404


def test_cancel_finished_job_404(router, registry):
    handle = registry.start(profile_name="p", profile_domain="example.com", start_url="https://example.com/")
    registry.finish(handle.job_id, status=JobStatus.COMPLETED)

    with pytest.raises(HTTPException) as exc:
        _get_endpoint(router, "/jobs/{job_id}/cancel", "POST")(job_id=handle.job_id)
    assert exc.value.status_code == 404


def test_export_pages_streams_ndjson(router, registry):
    handle = registry.start(profile_name="p", profile_domain="example.com", start_url="https://example.com/")

    resp = _get_endpoint(router, "/jobs/{job_id}/pages", "GET")(job_id=handle.job_id)
    assert resp.media_type == "application/x-ndjson"


def test_recent_jobs_limit(router, registry):
    for _ in range(3):
        registry.start(profile_name="p", profile_domain="example.com", start_url="https://example.com/")

    assert len(_get_endpoint(router, "/jobs/recent", "GET")(limit=2)["jobs"]) == 2
