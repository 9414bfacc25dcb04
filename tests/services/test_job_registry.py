import pytest

from pagechain.domain import PageResult, ProgressEvent
from pagechain.services.job_registry import InMemoryJobRegistry, JobStatus


def _event(sequence, urls, note=""):
    pages = tuple(PageResult(url=u, extracted_content=f"content of {u}") for u in urls)
    return ProgressEvent(
        sequence=sequence,
        pages_processed=len(pages),
        pages=pages,
        last_visited_url=urls[-1] if urls else None,
        note=note,
    )


def _start(reg):
    return reg.start(profile_name="blog", profile_domain="example.com", start_url="https://example.com/")


def test_start_creates_queued_job():
    reg = InMemoryJobRegistry()
    handle = _start(reg)

    rec = reg.get(handle.job_id)
    assert rec["status"] == "queued"
    assert rec["profile_name"] == "blog"
    assert rec["pages_processed"] == 0
    assert reg.get_stop_event(handle.job_id) is handle.stop_event


def test_progress_is_applied_in_sequence_order():
    reg = InMemoryJobRegistry()
    handle = _start(reg)
    reg.mark_running(handle.job_id, note="Running")

    assert reg.apply_progress(handle.job_id, _event(1, ["https://example.com/1"]))
    assert reg.apply_progress(handle.job_id, _event(2, ["https://example.com/1", "https://example.com/2"]))
    # Late or duplicate events never shrink the page list.
    assert not reg.apply_progress(handle.job_id, _event(1, ["https://example.com/1"]))

    rec = reg.get(handle.job_id)
    assert rec["status"] == "running"
    assert rec["pages_processed"] == 2
    assert rec["last_visited_url"] == "https://example.com/2"
    assert [p["url"] for p in rec["extracted_pages"]] == ["https://example.com/1", "https://example.com/2"]


def test_finish_records_terminal_state_and_pages():
    reg = InMemoryJobRegistry()
    handle = _start(reg)
    pages = _event(1, ["https://example.com/1"]).pages

    assert reg.finish(handle.job_id, status=JobStatus.COMPLETED, stop_reason="no-next-button", note="done", pages=pages)

    rec = reg.get(handle.job_id)
    assert rec["status"] == "completed"
    assert rec["stop_reason"] == "no-next-button"
    assert rec["completed_at"] is not None
    assert rec["extracted_preview"] == "Page 1: content of https://example.com/1"
    assert reg.get_pages(handle.job_id) == pages
    assert reg.get_stop_event(handle.job_id) is None


def test_finished_job_ignores_further_updates():
    reg = InMemoryJobRegistry()
    handle = _start(reg)
    reg.finish(handle.job_id, status=JobStatus.FAILED, error="boom", error_kind="network")

    assert not reg.apply_progress(handle.job_id, _event(1, ["https://example.com/1"]))
    assert not reg.finish(handle.job_id, status=JobStatus.COMPLETED)
    assert not reg.mark_running(handle.job_id)
    assert reg.get(handle.job_id)["status"] == "failed"


def test_finish_requires_terminal_status():
    reg = InMemoryJobRegistry()
    handle = _start(reg)
    with pytest.raises(ValueError):
        reg.finish(handle.job_id, status=JobStatus.RUNNING)


def test_cancel_sets_stop_event():
    reg = InMemoryJobRegistry()
    handle = _start(reg)

    assert reg.cancel(handle.job_id)
    assert handle.stop_event.is_set()
    assert reg.get(handle.job_id)["note"] == "Cancellation requested"


def test_cancel_unknown_or_finished_job():
    reg = InMemoryJobRegistry()
    handle = _start(reg)
    reg.finish(handle.job_id, status=JobStatus.COMPLETED)

    assert not reg.cancel(handle.job_id)
    assert not reg.cancel("missing")
    assert not handle.stop_event.is_set()


def test_list_active_and_recent():
    reg = InMemoryJobRegistry()
    first = _start(reg)
    second = _start(reg)
    reg.finish(first.job_id, status=JobStatus.COMPLETED)

    assert [r["id"] for r in reg.list_active()] == [second.job_id]
    assert {r["id"] for r in reg.list_recent()} == {first.job_id, second.job_id}
    assert len(reg.list_recent(1)) == 1


def test_finished_records_are_evicted_oldest_first():
    reg = InMemoryJobRegistry(max_finished_records=1)
    first = _start(reg)
    second = _start(reg)
    reg.finish(first.job_id, status=JobStatus.COMPLETED)
    reg.finish(second.job_id, status=JobStatus.COMPLETED)

    assert reg.get(first.job_id) is None
    assert reg.get(second.job_id) is not None


def test_preview_is_whitespace_collapsed_and_truncated():
    reg = InMemoryJobRegistry(preview_length=10)
    handle = _start(reg)
    page = PageResult(url="https://example.com/1", extracted_content="  lots   of\n\n whitespace here  ")
    reg.finish(handle.job_id, status=JobStatus.COMPLETED, pages=(page,))

    assert reg.get(handle.job_id)["extracted_pages"][0]["preview"] == "lots of wh…"
