"""
Tests for run.py main() and the dependency injection container.
"""
from unittest.mock import patch

from run import main
from pagechain.container import Container
from pagechain.services.crawl_orchestrator import CrawlOrchestrator
from pagechain.services.fetcher_factory import DisabledHeadlessFetcher
from pagechain.services.headless_browser_fetcher import PlaywrightHeadlessFetcher


def test_container_creates_services(tmp_path):
    container = Container()
    container.config.PAGECHAIN_PROFILES_DIR.from_value(str(tmp_path))
    container.config.PAGE_DELAY_MS.from_value(500)

    orchestrator = container.crawl_orchestrator()
    assert isinstance(orchestrator, CrawlOrchestrator)
    assert orchestrator.delay_seconds == 0.5
    assert container.job_runner().orchestrator is not None
    assert container.profile_store().list_profile_files() == []
    # Singletons are shared.
    assert container.job_registry() is container.job_registry()


def test_container_headless_switch():
    container = Container()
    container.config.PAGECHAIN_HEADLESS_ENABLED.from_value(True)
    assert isinstance(container.headless_fetcher(), PlaywrightHeadlessFetcher)

    container = Container()
    container.config.PAGECHAIN_HEADLESS_ENABLED.from_value(False)
    assert isinstance(container.headless_fetcher(), DisabledHeadlessFetcher)
    assert isinstance(container.fetcher_factory().get("headless_chromium"), DisabledHeadlessFetcher)


def test_main_accepts_injected_container(tmp_path):
    container = Container()
    container.config.PAGECHAIN_PROFILES_DIR.from_value(str(tmp_path))
    container.config.HOST.from_value("127.0.0.1")
    container.config.PORT.from_value(8123)

    # Mock uvicorn.run to prevent server startup
    with patch("run.uvicorn.run") as mock_uvicorn:
        main(container=container)

    assert mock_uvicorn.called
    _, kwargs = mock_uvicorn.call_args
    assert kwargs == {"host": "127.0.0.1", "port": 8123}
