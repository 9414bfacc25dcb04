"""Dependency injection container for the application."""
from dependency_injector import containers, providers

from pagechain import config as env
from pagechain.services.asset_collector import AssetCollector
from pagechain.services.crawl_orchestrator import CrawlOrchestrator
from pagechain.services.fetcher import HttpServiceFetcher
from pagechain.services.fetcher_factory import DisabledHeadlessFetcher, FetcherFactory
from pagechain.services.headless_browser_fetcher import PlaywrightHeadlessFetcher, PlaywrightHeadlessOptions
from pagechain.services.job_registry import InMemoryJobRegistry
from pagechain.services.job_runner import JobRunner
from pagechain.services.profile_file_store import ProfileFileStore
from pagechain.services.profile_parser import ProfileParser
from pagechain.services.selector_evaluator import SelectorEvaluator


# Environment variables used by the container (read via `pagechain.config` helpers).
#
# USER_AGENT (str, default: "PageChain/0.1")
#   User-Agent for static requests and the headless browser context.
#
# REQUEST_TIMEOUT_MS (int milliseconds, default: 15000)
#   Upper bound for one page fetch (HTTP request or browser navigation).
#   Also used for the rendered fetcher's content-ready wait.
#
# PAGE_DELAY_MS (int milliseconds, default: 250)
#   Pause between two pages of the same crawl run.
#
# MAX_PAGES_DEFAULT (int, default: 100)
#   Page budget for profiles that do not set stop_rules.max_pages.
#
# MAX_CONSECUTIVE_ERRORS (int, default: 3)
#   Error budget for profiles that do not set stop_rules.max_consecutive_errors.
#
# PAGECHAIN_RETRY_FAILED_FETCH (bool, default: false)
#   Retry a failed URL until the error budget is spent instead of failing
#   the run on the first transient fetch error.
#
# PAGECHAIN_PROFILES_DIR (str, default: "profiles")
#   Directory holding YAML crawl profiles.
#
# PAGECHAIN_HEADLESS_ENABLED (bool, default: true)
#   When false, headless_chromium profiles fail with capability-unavailable.
#
# PAGECHAIN_MAX_FINISHED_JOBS (int, default: 1000)
#   Finished job records kept in memory before the oldest are evicted.
#
# PAGECHAIN_PREVIEW_LENGTH (int, default: 280)
#   Length of the content preview shown in job summaries.
#
# HOST / PORT (default: 0.0.0.0 / 8000)
#   Bind address of the API server.
ENV = {
    "USER_AGENT": env.get_str_env("USER_AGENT", "PageChain/0.1"),
    "REQUEST_TIMEOUT_MS": env.get_int_env("REQUEST_TIMEOUT_MS", 15_000),
    "PAGE_DELAY_MS": env.get_int_env("PAGE_DELAY_MS", 250),
    "MAX_PAGES_DEFAULT": env.get_int_env("MAX_PAGES_DEFAULT", 100),
    "MAX_CONSECUTIVE_ERRORS": env.get_int_env("MAX_CONSECUTIVE_ERRORS", 3),
    "PAGECHAIN_RETRY_FAILED_FETCH": env.get_bool_env("PAGECHAIN_RETRY_FAILED_FETCH", False),
    "PAGECHAIN_PROFILES_DIR": env.get_str_env("PAGECHAIN_PROFILES_DIR", "profiles"),
    "PAGECHAIN_HEADLESS_ENABLED": env.get_bool_env("PAGECHAIN_HEADLESS_ENABLED", True),
    "PAGECHAIN_MAX_FINISHED_JOBS": env.get_int_env("PAGECHAIN_MAX_FINISHED_JOBS", 1000),
    "PAGECHAIN_PREVIEW_LENGTH": env.get_int_env("PAGECHAIN_PREVIEW_LENGTH", 280),
    "HOST": env.get_str_env("HOST", "0.0.0.0"),
    "PORT": env.get_int_env("PORT", 8000),
}


def _headless_mode(enabled) -> str:
    return "enabled" if enabled else "disabled"


class Container(containers.DeclarativeContainer):
    """Dependency injection container for PageChain."""

    # Configuration
    config = providers.Configuration(default=ENV)

    job_registry = providers.Singleton(
        InMemoryJobRegistry,
        max_finished_records=config.PAGECHAIN_MAX_FINISHED_JOBS.as_(int),
        preview_length=config.PAGECHAIN_PREVIEW_LENGTH.as_(int),
    )

    # Fetchers
    http_fetcher = providers.Singleton(
        HttpServiceFetcher,
        user_agent=config.USER_AGENT.as_(str),
        timeout_ms=config.REQUEST_TIMEOUT_MS.as_(int),
    )

    headless_fetcher = providers.Selector(
        providers.Callable(_headless_mode, config.PAGECHAIN_HEADLESS_ENABLED),
        enabled=providers.Singleton(
            PlaywrightHeadlessFetcher,
            user_agent=config.USER_AGENT.as_(str),
            options=providers.Factory(
                PlaywrightHeadlessOptions,
                timeout_ms=config.REQUEST_TIMEOUT_MS.as_(int),
                content_ready_timeout_ms=config.REQUEST_TIMEOUT_MS.as_(int),
            ),
        ),
        disabled=providers.Singleton(DisabledHeadlessFetcher),
    )

    fetcher_factory = providers.Singleton(
        FetcherFactory,
        http_fetcher=http_fetcher,
        headless_fetcher=headless_fetcher,
    )

    # Extraction
    selector_evaluator = providers.Singleton(SelectorEvaluator)

    asset_collector = providers.Singleton(AssetCollector)

    # Profiles
    profile_parser = providers.Singleton(
        ProfileParser,
        max_pages_default=config.MAX_PAGES_DEFAULT.as_(int),
        max_consecutive_errors_default=config.MAX_CONSECUTIVE_ERRORS.as_(int),
    )

    profile_store = providers.Singleton(
        ProfileFileStore,
        profiles_dir=config.PAGECHAIN_PROFILES_DIR.as_(str),
        parser=profile_parser,
    )

    crawl_orchestrator = providers.Factory(
        CrawlOrchestrator,
        fetcher_factory=fetcher_factory,
        timeout_ms=config.REQUEST_TIMEOUT_MS.as_(int),
        delay_seconds=providers.Callable(lambda ms: ms / 1000, config.PAGE_DELAY_MS.as_(int)),
        retry_failed_fetch=config.PAGECHAIN_RETRY_FAILED_FETCH.as_(bool),
        selector_evaluator=selector_evaluator,
        asset_collector=asset_collector,
    )

    job_runner = providers.Singleton(
        JobRunner,
        orchestrator=crawl_orchestrator,
        job_registry=job_registry,
    )
