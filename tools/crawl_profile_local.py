import argparse
from dataclasses import replace
import json
import logging
import os
import sys

# Ensure repo root is on sys.path so `pagechain` package imports resolve when
# running the script directly.
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)

from pagechain.container import Container
from pagechain.domain import CrawlRequest
from pagechain.services.progress import RecordingProgressSink


logging.basicConfig(level=logging.INFO)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run one crawl profile locally and print the result as JSON.")
    parser.add_argument("profile", help="profile file name (resolved against PAGECHAIN_PROFILES_DIR) or absolute path")
    parser.add_argument("start_url")
    parser.add_argument("--max-pages", type=int, default=None)
    args = parser.parse_args(argv)

    container = Container()
    profile = container.profile_store().load_profile(args.profile)
    if args.max_pages is not None:
        profile = replace(profile, stop_rules=replace(profile.stop_rules, max_pages=args.max_pages))

    sink = RecordingProgressSink()
    outcome = container.crawl_orchestrator().run(
        CrawlRequest(start_url=args.start_url, profile=profile),
        progress_sink=sink,
    )
    for event in sink.events:
        print(f"[{event.sequence}] {event.note}", file=sys.stderr)
    print(json.dumps(outcome.to_dict(), indent=2))
    return 0 if outcome.ok else 1


if __name__ == '__main__':
    sys.exit(main())
