import logging
from typing import Optional
from urllib.parse import urljoin, urlsplit

logger = logging.getLogger(__name__)

_WWW = "www."


def normalize_host(host: Optional[str]) -> str:
    """Lower-case `host` and strip leading `www.` labels.

    Stripping repeats until no `www.` prefix remains so that normalizing an
    already normalized host is a no-op.
    """
    value = (host or "").strip().lower().rstrip(".")
    while value.startswith(_WWW):
        value = value[len(_WWW):]
    return value


def normalize_domain(domain: Optional[str]) -> str:
    """Normalize a configured domain, accepting either a bare host or a URL."""
    value = (domain or "").strip()
    if "://" in value:
        try:
            value = urlsplit(value).hostname or ""
        except ValueError:
            logger.warning("Configured domain is not a valid URL: %r", domain)
            return ""
    else:
        value = value.split("/", 1)[0]
    return normalize_host(value)


def host_of(url: str) -> Optional[str]:
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


def host_matches(url: str, configured_domain: str) -> bool:
    """Strict host equality after normalization; no subdomain or suffix matching."""
    host = normalize_host(host_of(url))
    expected = normalize_domain(configured_domain)
    if not host or not expected:
        return False
    return host == expected


def resolve_url(base_url: str, value: Optional[str]) -> Optional[str]:
    """Resolve `value` against `base_url`.

    Returns None for blank values and for references that do not produce a
    parseable absolute URL.
    """
    value = (value or "").strip()
    if not value:
        return None
    try:
        resolved = urljoin(base_url, value)
        parts = urlsplit(resolved)
        # Accessing the port validates it.
        parts.port
    except ValueError:
        logger.debug("Could not resolve %r against %s", value, base_url)
        return None
    if not parts.scheme:
        return None
    return resolved
