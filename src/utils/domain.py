"""
Domain Utilities

Normalization shared by every component that keys on a domain:
- cache keys and provider requests use the normalized host
- brand keywords are derived from the first host label
- the estimate fallback classifies hosts as well-known or not
"""

import re
from typing import Optional
from urllib.parse import urlparse
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# RESERVED NAMES (RFC 2606 / RFC 6761)
# =============================================================================

# Documentation domains. They look like ordinary .com/.org hosts but are
# never real sites, so they must not be treated as established.
RESERVED_DOMAINS = {
    "example.com",
    "example.net",
    "example.org",
}

RESERVED_TLDS = {
    "example",
    "test",
    "invalid",
    "localhost",
}

# Suffixes the estimate heuristic treats as established commercial sites
WELL_KNOWN_SUFFIXES = (".com", ".co.th", ".org")

# Bare-token suffixes stripped when building the domain keyword
_DOMAIN_SUFFIX_RE = re.compile(r"\.(com|co\.th|net|org).*$")


def normalize_domain(value: Optional[str]) -> str:
    """
    Reduce a URL or host to a lowercase host without scheme, www or path.

    Args:
        value: URL ("https://www.foo.com/bar") or host ("foo.com")

    Returns:
        Normalized host ("foo.com"), or "" for empty input
    """
    if not value:
        return ""

    text = value.strip().lower()
    if "://" not in text:
        text = f"http://{text}"

    host = urlparse(text).hostname or ""
    if host.startswith("www."):
        host = host[4:]
    return host.rstrip(".")


def is_reserved_domain(domain: Optional[str]) -> bool:
    """
    Check whether a host is a reserved documentation or test name.

    Matches the exact reserved domains, their subdomains, and any host under a
    reserved top-level label.
    """
    host = normalize_domain(domain)
    if not host:
        return True

    for reserved in RESERVED_DOMAINS:
        if host == reserved or host.endswith("." + reserved):
            return True

    return host.rsplit(".", 1)[-1] in RESERVED_TLDS


def is_well_known_domain(domain: Optional[str]) -> bool:
    """Established-looking host: well-known suffix and not a reserved name."""
    host = normalize_domain(domain)
    if not host or is_reserved_domain(host):
        return False
    return host.endswith(WELL_KNOWN_SUFFIXES)


def extract_brand_name(domain: Optional[str]) -> str:
    """First label of the normalized host ("www.msig-thai.co.th" -> "msig-thai")."""
    host = normalize_domain(domain)
    return host.split(".")[0] if host else ""


def bare_domain_token(domain: Optional[str]) -> str:
    """Host with its commercial suffix removed ("shop.co.th" -> "shop")."""
    host = normalize_domain(domain)
    return _DOMAIN_SUFFIX_RE.sub("", host)


def ensure_url(value: str) -> str:
    """Prefix a scheme when the caller passed a bare host."""
    text = value.strip()
    if not text.startswith(("http://", "https://")):
        text = f"https://{text}"
    return text
