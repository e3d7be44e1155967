"""Utility modules for the AI/SEO readiness auditor."""

from .config import Settings, get_settings
from .domain import (
    normalize_domain,
    is_reserved_domain,
    is_well_known_domain,
    extract_brand_name,
    bare_domain_token,
    ensure_url,
)
from .rate_limit import FixedIntervalGate, RateLimitExhausted

__all__ = [
    "Settings",
    "get_settings",
    # Domain helpers
    "normalize_domain",
    "is_reserved_domain",
    "is_well_known_domain",
    "extract_brand_name",
    "bare_domain_token",
    "ensure_url",
    # Rate limiting
    "FixedIntervalGate",
    "RateLimitExhausted",
]
