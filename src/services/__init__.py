"""
AI/SEO Readiness Auditor - Services Layer

Scan orchestration across scraping, provider aggregation and scoring.
"""

from .scanner import ScanService, ScanInputError, DomainScan, UrlScan, validate_urls

__all__ = ["ScanService", "ScanInputError", "DomainScan", "UrlScan", "validate_urls"]
