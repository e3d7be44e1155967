"""
AI/SEO Readiness Auditor

Scores how ready a website is for AI search and classic SEO:
1. Scrapes page facts and Core Web Vitals
2. Resolves keyword and backlink metrics through a provider cascade
3. Scores four pillars into a 0-100 total with recommendations
4. Compares the target against competitor sites
"""

__version__ = "0.1.0"
