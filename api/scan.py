"""
API Endpoint for AI/SEO Readiness Scans

FastAPI app that:
1. Accepts a target URL (or several) plus optional competitor URLs
2. Runs the scan synchronously and returns the scored result
3. Reports provider configuration status
"""

import logging
import sys
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from src.integrations.config import ProviderClients
from src.integrations.scraper import ScrapeError
from src.services import ScanInputError, ScanService
from src.utils.config import get_settings

# Configure logging to stdout
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

VERSION = "0.1.0"

app = FastAPI(
    title="AI/SEO Readiness Auditor",
    description="Scores how ready a website is for AI search and classic SEO",
    version=VERSION,
)

_service: Optional[ScanService] = None


def get_service() -> ScanService:
    """Lazily build the scan service (one set of provider clients per process)."""
    global _service
    if _service is None:
        clients = ProviderClients(get_settings())
        clients.log_status()
        _service = ScanService(clients)
    return _service


@app.on_event("shutdown")
async def shutdown_event():
    """Close provider clients."""
    global _service
    if _service is not None:
        await _service.clients.close()
        _service = None


# ============================================================================
# REQUEST MODELS
# ============================================================================

class ScanRequest(BaseModel):
    """Request to scan a website."""
    url: Optional[str] = Field(default=None, description="Target URL (e.g. 'https://shop.co.th')")
    urls: Optional[List[str]] = Field(
        default=None,
        description="Several URLs of the target domain; scores are averaged",
    )
    competitors: Optional[List[str]] = Field(
        default=None,
        description="Competitor URLs, one per competitor (at most 4 are scanned)",
    )


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/health")
async def health():
    """Liveness check."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": VERSION,
    }


@app.get("/scan")
async def scan_status():
    """Scan API status and provider configuration."""
    return {
        "status": "ok",
        "message": "Scan API is running. POST a URL to scan.",
        "apiStatus": get_service().get_api_status(),
        "example": {"url": "https://example.com", "competitors": []},
    }


@app.post("/scan")
async def run_scan(request: ScanRequest):
    """
    Scan a website.

    Returns 400 for missing/invalid URLs and 502 when the target cannot be
    fetched. Provider failures never fail the request; they are listed in
    ``errors`` and the affected metrics fall back to estimates.
    """
    service = get_service()
    try:
        return await service.scan(url=request.url, urls=request.urls, competitors=request.competitors)
    except ScanInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ScrapeError as e:
        logger.error(f"Scan target unreachable: {e}")
        raise HTTPException(status_code=502, detail=f"Target unreachable: {e}")


# ============================================================================
# LOCAL DEVELOPMENT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.scan:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
