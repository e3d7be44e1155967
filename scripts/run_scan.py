#!/usr/bin/env python3
"""
Scan Runner

Runs one readiness scan from the command line and prints the result.

Usage:
    # Provider credentials are read from the environment / .env:
    export MOZ_API_TOKEN=your_token
    export GOOGLE_CUSTOM_SEARCH_API_KEY=your_key
    export GOOGLE_CUSTOM_SEARCH_ENGINE_ID=your_engine

    # Run a scan:
    python scripts/run_scan.py https://shop.co.th

    # With competitors, raw JSON output:
    python scripts/run_scan.py shop.co.th --competitor rival.co.th --json
"""

import asyncio
import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


async def run_scan(urls, competitors=None, no_cache: bool = False) -> dict:
    """Run a scan with clients built from the environment."""
    load_dotenv()

    from src.integrations.config import ProviderClients
    from src.services import ScanService
    from src.utils.config import Settings

    settings = Settings()
    if no_cache:
        settings.CACHE_ENABLED = False

    async with ProviderClients(settings) as clients:
        clients.log_status()
        service = ScanService(clients)
        return await service.scan(urls=urls, competitors=competitors)


def print_summary(result: dict):
    """Human-readable summary."""
    label = result["scoreLabel"]
    print()
    print("=" * 60)
    print(f"{result['domain']}: {result['total']}/100 ({label['label']})")
    print("=" * 60)
    print(f"  Content structure:  {result['contentStructure']}/30")
    print(f"  Brand ranking:      {result['brandRanking']}/20")
    print(f"  Keyword visibility: {result['keywordVisibility']}/25")
    print(f"  AI trust:           {result['aiTrust']}/25")
    print()
    print(f"Sources: keywords={result['sources']['keywords']}, backlinks={result['sources']['backlinks']}")

    if result["recommendations"]:
        print()
        print("Recommendations:")
        for rec in result["recommendations"]:
            print(f"  [{rec['priority']}] {rec['title']}")

    if result["comparison"]:
        comparison = result["comparison"]
        print()
        print(f"Rank {comparison['rank']} of {comparison['totalEntries']} "
              f"(competitor average {comparison['avgCompetitorScore']})")
        for gap in comparison["gaps"]:
            print(f"  {gap['pillar']}: {gap['gap']:+}")

    if result["errors"]:
        print()
        print(f"Provider errors ({len(result['errors'])}):")
        for error in result["errors"]:
            print(f"  - {error}")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run an AI/SEO readiness scan"
    )
    parser.add_argument(
        "urls",
        nargs="+",
        help="Target URL(s); several URLs of one domain are averaged",
    )
    parser.add_argument(
        "--competitor",
        action="append",
        default=[],
        help="Competitor URL (repeatable, at most 4 are scanned)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the raw JSON result",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable the provider response cache",
    )

    args = parser.parse_args()

    from src.integrations.scraper import ScrapeError
    from src.services import ScanInputError

    try:
        result = asyncio.run(run_scan(args.urls, args.competitor, no_cache=args.no_cache))
    except (ScanInputError, ScrapeError) as e:
        logger.error(f"Scan failed: {e}")
        sys.exit(1)

    if args.json:
        print(json.dumps(result, indent=2, ensure_ascii=False))
    else:
        print_summary(result)


if __name__ == "__main__":
    main()
