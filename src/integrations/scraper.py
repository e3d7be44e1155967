"""
Page Scraper

Fetches one URL plus the site-level files next to it and extracts the
measurable page facts the scoring engine reads:
- Title, meta description, visible H1/H2/H3 text
- JSON-LD schema types
- Tables, lists, images (with alt), videos and embeds
- Internal/external link counts, visible word count
- robots.txt, llms.txt and sitemap presence

Failing to fetch the page itself is the one hard failure of a scan and is
raised as ScrapeError. Missing site files only turn their flags off.
"""

import asyncio
import json
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import replace
from typing import List, Optional, Tuple
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from src.models import PageFacts
from src.utils.domain import ensure_url, normalize_domain

logger = logging.getLogger(__name__)


REQUEST_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; SAO-Auditor/1.0)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

LLMS_PATHS = ("/llms.txt", "/llms-full.txt")
SITEMAP_PATHS = ("/sitemap.xml", "/sitemap_index.xml", "/sitemap-index.xml")

# Headings inside these containers are chrome, not content
_EXCLUDED_CONTAINERS = {"nav", "footer", "header"}
_EXCLUDED_ROLES = {"navigation", "banner"}
_EXCLUDED_CLASSES = {"modal", "popup"}
_HIDDEN_CLASSES = {"hidden", "sr-only", "visually-hidden"}
_HIDDEN_STYLE_RE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.IGNORECASE)
_VIDEO_EMBED_RE = re.compile(r"youtube|youtu\.be|youtube-nocookie|vimeo", re.IGNORECASE)


class ScrapeError(Exception):
    """The target page could not be fetched."""

    def __init__(self, message: str, url: str, status_code: int = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


# ============================================================================
# HTML PARSING
# ============================================================================

def _is_hidden(tag) -> bool:
    if tag.has_attr("hidden"):
        return True
    if _HIDDEN_STYLE_RE.search(tag.get("style") or ""):
        return True
    return bool(_HIDDEN_CLASSES.intersection(tag.get("class") or []))


def _in_excluded_section(tag) -> bool:
    for parent in tag.parents:
        if parent.name is None:
            continue
        if parent.name in _EXCLUDED_CONTAINERS:
            return True
        if (parent.get("role") or "") in _EXCLUDED_ROLES:
            return True
        if parent.get("aria-hidden") == "true":
            return True
        if _EXCLUDED_CLASSES.intersection(parent.get("class") or []):
            return True
    return False


def visible_headings(soup: BeautifulSoup, level: str) -> Tuple[str, ...]:
    """Text of headings at ``level`` that are visible and outside nav/header/footer."""
    texts = []
    for tag in soup.find_all(level):
        if _is_hidden(tag) or _in_excluded_section(tag):
            continue
        text = tag.get_text(" ", strip=True)
        if text:
            texts.append(text)
    return tuple(texts)


def schema_types_from_soup(soup: BeautifulSoup) -> List[str]:
    """@type values from every parseable JSON-LD block (including @graph)."""
    types: List[str] = []

    def _collect(node):
        if isinstance(node, list):
            for item in node:
                _collect(item)
            return
        if not isinstance(node, dict):
            return
        value = node.get("@type")
        if isinstance(value, list):
            types.extend(str(v) for v in value if v)
        elif value:
            types.append(str(value))
        if "@graph" in node:
            _collect(node["@graph"])

    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            _collect(json.loads(script.string or ""))
        except ValueError:
            logger.debug("Skipping invalid JSON-LD block")

    return list(dict.fromkeys(types))


def count_links(soup: BeautifulSoup, page_url: str) -> Tuple[int, int]:
    """(internal, external) anchors, ignoring fragments and non-http schemes."""
    host = normalize_domain(page_url)
    internal = external = 0

    for anchor in soup.find_all("a", href=True):
        href = (anchor["href"] or "").strip()
        if not href or href.startswith("#"):
            continue
        if href.lower().startswith(("javascript:", "mailto:", "tel:")):
            continue
        resolved = urlparse(urljoin(page_url, href))
        if resolved.scheme not in ("http", "https"):
            continue
        if normalize_domain(resolved.netloc) == host:
            internal += 1
        else:
            external += 1

    return internal, external


def parse_html(html: str, url: str) -> PageFacts:
    """Extract PageFacts from an HTML document (site-file flags left off)."""
    soup = BeautifulSoup(html or "", "html.parser")

    schema_types = schema_types_from_soup(soup)

    title = soup.title.get_text(strip=True) if soup.title else ""
    if not title:
        og_title = soup.find("meta", attrs={"property": "og:title"})
        title = (og_title.get("content") or "").strip() if og_title else ""

    meta = soup.find("meta", attrs={"name": "description"}) or soup.find(
        "meta", attrs={"property": "og:description"}
    )
    meta_description = (meta.get("content") or "").strip() if meta else ""

    videos = len(soup.find_all("video")) + sum(
        1 for frame in soup.find_all("iframe", src=True) if _VIDEO_EMBED_RE.search(frame["src"])
    )

    images = soup.find_all("img")
    images_with_alt = sum(1 for img in images if (img.get("alt") or "").strip())

    internal, external = count_links(soup, url)

    # Headings are read before scripts/styles are dropped for word counting
    h1 = visible_headings(soup, "h1")
    h2 = visible_headings(soup, "h2")
    h3 = visible_headings(soup, "h3")
    tables = len(soup.find_all("table"))
    lists = len(soup.find_all(["ul", "ol"]))

    for tag in soup.find_all(["script", "style", "noscript"]):
        tag.decompose()
    body = soup.body or soup
    words = body.get_text(" ", strip=True).split()

    return PageFacts(
        url=url,
        title=title,
        meta_description=meta_description,
        h1=h1,
        h2=h2,
        h3=h3,
        has_schema=bool(schema_types),
        schema_types=tuple(schema_types),
        table_count=tables,
        list_count=lists,
        image_count=len(images),
        images_with_alt=images_with_alt,
        video_count=videos,
        internal_links=internal,
        external_links=external,
        word_count=len(words),
        has_ssl=url.lower().startswith("https://"),
    )


def is_valid_sitemap(content: str) -> bool:
    """A sitemap needs a urlset or sitemapindex root and at least one non-empty <loc>."""
    # Namespaced tags parse as "{uri}local"; compare local names only
    content = re.sub(r'\sxmlns="[^"]+"', '', content.strip())
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        logger.debug(f"Sitemap is not well-formed XML: {e}")
        return False

    if _local_name(root.tag) not in ("urlset", "sitemapindex"):
        return False
    return any(
        _local_name(elem.tag) == "loc" and elem.text and elem.text.strip()
        for elem in root.iter()
    )


def _local_name(tag) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


# ============================================================================
# SCRAPER
# ============================================================================

class PageScraper:
    """
    Fetches a page and its site files.

    Usage:
        scraper = PageScraper()
        facts = await scraper.scrape("shop.co.th")
        await scraper.close()
    """

    def __init__(
        self,
        timeout: float = 30.0,
        site_file_timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.site_file_timeout = site_file_timeout
        self._client = httpx.AsyncClient(
            headers=REQUEST_HEADERS,
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            transport=transport,
        )
        self._closed = False

    async def scrape(self, url: str) -> PageFacts:
        """
        Scrape ``url`` into PageFacts.

        Raises:
            ScrapeError: The page could not be fetched or returned an error status
        """
        target = ensure_url(url)
        try:
            response = await self._client.get(target)
        except httpx.HTTPError as e:
            raise ScrapeError(f"Could not reach {target}: {e}", url=target)

        if response.status_code >= 400:
            raise ScrapeError(
                f"{target} returned HTTP {response.status_code}",
                url=target,
                status_code=response.status_code,
            )

        final_url = str(response.url)
        facts = parse_html(response.text, final_url)

        origin = f"{response.url.scheme}://{response.url.host}"
        if response.url.port and response.url.port not in (80, 443):
            origin = f"{origin}:{response.url.port}"

        robots, llms, sitemap = await asyncio.gather(
            self._has_robots_txt(origin),
            self._has_llms_txt(origin),
            self._has_valid_sitemap(origin),
        )

        logger.info(
            f"Scraped {final_url}: {facts.word_count} words, H1={len(facts.h1)}, "
            f"schema={list(facts.schema_types)}"
        )

        return replace(facts, has_robots_txt=robots, has_llms_txt=llms, sitemap_valid=sitemap)

    async def _fetch_text(self, url: str) -> Optional[str]:
        try:
            response = await self._client.get(url, timeout=self.site_file_timeout)
        except httpx.HTTPError as e:
            logger.debug(f"Site file fetch failed for {url}: {e}")
            return None
        if response.status_code != 200:
            return None
        return response.text

    async def _has_robots_txt(self, origin: str) -> bool:
        return await self._fetch_text(f"{origin}/robots.txt") is not None

    async def _has_llms_txt(self, origin: str) -> bool:
        for path in LLMS_PATHS:
            text = await self._fetch_text(f"{origin}{path}")
            if text is not None and text.strip():
                return True
        return False

    async def _has_valid_sitemap(self, origin: str) -> bool:
        for path in SITEMAP_PATHS:
            xml = await self._fetch_text(f"{origin}{path}")
            if xml and is_valid_sitemap(xml):
                return True
        return False

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
