"""Page content retrieval.

Two tiers: the Firecrawl scrape API returns cleaned article text; if it errors,
answers non-2xx or returns something we can't read, the page is fetched
directly and reduced to text locally.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from bs4 import BeautifulSoup

from ioc_lens.core.errors import UpstreamUnavailable
from ioc_lens.metrics.prometheus import scrape_attempts_total

logger = logging.getLogger(__name__)

USER_AGENT = "ioc-lens/1.0"

_WS_RE = re.compile(r"\s+")


@dataclass
class ScrapeResult:
    url: str
    text: str
    tier: str  # firecrawl/fallback


def strip_html(html: str) -> str:
    """Drop script/style elements and collapse the remaining text."""
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return _WS_RE.sub(" ", soup.get_text(" ")).strip()


def _firecrawl_text(data: Any) -> Optional[str]:
    # v0 answered {"content": ...}, v1 nests under "data"
    if not isinstance(data, dict):
        return None
    inner = data.get("data")
    if isinstance(inner, dict):
        for key in ("markdown", "content"):
            if isinstance(inner.get(key), str):
                return inner[key]
    if isinstance(data.get("content"), str):
        return data["content"]
    return None


class ContentRetriever:
    def __init__(
        self,
        firecrawl_api_key: str = "",
        firecrawl_base_url: str = "https://api.firecrawl.io",
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self.firecrawl_api_key = firecrawl_api_key
        self.firecrawl_base_url = firecrawl_base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
            )
        return self._client

    def fetch(self, url: str) -> ScrapeResult:
        if self.firecrawl_api_key:
            text = self._scrape_firecrawl(url)
            if text is not None:
                return ScrapeResult(url=url, text=text, tier="firecrawl")
        else:
            logger.debug("no Firecrawl key configured, fetching %s directly", url)
        return ScrapeResult(url=url, text=self._fetch_fallback(url), tier="fallback")

    def _scrape_firecrawl(self, url: str) -> Optional[str]:
        try:
            r = self._http().post(
                f"{self.firecrawl_base_url}/scrape",
                json={"url": url},
                headers={"Authorization": f"Bearer {self.firecrawl_api_key}"},
            )
        except httpx.HTTPError as e:
            logger.warning("Firecrawl request for %s failed: %s; using fallback", url, e)
            scrape_attempts_total.labels(tier="firecrawl", outcome="error").inc()
            return None

        if r.status_code < 200 or r.status_code >= 300:
            logger.warning("Firecrawl answered HTTP %s for %s; using fallback", r.status_code, url)
            scrape_attempts_total.labels(tier="firecrawl", outcome="http_error").inc()
            return None

        try:
            text = _firecrawl_text(r.json())
        except ValueError:
            text = None
        if text is None:
            logger.warning("Firecrawl returned a malformed payload for %s; using fallback", url)
            scrape_attempts_total.labels(tier="firecrawl", outcome="malformed").inc()
            return None

        scrape_attempts_total.labels(tier="firecrawl", outcome="ok").inc()
        return text

    def _fetch_fallback(self, url: str) -> str:
        try:
            r = self._http().get(url)
        except httpx.HTTPError as e:
            scrape_attempts_total.labels(tier="fallback", outcome="error").inc()
            raise UpstreamUnavailable(f"Could not fetch {url}: {e}") from e

        if r.status_code >= 400:
            scrape_attempts_total.labels(tier="fallback", outcome="http_error").inc()
            raise UpstreamUnavailable(f"Could not fetch {url}: HTTP {r.status_code}")

        scrape_attempts_total.labels(tier="fallback", outcome="ok").inc()
        return strip_html(r.text)
