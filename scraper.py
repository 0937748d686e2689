import logging
import re
from urllib.parse import urlsplit, urlunsplit

import requests
from bs4 import BeautifulSoup

from errors import ExtractionError, RetrievalError
from models import ExtractedContent, RawArticle

logger = logging.getLogger(__name__)

DESKTOP_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

MOBILE_HEADERS = {
    **DESKTOP_HEADERS,
    "User-Agent": (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X) "
        "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/16.0 "
        "Mobile/15E148 Safari/604.1"
    ),
}

BLOCKED_STATUSES = (403, 429)
RETRYABLE_STATUSES = (429, 500, 502, 503, 504)

TITLE_SUFFIX = " - Wikipedia"
UNKNOWN_TITLE = "Unknown Article"
MAX_PARAGRAPHS = 15

_WHITESPACE_RE = re.compile(r"\s+")


def mobile_url(url: str) -> str:
    """en.wikipedia.org/wiki/X -> en.m.wikipedia.org/wiki/X"""
    parts = urlsplit(url)
    host = parts.hostname or ""
    if ".m.wikipedia.org" in host or not host.endswith("wikipedia.org"):
        return url
    lang = host[: -len("wikipedia.org")].rstrip(".")
    host = f"{lang}.m.wikipedia.org" if lang else "m.wikipedia.org"
    return urlunsplit((parts.scheme, host, parts.path, parts.query, parts.fragment))


class ArticleFetcher:
    """
    Resolves a validated article URL to its raw HTML.

    A single GET by default. ``max_attempts`` > 1 retries transport errors
    and transient statuses; ``mobile_fallback`` re-requests the mobile site
    when the desktop one answers 403/429.
    """

    def __init__(self, timeout: float = 20.0, max_attempts: int = 1, mobile_fallback: bool = False):
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.mobile_fallback = mobile_fallback

    def _get(self, url: str, headers: dict) -> str:
        resp = requests.get(url, headers=headers, timeout=self.timeout, allow_redirects=True)
        resp.raise_for_status()
        return resp.text

    def _get_with_retry(self, url: str, headers: dict) -> str:
        attempt = 1
        while True:
            try:
                return self._get(url, headers)
            except requests.HTTPError as e:
                status = e.response.status_code if e.response is not None else None
                if attempt >= self.max_attempts or status not in RETRYABLE_STATUSES:
                    raise
            except (requests.ConnectionError, requests.Timeout):
                if attempt >= self.max_attempts:
                    raise
            logger.info("Retrying article fetch for %s (attempt %d/%d)", url, attempt + 1, self.max_attempts)
            attempt += 1

    def fetch(self, url: str) -> RawArticle:
        try:
            try:
                html = self._get_with_retry(url, DESKTOP_HEADERS)
            except requests.HTTPError as e:
                status = e.response.status_code if e.response is not None else None
                if not (self.mobile_fallback and status in BLOCKED_STATUSES):
                    raise
                logger.warning("Wikipedia answered %s for %s, trying the mobile site", status, url)
                html = self._get_with_retry(mobile_url(url), MOBILE_HEADERS)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise RetrievalError(f"Article request for {url} returned HTTP {status}", status=status) from e
        except requests.Timeout as e:
            raise RetrievalError(f"Article request for {url} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise RetrievalError(f"Article request for {url} failed: {e}") from e

        logger.debug("Fetched %d characters from %s", len(html), url)
        return RawArticle(url=url, markup=html)


def _normalize(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


class ContentExtractor:
    """
    Heuristic title and excerpt extraction from Wikipedia HTML.

    Downstream stages only see ``ExtractedContent``, so this can be swapped
    for a structured parser without touching them.
    """

    def __init__(self, max_paragraphs: int = MAX_PARAGRAPHS):
        self.max_paragraphs = max_paragraphs

    def _title(self, soup: BeautifulSoup) -> str:
        if soup.title is None:
            return UNKNOWN_TITLE
        text = _normalize(soup.title.get_text())
        if TITLE_SUFFIX not in text:
            return UNKNOWN_TITLE
        title = text[: text.rfind(TITLE_SUFFIX)].strip()
        return title or UNKNOWN_TITLE

    def extract(self, markup: str) -> ExtractedContent:
        soup = BeautifulSoup(markup or "", "html.parser")
        title = self._title(soup)

        # Strip citation markers and edit links
        for tag in soup.select("sup.reference, span.mw-editsection"):
            tag.decompose()

        blocks = []
        for p in soup.find_all("p"):
            text = _normalize(p.get_text(" "))
            if text:
                blocks.append(text)
            if len(blocks) >= self.max_paragraphs:
                break

        excerpt = _normalize(" ".join(blocks))
        if not excerpt:
            raise ExtractionError("No paragraph text found in article markup")

        if title == UNKNOWN_TITLE:
            logger.warning("No article title found, using %r", UNKNOWN_TITLE)
        return ExtractedContent(title=title, excerpt=excerpt)
