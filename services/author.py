"""
Author attribution for MisIntel.

Finds the byline of an article and estimates how credible its author is.
Byline matchers run in a fixed priority order and the first valid name wins:

1. JSON-LD ``author`` (including ``@graph`` documents)
2. ``<meta>`` author tags
3. Author blocks on academic publisher pages
4. ``rel="author"`` links
5. ``itemprop="author"`` and author/byline class elements
6. Site-specific byline markup
7. "By Jane Doe" / "Written by Jane Doe" in the page text

Extraction never raises: any failure yields a site-level fallback author.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import httpx
from bs4 import BeautifulSoup

from models.schemas import AuthorInfo, PriorArticle
from tools.custom_search import CustomSearchTool
from services.analysis_cache import normalize_url
from services.reliability import (
    extract_domain,
    domain_reputation,
    domain_label,
    is_academic_domain,
    is_paywalled_academic_domain,
)
from config import TRUNCATION, API_TIMEOUTS

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 60
MAX_PRIOR_ARTICLES = 5

# Page chrome that byline selectors tend to pick up
UI_STOPWORDS = (
    "login", "log in", "sign in", "sign up", "signup", "subscribe", "subscription",
    "menu", "search", "newsletter", "cookie", "cookies", "privacy", "advertisement",
    "share", "follow", "comments", "skip to", "navigation", "account", "home",
    "click here", "read more", "download",
)
_UI_STOPWORD_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(w) for w in UI_STOPWORDS) + r")\b", re.IGNORECASE
)
_URL_RE = re.compile(r"https?://|www\.|\.(?:com|org|net|html?)\b|/", re.IGNORECASE)

# Words that look like names in author blocks but are not
NON_NAME_WORDS = {
    "Abstract", "Access", "Affiliation", "Affiliations", "Article", "Author", "Authors",
    "Center", "Centre", "College", "Contributions", "Correspondence", "Corresponding",
    "Department", "Division", "Download", "Email", "Faculty", "Google", "Hospital",
    "Information", "Institute", "Journal", "Laboratory", "Less", "More", "Open", "ORCID",
    "Profile", "PubMed", "References", "School", "Scholar", "Search", "Show", "University",
    "View", "Received", "Accepted", "Published", "Cite", "Citation", "Share", "Metrics",
}
_NAME_TOKEN_RE = re.compile(
    r"\b[A-Z][a-zA-Z'\-]+(?:\s+(?:[A-Z]\.\s*)*[A-Z][a-zA-Z'\-]+){1,3}\b"
)
_BY_PREFIX_RE = re.compile(r"^\s*(?:written\s+)?by[:\s]+", re.IGNORECASE)
_TEXT_BYLINE_RE = re.compile(
    r"\b(?:Written by|By)\s+([A-Z][a-zA-Z'\-]+(?:\s+[A-Z]\.)?(?:\s+[A-Z][a-zA-Z'\-]+){1,2})"
)

_MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\.?"
DATE_PATTERNS = (
    re.compile(rf"\b\d{{1,2}}\s+{_MONTHS}\s+\d{{4}}\b"),
    re.compile(rf"\b{_MONTHS}\s+\d{{1,2}},?\s+\d{{4}}\b"),
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b"),
)

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


def clean_name(raw: str) -> str:
    name = _BY_PREFIX_RE.sub("", raw or "")
    # "Jane Doe | 3 hours ago"
    name = re.split(r"\s[|•·]\s", name)[0]
    return re.sub(r"\s+", " ", name).strip(" \t\n,|-:")


def is_valid_author_name(name: Optional[str]) -> bool:
    """Reject empty, overlong, non-alphabetic, URL-like and UI-chrome candidates."""
    if not name:
        return False
    if not (MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH):
        return False
    if not any(ch.isalpha() for ch in name):
        return False
    if _URL_RE.search(name):
        return False
    return _UI_STOPWORD_RE.search(name) is None


def join_names(names: list[str]) -> str:
    return names[0] if len(names) == 1 else f"{names[0]} et al."


def extract_snippet_date(snippet: str) -> str:
    for pattern in DATE_PATTERNS:
        match = pattern.search(snippet or "")
        if match:
            return match.group(0)
    return "Recent"


@dataclass
class PageContext:
    """A fetched page shared by all matchers."""
    html: str
    url: str
    domain: str = ""
    soup: BeautifulSoup = field(init=False)

    def __post_init__(self):
        if not self.domain:
            self.domain = extract_domain(self.url)
        self.soup = BeautifulSoup(self.html, "html.parser")

    @property
    def text(self) -> str:
        return self.soup.get_text(" ", strip=True)


class AuthorMatcher(ABC):
    """One byline-detection strategy."""

    name: str = "matcher"

    @abstractmethod
    def try_extract(self, page: PageContext) -> Optional[str]:
        """Return a cleaned, valid author name or None."""

    def _first_valid(self, candidates: Iterable[str]) -> Optional[str]:
        for candidate in candidates:
            name = clean_name(candidate)
            if is_valid_author_name(name):
                return name
        return None


class JsonLdMatcher(AuthorMatcher):
    name = "json_ld"

    def _nodes(self, data: Any) -> Iterable[dict]:
        if isinstance(data, list):
            for item in data:
                yield from self._nodes(item)
        elif isinstance(data, dict):
            yield data
            if "@graph" in data:
                yield from self._nodes(data["@graph"])

    def _author_names(self, author: Any, by_id: dict[str, dict]) -> list[str]:
        if isinstance(author, str):
            return [author]
        if isinstance(author, list):
            names = []
            for item in author:
                names.extend(self._author_names(item, by_id))
            return names
        if isinstance(author, dict):
            if "name" not in author and author.get("@id") in by_id:
                author = by_id[author["@id"]]
            name = author.get("name")
            if isinstance(name, str):
                return [name]
        return []

    def try_extract(self, page: PageContext) -> Optional[str]:
        documents = []
        for script in page.soup.find_all("script", attrs={"type": "application/ld+json"}):
            try:
                documents.append(json.loads(script.string or script.get_text()))
            except (json.JSONDecodeError, TypeError):
                continue

        nodes = [node for doc in documents for node in self._nodes(doc)]
        by_id = {node["@id"]: node for node in nodes if isinstance(node.get("@id"), str)}
        for node in nodes:
            if "author" not in node:
                continue
            names = [clean_name(n) for n in self._author_names(node["author"], by_id)]
            names = [n for n in names if is_valid_author_name(n)]
            if names:
                return names[0]
        return None


class MetaTagMatcher(AuthorMatcher):
    name = "meta"

    def _contents(self, page: PageContext, key: str) -> list[str]:
        tags = page.soup.find_all("meta", attrs={"name": re.compile(rf"^{re.escape(key)}$", re.I)})
        tags += page.soup.find_all("meta", attrs={"property": re.compile(rf"^{re.escape(key)}$", re.I)})
        return [tag.get("content", "") for tag in tags if tag.get("content")]

    def try_extract(self, page: PageContext) -> Optional[str]:
        for key in ("author", "article:author"):
            name = self._first_valid(self._contents(page, key))
            if name:
                return name

        citation = [clean_name(c) for c in self._contents(page, "citation_author")]
        citation = [c for c in citation if is_valid_author_name(c)]
        if citation:
            return join_names(citation)

        return self._first_valid(self._contents(page, "DC.Creator"))


class AcademicBlockMatcher(AuthorMatcher):
    """Author lists on journal pages, e.g. ``<ul class="c-article-author-list">``."""

    name = "academic_block"

    SECTION_RE = re.compile(r"author", re.I)
    SECTION_LIMIT = 2000

    def _section_text(self, page: PageContext) -> str:
        for attr in ("class", "id"):
            section = page.soup.find(["div", "ul", "ol", "section", "p"], attrs={attr: self.SECTION_RE})
            if section is not None:
                return section.get_text(" ", strip=True)[: self.SECTION_LIMIT]
        return ""

    def try_extract(self, page: PageContext) -> Optional[str]:
        if not is_academic_domain(page.domain):
            return None
        text = self._section_text(page)
        if not text:
            return None

        names: list[str] = []
        for match in _NAME_TOKEN_RE.finditer(text):
            candidate = clean_name(match.group(0))
            words = candidate.replace(".", " ").split()
            if any(word in NON_NAME_WORDS for word in words):
                continue
            if is_valid_author_name(candidate) and candidate not in names:
                names.append(candidate)
        return join_names(names) if names else None


class RelAuthorMatcher(AuthorMatcher):
    name = "rel_author"

    def try_extract(self, page: PageContext) -> Optional[str]:
        links = page.soup.find_all("a", rel="author")
        return self._first_valid(link.get_text(" ", strip=True) for link in links)


class ElementScanMatcher(AuthorMatcher):
    name = "element_scan"

    CLASS_RE = re.compile(r"author|byline", re.I)

    def _itemprop_candidates(self, page: PageContext) -> Iterable[str]:
        for element in page.soup.find_all(attrs={"itemprop": "author"}):
            inner = element.find(attrs={"itemprop": "name"})
            if inner is not None:
                yield inner.get("content") or inner.get_text(" ", strip=True)
            yield element.get("content") or element.get_text(" ", strip=True)

    def _class_candidates(self, page: PageContext) -> Iterable[str]:
        for element in page.soup.find_all(["span", "div", "p"], class_=self.CLASS_RE):
            yield element.get_text(" ", strip=True)

    def try_extract(self, page: PageContext) -> Optional[str]:
        return self._first_valid(self._itemprop_candidates(page)) or self._first_valid(
            self._class_candidates(page)
        )


class SiteSpecificMatcher(AuthorMatcher):
    """Byline markup of individual large publishers."""

    name = "site_specific"

    def _bbc(self, page: PageContext) -> Iterable[str]:
        for element in page.soup.find_all(attrs={"data-testid": re.compile(r"byline", re.I)}):
            span = element.find("span")
            if span is not None:
                yield span.get_text(" ", strip=True)
            yield element.get_text(" ", strip=True)

    def _reuters(self, page: PageContext) -> Iterable[str]:
        for element in page.soup.find_all(attrs={"data-testid": "AuthorNameLink"}):
            yield element.get_text(" ", strip=True)
        for element in page.soup.find_all(href=re.compile(r"/authors/")):
            yield element.get_text(" ", strip=True)

    def try_extract(self, page: PageContext) -> Optional[str]:
        if page.domain.endswith(("bbc.com", "bbc.co.uk")):
            return self._first_valid(self._bbc(page))
        if page.domain.endswith("reuters.com"):
            return self._first_valid(self._reuters(page))
        return None


class TextPatternMatcher(AuthorMatcher):
    name = "text_pattern"

    def try_extract(self, page: PageContext) -> Optional[str]:
        text = page.text[: TRUNCATION.AUTHOR_TEXT_SCAN]
        return self._first_valid(m.group(1) for m in _TEXT_BYLINE_RE.finditer(text))


DEFAULT_MATCHERS: tuple[AuthorMatcher, ...] = (
    JsonLdMatcher(),
    MetaTagMatcher(),
    AcademicBlockMatcher(),
    RelAuthorMatcher(),
    ElementScanMatcher(),
    SiteSpecificMatcher(),
    TextPatternMatcher(),
)


def credibility_score(domain: str, prior_article_count: int) -> int:
    """Domain reputation plus a boost for an established body of work."""
    score = domain_reputation(domain)
    if prior_article_count >= 5:
        score += 15
    elif prior_article_count >= 3:
        score += 10
    elif prior_article_count >= 1:
        score += 5
    return max(0, min(100, score))


class AuthorExtractor:
    """
    Resolve the author of a URL.

    Args:
        search_tool: Web search used for the site-scoped prior-article lookup
        matchers: Byline strategies in priority order
    """

    def __init__(
        self,
        search_tool: Optional[CustomSearchTool] = None,
        matchers: Optional[Iterable[AuthorMatcher]] = None,
    ):
        self.search_tool = search_tool or CustomSearchTool()
        self.matchers = tuple(matchers) if matchers is not None else DEFAULT_MATCHERS

    def match(self, html: str, url: str) -> Optional[str]:
        """Run the matchers over ``html``; first valid name wins."""
        page = PageContext(html=html, url=url)
        for matcher in self.matchers:
            try:
                name = matcher.try_extract(page)
            except Exception as e:
                logger.debug("Author matcher %s failed: %s", matcher.name, e)
                continue
            if name:
                logger.info("Author found by %s: %s", matcher.name, name)
                return name
        return None

    def fallback(self, domain: str, blocked: bool = False) -> AuthorInfo:
        name = "Research Authors" if blocked else f"{domain_label(domain)} Editorial Team"
        return AuthorInfo(name=name, credibility_score=domain_reputation(domain))

    async def find_prior_articles(self, name: str, domain: str, url: str) -> list[PriorArticle]:
        if not domain:
            return []
        lookup = await self.search_tool.lookup(f'"{name}" site:{domain}', max_results=10)
        current = normalize_url(url)
        return [
            PriorArticle(title=hit.title, url=hit.link, date=extract_snippet_date(hit.snippet))
            for hit in lookup.data
            if hit.link and normalize_url(hit.link) != current
        ]

    async def extract(self, url: str) -> AuthorInfo:
        """Author of ``url``. Never raises."""
        domain = extract_domain(url)
        try:
            async with httpx.AsyncClient(
                timeout=API_TIMEOUTS.AUTHOR_FETCH, follow_redirects=True
            ) as client:
                response = await client.get(url, headers=BROWSER_HEADERS)

            if response.status_code in (401, 403) and is_paywalled_academic_domain(domain):
                logger.info("Author page blocked (%s) on %s", response.status_code, domain)
                return self.fallback(domain, blocked=True)
            if response.status_code >= 400:
                logger.warning("Author page fetch failed: %s", response.status_code)
                return self.fallback(domain)

            name = self.match(response.text, url)
            if not name:
                return self.fallback(domain)

            articles = await self.find_prior_articles(name, domain, url)
            return AuthorInfo(
                name=name,
                credibility_score=credibility_score(domain, len(articles)),
                prior_articles=articles[:MAX_PRIOR_ARTICLES],
            )
        except Exception as e:
            logger.warning("Author extraction failed for %s: %s", url, e)
            return self.fallback(domain)
