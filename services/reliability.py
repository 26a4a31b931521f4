"""
Domain reputation for MisIntel.
Curated publisher lists used to seed author credibility scores.
"""

import re
from typing import Literal

# Wire services, major newsrooms and established fact-checkers
TRUSTED_DOMAINS = {
    # Wire Services
    "reuters.com",
    "apnews.com",
    "afp.com",

    # Major International
    "bbc.com",
    "bbc.co.uk",
    "theguardian.com",
    "nytimes.com",
    "washingtonpost.com",
    "economist.com",
    "ft.com",
    "npr.org",
    "wsj.com",

    # Indian News
    "thehindu.com",
    "indianexpress.com",

    # Fact-checkers
    "snopes.com",
    "politifact.com",
    "factcheck.org",
    "fullfact.org",
    "boomlive.in",
    "altnews.in",

    # Journals
    "nature.com",
    "science.org",
    "thelancet.com",
    "nejm.org",
}

# Mainstream outlets with mixed editorial standards
MODERATE_DOMAINS = {
    "cnn.com",
    "foxnews.com",
    "nbcnews.com",
    "cbsnews.com",
    "abcnews.go.com",
    "usatoday.com",
    "aljazeera.com",
    "bloomberg.com",
    "forbes.com",
    "time.com",
    "theatlantic.com",
    "hindustantimes.com",
    "ndtv.com",
    "timesofindia.indiatimes.com",
    "news18.com",
    "firstpost.com",
    "scroll.in",
    "thewire.in",
    "theprint.in",
    "medium.com",
}

# Scholarly publishers whose pages list authors in a dedicated block
ACADEMIC_DOMAINS = {
    "nature.com",
    "science.org",
    "sciencedirect.com",
    "springer.com",
    "link.springer.com",
    "wiley.com",
    "onlinelibrary.wiley.com",
    "tandfonline.com",
    "jstor.org",
    "ieeexplore.ieee.org",
    "dl.acm.org",
    "pubmed.ncbi.nlm.nih.gov",
    "ncbi.nlm.nih.gov",
    "arxiv.org",
    "medrxiv.org",
    "biorxiv.org",
    "researchgate.net",
    "thelancet.com",
    "nejm.org",
    "plos.org",
    "journals.plos.org",
    "frontiersin.org",
    "mdpi.com",
}

# Academic hosts that answer scrapers with 401/403
PAYWALLED_ACADEMIC_DOMAINS = {
    "sciencedirect.com",
    "onlinelibrary.wiley.com",
    "wiley.com",
    "tandfonline.com",
    "jstor.org",
    "ieeexplore.ieee.org",
    "dl.acm.org",
    "researchgate.net",
    "science.org",
}

REPUTATION_SCORES = {
    "trusted": 88,
    "moderate": 75,
    "unknown": 65,
}


def extract_domain(url: str) -> str:
    """Extract the bare host from a URL (no scheme, port, path or ``www.``)."""
    if not url:
        return ""
    url = re.sub(r'^https?://', '', url.strip().lower())
    domain = re.split(r'[/?#]', url, maxsplit=1)[0]
    domain = domain.rsplit('@', 1)[-1].split(':')[0]
    return re.sub(r'^www\.', '', domain)


def _matches(domain: str, candidates: set[str]) -> bool:
    """Exact match or subdomain of a listed domain."""
    return any(domain == c or domain.endswith("." + c) for c in candidates)


def reputation_tier(domain: str) -> Literal["trusted", "moderate", "unknown"]:
    if _matches(domain, TRUSTED_DOMAINS):
        return "trusted"
    if _matches(domain, MODERATE_DOMAINS):
        return "moderate"
    # Government and university sites
    for suffix in (".gov", ".gov.in", ".gov.uk", ".edu", ".ac.in", ".ac.uk"):
        if domain.endswith(suffix):
            return "trusted"
    return "unknown"


def domain_reputation(domain: str) -> int:
    """Base credibility (0-100) for content published on ``domain``."""
    return REPUTATION_SCORES[reputation_tier(domain)]


def is_academic_domain(domain: str) -> bool:
    return _matches(domain, ACADEMIC_DOMAINS)


def is_paywalled_academic_domain(domain: str) -> bool:
    return _matches(domain, PAYWALLED_ACADEMIC_DOMAINS)


def domain_label(domain: str) -> str:
    """Human label for a site: ``"www.bbc.co.uk"`` -> ``"Bbc"``."""
    parts = [p for p in domain.split(".") if p and p != "www"]
    if not parts:
        return "Unknown"
    # Skip compound public suffixes such as co.uk / com.au
    if len(parts) >= 3 and parts[-2] in {"co", "com", "ac", "gov", "org", "net"}:
        label = parts[-3]
    elif len(parts) >= 2:
        label = parts[-2]
    else:
        label = parts[0]
    return label.capitalize()
