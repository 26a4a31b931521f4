"""
Google Safe Browsing tool for MisIntel.

Fail-open: any error yields a *safe* verdict so the pipeline is never blocked
by the safety service being down.
"""

import logging
from typing import Optional

import httpx

from tools.base import BaseTool, Lookup
from models.schemas import SafetyVerdict
from config import Settings, get_settings, API_TIMEOUTS

logger = logging.getLogger(__name__)


class SafeBrowsingTool(BaseTool):
    """Google Safe Browsing v4 threat-match lookup."""

    name = "safe_browsing"
    description = "Check a URL against Google's malware and social-engineering lists"

    BASE_URL = "https://safebrowsing.googleapis.com/v4/threatMatches:find"

    THREAT_TYPES = [
        "MALWARE",
        "SOCIAL_ENGINEERING",
        "POTENTIALLY_HARMFUL_APPLICATION",
        "UNWANTED_SOFTWARE",
    ]

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def is_available(self) -> bool:
        return self.settings.has_safe_browsing

    def _build_body(self, url: str) -> dict:
        return {
            "client": {"clientId": "misintel", "clientVersion": "1.0.0"},
            "threatInfo": {
                "threatTypes": self.THREAT_TYPES,
                "platformTypes": ["ALL_PLATFORMS"],
                "threatEntryTypes": ["URL"],
                "threatEntries": [{"url": url}],
            },
        }

    async def lookup(self, url: str) -> Lookup[SafetyVerdict]:
        if not self.is_available:
            logger.warning("Safe Browsing API key not configured")
            return Lookup.not_configured(SafetyVerdict())

        try:
            async with httpx.AsyncClient(timeout=API_TIMEOUTS.EVIDENCE) as client:
                response = await client.post(
                    self.BASE_URL,
                    params={"key": self.settings.safe_browsing_api_key},
                    json=self._build_body(url),
                )
            if response.status_code >= 400:
                logger.warning("Safe Browsing API failed: %s", response.status_code)
                return Lookup.unavailable(SafetyVerdict())
            data = response.json()
            matches = data.get("matches") or []
            verdict = SafetyVerdict(safe=len(matches) == 0, threats=matches)
        except Exception as e:
            logger.warning("Safe Browsing API error: %s", e)
            return Lookup.unavailable(SafetyVerdict())

        logger.info("Safety check: %s", "Safe" if verdict.safe else "Threats found")
        return Lookup.ok(verdict)
