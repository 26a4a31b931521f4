"""
Google Fact Check API tool for MisIntel.
Searches existing fact-checks from verified fact-checking organizations.
"""

import logging
from typing import Optional

import httpx

from tools.base import BaseTool, Lookup
from models.schemas import ClaimReview, Review
from config import Settings, get_settings, TRUNCATION, API_TIMEOUTS

logger = logging.getLogger(__name__)


class GoogleFactCheckTool(BaseTool):
    """Google Fact Check Tools API for searching existing fact-checks."""

    name = "google_factcheck"
    description = "Search existing fact-checks from verified fact-checking organizations worldwide"

    BASE_URL = "https://factchecktools.googleapis.com/v1alpha1/claims:search"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def is_available(self) -> bool:
        return self.settings.has_fact_check

    async def lookup(self, query: str) -> Lookup[list[ClaimReview]]:
        """
        Search for existing fact-checks related to a piece of content.

        Args:
            query: Content to search for; only the first 500 characters are sent

        Returns:
            Lookup holding the claims found (empty on any failure)
        """
        if not self.is_available:
            logger.warning("Fact Check API key not configured")
            return Lookup.not_configured([])

        params = {
            "key": self.settings.fact_check_api_key,
            "query": query[:TRUNCATION.FACT_CHECK_QUERY],
        }

        try:
            async with httpx.AsyncClient(timeout=API_TIMEOUTS.EVIDENCE) as client:
                response = await client.get(self.BASE_URL, params=params)
            if response.status_code >= 400:
                logger.warning("Fact Check API failed: %s", response.status_code)
                return Lookup.unavailable([])
            data = response.json()
            claims = [self._parse_claim(claim) for claim in data.get("claims", []) or []]
        except Exception as e:
            logger.warning("Fact Check API error: %s", e)
            return Lookup.unavailable([])

        logger.info("Fact check results: %d claims found", len(claims))
        return Lookup.ok(claims)

    @staticmethod
    def _parse_claim(claim: dict) -> ClaimReview:
        reviews = []
        for review in claim.get("claimReview", []) or []:
            publisher = review.get("publisher") or {}
            reviews.append(Review(
                publisher_name=publisher.get("name") or publisher.get("site") or "Unknown",
                textual_rating=review.get("textualRating") or "",
                url=review.get("url") or "",
            ))
        return ClaimReview(
            claim_text=claim.get("text") or "",
            claimant=claim.get("claimant") or "Unknown",
            reviews=reviews,
        )
