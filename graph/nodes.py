"""
MisIntel Workflow Nodes
Each node takes the current state and returns the keys it updates.
"""

import asyncio
import logging
from typing import Any, Optional

from graph.state import CheckState
from graph.prompts import build_analysis_prompt
from graph.analysis import (
    extract_json_object,
    normalize_model_output,
    fallback_analysis,
    partial_failure_result,
)
from models.schemas import (
    AnalysisResult, AuthorInfo, InputKind, SafetyVerdict, VerificationEvidence
)
from agents.llm_providers import BaseLLMProvider
from services.analysis_cache import (
    AnalysisCache, choose_ttl, read_cached_result, write_cached_result
)
from services.author import AuthorExtractor
from services.reliability import extract_domain
from tools.base import Lookup
from tools.google_factcheck import GoogleFactCheckTool
from tools.custom_search import CustomSearchTool
from tools.safe_browsing import SafeBrowsingTool
from tools.newsapi_search import NewsAPITool
from tools.url_extractor import URLContentExtractor
from tools.ocr import ImageTextExtractor
from tools.speech import SpeechToTextTool
from config import Settings, TRUNCATION
from exceptions import InputValidationError, OCRError, TranscriptionError

logger = logging.getLogger(__name__)


class PipelineNodes:
    """Workflow nodes bound to their collaborators."""

    def __init__(
        self,
        settings: Settings,
        cache: AnalysisCache,
        llm: BaseLLMProvider,
        fact_check: GoogleFactCheckTool,
        search: CustomSearchTool,
        safe_browsing: SafeBrowsingTool,
        news: NewsAPITool,
        url_extractor: URLContentExtractor,
        author_extractor: AuthorExtractor,
        ocr: ImageTextExtractor,
        speech: SpeechToTextTool,
    ):
        self.settings = settings
        self.cache = cache
        self.llm = llm
        self.fact_check = fact_check
        self.search = search
        self.safe_browsing = safe_browsing
        self.news = news
        self.url_extractor = url_extractor
        self.author_extractor = author_extractor
        self.ocr = ocr
        self.speech = speech

    def _uses_cache(self, state: CheckState) -> bool:
        return self.settings.cache_enabled and state["request"].kind == InputKind.URL

    async def lookup_cache(self, state: CheckState) -> dict[str, Any]:
        """Serve a cached URL analysis unless the caller forced a fresh run."""
        request = state["request"]
        if not self._uses_cache(state) or request.force_fresh:
            return {"cache_hit": False}

        cached = await read_cached_result(self.cache, state["url"])
        if not cached:
            return {"cache_hit": False}
        try:
            result = AnalysisResult.model_validate(cached)
        except ValueError as e:
            logger.warning("Discarding malformed cache entry for %s: %s", state["url"], e)
            return {"cache_hit": False}

        result.from_cache = True
        return {"cache_hit": True, "result": result}

    async def acquire_content(self, state: CheckState) -> dict[str, Any]:
        """Turn the request into analyzable text."""
        request = state["request"]

        if request.kind == InputKind.URL:
            url = state["url"]
            logger.info("Extracting content from URL: %s", url)
            extracted = await self.url_extractor.extract(url)
            return {"content": extracted or f"URL content analysis: {url}"}

        if request.kind == InputKind.IMAGE:
            try:
                text = await self.ocr.extract(request.image or b"")
            except OCRError as e:
                raise InputValidationError(
                    "image", "Image text extraction failed", e.message, label="Invalid input"
                ) from e
            if not text.strip():
                raise InputValidationError(
                    "image",
                    "No readable text found in image",
                    "Upload a clearer image containing text",
                    label="Invalid input",
                )
            return {
                "content": text.strip(),
                "extracted_text": text.strip()[: TRUNCATION.EXTRACTED_CONTENT],
            }

        if request.kind == InputKind.AUDIO:
            try:
                transcript = await self.speech.transcribe(request.audio or b"", request.audio_mime_type)
            except TranscriptionError as e:
                raise InputValidationError(
                    "audio", "Audio transcription failed", e.message, label="Invalid input"
                ) from e
            if not transcript.transcript.strip():
                raise InputValidationError(
                    "audio",
                    "No speech detected in audio",
                    "Record a clearer clip and try again",
                    label="Invalid input",
                )
            return {"content": transcript.transcript.strip()}

        return {"content": (request.body or "").strip()}

    async def gather_evidence(self, state: CheckState) -> dict[str, Any]:
        """
        Query every evidence source concurrently.

        A failing source contributes its neutral default; it never cancels the others.
        """
        content = state["content"]
        url = state.get("url")

        lookups = {
            "factCheck": self.fact_check.lookup(content),
            "webSearch": self.search.lookup(content),
            "news": self.news.lookup(content),
        }
        if url:
            lookups["safeBrowsing"] = self.safe_browsing.lookup(url)

        coroutines = list(lookups.values())
        if url:
            coroutines.append(self.author_extractor.extract(url))

        results = await asyncio.gather(*coroutines, return_exceptions=True)
        outcomes = dict(zip(lookups.keys(), results))

        defaults = {"factCheck": [], "webSearch": [], "news": [], "safeBrowsing": SafetyVerdict()}
        data: dict[str, Any] = {}
        availability: dict[str, str] = {}
        for source, outcome in outcomes.items():
            if isinstance(outcome, Lookup):
                data[source] = outcome.data
                availability[source] = outcome.status.value
            else:
                logger.warning("Evidence source %s raised: %s", source, outcome)
                data[source] = defaults[source]
                availability[source] = "unavailable"

        author: Optional[AuthorInfo] = None
        if url:
            author = results[-1]
            if not isinstance(author, AuthorInfo):
                logger.warning("Author extraction raised: %s", author)
                author = self.author_extractor.fallback(extract_domain(url))

        evidence = VerificationEvidence(
            fact_check_claims=data["factCheck"],
            search_results=data["webSearch"],
            news_articles=data["news"],
            safety=data.get("safeBrowsing", SafetyVerdict()),
            availability=availability,
        )
        logger.info(
            "Evidence gathered: %d fact-checks, %d search results, %d news articles",
            len(evidence.fact_check_claims),
            len(evidence.search_results),
            len(evidence.news_articles),
        )
        return {"evidence": evidence, "author": author}

    async def _model_analysis(self, content: str, evidence: VerificationEvidence, url: Optional[str]) -> AnalysisResult:
        prompt = build_analysis_prompt(
            content,
            evidence.fact_check_claims,
            evidence.search_results,
            evidence.news_articles,
            evidence.safety,
            url=url,
        )
        text = await self.llm.generate(prompt)
        return normalize_model_output(extract_json_object(text), evidence)

    async def analyze(self, state: CheckState) -> dict[str, Any]:
        """Model verdict, falling back to the heuristic and then to a partial response."""
        request = state["request"]
        content = state["content"]
        evidence = state["evidence"]
        url = state.get("url")

        cacheable = True
        try:
            result = await self._model_analysis(content, evidence, url)
            logger.info("Comprehensive analysis successful")
        except Exception as e:
            logger.error("AI analysis failed, using fallback heuristic: %s", e)
            try:
                result = fallback_analysis(content, evidence)
            except Exception as fallback_error:
                logger.error("Fallback analysis failed: %s", fallback_error)
                result = partial_failure_result(evidence)
                cacheable = False

        if request.kind in (InputKind.TEXT, InputKind.AUDIO):
            result.input_text = content
        elif request.kind == InputKind.URL:
            result.input_url = url
        elif request.kind == InputKind.IMAGE:
            result.extracted_text = state.get("extracted_text")
        result.author = state.get("author")

        return {"result": result, "cacheable": cacheable}

    async def store_cache(self, state: CheckState) -> dict[str, Any]:
        """Cache URL results with a TTL chosen from confidence and safety."""
        result = state["result"]
        if not self._uses_cache(state) or not state.get("cacheable", False):
            return {}

        ttl = choose_ttl(
            result.confidence,
            result.safety_check.safe,
            base_ttl=self.settings.cache_base_ttl_seconds,
        )
        await write_cached_result(self.cache, state["url"], result.to_wire(), ttl)
        return {}
