"""
MisIntel Advanced-Check Workflow
Request gates plus the LangGraph pipeline behind them.
"""

import logging
from typing import Optional
from urllib.parse import urlsplit

from langgraph.graph import StateGraph, START, END

from graph.state import CheckState
from graph.nodes import PipelineNodes
from models.schemas import AnalysisRequest, AnalysisResult, AuthorInfo, InputKind
from agents.llm_providers import BaseLLMProvider, GeminiProvider
from services.analysis_cache import AnalysisCache, get_analysis_cache
from services.author import AuthorExtractor
from services.rate_limiter import SlidingWindowRateLimiter
from tools.google_factcheck import GoogleFactCheckTool
from tools.custom_search import CustomSearchTool
from tools.safe_browsing import SafeBrowsingTool
from tools.newsapi_search import NewsAPITool
from tools.url_extractor import URLContentExtractor
from tools.ocr import ImageTextExtractor
from tools.speech import SpeechToTextTool
from config import Settings, get_settings
from exceptions import ConfigurationError, InputValidationError, RateLimitedError

logger = logging.getLogger(__name__)


def route_after_cache(state: CheckState) -> str:
    """Cache hits skip the whole pipeline."""
    return "hit" if state.get("cache_hit") else "miss"


def create_check_workflow(nodes: PipelineNodes):
    """
    Create the advanced-check workflow graph.

    Workflow:
    1. lookup_cache: Serve a cached URL analysis (ends the run on a hit)
    2. acquire_content: Fetch, OCR, transcribe or trim the input
    3. gather_evidence: Query fact-check, search, safety, news and author sources
    4. analyze: Model verdict with fallbacks
    5. store_cache: Cache URL results with a confidence-dependent TTL

    Returns:
        Compiled LangGraph workflow
    """
    workflow = StateGraph(CheckState)

    workflow.add_node("lookup_cache", nodes.lookup_cache)
    workflow.add_node("acquire_content", nodes.acquire_content)
    workflow.add_node("gather_evidence", nodes.gather_evidence)
    workflow.add_node("analyze", nodes.analyze)
    workflow.add_node("store_cache", nodes.store_cache)

    workflow.add_edge(START, "lookup_cache")
    workflow.add_conditional_edges(
        "lookup_cache",
        route_after_cache,
        {
            "hit": END,
            "miss": "acquire_content",
        }
    )
    workflow.add_edge("acquire_content", "gather_evidence")
    workflow.add_edge("gather_evidence", "analyze")
    workflow.add_edge("analyze", "store_cache")
    workflow.add_edge("store_cache", END)

    return workflow.compile()


def is_http_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def validate_request(request: AnalysisRequest) -> None:
    """
    Check the payload required by the request kind.

    Raises:
        InputValidationError: with the kind-specific message
    """
    if request.kind == InputKind.IMAGE:
        if not request.image:
            raise InputValidationError(
                "image", "No image file provided", "image file input is required"
            )
    elif request.kind == InputKind.URL:
        url = (request.url or "").strip()
        if not url:
            raise InputValidationError("url", "No URL provided", "URL input is required")
        if not is_http_url(url):
            raise InputValidationError(
                "url",
                "Invalid URL provided",
                "URL must be an absolute http(s) address",
                label="Invalid input",
            )
    elif request.kind == InputKind.AUDIO:
        if not request.audio:
            raise InputValidationError("audio", "No audio provided", "audio input is required")
    elif not (request.body or "").strip():
        raise InputValidationError("text", "No content provided", "Text input is required")


class AdvancedCheckOrchestrator:
    """
    Entry point for advanced checks.

    Gates (rate limit, model configuration, input validation) run here and
    raise typed errors; everything after them runs in the workflow graph and
    always produces a result.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        cache: Optional[AnalysisCache] = None,
        llm: Optional[BaseLLMProvider] = None,
        fact_check: Optional[GoogleFactCheckTool] = None,
        search: Optional[CustomSearchTool] = None,
        safe_browsing: Optional[SafeBrowsingTool] = None,
        news: Optional[NewsAPITool] = None,
        url_extractor: Optional[URLContentExtractor] = None,
        author_extractor: Optional[AuthorExtractor] = None,
        ocr: Optional[ImageTextExtractor] = None,
        speech: Optional[SpeechToTextTool] = None,
    ):
        self.settings = settings or get_settings()
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(
            window_seconds=self.settings.rate_limit_window_seconds,
            max_requests=self.settings.rate_limit_max_requests,
        )
        self.cache = cache or get_analysis_cache(self.settings)
        self.llm = llm or GeminiProvider(self.settings)
        search = search or CustomSearchTool(self.settings)
        self.author_extractor = author_extractor or AuthorExtractor(search_tool=search)
        self.speech = speech or SpeechToTextTool(self.settings)
        self.tools = {
            "factCheck": fact_check or GoogleFactCheckTool(self.settings),
            "webSearch": search,
            "safeBrowsing": safe_browsing or SafeBrowsingTool(self.settings),
            "news": news or NewsAPITool(self.settings),
            "speech": self.speech,
            "ocr": ocr or ImageTextExtractor(),
        }

        self.nodes = PipelineNodes(
            settings=self.settings,
            cache=self.cache,
            llm=self.llm,
            fact_check=self.tools["factCheck"],
            search=search,
            safe_browsing=self.tools["safeBrowsing"],
            news=self.tools["news"],
            url_extractor=url_extractor or URLContentExtractor(),
            author_extractor=self.author_extractor,
            ocr=self.tools["ocr"],
            speech=self.speech,
        )
        self.graph = create_check_workflow(self.nodes)

    def check_gates(self, request: AnalysisRequest, client_id: str) -> None:
        decision = self.rate_limiter.check(client_id)
        if decision.limited:
            raise RateLimitedError(client_id, decision.retry_after)
        if not self.llm.is_available:
            logger.error("No Gemini API key configured")
            raise ConfigurationError("GEMINI_API_KEY")
        validate_request(request)

    async def run(self, request: AnalysisRequest, client_id: str = "unknown") -> AnalysisResult:
        """
        Analyze one request.

        Raises:
            RateLimitedError: client exceeded its request window
            ConfigurationError: no model API key
            InputValidationError: missing/invalid input, unreadable image or audio
        """
        self.check_gates(request, client_id)
        logger.info("Advanced check request: type=%s client=%s", request.kind.value, client_id)

        state: CheckState = {"request": request, "client_id": client_id}
        if request.kind == InputKind.URL:
            state["url"] = (request.url or "").strip()

        final_state = await self.graph.ainvoke(state)
        return final_state["result"]

    async def author_info(self, url: str) -> AuthorInfo:
        return await self.author_extractor.extract(url)

    def tool_status(self) -> dict[str, bool]:
        return {name: tool.is_available for name, tool in self.tools.items()}


def build_orchestrator(settings: Optional[Settings] = None) -> AdvancedCheckOrchestrator:
    """Wire the production orchestrator from settings."""
    return AdvancedCheckOrchestrator(settings=settings or get_settings())
