import pytest
import httpx
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from config import Settings
from agents.llm_providers import BaseLLMProvider
from graph.workflow import AdvancedCheckOrchestrator
from models.schemas import AuthorInfo, SafetyVerdict, SpeechTranscript
from services.analysis_cache import MemoryAnalysisCache
from services.rate_limiter import SlidingWindowRateLimiter
from tools.base import Lookup

ALL_KEYS_EMPTY = {
    "GEMINI_API_KEY": "",
    "FACT_CHECK_API_KEY": "",
    "CUSTOM_SEARCH_API_KEY": "",
    "CUSTOM_SEARCH_ENGINE_ID": "",
    "SAFE_BROWSING_API_KEY": "",
    "NEWS_API_KEY": "",
    "GOOGLE_CLOUD_API_KEY": "",
}

MODEL_VERDICT = (
    '{"isFake": false, "confidence": 88, "summary": "Consistent with recent reporting.", '
    '"reasons": ["Matches coverage from two outlets"], "sources": ["https://www.reuters.com/world/story"]}'
)


def make_settings(**overrides) -> Settings:
    """Settings isolated from the process environment and any .env file."""
    values = {**ALL_KEYS_EMPTY, "GEMINI_API_KEY": "test_gemini_key", "CACHE_BACKEND": "memory"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeLLM(BaseLLMProvider):
    """Canned model output; records every prompt."""

    name = "fake"

    def __init__(self, response: str = MODEL_VERDICT, error: Exception = None, available: bool = True):
        self.response = response
        self.error = error
        self.available = available
        self.prompts = []

    @property
    def is_available(self) -> bool:
        return self.available

    async def generate(self, prompt, temperature=0.3, max_tokens=2048):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_http(monkeypatch):
    """Route every ``httpx.AsyncClient`` through ``handler``. Returns the installer."""
    real_client = httpx.AsyncClient

    def install(handler):
        requests = []

        def recording_handler(request: httpx.Request):
            requests.append(request)
            return handler(request)

        monkeypatch.setattr(
            httpx,
            "AsyncClient",
            lambda *args, **kwargs: real_client(
                *args, transport=httpx.MockTransport(recording_handler), **kwargs
            ),
        )
        return requests

    return install


@pytest.fixture
def fake_tools():
    """Evidence and acquisition tools with neutral canned answers."""
    author_extractor = MagicMock()
    author_extractor.extract = AsyncMock(
        return_value=AuthorInfo(name="Jane Doe", credibility_score=75)
    )
    author_extractor.fallback = MagicMock(
        return_value=AuthorInfo(name="Example Editorial Team", credibility_score=65)
    )

    def tool(**attrs):
        mock = MagicMock()
        mock.is_available = True
        for name, value in attrs.items():
            setattr(mock, name, value)
        return mock

    return SimpleNamespace(
        fact_check=tool(lookup=AsyncMock(return_value=Lookup.ok([]))),
        search=tool(lookup=AsyncMock(return_value=Lookup.not_configured([])), is_available=False),
        safe_browsing=tool(lookup=AsyncMock(return_value=Lookup.ok(SafetyVerdict()))),
        news=tool(lookup=AsyncMock(return_value=Lookup.not_configured([])), is_available=False),
        url_extractor=tool(extract=AsyncMock(return_value="Parliament passed the budget on Tuesday.")),
        author_extractor=author_extractor,
        ocr=tool(extract=AsyncMock(return_value="BREAKING: miracle cure doctors hate")),
        speech=tool(
            transcribe=AsyncMock(return_value=SpeechTranscript(transcript="The bridge collapsed this morning"))
        ),
    )


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def cache():
    return MemoryAnalysisCache()


@pytest.fixture
def make_orchestrator(settings, fake_tools, llm, cache):
    def build(**overrides) -> AdvancedCheckOrchestrator:
        deps = {
            "settings": settings,
            "rate_limiter": SlidingWindowRateLimiter(window_seconds=60, max_requests=6),
            "cache": cache,
            "llm": llm,
            **vars(fake_tools),
        }
        deps.update(overrides)
        return AdvancedCheckOrchestrator(**deps)

    return build


@pytest.fixture
def orchestrator(make_orchestrator):
    return make_orchestrator()
