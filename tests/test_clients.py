import io
import json
from datetime import datetime, timezone

import httpx
import pytesseract
import pytest
from PIL import Image

from conftest import make_settings
from exceptions import OCRError, TranscriptionError
from tools import (
    CustomSearchTool,
    GoogleFactCheckTool,
    ImageTextExtractor,
    LookupStatus,
    NewsAPITool,
    SafeBrowsingTool,
    SpeechToTextTool,
    URLContentExtractor,
    html_to_text,
)
from tools.speech import audio_encoding

FACT_CHECK_PAYLOAD = {
    "claims": [
        {
            "text": "Drinking hot water cures the flu",
            "claimant": "Viral post",
            "claimReview": [
                {
                    "publisher": {"name": "FactCheck.org", "site": "factcheck.org"},
                    "url": "https://www.factcheck.org/hot-water",
                    "textualRating": "False",
                }
            ],
        }
    ]
}


def _fail(status_code):
    return lambda request: httpx.Response(status_code, json={"error": "boom"})


def _unreachable(request):
    raise httpx.ConnectError("connection refused", request=request)


class TestGoogleFactCheck:
    async def test_not_configured_makes_no_request(self, mock_http):
        requests = mock_http(lambda request: httpx.Response(200, json={}))
        result = await GoogleFactCheckTool(make_settings()).lookup("claim")

        assert result.status is LookupStatus.NOT_CONFIGURED
        assert result.data == []
        assert requests == []

    async def test_parses_claims(self, mock_http):
        requests = mock_http(lambda request: httpx.Response(200, json=FACT_CHECK_PAYLOAD))
        tool = GoogleFactCheckTool(make_settings(FACT_CHECK_API_KEY="fc-key"))

        result = await tool.lookup("x" * 800)

        assert result.available
        claim = result.data[0]
        assert claim.claim_text == "Drinking hot water cures the flu"
        assert claim.reviews[0].publisher_name == "FactCheck.org"
        assert claim.rated_as("false")
        assert len(requests[0].url.params["query"]) == 500
        assert requests[0].url.params["key"] == "fc-key"

    async def test_http_error_is_unavailable(self, mock_http):
        mock_http(_fail(500))
        result = await GoogleFactCheckTool(make_settings(FACT_CHECK_API_KEY="fc-key")).lookup("claim")

        assert result.status is LookupStatus.UNAVAILABLE
        assert result.data == []


class TestCustomSearch:
    async def test_missing_engine_id_skips_call(self, mock_http):
        requests = mock_http(lambda request: httpx.Response(200, json={}))
        tool = CustomSearchTool(make_settings(CUSTOM_SEARCH_API_KEY="cs-key"))

        result = await tool.lookup("claim")

        assert result.status is LookupStatus.NOT_CONFIGURED
        assert requests == []

    async def test_parses_items(self, mock_http):
        payload = {
            "items": [
                {
                    "title": "Budget passed",
                    "snippet": "Parliament approved the budget",
                    "link": "https://www.bbc.co.uk/news/budget",
                    "displayLink": "www.bbc.co.uk",
                }
            ]
        }
        requests = mock_http(lambda request: httpx.Response(200, json=payload))
        tool = CustomSearchTool(make_settings(CUSTOM_SEARCH_API_KEY="cs-key", CUSTOM_SEARCH_ENGINE_ID="cx-1"))

        result = await tool.lookup("budget", max_results=3)

        assert result.available
        assert result.data[0].source == "www.bbc.co.uk"
        assert requests[0].url.params["cx"] == "cx-1"
        assert requests[0].url.params["num"] == "3"

    async def test_no_items_is_empty(self, mock_http):
        mock_http(lambda request: httpx.Response(200, json={"searchInformation": {}}))
        tool = CustomSearchTool(make_settings(CUSTOM_SEARCH_API_KEY="cs-key", CUSTOM_SEARCH_ENGINE_ID="cx-1"))

        result = await tool.lookup("budget")

        assert result.available
        assert result.data == []


class TestSafeBrowsing:
    async def test_matches_flag_url(self, mock_http):
        threat = {"threatType": "SOCIAL_ENGINEERING", "threat": {"url": "http://phish.example"}}
        requests = mock_http(lambda request: httpx.Response(200, json={"matches": [threat]}))
        tool = SafeBrowsingTool(make_settings(SAFE_BROWSING_API_KEY="sb-key"))

        result = await tool.lookup("http://phish.example")

        assert result.data.safe is False
        assert result.data.flagged
        body = json.loads(requests[0].content)
        assert body["threatInfo"]["threatEntries"] == [{"url": "http://phish.example"}]

    async def test_empty_response_is_safe(self, mock_http):
        mock_http(lambda request: httpx.Response(200, json={}))
        result = await SafeBrowsingTool(make_settings(SAFE_BROWSING_API_KEY="sb-key")).lookup("https://example.com")
        assert result.available
        assert result.data.safe

    @pytest.mark.parametrize(
        "handler",
        [_fail(500), _unreachable],
    )
    async def test_failures_fail_open(self, mock_http, handler):
        mock_http(handler)
        result = await SafeBrowsingTool(make_settings(SAFE_BROWSING_API_KEY="sb-key")).lookup("https://example.com")

        assert result.status is LookupStatus.UNAVAILABLE
        assert result.data.safe is True


class TestNewsAPI:
    async def test_request_parameters(self, mock_http):
        payload = {
            "status": "ok",
            "articles": [
                {
                    "title": "Bridge closed",
                    "description": "Officials closed the bridge",
                    "url": "https://news.example/bridge",
                    "source": {"id": None, "name": None},
                    "publishedAt": "2026-10-18T09:00:00Z",
                }
            ],
        }
        requests = mock_http(lambda request: httpx.Response(200, json=payload))
        tool = NewsAPITool(make_settings(NEWS_API_KEY="news-key"))
        now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

        result = await tool.lookup("q" * 150, now=now)

        params = requests[0].url.params
        assert params["from"] == "2026-10-12"
        assert params["sortBy"] == "publishedAt"
        assert params["language"] == "en"
        assert params["pageSize"] == "10"
        assert len(params["q"]) == 100
        assert result.data[0].source == "Unknown"
        assert result.data[0].published_at == "2026-10-18T09:00:00Z"

    async def test_error_status_is_unavailable(self, mock_http):
        mock_http(lambda request: httpx.Response(200, json={"status": "error", "message": "apiKeyInvalid"}))
        result = await NewsAPITool(make_settings(NEWS_API_KEY="news-key")).lookup("bridge")

        assert result.status is LookupStatus.UNAVAILABLE
        assert result.data == []


class TestURLContentExtractor:
    def test_html_to_text(self):
        html = (
            "<html><head><style>p { color: red; }</style>"
            "<script>var tracking = 1;</script></head>"
            "<body><h1>Budget</h1>\n\n<p>Parliament   passed it.</p></body></html>"
        )
        assert html_to_text(html) == "Budget Parliament passed it."

    def test_html_to_text_truncates(self):
        assert len(html_to_text("<p>" + "a" * 5000 + "</p>")) == 2000

    async def test_extract_sends_bot_user_agent(self, mock_http):
        requests = mock_http(lambda request: httpx.Response(200, text="<p>Hello world</p>"))
        text = await URLContentExtractor().extract("https://example.com/story")

        assert text == "Hello world"
        assert requests[0].headers["user-agent"] == "MisIntel-Bot/1.0"

    async def test_error_status_gives_empty_text(self, mock_http):
        mock_http(lambda request: httpx.Response(404, text="<p>Not found</p>"))
        assert await URLContentExtractor().extract("https://example.com/missing") == ""


class TestSpeechToText:
    @pytest.mark.parametrize(
        "mime,encoding",
        [
            ("audio/webm;codecs=opus", "WEBM_OPUS"),
            ("audio/ogg", "OGG_OPUS"),
            ("audio/mpeg", "MP3"),
            ("audio/flac", "FLAC"),
            ("audio/wav", "LINEAR16"),
            ("application/octet-stream", "LINEAR16"),
            (None, "LINEAR16"),
        ],
    )
    def test_audio_encoding(self, mime, encoding):
        assert audio_encoding(mime) == encoding

    async def test_transcribes(self, mock_http):
        payload = {
            "results": [
                {
                    "alternatives": [
                        {
                            "transcript": "the bridge collapsed",
                            "confidence": 0.92,
                            "words": [
                                {"word": "the", "startTime": "0s", "endTime": "0.300s"},
                                {"word": "bridge", "startTime": "0.300s", "endTime": "0.900s"},
                            ],
                        }
                    ],
                    "languageCode": "en-us",
                }
            ]
        }
        requests = mock_http(lambda request: httpx.Response(200, json=payload))
        tool = SpeechToTextTool(make_settings(GOOGLE_CLOUD_API_KEY="cloud-key"))

        transcript = await tool.transcribe(b"RIFF0000", "audio/webm")

        assert transcript.transcript == "the bridge collapsed"
        assert transcript.confidence == pytest.approx(0.92)
        assert transcript.words[1].end_time == pytest.approx(0.9)
        assert transcript.audio_length == 8
        assert requests[0].url.params["key"] == "cloud-key"
        assert json.loads(requests[0].content)["config"]["encoding"] == "WEBM_OPUS"

    async def test_no_speech(self, mock_http):
        mock_http(lambda request: httpx.Response(200, json={}))
        transcript = await SpeechToTextTool(make_settings()).transcribe(b"RIFF", "audio/wav")

        assert transcript.transcript == ""
        assert transcript.audio_length == 4

    async def test_http_error(self, mock_http):
        mock_http(_fail(403))
        with pytest.raises(TranscriptionError):
            await SpeechToTextTool(make_settings()).transcribe(b"RIFF", "audio/wav")

    async def test_not_configured(self, mock_http):
        requests = mock_http(lambda request: httpx.Response(200, json={}))
        with pytest.raises(TranscriptionError):
            await SpeechToTextTool(make_settings(GEMINI_API_KEY="")).transcribe(b"RIFF", "audio/wav")
        assert requests == []


class TestImageTextExtractor:
    @staticmethod
    def _png(width, height):
        buffer = io.BytesIO()
        Image.new("L", (width, height), color=255).save(buffer, format="PNG")
        return buffer.getvalue()

    async def test_small_images_are_upscaled(self, monkeypatch):
        seen = {}

        def fake_ocr(image, config=""):
            seen["size"] = image.size
            seen["mode"] = image.mode
            seen["config"] = config
            return "  Vaccines contain microchips \n"

        monkeypatch.setattr(pytesseract, "image_to_string", fake_ocr)

        text = await ImageTextExtractor().extract(self._png(200, 100))

        assert text == "Vaccines contain microchips"
        assert seen == {"size": (400, 200), "mode": "RGB", "config": "--psm 6"}

    async def test_empty_upload(self):
        with pytest.raises(OCRError):
            await ImageTextExtractor().extract(b"")

    async def test_undecodable_upload(self):
        with pytest.raises(OCRError):
            await ImageTextExtractor().extract(b"definitely not an image")
