"""HTTP surface of the MisIntel API."""

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from conftest import FakeLLM
from models.schemas import SpeechTranscript
from exceptions import TranscriptionError

ARTICLE_URL = "https://www.example.com/news/budget-vote"


@pytest.fixture
def client(orchestrator):
    return TestClient(create_app(orchestrator=orchestrator))


def _assert_cors(response):
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]


class TestAdvancedCheck:
    def test_text_check(self, client):
        response = client.post(
            "/advanced-check",
            data={"type": "text", "input": "Parliament passed the budget on Tuesday."},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["isFake"] is False
        assert 60 <= body["confidence"] <= 95
        assert body["inputText"] == "Parliament passed the budget on Tuesday."
        assert body["customSearchResults"] == []
        _assert_cors(response)

    def test_image_without_upload(self, client):
        response = client.post("/advanced-check", data={"type": "image"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Missing input"
        assert body["confidence"] == 0
        assert body["reasons"] == ["image file input is required"]
        _assert_cors(response)

    def test_image_upload(self, client):
        response = client.post(
            "/advanced-check",
            data={"type": "image"},
            files={"image": ("screenshot.png", b"\x89PNG", "image/png")},
        )

        assert response.status_code == 200
        assert response.json()["extractedText"] == "BREAKING: miracle cure doctors hate"

    def test_legacy_file_field(self, client, fake_tools):
        response = client.post(
            "/advanced-check",
            data={"type": "image"},
            files={"file": ("screenshot.png", b"\x89PNG", "image/png")},
        )

        assert response.status_code == 200
        fake_tools.ocr.extract.assert_awaited_once_with(b"\x89PNG")

    def test_invalid_url(self, client):
        response = client.post("/advanced-check", data={"type": "url", "input": "not a url"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid input"
        assert response.json()["summary"] == "Invalid URL provided"

    def test_repeat_url_is_cached(self, client):
        first = client.post("/advanced-check", data={"type": "url", "input": ARTICLE_URL})
        second = client.post("/advanced-check", data={"type": "url", "input": ARTICLE_URL})
        fresh = client.post(
            "/advanced-check",
            data={"type": "url", "input": ARTICLE_URL, "forceFresh": "true"},
        )

        assert first.json()["fromCache"] is False
        assert second.json()["fromCache"] is True
        assert "cachedAt" in second.json()
        assert fresh.json()["fromCache"] is False

    def test_rate_limit(self, client):
        headers = {"X-Forwarded-For": "203.0.113.7"}
        for _ in range(6):
            response = client.post("/advanced-check", data={"type": "text", "input": "hello world"}, headers=headers)
            assert response.status_code == 200

        response = client.post("/advanced-check", data={"type": "text", "input": "hello world"}, headers=headers)

        assert response.status_code == 429
        assert 1 <= int(response.headers["retry-after"]) <= 60
        assert response.json()["confidence"] == 0
        _assert_cors(response)

        other = client.post(
            "/advanced-check",
            data={"type": "text", "input": "hello world"},
            headers={"X-Forwarded-For": "198.51.100.9"},
        )
        assert other.status_code == 200

    def test_missing_model_key(self, make_orchestrator):
        client = TestClient(create_app(orchestrator=make_orchestrator(llm=FakeLLM(available=False))))
        response = client.post("/advanced-check", data={"type": "text", "input": "hello world"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Server configuration error"
        assert body["summary"] == "API key not configured"
        assert body["confidence"] == 0

    def test_unexpected_error(self, orchestrator, monkeypatch):
        async def explode(*args, **kwargs):
            raise RuntimeError("graph exploded")

        monkeypatch.setattr(orchestrator, "run", explode)
        client = TestClient(create_app(orchestrator=orchestrator), raise_server_exceptions=False)

        response = client.post("/advanced-check", data={"type": "text", "input": "hello world"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Server error"
        assert body["reasons"][0] == "graph exploded"
        _assert_cors(response)

    def test_preflight(self, client):
        response = client.options("/advanced-check")

        assert response.status_code == 204
        _assert_cors(response)


class TestSpeechToText:
    def test_missing_audio(self, client):
        response = client.post("/speech-to-text")

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "No audio file provided", "transcript": ""}

    def test_transcript(self, client, fake_tools):
        response = client.post("/speech-to-text", files={"audio": ("note.webm", b"webm-bytes", "audio/webm")})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["transcript"] == "The bridge collapsed this morning"
        fake_tools.speech.transcribe.assert_awaited_once_with(b"webm-bytes", "audio/webm")

    def test_no_speech(self, client, fake_tools):
        fake_tools.speech.transcribe.return_value = SpeechTranscript(audio_length=10)
        response = client.post("/speech-to-text", files={"audio": ("note.webm", b"webm-bytes", "audio/webm")})

        assert response.status_code == 200
        assert response.json()["error"] == "No speech detected in audio"

    def test_transcription_failure(self, client, fake_tools):
        fake_tools.speech.transcribe.side_effect = TranscriptionError("Speech-to-Text API error: 403")
        response = client.post("/speech-to-text", files={"audio": ("note.webm", b"webm-bytes", "audio/webm")})

        assert response.status_code == 500
        assert response.json()["error"] == "Speech-to-Text API error: 403"


class TestAuthorInfo:
    def test_json_body(self, client):
        response = client.post("/author-info", json={"url": ARTICLE_URL})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "author": {"name": "Jane Doe", "credibilityScore": 75, "priorArticles": []},
        }

    def test_form_body(self, client):
        response = client.post("/author-info", data={"url": ARTICLE_URL})
        assert response.json()["author"]["name"] == "Jane Doe"

    def test_missing_url(self, client):
        response = client.post("/author-info", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "URL is required"}

    def test_invalid_url(self, client):
        response = client.post("/author-info", json={"url": "javascript:alert(1)"})
        assert response.status_code == 400

    def test_malformed_json(self, client):
        response = client.post(
            "/author-info",
            content=b'{"url": ',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON body"}
        _assert_cors(response)


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["llmAvailable"] is True
        assert body["tools"]["webSearch"] is False

    def test_root(self, client):
        assert client.get("/").json()["name"] == "MisIntel API"
