"""
Google Cloud Speech-to-Text tool for MisIntel.
Transcribes voice notes so spoken claims can be checked like text.
"""

import base64
import logging
from typing import Optional

import httpx

from tools.base import BaseTool
from models.schemas import SpeechTranscript, TranscriptWord
from config import Settings, get_settings, API_TIMEOUTS
from exceptions import TranscriptionError

logger = logging.getLogger(__name__)

AUDIO_ENCODINGS = {
    "audio/wav": "LINEAR16",
    "audio/wave": "LINEAR16",
    "audio/x-wav": "LINEAR16",
    "audio/webm": "WEBM_OPUS",
    "audio/ogg": "OGG_OPUS",
    "audio/mp3": "MP3",
    "audio/mpeg": "MP3",
    "audio/mp4": "MP3",
    "audio/flac": "FLAC",
    "audio/x-flac": "FLAC",
}


def audio_encoding(mime_type: Optional[str]) -> str:
    """Map an upload's MIME type to a Speech API encoding (LINEAR16 if unknown)."""
    if not mime_type:
        return "LINEAR16"
    return AUDIO_ENCODINGS.get(mime_type.split(";")[0].strip().lower(), "LINEAR16")


def _seconds(offset) -> float:
    # REST returns durations as strings like "1.300s"
    if isinstance(offset, (int, float)):
        return float(offset)
    if isinstance(offset, str) and offset.endswith("s"):
        try:
            return float(offset[:-1])
        except ValueError:
            return 0.0
    return 0.0


class SpeechToTextTool(BaseTool):
    """Google Cloud Speech ``speech:recognize`` over REST."""

    name = "speech_to_text"
    description = "Transcribe short audio clips in English and major Indian languages"

    BASE_URL = "https://speech.googleapis.com/v1/speech:recognize"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def is_available(self) -> bool:
        return self.settings.has_speech

    def _build_body(self, audio_bytes: bytes, mime_type: Optional[str]) -> dict:
        return {
            "config": {
                "encoding": audio_encoding(mime_type),
                "languageCode": "en-US",
                "alternativeLanguageCodes": ["hi-IN", "ta-IN", "te-IN", "mr-IN"],
                "enableAutomaticPunctuation": True,
                "enableWordTimeOffsets": True,
                "model": "default",
                "useEnhanced": True,
            },
            "audio": {"content": base64.b64encode(audio_bytes).decode("ascii")},
        }

    async def transcribe(self, audio_bytes: bytes, mime_type: Optional[str] = None) -> SpeechTranscript:
        """
        Transcribe an audio clip.

        Returns:
            SpeechTranscript; ``transcript`` is "" when no speech was detected

        Raises:
            TranscriptionError: on missing configuration or any API failure
        """
        if not self.is_available:
            raise TranscriptionError("Speech-to-Text API key not configured")

        logger.info("Processing audio (%d bytes, %s)", len(audio_bytes), mime_type)
        try:
            async with httpx.AsyncClient(timeout=API_TIMEOUTS.SPEECH) as client:
                response = await client.post(
                    self.BASE_URL,
                    params={"key": self.settings.speech_api_key},
                    json=self._build_body(audio_bytes, mime_type),
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Speech-to-Text HTTP error %s: %s", e.response.status_code, e.response.text)
            raise TranscriptionError(f"Speech-to-Text API error: {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Speech-to-Text request error: %s", e)
            raise TranscriptionError(f"Failed to transcribe audio: {e}") from e

        results = data.get("results") or []
        if not results:
            return SpeechTranscript(audio_length=len(audio_bytes))

        best = [(r.get("alternatives") or [{}])[0] for r in results]
        transcript = " ".join(alt.get("transcript", "").strip() for alt in best if alt.get("transcript"))
        words = [
            TranscriptWord(
                word=w.get("word", ""),
                start_time=_seconds(w.get("startTime")),
                end_time=_seconds(w.get("endTime")),
                confidence=float(w.get("confidence") or 0.0),
            )
            for alt in best
            for w in alt.get("words") or []
        ]
        logger.info("Transcription complete: %s", transcript[:100])
        return SpeechTranscript(
            transcript=transcript,
            confidence=float(best[0].get("confidence") or 0.0),
            language=results[0].get("languageCode") or "en-US",
            words=words,
            audio_length=len(audio_bytes),
        )
