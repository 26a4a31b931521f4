from typing import Optional, Dict, Any


class MisinfoCheckError(Exception):
    status_code: Optional[int] = None

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ConfigurationError(MisinfoCheckError):
    status_code = 500

    def __init__(self, setting: str):
        super().__init__(
            f"{setting} missing from environment variables",
            {"setting": setting}
        )


class InputValidationError(MisinfoCheckError):
    status_code = 400

    def __init__(self, kind: str, summary: str, reason: str, label: str = "Missing input"):
        self.kind = kind
        self.summary = summary
        self.reason = reason
        self.label = label
        super().__init__(summary, {"kind": kind, "reason": reason})


class RateLimitedError(MisinfoCheckError):
    status_code = 429

    def __init__(self, client_id: str, retry_after: int):
        self.client_id = client_id
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded for {client_id}",
            {"client_id": client_id, "retry_after": retry_after}
        )


class OCRError(MisinfoCheckError):
    def __init__(self, reason: str):
        super().__init__(f"OCR failed: {reason}", {"reason": reason})


class TranscriptionError(MisinfoCheckError):
    def __init__(self, reason: str):
        super().__init__(reason, {"reason": reason})


class ModelResponseError(MisinfoCheckError):
    def __init__(self, reason: str, raw_text: str = ""):
        super().__init__(
            f"Could not parse model response: {reason}",
            {"reason": reason, "raw_preview": raw_text[:200]}
        )
