from __future__ import annotations

from typing import Any


class ReaderError(Exception):
    code = "reader_error"
    status_code = 500

    def __init__(self, message: str, *, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidInput(ReaderError):
    code = "invalid_input"
    status_code = 400


class UnsupportedSource(ReaderError):
    code = "unsupported_source"
    status_code = 400


class FetchFailed(ReaderError):
    code = "fetch_failed"
    status_code = 500


class ParseFailed(ReaderError):
    code = "parse_failed"
    status_code = 422


class ContentTooShort(ReaderError):
    code = "content_too_short"
    status_code = 422


class SummarizationFailed(ReaderError):
    code = "summarization_failed"
    status_code = 500


class NarrationUnsupported(ReaderError):
    code = "narration_unsupported"
    status_code = 500


class NarrationEngineError(ReaderError):
    code = "narration_engine_error"
    status_code = 500
