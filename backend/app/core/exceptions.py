"""
Application error taxonomy.

Every error that should reach the HTTP client is an ``AppError``; the handler
registered in ``app.main`` renders it as ``{"error": ..., "details": ...}``.
Per-slide LLM failures never become an ``AppError``: the generator absorbs them
and substitutes fallback content.
"""

from __future__ import annotations


class AppError(Exception):
    status_code: int = 500

    def __init__(self, error: str, details: str | None = None) -> None:
        super().__init__(error)
        self.error = error
        self.details = details

    def to_dict(self) -> dict:
        body: dict = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidRequestError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class ConfigurationError(AppError):
    status_code = 500


class ExportError(AppError):
    status_code = 500


class UpstreamError(AppError):
    status_code = 502
