"""Exception hierarchy shared by the extractor, the stages and the orchestrator."""

from __future__ import annotations

from typing import Optional


class CrawlError(RuntimeError):
    pass


class TransientFetchError(CrawlError):
    """Network, page-load or timeout failure; retried."""


class StructuralExtractionError(CrawlError):
    """The page loaded but the expected name, fields or links were missing."""


class RetryExhaustedError(CrawlError):
    def __init__(self, context_label: str, attempts: int, last_error: Optional[BaseException]):
        self.context_label = context_label
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{context_label}: gave up after {attempts} attempts: {last_error}")

    @property
    def is_structural(self) -> bool:
        return isinstance(self.last_error, StructuralExtractionError)
