"""Source adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import httpx
from pydantic import ValidationError

from pvnews.ingestion.normalize import RawItem


def describe_error(exc: Exception) -> str:
    """Short, log-friendly reason for a failed endpoint call."""
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    if isinstance(exc, httpx.TimeoutException):
        return "timeout"
    if isinstance(exc, ValidationError):
        return f"malformed payload ({exc.error_count()} errors)"
    return f"{type(exc).__name__}: {exc}"


@dataclass(frozen=True)
class EndpointError:
    """One failed endpoint call inside a fetch."""

    endpoint: str
    reason: str


@dataclass
class FetchResult:
    """Outcome of one adapter fetch.

    ``items`` keeps the order in which the adapter traversed the external
    responses. ``errors`` lists the endpoint calls that failed; the items
    gathered from the other calls are still present. ``attempted`` counts
    every endpoint call made, failed or not.
    """

    items: list[RawItem] = field(default_factory=list)
    errors: list[EndpointError] = field(default_factory=list)
    attempted: int = 0
    skipped: bool = False
    skip_reason: str | None = None

    @property
    def status(self) -> str:
        """One of ``skipped``, ``ok``, ``partial`` or ``failed``."""
        if self.skipped:
            return "skipped"
        if not self.errors:
            return "ok"
        if len(self.errors) < self.attempted:
            return "partial"
        return "failed"


class SourceAdapter(ABC):
    """Abstract base class for source adapters.

    Every adapter knows how to fetch and parse items from one external API.
    Ordinary HTTP and payload failures are reported in the FetchResult, never
    raised to the caller.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short adapter name used in logs and reports."""

    @abstractmethod
    def fetch(self) -> FetchResult:
        """Fetch the latest items from the source."""
