"""Typed models for the external JSON payloads.

Responses are validated here before any field is read. A listing envelope
that does not validate fails the whole endpoint call; a single child that
does not validate is dropped by the adapter and the rest of the page is kept.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ---------------------------------------------------------------------------
# Reddit
# ---------------------------------------------------------------------------
class RedditChild(_Payload):
    kind: str | None = None
    data: dict = Field(default_factory=dict)


class RedditListingData(_Payload):
    children: list[RedditChild] = Field(default_factory=list)


class RedditListing(_Payload):
    kind: str | None = None
    data: RedditListingData


class RedditPost(_Payload):
    id: str
    title: str
    created_utc: float
    selftext: str | None = None
    url: str | None = None
    author: str | None = None
    score: int = 0
    subreddit: str | None = None
    permalink: str | None = None


class RedditComment(_Payload):
    id: str
    created_utc: float
    body: str | None = None
    author: str | None = None
    score: int = 0
    subreddit: str | None = None
    permalink: str | None = None
    link_id: str | None = None
    link_title: str | None = None


# ---------------------------------------------------------------------------
# X (recent search)
# ---------------------------------------------------------------------------
class Tweet(_Payload):
    id: str
    text: str
    created_at: datetime
    author_id: str | None = None
    public_metrics: dict[str, int] | None = None


class TweetSearchResponse(_Payload):
    data: list[dict] = Field(default_factory=list)
    meta: dict = Field(default_factory=dict)
