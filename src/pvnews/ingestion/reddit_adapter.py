"""Reddit source adapter — newest posts, keyword searches, and newest comments."""

from __future__ import annotations

import logging
import time
from typing import Callable

import httpx
from pydantic import ValidationError

from pvnews.ingestion.adapter import (
    EndpointError,
    FetchResult,
    SourceAdapter,
    describe_error,
)
from pvnews.ingestion.normalize import (
    RawItem,
    Source,
    make_item_id,
    timestamp_from_epoch,
)
from pvnews.ingestion.payloads import RedditComment, RedditListing, RedditPost

logger = logging.getLogger(__name__)

_REDDIT_BASE_URL = "https://www.reddit.com"
_NEW_URL = _REDDIT_BASE_URL + "/r/{}/new.json"
_SEARCH_URL = _REDDIT_BASE_URL + "/r/{}/search.json"
_COMMENTS_URL = _REDDIT_BASE_URL + "/r/{}/comments.json"
_USER_AGENT = "pv-news-aggregator/1.0"
_POST_LIMIT = 25
_COMMENT_LIMIT = 100
_FETCH_DELAY = 0.5  # seconds between channel searches

# Bodies Reddit substitutes for comments that no longer exist.
_REMOVED_BODIES = frozenset({"[deleted]", "[removed]"})

# Raised while normalizing one listing child; the child is dropped.
_RECORD_ERRORS = (ValidationError, ValueError, OverflowError, OSError)


class RedditAdapter(SourceAdapter):
    """Adapter for one primary subreddit plus keyword searches in others.

    The primary subreddit is read from its /new listing rather than search,
    which lags behind. Its newest comments are polled after all posts.
    """

    def __init__(
        self,
        primary_subreddit: str,
        subreddits: list[str],
        search_query: str,
        timeout: float = 20.0,
    ) -> None:
        self._primary = primary_subreddit
        self._search_subreddits = [
            s for s in dict.fromkeys(subreddits) if s and s != primary_subreddit
        ]
        self._search_query = search_query
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "reddit"

    def fetch(self) -> FetchResult:
        result = FetchResult()

        self._poll(
            result,
            f"r/{self._primary}/new",
            _NEW_URL.format(self._primary),
            {"limit": _POST_LIMIT},
            self._parse_posts,
        )

        for i, subreddit in enumerate(self._search_subreddits):
            if i > 0:
                time.sleep(_FETCH_DELAY)
            self._poll(
                result,
                f"r/{subreddit}/search",
                _SEARCH_URL.format(subreddit),
                {
                    "q": self._search_query,
                    "sort": "new",
                    "restrict_sr": "on",
                    "limit": _POST_LIMIT,
                },
                self._parse_posts,
            )

        self._poll(
            result,
            f"r/{self._primary}/comments",
            _COMMENTS_URL.format(self._primary),
            {"limit": _COMMENT_LIMIT},
            self._parse_comments,
        )

        logger.info(
            "Reddit fetch done: %d items, %d failed endpoints",
            len(result.items),
            len(result.errors),
        )
        return result

    def _poll(
        self,
        result: FetchResult,
        label: str,
        url: str,
        params: dict,
        parse: Callable[[RedditListing, str], list[RawItem]],
    ) -> None:
        """Fetch one listing and append its items; record a failure instead of raising."""
        result.attempted += 1
        try:
            resp = httpx.get(
                url,
                params=params,
                headers={"User-Agent": _USER_AGENT},
                timeout=self._timeout,
                follow_redirects=True,
            )
            resp.raise_for_status()
            listing = RedditListing.model_validate(resp.json())
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            reason = describe_error(exc)
            logger.error("Failed to fetch Reddit %s: %s", label, reason)
            result.errors.append(EndpointError(endpoint=label, reason=reason))
            return

        items = parse(listing, label)
        result.items.extend(items)
        logger.info("Fetched %d items from Reddit %s", len(items), label)

    def _parse_posts(self, listing: RedditListing, label: str) -> list[RawItem]:
        items: list[RawItem] = []
        for child in listing.data.children:
            if child.kind is not None and child.kind != "t3":
                continue
            try:
                post = RedditPost.model_validate(child.data)
                item_id = make_item_id(Source.FORUM_POST, post.id)
                created_at = timestamp_from_epoch(post.created_utc)
            except _RECORD_ERRORS as exc:
                logger.warning(
                    "Skipping malformed post %s in %s: %s",
                    child.data.get("id"), label, describe_error(exc),
                )
                continue

            items.append(
                RawItem(
                    id=item_id,
                    source=Source.FORUM_POST,
                    created_at=created_at,
                    title=post.title,
                    body=post.selftext or None,
                    url=post.url,
                    author=post.author,
                    score=post.score,
                    origin_subforum=post.subreddit,
                    permalink=_permalink(post.permalink),
                )
            )
        return items

    def _parse_comments(self, listing: RedditListing, label: str) -> list[RawItem]:
        items: list[RawItem] = []
        for child in listing.data.children:
            if child.kind != "t1":
                continue
            try:
                comment = RedditComment.model_validate(child.data)
                if not comment.body or comment.body in _REMOVED_BODIES:
                    continue
                item_id = make_item_id(Source.FORUM_COMMENT, comment.id)
                created_at = timestamp_from_epoch(comment.created_utc)
            except _RECORD_ERRORS as exc:
                logger.warning(
                    "Skipping malformed comment %s in %s: %s",
                    child.data.get("id"), label, describe_error(exc),
                )
                continue

            items.append(
                RawItem(
                    id=item_id,
                    source=Source.FORUM_COMMENT,
                    created_at=created_at,
                    body=comment.body,
                    author=comment.author,
                    score=comment.score,
                    origin_subforum=comment.subreddit,
                    permalink=_permalink(comment.permalink),
                    metrics={
                        "link_id": comment.link_id,
                        "link_title": comment.link_title,
                    },
                )
            )
        return items


def _permalink(path: str | None) -> str | None:
    return f"{_REDDIT_BASE_URL}{path}" if path else None
