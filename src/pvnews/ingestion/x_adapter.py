"""X (Twitter) source adapter — recent search API."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from pvnews.ingestion.adapter import (
    EndpointError,
    FetchResult,
    SourceAdapter,
    describe_error,
)
from pvnews.ingestion.normalize import RawItem, Source, format_timestamp, make_item_id
from pvnews.ingestion.payloads import Tweet, TweetSearchResponse

logger = logging.getLogger(__name__)

_X_SEARCH_URL = "https://api.x.com/2/tweets/search/recent"
_X_STATUS_URL = "https://x.com/i/status/{}"
_MAX_RESULTS = 100
_TWEET_FIELDS = "created_at,public_metrics,author_id"
_ERROR_BODY_CHARS = 500


class XAdapter(SourceAdapter):
    """Adapter for the X recent-search endpoint.

    Without a bearer token the adapter does nothing and reports itself as
    skipped; that is not a failure.
    """

    def __init__(
        self,
        bearer_token: str | None,
        search_query: str,
        timeout: float = 20.0,
    ) -> None:
        self._bearer_token = bearer_token
        self._search_query = search_query
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "x"

    def fetch(self) -> FetchResult:
        if not self._bearer_token:
            logger.warning("Skipping X; no bearer token configured")
            return FetchResult(skipped=True, skip_reason="no bearer token configured")

        result = FetchResult(attempted=1)
        label = "search/recent"

        try:
            resp = httpx.get(
                _X_SEARCH_URL,
                params={
                    "query": self._search_query,
                    "sort_order": "relevancy",
                    "max_results": _MAX_RESULTS,
                    "tweet.fields": _TWEET_FIELDS,
                },
                headers={"Authorization": f"Bearer {self._bearer_token}"},
                timeout=self._timeout,
            )
            if resp.is_error:
                logger.error(
                    "X search returned %s: %s",
                    resp.status_code,
                    resp.text[:_ERROR_BODY_CHARS],
                )
            resp.raise_for_status()
            payload = TweetSearchResponse.model_validate(resp.json())
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            reason = describe_error(exc)
            logger.error("Failed to fetch X %s: %s", label, reason)
            result.errors.append(EndpointError(endpoint=label, reason=reason))
            return result

        for raw in payload.data:
            try:
                tweet = Tweet.model_validate(raw)
                item_id = make_item_id(Source.MICROBLOG_POST, tweet.id)
                created_at = format_timestamp(tweet.created_at)
            except (ValidationError, ValueError, OverflowError) as exc:
                logger.warning(
                    "Skipping malformed tweet %s: %s", raw.get("id"), describe_error(exc)
                )
                continue

            result.items.append(
                RawItem(
                    id=item_id,
                    source=Source.MICROBLOG_POST,
                    created_at=created_at,
                    body=tweet.text,
                    url=_X_STATUS_URL.format(tweet.id),
                    author=tweet.author_id,
                    score=0,
                    metrics=dict(tweet.public_metrics or {}),
                )
            )

        logger.info("Fetched %d items from X %s", len(result.items), label)
        return result
