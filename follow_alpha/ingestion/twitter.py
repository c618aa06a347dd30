"""Twitter data source using the official X API v2 (paid)."""

import asyncio
import logging
from typing import AsyncIterator

import tweepy

from follow_alpha.errors import LoginError, TransientHTTPError
from follow_alpha.ingestion.base import SocialClient
from follow_alpha.ingestion.models import FollowedAccount, Post, Profile

logger = logging.getLogger(__name__)

_USER_FIELDS = ["username", "name", "description", "public_metrics", "created_at"]


class TwitterApiClient(SocialClient):
    """tweepy's client is synchronous; calls run in a worker thread."""

    def __init__(self, bearer_token: str) -> None:
        self._bearer_token = bearer_token
        self._client: tweepy.Client | None = None

    async def login(self) -> None:
        if self._client is not None:
            return
        if not self._bearer_token:
            raise LoginError("TWITTER_BEARER_TOKEN is not set")
        self._client = tweepy.Client(
            bearer_token=self._bearer_token, wait_on_rate_limit=False
        )
        logger.info("X API client ready")

    def _require_client(self) -> tweepy.Client:
        if self._client is None:
            raise LoginError("X API client used before login()")
        return self._client

    async def _run(self, fn, **kwargs):
        """Run a blocking tweepy call in a worker thread.

        Rate limits surface as TransientHTTPError instead of sleeping in the
        thread, so a stop request is never stuck behind a 15 minute window.
        """
        try:
            return await asyncio.to_thread(fn, **kwargs)
        except tweepy.TooManyRequests as exc:
            raise TransientHTTPError(f"X API rate limited: {exc}", status_code=429) from exc
        except tweepy.Unauthorized as exc:
            raise LoginError(f"X API rejected the bearer token: {exc}") from exc

    async def get_user_id(self, handle: str) -> str | None:
        client = self._require_client()
        try:
            response = await self._run(client.get_user, username=handle)
        except tweepy.TweepyException as exc:
            logger.error("X API: user lookup failed for @%s: %s", handle, exc)
            return None
        return str(response.data.id) if response.data else None

    async def get_following(
        self, user_id: str, max_count: int
    ) -> AsyncIterator[FollowedAccount]:
        client = self._require_client()
        token: str | None = None
        yielded = 0
        while True:
            response = await self._run(
                client.get_users_following,
                id=user_id,
                max_results=1000,
                pagination_token=token,
                user_fields=_USER_FIELDS,
            )
            for user in response.data or []:
                yield FollowedAccount(
                    id=str(user.id),
                    username=user.username,
                    name=user.name or "",
                    bio=user.description or "",
                )
                yielded += 1
                if yielded >= max_count:
                    return
            token = (response.meta or {}).get("next_token")
            if not token:
                return

    async def get_profile(self, handle: str) -> Profile | None:
        client = self._require_client()
        try:
            response = await self._run(
                client.get_user, username=handle, user_fields=_USER_FIELDS
            )
        except tweepy.TweepyException as exc:
            logger.error("X API: profile fetch failed for @%s: %s", handle, exc)
            return None
        user = response.data
        if user is None:
            return None
        metrics = user.public_metrics or {}
        return Profile(
            username=user.username,
            name=user.name or "",
            followers_count=metrics.get("followers_count", 0),
            following_count=metrics.get("following_count", 0),
            tweets_count=metrics.get("tweet_count", 0),
            created_at=user.created_at,
            bio=user.description or "",
        )

    async def get_recent_posts(self, user_id: str, count: int) -> list[Post]:
        client = self._require_client()
        response = await self._run(
            client.get_users_tweets,
            id=user_id,
            max_results=min(max(count, 5), 100),
            tweet_fields=["created_at"],
        )
        posts = [
            Post(post_id=str(t.id), text=t.text, created_at=t.created_at)
            for t in response.data or []
        ]
        return posts[:count]
