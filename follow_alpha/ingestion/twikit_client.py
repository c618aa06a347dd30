"""Twitter data source using twikit (free, no API key)."""

import asyncio
import logging
import os
from datetime import datetime
from typing import AsyncIterator

from twikit import Capsolver, Client
from twikit.errors import Forbidden, Unauthorized

from follow_alpha.errors import LoginError
from follow_alpha.ingestion.base import SocialClient
from follow_alpha.ingestion.models import FollowedAccount, Post, Profile

logger = logging.getLogger(__name__)

_PAGE_SIZE = 100
_LOGIN_RETRY_DELAY = 2.0


class TwikitClient(SocialClient):
    def __init__(
        self,
        username: str,
        email: str,
        password: str,
        cookies_file: str = "twikit_cookies.json",
        capsolver_api_key: str = "",
        login_retries: int = 3,
    ) -> None:
        captcha_solver = None
        if capsolver_api_key:
            captcha_solver = Capsolver(api_key=capsolver_api_key)
        self._client = Client("en-US", captcha_solver=captcha_solver)
        self._username = username
        self._email = email
        self._password = password
        self._cookies_file = cookies_file
        self._login_retries = max(1, login_retries)
        self._logged_in = False

    async def login(self, fresh: bool = False) -> None:
        """Log in, reusing saved cookies unless ``fresh`` is set.

        Raises LoginError once every password attempt has failed.
        """
        if self._logged_in:
            return

        # Try loading saved cookies first
        if not fresh and os.path.exists(self._cookies_file):
            try:
                self._client.load_cookies(self._cookies_file)
                self._logged_in = True
                logger.info("Twikit: loaded session from cookies")
                return
            except Exception:
                logger.debug("Twikit: saved cookies invalid, logging in fresh")

        if not self._username or not self._password:
            raise LoginError("Twitter credentials are missing")

        last_error: Exception | None = None
        for attempt in range(1, self._login_retries + 1):
            try:
                await self._client.login(
                    auth_info_1=self._username,
                    auth_info_2=self._email or None,
                    password=self._password,
                )
                self._client.save_cookies(self._cookies_file)
                self._logged_in = True
                logger.info("Twikit: logged in as @%s", self._username)
                return
            except Exception as exc:
                last_error = exc
                logger.error(
                    "Twikit login attempt %d/%d failed: %s",
                    attempt, self._login_retries, exc,
                )
            if attempt < self._login_retries:
                await asyncio.sleep(_LOGIN_RETRY_DELAY)

        raise LoginError(f"Twitter login failed after {self._login_retries} attempts: {last_error}")

    async def _call(self, fn, *args, **kwargs):
        """Await a twikit call, logging in again once if the session was rejected.

        Raises LoginError if the fresh login fails or the new session is
        rejected too.
        """
        await self.login()
        try:
            return await fn(*args, **kwargs)
        except (Unauthorized, Forbidden) as exc:
            logger.warning("Twikit: session rejected (%s), logging in again", exc)
            self._logged_in = False  # force re-login
            await self.login(fresh=True)

        try:
            return await fn(*args, **kwargs)
        except (Unauthorized, Forbidden) as exc:
            self._logged_in = False
            raise LoginError(f"Twitter session rejected after re-login: {exc}") from exc

    async def get_user_id(self, handle: str) -> str | None:
        try:
            user = await self._call(self._client.get_user_by_screen_name, handle)
        except LoginError:
            raise
        except Exception as exc:
            logger.error("Twikit: user lookup failed for @%s: %s", handle, exc)
            return None
        return str(user.id) if user else None

    async def get_following(
        self, user_id: str, max_count: int
    ) -> AsyncIterator[FollowedAccount]:
        page = await self._call(self._client.get_user_following, user_id, count=_PAGE_SIZE)
        yielded = 0
        while page:
            for user in page:
                yield FollowedAccount(
                    id=str(user.id),
                    username=user.screen_name,
                    name=user.name or "",
                    bio=user.description or "",
                )
                yielded += 1
                if yielded >= max_count:
                    return
            page = await self._call(page.next)

    async def get_profile(self, handle: str) -> Profile | None:
        try:
            user = await self._call(self._client.get_user_by_screen_name, handle)
        except LoginError:
            raise
        except Exception as exc:
            logger.error("Twikit: profile fetch failed for @%s: %s", handle, exc)
            return None
        if user is None:
            return None
        return _parse_user(user)

    async def get_recent_posts(self, user_id: str, count: int) -> list[Post]:
        results = await self._call(self._client.get_user_tweets, user_id, "Tweets", count=count)
        posts: list[Post] = []
        for tweet in results:
            posts.append(
                Post(
                    post_id=str(tweet.id),
                    text=tweet.text or "",
                    created_at=tweet.created_at_datetime,
                )
            )
            if len(posts) >= count:
                break
        return posts


def _parse_user(user) -> Profile:
    """Convert a twikit User object to our Profile model."""
    created_at = None
    if getattr(user, "created_at_datetime", None):
        created_at = user.created_at_datetime
    elif getattr(user, "created_at", None):
        try:
            created_at = datetime.strptime(user.created_at, "%a %b %d %H:%M:%S %z %Y")
        except (ValueError, TypeError):
            pass

    return Profile(
        username=user.screen_name,
        name=user.name or "",
        followers_count=user.followers_count or 0,
        following_count=user.following_count or 0,
        tweets_count=user.statuses_count or 0,
        created_at=created_at,
        bio=user.description or "",
    )
