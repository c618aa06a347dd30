"""
Tests for the social data sources with the underlying libraries mocked out.
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import tweepy
from twikit.errors import Unauthorized

from follow_alpha.config import Settings
from follow_alpha.errors import LoginError, TransientHTTPError
from follow_alpha.ingestion.factory import create_social_client
from follow_alpha.ingestion.twikit_client import TwikitClient, _parse_user
from follow_alpha.ingestion.twitter import TwitterApiClient


def twikit_user(uid: int, handle: str, bio: str = "") -> SimpleNamespace:
    return SimpleNamespace(
        id=uid,
        screen_name=handle,
        name=handle.title(),
        description=bio,
        followers_count=10,
        following_count=5,
        statuses_count=3,
        created_at_datetime=datetime(2023, 5, 1, tzinfo=timezone.utc),
    )


def http_response(status: int) -> MagicMock:
    response = MagicMock(status_code=status, reason="error")
    response.json.return_value = {}
    return response


class FakePage(list):
    """twikit Result stand-in: iterable, with an async ``next()``."""

    def __init__(self, items, following=None):
        super().__init__(items)
        self._following = following

    async def next(self):
        return self._following if self._following is not None else FakePage([])


class TestTwikitClient:

    @pytest.fixture
    def tw(self, tmp_path):
        client = TwikitClient(
            username="watcher",
            email="w@example.com",
            password="secret",
            cookies_file=str(tmp_path / "cookies.json"),
            login_retries=3,
        )
        client._client = MagicMock()
        client._client.login = AsyncMock()
        return client

    @pytest.mark.unit
    async def test_login_saves_cookies_once(self, tw):
        await tw.login()
        await tw.login()

        tw._client.login.assert_awaited_once()
        tw._client.save_cookies.assert_called_once()

    @pytest.mark.unit
    async def test_login_retries_then_raises(self, tw):
        tw._client.login.side_effect = RuntimeError("denied")

        with patch("follow_alpha.ingestion.twikit_client.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(LoginError):
                await tw.login()

        assert tw._client.login.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.unit
    async def test_cookies_skip_password_login(self, tw, tmp_path):
        (tmp_path / "cookies.json").write_text("{}")

        await tw.login()

        tw._client.load_cookies.assert_called_once()
        tw._client.login.assert_not_awaited()

    @pytest.mark.unit
    async def test_following_pages_until_exhausted(self, tw):
        second = FakePage([twikit_user(3, "carol")])
        first = FakePage([twikit_user(1, "alice", bio="hi"), twikit_user(2, "bob")], following=second)
        tw._client.get_user_following = AsyncMock(return_value=first)

        accounts = [a async for a in tw.get_following("42", max_count=100)]

        assert [a.username for a in accounts] == ["alice", "bob", "carol"]
        assert accounts[0].bio == "hi"
        assert accounts[0].id == "1"

    @pytest.mark.unit
    async def test_following_respects_max_count(self, tw):
        page = FakePage([twikit_user(i, f"u{i}") for i in range(10)])
        tw._client.get_user_following = AsyncMock(return_value=page)

        accounts = [a async for a in tw.get_following("42", max_count=4)]

        assert len(accounts) == 4

    @pytest.mark.unit
    async def test_profile_lookup_failure_is_none(self, tw):
        tw._client.get_user_by_screen_name = AsyncMock(side_effect=RuntimeError("404"))
        assert await tw.get_profile("ghost") is None

    @pytest.mark.unit
    async def test_rejected_session_logs_in_again(self, tw, tmp_path):
        (tmp_path / "cookies.json").write_text("{}")
        tw._client.get_user_by_screen_name = AsyncMock(
            side_effect=[Unauthorized("401"), twikit_user(9, "alice")]
        )

        assert await tw.get_user_id("alice") == "9"
        tw._client.login.assert_awaited_once()

    @pytest.mark.unit
    async def test_failed_relogin_reaches_caller(self, tw):
        await tw.login()
        tw._client.get_user_by_screen_name = AsyncMock(side_effect=Unauthorized("401"))
        tw._client.login.side_effect = RuntimeError("denied")

        with patch("follow_alpha.ingestion.twikit_client.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(LoginError):
                await tw.get_user_id("alice")

    @pytest.mark.unit
    async def test_session_rejected_twice_raises(self, tw):
        tw._client.get_user_by_screen_name = AsyncMock(side_effect=Unauthorized("401"))

        with pytest.raises(LoginError):
            await tw.get_profile("alice")

        assert tw._client.login.await_count == 2

    @pytest.mark.unit
    async def test_recent_posts(self, tw):
        tweets = [
            SimpleNamespace(id=i, text=f"post {i}", created_at_datetime=None) for i in range(5)
        ]
        tw._client.get_user_tweets = AsyncMock(return_value=tweets)

        posts = await tw.get_recent_posts("42", 3)

        assert [p.text for p in posts] == ["post 0", "post 1", "post 2"]


class TestParseUser:

    @pytest.mark.unit
    def test_parses_counts_and_created_at(self):
        profile = _parse_user(twikit_user(1, "alice", bio="gm"))

        assert profile.username == "alice"
        assert profile.followers_count == 10
        assert profile.tweets_count == 3
        assert profile.created_at.year == 2023
        assert profile.bio == "gm"

    @pytest.mark.unit
    def test_falls_back_to_raw_created_at(self):
        user = twikit_user(1, "alice")
        user.created_at_datetime = None
        user.created_at = "Wed Oct 10 20:19:24 +0000 2018"

        assert _parse_user(user).created_at.year == 2018


class TestTwitterApiClient:

    @pytest.fixture
    def api(self):
        client = TwitterApiClient("AAAA")
        client._client = MagicMock()
        return client

    @pytest.mark.unit
    async def test_login_without_token(self):
        with pytest.raises(LoginError):
            await TwitterApiClient("").login()

    @pytest.mark.unit
    async def test_calls_before_login_raise(self):
        with pytest.raises(LoginError):
            await TwitterApiClient("AAAA").get_user_id("alice")

    @pytest.mark.unit
    async def test_following_follows_next_token(self, api):
        def user(uid, handle):
            return SimpleNamespace(id=uid, username=handle, name=None, description="bio")

        api._client.get_users_following.side_effect = [
            SimpleNamespace(data=[user(1, "a"), user(2, "b")], meta={"next_token": "t2"}),
            SimpleNamespace(data=[user(3, "c")], meta={}),
        ]

        accounts = [a async for a in api.get_following("42", max_count=100)]

        assert [a.id for a in accounts] == ["1", "2", "3"]
        second_call = api._client.get_users_following.call_args_list[1]
        assert second_call.kwargs["pagination_token"] == "t2"

    @pytest.mark.unit
    async def test_profile_maps_public_metrics(self, api):
        api._client.get_user.return_value = SimpleNamespace(data=SimpleNamespace(
            username="alice",
            name="Alice",
            description="ca here",
            public_metrics={"followers_count": 7, "following_count": 2, "tweet_count": 9},
            created_at=datetime(2022, 1, 1),
        ))

        profile = await api.get_profile("alice")

        assert profile.followers_count == 7
        assert profile.tweets_count == 9
        assert profile.bio == "ca here"

    @pytest.mark.unit
    async def test_unknown_user_id(self, api):
        api._client.get_user.return_value = SimpleNamespace(data=None)
        assert await api.get_user_id("ghost") is None

    @pytest.mark.unit
    async def test_client_does_not_sleep_on_rate_limit(self):
        api = TwitterApiClient("AAAA")
        with patch("follow_alpha.ingestion.twitter.tweepy.Client") as client_cls:
            await api.login()
        assert client_cls.call_args.kwargs["wait_on_rate_limit"] is False

    @pytest.mark.unit
    async def test_rate_limit_is_transient(self, api):
        api._client.get_users_following.side_effect = tweepy.TooManyRequests(http_response(429))

        with pytest.raises(TransientHTTPError) as info:
            [a async for a in api.get_following("42", max_count=10)]

        assert info.value.status_code == 429

    @pytest.mark.unit
    async def test_revoked_token_is_login_error(self, api):
        api._client.get_user.side_effect = tweepy.Unauthorized(http_response(401))

        with pytest.raises(LoginError):
            await api.get_user_id("alice")


class TestFactory:

    @pytest.mark.unit
    def test_api_provider(self):
        cfg = Settings(_env_file=None, twitter_provider="api", twitter_bearer_token="AAAA")
        assert isinstance(create_social_client(cfg), TwitterApiClient)

    @pytest.mark.unit
    def test_twikit_provider(self, tmp_path):
        cfg = Settings(
            _env_file=None,
            twitter_provider="twikit",
            twikit_cookies_file=str(tmp_path / "c.json"),
        )
        assert isinstance(create_social_client(cfg), TwikitClient)
