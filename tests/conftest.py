"""
Pytest configuration and shared fixtures.

Provides:
- A fake social client with scripted follow lists, profiles and posts
- A SQLite-backed persistence gateway on a temp file
- Raydium / Solana RPC payload builders and an httpx mock transport router
- A fully wired MonitorContext for pipeline and scheduler tests
"""

from __future__ import annotations

from typing import AsyncIterator

import httpx
import pytest

from follow_alpha.decision.engine import DecisionEngine
from follow_alpha.errors import LoginError
from follow_alpha.ingestion.base import SocialClient
from follow_alpha.ingestion.models import FollowedAccount, Post, Profile
from follow_alpha.monitor.state import MonitorContext, MonitoringState
from follow_alpha.pools.analyzer import USDC_MINT, WSOL_MINT, PoolAnalyzer
from follow_alpha.storage.gateway import create_gateway
from follow_alpha.tracker.follow_graph import FollowGraphTracker
from follow_alpha.tracker.profile_cache import ProfileCache

# 42-char base58 body + "pump"
MINT = "9xKq2CzL7aBcDeFgHjKmNpQrStUvWxYz123456789Apump"
NOW = 1_700_000_000
RAYDIUM_URL = "https://api-v3.raydium.io/pools/info/mint"
RPC_URL = "https://rpc.test"


# ─────────────────────────────────────────────────────────────────────────────
# Social client
# ─────────────────────────────────────────────────────────────────────────────


class FakeSocialClient(SocialClient):
    def __init__(
        self,
        following: dict[str, list[FollowedAccount]] | None = None,
        profiles: dict[str, Profile] | None = None,
        posts: dict[str, list[Post]] | None = None,
        failing: set[str] | None = None,
        login_fails: bool = False,
    ) -> None:
        self.following = following or {}
        self.profiles = profiles or {}
        self.posts = posts or {}
        self.failing = failing or set()
        self.login_fails = login_fails
        self.login_calls = 0
        self.profile_calls: list[str] = []
        self.following_calls: list[str] = []
        self.on_user_id = None  # optional hook(handle)

    async def login(self) -> None:
        self.login_calls += 1
        if self.login_fails:
            raise LoginError("bad credentials")

    async def get_user_id(self, handle: str) -> str | None:
        if self.on_user_id:
            self.on_user_id(handle)
        if handle in self.following or handle in self.failing or handle in self.posts:
            return f"id-{handle}"
        return None

    async def get_following(
        self, user_id: str, max_count: int
    ) -> AsyncIterator[FollowedAccount]:
        handle = user_id.removeprefix("id-")
        self.following_calls.append(handle)
        if handle in self.failing:
            raise RuntimeError("rate limited")
        for account in self.following.get(handle, [])[:max_count]:
            yield account

    async def get_profile(self, handle: str) -> Profile | None:
        self.profile_calls.append(handle)
        return self.profiles.get(handle)

    async def get_recent_posts(self, user_id: str, count: int) -> list[Post]:
        return self.posts.get(user_id.removeprefix("id-"), [])[:count]


def follow(idx: int | str, bio: str = "", username: str | None = None) -> FollowedAccount:
    return FollowedAccount(id=str(idx), username=username or f"user{idx}", bio=bio)


@pytest.fixture
def fake_client() -> FakeSocialClient:
    return FakeSocialClient()


# ─────────────────────────────────────────────────────────────────────────────
# Persistence
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
async def gateway(tmp_path):
    gw = create_gateway(f"sqlite+aiosqlite:///{tmp_path / 'alpha.db'}")
    await gw.init_schema()
    yield gw
    await gw.close()


# ─────────────────────────────────────────────────────────────────────────────
# Raydium / Solana payloads
# ─────────────────────────────────────────────────────────────────────────────


def raydium_pool(
    pool_id: str,
    quote_mint: str,
    tvl: float,
    open_time: int = NOW - 43_200,
    volume: float = 1000.0,
    price: float = 0.002,
    token_mint: str = MINT,
) -> dict:
    return {
        "id": pool_id,
        "marketId": f"mkt-{pool_id}",
        "mintA": {"address": token_mint, "symbol": "TKN"},
        "mintB": {"address": quote_mint, "symbol": "USDC" if quote_mint == USDC_MINT else "WSOL"},
        "tvl": tvl,
        "price": price,
        "day": {"volume": volume},
        "openTime": str(open_time),
        "feeRate": 0.0025,
        "lpMint": {"address": f"lp-{pool_id}"},
    }


def raydium_body(*pools: dict, success: bool = True) -> dict:
    return {"id": "req", "success": success, "data": {"count": len(pools), "data": list(pools)}}


def mint_account(authority: str | None) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "result": {
            "context": {"slot": 1},
            "value": {
                "data": {
                    "program": "spl-token",
                    "parsed": {
                        "type": "mint",
                        "info": {"mintAuthority": authority, "decimals": 6, "supply": "1"},
                    },
                },
                "owner": "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
            },
        },
    }


class HttpRouter:
    """Scripted responses for the Raydium GET and the RPC POST, with call counts.

    Each route is a ``(status, json_body)`` tuple or a ``request -> Response`` callable.
    """

    def __init__(self, raydium=None, rpc=None) -> None:
        self.raydium = raydium if raydium is not None else (200, raydium_body())
        self.rpc = rpc if rpc is not None else (200, mint_account(None))
        self.raydium_calls = 0
        self.rpc_calls = 0

    def _resolve(self, route, request):
        if callable(route):
            return route(request)
        status, body = route
        return httpx.Response(status, json=body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "api-v3.raydium.io":
            self.raydium_calls += 1
            return self._resolve(self.raydium, request)
        self.rpc_calls += 1
        return self._resolve(self.rpc, request)


def make_analyzer(router: HttpRouter, should_stop=None, **kwargs) -> PoolAnalyzer:
    client = httpx.AsyncClient(transport=httpx.MockTransport(router))
    params = dict(
        client=client,
        raydium_url=RAYDIUM_URL,
        rpc_url=RPC_URL,
        max_attempts=3,
        base_delay=0.01,
        timeout=2.0,
        should_stop=should_stop,
        clock=lambda: NOW,
    )
    params.update(kwargs)
    return PoolAnalyzer(**params)


@pytest.fixture
def router() -> HttpRouter:
    return HttpRouter()


# ─────────────────────────────────────────────────────────────────────────────
# Monitor context
# ─────────────────────────────────────────────────────────────────────────────


def make_context(
    client: SocialClient,
    gateway,
    router: HttpRouter,
    accounts: list[str] | None = None,
    **overrides,
) -> MonitorContext:
    state = MonitoringState(
        accounts=accounts or [],
        min_interval=120.0,
        max_interval=900.0,
        current_interval=300.0,
    )
    ctx = MonitorContext(
        client=client,
        gateway=gateway,
        cache=ProfileCache(ttl=600, capacity=500),
        analyzer=make_analyzer(router, should_stop=state.should_stop),
        engine=DecisionEngine(2.0),
        tracker=FollowGraphTracker(client, gateway, page_delay=0),
        state=state,
        cache_sweep_interval=300.0,
    )
    for key, value in overrides.items():
        setattr(ctx, key, value)
    return ctx

