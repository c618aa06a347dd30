"""Liquidity-pool analysis for a token mint.

Queries Raydium for every pool holding the token, checks mintability on
chain, and keeps the highest-TVL pool paired with each reference currency
(WSOL and USDC).
"""

from __future__ import annotations

import logging
import time
from typing import Callable

import httpx

from follow_alpha.errors import (
    NotFoundError,
    RetryCancelledError,
    RetryExhaustedError,
)
from follow_alpha.pools.models import PoolAnalysis, PoolSnapshot
from follow_alpha.pools.raydium import RAYDIUM_POOLS_BY_MINT, fetch_pools
from follow_alpha.pools.solana_rpc import (
    SOLANA_RPC_URL,
    MalformedRpcResponse,
    get_mint_authority,
)
from follow_alpha.utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)

WSOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

SECONDS_PER_DAY = 86400


def select_best_pool(pools: list[PoolSnapshot], reference_mint: str) -> PoolSnapshot | None:
    """Highest-TVL pool with ``reference_mint`` on either side."""
    paired = [p for p in pools if p.pairs_with(reference_mint)]
    if not paired:
        return None
    return max(paired, key=lambda p: p.tvl)


def pool_age_days(pool: PoolSnapshot, now: float) -> float:
    return (now - pool.open_time) / SECONDS_PER_DAY


class PoolAnalyzer:
    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        raydium_url: str = RAYDIUM_POOLS_BY_MINT,
        rpc_url: str = SOLANA_RPC_URL,
        wsol_mint: str = WSOL_MINT,
        usdc_mint: str = USDC_MINT,
        page_size: int = 1000,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        timeout: float = 10.0,
        should_stop: Callable[[], bool] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self.raydium_url = raydium_url
        self.rpc_url = rpc_url
        self.wsol_mint = wsol_mint
        self.usdc_mint = usdc_mint
        self.page_size = page_size
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.timeout = timeout
        self.should_stop = should_stop
        self._clock = clock

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _retry(self, fn, label: str):
        return await retry_with_backoff(
            fn,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            timeout=self.timeout,
            should_stop=self.should_stop,
            label=label,
        )

    async def is_mintable(self, token_mint: str) -> bool:
        """True if the mint authority is still set. Lookup failures count as False."""
        try:
            authority = await self._retry(
                lambda: get_mint_authority(token_mint, self._client, self.rpc_url),
                label=f"getAccountInfo {token_mint[:8]}",
            )
        except (
            NotFoundError,
            RetryExhaustedError,
            RetryCancelledError,
            MalformedRpcResponse,
            httpx.HTTPError,
        ) as exc:
            logger.error("Error fetching mint info for %s: %s", token_mint, exc)
            return False

        mintable = authority is not None
        logger.info("Token %s is %s", token_mint, "MINTABLE" if mintable else "NOT mintable")
        return mintable

    async def analyze(self, token_mint: str) -> PoolAnalysis | None:
        """Pool analysis for ``token_mint``, or None if the data source is unavailable.

        A 404 is a definitive "no pools" answer, not an outage.
        """
        logger.info("Fetching Raydium pool data for token %s...", token_mint)
        try:
            pools = await self._retry(
                lambda: fetch_pools(token_mint, self._client, self.raydium_url, self.page_size),
                label=f"Raydium pools {token_mint[:8]}",
            )
        except NotFoundError:
            logger.info("Raydium 404 for %s, treating as no pools", token_mint)
            pools = []
        except (RetryExhaustedError, RetryCancelledError) as exc:
            logger.error("Pool data unavailable for token %s: %s", token_mint, exc)
            return None
        except httpx.HTTPError as exc:
            logger.error("Raydium request rejected for token %s: %s", token_mint, exc)
            return None

        is_mintable = await self.is_mintable(token_mint)

        if not pools:
            logger.info("No Raydium pools found for token %s", token_mint)
            return PoolAnalysis(token_mint=token_mint, has_pool=False, is_mintable=is_mintable)

        now = self._clock()
        wsol_pool = select_best_pool(pools, self.wsol_mint)
        usdc_pool = select_best_pool(pools, self.usdc_mint)
        for pool in (wsol_pool, usdc_pool):
            if pool is not None:
                pool.age_days = pool_age_days(pool, now)

        analysis = PoolAnalysis(
            token_mint=token_mint,
            has_pool=wsol_pool is not None or usdc_pool is not None,
            is_mintable=is_mintable,
            wsol_pool=wsol_pool,
            usdc_pool=usdc_pool,
        )
        logger.info(
            "Pool analysis for %s: mintable=%s wsol=[%s] usdc=[%s]",
            token_mint, is_mintable, _describe(wsol_pool), _describe(usdc_pool),
        )
        return analysis


def _describe(pool: PoolSnapshot | None) -> str:
    if pool is None:
        return "none"
    return (
        f"age={pool.age_days:.2f}d tvl={pool.tvl:,.0f} "
        f"vol24h={pool.volume_24h:,.0f} price={pool.price:g}"
    )
