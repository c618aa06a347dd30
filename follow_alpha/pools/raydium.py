"""Raydium v3 API client for pool lookups by token mint."""

import logging

import httpx
from pydantic import ValidationError

from follow_alpha.pools.models import PoolSnapshot
from follow_alpha.utils.retry import raise_for_transient

logger = logging.getLogger(__name__)

RAYDIUM_POOLS_BY_MINT = "https://api-v3.raydium.io/pools/info/mint"


def pool_query_params(token_mint: str, page_size: int = 1000) -> dict:
    return {
        "mint1": token_mint,
        "poolType": "all",
        "poolSortField": "volume30d",
        "sortType": "desc",
        "pageSize": page_size,
        "page": 1,
    }


async def fetch_pools(
    token_mint: str,
    client: httpx.AsyncClient,
    base_url: str = RAYDIUM_POOLS_BY_MINT,
    page_size: int = 1000,
) -> list[PoolSnapshot]:
    """One attempt at the pools-by-mint query. Raises on transport/HTTP failure.

    ``success: false`` or an empty page means no pools and returns [].
    """
    resp = await client.get(base_url, params=pool_query_params(token_mint, page_size))
    raise_for_transient(resp)
    try:
        data = resp.json()
    except ValueError:
        logger.warning("Raydium returned non-JSON for %s", token_mint[:12])
        return []
    return parse_pools(data)


def parse_pools(data: dict) -> list[PoolSnapshot]:
    """Normalize a Raydium response body. Malformed pool entries are skipped."""
    if not isinstance(data, dict) or not data.get("success"):
        return []
    pools = (data.get("data") or {}).get("data") or []

    snapshots: list[PoolSnapshot] = []
    for raw in pools:
        snap = _parse_pool(raw)
        if snap is not None:
            snapshots.append(snap)
    return snapshots


def _parse_pool(raw: dict) -> PoolSnapshot | None:
    if not isinstance(raw, dict):
        logger.warning("Skipping malformed Raydium pool entry: %r", raw)
        return None
    try:
        mint_a = raw.get("mintA") or {}
        mint_b = raw.get("mintB") or {}
        lp_mint = raw.get("lpMint")
        return PoolSnapshot(
            pool_id=raw["id"],
            market_id=raw.get("marketId") or "",
            base_mint=mint_a["address"],
            base_symbol=mint_a.get("symbol") or "",
            quote_mint=mint_b["address"],
            quote_symbol=mint_b.get("symbol") or "",
            tvl=_num(raw.get("tvl")),
            volume_24h=_num((raw.get("day") or {}).get("volume")),
            price=_num(raw.get("price")),
            open_time=int(_num(raw.get("openTime"))),
            fee_rate=raw.get("feeRate"),
            lp_mint=lp_mint.get("address") if isinstance(lp_mint, dict) else lp_mint,
        )
    except (KeyError, TypeError, AttributeError, ValueError, ValidationError) as exc:
        logger.warning("Skipping malformed Raydium pool %s: %s", raw.get("id", "?"), exc)
        return None


def _num(value) -> float:
    if value is None or value == "":
        return 0.0
    return float(value)
