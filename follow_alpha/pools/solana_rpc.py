"""Solana RPC lookups for token mint accounts.

Uses the public Solana RPC. Free tier: ~10 req/sec on public endpoint.
"""

import logging

import httpx

from follow_alpha.utils.retry import raise_for_transient

logger = logging.getLogger(__name__)

SOLANA_RPC_URL = "https://api.mainnet-beta.solana.com"


class MalformedRpcResponse(ValueError):
    pass


async def _rpc_call(
    method: str, params: list, client: httpx.AsyncClient, rpc_url: str = SOLANA_RPC_URL,
) -> dict:
    """Single JSON-RPC call. Retrying is the caller's job."""
    payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
    resp = await client.post(rpc_url, json=payload)
    raise_for_transient(resp)
    try:
        data = resp.json()
    except ValueError as exc:
        raise MalformedRpcResponse(f"non-JSON reply to {method}") from exc
    if not isinstance(data, dict):
        raise MalformedRpcResponse(f"unexpected {type(data).__name__} reply to {method}")
    if "error" in data:
        raise MalformedRpcResponse(f"RPC error from {method}: {data['error']}")
    return data


async def get_mint_authority(
    mint: str, client: httpx.AsyncClient, rpc_url: str = SOLANA_RPC_URL,
) -> str | None:
    """Return the mint authority of ``mint``, or None if it has been revoked.

    Raises MalformedRpcResponse if the account is missing or is not a mint.
    """
    data = await _rpc_call(
        "getAccountInfo",
        [mint, {"encoding": "jsonParsed", "commitment": "confirmed"}],
        client,
        rpc_url,
    )
    result = data.get("result")
    value = result.get("value") if isinstance(result, dict) else None
    if not isinstance(value, dict):
        raise MalformedRpcResponse(f"no account found for {mint}")

    account_data = value.get("data")
    parsed = account_data.get("parsed") if isinstance(account_data, dict) else None
    if not isinstance(parsed, dict) or parsed.get("type") != "mint":
        raise MalformedRpcResponse(f"{mint} is not a token mint account")

    return parsed.get("info", {}).get("mintAuthority")
