"""LLM purchase-size oracle for actionable signals."""

import json
import logging
from abc import ABC, abstractmethod

import anthropic

from follow_alpha.decision.models import AlphaSignal

logger = logging.getLogger(__name__)

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


class RecommendationOracle(ABC):
    @abstractmethod
    async def ask(self, summary: str, holdings: dict[str, float]) -> str:
        """Return a plain numeric string: USDC to spend, or "0" for no action."""
        ...


class AnthropicOracle(RecommendationOracle):
    def __init__(self, api_key: str, model: str, max_tokens: int = 32) -> None:
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self._model = model
        self._max_tokens = max_tokens

    async def ask(self, summary: str, holdings: dict[str, float]) -> str:
        prompt = f"""Determine if the following detected signal represents potential alpha. Your task as an alpha detection agent sometimes involves performing risky trades. Only approve a purchase of a token if the USDC pool is less than 2 days old.

If it does reflect potential alpha, determine how much we should purchase of this token in USDC. If none should be purchased, return 0.

USDC token address on Solana: {USDC_MINT}

Current token balances: {json.dumps(holdings)}

Signal: {summary}

ONLY respond with a number representing the USDC amount to purchase based on our available USDC balance, or 0 if none should be purchased."""

        message = await self._client.messages.create(
            model=self._model,
            max_tokens=self._max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        return message.content[0].text.strip()


class NullOracle(RecommendationOracle):
    """Used when no LLM key is configured. Never recommends a buy."""

    async def ask(self, summary: str, holdings: dict[str, float]) -> str:
        return "0"


def summarize_signal(signal: AlphaSignal) -> str:
    """Single-line text summary of a signal for the oracle prompt."""
    created = signal.account_created.date().isoformat() if signal.account_created else "N/A"
    parts = [
        f"Username: @{signal.username}",
        f"Followers: {signal.followers_count}",
        f"Following: {signal.following_count}",
        f"Total Tweets: {signal.tweets_count}",
        f"Account Created: {created}",
        f"Bio: {' '.join(signal.bio.split()) or 'N/A'}",
        f"Token Mint: {signal.token_mint}",
        f"Is Mintable: {'Yes' if signal.is_mintable else 'No'}",
        f"Has Any Pool: {'Yes' if signal.has_pool else 'No'}",
        _pool_part("WSOL", signal.wsol_pool_age, signal.wsol_pool_tvl,
                   signal.wsol_pool_volume_24h, signal.wsol_pool_price),
        _pool_part("USDC", signal.usdc_pool_age, signal.usdc_pool_tvl,
                   signal.usdc_pool_volume_24h, signal.usdc_pool_price),
    ]
    return ". ".join(parts)


def _pool_part(name: str, age, tvl, volume, price) -> str:
    if age is None:
        return f"{name} Pool: No"
    return (
        f"{name} Pool: Yes ({age:.2f} days old, TVL {tvl or 0:,.2f}, "
        f"24h Volume {volume or 0:,.2f}, Price {price or 0:g})"
    )
