"""Per-follow evaluation: extract -> profile -> pools -> decision -> persist."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from follow_alpha.decision.models import Decision
from follow_alpha.errors import LoginError
from follow_alpha.ingestion.models import FollowedAccount, Profile
from follow_alpha.monitor.state import MonitorContext
from follow_alpha.tracker.token_extractor import extract_token_mint

logger = logging.getLogger(__name__)


class AlphaPipeline:
    def __init__(self, ctx: MonitorContext) -> None:
        self.ctx = ctx

    async def _get_profile(self, handle: str) -> Profile | None:
        profile = self.ctx.cache.get(handle)
        if profile is not None:
            return profile
        try:
            profile = await self.ctx.client.get_profile(handle)
        except LoginError:
            raise
        except Exception as exc:
            logger.warning("Profile fetch failed for @%s: %s", handle, exc)
            return None
        if profile is not None:
            self.ctx.cache.put(handle, profile)
        return profile

    async def evaluate(self, follow: FollowedAccount) -> Decision | None:
        """Run one newly followed account through the pipeline.

        Returns the persisted decision, or None if no signal was stored.
        """
        token_mint = extract_token_mint(follow.bio)
        if not token_mint:
            logger.info("No pump-related token found in @%s's bio", follow.username)
            return None

        logger.info("Token %s found in @%s's bio", token_mint, follow.username)
        profile = await self._get_profile(follow.username)

        analysis = await self.ctx.analyzer.analyze(token_mint)
        if analysis is None:
            logger.info("Unable to fetch pool data for token %s, retrying next cycle", token_mint)
            return None

        decision = self.ctx.engine.decide(follow.username, follow.bio, profile, analysis)
        if decision.actionable:
            logger.info(
                "Actionable signal: %s via @%s (USDC pool %.2f days old)",
                token_mint, follow.username, analysis.usdc_pool.age_days,
            )
            decision.buy_amount = await self._maybe_buy(decision)

        try:
            await self.ctx.gateway.upsert_alpha_signal(decision.signal)
        except SQLAlchemyError as exc:
            logger.error("Failed to store alpha analysis for token %s: %s", token_mint, exc)
            return None
        return decision

    async def _maybe_buy(self, decision: Decision) -> float:
        ctx = self.ctx
        if not ctx.trading_enabled or ctx.on_buy is None:
            return 0.0

        try:
            holdings = await ctx.holdings_provider() if ctx.holdings_provider else {}
            amount = await ctx.engine.recommend(decision.signal, holdings)
        except Exception as exc:
            logger.error("Recommendation failed for %s: %s", decision.signal.token_mint, exc)
            return 0.0

        if amount <= 0:
            return 0.0

        try:
            await ctx.on_buy(decision.signal.token_mint, amount)
        except Exception as exc:
            logger.error("Buy callback failed for %s: %s", decision.signal.token_mint, exc)
            return 0.0
        logger.info("Buy requested: %s USDC of %s", amount, decision.signal.token_mint)
        return amount
