"""Turn a profile plus pool analysis into an AlphaSignal and a coarse verdict."""

import logging
import math

from follow_alpha.decision.models import AlphaSignal, Decision
from follow_alpha.decision.oracle import NullOracle, RecommendationOracle, summarize_signal
from follow_alpha.ingestion.models import Profile
from follow_alpha.pools.models import PoolAnalysis

logger = logging.getLogger(__name__)


def parse_amount(text: str | None) -> float:
    """Parse an oracle answer. Anything non-numeric, non-finite or <= 0 is 0.0."""
    if text is None:
        return 0.0
    try:
        amount = float(str(text).strip().replace(",", "").lstrip("$"))
    except ValueError:
        return 0.0
    if not math.isfinite(amount) or amount <= 0:
        return 0.0
    return amount


class DecisionEngine:
    def __init__(
        self,
        fresh_pool_max_age_days: float = 2.0,
        oracle: RecommendationOracle | None = None,
    ) -> None:
        self.fresh_pool_max_age_days = fresh_pool_max_age_days
        self.oracle = oracle or NullOracle()

    def build_signal(
        self,
        username: str,
        bio: str,
        profile: Profile | None,
        analysis: PoolAnalysis,
    ) -> AlphaSignal:
        wsol = analysis.wsol_pool
        usdc = analysis.usdc_pool
        return AlphaSignal(
            token_mint=analysis.token_mint,
            username=username,
            bio=(profile.bio if profile and profile.bio else bio) or "",
            followers_count=profile.followers_count if profile else 0,
            following_count=profile.following_count if profile else 0,
            tweets_count=profile.tweets_count if profile else 0,
            account_created=profile.created_at if profile else None,
            is_mintable=analysis.is_mintable,
            has_pool=analysis.has_pool,
            wsol_pool_age=wsol.age_days if wsol else None,
            usdc_pool_age=usdc.age_days if usdc else None,
            wsol_pool_tvl=wsol.tvl if wsol else None,
            usdc_pool_tvl=usdc.tvl if usdc else None,
            wsol_pool_volume_24h=wsol.volume_24h if wsol else None,
            usdc_pool_volume_24h=usdc.volume_24h if usdc else None,
            wsol_pool_price=wsol.price if wsol else None,
            usdc_pool_price=usdc.price if usdc else None,
        )

    def is_actionable(self, analysis: PoolAnalysis) -> bool:
        """Fresh means a USDC pool exists and is younger than the age cutoff."""
        usdc = analysis.usdc_pool
        if usdc is None:
            return False
        return round(usdc.age_days, 2) < self.fresh_pool_max_age_days

    def decide(
        self,
        username: str,
        bio: str,
        profile: Profile | None,
        analysis: PoolAnalysis,
    ) -> Decision:
        signal = self.build_signal(username, bio, profile, analysis)
        return Decision(signal=signal, actionable=self.is_actionable(analysis))

    async def recommend(self, signal: AlphaSignal, holdings: dict[str, float]) -> float:
        """Ask the oracle how much USDC to spend. 0.0 means no action."""
        answer = await self.oracle.ask(summarize_signal(signal), holdings)
        amount = parse_amount(answer)
        logger.info("Oracle recommendation for %s: %r -> %s", signal.token_mint, answer, amount)
        return amount
