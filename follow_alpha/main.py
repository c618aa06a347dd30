import asyncio
import logging
import signal

import httpx

from follow_alpha.config import Settings, settings
from follow_alpha.decision.engine import DecisionEngine
from follow_alpha.decision.oracle import AnthropicOracle, NullOracle
from follow_alpha.errors import ConfigError
from follow_alpha.ingestion.base import SocialClient
from follow_alpha.ingestion.factory import create_social_client
from follow_alpha.monitor.scheduler import AdaptiveScheduler
from follow_alpha.monitor.state import MonitorContext, MonitoringState
from follow_alpha.pools.analyzer import PoolAnalyzer
from follow_alpha.storage.gateway import PersistenceGateway, create_gateway
from follow_alpha.tracker.follow_graph import FollowGraphTracker
from follow_alpha.tracker.profile_cache import ProfileCache
from follow_alpha.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def validate_settings(cfg: Settings) -> list[str]:
    """Return the tracked accounts, or raise ConfigError if startup can't proceed."""
    accounts = cfg.tracked_account_list()
    if not accounts:
        raise ConfigError("TRACKED_ACCOUNTS is empty, nothing to monitor")
    if cfg.twitter_provider == "twikit" and not (cfg.twitter_username and cfg.twitter_password):
        raise ConfigError("TWITTER_USERNAME and TWITTER_PASSWORD are required for twikit")
    if cfg.twitter_provider == "api" and not cfg.twitter_bearer_token:
        raise ConfigError("TWITTER_BEARER_TOKEN is required for the official API")
    return accounts


def build_context(
    cfg: Settings,
    client: SocialClient,
    gateway: PersistenceGateway,
    http_client: httpx.AsyncClient | None = None,
    accounts: list[str] | None = None,
) -> MonitorContext:
    state = MonitoringState(
        accounts=accounts if accounts is not None else cfg.tracked_account_list(),
        min_interval=cfg.min_interval,
        max_interval=cfg.max_interval,
        current_interval=cfg.initial_interval,
    )
    analyzer = PoolAnalyzer(
        client=http_client,
        raydium_url=cfg.raydium_api_base,
        rpc_url=cfg.solana_rpc_url,
        wsol_mint=cfg.wsol_mint,
        usdc_mint=cfg.usdc_mint,
        page_size=cfg.raydium_page_size,
        max_attempts=cfg.http_max_attempts,
        base_delay=cfg.http_base_delay,
        timeout=cfg.http_timeout,
        should_stop=state.should_stop,
    )
    oracle = (
        AnthropicOracle(cfg.anthropic_api_key, cfg.llm_model)
        if cfg.anthropic_api_key
        else NullOracle()
    )
    return MonitorContext(
        client=client,
        gateway=gateway,
        cache=ProfileCache(ttl=cfg.profile_cache_ttl, capacity=cfg.profile_cache_capacity),
        analyzer=analyzer,
        engine=DecisionEngine(cfg.fresh_pool_max_age_days, oracle),
        tracker=FollowGraphTracker(
            client,
            gateway,
            max_following=cfg.max_following,
            page_delay=cfg.page_delay,
            page_delay_every=cfg.page_delay_every,
        ),
        state=state,
        shrink_threshold=cfg.shrink_threshold,
        cache_sweep_interval=cfg.profile_cache_sweep_interval,
        trading_enabled=cfg.trading_enabled,
        post_account=cfg.post_account.strip().lstrip("@"),
        post_check_count=cfg.post_check_count,
    )


async def main() -> None:
    setup_logging(settings.log_level)
    logger.info("Starting follow monitor")

    accounts = validate_settings(settings)

    gateway = create_gateway(settings.database_url)
    await gateway.init_schema()
    logger.info("Database initialized")

    client = create_social_client(settings)
    ctx = build_context(settings, client, gateway, accounts=accounts)
    if settings.trading_enabled:
        logger.warning("TRADING_ENABLED is set but no buy callback is wired in this process")

    scheduler = AdaptiveScheduler(ctx)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, scheduler.request_stop)
        except NotImplementedError:
            pass  # Windows

    try:
        await scheduler.start()
        await scheduler.wait()
    finally:
        await scheduler.stop()
        await ctx.analyzer.aclose()
        await gateway.close()
        logger.info("Cleanup completed")


def run() -> None:
    asyncio.run(main())
