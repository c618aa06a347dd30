"""Process-wide monitoring state, carried in an explicit context object."""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from follow_alpha.decision.engine import DecisionEngine
from follow_alpha.ingestion.base import SocialClient
from follow_alpha.pools.analyzer import PoolAnalyzer
from follow_alpha.storage.gateway import PersistenceGateway
from follow_alpha.tracker.follow_graph import FollowGraphTracker
from follow_alpha.tracker.profile_cache import ProfileCache

HoldingsProvider = Callable[[], Awaitable[dict[str, float]]]
BuyCallback = Callable[[str, float], Awaitable[None]]


class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass
class MonitoringState:
    accounts: list[str]
    min_interval: float = 120.0
    max_interval: float = 900.0
    current_interval: float = 300.0
    state: SchedulerState = SchedulerState.IDLE
    # Checked at account and retry-wait boundaries
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)

    def __post_init__(self) -> None:
        if self.min_interval > self.max_interval:
            raise ValueError("min_interval must not exceed max_interval")
        self.current_interval = min(
            self.max_interval, max(self.min_interval, self.current_interval)
        )

    def should_stop(self) -> bool:
        return self.stop_event.is_set()


@dataclass
class MonitorContext:
    """Everything the scheduler mutates or calls, passed in at construction."""

    client: SocialClient
    gateway: PersistenceGateway
    cache: ProfileCache
    analyzer: PoolAnalyzer
    engine: DecisionEngine
    tracker: FollowGraphTracker
    state: MonitoringState
    shrink_threshold: int = 5
    cache_sweep_interval: float = 300.0
    trading_enabled: bool = False
    holdings_provider: HoldingsProvider | None = None
    on_buy: BuyCallback | None = None
    post_account: str = ""
    post_check_count: int = 3
