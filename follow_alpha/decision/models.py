from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AlphaSignal(BaseModel):
    """One row per token mint. Re-analysis overwrites metrics, never ``tweeted``."""

    model_config = ConfigDict(from_attributes=True)

    token_mint: str
    username: str
    bio: str = ""
    followers_count: int = 0
    following_count: int = 0
    tweets_count: int = 0
    account_created: datetime | None = None
    is_mintable: bool = False
    has_pool: bool = False
    wsol_pool_age: float | None = None
    usdc_pool_age: float | None = None
    wsol_pool_tvl: float | None = None
    usdc_pool_tvl: float | None = None
    wsol_pool_volume_24h: float | None = None
    usdc_pool_volume_24h: float | None = None
    wsol_pool_price: float | None = None
    usdc_pool_price: float | None = None
    tweeted: bool = False
    tweeted_at: datetime | None = None
    added_at: datetime | None = None


class Decision(BaseModel):
    signal: AlphaSignal
    actionable: bool
    buy_amount: float = 0.0
