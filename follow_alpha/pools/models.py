"""Normalized pool types. Raw Raydium payloads never leave ``pools.raydium``."""

from pydantic import BaseModel


class PoolSnapshot(BaseModel):
    pool_id: str
    market_id: str = ""
    base_mint: str
    base_symbol: str = ""
    quote_mint: str
    quote_symbol: str = ""
    tvl: float = 0.0
    volume_24h: float = 0.0
    price: float = 0.0
    open_time: int = 0  # unix seconds
    fee_rate: float | None = None
    lp_mint: str | None = None
    age_days: float = 0.0

    def pairs_with(self, mint: str) -> bool:
        return mint in (self.base_mint, self.quote_mint)


class PoolAnalysis(BaseModel):
    token_mint: str
    has_pool: bool
    is_mintable: bool
    wsol_pool: PoolSnapshot | None = None
    usdc_pool: PoolSnapshot | None = None
