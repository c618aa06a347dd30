from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Twitter provider: "api" (official, paid) or "twikit" (scraper, free)
    twitter_provider: Literal["api", "twikit"] = "twikit"

    # Official X API (only needed if twitter_provider=api)
    twitter_bearer_token: str = ""

    # Twikit credentials (only needed if twitter_provider=twikit)
    twitter_username: str = ""
    twitter_email: str = ""
    twitter_password: str = ""
    twikit_cookies_file: str = "twikit_cookies.json"
    capsolver_api_key: str = ""  # capsolver.com API key (for Cloudflare bypass)
    login_retries: int = 3

    # Accounts whose follow lists are watched (comma-separated handles)
    tracked_accounts: str = ""

    # Handle whose recent posts mark signals as tweeted (blank = disabled)
    post_account: str = ""
    post_check_count: int = 3

    # Database: sqlite+aiosqlite:///file.db or postgresql+asyncpg://user:pw@host/db
    database_url: str = "sqlite+aiosqlite:///follow_alpha.db"

    # Raydium / Solana
    raydium_api_base: str = "https://api-v3.raydium.io/pools/info/mint"
    raydium_page_size: int = 1000
    solana_rpc_url: str = "https://api.mainnet-beta.solana.com"
    wsol_mint: str = "So11111111111111111111111111111111111111112"
    usdc_mint: str = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

    # Retry policy for external calls
    http_max_attempts: int = 3
    http_base_delay: float = 1.0  # seconds, doubled each attempt
    http_timeout: float = 10.0  # per attempt

    # Adaptive polling (seconds)
    min_interval: float = 120.0
    max_interval: float = 900.0
    initial_interval: float = 300.0
    shrink_threshold: int = 5  # more new follows than this -> poll faster

    # Profile cache
    profile_cache_ttl: float = 600.0
    profile_cache_capacity: int = 500
    profile_cache_sweep_interval: float = 300.0

    # Follow list pagination
    max_following: int = 20_000
    page_delay: float = 0.1
    page_delay_every: int = 100

    # Decision policy
    fresh_pool_max_age_days: float = 2.0

    # LLM recommendation oracle (optional, blank disables it)
    anthropic_api_key: str = ""
    llm_model: str = "claude-sonnet-4-5-20250929"

    # Master kill switch for the buy callback
    trading_enabled: bool = False

    log_level: str = "INFO"

    def tracked_account_list(self) -> list[str]:
        """Tracked handles in configured order, without '@' or blanks."""
        handles = []
        for raw in self.tracked_accounts.split(","):
            handle = raw.strip().lstrip("@")
            if handle and handle not in handles:
                handles.append(handle)
        return handles


settings = Settings()
