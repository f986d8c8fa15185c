from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Birdeye Data Services API (Solana secondary market data)
    birdeye_api_key: str = ""

    # Helius (Solana RPC, DAS getAsset)
    helius_api_key: str = ""
    helius_rpc_url: str = ""

    # BSCScan (BNB token info + holder count)
    bscscan_api_key: str = ""

    # ScrapingBee (metered HTML scraping backend)
    scrapingbee_api_key: str = ""
    scrape_max_concurrency: int = 4  # plan allows 5 concurrent, keep one spare

    # LLM narrative via OpenRouter
    openrouter_api_key: str = ""
    llm_model: str = "openai/gpt-4o-mini"

    # Per-fetcher timeouts
    provider_timeout_sec: float = 8.0
    scrape_timeout_sec: float = 10.0

    # Nitter mirrors, tried in order
    nitter_search_mirrors: list[str] = [
        "https://nitter.net",
        "https://nitter.privacydev.net",
        "https://nitter.poast.org",
    ]
    nitter_profile_mirrors: list[str] = [
        "https://nitter.net",
        "https://nitter.privacydev.net",
        "https://nitter.poast.org",
    ]
    narrative_tweet_cap: int = 10

    # Feature flags
    enable_birdeye: bool = True
    enable_social: bool = True
    enable_narrative: bool = True
    enable_cache: bool = True

    # Scan cache (write-only from the core)
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl_sec: int = 6 * 60 * 60

    # HTTP entrypoint
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    scan_rate_limit: str = "10/minute"

    # Scoring hard caps and high-score gate (empirically tuned)
    score_cap_liquidity_usd: float = 50_000.0
    score_cap_liquidity_value: int = 60
    score_cap_holders: int = 100
    score_cap_holders_value: int = 50
    score_cap_risk_value: int = 40
    score_cap_authority_value: int = 30
    score_gate_threshold: int = 70
    score_gate_min_indicators: int = 4


settings = Settings()
