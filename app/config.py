from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    anthropic_api_key: str = ""
    redis_url: str = "redis://redis:6379/0"

    sonnet_model: str = "claude-sonnet-4-5-20250929"

    # Anthropic API timeout settings (seconds)
    anthropic_timeout: int = 60
    anthropic_connect_timeout: int = 10

    # Narrative cache (one generated insight per user per day)
    insights_narrative_cache_ttl: int = 86400  # 24 hours

    # Bloating scale thresholds (1-5 scale)
    insights_high_bloating_threshold: int = 4
    insights_low_bloating_threshold: int = 2

    # Confidence tiers (occurrence counts, inclusive lower bounds)
    insights_investigating_min_occurrences: int = 2
    insights_high_confidence_min_occurrences: int = 5

    # Lookback windows (days)
    insights_recent_days: int = 14
    insights_week_days: int = 7

    # Food safety
    insights_min_food_observations: int = 2
    insights_safe_low_share: float = 0.7
    insights_danger_high_share: float = 0.6

    # Combinations
    insights_min_combination_occurrences: int = 2

    # Weekly trend dead-zone (rating points)
    insights_trend_dead_zone: float = 0.3

    insights_max_recommendations: int = 5

    class Config:
        env_file = ".env"


settings = Settings()
