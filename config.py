"""Application configuration using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Discord
    discord_token: str = Field(default="", alias="DISCORD_TOKEN")
    text_command_prefix: str = Field(default="lol", alias="TEXT_COMMAND_PREFIX")

    # Database
    database_path: str = Field(default="champguessr.db", alias="DATABASE_PATH")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Data Dragon
    ddragon_base_url: str = Field(default="https://ddragon.leagueoflegends.com", alias="DDRAGON_BASE_URL")
    ddragon_fallback_version: str = Field(default="14.1.1", alias="DDRAGON_FALLBACK_VERSION")
    ddragon_locale: str = Field(default="en_US", alias="DDRAGON_LOCALE")
    http_timeout_seconds: float = Field(default=10.0, alias="HTTP_TIMEOUT_SECONDS")

    # Round settings
    hint_delay_seconds: float = Field(default=15.0, alias="HINT_DELAY_SECONDS")
    guild_cooldown_seconds: float = Field(default=5.0, alias="GUILD_COOLDOWN_SECONDS")

    # Economy
    be_threshold: int = Field(default=50, alias="BE_THRESHOLD")
    be_per_threshold: int = Field(default=2500, alias="BE_PER_THRESHOLD")
    chest_threshold: int = Field(default=20, alias="CHEST_THRESHOLD")
    champion_loot_chance: float = Field(default=0.4, alias="CHAMPION_LOOT_CHANCE")
    daily_reset_hour: int = Field(default=8, ge=0, le=23, alias="DAILY_RESET_HOUR")
    max_resample_attempts: int = Field(default=5, ge=1, alias="MAX_RESAMPLE_ATTEMPTS")
    leaderboard_size: int = Field(default=10, alias="LEADERBOARD_SIZE")

    # Trading
    trade_expiry_seconds: float = Field(default=300.0, alias="TRADE_EXPIRY_SECONDS")


# Global settings instance
settings = Settings()


# Backwards compatibility - expose as Config class with uppercase attributes
class Config:
    """Backwards-compatible config interface."""

    DISCORD_TOKEN = settings.discord_token
    TEXT_COMMAND_PREFIX = settings.text_command_prefix.lower()
    DATABASE_PATH = settings.database_path
    LOG_LEVEL = settings.log_level.upper()
    DDRAGON_BASE_URL = settings.ddragon_base_url.rstrip("/")
    DDRAGON_FALLBACK_VERSION = settings.ddragon_fallback_version
    DDRAGON_LOCALE = settings.ddragon_locale
    HTTP_TIMEOUT_SECONDS = settings.http_timeout_seconds
    HINT_DELAY_SECONDS = settings.hint_delay_seconds
    GUILD_COOLDOWN_SECONDS = settings.guild_cooldown_seconds
    BE_THRESHOLD = settings.be_threshold
    BE_PER_THRESHOLD = settings.be_per_threshold
    CHEST_THRESHOLD = settings.chest_threshold
    CHAMPION_LOOT_CHANCE = settings.champion_loot_chance
    DAILY_RESET_HOUR = settings.daily_reset_hour
    MAX_RESAMPLE_ATTEMPTS = settings.max_resample_attempts
    LEADERBOARD_SIZE = settings.leaderboard_size
    TRADE_EXPIRY_SECONDS = settings.trade_expiry_seconds
