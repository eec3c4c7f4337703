from pathlib import Path
from typing import List, Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Table Booking System'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production
    LOG_DIR: str = str(_PROJECT_ROOT / 'logs')

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'table_booking'

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:'
            f'{self.POSTGRES_PASSWORD.get_secret_value()}@'
            f'{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # SQLAlchemy pool (schema bootstrap only)
    DB_POOL_SIZE: int = 5
    DB_POOL_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_POOL_PRE_PING: bool = True

    # asyncpg pool (all runtime queries)
    ASYNCPG_POOL_MIN_SIZE: int = 5
    ASYNCPG_POOL_MAX_SIZE: int = 20
    ASYNCPG_POOL_COMMAND_TIMEOUT: float = 30.0
    ASYNCPG_POOL_MAX_INACTIVE_LIFETIME: float = 300.0
    ASYNCPG_POOL_TIMEOUT: float = 10.0

    # LINE Messaging API
    LINE_CHANNEL_SECRET: SecretStr = SecretStr('test_line_channel_secret')
    LINE_CHANNEL_ACCESS_TOKEN: SecretStr = SecretStr('test_line_channel_access_token')
    LINE_API_BASE_URL: str = 'https://api.line.me'
    LINE_HTTP_TIMEOUT: float = 10.0
    LINE_CAROUSEL_LIMIT: int = 10  # max bubbles per carousel
    LINE_BUTTONS_LIMIT: int = 4  # max actions per buttons template
    LINE_QUICK_REPLY_LIMIT: int = 13  # max quick reply items per message
    LINE_DEFAULT_RESTAURANT_ID: Optional[str] = None  # restaurant owning the official account

    # Locale
    TIMEZONE: str = 'Asia/Bangkok'
    CURRENCY: str = 'THB'

    # Booking rules
    DEFAULT_BOOKING_DURATION_MINUTES: int = 120
    CANCELLATION_CUTOFF_HOURS: float = 2.0
    HISTORY_DEDUP_WINDOW_SECONDS: float = 5.0
    BOOKING_REF_MAX_ATTEMPTS: int = 5

    # Table holds
    HOLD_DURATION_MINUTES: int = 5
    HOLD_MAX_MINUTES: int = 15
    SYSTEM_CLEANUP_TOKEN: Optional[SecretStr] = None  # bearer token for the manual hold sweep

    # Chat time slots
    SLOT_INTERVAL_MINUTES: int = 30
    SLOT_CLOSING_BUFFER_MINUTES: int = 60
    SLOT_MIN_LEAD_MINUTES: int = 60
    DEFAULT_OPENING_TIME: str = '10:00'
    DEFAULT_CLOSING_TIME: str = '22:00'
    CHAT_DATE_CHOICES: int = 7

    # Dynamic pricing
    PRICING_BASE_PRICE: int = 100
    PRICING_MIN_PRICE: int = 70
    PRICING_MAX_PRICE: int = 200
    PRICING_FALLBACK_CONFIDENCE: float = 0.1

    # Capacity estimation (max daily guests / peak utilization, floored)
    CAPACITY_PEAK_UTILIZATION: float = 0.8
    CAPACITY_FLOOR: int = 40
    CAPACITY_DEFAULT: int = 60
    CAPACITY_WINDOW_DAYS: int = 30

    # Historical popularity thresholds
    TIME_SLOT_HIGH_THRESHOLD: int = 5
    TIME_SLOT_MEDIUM_THRESHOLD: int = 2
    DAY_HIGH_THRESHOLD: int = 10
    DAY_MEDIUM_THRESHOLD: int = 4

    # In-process caches (seconds)
    PRICING_CACHE_TTL_SECONDS: float = 15 * 60
    HOLIDAY_CACHE_TTL_SECONDS: float = 24 * 60 * 60
    EVENT_DEDUP_TTL_SECONDS: float = 5 * 60
    CACHE_SWEEP_INTERVAL_SECONDS: float = 5 * 60


settings = Settings()  # type: ignore
