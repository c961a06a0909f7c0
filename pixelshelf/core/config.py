from typing import List, Optional, Union
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = Field(default='PixelShelf')
    app_url: str = Field(default='http://localhost:3000')
    log_level: str = Field(default='INFO')
    database_url: str = Field(default='sqlite+aiosqlite:///./pixelshelf.db')
    auto_create_tables: bool = Field(default=True)
    secret_key: SecretStr = Field(default=SecretStr('change-me-in-production'))
    access_token_expire_minutes: int = Field(default=60 * 24 * 30)
    session_cookie_name: str = Field(default='pixelshelf_session')
    redis_url: str = Field(default='redis://localhost:6379/0')
    enable_redis_cache: bool = Field(default=False)
    cors_origins: Union[List[str], str] = Field(
        default=['http://localhost:3000']
    )
    worker_concurrency: int = Field(default=4)
    notification_retention_days: int = Field(default=30)
    free_tier_project_limit: int = Field(default=3)
    stripe_secret_key: Optional[SecretStr] = Field(default=None)
    stripe_webhook_secret: Optional[SecretStr] = Field(default=None)
    stripe_premium_price_id: Optional[str] = Field(default=None)
    stripe_api_base: str = Field(default='https://api.stripe.com')

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('redis_url')
    @classmethod
    def validate_redis_url(cls, v):
        if not v.startswith(('redis://', 'rediss://')):
            raise ValueError('Redis URL must start with redis:// or rediss://')
        return v

    @field_validator('worker_concurrency')
    @classmethod
    def validate_worker_concurrency(cls, v):
        if v < 1 or v > 100:
            raise ValueError('Worker concurrency must be between 1 and 100')
        return v

    @field_validator('free_tier_project_limit', 'notification_retention_days')
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError('Value must be a positive integer')
        return v

    model_config = {
        'env_file': '.env',
        'case_sensitive': False,
        'extra': 'ignore',
        'json_schema_extra': {
            'fields': {
                'cors_origins': {
                    'description': 'Comma-separated list of allowed CORS origins'
                },
                'redis_url': {
                    'description': 'Redis connection URL (cache and Celery broker)'
                },
                'app_url': {
                    'description': 'Public URL of the web client, used for billing return URLs'
                }
            }
        }
    }


Settings.WORKER_CONCURRENCY = property(lambda self: self.worker_concurrency)
Settings.REDIS_URL = property(lambda self: self.redis_url)
Settings.CORS_ORIGINS = property(lambda self: self.cors_origins)
Settings.ENABLE_REDIS_CACHE = property(lambda self: self.enable_redis_cache)
Settings.SECRET_KEY = property(lambda self: self.secret_key)
Settings.ACCESS_TOKEN_EXPIRE_MINUTES = property(lambda self: self.access_token_expire_minutes)
settings = Settings()
