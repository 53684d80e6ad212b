from typing import Annotated, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_PROJECT_NAME = 'Academy API'
DEFAULT_API_PREFIX = '/api'
DEFAULT_DATABASE_URL = 'mysql+pymysql://root:@localhost:3306/islamic_academy?charset=utf8mb4'


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    PROJECT_NAME: str = DEFAULT_PROJECT_NAME
    API_PREFIX: str = DEFAULT_API_PREFIX
    ENV: str = 'development'
    DEBUG: bool = False

    DATABASE_URL: str = DEFAULT_DATABASE_URL
    LOG_LEVEL: str = 'INFO'
    CORS_ORIGINS: Annotated[list[str], NoDecode] = ['http://localhost:5173']

    JWT_SECRET: str = 'change-me-access'
    JWT_REFRESH_SECRET: str = 'change-me-refresh'
    ALGORITHM: str = 'HS256'
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    REFRESH_COOKIE_NAME: str = 'refreshToken'

    AUTO_CREATE_TABLES: bool = False
    SWEEP_EXPIRED_ON_STARTUP: bool = True

    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, value):  # type: ignore[override]
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return []
            if value == '*':
                return ['*']
            return [item.strip() for item in value.split(',') if item.strip()]
        return value

    @property
    def cookie_secure(self) -> bool:
        return self.ENV == 'production'

    @property
    def refresh_cookie_max_age(self) -> int:
        return self.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60


settings = Settings()
