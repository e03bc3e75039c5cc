from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8')

    app_name: str = 'File Browser'
    app_host: str = '0.0.0.0'
    app_port: int = 4000
    root_directory: str = ''
    environment: str = Field(default='development', pattern='^(development|production)$')
    cors_origins: str = ''
    log_level: str = 'info'
    download_chunk_size: int = Field(default=64 * 1024, ge=4 * 1024, le=8 * 1024 * 1024)

    @property
    def is_production(self) -> bool:
        return self.environment == 'production'


settings = Settings()
