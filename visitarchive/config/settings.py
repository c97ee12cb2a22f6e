"""
Visit Archive
Centralized Configuration Management

Pydantic settings with environment variable support for the archiving
limits, the archive database, raw log locations and logging.
"""

from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ArchivingSettings(BaseSettings):
    """Report truncation limits applied when tables are serialized"""
    
    model_config = SettingsConfigDict(env_prefix="ARCHIVING_")
    
    maximum_rows_referers: int = Field(
        default=1000, gt=0, description="Top-level rows kept in referrer reports"
    )
    maximum_rows_subtable_referers: int = Field(
        default=50, gt=0, description="Rows kept in each referrer subtable"
    )
    maximum_rows_standard: int = Field(
        default=500, gt=0, description="Rows kept in region and city reports"
    )
    site_id: int = Field(default=1, gt=0, description="Default site being archived")


class DatabaseSettings(BaseSettings):
    """Archive database configuration"""
    
    model_config = SettingsConfigDict(env_prefix="POSTGRES_")
    
    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="visit_archive", alias="database", description="Database name")
    user: str = Field(default="archiver", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(default=None, description="Full async URL (overrides host/port)")
    
    @property
    def async_url(self) -> str:
        """Async database URL, POSTGRES_URL wins over the individual parts"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class DataLakeSettings(BaseSettings):
    """Raw log storage configuration"""
    
    model_config = SettingsConfigDict(env_prefix="DATA_")
    
    logs_path: str = Field(default="./data/logs", description="Directory holding raw visit/conversion logs")
    log_format: str = Field(default="parquet", description="Default raw log file format")


class MonitoringSettings(BaseSettings):
    """Logging configuration"""
    
    model_config = SettingsConfigDict(env_prefix="")
    
    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings
    
    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    app_name: str = Field(default="visit-archive", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    
    archiving: ArchivingSettings = Field(default_factory=ArchivingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    data_lake: DataLakeSettings = Field(default_factory=DataLakeSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    
    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()
    
    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.
    
    Returns:
        Settings: Application settings instance
    """
    return Settings()
