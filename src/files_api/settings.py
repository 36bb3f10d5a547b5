# src/files_api/settings.py
from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NamingPolicy(str, Enum):
    """Whether two stored files may share a name"""
    UNIQUE = 'unique'
    NON_UNIQUE = 'non-unique'


class Locator(str, Enum):
    """Which attribute `GET /retrieve` looks files up by"""
    ID = 'id'
    NAME = 'name'


class Disposition(str, Enum):
    """Content-Disposition type sent with retrieved files"""
    INLINE = 'inline'
    ATTACHMENT = 'attachment'


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from files_api.settings import get_settings
        settings = get_settings()
        collection = settings.mongodb_collection
    """

    # Application Settings
    app_name: str = Field(
        default="files-api",
        description="Application name"
    )

    # MongoDB
    mongodb_uri: str = Field(
        default="mongodb://localhost/FileUpload",
        validation_alias=AliasChoices("MONGODB_URI", "mongodb_uri"),
        description="MongoDB connection string"
    )

    mongodb_database: Optional[str] = Field(
        default=None,
        description="Database name (taken from the connection string path when unset)"
    )

    mongodb_collection: str = Field(
        default="files",
        description="Collection holding one document per stored file"
    )

    mongodb_timeout_ms: int = Field(
        default=5000,
        gt=0,
        description="Server selection, connect and socket timeout in milliseconds"
    )

    # Storage contract
    naming_policy: NamingPolicy = Field(
        default=NamingPolicy.UNIQUE,
        description="unique: reject a second upload with the same name; non-unique: allow it"
    )

    locator: Locator = Field(
        default=Locator.ID,
        description="Query parameter used by GET /retrieve: id or name"
    )

    content_disposition: Disposition = Field(
        default=Disposition.INLINE,
        description="inline renders in the browser, attachment forces a download"
    )

    upload_field_name: str = Field(
        default="sampleFile",
        min_length=1,
        description="Name of the multipart field carrying the file"
    )

    # Server
    host: str = Field(default="0.0.0.0")

    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("PORT", "NODE_PORT", "port"),
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @property
    def unique_names(self) -> bool:
        return self.naming_policy == NamingPolicy.UNIQUE

    @field_validator('naming_policy', 'locator', 'content_disposition', mode='before')
    @classmethod
    def normalize_choice(cls, v):
        """Accept common spellings of the enum values."""
        if isinstance(v, str):
            v = v.strip().lower()
            aliases = {
                "non_unique": "non-unique",
                "nonunique": "non-unique",
                "_id": "id",
            }
            return aliases.get(v, v)
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is a standard logging level name."""
        v = v.upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return v

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
