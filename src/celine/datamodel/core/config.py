# datamodel/core/config.py
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="DATAMODEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =============================================================================
    # Import defaults
    # =============================================================================

    default_sql_dialect: Optional[str] = Field(
        default=None,
        description="SQL dialect used when parse_sql() is called without one",
    )

    # =============================================================================
    # Export defaults
    # =============================================================================

    odcs_api_version: str = Field(
        default="v3.1.0", description="apiVersion written by the ODCS exporter"
    )
    avro_namespace: str = Field(
        default="com.datamodel", description="Namespace of exported Avro records"
    )
    protobuf_package: str = Field(
        default="com.datamodel", description="Package of exported .proto files"
    )
    json_schema_draft: str = Field(
        default="http://json-schema.org/draft-07/schema#",
        description="$schema URI written by the JSON Schema exporter",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
