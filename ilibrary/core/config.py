from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # 기본 설정들
    environment: str = Field(default="local")
    log_level: str = Field(default="INFO")
    secret_key: str = Field(default="CHANGE_ME_SECRET")
    session_max_age_seconds: int = Field(default=14 * 24 * 60 * 60)

    # Hasura GraphQL (system of record for every entity)
    graphql_endpoint: str = Field(
        default="https://graphql-333f98f9a304.hosted.ghaymah.systems/v1/graphql",
        validation_alias="GRAPHQL_ENDPOINT",
    )
    hasura_admin_secret: Optional[str] = Field(
        default=None,
        validation_alias="HASURA_ADMIN_SECRET",
    )
    graphql_timeout: float = Field(default=10.0)

    # Login behaviour switches (both off unless an operator opts in)
    login_bypass_password: Optional[str] = Field(
        default=None,
        validation_alias="LOGIN_BYPASS_PASSWORD",
    )
    author_email_heuristic: bool = Field(default=False)

    # CORS
    cors_origins: str = Field(default="*")  # comma separated list for production

    # AWS/S3 (S3-compatible, Wasabi by default)
    aws_access_key_id: Optional[str] = Field(
        default=None,
        validation_alias="AWS_ACCESS_KEY_ID",
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None,
        validation_alias="AWS_SECRET_ACCESS_KEY",
    )
    aws_region: str = Field(
        default="eu-south-1",
        validation_alias="AWS_REGION",
    )
    s3_endpoint_url: Optional[str] = Field(
        default="https://s3.eu-south-1.wasabisys.com",
        validation_alias="AWS_S3_ENDPOINT",
    )
    s3_bucket: str = Field(
        default="voicestudio",
        validation_alias="AWS_S3_BUCKET_NAME",
    )
    upload_max_bytes: int = Field(default=5 * 1024 * 1024)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="forbid",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
