"""Configuration utilities for the LibreLink Up uploader."""

import json
import logging
import os
from functools import lru_cache
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from llu_uploader.auth.regions import DEFAULT_REGION, LLU_API_ENDPOINTS, get_region_host

logger = logging.getLogger(__name__)


class AwsSecretsManager:
    """Utility class for retrieving secrets from AWS Secrets Manager."""

    def __init__(self, region_name: Optional[str] = None):
        """
        Initialize AWS Secrets Manager client.

        Args:
            region_name: AWS region name
        """
        self.region_name = region_name or os.environ.get("AWS_REGION", "us-east-1")
        # Use default credentials from environment or instance profile
        self.client = boto3.client(
            service_name="secretsmanager",
            region_name=self.region_name,
            endpoint_url=os.environ.get("AWS_SECRETSMANAGER_ENDPOINT"),
        )

    def get_secret(self, secret_name: str) -> Dict[str, Any]:
        """
        Retrieve a secret from AWS Secrets Manager.

        Args:
            secret_name: Name or ARN of the secret

        Returns:
            Dict[str, Any]: Secret values as a dictionary

        Raises:
            ClientError: If the secret cannot be retrieved
        """
        try:
            response = self.client.get_secret_value(SecretId=secret_name)
            if "SecretString" in response:
                return json.loads(response["SecretString"])
            else:
                # Binary secrets not yet supported
                raise ValueError("Binary secrets are not supported")
        except ClientError as e:
            if os.environ.get("SERVICE_ENV", "development") == "development":
                logger.warning(f"Could not retrieve secret {secret_name}: {str(e)}")
                return {}
            raise


class Settings(BaseSettings):
    """Application settings loaded from environment variables and secrets."""

    # Service configuration
    service_env: str = Field("development", description="Service environment (development, staging, production)")
    log_level: str = Field("INFO", description="Logging level")
    log_output: str = Field("stdout", description="Log sink: 'stdout' or 'file'")
    log_file_path: Optional[str] = Field(None, description="Log file path when log_output is 'file'")
    port: int = Field(3000, description="Port for the health check server")
    secret_name: Optional[str] = Field(None, description="AWS Secrets Manager secret name")
    aws_region: Optional[str] = Field(None, description="AWS region for Secrets Manager")
    metrics_user: Optional[str] = Field(None, description="Basic auth user for /metrics")
    metrics_pass: Optional[SecretStr] = Field(None, description="Basic auth password for /metrics")

    # LibreLink Up configuration
    link_up_username: str = Field(..., description="LibreLink Up account e-mail")
    link_up_password: SecretStr = Field(..., description="LibreLink Up account password")
    link_up_connection: Optional[str] = Field(None, description="Patient ID of the connection to follow")
    link_up_region: str = Field(DEFAULT_REGION, description="LibreLink Up region key")
    link_up_time_interval: int = Field(5, ge=1, description="Polling interval in minutes")
    link_up_version: str = Field("4.12.0", description="LibreLink Up app version header")
    link_up_product: str = Field("llu.ios", description="LibreLink Up product header")

    # Nightscout configuration
    nightscout_url: str = Field(..., description="Nightscout host, without scheme")
    nightscout_api_token: SecretStr = Field(..., description="Nightscout API secret or access token")
    nightscout_api_v3: bool = Field(False, description="Use the Nightscout API v3 protocol")
    nightscout_disable_https: bool = Field(False, description="Talk to Nightscout over plain HTTP")
    nightscout_device_name: str = Field("nightscout-librelink-up", description="Device name stored on entries")

    # Sync configuration
    single_shot: bool = Field(False, description="Run a single sync cycle instead of polling")
    all_data: bool = Field(False, description="Upload every reading, ignoring the last Nightscout entry")
    request_timeout_seconds: float = Field(30, description="HTTP request timeout in seconds")

    @field_validator("link_up_region")
    @classmethod
    def validate_region(cls, v: str) -> str:
        """
        Validate the LibreLink Up region.

        Args:
            v: Region key, any case

        Returns:
            str: Upper-cased region key

        Raises:
            ValueError: If the region is unknown
        """
        region = v.strip().upper()
        if region not in LLU_API_ENDPOINTS:
            raise ValueError(
                f"Unknown LibreLink Up region '{v}'. Valid regions: {', '.join(sorted(LLU_API_ENDPOINTS))}"
            )
        return region

    @field_validator("nightscout_url")
    @classmethod
    def strip_scheme(cls, v: str) -> str:
        """Strip any scheme and trailing slash; the scheme comes from nightscout_disable_https."""
        for prefix in ("https://", "http://"):
            if v.lower().startswith(prefix):
                v = v[len(prefix):]
        v = v.rstrip("/")
        if not v:
            raise ValueError("nightscout_url is required")
        return v

    @property
    def link_up_host(self) -> str:
        return get_region_host(self.link_up_region)

    @property
    def nightscout_base_url(self) -> str:
        scheme = "http" if self.nightscout_disable_https else "https"
        return f"{scheme}://{self.nightscout_url}"

    # Integration with AWS Secrets Manager
    def _load_secrets(self) -> None:
        """Load secrets from AWS Secrets Manager if configured."""
        if not self.secret_name or self.service_env == "development":
            return

        try:
            secrets_manager = AwsSecretsManager(self.aws_region)
            secrets = secrets_manager.get_secret(self.secret_name)

            # Apply secrets to our configuration; assignment runs the field validators
            for key, value in secrets.items():
                key_lower = key.lower()
                if key_lower in self.__class__.model_fields:
                    setattr(self, key_lower, value)
        except Exception as e:
            if self.service_env == "development":
                logger.warning(f"Failed to load secrets: {str(e)}")
            else:
                raise

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="",
        extra="ignore",
        validate_assignment=True,
    )

    def __init__(self, *args, **kwargs):
        """Initialize settings with secrets."""
        super().__init__(*args, **kwargs)
        self._load_secrets()


@lru_cache()
def get_settings() -> Settings:
    """
    Create and cache settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()
