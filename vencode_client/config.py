"""
Configuration for the Vencode client.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.vencode.io/api"
DEFAULT_MAX_LISTEN_RETRY = 15
DEFAULT_RECONNECT_DELAY = 3.0

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Access:
    """Credentials sent with every request and embedded in stream URLs."""
    api_key: str
    user_id: str

    def __repr__(self) -> str:
        return f"Access(api_key='***', user_id={self.user_id!r})"


@dataclass(frozen=True)
class StorageCredentials:
    """Credentials for the S3-compatible bucket holding inputs and outputs."""
    bucket: str
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    region: str = "us-east-1"
    endpoint_url: Optional[str] = None
    profile: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Representation submitted alongside jobs."""
        data = {
            "bucket": self.bucket,
            "region": self.region,
        }
        if self.aws_access_key_id:
            data["accessKeyId"] = self.aws_access_key_id
        if self.aws_secret_access_key:
            data["secretAccessKey"] = self.aws_secret_access_key
        if self.endpoint_url:
            data["endpoint"] = self.endpoint_url
        return data

    def __repr__(self) -> str:
        return (
            f"StorageCredentials(bucket={self.bucket!r}, region={self.region!r}, "
            f"endpoint_url={self.endpoint_url!r}, profile={self.profile!r})"
        )


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable client configuration.

    Read by the HTTP client and the subscription subsystem; never mutated
    after construction.
    """
    access: Access
    base_url: str = DEFAULT_BASE_URL
    notify: Optional[Dict[str, Any]] = None
    storage: Optional[StorageCredentials] = None
    debug: bool = False
    max_listen_retry: int = DEFAULT_MAX_LISTEN_RETRY
    timeout: float = 30
    max_retries: int = 3
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        errors = self.validate()
        if errors:
            raise ValueError("Invalid client configuration: " + "; ".join(errors))

    def validate(self) -> List[str]:
        """
        Validate the configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.access.api_key:
            errors.append("Missing required field: api_key")
        if not self.access.user_id:
            errors.append("Missing required field: user_id")

        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append("Invalid base_url format")

        if not isinstance(self.max_listen_retry, int) or self.max_listen_retry < 1:
            errors.append("max_listen_retry must be a positive integer")

        try:
            if float(self.timeout) <= 0:
                errors.append("Timeout must be positive")
        except (ValueError, TypeError):
            errors.append("Invalid timeout value")

        if not isinstance(self.max_retries, int) or self.max_retries < 0:
            errors.append("max_retries cannot be negative")

        try:
            if float(self.reconnect_delay) < 0:
                errors.append("reconnect_delay cannot be negative")
        except (ValueError, TypeError):
            errors.append("Invalid reconnect_delay value")

        if self.storage is not None and not self.storage.bucket:
            errors.append("Storage credentials require a bucket")

        return errors

    @classmethod
    def from_env(cls, env_file: Optional[str] = ".env", **overrides) -> "ClientConfig":
        """
        Build a configuration from environment variables.

        Variables already present in the environment win over the values
        in ``env_file``.

        Args:
            env_file: Optional .env file to load first
            **overrides: Field values taking precedence over the environment

        Returns:
            ClientConfig instance
        """
        if env_file:
            if load_dotenv(env_file, override=False):
                logger.info(f"Loaded environment variables from {env_file}")
            else:
                logger.debug(f"Environment file not found or empty: {env_file}")

        values: Dict[str, Any] = {
            "access": Access(
                api_key=os.getenv("VENCODE_API_KEY", ""),
                user_id=os.getenv("VENCODE_USER_ID", ""),
            ),
            "base_url": os.getenv("VENCODE_BASE_URL", DEFAULT_BASE_URL),
            "debug": os.getenv("VENCODE_DEBUG", "").strip().lower() in _TRUTHY,
        }

        max_listen_retry = os.getenv("VENCODE_MAX_LISTEN_RETRY")
        if max_listen_retry:
            try:
                values["max_listen_retry"] = int(max_listen_retry)
            except ValueError:
                raise ValueError(f"Invalid VENCODE_MAX_LISTEN_RETRY value: {max_listen_retry}")

        notify_url = os.getenv("VENCODE_NOTIFY_URL")
        if notify_url:
            values["notify"] = {"webhookUrl": notify_url}

        bucket = os.getenv("S3_BUCKET")
        if bucket:
            values["storage"] = StorageCredentials(
                bucket=bucket,
                aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
                aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
                region=os.getenv("AWS_REGION", "us-east-1"),
                endpoint_url=os.getenv("S3_ENDPOINT_URL"),
                profile=os.getenv("AWS_PROFILE"),
            )

        values.update(overrides)
        return cls(**values)
