"""
Configuration loader for the EC2 Drift Detector.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlparse

from .drift_detector.worker_pool import DEFAULT_CONCURRENCY

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """Configuration class for the drift detector."""

    state_path: str
    aws_region: Optional[str] = None
    log_level: str = "INFO"
    max_retries: int = 3
    timeout_seconds: int = 30
    concurrency: int = DEFAULT_CONCURRENCY
    attributes: List[str] = field(default_factory=list)
    instance_ids: List[str] = field(default_factory=list)


def split_list(value: Optional[str]) -> List[str]:
    """Split a comma separated setting, dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def int_setting(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def validate_config(config: Config) -> Config:
    """
    Validates a Config and normalises its values.

    Args:
        config: Configuration to check

    Returns:
        The same Config, with log level upper-cased and concurrency defaulted

    Raises:
        ValueError: If any setting is invalid
    """
    if not config.state_path:
        raise ValueError("TF_STATE_PATH environment variable is required")

    if config.state_path.startswith("s3://"):
        parsed = urlparse(config.state_path)
        if not parsed.netloc or not parsed.path.lstrip("/"):
            raise ValueError(
                "TF_STATE_PATH must be a valid S3 path of the form s3://bucket/key"
            )

    config.log_level = config.log_level.upper()
    if config.log_level not in VALID_LOG_LEVELS:
        raise ValueError(
            f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}, got {config.log_level!r}"
        )

    if config.max_retries < 0:
        raise ValueError("MAX_RETRIES must not be negative")
    if config.timeout_seconds <= 0:
        raise ValueError("TIMEOUT_SECONDS must be positive")

    if config.concurrency <= 0:
        config.concurrency = DEFAULT_CONCURRENCY

    return config


def load_config() -> Config:
    """
    Loads and validates configuration from the environment.

    Returns:
        Config object with validated settings

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    # Required configuration
    state_path = os.environ.get("TF_STATE_PATH", "")

    # Optional configuration with defaults
    config = Config(
        state_path=state_path,
        aws_region=os.environ.get("AWS_REGION") or None,
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        max_retries=int_setting("MAX_RETRIES", "3"),
        timeout_seconds=int_setting("TIMEOUT_SECONDS", "30"),
        concurrency=int_setting("DRIFT_CONCURRENCY", str(DEFAULT_CONCURRENCY)),
        attributes=split_list(os.environ.get("DRIFT_ATTRIBUTES")),
        instance_ids=split_list(os.environ.get("DRIFT_INSTANCE_IDS")),
    )
    return validate_config(config)
