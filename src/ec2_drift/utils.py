"""
Utility functions for the EC2 Drift Detector.
"""

import functools
import logging
from typing import Callable, Optional, TypeVar, cast
from urllib.parse import urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError, ReadTimeoutError
from botocore.exceptions import ConnectionError as BotoConnectionError

from .errors import AWSFetchError, InstanceNotFoundError

RETRYABLE_ERROR_CODES = frozenset(
    {
        "ThrottlingException",
        "Throttling",
        "RequestLimitExceeded",
        "ProvisionedThroughputExceededException",
        "ServiceUnavailable",
        "ServiceUnavailableException",
        "InternalError",
        "InternalServiceError",
        "RequestTimeout",
        "RequestTimeoutException",
    }
)

NOT_FOUND_ERROR_CODES = frozenset({"InvalidInstanceID.NotFound", "InvalidInstanceID.Malformed"})


def setup_logging(log_level: Optional[str] = None) -> logging.Logger:
    """
    Sets up logging for the drift detector.

    The handler is attached once. The level is only changed when one is
    passed, so modules can call this at import time without resetting the
    level chosen by the CLI or Lambda handler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("ec2_drift")

    # Prevent duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    if log_level:
        logger.setLevel(getattr(logging, log_level.upper()))

    return logger


def is_retryable_error(error: Exception) -> bool:
    """Whether an AWS error is transient (throttling, 5xx, network)."""
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "")
        if code in RETRYABLE_ERROR_CODES:
            return True
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        return status == 429 or status >= 500
    return isinstance(error, (BotoConnectionError, ReadTimeoutError))


F = TypeVar("F", bound=Callable[..., object])


def fetcher_error_handler(operation: str) -> Callable[[F], F]:
    """
    Decorator for consistent error handling and logging in AWS fetchers.

    Translates botocore errors into AWSFetchError, or InstanceNotFoundError
    for InvalidInstanceID.* codes when the wrapped call is given an
    ``instance_id`` keyword. Errors are logged and re-raised; callers
    decide whether a failed fetch is fatal.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: object, **kwargs: object) -> object:
            logger = setup_logging()
            instance_id = kwargs.get("instance_id")
            try:
                return func(*args, **kwargs)
            except ClientError as e:
                error = e.response.get("Error", {})
                code = error.get("Code", "")
                if code in NOT_FOUND_ERROR_CODES and instance_id:
                    logger.warning(f"Instance {instance_id} not found in AWS ({code})")
                    raise InstanceNotFoundError(str(instance_id), "AWS") from e
                logger.error(f"AWS ClientError in {func.__name__}: {e}")
                raise AWSFetchError(
                    operation,
                    error.get("Message", str(e)),
                    error_code=code,
                    instance_id=str(instance_id) if instance_id else None,
                    retryable=is_retryable_error(e),
                ) from e
            except BotoCoreError as e:
                logger.error(f"AWS error in {func.__name__}: {e}")
                raise AWSFetchError(
                    operation,
                    str(e),
                    instance_id=str(instance_id) if instance_id else None,
                    retryable=is_retryable_error(e),
                ) from e

        return cast(F, wrapper)

    return decorator


def download_s3_file(s3_path: str, logger: Optional[logging.Logger] = None) -> str:
    """
    Downloads a file from S3 and returns its content as a string.

    Args:
        s3_path: S3 path in format 's3://bucket/key'
        logger: Logger instance for error logging

    Returns:
        File content as string

    Raises:
        ValueError: If S3 path is invalid
        AWSFetchError: If the S3 download fails
    """
    if logger is None:
        logger = setup_logging()

    parsed = urlparse(s3_path)
    bucket = parsed.netloc
    key = parsed.path.lstrip("/")

    if parsed.scheme != "s3" or not bucket or not key:
        raise ValueError(f"Invalid S3 path: {s3_path}")

    logger.info(f"Downloading S3 file: {s3_path}")
    content_bytes = _get_s3_object(bucket, key)
    content = (
        content_bytes.decode("utf-8")
        if isinstance(content_bytes, bytes)
        else str(content_bytes)
    )
    logger.info(f"Successfully downloaded {len(content)} bytes from S3")
    return content


@fetcher_error_handler("GetObject")
def _get_s3_object(bucket: str, key: str) -> bytes:
    s3_client = boto3.client("s3")
    response = s3_client.get_object(Bucket=bucket, Key=key)
    return response["Body"].read()
