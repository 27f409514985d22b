"""
Exception types for the EC2 Drift Detector.

Attribute path errors are local to value extraction: the detector catches them
and skips the attribute. Source errors (Terraform parsing, AWS calls) propagate
to the caller of the orchestration functions.
"""

from typing import Optional

# Per-instance error strings recorded in drift results
NOT_FOUND_IN_STATE = "instance not found in Terraform state"
CONTEXT_CANCELED = "context canceled"
CONTEXT_DEADLINE_EXCEEDED = "context deadline exceeded"


class DriftDetectorError(Exception):
    """Base class for all drift detector errors."""


class AttributePathError(DriftDetectorError):
    """An attribute path could not be resolved against an instance."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path


class InvalidPathError(AttributePathError):
    """The attribute path is empty or has segments the field does not support."""

    def __init__(self, path: str, reason: str = "empty path") -> None:
        super().__init__(path, f"invalid attribute path {path!r}: {reason}")


class UnknownAttributeError(AttributePathError):
    """A path segment does not name a recognised attribute."""

    def __init__(self, path: str, segment: str) -> None:
        super().__init__(path, f"unknown attribute: {segment}")
        self.segment = segment


class StateParseError(DriftDetectorError, ValueError):
    """The Terraform state or configuration could not be read or parsed."""


class InstanceNotFoundError(DriftDetectorError, LookupError):
    """An instance ID was not present in the queried source."""

    def __init__(self, instance_id: str, source: str) -> None:
        super().__init__(f"instance {instance_id} not found in {source}")
        self.instance_id = instance_id
        self.source = source


class AWSFetchError(DriftDetectorError):
    """An AWS API call failed."""

    def __init__(
        self,
        operation: str,
        message: str,
        error_code: str = "",
        instance_id: Optional[str] = None,
        retryable: bool = False,
    ) -> None:
        text = f"AWS {operation} failed"
        if instance_id:
            text += f" for instance {instance_id}"
        if error_code:
            text += f" [{error_code}]"
        super().__init__(f"{text}: {message}")
        self.operation = operation
        self.error_code = error_code
        self.instance_id = instance_id
        self.retryable = retryable
