"""
EC2 Drift Detector Package.

This package compares live EC2 instances with their Terraform declarations
and reports the attributes that differ.

The drift detection process:
1. Loads aws_instance resources from Terraform state or configuration
2. Fetches the matching live instances from EC2
3. Compares the configured attribute paths of each pair
4. Reports drifted attributes, missing instances and cancelled checks
"""

from .attributes import DEFAULT_ATTRIBUTES, extract_value, supported_attributes
from .comparators import values_equal
from .context import DetectionContext
from .core import detect_drift, detect_instance_drift
from .detector import DriftDetector
from .worker_pool import DEFAULT_CONCURRENCY

__all__ = [
    "DEFAULT_ATTRIBUTES",
    "DEFAULT_CONCURRENCY",
    "DetectionContext",
    "DriftDetector",
    "detect_drift",
    "detect_instance_drift",
    "extract_value",
    "supported_attributes",
    "values_equal",
]
