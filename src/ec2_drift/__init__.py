"""
EC2 Drift Detector.

Detects configuration drift between live EC2 instances and Terraform.
"""

__version__ = "0.1.0"
