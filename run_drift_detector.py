#!/usr/bin/env python3
"""
Run the EC2 Drift Detector locally from a source checkout.

Usage:
    python run_drift_detector.py --tf-state terraform.tfstate
    python run_drift_detector.py detect --tf-state s3://your-bucket/terraform.tfstate --region us-east-1
    python run_drift_detector.py detect-instance i-0123456789abcdef0 --tf-state main.tf
"""

import os
import sys

# Add the src directory to the Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from ec2_drift.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
