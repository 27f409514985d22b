"""
Instance Fetchers Package.

Each module loads EC2 instance records from one source: live AWS, Terraform
state files, or Terraform HCL configuration.
"""

from .ec2_instances_fetcher import create_ec2_client, fetch_ec2_instance, fetch_ec2_instances
from .terraform_hcl_fetcher import parse_hcl
from .terraform_state_fetcher import (
    get_instance_by_id,
    load_state_instances,
    parse_terraform_state,
)

__all__ = [
    "create_ec2_client",
    "fetch_ec2_instance",
    "fetch_ec2_instances",
    "get_instance_by_id",
    "load_state_instances",
    "parse_hcl",
    "parse_terraform_state",
]
