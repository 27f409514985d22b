"""
Terraform State Fetchers Module.

Loads the desired side of the comparison: ``aws_instance`` resources from a
Terraform state file (local or S3) or from ``.tf`` configuration.
"""

import json
import os
from typing import Any, Dict, List, Optional

from ..errors import InstanceNotFoundError, StateParseError
from ..models import BlockDevice, EC2Instance
from ..types import ResourceAttributes, TerraformState
from ..utils import download_s3_file, setup_logging
from .terraform_hcl_fetcher import parse_hcl

logger = setup_logging()

LOCAL_PREFIX = "local://"
S3_PREFIX = "s3://"
STATE_EXTENSIONS = (".tfstate", ".json")
HCL_EXTENSIONS = (".tf",)


def parse_terraform_state(state_content: str) -> TerraformState:
    """
    Parses Terraform state file content into a Python dict.

    Args:
        state_content: Raw state file content as string

    Returns:
        Parsed state data as dict

    Raises:
        StateParseError: If the content is not a JSON object
    """
    logger.info("Parsing Terraform state file")
    try:
        state_data = json.loads(state_content)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in state file: {e}")
        raise StateParseError(f"Invalid JSON in state file: {e}") from e
    if not isinstance(state_data, dict):
        raise StateParseError("State file did not parse to a dictionary.")
    logger.info(
        f"Successfully parsed state file with "
        f"{len(state_data.get('resources', []))} resources"
    )
    return state_data


def _first(values: Any) -> Dict[str, Any]:
    if isinstance(values, list) and values and isinstance(values[0], dict):
        return values[0]
    return {}


def _str_list(value: Any) -> List[str]:
    return [str(v) for v in value] if isinstance(value, list) else []


def _str_map(value: Any) -> Dict[str, str]:
    return {str(k): str(v) for k, v in value.items()} if isinstance(value, dict) else {}


def instance_from_attributes(attributes: ResourceAttributes, fallback_id: str = "") -> EC2Instance:
    """
    Build an EC2Instance from the attributes of an aws_instance state entry.

    vpc_security_group_ids takes precedence over security_groups, and
    tags_all is used when tags is empty.
    """
    root = _first(attributes.get("root_block_device"))
    security_groups = _str_list(attributes.get("vpc_security_group_ids")) or _str_list(
        attributes.get("security_groups")
    )
    tags = _str_map(attributes.get("tags")) or _str_map(attributes.get("tags_all"))

    return EC2Instance(
        instance_id=attributes.get("id") or fallback_id,
        instance_type=attributes.get("instance_type") or "",
        ami=attributes.get("ami") or "",
        availability_zone=attributes.get("availability_zone") or "",
        subnet_id=attributes.get("subnet_id") or "",
        vpc_id=attributes.get("vpc_id") or "",
        private_ip=attributes.get("private_ip") or "",
        public_ip=attributes.get("public_ip") or "",
        key_name=attributes.get("key_name") or "",
        security_groups=security_groups,
        tags=tags,
        root_block_device=BlockDevice(
            volume_size=root.get("volume_size") or 0,
            volume_type=root.get("volume_type") or "",
            delete_on_termination=bool(root.get("delete_on_termination", False)),
            encrypted=bool(root.get("encrypted", False)),
            iops=root.get("iops") or 0,
            throughput=root.get("throughput") or 0,
        ),
        ebs_optimized=bool(attributes.get("ebs_optimized", False)),
        monitoring=bool(attributes.get("monitoring", False)),
        iam_instance_profile=attributes.get("iam_instance_profile") or "",
    )


def instances_from_state(state_data: TerraformState) -> Dict[str, EC2Instance]:
    """
    Extract managed aws_instance resources from parsed Terraform state.

    Args:
        state_data: Parsed state file

    Returns:
        Dictionary mapping instance IDs to EC2Instance records
    """
    instances: Dict[str, EC2Instance] = {}
    for resource in state_data.get("resources", []):
        if resource.get("type") != "aws_instance" or resource.get("mode", "managed") != "managed":
            continue
        resource_name = resource.get("name", "")
        for instance in resource.get("instances", []):
            attributes = instance.get("attributes") or {}
            if not isinstance(attributes, dict):
                raise StateParseError(f"Invalid attributes for aws_instance.{resource_name}")
            ec2_instance = instance_from_attributes(attributes, fallback_id=resource_name)
            instances[ec2_instance.instance_id] = ec2_instance

    logger.info(f"Parsed Terraform state: {len(instances)} EC2 instances")
    return instances


def read_state_content(state_path: str) -> str:
    """
    Read a state or configuration file from S3 or local disk.

    Args:
        state_path: ``s3://bucket/key``, ``local://path`` or a plain path

    Returns:
        File content as string
    """
    if state_path.startswith(S3_PREFIX):
        return download_s3_file(state_path)

    local_path = state_path[len(LOCAL_PREFIX):] if state_path.startswith(LOCAL_PREFIX) else state_path
    logger.debug(f"Reading Terraform file {local_path}")
    try:
        with open(local_path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        logger.error(f"Failed to read Terraform file {local_path}: {e}")
        raise StateParseError(f"failed to read Terraform file {local_path}: {e}") from e


def load_state_instances(state_path: str) -> Dict[str, EC2Instance]:
    """
    Load Terraform-declared EC2 instances from a state or HCL file.

    ``.tfstate`` and ``.json`` files (and any S3 object) are parsed as
    state; ``.tf`` files are parsed as HCL.

    Raises:
        StateParseError: If the file type is unsupported or parsing fails
    """
    ext = os.path.splitext(state_path)[1].lower()
    logger.debug(f"Loading Terraform instances from {state_path} (extension {ext!r})")

    if ext in HCL_EXTENSIONS:
        return parse_hcl(read_state_content(state_path), filename=state_path)
    if ext in STATE_EXTENSIONS or state_path.startswith(S3_PREFIX):
        return instances_from_state(parse_terraform_state(read_state_content(state_path)))

    logger.error(f"Unsupported Terraform file type: {state_path}")
    raise StateParseError(f"unsupported file type: {ext or state_path}")


def get_instance_by_id(
    instances: Dict[str, EC2Instance], instance_id: str
) -> EC2Instance:
    """
    Look up one instance in parsed Terraform data.

    Raises:
        InstanceNotFoundError: If the ID is not declared
    """
    instance: Optional[EC2Instance] = instances.get(instance_id)
    if instance is None:
        raise InstanceNotFoundError(instance_id, "Terraform configuration")
    return instance
