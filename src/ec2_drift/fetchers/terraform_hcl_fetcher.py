"""
Terraform HCL Fetchers Module.

Reads ``aws_instance`` resource blocks from Terraform configuration files.
Configuration files carry no instance IDs, so instances are keyed by their
resource name. Expressions that are not literals (variables, references)
come back as strings such as ``"${var.ami}"``. Values of the wrong type
become zero values.
"""

from typing import Any, Dict, List

import hcl2

from ..errors import StateParseError
from ..models import BlockDevice, EC2Instance
from ..utils import setup_logging

logger = setup_logging()


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def _as_str(value: Any) -> str:
    return _unquote(value) if isinstance(value, str) else ""


def _as_bool(value: Any) -> bool:
    return value if isinstance(value, bool) else False


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def _as_str_list(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [_unquote(v) for v in value if isinstance(v, str)]


def _as_str_map(value: Any) -> Dict[str, str]:
    if isinstance(value, list) and len(value) == 1:
        value = value[0]
    if not isinstance(value, dict):
        return {}
    return {
        _unquote(k): _unquote(v)
        for k, v in value.items()
        if isinstance(k, str) and isinstance(v, str) and not k.startswith("__")
    }


def _first_block(value: Any) -> Dict[str, Any]:
    if isinstance(value, list):
        value = value[0] if value else {}
    return value if isinstance(value, dict) else {}


def _iter_resource_blocks(config: Dict[str, Any], resource_type: str):
    """Yield (name, body) for every resource block of the given type."""
    resources = config.get("resource", [])
    if isinstance(resources, dict):
        resources = [resources]
    for entry in resources:
        for type_name, named in entry.items():
            if _unquote(type_name) != resource_type or not isinstance(named, dict):
                continue
            for name, body in named.items():
                if name.startswith("__"):
                    continue
                yield _unquote(name), _first_block(body)


def _parse_root_block_device(block: Dict[str, Any]) -> BlockDevice:
    return BlockDevice(
        volume_size=_as_int(block.get("volume_size")),
        volume_type=_as_str(block.get("volume_type")),
        delete_on_termination=_as_bool(block.get("delete_on_termination")),
        encrypted=_as_bool(block.get("encrypted")),
        iops=_as_int(block.get("iops")),
        throughput=_as_int(block.get("throughput")),
    )


def _instance_from_block(name: str, body: Dict[str, Any]) -> EC2Instance:
    if "vpc_security_group_ids" in body:
        security_groups = _as_str_list(body["vpc_security_group_ids"])
    else:
        security_groups = _as_str_list(body.get("security_groups"))

    return EC2Instance(
        instance_id=name,
        instance_type=_as_str(body.get("instance_type")),
        ami=_as_str(body.get("ami")),
        availability_zone=_as_str(body.get("availability_zone")),
        subnet_id=_as_str(body.get("subnet_id")),
        key_name=_as_str(body.get("key_name")),
        security_groups=security_groups,
        tags=_as_str_map(body.get("tags")),
        root_block_device=_parse_root_block_device(_first_block(body.get("root_block_device"))),
        ebs_optimized=_as_bool(body.get("ebs_optimized")),
        monitoring=_as_bool(body.get("monitoring")),
        iam_instance_profile=_as_str(body.get("iam_instance_profile")),
    )


def parse_hcl(content: str, filename: str = "<string>") -> Dict[str, EC2Instance]:
    """
    Parse Terraform HCL and return its aws_instance resources.

    Args:
        content: HCL source text
        filename: Name used in log and error messages

    Returns:
        Dictionary mapping resource names to EC2Instance records

    Raises:
        StateParseError: If the HCL cannot be parsed
    """
    logger.debug(f"Parsing HCL content from {filename} ({len(content)} bytes)")
    try:
        config = hcl2.loads(content)
    except Exception as e:
        logger.error(f"Failed to parse HCL {filename}: {e}")
        raise StateParseError(f"failed to parse HCL {filename}: {e}") from e

    instances = {}
    for name, body in _iter_resource_blocks(config, "aws_instance"):
        instances[name] = _instance_from_block(name, body)

    logger.info(f"Parsed HCL file {filename}: {len(instances)} EC2 instances")
    return instances
