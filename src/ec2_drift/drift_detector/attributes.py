"""
Attribute registry and value extraction.

Every attribute the detector can compare is listed here as a static
name-to-accessor table. Paths are dotted strings resolved against an
EC2Instance:

    instance_type                   top-level field
    tags                            whole tag map
    tags.Name                       one tag value ("" when the key is absent)
    root_block_device               whole BlockDevice
    root_block_device.volume_size   one block device field
"""

from operator import attrgetter
from types import MappingProxyType
from typing import Callable, List, Mapping, Sequence, Tuple, Union

from ..errors import InvalidPathError, UnknownAttributeError
from ..models import BlockDevice, EC2Instance
from ..types import AttributeValue

TAGS = "tags"
ROOT_BLOCK_DEVICE = "root_block_device"

INSTANCE_FIELDS: Mapping[str, Callable[[EC2Instance], AttributeValue]] = MappingProxyType(
    {
        "instance_type": attrgetter("instance_type"),
        "ami": attrgetter("ami"),
        "availability_zone": attrgetter("availability_zone"),
        "subnet_id": attrgetter("subnet_id"),
        "vpc_id": attrgetter("vpc_id"),
        "private_ip": attrgetter("private_ip"),
        "public_ip": attrgetter("public_ip"),
        "key_name": attrgetter("key_name"),
        "security_groups": attrgetter("security_groups"),
        TAGS: attrgetter("tags"),
        "ebs_optimized": attrgetter("ebs_optimized"),
        "monitoring": attrgetter("monitoring"),
        "iam_instance_profile": attrgetter("iam_instance_profile"),
        ROOT_BLOCK_DEVICE: attrgetter("root_block_device"),
    }
)

BLOCK_DEVICE_FIELDS: Mapping[str, Callable[[BlockDevice], AttributeValue]] = MappingProxyType(
    {
        "volume_size": attrgetter("volume_size"),
        "volume_type": attrgetter("volume_type"),
        "delete_on_termination": attrgetter("delete_on_termination"),
        "encrypted": attrgetter("encrypted"),
        "iops": attrgetter("iops"),
        "throughput": attrgetter("throughput"),
    }
)

DEFAULT_ATTRIBUTES: Tuple[str, ...] = (
    "instance_type",
    "ami",
    "availability_zone",
    "subnet_id",
    "security_groups",
    "tags",
    "key_name",
    "ebs_optimized",
    "monitoring",
    "iam_instance_profile",
    "root_block_device.volume_size",
    "root_block_device.volume_type",
    "root_block_device.encrypted",
)


def supported_attributes() -> List[str]:
    """All attribute paths with a fixed name, in registry order."""
    paths = list(INSTANCE_FIELDS)
    paths.extend(f"{ROOT_BLOCK_DEVICE}.{name}" for name in BLOCK_DEVICE_FIELDS)
    paths.append(f"{TAGS}.<key>")
    return paths


def split_path(path: Union[str, Sequence[str]]) -> List[str]:
    """Split a dotted path into segments. An empty string has no segments."""
    if isinstance(path, str):
        return path.split(".") if path else []
    return list(path)


def extract_value(instance: EC2Instance, path: Union[str, Sequence[str]]) -> AttributeValue:
    """
    Resolve an attribute path against an instance.

    Args:
        instance: Instance to read from
        path: Dotted path string or a sequence of path segments

    Returns:
        The attribute value. Tag lookups return "" for a missing key.

    Raises:
        InvalidPathError: If the path is empty or has more segments than
            the attribute supports
        UnknownAttributeError: If a segment does not name a known attribute
    """
    segments = split_path(path)
    dotted = ".".join(segments)
    if not segments:
        raise InvalidPathError(dotted)

    head, rest = segments[0], segments[1:]
    getter = INSTANCE_FIELDS.get(head)
    if getter is None:
        raise UnknownAttributeError(dotted, head)

    if not rest:
        return getter(instance)

    if len(rest) > 1:
        raise InvalidPathError(dotted, f"{head} supports at most one sub-field")

    if head == TAGS:
        # A missing key reads as "" on both sides, same as a tag set to "".
        return (instance.tags or {}).get(rest[0], "")

    if head == ROOT_BLOCK_DEVICE:
        field_getter = BLOCK_DEVICE_FIELDS.get(rest[0])
        if field_getter is None:
            raise UnknownAttributeError(dotted, rest[0])
        if instance.root_block_device is None:
            return None
        return field_getter(instance.root_block_device)

    raise InvalidPathError(dotted, f"{head} has no sub-fields")
