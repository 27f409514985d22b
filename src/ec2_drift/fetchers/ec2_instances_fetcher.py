"""
EC2 Instance Fetchers Module.

This module fetches live EC2 instances and converts them into EC2Instance
records. Root volume details (size, type, encryption, IOPS, throughput) are
not part of DescribeInstances, so they are read with one DescribeVolumes
call per batch.
"""

from typing import Dict, Iterable, List, Optional

import boto3
from botocore.config import Config as BotoConfig

from ..errors import InstanceNotFoundError
from ..models import BlockDevice, EC2Instance
from ..types import EC2Client, RawInstance, RawVolume
from ..utils import fetcher_error_handler, setup_logging

logger = setup_logging()


def create_ec2_client(
    region: Optional[str] = None, max_retries: int = 3, timeout_seconds: int = 30
) -> EC2Client:
    """
    Create an EC2 client with retry and timeout settings.

    botocore's standard retry mode handles throttling and transient errors
    with exponential backoff and jitter.

    Args:
        region: AWS region, or None for the default credential chain region
        max_retries: Retries after the first attempt
        timeout_seconds: Connect and read timeout per API call

    Returns:
        Boto3 EC2 client
    """
    boto_config = BotoConfig(
        retries={"max_attempts": max_retries + 1, "mode": "standard"},
        connect_timeout=timeout_seconds,
        read_timeout=timeout_seconds,
    )
    logger.debug(f"Creating EC2 client for region {region or '(default)'}")
    return boto3.client("ec2", region_name=region, config=boto_config)


def _root_mapping(raw: RawInstance) -> Dict:
    root_name = raw.get("RootDeviceName")
    for mapping in raw.get("BlockDeviceMappings", []):
        if mapping.get("DeviceName") == root_name:
            return mapping
    return {}


def convert_ec2_instance(
    raw: RawInstance, volumes: Optional[Dict[str, RawVolume]] = None
) -> EC2Instance:
    """
    Convert a DescribeInstances instance dict into an EC2Instance.

    Args:
        raw: One entry of Reservations[].Instances[]
        volumes: DescribeVolumes entries keyed by VolumeId, used to fill in
            the root block device

    Returns:
        Normalised EC2Instance
    """
    ebs = _root_mapping(raw).get("Ebs", {})
    volume = (volumes or {}).get(ebs.get("VolumeId", ""), {})
    root_block_device = BlockDevice(
        volume_size=volume.get("Size", 0),
        volume_type=volume.get("VolumeType", ""),
        delete_on_termination=bool(ebs.get("DeleteOnTermination", False)),
        encrypted=bool(volume.get("Encrypted", False)),
        iops=volume.get("Iops", 0),
        throughput=volume.get("Throughput", 0),
    )

    tags = {
        tag["Key"]: tag["Value"]
        for tag in raw.get("Tags", [])
        if tag.get("Key") is not None and tag.get("Value") is not None
    }
    security_groups = [
        sg["GroupId"] for sg in raw.get("SecurityGroups", []) if sg.get("GroupId")
    ]

    return EC2Instance(
        instance_id=raw.get("InstanceId", ""),
        instance_type=raw.get("InstanceType", ""),
        ami=raw.get("ImageId", ""),
        availability_zone=raw.get("Placement", {}).get("AvailabilityZone", ""),
        subnet_id=raw.get("SubnetId", ""),
        vpc_id=raw.get("VpcId", ""),
        private_ip=raw.get("PrivateIpAddress", ""),
        public_ip=raw.get("PublicIpAddress", ""),
        key_name=raw.get("KeyName", ""),
        security_groups=security_groups,
        tags=tags,
        root_block_device=root_block_device,
        ebs_optimized=bool(raw.get("EbsOptimized", False)),
        monitoring=raw.get("Monitoring", {}).get("State") == "enabled",
        iam_instance_profile=raw.get("IamInstanceProfile", {}).get("Arn", ""),
    )


@fetcher_error_handler("DescribeInstances")
def _describe_instances(
    ec2_client: EC2Client, instance_ids: Optional[List[str]] = None, instance_id: Optional[str] = None
) -> List[RawInstance]:
    kwargs: Dict = {}
    if instance_ids:
        kwargs["InstanceIds"] = instance_ids
    raw_instances: List[RawInstance] = []
    while True:
        response = ec2_client.describe_instances(**kwargs)
        for reservation in response.get("Reservations", []):
            raw_instances.extend(reservation.get("Instances", []))
        next_token = response.get("NextToken")
        if not next_token:
            return raw_instances
        kwargs["NextToken"] = next_token


@fetcher_error_handler("DescribeVolumes")
def _describe_root_volumes(
    ec2_client: EC2Client, raw_instances: Iterable[RawInstance]
) -> Dict[str, RawVolume]:
    volume_ids = sorted(
        {
            _root_mapping(raw).get("Ebs", {}).get("VolumeId")
            for raw in raw_instances
        }
        - {None, ""}
    )
    if not volume_ids:
        return {}
    response = ec2_client.describe_volumes(VolumeIds=volume_ids)
    return {volume["VolumeId"]: volume for volume in response.get("Volumes", [])}


def fetch_ec2_instances(
    ec2_client: EC2Client, instance_ids: Optional[List[str]] = None
) -> Dict[str, EC2Instance]:
    """
    Fetch EC2 instances from AWS keyed by instance ID.

    Args:
        ec2_client: Boto3 EC2 client
        instance_ids: Instance IDs to describe, or None for every instance
            in the region

    Returns:
        Dictionary mapping instance IDs to EC2Instance records. Requested IDs
        that AWS did not return are absent.
    """
    raw_instances = _describe_instances(ec2_client, instance_ids)
    volumes = _describe_root_volumes(ec2_client, raw_instances)

    instances = {}
    for raw in raw_instances:
        instance = convert_ec2_instance(raw, volumes)
        instances[instance.instance_id] = instance

    logger.info(
        f"[EC2] Fetched {len(instances)} instances "
        f"(requested {len(instance_ids) if instance_ids else 'all'})"
    )
    return instances


def fetch_ec2_instance(ec2_client: EC2Client, instance_id: str) -> EC2Instance:
    """
    Fetch a single EC2 instance by ID.

    Raises:
        InstanceNotFoundError: If AWS has no instance with this ID
        AWSFetchError: If the API call fails
    """
    logger.debug(f"[EC2] Fetching instance {instance_id}")
    raw_instances = _describe_instances(ec2_client, [instance_id], instance_id=instance_id)
    if not raw_instances:
        logger.warning(f"[EC2] Instance {instance_id} not found in live AWS")
        raise InstanceNotFoundError(instance_id, "AWS")
    volumes = _describe_root_volumes(ec2_client, raw_instances)
    return convert_ec2_instance(raw_instances[0], volumes)
