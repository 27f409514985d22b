"""
Data models for EC2 drift detection.

Instances are normalised snapshots that both state sources produce, so the
drift engine can compare an AWS instance with its Terraform declaration
without knowing where either came from. Results and reports are the
engine's output and serialise to plain dicts for the JSON formatter and the
Lambda response.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .types import AttributeValue


@dataclass(frozen=True)
class BlockDevice:
    """EBS root volume configuration."""

    volume_size: int = 0
    volume_type: str = ""
    delete_on_termination: bool = False
    encrypted: bool = False
    iops: int = 0
    throughput: int = 0


@dataclass(frozen=True)
class EC2Instance:
    """
    Normalised EC2 instance configuration.

    Fields unknown to a source keep their zero value. Security groups are
    stored as group IDs (sg-xxx) since Terraform uses VPC security group IDs.
    """

    instance_id: str
    instance_type: str = ""
    ami: str = ""
    availability_zone: str = ""
    subnet_id: str = ""
    vpc_id: str = ""
    private_ip: str = ""
    public_ip: str = ""
    key_name: str = ""
    security_groups: List[str] = field(default_factory=list)
    tags: Dict[str, str] = field(default_factory=dict)
    root_block_device: BlockDevice = field(default_factory=BlockDevice)
    ebs_optimized: bool = False
    monitoring: bool = False
    iam_instance_profile: str = ""


def _plain(value: AttributeValue) -> Any:
    if isinstance(value, BlockDevice):
        return asdict(value)
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, dict):
        return dict(value)
    return value


@dataclass(frozen=True)
class DriftedAttribute:
    """One attribute whose live value differs from the Terraform value."""

    path: str
    live_value: AttributeValue
    state_value: AttributeValue

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "live_value": _plain(self.live_value),
            "state_value": _plain(self.state_value),
        }


@dataclass
class DriftResult:
    """Outcome of checking a single instance."""

    instance_id: str
    has_drift: bool = False
    drifted_attributes: List[DriftedAttribute] = field(default_factory=list)
    # Set when the check could not complete, e.g. instance missing from state.
    # May be set together with has_drift.
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "instance_id": self.instance_id,
            "has_drift": self.has_drift,
        }
        if self.drifted_attributes:
            data["drifted_attributes"] = [a.to_dict() for a in self.drifted_attributes]
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class DriftReport:
    """Summary and per-instance results for a batch of instances."""

    total_instances: int = 0
    drifted_instances: int = 0
    results: List[DriftResult] = field(default_factory=list)

    @property
    def drift_detected(self) -> bool:
        return self.drifted_instances > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_instances": self.total_instances,
            "drifted_instances": self.drifted_instances,
            "results": [r.to_dict() for r in self.results],
        }
