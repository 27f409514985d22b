"""
Core drift detection orchestration logic.

Coordinates a detection run end to end: load the Terraform side, fetch the
matching live instances from EC2 and hand both to the DriftDetector.
"""

from typing import TYPE_CHECKING, Optional

from ..errors import StateParseError
from ..fetchers.ec2_instances_fetcher import create_ec2_client, fetch_ec2_instance, fetch_ec2_instances
from ..fetchers.terraform_state_fetcher import get_instance_by_id, load_state_instances
from ..models import DriftReport, DriftResult
from ..types import EC2Client
from ..utils import setup_logging
from .context import DetectionContext
from .detector import DriftDetector

if TYPE_CHECKING:
    from ..config import Config

logger = setup_logging()


def _client_for(config: "Config", ec2_client: Optional[EC2Client]) -> EC2Client:
    if ec2_client is not None:
        return ec2_client
    return create_ec2_client(
        region=config.aws_region,
        max_retries=config.max_retries,
        timeout_seconds=config.timeout_seconds,
    )


def detect_drift(
    config: "Config",
    ec2_client: Optional[EC2Client] = None,
    ctx: Optional[DetectionContext] = None,
) -> DriftReport:
    """
    Main entry point for drift detection.

    This function:
    - Loads Terraform-declared instances from the configured state path
    - Fetches the live instances (config.instance_ids, or every instance in
      state) from EC2
    - Compares each live instance with its declaration
    - Returns a DriftReport sorted by instance ID

    Args:
        config: Validated configuration
        ec2_client: EC2 client to use instead of creating one
        ctx: Cancellation context; defaults to one that expires after
            config.timeout_seconds

    Returns:
        DriftReport for the live instances found

    Raises:
        StateParseError: If the state cannot be loaded or has no instances
        AWSFetchError: If the live instances cannot be fetched
    """
    logger.info(f"Loading Terraform instances from {config.state_path}")
    state_instances = load_state_instances(config.state_path)
    if not state_instances:
        raise StateParseError(f"no EC2 instances found in Terraform state {config.state_path}")

    target_ids = list(config.instance_ids) or sorted(state_instances)
    logger.info(f"Checking {len(target_ids)} instances for drift")

    live_instances = fetch_ec2_instances(_client_for(config, ec2_client), target_ids)
    missing = [i for i in target_ids if i not in live_instances]
    if missing:
        logger.warning(f"Instances not found in live AWS: {', '.join(missing)}")

    if ctx is None:
        ctx = DetectionContext(timeout=config.timeout_seconds)

    detector = DriftDetector(attributes=config.attributes, concurrency=config.concurrency)
    return detector.evaluate_batch(ctx, live_instances, state_instances)


def detect_instance_drift(
    config: "Config", instance_id: str, ec2_client: Optional[EC2Client] = None
) -> DriftResult:
    """
    Detect drift for a single instance.

    Raises:
        InstanceNotFoundError: If the instance is missing from Terraform or AWS
    """
    state_instances = load_state_instances(config.state_path)
    state = get_instance_by_id(state_instances, instance_id)
    live = fetch_ec2_instance(_client_for(config, ec2_client), instance_id=instance_id)

    detector = DriftDetector(attributes=config.attributes, concurrency=config.concurrency)
    return detector.evaluate(live, state)
