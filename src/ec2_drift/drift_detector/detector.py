"""
Drift detector.

Compares a live EC2 instance with its Terraform declaration attribute by
attribute, and fans the comparison out over whole batches of instances.
"""

from typing import Dict, List, Optional, Sequence

from ..errors import NOT_FOUND_IN_STATE, AttributePathError
from ..models import DriftedAttribute, DriftReport, DriftResult, EC2Instance
from ..utils import setup_logging
from .attributes import DEFAULT_ATTRIBUTES, extract_value
from .comparators import values_equal
from .context import DetectionContext
from .worker_pool import WorkerPool

logger = setup_logging()


class DriftDetector:
    """
    Detects configuration drift between live and Terraform instances.

    Args:
        attributes: Attribute paths to check, in reporting order. Empty or
            None selects DEFAULT_ATTRIBUTES.
        concurrency: Maximum concurrent instance checks in evaluate_batch.
            Values <= 0 select DEFAULT_CONCURRENCY.
    """

    def __init__(
        self,
        attributes: Optional[Sequence[str]] = None,
        concurrency: Optional[int] = None,
    ) -> None:
        self._attributes = tuple(attributes) if attributes else DEFAULT_ATTRIBUTES
        self._pool = WorkerPool(concurrency)

    @property
    def concurrency(self) -> int:
        return self._pool.concurrency

    def list_configured_attributes(self) -> List[str]:
        return list(self._attributes)

    def evaluate(self, live: EC2Instance, state: EC2Instance) -> DriftResult:
        """
        Compare one live instance with its Terraform counterpart.

        Attributes whose path cannot be resolved are skipped, not reported.

        Args:
            live: Instance as reported by AWS
            state: Instance as declared in Terraform

        Returns:
            DriftResult keyed by the live instance ID
        """
        instance_id = live.instance_id
        logger.debug(
            f"Detecting drift for instance {instance_id} "
            f"({len(self._attributes)} attributes)"
        )
        result = DriftResult(instance_id=instance_id)

        for path in self._attributes:
            try:
                live_value = extract_value(live, path)
                state_value = extract_value(state, path)
            except AttributePathError as e:
                logger.debug(f"Skipping attribute {path} for {instance_id}: {e}")
                continue

            if not values_equal(live_value, state_value):
                logger.debug(f"Drift detected for {instance_id} on {path}")
                result.has_drift = True
                result.drifted_attributes.append(
                    DriftedAttribute(path=path, live_value=live_value, state_value=state_value)
                )

        if result.has_drift:
            logger.info(
                f"Drift detected for instance {instance_id}: "
                f"{len(result.drifted_attributes)} drifted attributes"
            )
        else:
            logger.debug(f"No drift detected for instance {instance_id}")

        return result

    def evaluate_batch(
        self,
        ctx: Optional[DetectionContext],
        live_instances: Dict[str, EC2Instance],
        state_instances: Dict[str, EC2Instance],
    ) -> DriftReport:
        """
        Check every live instance against Terraform state concurrently.

        The batch is driven by the live side: an instance only declared in
        Terraform does not appear in the report. Every live instance yields
        exactly one result, including instances missing from state and
        instances skipped because ``ctx`` was cancelled. This method never
        raises.

        Args:
            ctx: Cancellation context, or None for one that never cancels
            live_instances: Live instances keyed by instance ID
            state_instances: Terraform instances keyed by instance ID

        Returns:
            DriftReport with results sorted by instance ID
        """
        if ctx is None:
            ctx = DetectionContext.background()

        logger.info(
            f"Starting drift detection: {len(live_instances)} live instances, "
            f"{len(state_instances)} Terraform instances"
        )

        def check(instance_id: str) -> DriftResult:
            state = state_instances.get(instance_id)
            if state is None:
                logger.warning(f"Instance {instance_id} not found in Terraform state")
                return DriftResult(instance_id=instance_id, has_drift=True, error=NOT_FOUND_IN_STATE)
            return self.evaluate(live_instances[instance_id], state)

        def cancelled(instance_id: str, reason: str) -> DriftResult:
            logger.warning(f"Drift detection cancelled for {instance_id}: {reason}")
            return DriftResult(instance_id=instance_id, error=reason)

        def failed(instance_id: str, error: Exception) -> DriftResult:
            return DriftResult(instance_id=instance_id, error=f"drift detection failed: {error}")

        results = self._pool.run(ctx, list(live_instances), check, cancelled, failed)
        results.sort(key=lambda r: r.instance_id)

        report = DriftReport(
            total_instances=len(live_instances),
            drifted_instances=sum(1 for r in results if r.has_drift),
            results=results,
        )
        logger.info(
            f"Drift detection complete: {report.drifted_instances}/"
            f"{report.total_instances} instances drifted"
        )
        return report
