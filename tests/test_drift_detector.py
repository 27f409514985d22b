"""
Unit tests for the drift detection engine.
All instance records are built in memory; no AWS calls are made.
"""

import threading
import time
import unittest
from unittest.mock import patch

from ec2_drift.drift_detector import DEFAULT_ATTRIBUTES, DEFAULT_CONCURRENCY, DetectionContext, DriftDetector
from ec2_drift.errors import CONTEXT_CANCELED, CONTEXT_DEADLINE_EXCEEDED, NOT_FOUND_IN_STATE
from ec2_drift.models import BlockDevice

from helpers import make_instance


class TestDriftDetector(unittest.TestCase):
    """
    Unit tests for single-instance drift detection.
    """

    def setUp(self) -> None:
        self.detector = DriftDetector()

    def test_identical_instances_have_no_drift(self) -> None:
        live = make_instance()
        state = make_instance()
        result = self.detector.evaluate(live, state)
        self.assertFalse(result.has_drift)
        self.assertEqual(result.drifted_attributes, [])
        self.assertIsNone(result.error)

    def test_differing_attributes_are_reported_in_order(self) -> None:
        live = make_instance(instance_type="t3.large", key_name="ops")
        state = make_instance()
        result = self.detector.evaluate(live, state)
        self.assertTrue(result.has_drift)
        self.assertEqual([a.path for a in result.drifted_attributes], ["instance_type", "key_name"])
        drift = result.drifted_attributes[0]
        self.assertEqual(drift.live_value, "t3.large")
        self.assertEqual(drift.state_value, "t3.micro")

    def test_security_group_order_is_ignored(self) -> None:
        live = make_instance(security_groups=["sg-0bbb2222", "sg-0aaa1111"])
        result = self.detector.evaluate(live, make_instance())
        self.assertFalse(result.has_drift)

    def test_tag_value_change_is_drift(self) -> None:
        live = make_instance(tags={"Name": "web", "Environment": "prod"})
        result = self.detector.evaluate(live, make_instance())
        self.assertEqual([a.path for a in result.drifted_attributes], ["tags"])

    def test_root_volume_change_is_drift(self) -> None:
        live = make_instance(root_block_device=BlockDevice(volume_size=200, volume_type="gp3", encrypted=True))
        result = self.detector.evaluate(live, make_instance())
        self.assertIn("root_block_device.volume_size", [a.path for a in result.drifted_attributes])

    def test_unresolvable_attributes_are_skipped(self) -> None:
        detector = DriftDetector(
            attributes=["", "root_block_device.bogus", "hostname", "instance_type"]
        )
        live = make_instance(instance_type="t3.large")
        result = detector.evaluate(live, make_instance())
        self.assertEqual([a.path for a in result.drifted_attributes], ["instance_type"])
        self.assertIsNone(result.error)

    def test_custom_tag_attribute(self) -> None:
        detector = DriftDetector(attributes=["tags.Owner"])
        live = make_instance(tags={"Owner": "alice"})
        result = detector.evaluate(live, make_instance())
        self.assertTrue(result.has_drift)
        self.assertEqual(result.drifted_attributes[0].state_value, "")

    def test_result_uses_live_instance_id(self) -> None:
        result = self.detector.evaluate(make_instance("i-live"), make_instance("web"))
        self.assertEqual(result.instance_id, "i-live")

    def test_default_configuration(self) -> None:
        self.assertEqual(self.detector.list_configured_attributes(), list(DEFAULT_ATTRIBUTES))
        self.assertEqual(self.detector.concurrency, DEFAULT_CONCURRENCY)
        self.assertEqual(DriftDetector(attributes=[]).list_configured_attributes(), list(DEFAULT_ATTRIBUTES))
        self.assertEqual(DriftDetector(concurrency=0).concurrency, DEFAULT_CONCURRENCY)
        self.assertEqual(DriftDetector(concurrency=-3).concurrency, DEFAULT_CONCURRENCY)
        self.assertEqual(DriftDetector(concurrency=5).concurrency, 5)

    def test_configured_attributes_are_copied(self) -> None:
        attributes = ["ami"]
        detector = DriftDetector(attributes=attributes)
        detector.list_configured_attributes().append("tags")
        attributes.append("key_name")
        self.assertEqual(detector.list_configured_attributes(), ["ami"])

    def test_to_dict(self) -> None:
        live = make_instance(security_groups=["sg-new"])
        data = self.detector.evaluate(live, make_instance()).to_dict()
        self.assertEqual(data["instance_id"], "i-0123456789abcdef0")
        self.assertTrue(data["has_drift"])
        self.assertEqual(
            data["drifted_attributes"],
            [
                {
                    "path": "security_groups",
                    "live_value": ["sg-new"],
                    "state_value": ["sg-0aaa1111", "sg-0bbb2222"],
                }
            ],
        )
        self.assertNotIn("error", data)


class TestBatchDriftDetection(unittest.TestCase):
    """
    Unit tests for evaluate_batch.
    """

    def _instances(self, count: int):
        ids = [f"i-{n:04d}" for n in range(count)]
        return {i: make_instance(i) for i in ids}

    def test_mixed_batch(self) -> None:
        live = {
            "i-a": make_instance("i-a"),
            "i-b": make_instance("i-b", instance_type="t3.large"),
            "i-c": make_instance("i-c"),
        }
        state = {"i-a": make_instance("i-a"), "i-b": make_instance("i-b")}

        report = DriftDetector().evaluate_batch(None, live, state)

        self.assertEqual(report.total_instances, 3)
        self.assertEqual(report.drifted_instances, 2)
        self.assertTrue(report.drift_detected)
        by_id = {r.instance_id: r for r in report.results}
        self.assertFalse(by_id["i-a"].has_drift)
        self.assertEqual([a.path for a in by_id["i-b"].drifted_attributes], ["instance_type"])
        self.assertTrue(by_id["i-c"].has_drift)
        self.assertEqual(by_id["i-c"].error, NOT_FOUND_IN_STATE)
        self.assertEqual(by_id["i-c"].drifted_attributes, [])

    def test_state_only_instances_are_not_reported(self) -> None:
        live = {"i-a": make_instance("i-a")}
        state = {"i-a": make_instance("i-a"), "i-z": make_instance("i-z")}
        report = DriftDetector().evaluate_batch(None, live, state)
        self.assertEqual(report.total_instances, 1)
        self.assertEqual([r.instance_id for r in report.results], ["i-a"])

    def test_empty_batch(self) -> None:
        report = DriftDetector().evaluate_batch(None, {}, {})
        self.assertEqual(report.total_instances, 0)
        self.assertEqual(report.results, [])
        self.assertFalse(report.drift_detected)

    def test_results_sorted_regardless_of_concurrency(self) -> None:
        live = self._instances(40)
        state = dict(live)
        expected = sorted(live)
        for concurrency in (1, 50):
            report = DriftDetector(concurrency=concurrency).evaluate_batch(None, live, state)
            self.assertEqual([r.instance_id for r in report.results], expected)
            self.assertEqual(report.drifted_instances, 0)

    def test_pre_cancelled_context_returns_result_per_instance(self) -> None:
        live = self._instances(10)
        ctx = DetectionContext()
        ctx.cancel()

        report = DriftDetector(concurrency=2).evaluate_batch(ctx, live, dict(live))

        self.assertEqual(len(report.results), 10)
        self.assertEqual(report.total_instances, 10)
        self.assertEqual(report.drifted_instances, 0)
        for result in report.results:
            self.assertEqual(result.error, CONTEXT_CANCELED)
            self.assertFalse(result.has_drift)

    def test_expired_deadline_is_reported(self) -> None:
        live = self._instances(3)
        ctx = DetectionContext(timeout=0)
        report = DriftDetector().evaluate_batch(ctx, live, dict(live))
        self.assertEqual(len(report.results), 3)
        self.assertTrue(all(r.error == CONTEXT_DEADLINE_EXCEEDED for r in report.results))

    def test_cancel_during_batch_keeps_completed_results(self) -> None:
        live = self._instances(6)
        ctx = DetectionContext()
        detector = DriftDetector(concurrency=1)
        original = detector.evaluate
        calls = []

        def evaluate_then_cancel(live_instance, state_instance):
            calls.append(live_instance.instance_id)
            ctx.cancel()
            return original(live_instance, state_instance)

        with patch.object(detector, "evaluate", side_effect=evaluate_then_cancel):
            report = detector.evaluate_batch(ctx, live, dict(live))

        self.assertEqual(len(report.results), 6)
        completed = [r for r in report.results if r.error is None]
        cancelled = [r for r in report.results if r.error == CONTEXT_CANCELED]
        self.assertEqual(len(completed), len(calls))
        self.assertGreaterEqual(len(completed), 1)
        self.assertEqual(len(completed) + len(cancelled), 6)

    def test_concurrency_cap_is_respected(self) -> None:
        live = self._instances(24)
        detector = DriftDetector(concurrency=3)
        original = detector.evaluate
        lock = threading.Lock()
        in_flight = 0
        peak = 0

        def slow_evaluate(live_instance, state_instance):
            nonlocal in_flight, peak
            with lock:
                in_flight += 1
                peak = max(peak, in_flight)
            time.sleep(0.01)
            try:
                return original(live_instance, state_instance)
            finally:
                with lock:
                    in_flight -= 1

        with patch.object(detector, "evaluate", side_effect=slow_evaluate):
            report = detector.evaluate_batch(None, live, dict(live))

        self.assertEqual(len(report.results), 24)
        self.assertLessEqual(peak, 3)
        self.assertGreaterEqual(peak, 1)

    def test_failing_check_becomes_error_result(self) -> None:
        live = self._instances(3)
        detector = DriftDetector()

        def explode(live_instance, state_instance):
            if live_instance.instance_id == "i-0001":
                raise RuntimeError("boom")
            return DriftDetector().evaluate(live_instance, state_instance)

        with patch.object(detector, "evaluate", side_effect=explode):
            report = detector.evaluate_batch(None, live, dict(live))

        by_id = {r.instance_id: r for r in report.results}
        self.assertEqual(by_id["i-0001"].error, "drift detection failed: boom")
        self.assertFalse(by_id["i-0001"].has_drift)
        self.assertIsNone(by_id["i-0000"].error)
        self.assertEqual(len(report.results), 3)

    def test_report_to_dict(self) -> None:
        live = {"i-a": make_instance("i-a")}
        data = DriftDetector().evaluate_batch(None, live, {}).to_dict()
        self.assertEqual(data["total_instances"], 1)
        self.assertEqual(data["drifted_instances"], 1)
        self.assertEqual(
            data["results"],
            [{"instance_id": "i-a", "has_drift": True, "error": NOT_FOUND_IN_STATE}],
        )


if __name__ == "__main__":
    unittest.main()
