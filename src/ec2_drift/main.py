"""
AWS Lambda entry point for the EC2 Drift Detector.
"""

import json
from typing import Any, Dict

from .config import load_config, split_list, validate_config
from .drift_detector import detect_drift
from .utils import setup_logging

JSON_HEADERS = {"Content-Type": "application/json"}


def _event_list(event: Dict[str, Any], key: str) -> list:
    value = event.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return split_list(value)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return value
    raise ValueError(f"{key} must be a list of strings or a comma-separated string")


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "body": json.dumps(body),
        "headers": dict(JSON_HEADERS),
    }


def lambda_handler(event: dict, context: object) -> dict:
    """
    AWS Lambda handler function.

    The event may narrow the run with ``instance_ids`` and ``attributes``;
    everything else comes from the environment.

    Args:
        event: Lambda event data
        context: Lambda context

    Returns:
        Dictionary with statusCode and body containing drift report
    """
    logger = setup_logging()
    try:
        # Load and validate configuration
        config = load_config()
        logger = setup_logging(config.log_level)
        logger.info("Starting EC2 drift detection")

        event = event or {}
        instance_ids = _event_list(event, "instance_ids")
        attributes = _event_list(event, "attributes")
        if instance_ids:
            config.instance_ids = instance_ids
        if attributes:
            config.attributes = attributes
        validate_config(config)

        drift_report = detect_drift(config)

        logger.info(
            f"Drift detection completed. "
            f"Drift detected: {drift_report.drift_detected}"
        )
        body = drift_report.to_dict()
        body["drift_detected"] = drift_report.drift_detected
        return _response(200, body)

    except ValueError as e:
        # Configuration, validation or state parsing errors
        logger.error(f"Configuration error: {e}")
        return _response(400, {"error": "Configuration error", "message": str(e)})

    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        return _response(500, {"error": "Internal server error", "message": str(e)})
