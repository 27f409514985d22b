"""
Command-line interface for the EC2 Drift Detector.

Compares EC2 instances in AWS with a Terraform state file or configuration.
It requires AWS credentials to be configured (via AWS CLI, environment
variables, or IAM roles). Settings not given on the command line are read
from the environment, including a local .env file.

Usage:
    ec2-drift-detector --tf-state terraform.tfstate
    ec2-drift-detector detect --tf-state s3://my-bucket/terraform.tfstate --output table
    ec2-drift-detector detect-instance i-0123456789abcdef0 --tf-state main.tf
    ec2-drift-detector list-attributes
"""

import argparse
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .config import VALID_LOG_LEVELS, Config, int_setting, split_list, validate_config
from .drift_detector import DEFAULT_ATTRIBUTES, detect_drift, detect_instance_drift, supported_attributes
from .drift_detector.worker_pool import DEFAULT_CONCURRENCY
from .reporting import DEFAULT_FORMAT, FORMATTERS, format_report, format_single
from .utils import setup_logging

COMMANDS = ("detect", "detect-instance", "list-attributes")


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-t",
        "--tf-state",
        help="Terraform state (.tfstate/.json) or configuration (.tf) file; "
        "local path, local://path or s3://bucket/key (env: TF_STATE_PATH)",
    )
    common.add_argument("-r", "--region", help="AWS region for API calls (env: AWS_REGION)")
    common.add_argument(
        "-a",
        "--attributes",
        help="Comma-separated attribute paths to check (default: all default attributes)",
    )
    common.add_argument(
        "-o",
        "--output",
        choices=sorted(FORMATTERS),
        default=DEFAULT_FORMAT,
        help=f"Output format for the drift report (default: {DEFAULT_FORMAT})",
    )
    common.add_argument("--timeout", type=int, help="Timeout in seconds (default: 30)")
    common.add_argument(
        "--max-retries", type=int, help="Maximum number of retries for AWS API calls (default: 3)"
    )
    common.add_argument(
        "--log-level",
        type=str.upper,
        choices=VALID_LOG_LEVELS,
        help="Logging level (default: INFO)",
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with its sub-commands."""
    parser = argparse.ArgumentParser(
        prog="ec2-drift-detector",
        description="Detect configuration drift between AWS EC2 instances and Terraform",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ec2-drift-detector --tf-state terraform.tfstate
  ec2-drift-detector detect --tf-state s3://my-bucket/state.tfstate --instances i-1,i-2
  ec2-drift-detector detect-instance i-0123456789abcdef0 --tf-state main.tf --output json
  ec2-drift-detector list-attributes

Running without a sub-command is the same as "detect".
        """,
    )
    subparsers = parser.add_subparsers(dest="command")
    common = _common_options()

    detect = subparsers.add_parser(
        "detect", parents=[common], help="Detect drift for instances in the Terraform state"
    )
    detect.add_argument(
        "-i",
        "--instances",
        help="Comma-separated instance IDs to check (default: every instance in state)",
    )
    detect.add_argument(
        "--concurrency",
        type=int,
        help=f"Maximum concurrent drift checks (default: {DEFAULT_CONCURRENCY})",
    )

    single = subparsers.add_parser(
        "detect-instance", parents=[common], help="Detect drift for a single instance"
    )
    single.add_argument("instance_id", help="EC2 instance ID to check")

    subparsers.add_parser("list-attributes", help="List attributes available for drift detection")
    return parser


def _with_default_command(argv: List[str]) -> List[str]:
    if argv and (argv[0] in COMMANDS or argv[0] in ("-h", "--help")):
        return argv
    return ["detect"] + argv


def build_config(args: argparse.Namespace) -> Config:
    """
    Merge command-line options over environment settings.

    Raises:
        ValueError: If the resulting configuration is invalid
    """
    config = Config(
        state_path=args.tf_state or os.environ.get("TF_STATE_PATH", ""),
        aws_region=args.region or os.environ.get("AWS_REGION") or None,
        log_level=args.log_level or os.environ.get("LOG_LEVEL", "INFO"),
        max_retries=(
            args.max_retries
            if args.max_retries is not None
            else int_setting("MAX_RETRIES", "3")
        ),
        timeout_seconds=(
            args.timeout if args.timeout is not None else int_setting("TIMEOUT_SECONDS", "30")
        ),
        concurrency=(
            getattr(args, "concurrency", None)
            or int_setting("DRIFT_CONCURRENCY", str(DEFAULT_CONCURRENCY))
        ),
        attributes=split_list(args.attributes or os.environ.get("DRIFT_ATTRIBUTES")),
        instance_ids=split_list(
            getattr(args, "instances", None) or os.environ.get("DRIFT_INSTANCE_IDS")
        ),
    )
    return validate_config(config)


def print_attributes() -> None:
    """Print every attribute path the detector understands."""
    print("Available attributes for drift detection:")
    print("-" * 40)
    for attr in supported_attributes():
        marker = "*" if attr in DEFAULT_ATTRIBUTES else " "
        print(f"  {marker} {attr}")
    print("\n* checked by default.")
    print("Use --attributes or -a to specify which attributes to check.")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the command-line drift detector.

    Returns:
        Exit code: 1 when drift is found or an error occurs, 0 otherwise
    """
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(_with_default_command(list(sys.argv[1:] if argv is None else argv)))

    if args.command == "list-attributes":
        print_attributes()
        return 0

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    logger = setup_logging(config.log_level)
    logger.info(f"Starting EC2 drift detection (state: {config.state_path})")

    try:
        if args.command == "detect-instance":
            result = detect_instance_drift(config, args.instance_id)
            print(format_single(result, args.output))
            drift_detected = result.has_drift
        else:
            report = detect_drift(config)
            print(format_report(report, args.output))
            drift_detected = report.drift_detected
    except Exception as e:
        logger.error(f"Error running drift detection: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if drift_detected:
        logger.warning("Drift detected! Exiting with code 1")
        return 1
    logger.info("No drift detected. Exiting with code 0")
    return 0


if __name__ == "__main__":
    sys.exit(main())
