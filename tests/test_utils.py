"""
Tests for shared utilities.
"""

import logging
import unittest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from ec2_drift.errors import AWSFetchError
from ec2_drift.utils import download_s3_file, setup_logging


class TestSetupLogging(unittest.TestCase):
    def test_single_handler(self) -> None:
        logger = setup_logging("DEBUG")
        handlers = len(logger.handlers)
        self.assertIs(setup_logging(), logger)
        self.assertEqual(len(logger.handlers), handlers)
        self.assertEqual(logger.level, logging.DEBUG)

    def test_level_kept_without_argument(self) -> None:
        logger = setup_logging("WARNING")
        setup_logging()
        self.assertEqual(logger.level, logging.WARNING)
        setup_logging("INFO")


class TestDownloadS3File(unittest.TestCase):
    """Test S3 downloads with a mocked client."""

    @patch("ec2_drift.utils.boto3.client")
    def test_download(self, mock_boto3_client: MagicMock) -> None:
        mock_s3 = MagicMock()
        mock_s3.get_object.return_value = {"Body": MagicMock(read=MagicMock(return_value=b"{}"))}
        mock_boto3_client.return_value = mock_s3
        self.assertEqual(download_s3_file("s3://bucket/path/state.tfstate"), "{}")
        mock_s3.get_object.assert_called_once_with(Bucket="bucket", Key="path/state.tfstate")

    def test_invalid_paths(self) -> None:
        for path in ("bucket/key", "s3://bucket", "s3:///key", "https://bucket/key"):
            with self.assertRaises(ValueError):
                download_s3_file(path)

    @patch("ec2_drift.utils.boto3.client")
    def test_download_error(self, mock_boto3_client: MagicMock) -> None:
        mock_s3 = MagicMock()
        mock_s3.get_object.side_effect = ClientError(
            {"Error": {"Code": "NoSuchKey", "Message": "The specified key does not exist."}},
            "GetObject",
        )
        mock_boto3_client.return_value = mock_s3
        with self.assertRaises(AWSFetchError) as context:
            download_s3_file("s3://bucket/missing.tfstate")
        self.assertEqual(context.exception.error_code, "NoSuchKey")
        self.assertIn("GetObject", str(context.exception))


if __name__ == "__main__":
    unittest.main()
