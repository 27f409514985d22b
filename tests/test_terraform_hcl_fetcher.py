"""
Tests for Terraform HCL parsing.
"""

import unittest

from ec2_drift.errors import StateParseError
from ec2_drift.fetchers.terraform_hcl_fetcher import parse_hcl

SAMPLE_HCL = """
provider "aws" {
  region = "eu-west-2"
}

resource "aws_security_group" "web" {
  name = "web"
}

resource "aws_instance" "web" {
  ami                    = "ami-0abcdef1234567890"
  instance_type          = "t3.micro"
  availability_zone      = "eu-west-2a"
  subnet_id              = "subnet-0aaa1111"
  key_name               = "deploy"
  vpc_security_group_ids = ["sg-0aaa1111", "sg-0bbb2222"]
  ebs_optimized          = true
  monitoring             = false

  tags = {
    Name        = "web"
    Environment = "dev"
  }

  root_block_device {
    volume_size = 20
    volume_type = "gp3"
    encrypted   = true
  }
}

resource "aws_instance" "worker" {
  instance_type   = "t3.small"
  security_groups = ["legacy"]
  monitoring      = "yes"
}
"""


class TestParseHCL(unittest.TestCase):
    """Test extraction of aws_instance blocks from HCL."""

    def setUp(self) -> None:
        self.instances = parse_hcl(SAMPLE_HCL, filename="main.tf")

    def test_keyed_by_resource_name(self) -> None:
        self.assertEqual(sorted(self.instances), ["web", "worker"])
        self.assertEqual(self.instances["web"].instance_id, "web")

    def test_scalar_attributes(self) -> None:
        web = self.instances["web"]
        self.assertEqual(web.ami, "ami-0abcdef1234567890")
        self.assertEqual(web.instance_type, "t3.micro")
        self.assertEqual(web.availability_zone, "eu-west-2a")
        self.assertEqual(web.key_name, "deploy")
        self.assertTrue(web.ebs_optimized)
        self.assertFalse(web.monitoring)

    def test_collections(self) -> None:
        web = self.instances["web"]
        self.assertEqual(web.security_groups, ["sg-0aaa1111", "sg-0bbb2222"])
        self.assertEqual(web.tags, {"Name": "web", "Environment": "dev"})

    def test_root_block_device(self) -> None:
        root = self.instances["web"].root_block_device
        self.assertEqual(root.volume_size, 20)
        self.assertEqual(root.volume_type, "gp3")
        self.assertTrue(root.encrypted)
        self.assertEqual(root.iops, 0)

    def test_fallbacks_and_wrong_types(self) -> None:
        worker = self.instances["worker"]
        self.assertEqual(worker.security_groups, ["legacy"])
        # A string where a bool is expected becomes the zero value
        self.assertFalse(worker.monitoring)
        self.assertEqual(worker.tags, {})
        self.assertEqual(worker.root_block_device.volume_size, 0)

    def test_no_instances(self) -> None:
        self.assertEqual(parse_hcl('variable "region" {}\n'), {})

    def test_invalid_hcl(self) -> None:
        with self.assertRaises(StateParseError):
            parse_hcl('resource "aws_instance" "web" {\n  ami = \n')


if __name__ == "__main__":
    unittest.main()
