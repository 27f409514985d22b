"""
Shared builders for test instances.
"""

from ec2_drift.models import BlockDevice, EC2Instance


def make_instance(instance_id: str = "i-0123456789abcdef0", **overrides) -> EC2Instance:
    """Build a fully populated EC2Instance, overriding selected fields."""
    values = dict(
        instance_id=instance_id,
        instance_type="t3.micro",
        ami="ami-0abcdef1234567890",
        availability_zone="eu-west-2a",
        subnet_id="subnet-0aaa1111",
        vpc_id="vpc-0aaa1111",
        private_ip="10.0.1.10",
        public_ip="",
        key_name="deploy",
        security_groups=["sg-0aaa1111", "sg-0bbb2222"],
        tags={"Name": "web", "Environment": "dev"},
        root_block_device=BlockDevice(
            volume_size=100,
            volume_type="gp3",
            delete_on_termination=True,
            encrypted=True,
            iops=3000,
            throughput=125,
        ),
        ebs_optimized=False,
        monitoring=True,
        iam_instance_profile="arn:aws:iam::123456789012:instance-profile/web",
    )
    values.update(overrides)
    return EC2Instance(**values)
