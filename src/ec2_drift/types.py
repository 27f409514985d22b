"""
Type definitions for the EC2 Drift Detector.

Aliases used across the fetchers and the drift engine in place of bare Any.
"""

# boto3 clients are generated at runtime and ship without static stubs,
# so they are annotated as Any.
from typing import Any, Dict, List, Union

EC2Client = Any

# Values produced by attribute extraction. Root block devices are returned
# as models.BlockDevice, which is why the union ends with Any.
AttributeValue = Union[str, int, bool, List[str], Dict[str, str], Any, None]

# Raw shapes returned by AWS and found in Terraform state
RawInstance = Dict[str, Any]
RawVolume = Dict[str, Any]
TerraformState = Dict[str, Any]
ResourceAttributes = Dict[str, Any]
