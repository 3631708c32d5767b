# eip_controller/core/tags.py
"""
Tag builder for cluster-owned AWS resources
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

NAME_PREFIX = "sigs.k8s.io/cluster-api-provider-aws/"
NAME_AWS_PROVIDER_OWNED = NAME_PREFIX + "cluster/"
NAME_AWS_CLUSTER_API_ROLE = NAME_PREFIX + "role"

RESOURCE_LIFECYCLE_OWNED = "owned"

RESOURCE_TYPE_ELASTIC_IP = "elastic-ip"


def cluster_tag_key(cluster_name: str) -> str:
    """Tag key marking a resource as belonging to the cluster"""
    return NAME_AWS_PROVIDER_OWNED + cluster_name


@dataclass
class BuildParams:
    """Inputs for building a resource's tag set"""
    cluster_name: str
    lifecycle: str = RESOURCE_LIFECYCLE_OWNED
    name: Optional[str] = None
    role: Optional[str] = None
    additional: Dict[str, str] = field(default_factory=dict)


def build(params: BuildParams) -> Dict[str, str]:
    """Build the tag dict. Cluster, role and name win over additional tags."""
    tags = dict(params.additional)
    tags[cluster_tag_key(params.cluster_name)] = params.lifecycle
    if params.role:
        tags[NAME_AWS_CLUSTER_API_ROLE] = params.role
    if params.name:
        tags["Name"] = params.name
    return tags


def build_tag_specification(resource_type: str, params: BuildParams) -> Dict[str, object]:
    """Build an EC2 TagSpecification for tagging at creation time"""
    tags: List[Dict[str, str]] = [
        {"Key": key, "Value": value}
        for key, value in sorted(build(params).items())
    ]
    return {"ResourceType": resource_type, "Tags": tags}
