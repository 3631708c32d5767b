# eip_controller/core/filters.py
"""EC2 describe filters scoping queries to a cluster and role"""

from typing import Dict, List

from .tags import NAME_AWS_CLUSTER_API_ROLE, cluster_tag_key


def cluster(cluster_name: str) -> Dict[str, List[str]]:
    return {"Name": "tag-key", "Values": [cluster_tag_key(cluster_name)]}


def provider_role(role: str) -> Dict[str, List[str]]:
    return {"Name": f"tag:{NAME_AWS_CLUSTER_API_ROLE}", "Values": [role]}


def cluster_role(cluster_name: str, role: str = "") -> List[Dict[str, List[str]]]:
    """Cluster filter, plus role filter when role is non-empty"""
    filters = [cluster(cluster_name)]
    if role:
        filters.append(provider_role(role))
    return filters


def role_of(query: List[Dict[str, List[str]]]) -> str:
    """Role named by a filter list, or "" when it is not role-scoped"""
    role_key = f"tag:{NAME_AWS_CLUSTER_API_ROLE}"
    for f in query:
        if f.get("Name") == role_key:
            return ",".join(f.get("Values", []))
    return ""
