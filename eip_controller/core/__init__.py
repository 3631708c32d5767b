"""
Elastic IP core services

- ElasticIPService: directory, pool policy, allocation, release
- InstanceAddressService: per-instance association
- LoadBalancerAddressService: NLB subnet mappings
"""

from .eip import ElasticIPService
from .instance import InstanceAddressService
from .load_balancer import LoadBalancerAddressService
from .scope import ClusterScope, InstanceScope, LoadBalancerScope, NetworkScope

__all__ = [
    "ElasticIPService",
    "InstanceAddressService",
    "LoadBalancerAddressService",
    "ClusterScope",
    "NetworkScope",
    "InstanceScope",
    "LoadBalancerScope",
]
