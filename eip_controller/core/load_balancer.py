# eip_controller/core/load_balancer.py
"""Network Load Balancer subnet mappings backed by BYO pool addresses"""

import logging
from typing import Any, Dict

from .eip import ElasticIPService
from .errors import AddressCountMismatchError, ElasticIPError, UnsupportedLoadBalancerError

logger = logging.getLogger(__name__)

LOAD_BALANCER_TYPE_NETWORK = "network"


class LoadBalancerAddressService:
    def __init__(self, eip_service: ElasticIPService):
        self.eip = eip_service
        self.scope = eip_service.scope

    def create_lb_addresses_from_public_ipv4_pool(self, lb_input: Dict[str, Any], role: str) -> Dict[str, Any]:
        """
        Replace Subnets with SubnetMappings carrying one Elastic IP per subnet

        lb_input is a CreateLoadBalancer request dict and is updated in place.
        Nothing changes when no BYO pool is configured.

        Raises:
            UnsupportedLoadBalancerError: Non-network type, or SubnetMappings already set
            AddressCountMismatchError: Allocation did not match the subnet count
        """
        pool_id = self.scope.vpc().get_public_ipv4_pool()
        if pool_id is None:
            return lb_input

        lb_type = lb_input.get("Type")
        if lb_type != LOAD_BALANCER_TYPE_NETWORK:
            raise UnsupportedLoadBalancerError(
                f"custom PublicIpv4Pool is supported only with Network Load Balancer type: {lb_type}"
            )

        if lb_input.get("SubnetMappings"):
            raise UnsupportedLoadBalancerError(
                f"custom PublicIpv4Pool is mutually exclusive with SubnetMappings: {lb_input['SubnetMappings']}"
            )

        subnets = list(lb_input.get("Subnets") or [])
        try:
            eips = self.eip.get_or_allocate_addresses(len(subnets), role)
        except ElasticIPError as e:
            logger.error(f"Failed to allocate EIP from Public IPv4 Pool {pool_id} for role {role}: {e}")
            raise

        if len(eips) != len(subnets):
            raise AddressCountMismatchError(f"load balancer role {role}", len(subnets), len(eips))

        lb_input["SubnetMappings"] = [
            {"SubnetId": subnet_id, "AllocationId": allocation_id}
            for subnet_id, allocation_id in zip(subnets, eips)
        ]
        # Subnets and SubnetMappings are mutually exclusive
        lb_input["Subnets"] = []
        return lb_input
