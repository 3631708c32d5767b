# eip_controller/core/domain_events.py
"""
Domain Events - Elastic IP lifecycle reasons

Reasons double as event types on the bus so consumers can subscribe
to one failure mode at a time.
"""

from typing import Any, Dict, Optional


class EventTypes:
    """All event reason constants"""

    # Warnings
    FAILED_DESCRIBE_ADDRESSES = "FailedDescribeAddresses"
    FAILED_ALLOCATE_EIP = "FailedAllocateEIP"
    FAILED_ALLOCATE_ADDRESS = "FailedAllocateAddress"
    FAILED_ALLOCATE_EIP_FROM_BYOIPV4 = "FailedAllocateEIPFromBYOIPv4"
    FAILED_ASSOCIATE_EIP = "FailedAssociateEIP"
    FAILED_DISASSOCIATE_EIP = "FailedDisassociateEIP"
    FAILED_RELEASE_EIP = "FailedReleaseEIP"

    # Lifecycle
    ADDRESS_ALLOCATED = "AddressAllocated"
    ADDRESS_ASSOCIATED = "AddressAssociated"
    ADDRESS_RELEASED = "AddressReleased"
    PUBLIC_IPV4_POOL_FALLBACK = "PublicIpv4PoolFallback"


def address_payload(
    allocation_id: Optional[str],
    role: Optional[str] = None,
    public_ip: Optional[str] = None,
    pool_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Build payload for address lifecycle events"""
    return {
        "allocation_id": allocation_id,
        "role": role,
        "public_ip": public_ip,
        "pool_id": pool_id,
    }


def association_payload(allocation_id: str, target: str, role: str) -> Dict[str, Any]:
    """Build payload for AddressAssociated / FailedAssociateEIP"""
    return {
        "allocation_id": allocation_id,
        "target": target,
        "role": role,
    }


def pool_payload(pool_id: str, fallback: Optional[str], want: int, available: Optional[int]) -> Dict[str, Any]:
    """Build payload for pool capacity events"""
    return {
        "pool_id": pool_id,
        "fallback": fallback,
        "want": want,
        "available": available,
    }
