# eip_controller/schemas.py
"""
Pydantic Schemas for Elastic IP addresses and network configuration
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


PUBLIC_IPV4_POOL_PREFIX = "ipv4pool-ec2-"


# =============================================================================
# Network Configuration
# =============================================================================

class FallbackOrder(str, Enum):
    """What to do when the BYO public IPv4 pool has no free address"""
    AMAZON_POOL = "amazon-pool"
    NONE = "none"


class ElasticIPPool(BaseModel):
    """Bring-your-own public IPv4 pool settings"""
    public_ipv4_pool: Optional[str] = Field(None, description="BYO IPv4 pool id (ipv4pool-ec2-...)")
    public_ipv4_pool_fallback_order: Optional[FallbackOrder] = Field(
        None, description="Fallback strategy when the pool is exhausted (unset = amazon-pool)"
    )

    @field_validator("public_ipv4_pool")
    @classmethod
    def validate_pool_id(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.startswith(PUBLIC_IPV4_POOL_PREFIX):
            raise ValueError(f"publicIpv4Pool must start with {PUBLIC_IPV4_POOL_PREFIX}, got {v!r}")
        return v

    @model_validator(mode="after")
    def validate_fallback_requires_pool(self) -> "ElasticIPPool":
        if self.public_ipv4_pool_fallback_order is not None and self.public_ipv4_pool is None:
            raise ValueError("publicIpv4PoolFallbackOrder requires publicIpv4Pool to be set")
        return self

    @property
    def fallback_disabled(self) -> bool:
        return self.public_ipv4_pool_fallback_order == FallbackOrder.NONE


class VPCSpec(BaseModel):
    """Read-only view of the cluster network"""
    id: Optional[str] = None
    elastic_ip_pool: Optional[ElasticIPPool] = None

    def get_public_ipv4_pool(self) -> Optional[str]:
        if self.elastic_ip_pool is None:
            return None
        return self.elastic_ip_pool.public_ipv4_pool


class PoolSelection(BaseModel):
    """Where a single address is allocated from. pool_id=None is the Amazon pool."""
    pool_id: Optional[str] = None

    @property
    def is_default(self) -> bool:
        return self.pool_id is None


# =============================================================================
# Addresses
# =============================================================================

class AddressRecord(BaseModel):
    """An Elastic IP as reported by DescribeAddresses"""
    allocation_id: str
    public_ip: Optional[str] = None
    association_id: Optional[str] = None
    instance_id: Optional[str] = None
    tags: Dict[str, str] = Field(default_factory=dict)

    @property
    def is_associated(self) -> bool:
        return self.association_id is not None

    @classmethod
    def from_ec2(cls, address: Dict[str, Any]) -> "AddressRecord":
        return cls(
            allocation_id=address["AllocationId"],
            public_ip=address.get("PublicIp"),
            association_id=address.get("AssociationId"),
            instance_id=address.get("InstanceId"),
            tags={t["Key"]: t["Value"] for t in address.get("Tags", [])},
        )


# =============================================================================
# API Schemas
# =============================================================================

class AllocateRequest(BaseModel):
    """Schema for requesting addresses for a role"""
    count: int = Field(1, ge=0, le=64, description="Number of addresses required")
    role: str = Field(..., min_length=1, max_length=128, description="Role tag value")


class AllocateResponse(BaseModel):
    role: str
    allocation_ids: List[str]


class AddressListResponse(BaseModel):
    addresses: List[AddressRecord]
    total: int


class ReleaseResponse(BaseModel):
    success: bool = True
    message: str
