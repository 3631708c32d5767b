# eip_controller/core/errors.py
"""
Elastic IP error taxonomy

Every terminal error carries the identifiers needed to diagnose it
(role, pool id, allocation id) without re-querying the provider.
"""

from typing import Optional


class ElasticIPError(Exception):
    """Base class for all address lifecycle errors"""


# === Read path ===

class AddressQueryError(ElasticIPError):
    def __init__(self, role: str, cause: Exception):
        self.role = role
        target = f"role {role!r}" if role else "cluster"
        super().__init__(f"failed to query addresses for {target}: {cause}")


# === Pool policy ===

class PoolQueryError(ElasticIPError):
    def __init__(self, pool_id: str, cause: Exception):
        self.pool_id = pool_id
        super().__init__(f"failed to describe Public IPv4 Pool {pool_id!r}: {cause}")


class UnexpectedPoolCountError(ElasticIPError):
    def __init__(self, pool_id: str, got: int):
        self.pool_id = pool_id
        self.got = got
        super().__init__(
            f"unexpected number of Public IPv4 Pools for {pool_id!r}: want 1, got {got}"
        )


class PoolExhaustedError(ElasticIPError):
    def __init__(self, pool_id: str, fallback: str, want: int, available: int):
        self.pool_id = pool_id
        self.fallback = fallback
        self.want = want
        self.available = available
        super().__init__(
            f"failed to allocate Elastic IP from Public IPv4 Pool {pool_id!r} "
            f"using fallback strategy {fallback!r}: want {want}, available {available}"
        )


# === Write path ===

class AllocationError(ElasticIPError):
    def __init__(self, role: str, pool_id: Optional[str], cause: Exception):
        self.role = role
        self.pool_id = pool_id
        pool = pool_id or "amazon-pool"
        super().__init__(f"failed to allocate Elastic IP for {role!r} from {pool}: {cause}")


class AddressCountMismatchError(ElasticIPError):
    def __init__(self, target: str, want: int, got: int):
        self.target = target
        self.want = want
        self.got = got
        super().__init__(f"unexpected number of Elastic IPs for {target}: want {want}, got {got}")


class AssociationError(ElasticIPError):
    def __init__(self, allocation_id: str, target: str, cause: Exception):
        self.allocation_id = allocation_id
        self.target = target
        super().__init__(f"failed to associate Elastic IP {allocation_id} to {target}: {cause}")


class DisassociateError(ElasticIPError):
    def __init__(self, allocation_id: str, association_id: Optional[str], cause: Exception):
        self.allocation_id = allocation_id
        self.association_id = association_id
        super().__init__(
            f"failed to disassociate Elastic IP {allocation_id!r} "
            f"(association {association_id!r}): {cause}"
        )


class ReleaseError(ElasticIPError):
    def __init__(self, allocation_id: str, public_ip: Optional[str], cause: Exception):
        self.allocation_id = allocation_id
        self.public_ip = public_ip
        super().__init__(f"failed to release Elastic IP {allocation_id!r} ({public_ip}): {cause}")


# === Waiter ===

class RetriesExhaustedError(ElasticIPError):
    def __init__(self, attempts: int, last_error: Optional[Exception]):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"gave up after {attempts} attempts: {last_error}")


class UnsupportedLoadBalancerError(ElasticIPError):
    """BYO public IPv4 pool requested for a load balancer that cannot use it"""
