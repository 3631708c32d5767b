# eip_controller/core/eip.py
"""
Elastic IP Service
Allocates, reuses and releases cluster-owned Elastic IPs

Features:
- Role-scoped reuse of unassociated addresses before allocating new ones
- Bring-your-own public IPv4 pool with optional fallback to the Amazon pool
- Disassociate/release with retries for EC2 eventual consistency
- Fail-fast bulk release for cluster or role teardown
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from ..schemas import AddressRecord, FallbackOrder, PoolSelection
from . import filters
from .domain_events import EventTypes, address_payload, pool_payload
from .errors import (
    AddressQueryError,
    AllocationError,
    DisassociateError,
    ElasticIPError,
    PoolExhaustedError,
    PoolQueryError,
    ReleaseError,
    UnexpectedPoolCountError,
)
from .events import record_event, record_warning
from .scope import ClusterScope
from .tags import RESOURCE_LIFECYCLE_OWNED, RESOURCE_TYPE_ELASTIC_IP, BuildParams, build_tag_specification
from .wait import (
    ASSOCIATION_ID_NOT_FOUND,
    AUTH_FAILURE,
    IN_USE_IP_ADDRESS,
    Backoff,
    error_code,
    new_backoff,
    wait_for_with_retryable,
)

logger = logging.getLogger(__name__)

AWS_ERRORS = (ClientError, BotoCoreError)

# Release loop states
ASSOCIATED = "associated"
UNASSOCIATED = "unassociated"


class ElasticIPService:
    """
    Elastic IP lifecycle for one cluster

    Holds no state between calls: every operation reads the provider's
    current view, filtered by the cluster tag.
    """

    def __init__(
        self,
        scope: ClusterScope,
        ec2_client,
        backoff_factory: Callable[[], Backoff] = new_backoff,
    ):
        """
        Args:
            scope: Cluster identity, tags, network spec and logging
            ec2_client: boto3 EC2 client (or compatible)
            backoff_factory: Builds a fresh retry schedule per waited call
        """
        self.scope = scope
        self.ec2 = ec2_client
        self._backoff = backoff_factory

    # =========================================================================
    # Address Directory
    # =========================================================================

    def describe_addresses(self, role: str = "") -> List[AddressRecord]:
        """
        List the cluster's addresses, narrowed to a role when one is given

        Raises:
            AddressQueryError: If the provider call fails
        """
        return self._describe(filters.cluster_role(self.scope.name(), role), role)

    def _describe(self, query: List[Dict[str, List[str]]], role: str = "") -> List[AddressRecord]:
        try:
            out = self.ec2.describe_addresses(Filters=query)
        except AWS_ERRORS as e:
            raise AddressQueryError(role, e) from e
        if not out:
            return []
        return [AddressRecord.from_ec2(a) for a in out.get("Addresses", [])]

    # =========================================================================
    # Pool Policy
    # =========================================================================

    def public_ipv4_pool_has_free_ips(self, want: int) -> Tuple[bool, int]:
        """
        Check whether the BYO pool can hand out `want` addresses

        Returns:
            Tuple of (has_enough, available)

        Raises:
            PoolQueryError: If the pool cannot be described
            UnexpectedPoolCountError: If the provider does not return exactly one pool
        """
        pool_id = self.scope.vpc().get_public_ipv4_pool()
        try:
            out = self.ec2.describe_public_ipv4_pools(PoolIds=[pool_id])
        except AWS_ERRORS as e:
            raise PoolQueryError(pool_id, e) from e

        pools = out.get("PublicIpv4Pools", []) if out else []
        if len(pools) != 1:
            raise UnexpectedPoolCountError(pool_id, len(pools))

        available = pools[0].get("TotalAvailableAddressCount") or 0
        self.scope.debug("public IPv4 pool capacity", pool=pool_id, available=available, want=want)
        return available >= want, available

    def resolve_pool(self) -> PoolSelection:
        """
        Decide where the next single address comes from

        BYO pool when it has a free address; otherwise the Amazon pool,
        unless the fallback order is "none".

        Raises:
            PoolExhaustedError: Pool has no free address and fallback is disabled
            PoolQueryError, UnexpectedPoolCountError: Capacity check failed
        """
        vpc = self.scope.vpc()
        pool_id = vpc.get_public_ipv4_pool()
        if pool_id is None:
            return PoolSelection()

        try:
            ok, available = self.public_ipv4_pool_has_free_ips(1)
        except ElasticIPError as e:
            record_warning(
                EventTypes.FAILED_ALLOCATE_EIP,
                f"Failed to allocate Elastic IP in Public IPv4 Pool {pool_id!r}: {e}",
                source=self.scope.infra_cluster(),
                **pool_payload(pool_id, None, 1, None),
            )
            raise

        if ok:
            return PoolSelection(pool_id=pool_id)

        if vpc.elastic_ip_pool.fallback_disabled:
            fallback = vpc.elastic_ip_pool.public_ipv4_pool_fallback_order
            record_warning(
                EventTypes.FAILED_ALLOCATE_EIP_FROM_BYOIPV4,
                f"Failed to allocate Elastic IP from Public IPv4 Pool {pool_id!r} "
                f"using fallback strategy {fallback.value!r}",
                source=self.scope.infra_cluster(),
                **pool_payload(pool_id, fallback.value, 1, available),
            )
            raise PoolExhaustedError(pool_id, fallback.value, 1, available)

        logger.info(f"Public IPv4 Pool {pool_id} exhausted, falling back to Amazon pool")
        record_event(
            EventTypes.PUBLIC_IPV4_POOL_FALLBACK,
            f"Public IPv4 Pool {pool_id!r} has no free address, using Amazon pool",
            source=self.scope.infra_cluster(),
            **pool_payload(pool_id, FallbackOrder.AMAZON_POOL.value, 1, available),
        )
        return PoolSelection()

    # =========================================================================
    # Allocation
    # =========================================================================

    def _eip_tag_params(self, role: str) -> BuildParams:
        return BuildParams(
            cluster_name=self.scope.name(),
            lifecycle=RESOURCE_LIFECYCLE_OWNED,
            name=f"{self.scope.name()}-eip-{role}",
            role=role,
            additional=self.scope.additional_tags(),
        )

    def allocate_address(self, role: str) -> str:
        """
        Allocate one new address tagged for this cluster and role

        Returns:
            The new allocation id

        Raises:
            AllocationError: Pool resolution or the provider call failed
        """
        tag_spec = build_tag_specification(RESOURCE_TYPE_ELASTIC_IP, self._eip_tag_params(role))

        try:
            selection = self.resolve_pool()
        except ElasticIPError as e:
            raise AllocationError(role, self.scope.vpc().get_public_ipv4_pool(), e) from e

        alloc_input = {
            "Domain": "vpc",
            "TagSpecifications": [tag_spec],
        }
        if not selection.is_default:
            alloc_input["PublicIpv4Pool"] = selection.pool_id

        try:
            out = self.ec2.allocate_address(**alloc_input)
        except AWS_ERRORS as e:
            record_warning(
                EventTypes.FAILED_ALLOCATE_ADDRESS,
                f"Failed to allocate Elastic IP for {role!r}: {e}",
                source=self.scope.infra_cluster(),
                **address_payload(None, role=role, pool_id=selection.pool_id),
            )
            raise AllocationError(role, selection.pool_id, e) from e

        allocation_id = out["AllocationId"]
        logger.info(
            f"Allocated Elastic IP {out.get('PublicIp')} ({allocation_id}) "
            f"for role {role} from {selection.pool_id or 'amazon-pool'}"
        )
        record_event(
            EventTypes.ADDRESS_ALLOCATED,
            f"Allocated Elastic IP {allocation_id} for {role!r}",
            source=self.scope.infra_cluster(),
            **address_payload(allocation_id, role=role, public_ip=out.get("PublicIp"), pool_id=selection.pool_id),
        )
        return allocation_id

    def get_or_allocate_addresses(self, num: int, role: str) -> List[str]:
        """
        Return `num` unassociated allocation ids for a role

        Existing unassociated addresses with the same role are reused first;
        the rest are allocated. Any allocation failure aborts the call.
        Concurrent callers for the same role may receive overlapping ids.

        Raises:
            ValueError: If num is negative
            AddressQueryError: If the directory read fails
            AllocationError: If any allocation fails
        """
        if num < 0:
            raise ValueError(f"address count must be >= 0, got {num}")

        try:
            addresses = self.describe_addresses(role)
        except AddressQueryError as e:
            record_warning(
                EventTypes.FAILED_DESCRIBE_ADDRESSES,
                f"Failed to query addresses for role {role!r}: {e}",
                source=self.scope.infra_cluster(),
                **address_payload(None, role=role),
            )
            raise

        eips = [a.allocation_id for a in addresses if not a.is_associated][:num]
        reused = len(eips)

        while len(eips) < num:
            eips.append(self.allocate_address(role))

        if num:
            self.scope.debug("resolved Elastic IPs", role=role, reused=reused, allocated=num - reused)
        return eips

    # =========================================================================
    # Disassociate / Release
    # =========================================================================

    def _disassociate_once(self, association_id: str) -> None:
        """Single disassociate call. A missing association counts as done."""
        try:
            self.ec2.disassociate_address(AssociationId=association_id)
        except ClientError as e:
            if error_code(e) == ASSOCIATION_ID_NOT_FOUND:
                logger.debug(f"Association {association_id} already gone")
                return
            raise

    def disassociate_address(self, address: AddressRecord) -> None:
        """
        Detach an address from its target, retrying AuthFailure

        Raises:
            DisassociateError: On a terminal error or exhausted retries
        """
        if not address.association_id:
            return

        def condition() -> bool:
            self._disassociate_once(address.association_id)
            return True

        try:
            wait_for_with_retryable(self._backoff(), condition, AUTH_FAILURE)
        except (ElasticIPError, *AWS_ERRORS) as e:
            record_warning(
                EventTypes.FAILED_DISASSOCIATE_EIP,
                f"Failed to disassociate Elastic IP {address.allocation_id!r}: {e}",
                source=self.scope.infra_cluster(),
                **address_payload(address.allocation_id, public_ip=address.public_ip),
            )
            raise DisassociateError(address.allocation_id, address.association_id, e) from e

    def _current_association_id(self, address: AddressRecord) -> Optional[str]:
        """Re-read an address whose association we do not know about"""
        out = self.ec2.describe_addresses(
            AllocationIds=[address.allocation_id],
            Filters=[filters.cluster(self.scope.name())],
        )
        for item in (out or {}).get("Addresses", []):
            return item.get("AssociationId")
        return None

    def release_address(self, address: AddressRecord) -> None:
        """
        Disassociate (if needed) and release one address

        Runs as a two-state loop under one retry schedule:
        ASSOCIATED issues a disassociate and moves to UNASSOCIATED;
        UNASSOCIATED issues the release. "In use" on release moves back to
        ASSOCIATED and re-reads the live association. AuthFailure and
        "in use" are retried, anything else is terminal.

        Raises:
            ReleaseError: On a terminal error or exhausted retries
        """
        state = ASSOCIATED if address.association_id else UNASSOCIATED
        association_id = address.association_id

        def condition() -> bool:
            nonlocal state, association_id

            if state == ASSOCIATED:
                if association_id is None:
                    association_id = self._current_association_id(address)
                if association_id is not None:
                    try:
                        self._disassociate_once(association_id)
                    except ClientError as e:
                        if error_code(e) == AUTH_FAILURE:
                            raise
                        raise DisassociateError(address.allocation_id, association_id, e) from e
                state = UNASSOCIATED

            try:
                self.ec2.release_address(AllocationId=address.allocation_id)
            except ClientError as e:
                if error_code(e) == IN_USE_IP_ADDRESS:
                    logger.debug(f"Elastic IP {address.allocation_id} still in use, disassociating again")
                    state = ASSOCIATED
                    association_id = None
                raise
            return True

        try:
            wait_for_with_retryable(self._backoff(), condition, AUTH_FAILURE, IN_USE_IP_ADDRESS)
        except (ElasticIPError, *AWS_ERRORS) as e:
            reason = EventTypes.FAILED_DISASSOCIATE_EIP if isinstance(e, DisassociateError) else EventTypes.FAILED_RELEASE_EIP
            record_warning(
                reason,
                f"Failed to release Elastic IP {address.allocation_id!r}: {e}",
                source=self.scope.infra_cluster(),
                **address_payload(address.allocation_id, public_ip=address.public_ip),
            )
            raise ReleaseError(address.allocation_id, address.public_ip, e) from e

        self.scope.info("released ElasticIP", eip=address.public_ip, allocation_id=address.allocation_id)
        record_event(
            EventTypes.ADDRESS_RELEASED,
            f"Released Elastic IP {address.public_ip} ({address.allocation_id})",
            source=self.scope.infra_cluster(),
            **address_payload(address.allocation_id, public_ip=address.public_ip),
        )

    # =========================================================================
    # Bulk Release
    # =========================================================================

    def release_addresses_with_filter(self, query: List[Dict[str, List[str]]]) -> None:
        """
        Release every address matching the filters, stopping at the first error

        The cluster filter is always applied, whatever the caller passes.
        """
        cluster_filter = filters.cluster(self.scope.name())
        if cluster_filter not in query:
            query = [cluster_filter] + list(query)

        for address in self._describe(query, filters.role_of(query)):
            self.release_address(address)

    def release_addresses(self) -> None:
        """Release all addresses owned by the cluster"""
        self.release_addresses_with_filter([filters.cluster(self.scope.name())])

    def release_address_by_role(self, role: str) -> None:
        """Release the cluster's addresses tagged with the role"""
        if not role:
            raise ValueError("role must not be empty; use release_addresses() for the whole cluster")
        self.release_addresses_with_filter(filters.cluster_role(self.scope.name(), role))
