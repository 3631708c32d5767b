# tests/test_pool_policy.py
"""
Unit Tests for BYO public IPv4 pool selection and fallback
"""

import pytest

from eip_controller.core.domain_events import EventTypes
from eip_controller.core.eip import ElasticIPService
from eip_controller.core.errors import (
    AllocationError,
    PoolExhaustedError,
    PoolQueryError,
    UnexpectedPoolCountError,
)
from eip_controller.schemas import FallbackOrder

from conftest import BYO_POOL, fast_backoff


class TestPoolPolicy:
    """Shared setup for pool tests"""

    @pytest.fixture
    def make_service(self, mock_ec2, byo_scope_factory):
        def make(fallback=None):
            return ElasticIPService(byo_scope_factory(fallback), mock_ec2, backoff_factory=fast_backoff)
        return make


class TestResolvePool(TestPoolPolicy):
    """Tests for resolve_pool"""

    def test_no_byo_pool_selects_default(self, service, mock_ec2):
        selection = service.resolve_pool()

        assert selection.is_default
        mock_ec2.describe_public_ipv4_pools.assert_not_called()

    def test_free_capacity_selects_byo(self, make_service, mock_ec2, pool_capacity):
        mock_ec2.describe_public_ipv4_pools.return_value = pool_capacity(5)

        selection = make_service().resolve_pool()

        assert selection.pool_id == BYO_POOL
        mock_ec2.describe_public_ipv4_pools.assert_called_once_with(PoolIds=[BYO_POOL])

    def test_exactly_one_free_is_enough(self, make_service, mock_ec2, pool_capacity):
        mock_ec2.describe_public_ipv4_pools.return_value = pool_capacity(1)

        assert make_service(FallbackOrder.NONE).resolve_pool().pool_id == BYO_POOL

    def test_exhausted_with_fallback_none_fails(self, make_service, mock_ec2, pool_capacity, clean_event_bus):
        mock_ec2.describe_public_ipv4_pools.return_value = pool_capacity(0)

        with pytest.raises(PoolExhaustedError) as exc_info:
            make_service(FallbackOrder.NONE).resolve_pool()

        err = exc_info.value
        assert err.pool_id == BYO_POOL
        assert err.want == 1
        assert err.available == 0
        assert err.fallback == "none"
        assert clean_event_bus.get_history(EventTypes.FAILED_ALLOCATE_EIP_FROM_BYOIPV4)

    def test_exhausted_with_unset_fallback_uses_default(self, make_service, mock_ec2, pool_capacity, clean_event_bus):
        mock_ec2.describe_public_ipv4_pools.return_value = pool_capacity(0)

        selection = make_service().resolve_pool()

        assert selection.is_default
        assert clean_event_bus.get_history(EventTypes.PUBLIC_IPV4_POOL_FALLBACK)

    def test_exhausted_with_amazon_pool_fallback(self, make_service, mock_ec2, pool_capacity):
        mock_ec2.describe_public_ipv4_pools.return_value = pool_capacity(0)

        assert make_service(FallbackOrder.AMAZON_POOL).resolve_pool().is_default

    @pytest.mark.parametrize("pools", [0, 2])
    def test_unexpected_pool_count(self, make_service, mock_ec2, pool_capacity, pools):
        """Test that zero or several pools is an error distinct from exhaustion"""
        mock_ec2.describe_public_ipv4_pools.return_value = pool_capacity(10, pools=pools)

        with pytest.raises(UnexpectedPoolCountError) as exc_info:
            make_service().resolve_pool()

        assert exc_info.value.got == pools
        assert exc_info.value.pool_id == BYO_POOL

    def test_describe_failure(self, make_service, mock_ec2, client_error, clean_event_bus):
        mock_ec2.describe_public_ipv4_pools.side_effect = client_error("InvalidPublicIpv4PoolID.NotFound")

        with pytest.raises(PoolQueryError):
            make_service().resolve_pool()

        assert clean_event_bus.get_history(EventTypes.FAILED_ALLOCATE_EIP)


class TestAllocateFromPool(TestPoolPolicy):
    """Tests for allocation using the resolved pool"""

    def test_allocates_from_byo_pool(self, make_service, mock_ec2, pool_capacity):
        mock_ec2.describe_public_ipv4_pools.return_value = pool_capacity(3)

        make_service().allocate_address("nat-a")

        assert mock_ec2.allocate_address.call_args.kwargs["PublicIpv4Pool"] == BYO_POOL

    def test_fallback_none_never_calls_allocate(self, make_service, mock_ec2, pool_capacity):
        mock_ec2.describe_public_ipv4_pools.return_value = pool_capacity(0)

        with pytest.raises(AllocationError) as exc_info:
            make_service(FallbackOrder.NONE).allocate_address("nat-a")

        assert isinstance(exc_info.value.__cause__, PoolExhaustedError)
        assert exc_info.value.pool_id == BYO_POOL
        mock_ec2.allocate_address.assert_not_called()

    def test_fallback_allowed_allocates_from_default(self, make_service, mock_ec2, pool_capacity):
        mock_ec2.describe_public_ipv4_pools.return_value = pool_capacity(0)

        allocation_id = make_service().allocate_address("nat-a")

        assert allocation_id == "eipalloc-new1"
        assert "PublicIpv4Pool" not in mock_ec2.allocate_address.call_args.kwargs

    def test_pool_checked_per_allocation(self, make_service, mock_ec2, pool_capacity):
        """Test that capacity is re-read for every address"""
        mock_ec2.describe_public_ipv4_pools.side_effect = [pool_capacity(1), pool_capacity(0)]

        eips = make_service().get_or_allocate_addresses(2, "nat-a")

        assert len(eips) == 2
        pools = [c.kwargs.get("PublicIpv4Pool") for c in mock_ec2.allocate_address.call_args_list]
        assert pools == [BYO_POOL, None]
