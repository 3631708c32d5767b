# tests/conftest.py
"""
Pytest fixtures for Elastic IP tests
Shared mock EC2 client, scopes and error factories
"""

import pytest
from unittest.mock import Mock

from botocore.exceptions import ClientError

from eip_controller.core.eip import ElasticIPService
from eip_controller.core.events import event_bus
from eip_controller.core.scope import NetworkScope
from eip_controller.core.tags import NAME_AWS_CLUSTER_API_ROLE, cluster_tag_key
from eip_controller.core.wait import Backoff
from eip_controller.schemas import ElasticIPPool, VPCSpec

CLUSTER = "test-cluster"
BYO_POOL = "ipv4pool-ec2-0123456789abcdef0"


def fast_backoff() -> Backoff:
    """No sleeping between attempts"""
    return Backoff(initial_interval=0, factor=1.0, jitter=0, steps=5, max_interval=0)


@pytest.fixture(autouse=True)
def clean_event_bus():
    """Fresh subscriptions and history for every test"""
    event_bus.clear()
    yield event_bus
    event_bus.clear()


@pytest.fixture
def client_error():
    """Factory for botocore ClientErrors with a given code"""
    def make(code: str, operation: str = "ReleaseAddress") -> ClientError:
        return ClientError({"Error": {"Code": code, "Message": f"{code} test error"}}, operation)
    return make


@pytest.fixture
def ec2_address():
    """Factory for DescribeAddresses items"""
    def make(allocation_id: str, role: str = "worker", association_id=None, instance_id=None, public_ip=None):
        item = {
            "AllocationId": allocation_id,
            "PublicIp": public_ip or "203.0.113.10",
            "Domain": "vpc",
            "Tags": [
                {"Key": cluster_tag_key(CLUSTER), "Value": "owned"},
                {"Key": NAME_AWS_CLUSTER_API_ROLE, "Value": role},
            ],
        }
        if association_id:
            item["AssociationId"] = association_id
        if instance_id:
            item["InstanceId"] = instance_id
        return item
    return make


@pytest.fixture
def mock_ec2():
    """Mock EC2 client with an empty address directory"""
    ec2 = Mock()
    ec2.describe_addresses.return_value = {"Addresses": []}
    counter = {"n": 0}

    def allocate(**kwargs):
        counter["n"] += 1
        return {"AllocationId": f"eipalloc-new{counter['n']}", "PublicIp": f"198.51.100.{counter['n']}"}

    ec2.allocate_address.side_effect = allocate
    return ec2


@pytest.fixture
def scope():
    return NetworkScope(CLUSTER, additional_tags={"team": "infra"})


@pytest.fixture
def byo_scope_factory():
    """Scope with a BYO pool and the given fallback order"""
    def make(fallback=None):
        vpc = VPCSpec(
            id="vpc-1",
            elastic_ip_pool=ElasticIPPool(public_ipv4_pool=BYO_POOL, public_ipv4_pool_fallback_order=fallback),
        )
        return NetworkScope(CLUSTER, vpc=vpc)
    return make


@pytest.fixture
def service(scope, mock_ec2):
    return ElasticIPService(scope, mock_ec2, backoff_factory=fast_backoff)


@pytest.fixture
def pool_capacity():
    """DescribePublicIpv4Pools response with the given free count"""
    def make(available: int, pools: int = 1):
        return {
            "PublicIpv4Pools": [
                {"PoolId": BYO_POOL, "TotalAvailableAddressCount": available, "TotalAddressCount": 8}
                for _ in range(pools)
            ]
        }
    return make
