# eip_controller/core/scope.py
"""
Cluster scopes

The address services only need a small capability set from their caller:
cluster identity, extra tags, the network spec, a handle used as event
source, and leveled logging. One adapter exists per calling stage and is
chosen when the service is built.
"""

import logging
from typing import Dict, Optional, Protocol

from ..config import Settings, settings as default_settings
from ..schemas import VPCSpec


class ClusterScope(Protocol):
    """Capabilities consumed by the address services"""

    def name(self) -> str: ...

    def additional_tags(self) -> Dict[str, str]: ...

    def vpc(self) -> VPCSpec: ...

    def infra_cluster(self) -> str: ...

    def debug(self, msg: str, **kv) -> None: ...

    def info(self, msg: str, **kv) -> None: ...


class BaseScope:
    """Scope backed by a fixed cluster name, tag set and network spec"""

    stage = "cluster"

    def __init__(
        self,
        cluster_name: str,
        vpc: Optional[VPCSpec] = None,
        additional_tags: Optional[Dict[str, str]] = None,
    ):
        self._cluster_name = cluster_name
        self._vpc = vpc or VPCSpec()
        self._additional_tags = dict(additional_tags or {})
        self._logger = logging.getLogger(f"eip_controller.{self.stage}")

    @classmethod
    def from_settings(cls, s: Optional[Settings] = None) -> "BaseScope":
        s = s or default_settings
        return cls(
            cluster_name=s.CLUSTER_NAME,
            vpc=s.vpc_spec(),
            additional_tags=s.ADDITIONAL_TAGS,
        )

    def name(self) -> str:
        return self._cluster_name

    def additional_tags(self) -> Dict[str, str]:
        return dict(self._additional_tags)

    def vpc(self) -> VPCSpec:
        return self._vpc

    def infra_cluster(self) -> str:
        return f"{self.stage}/{self._cluster_name}"

    def debug(self, msg: str, **kv) -> None:
        self._logger.debug(_format(msg, kv))

    def info(self, msg: str, **kv) -> None:
        self._logger.info(_format(msg, kv))


class NetworkScope(BaseScope):
    """Network stage: NAT gateways and cluster-wide teardown"""
    stage = "network"


class InstanceScope(BaseScope):
    """Instance stage: per-machine addresses"""
    stage = "instance"


class LoadBalancerScope(BaseScope):
    """Load balancer stage: NLB subnet mappings"""
    stage = "loadbalancer"


def _format(msg: str, kv: Dict[str, object]) -> str:
    if not kv:
        return msg
    fields = " ".join(f"{k}={v}" for k, v in kv.items())
    return f"{msg} {fields}"
