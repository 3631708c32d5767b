# eip_controller/core/instance.py
"""
Instance Elastic IPs from a BYO public IPv4 pool

Each instance gets its own role, "ec2-<instance id>", so its address is
reused across reconciles and released with the instance.
"""

import logging

from botocore.exceptions import BotoCoreError, ClientError

from .domain_events import EventTypes, association_payload
from .eip import ElasticIPService
from .errors import AddressCountMismatchError, AssociationError, ElasticIPError
from .events import record_event, record_warning

logger = logging.getLogger(__name__)


def instance_role(instance_id: str) -> str:
    return f"ec2-{instance_id}"


class InstanceAddressService:
    """Associates one role-scoped Elastic IP per instance"""

    def __init__(self, eip_service: ElasticIPService):
        self.eip = eip_service
        self.ec2 = eip_service.ec2
        self.scope = eip_service.scope

    def reconcile_elastic_ip_from_public_pool(self, instance_id: str) -> str:
        """
        Make sure the instance has an Elastic IP from its role

        Returns:
            Allocation id associated with the instance
        """
        role = instance_role(instance_id)

        for address in self.eip.describe_addresses(role):
            if address.instance_id == instance_id:
                logger.debug(f"Instance {instance_id} already has Elastic IP {address.allocation_id}")
                return address.allocation_id

        try:
            return self.get_and_associate_address(role, instance_id)
        except ElasticIPError:
            logger.error(
                f"Failed to associate Elastic IP from Public IPv4 Pool "
                f"{self.scope.vpc().get_public_ipv4_pool()} to instance {instance_id}"
            )
            raise

    def get_and_associate_address(self, role: str, instance_id: str) -> str:
        """
        Resolve one address for the role and associate it to the instance

        Raises:
            AddressCountMismatchError: If the role did not resolve to exactly one address
            AssociationError: If the associate call fails
        """
        try:
            eips = self.eip.get_or_allocate_addresses(1, role)
        except ElasticIPError as e:
            record_warning(
                EventTypes.FAILED_ALLOCATE_EIP,
                f"Failed to get Elastic IP for {role!r}: {e}",
                source=self.scope.infra_cluster(),
                **association_payload("", instance_id, role),
            )
            raise

        if len(eips) != 1:
            record_warning(
                EventTypes.FAILED_ALLOCATE_EIP,
                f"Unexpected number of Elastic IPs for {role!r}: {len(eips)}",
                source=self.scope.infra_cluster(),
                **association_payload("", instance_id, role),
            )
            raise AddressCountMismatchError(f"instance {instance_id}", 1, len(eips))

        allocation_id = eips[0]
        try:
            self.ec2.associate_address(InstanceId=instance_id, AllocationId=allocation_id)
        except (ClientError, BotoCoreError) as e:
            record_warning(
                EventTypes.FAILED_ASSOCIATE_EIP,
                f"Failed to associate Elastic IP for {role!r}: {e}",
                source=self.scope.infra_cluster(),
                **association_payload(allocation_id, instance_id, role),
            )
            raise AssociationError(allocation_id, f"instance {instance_id}", e) from e

        logger.info(f"Associated Elastic IP {allocation_id} to instance {instance_id}")
        record_event(
            EventTypes.ADDRESS_ASSOCIATED,
            f"Associated Elastic IP {allocation_id} to instance {instance_id}",
            source=self.scope.infra_cluster(),
            **association_payload(allocation_id, instance_id, role),
        )
        return allocation_id

    def release_elastic_ip(self, instance_id: str) -> None:
        """Release the addresses held by the instance's role"""
        self.eip.release_address_by_role(instance_role(instance_id))
