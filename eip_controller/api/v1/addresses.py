# eip_controller/api/v1/addresses.py
"""
Admin API Endpoints
Manual allocation and teardown of cluster Elastic IPs
"""

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from typing import Optional
import logging

from ...config import settings
from ...core.aws import ec2_client
from ...core.eip import ElasticIPService
from ...core.errors import (
    AddressCountMismatchError,
    ElasticIPError,
    PoolExhaustedError,
    UnexpectedPoolCountError,
)
from ...core.instance import InstanceAddressService, instance_role
from ...core.scope import InstanceScope, NetworkScope
from ...schemas import AddressListResponse, AllocateRequest, AllocateResponse, ReleaseResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# === Dependencies ===

async def verify_admin_token(x_admin_token: str = Header(..., alias="X-Admin-Token")):
    """Verify admin authentication token"""
    if x_admin_token != settings.ADMIN_SECRET:
        logger.warning("Invalid admin token attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid or missing admin token",
                "error_code": "UNAUTHORIZED"
            },
            headers={"WWW-Authenticate": "Bearer"}
        )
    return True


def get_eip_service() -> ElasticIPService:
    return ElasticIPService(NetworkScope.from_settings(), ec2_client())


def get_instance_service() -> InstanceAddressService:
    return InstanceAddressService(ElasticIPService(InstanceScope.from_settings(), ec2_client()))


def _http_error(e: ElasticIPError) -> HTTPException:
    """Map an address error (or the error it wraps) to an HTTP error"""
    cause = e
    while cause is not None:
        if isinstance(cause, PoolExhaustedError):
            code, error_code = status.HTTP_409_CONFLICT, "POOL_EXHAUSTED"
            break
        if isinstance(cause, (AddressCountMismatchError, UnexpectedPoolCountError)):
            code, error_code = status.HTTP_500_INTERNAL_SERVER_ERROR, "INVARIANT_VIOLATION"
            break
        cause = cause.__cause__
    else:
        code, error_code = status.HTTP_502_BAD_GATEWAY, "PROVIDER_ERROR"

    return HTTPException(status_code=code, detail={"error": str(e), "error_code": error_code})


# === Endpoints ===

@router.get(
    "",
    response_model=AddressListResponse,
    summary="List cluster addresses",
)
def list_addresses(
    role: Optional[str] = Query(None, description="Filter by role"),
    service: ElasticIPService = Depends(get_eip_service),
    _: bool = Depends(verify_admin_token)
):
    try:
        addresses = service.describe_addresses(role or "")
    except ElasticIPError as e:
        raise _http_error(e)
    return AddressListResponse(addresses=addresses, total=len(addresses))


@router.post(
    "/allocate",
    response_model=AllocateResponse,
    summary="Get or allocate addresses for a role",
)
def allocate_addresses(
    body: AllocateRequest,
    service: ElasticIPService = Depends(get_eip_service),
    _: bool = Depends(verify_admin_token)
):
    try:
        eips = service.get_or_allocate_addresses(body.count, body.role)
    except ElasticIPError as e:
        raise _http_error(e)

    logger.info(f"Resolved {len(eips)} Elastic IPs for role {body.role}")
    return AllocateResponse(role=body.role, allocation_ids=eips)


@router.delete(
    "/roles/{role}",
    response_model=ReleaseResponse,
    summary="Release addresses for a role",
)
def release_role(
    role: str,
    service: ElasticIPService = Depends(get_eip_service),
    _: bool = Depends(verify_admin_token)
):
    try:
        service.release_address_by_role(role)
    except ElasticIPError as e:
        raise _http_error(e)
    return ReleaseResponse(message=f"Released Elastic IPs for role {role}")


@router.delete(
    "",
    response_model=ReleaseResponse,
    summary="Release all cluster addresses",
)
def release_all(
    service: ElasticIPService = Depends(get_eip_service),
    _: bool = Depends(verify_admin_token)
):
    try:
        service.release_addresses()
    except ElasticIPError as e:
        raise _http_error(e)
    return ReleaseResponse(message=f"Released Elastic IPs for cluster {service.scope.name()}")


@router.post(
    "/instances/{instance_id}/associate",
    response_model=AllocateResponse,
    summary="Associate a pool address to an instance",
)
def associate_instance(
    instance_id: str,
    service: InstanceAddressService = Depends(get_instance_service),
    _: bool = Depends(verify_admin_token)
):
    try:
        allocation_id = service.reconcile_elastic_ip_from_public_pool(instance_id)
    except ElasticIPError as e:
        raise _http_error(e)
    return AllocateResponse(role=instance_role(instance_id), allocation_ids=[allocation_id])
