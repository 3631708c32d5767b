# eip_controller/core/aws.py
"""EC2 client construction"""

import logging
from typing import Optional

import boto3
from botocore.config import Config

from ..config import settings

logger = logging.getLogger(__name__)

# Retries are handled by the address waiter; keep the SDK's own retries short.
_CLIENT_CONFIG = Config(retries={"max_attempts": 3, "mode": "standard"})


def ec2_client(region: Optional[str] = None):
    """Create an EC2 client for the configured region"""
    region = region or settings.AWS_REGION
    logger.debug(f"Creating EC2 client for region {region}")
    return boto3.client("ec2", region_name=region, config=_CLIENT_CONFIG)
