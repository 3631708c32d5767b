# eip_controller/config.py
"""
Application Configuration
Uses pydantic-settings for environment variable management
"""

from typing import Dict, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from .schemas import ElasticIPPool, FallbackOrder, VPCSpec


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    Create a .env file for local development
    """

    # === Application ===
    APP_NAME: str = "Elastic IP Controller"
    APP_VERSION: str = "1.0.0"
    ENV: str = "development"  # development, staging, production
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # === API ===
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_PREFIX: str = "/api/v1"

    # === Security ===
    ADMIN_SECRET: str = "change-me-admin-secret"

    # === AWS ===
    AWS_REGION: str = "us-east-1"

    # === Cluster ===
    CLUSTER_NAME: str = "default"
    ADDITIONAL_TAGS: Dict[str, str] = {}

    # === Network ===
    VPC_ID: Optional[str] = None
    PUBLIC_IPV4_POOL: Optional[str] = None  # ipv4pool-ec2-...
    PUBLIC_IPV4_POOL_FALLBACK_ORDER: Optional[FallbackOrder] = None

    # === Retry backoff ===
    BACKOFF_INITIAL_INTERVAL: float = 1.0  # seconds
    BACKOFF_FACTOR: float = 1.5
    BACKOFF_JITTER: float = 1.0
    BACKOFF_STEPS: int = 10
    BACKOFF_MAX_INTERVAL: float = 30.0  # seconds

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def vpc_spec(self) -> VPCSpec:
        """Build the network spec consumed by the address services"""
        pool = None
        if self.PUBLIC_IPV4_POOL or self.PUBLIC_IPV4_POOL_FALLBACK_ORDER:
            pool = ElasticIPPool(
                public_ipv4_pool=self.PUBLIC_IPV4_POOL,
                public_ipv4_pool_fallback_order=self.PUBLIC_IPV4_POOL_FALLBACK_ORDER,
            )
        return VPCSpec(id=self.VPC_ID, elastic_ip_pool=pool)


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance
    Use this to get settings throughout the application
    """
    return Settings()


settings = get_settings()
