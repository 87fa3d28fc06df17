"""Rancher deployment configuration.

Values are taken, in order of precedence, from:
1. Explicitly passed parameters
2. Environment variables (``RANCHER_PASSWORD``, ``RANCHER_PROXY_HOST``)
3. Default values
"""
import os
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("rancher.config")

DEFAULT_PASSWORD = "rancherpassword"
DEFAULT_PROXY_HOST = "http://172.17.0.1:3128"

PASSWORD_ENV = "RANCHER_PASSWORD"
PROXY_HOST_ENV = "RANCHER_PROXY_HOST"


class RancherConfig(BaseModel):
    """Options recognized by the release parameter resolver."""
    bootstrap_password: str = Field(
        default=DEFAULT_PASSWORD,
        description="Bootstrap password of the Rancher Manager admin user"
    )
    proxy_host: str = Field(
        default=DEFAULT_PROXY_HOST,
        description="Proxy used when Rancher Manager runs behind a proxy"
    )

    @field_validator('bootstrap_password', 'proxy_host')
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v

    @classmethod
    def from_env(
        cls,
        bootstrap_password: Optional[str] = None,
        proxy_host: Optional[str] = None,
    ) -> 'RancherConfig':
        """Build the configuration, falling back to environment then defaults."""
        password = bootstrap_password or os.getenv(PASSWORD_ENV) or DEFAULT_PASSWORD
        proxy = proxy_host or os.getenv(PROXY_HOST_ENV) or DEFAULT_PROXY_HOST
        if password != DEFAULT_PASSWORD:
            logger.debug("Using overridden bootstrap password")
        return cls(bootstrap_password=password, proxy_host=proxy)
