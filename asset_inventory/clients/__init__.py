"""AWS client wrapper module."""

from .config_client import ConfigServiceClient, AWSAPIError
from .regional_client_factory import RegionalClientFactory, default_boto_config

__all__ = [
    "ConfigServiceClient",
    "AWSAPIError",
    "RegionalClientFactory",
    "default_boto_config",
]
