# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Factory for creating and caching regional AWS Config clients."""

import logging
from concurrent.futures import Executor

import boto3
from botocore.config import Config

from .config_client import ConfigServiceClient

logger = logging.getLogger(__name__)


def default_boto_config(connect_timeout: int = 10, read_timeout: int = 60) -> Config:
    """
    Build the botocore configuration shared by all regional clients.

    Botocore's own retries are limited to a single attempt; throttling is
    retried by RetryExecutor so that the retry ceiling is applied once.
    """
    return Config(
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={
            'total_max_attempts': 1,
            'mode': 'standard'
        }
    )


class RegionalClientFactory:
    """
    Factory for creating and caching regional AWS Config clients.

    Every region gets its own client (and its own endpoint). Clients are
    reused within the factory's lifetime when the same region is requested
    again.
    """

    def __init__(
        self,
        profile: str | None = None,
        boto_config: Config | None = None,
        executor: Executor | None = None,
    ):
        """
        Initialize with credentials profile and boto3 config.

        Args:
            profile: Shared credentials profile name. None uses the default
                     credential chain.
            boto_config: Optional botocore Config applied to all clients.
                        If None, default_boto_config() is used.
            executor: Optional thread pool for the blocking boto3 calls of
                      every client. None uses the event loop's default pool.
        """
        self._profile = profile
        self._boto_config = boto_config
        self._executor = executor
        self._clients: dict[str, ConfigServiceClient] = {}

        logger.debug(f"RegionalClientFactory initialized with profile={profile}")

    @property
    def profile(self) -> str | None:
        """Get the credentials profile."""
        return self._profile

    @property
    def boto_config(self) -> Config | None:
        """Get the boto3 configuration."""
        return self._boto_config

    @property
    def executor(self) -> Executor | None:
        """Get the thread pool handed to each client."""
        return self._executor

    def __call__(self, region: str) -> ConfigServiceClient:
        """Allow the factory to be passed wherever a client factory callable is expected."""
        return self.get_client(region)

    def get_client(self, region: str) -> ConfigServiceClient:
        """
        Get or create an AWS Config client for the specified region.

        Args:
            region: AWS region code (e.g., "us-east-1", "eu-west-1")

        Returns:
            ConfigServiceClient bound to the specified region

        Raises:
            botocore.exceptions.ProfileNotFound: If the profile does not exist
            botocore.exceptions.BotoCoreError: If the client cannot be created
        """
        if region in self._clients:
            logger.debug(f"Reusing cached client for region {region}")
            return self._clients[region]

        logger.info(f"Creating new AWS Config client for region {region}")
        session = boto3.Session(profile_name=self._profile, region_name=region)
        config_client = session.client(
            'config',
            config=self._boto_config or default_boto_config(),
        )
        client = ConfigServiceClient(
            region=region,
            config_client=config_client,
            executor=self._executor,
        )

        self._clients[region] = client

        return client
