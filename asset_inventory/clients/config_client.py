# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""AWS Config client wrapper bound to a single region."""

import asyncio
import functools
from concurrent.futures import Executor
from typing import Any, Callable

from botocore.exceptions import ClientError, BotoCoreError


class AWSAPIError(Exception):
    """Raised when AWS API calls fail.

    The message keeps the AWS error code (e.g. ThrottlingException) so that
    the retry executor can classify it.
    """
    pass


class ConfigServiceClient:
    """
    Async wrapper around a boto3 AWS Config client.
    
    Boto3 calls are blocking; each one runs in a thread pool (the given
    executor, or the event loop's default) so that regions can be collected
    concurrently. Retries are
    left to the caller (see RetryExecutor).
    """
    
    def __init__(self, region: str, config_client: Any, executor: Executor | None = None):
        """
        Initialize with a boto3 ``config`` client.
        
        Args:
            region: AWS region the client is bound to
            config_client: boto3 client for the AWS Config service
            executor: Thread pool for the blocking calls (default: loop default pool)
        """
        self.region = region
        self.config = config_client
        self.executor = executor
    
    async def _call(self, operation_name: str, func: Callable, **kwargs) -> dict[str, Any]:
        """
        Call an AWS Config API in the thread pool.
        
        Args:
            operation_name: API name, used in error messages
            func: Boto3 client method to call
            **kwargs: Keyword arguments for the method
        
        Returns:
            Response from AWS API
        
        Raises:
            AWSAPIError: If the API call fails
        """
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self.executor, functools.partial(func, **kwargs))
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            raise AWSAPIError(f"AWS API error: {error_code} - {str(e)}") from e
        except BotoCoreError as e:
            raise AWSAPIError(f"Boto3 error in {operation_name}: {str(e)}") from e
    
    async def get_discovered_resource_counts(
        self, next_token: str | None = None
    ) -> dict[str, Any]:
        """
        Fetch one page of resource type counts.
        
        Args:
            next_token: Continuation token from the previous page
        
        Returns:
            Response with ``resourceCounts`` and an optional ``nextToken``
        """
        kwargs: dict[str, Any] = {}
        if next_token:
            kwargs["nextToken"] = next_token
        return await self._call(
            "GetDiscoveredResourceCounts",
            self.config.get_discovered_resource_counts,
            **kwargs,
        )
    
    async def list_discovered_resources(
        self, resource_type: str, next_token: str | None = None
    ) -> dict[str, Any]:
        """
        Fetch one page of resource identifiers for a resource type.
        
        Args:
            resource_type: AWS Config resource type (e.g., AWS::EC2::Instance)
            next_token: Continuation token from the previous page
        
        Returns:
            Response with ``resourceIdentifiers`` and an optional ``nextToken``
        """
        kwargs: dict[str, Any] = {"resourceType": resource_type}
        if next_token:
            kwargs["nextToken"] = next_token
        return await self._call(
            "ListDiscoveredResources",
            self.config.list_discovered_resources,
            **kwargs,
        )
    
    async def batch_get_resource_config(
        self, resource_keys: list[dict[str, str]]
    ) -> dict[str, Any]:
        """
        Fetch current configuration items for up to 100 resources.
        
        Args:
            resource_keys: Keys of the form {"resourceType": ..., "resourceId": ...}
        
        Returns:
            Response with ``baseConfigurationItems``
        """
        return await self._call(
            "BatchGetResourceConfig",
            self.config.batch_get_resource_config,
            resourceKeys=resource_keys,
        )
