# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Region collector for AWS Config resources.

This module provides the RegionCollector class that gathers every resource
AWS Config has recorded in one region:

1. Discover resource types via GetDiscoveredResourceCounts (paginated)
2. List resource identifiers per type via ListDiscoveredResources (paginated)
3. Resolve configuration items via BatchGetResourceConfig, 100 keys at a time

If configuration details cannot be fetched, the affected page falls back to
shallow records built from the listing so collection keeps going.
"""

import asyncio
import functools
import logging
from typing import Any, Callable

from ..models.resource import ResourceRecord, decode_configuration
from ..utils.retry import OperationCancelledError, RetryExecutor

logger = logging.getLogger(__name__)

# BatchGetResourceConfig accepts at most 100 resource keys per request
MAX_BATCH_SIZE = 100

ProgressSink = Callable[[str], None]


class ClientUnavailableError(Exception):
    """Raised when no usable AWS Config client exists for a region."""
    pass


class RegionCollectionError(Exception):
    """Error that aborted collection of a single region.

    Carries the resources of the resource types that were fully collected
    before the failure.
    """

    def __init__(
        self,
        region: str,
        cause: BaseException,
        partial_resources: list[ResourceRecord] | None = None,
    ):
        """
        Initialize region collection error.

        Args:
            region: Region whose collection failed
            cause: Underlying error
            partial_resources: Resources collected before the failure
        """
        super().__init__(f"[{region}] {cause}")
        self.region = region
        self.cause = cause
        self.partial_resources = partial_resources or []


class RegionCollector:
    """
    Collects all AWS Config resources for one region.

    Pagination inside a region is strictly sequential, so for the same API
    responses the output order is always the same: resource types in
    discovery order, resources in listing order.
    """

    def __init__(
        self,
        region: str,
        client: Any,
        retry_executor: RetryExecutor,
        progress: ProgressSink | None = None,
        cancel_event: asyncio.Event | None = None,
    ):
        """
        Initialize with a regional client and retry policy.

        Args:
            region: AWS region code
            client: ConfigServiceClient (or compatible) bound to the region
            retry_executor: Executor applied to every API call
            progress: Optional callback receiving progress messages
            cancel_event: Optional event that aborts in-flight calls and waits
        """
        self.region = region
        self.client = client
        self.retry_executor = retry_executor
        self.progress = progress
        self.cancel_event = cancel_event

    async def collect(self) -> list[ResourceRecord]:
        """
        Collect every resource recorded in the region.

        Returns:
            Resources in discovery order

        Raises:
            RegionCollectionError: If the client is missing, or discovery or
                listing fails after retries
        """
        self._notify(f"[{self.region}] Starting collection")

        if self.client is None:
            raise RegionCollectionError(
                self.region,
                ClientUnavailableError(f"no AWS Config client available for region {self.region}"),
            )

        try:
            resource_types = await self._discover_resource_types()
        except Exception as e:
            raise RegionCollectionError(self.region, e) from e

        self._notify(f"[{self.region}] Found {len(resource_types)} resource types")

        resources: list[ResourceRecord] = []
        for resource_type in resource_types:
            try:
                type_resources = await self._collect_resource_type(resource_type)
            except Exception as e:
                raise RegionCollectionError(self.region, e, resources) from e

            if type_resources:
                self._notify(
                    f"[{self.region}] Collected {len(type_resources)} {resource_type}"
                )
            resources.extend(type_resources)

        self._notify(f"[{self.region}] Completed with {len(resources)} resources")
        return resources

    async def _discover_resource_types(self) -> list[str]:
        """Page through GetDiscoveredResourceCounts and return named resource types."""
        resource_types: list[str] = []
        next_token: str | None = None

        while True:
            response = await self._call(
                "GetDiscoveredResourceCounts",
                self.client.get_discovered_resource_counts,
                next_token,
            )

            for count in response.get("resourceCounts", []):
                resource_type = count.get("resourceType")
                if resource_type:
                    resource_types.append(resource_type)

            next_token = response.get("nextToken")
            if not next_token:
                break

        return resource_types

    async def _collect_resource_type(self, resource_type: str) -> list[ResourceRecord]:
        """
        Collect all resources of one type.

        Each listing page is resolved to configuration items. When that fails
        for a page, the page is kept as shallow records.
        """
        resources: list[ResourceRecord] = []
        next_token: str | None = None

        while True:
            response = await self._call(
                "ListDiscoveredResources",
                self.client.list_discovered_resources,
                resource_type,
                next_token,
            )

            identifiers = response.get("resourceIdentifiers", [])
            if identifiers:
                try:
                    detailed = await self._batch_get_resources(resource_type, identifiers)
                except OperationCancelledError:
                    raise
                except Exception as e:
                    logger.warning(
                        f"[{self.region}] Could not fetch configuration for "
                        f"{len(identifiers)} {resource_type} resources, "
                        f"keeping listing data only: {e}"
                    )
                    resources.extend(self._shallow_records(resource_type, identifiers))
                else:
                    resources.extend(detailed)

            next_token = response.get("nextToken")
            if not next_token:
                break

        return resources

    async def _batch_get_resources(
        self, resource_type: str, identifiers: list[dict[str, Any]]
    ) -> list[ResourceRecord]:
        """Resolve identifiers to full records in batches of MAX_BATCH_SIZE."""
        keys = [
            {"resourceType": resource_type, "resourceId": ri.get("resourceId", "")}
            for ri in identifiers
        ]

        resources: list[ResourceRecord] = []
        for start in range(0, len(keys), MAX_BATCH_SIZE):
            batch = keys[start:start + MAX_BATCH_SIZE]
            response = await self._call(
                "BatchGetResourceConfig",
                self.client.batch_get_resource_config,
                batch,
            )

            unprocessed = response.get("unprocessedResourceKeys") or []
            if unprocessed:
                logger.debug(
                    f"[{self.region}] {len(unprocessed)} {resource_type} keys left unprocessed"
                )

            for item in response.get("baseConfigurationItems", []):
                resources.append(self._detailed_record(resource_type, item))

        return resources

    def _detailed_record(self, resource_type: str, item: dict[str, Any]) -> ResourceRecord:
        """Build a full record from a base configuration item."""
        return ResourceRecord(
            resource_type=item.get("resourceType") or resource_type,
            resource_id=item.get("resourceId", ""),
            resource_name=item.get("resourceName") or None,
            region=self.region,
            availability_zone=item.get("availabilityZone") or None,
            account_id=item.get("accountId") or None,
            arn=item.get("arn") or None,
            configuration=decode_configuration(item.get("configuration")),
        )

    def _shallow_records(
        self, resource_type: str, identifiers: list[dict[str, Any]]
    ) -> list[ResourceRecord]:
        """Build records from listing data only."""
        return [
            ResourceRecord(
                resource_type=resource_type,
                resource_id=ri.get("resourceId", ""),
                resource_name=ri.get("resourceName") or None,
                region=self.region,
            )
            for ri in identifiers
        ]

    async def _call(self, operation_name: str, func: Callable, *args: Any) -> dict[str, Any]:
        """Run one API call through the retry executor."""
        return await self.retry_executor.run(
            functools.partial(func, *args),
            cancel_event=self.cancel_event,
            description=f"[{self.region}] {operation_name}",
        )

    def _notify(self, message: str) -> None:
        """Emit a progress message to the log and the optional sink."""
        logger.debug(message)
        if self.progress is None:
            return
        try:
            self.progress(message)
        except Exception as e:
            logger.warning(f"[{self.region}] Progress callback failed: {e}")
