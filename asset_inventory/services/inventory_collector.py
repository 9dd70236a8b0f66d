# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Inventory collector for orchestrating parallel region collection.

This module provides the InventoryCollector class that collects AWS Config
resources across many regions in parallel, tolerates regional failures and
merges the results into one InventorySnapshot.

Each region task posts a single outcome onto a queue. The queue is drained
by the orchestrator once all tasks have finished, so merging into the
snapshot happens in one place and needs no locking.
"""

import asyncio
import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Any, Callable

from ..clients.regional_client_factory import RegionalClientFactory, default_boto_config
from ..config import Settings
from ..models.inventory import InventorySnapshot
from ..models.resource import ResourceRecord
from ..utils.input_validation import InputValidator
from ..utils.retry import (
    DEFAULT_BASE_DELAY_SECONDS,
    DEFAULT_MAX_DELAY_SECONDS,
    DEFAULT_MAX_RETRIES,
    OperationCancelledError,
    RetryExecutor,
)
from .region_collector import ProgressSink, RegionCollectionError, RegionCollector

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 5

ClientFactory = Callable[[str], Any]


@dataclass
class RegionFailure:
    """A region that failed outright, with the error that stopped it."""

    region: str
    error: BaseException

    def __str__(self) -> str:
        return f"[{self.region}] {self.error}"


@dataclass
class RegionOutcome:
    """Result posted by one region task."""

    region: str
    resources: list[ResourceRecord] = field(default_factory=list)
    error: BaseException | None = None


class CollectionError(Exception):
    """Error during multi-region collection.

    Returned next to the snapshot when one or more regions failed. The
    snapshot still holds every resource from the regions that succeeded.
    Failures are listed in the order the outcomes were drained, which is
    not the order the regions were requested in.
    """

    def __init__(self, failures: list[RegionFailure]):
        """
        Initialize collection error.

        Args:
            failures: One entry per failed region
        """
        self.failures = list(failures)
        super().__init__(self._format_message())

    @property
    def regions(self) -> list[str]:
        """Regions that failed."""
        return [f.region for f in self.failures]

    def _format_message(self) -> str:
        if len(self.failures) == 1:
            return str(self.failures[0])
        details = "; ".join(str(f) for f in self.failures)
        return f"{len(self.failures)} regions failed: {details}"


class InventoryCollector:
    """
    Orchestrates inventory collection across regions.

    Runs one RegionCollector per region with at most ``max_concurrency``
    running at once. A failing region never stops its siblings.

    Configuration is plain attributes; they may be changed after
    construction and are read when collect() is called.
    """

    def __init__(
        self,
        profile: str | None,
        client_factory: ClientFactory,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
        max_delay_seconds: float = DEFAULT_MAX_DELAY_SECONDS,
        progress: ProgressSink | None = None,
    ):
        """
        Initialize with a client factory and configuration.

        Args:
            profile: Credentials profile label recorded in the snapshot
            client_factory: Callable returning an AWS Config client for a region
            max_concurrency: Maximum regions collected in parallel (default: 5)
            max_retries: Maximum retries for throttled calls (default: 3)
            base_delay_seconds: Initial backoff delay (default: 0.1)
            max_delay_seconds: Maximum backoff delay (default: 5.0)
            progress: Optional callback receiving progress messages
        """
        self.profile = profile
        self.client_factory = client_factory
        self.max_concurrency = max_concurrency
        self.max_retries = max_retries
        self.base_delay_seconds = base_delay_seconds
        self.max_delay_seconds = max_delay_seconds
        self.progress = progress

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client_factory: ClientFactory | None = None,
        progress: ProgressSink | None = None,
        executor: Executor | None = None,
    ) -> "InventoryCollector":
        """
        Build a collector from application settings.

        Args:
            settings: Loaded Settings
            client_factory: Optional factory; a RegionalClientFactory for the
                            configured profile is created when omitted
            progress: Optional progress callback
            executor: Optional thread pool for boto3 calls, used only when
                      the client factory is created here

        Returns:
            Configured InventoryCollector
        """
        if client_factory is None:
            client_factory = RegionalClientFactory(
                profile=settings.aws_profile,
                boto_config=default_boto_config(
                    connect_timeout=settings.connect_timeout,
                    read_timeout=settings.read_timeout,
                ),
                executor=executor,
            )
        return cls(
            profile=settings.aws_profile,
            client_factory=client_factory,
            max_concurrency=settings.max_concurrency,
            max_retries=settings.max_retries,
            base_delay_seconds=settings.base_delay_seconds,
            max_delay_seconds=settings.max_delay_seconds,
            progress=progress,
        )

    async def collect(
        self,
        regions: list[str],
        cancel_event: asyncio.Event | None = None,
    ) -> tuple[InventorySnapshot, CollectionError | None]:
        """
        Collect resources from all requested regions.

        Args:
            regions: Region codes to collect from (may be empty)
            cancel_event: Optional event; setting it aborts in-flight calls and
                          backoff waits. Outcomes already posted are kept.

        Returns:
            Tuple of the snapshot and a CollectionError, or None if every
            region succeeded

        Raises:
            ValidationError: If any region code is invalid (nothing is collected)
            ValueError: If max_concurrency is less than 1
        """
        regions = InputValidator.validate_regions(regions)
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        snapshot = InventorySnapshot.new(self.profile, regions)
        if not regions:
            logger.info("No regions requested, returning empty inventory")
            return snapshot, None

        logger.info(
            f"Starting collection: regions={regions}, "
            f"max_concurrency={self.max_concurrency}, max_retries={self.max_retries}"
        )

        retry_executor = RetryExecutor(
            max_retries=self.max_retries,
            base_delay_seconds=self.base_delay_seconds,
            max_delay_seconds=self.max_delay_seconds,
        )
        semaphore = asyncio.Semaphore(self.max_concurrency)
        outcomes: asyncio.Queue[RegionOutcome] = asyncio.Queue()

        async def collect_with_semaphore(region: str) -> None:
            async with semaphore:
                outcome = await self._collect_region(region, retry_executor, cancel_event)
            outcomes.put_nowait(outcome)

        await asyncio.gather(*(collect_with_semaphore(region) for region in regions))

        failures: list[RegionFailure] = []
        while not outcomes.empty():
            outcome = outcomes.get_nowait()
            if outcome.error is not None:
                logger.warning(f"Region {outcome.region} failed: {outcome.error}")
                failures.append(RegionFailure(region=outcome.region, error=outcome.error))
                continue
            for resource in outcome.resources:
                snapshot.add_resource(resource)

        logger.info(
            f"Collection complete: {snapshot.resource_count()} resources, "
            f"successful_regions={len(regions) - len(failures)}, "
            f"failed_regions={len(failures)}"
        )

        if failures:
            return snapshot, CollectionError(failures)
        return snapshot, None

    async def _collect_region(
        self,
        region: str,
        retry_executor: RetryExecutor,
        cancel_event: asyncio.Event | None,
    ) -> RegionOutcome:
        """
        Collect a single region, turning every failure into an outcome.

        Returns:
            RegionOutcome with resources on success, or the error on failure
        """
        if cancel_event is not None and cancel_event.is_set():
            return RegionOutcome(
                region=region,
                error=OperationCancelledError(f"collection of {region} cancelled before start"),
            )

        try:
            client = self.client_factory(region)
        except Exception as e:
            logger.error(f"Failed to create AWS Config client for region {region}: {e}")
            return RegionOutcome(region=region, error=e)

        collector = RegionCollector(
            region=region,
            client=client,
            retry_executor=retry_executor,
            progress=self.progress,
            cancel_event=cancel_event,
        )

        try:
            resources = await collector.collect()
        except RegionCollectionError as e:
            if e.partial_resources:
                logger.info(
                    f"Discarding {len(e.partial_resources)} partially collected "
                    f"resources from failed region {region}"
                )
            return RegionOutcome(region=region, resources=e.partial_resources, error=e.cause)
        except Exception as e:
            logger.error(f"Unexpected error collecting region {region}: {e}")
            return RegionOutcome(region=region, error=e)

        return RegionOutcome(region=region, resources=resources)
