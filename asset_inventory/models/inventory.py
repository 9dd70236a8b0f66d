# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Inventory snapshot data model.

This module contains the InventorySnapshot model that holds all resources
collected in one run, along with the grouping and counting views consumed
by the report generator.
"""

from collections import Counter
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from .resource import ResourceRecord


class InventorySnapshot(BaseModel):
    """
    Point-in-time inventory of AWS resources across regions.

    The snapshot is created empty when a collection run starts, appended to
    by the collector as region results are merged, and treated as read-only
    once it is handed back to the caller.

    Derived views are recomputed on every call; they are cheap compared to
    collection and always reflect the current resource list.
    """

    model_config = ConfigDict(populate_by_name=True)

    collected_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        alias="collectedAt",
        description="Timestamp when collection started (UTC)",
    )
    profile: str = Field(
        default="",
        description="Credentials profile used for collection (empty for default chain)",
    )
    regions: list[str] = Field(default_factory=list, description="Regions requested")
    resources: list[ResourceRecord] = Field(
        default_factory=list, description="All resources collected, in merge order"
    )

    @classmethod
    def new(cls, profile: str | None, regions: list[str]) -> "InventorySnapshot":
        """Create an empty snapshot for a collection run."""
        return cls(profile=profile or "", regions=list(regions))

    def add_resource(self, resource: ResourceRecord) -> None:
        """Append a resource to the inventory."""
        self.resources.append(resource)

    def resource_count(self) -> int:
        """Total number of resources in the inventory."""
        return len(self.resources)

    def resource_count_by_type(self) -> dict[str, int]:
        """Map of resource type to count."""
        return dict(Counter(r.resource_type for r in self.resources))

    def resource_count_by_region(self) -> dict[str, int]:
        """Map of region to count."""
        return dict(Counter(r.region for r in self.resources))

    def resource_count_by_region_and_type(self) -> dict[str, dict[str, int]]:
        """Nested map of region to resource type to count."""
        counts: dict[str, dict[str, int]] = {}
        for r in self.resources:
            by_type = counts.setdefault(r.region, {})
            by_type[r.resource_type] = by_type.get(r.resource_type, 0) + 1
        return counts

    def resources_by_type(self) -> dict[str, list[ResourceRecord]]:
        """Resources grouped by type, keeping collection order within a group."""
        grouped: dict[str, list[ResourceRecord]] = {}
        for r in self.resources:
            grouped.setdefault(r.resource_type, []).append(r)
        return grouped

    def to_json(self, indent: int = 2) -> str:
        """
        Serialize the inventory to JSON.

        Keys use the camelCase names of the AWS Config API; unset optional
        fields are omitted.

        Returns:
            Indented JSON document
        """
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)

    @classmethod
    def from_json(cls, data: str | bytes) -> "InventorySnapshot":
        """
        Load an inventory previously written by to_json().

        Raises:
            pydantic.ValidationError: If the document is not a valid inventory
        """
        return cls.model_validate_json(data)
