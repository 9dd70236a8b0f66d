# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Report generation service."""

import logging

from ..models.inventory import InventorySnapshot
from ..models.report import ReportFormat
from .inventory_collector import CollectionError

logger = logging.getLogger(__name__)

# ARNs longer than this are shortened in the details tables
MAX_ARN_LENGTH = 60


class ReportService:
    """
    Service for rendering inventory snapshots.

    Only the snapshot's derived views are used: counts by type, counts by
    region and type, and resources grouped by type. Tables are sorted by
    resource type and region so reports of the same inventory are identical.
    """

    def format_report(
        self,
        snapshot: InventorySnapshot,
        format: ReportFormat,
        include_details: bool = False,
        collection_error: CollectionError | None = None,
    ) -> str:
        """
        Format an inventory in the specified output format.

        Args:
            snapshot: Inventory to render
            format: Output format (JSON or Markdown)
            include_details: Add per-resource tables (Markdown only)
            collection_error: Failed regions to list (Markdown only)

        Returns:
            Formatted report as a string
        """
        if format == ReportFormat.JSON:
            return snapshot.to_json()
        elif format == ReportFormat.MARKDOWN:
            return self._format_as_markdown(snapshot, include_details, collection_error)
        else:
            raise ValueError(f"Unsupported report format: {format}")

    def _format_as_markdown(
        self,
        snapshot: InventorySnapshot,
        include_details: bool,
        collection_error: CollectionError | None,
    ) -> str:
        """
        Format the inventory as Markdown.

        Creates a document with:
        - Header with collection metadata
        - Summary table of resource counts by type
        - One table per region
        - Failed regions, when any
        - Resource details per type (optional)
        """
        logger.info(f"Generating markdown report for {snapshot.resource_count()} resources")
        lines: list[str] = []

        # Title
        lines.append("# AWS Asset Inventory Report")
        lines.append("")
        lines.append(f"**Collected:** {snapshot.collected_at.strftime('%Y-%m-%d %H:%M:%S UTC')}")
        lines.append(f"**Profile:** {snapshot.profile or 'default'}")
        lines.append(f"**Regions:** {', '.join(snapshot.regions)}")
        lines.append(f"**Total Resources:** {snapshot.resource_count()}")
        lines.append("")

        # Summary
        lines.append("## Summary")
        lines.append("")
        counts = snapshot.resource_count_by_type()
        if counts:
            lines.extend(self._count_table(counts))
        else:
            lines.append("No resources found.")
        lines.append("")

        # By region
        lines.append("## By Region")
        lines.append("")
        counts_by_region = snapshot.resource_count_by_region_and_type()
        for region in sorted(counts_by_region):
            lines.append(f"### {region}")
            lines.append("")
            lines.extend(self._count_table(counts_by_region[region]))
            lines.append("")

        if collection_error is not None:
            lines.append("## Collection Errors")
            lines.append("")
            lines.append(
                f"{len(collection_error.failures)} region(s) failed; "
                "their resources are not included in this report."
            )
            lines.append("")
            for failure in collection_error.failures:
                lines.append(f"- **{failure.region}:** {escape_markdown(str(failure.error))}")
            lines.append("")

        if include_details:
            lines.extend(self._details_section(snapshot))

        return "\n".join(lines)

    def _count_table(self, counts: dict[str, int]) -> list[str]:
        """Two-column table of resource type counts, sorted by type."""
        lines = [
            "| Resource Type | Count |",
            "|---------------|-------|",
        ]
        for resource_type in sorted(counts):
            lines.append(f"| {resource_type} | {counts[resource_type]} |")
        return lines

    def _details_section(self, snapshot: InventorySnapshot) -> list[str]:
        """Per-type tables listing every resource."""
        lines = ["## Resource Details", ""]

        grouped = snapshot.resources_by_type()
        if not grouped:
            lines.append("No resources to display.")
            lines.append("")
            return lines

        for resource_type in sorted(grouped):
            resources = grouped[resource_type]
            lines.append(f"### {resource_type} ({len(resources)})")
            lines.append("")
            lines.append("| Name | ID | Region | ARN |")
            lines.append("|------|----|--------|-----|")
            for r in resources:
                lines.append(
                    f"| {escape_markdown(r.resource_name or '-')} "
                    f"| {escape_markdown(r.resource_id)} "
                    f"| {r.region} "
                    f"| {escape_markdown(truncate_arn(r.arn or '-'))} |"
                )
            lines.append("")

        return lines


def escape_markdown(value: str) -> str:
    """Escape table separators and flatten newlines for a Markdown cell."""
    return value.replace("|", "\\|").replace("\n", " ")


def truncate_arn(arn: str) -> str:
    """Shorten long ARNs to MAX_ARN_LENGTH characters."""
    if len(arn) <= MAX_ARN_LENGTH:
        return arn
    return arn[:MAX_ARN_LENGTH - 3] + "..."
