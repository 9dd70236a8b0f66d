"""Service layer for AWS Asset Inventory."""

from .region_collector import (
    ClientUnavailableError,
    RegionCollectionError,
    RegionCollector,
)
from .inventory_collector import (
    CollectionError,
    InventoryCollector,
    RegionFailure,
    RegionOutcome,
)
from .report_service import ReportService

__all__ = [
    "ClientUnavailableError",
    "RegionCollectionError",
    "RegionCollector",
    "CollectionError",
    "InventoryCollector",
    "RegionFailure",
    "RegionOutcome",
    "ReportService",
]
