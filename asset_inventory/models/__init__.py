"""Data models for AWS Asset Inventory."""

from .resource import ResourceRecord, decode_configuration
from .inventory import InventorySnapshot
from .report import ReportFormat

__all__ = [
    "ResourceRecord",
    "decode_configuration",
    "InventorySnapshot",
    "ReportFormat",
]
