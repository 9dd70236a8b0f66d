# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Report output formats."""

from enum import Enum


class ReportFormat(str, Enum):
    """Supported inventory report formats."""

    JSON = "json"
    MARKDOWN = "markdown"
