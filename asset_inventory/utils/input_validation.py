# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Input validation utilities for region lists.

Regions are checked against the AWS naming pattern before any collection
starts, so a typo fails fast instead of surfacing as a region failure.
"""

import re
from typing import Any
import logging

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when input validation fails."""
    
    def __init__(self, field: str, message: str, value: Any = None):
        """
        Initialize validation error.
        
        Args:
            field: The field that failed validation
            message: Human-readable error message
            value: The invalid value (optional, for logging)
        """
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"Validation error for '{field}': {message}")


class InputValidator:
    """
    Validator for collection inputs.
    
    AWS region codes look like ``us-east-1`` or ``ap-southeast-2``: two
    lowercase letters, a lowercase word and a number, joined by hyphens.
    """
    
    REGION_PATTERN = re.compile(r"^[a-z]{2}-[a-z]+-\d+$")
    
    @classmethod
    def is_valid_region(cls, region: Any) -> bool:
        """Check if a value follows the AWS region naming pattern."""
        return isinstance(region, str) and cls.REGION_PATTERN.match(region) is not None
    
    @classmethod
    def validate_regions(
        cls,
        regions: Any,
        field_name: str = "regions",
    ) -> list[str]:
        """
        Validate a list of region codes.
        
        An empty list is valid; it describes a collection with nothing to do.
        
        Args:
            regions: The value to validate
            field_name: Name of the field (for error messages)
        
        Returns:
            Validated list of regions
        
        Raises:
            ValidationError: If the value is not a list or holds invalid regions
        """
        if regions is None:
            raise ValidationError(field_name, "Field is required")
        
        if isinstance(regions, str) or not isinstance(regions, (list, tuple)):
            raise ValidationError(
                field_name,
                f"Must be an array, got {type(regions).__name__}",
            )
        
        invalid_regions = [r for r in regions if not cls.is_valid_region(r)]
        if invalid_regions:
            logger.error(f"Rejected invalid regions: {invalid_regions}")
            raise ValidationError(
                field_name,
                f"Invalid AWS regions: {invalid_regions}",
                invalid_regions,
            )
        
        return list(regions)
    
    @classmethod
    def parse_regions(cls, value: str | None) -> list[str]:
        """
        Split a comma-separated region string.
        
        Whitespace around entries is stripped and empty entries dropped.
        No pattern check is done here; see validate_regions().
        """
        if not value:
            return []
        return [part.strip() for part in value.split(",") if part.strip()]
