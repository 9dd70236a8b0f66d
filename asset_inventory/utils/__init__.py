"""Utility modules for AWS Asset Inventory."""

from .input_validation import InputValidator, ValidationError
from .retry import OperationCancelledError, RetryExecutor, is_retryable

__all__ = [
    "InputValidator",
    "ValidationError",
    "OperationCancelledError",
    "RetryExecutor",
    "is_retryable",
]
