"""Operation result types and status enums.

Standardized result types for channel operations, including the status
enum, the result dataclass and classifiers for messaging API failures.
"""

from infrastructure.operations.classifiers import (
    classify_http_error,
    classify_response,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "classify_http_error",
    "classify_response",
]
