"""Operation status enumeration.

Status codes used to classify the outcome of a channel operation (one
template send, one health check).
"""

from enum import Enum


class OperationStatus(Enum):
    """Status codes for operation results.

    Attributes:
        SUCCESS: Operation completed successfully
        TRANSIENT_ERROR: Network failure, timeout, rate limit or server error
        PERMANENT_ERROR: Rejected request (bad address, template mismatch)
        UNAUTHORIZED: The messaging API refused the credential for this call
        NOT_FOUND: Endpoint or template not found
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
