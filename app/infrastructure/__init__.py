"""Infrastructure modules for the back-office notification service.

Centralized infrastructure components:
- configuration: Settings management (Settings, WhatsAppSettings, NotificationSettings)
- logging: Structured logging setup and dispatch context (get_module_logger, logger)
- notifications: Template notification dispatch (NotificationDispatcher, NotificationService)
- operations: Operation results and error classification
- services: Dependency injection services (SettingsDep, NotificationServiceDep, get_settings)
"""

# Logging
from infrastructure.logging import get_module_logger
from infrastructure.logging.setup import logger

# Operations
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    # Logging
    "get_module_logger",
    "logger",
    # Operations
    "OperationResult",
    "OperationStatus",
]
