"""Notification channel abstract base class.

Every outbound messaging channel implements this interface.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from infrastructure.notifications.models import TemplateKind
from infrastructure.operations import OperationResult


class NotificationChannel(ABC):
    """Abstract base class for template messaging channels.

    A channel sends one pre-approved template message to one address.
    The dispatcher owns fan-out and aggregation; the channel only knows
    how to talk to its provider.

    Example Implementation:
        class LoggingChannel(NotificationChannel):

            @property
            def channel_name(self) -> str:
                return "log"

            def ensure_configured(self) -> None:
                pass

            def send(self, address, template_kind, parameters):
                logger.info("template_message", address=address)
                return OperationResult.success()

            def health_check(self):
                return OperationResult.success()
    """

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Channel identifier used in logs (e.g. ``whatsapp``)."""
        pass

    @abstractmethod
    def ensure_configured(self) -> None:
        """Check the channel has the endpoint and credential it needs.

        Raises:
            ChannelConfigurationError: the channel cannot send to anyone
        """
        pass

    @abstractmethod
    def send(
        self,
        address: str,
        template_kind: TemplateKind,
        parameters: Sequence[str],
    ) -> OperationResult:
        """Send one template message to one address.

        Provider failures should come back as a failed OperationResult.
        The dispatcher also tolerates exceptions and records them as that
        recipient's failure.

        Args:
            address: Normalized recipient address
            template_kind: Template to send
            parameters: Ordered body parameters, exactly the template's arity

        Returns:
            OperationResult with the provider message id in ``data`` on success
        """
        pass

    @abstractmethod
    def health_check(self) -> OperationResult:
        """Check channel configuration and connectivity."""
        pass
