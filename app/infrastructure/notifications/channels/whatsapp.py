"""WhatsApp channel implementation using the Cloud API."""

from typing import Sequence, TYPE_CHECKING

import requests
import structlog
from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.exceptions import ChannelConfigurationError
from infrastructure.notifications.models import TemplateKind
from infrastructure.notifications.parameters import arity_of
from infrastructure.operations import (
    OperationResult,
    classify_http_error,
    classify_response,
)
from integrations.whatsapp.client import (
    build_template_payload,
    extract_message_id,
    post_template_message,
)

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = structlog.get_logger()


class WhatsAppChannel(NotificationChannel):
    """WhatsApp template message channel.

    Sends approved template messages through the Graph API ``/messages``
    endpoint. Addresses are international numbers without a leading +.
    """

    def __init__(self, settings: "Settings"):
        """Initialize the WhatsApp channel.

        Args:
            settings: Settings instance with whatsapp configuration.
        """
        self._api_url = settings.whatsapp.WHATSAPP_API_URL
        self._access_token = settings.whatsapp.WHATSAPP_ACCESS_TOKEN
        self._language_code = settings.whatsapp.WHATSAPP_TEMPLATE_LANGUAGE
        self._timeout = settings.whatsapp.WHATSAPP_TIMEOUT_SECONDS
        logger.info("initialized_whatsapp_channel", api_url=self._api_url)

    @property
    def channel_name(self) -> str:
        """Channel identifier."""
        return "whatsapp"

    def ensure_configured(self) -> None:
        if not self._api_url:
            raise ChannelConfigurationError("WHATSAPP_API_URL is missing")
        if not self._access_token:
            raise ChannelConfigurationError("WHATSAPP_ACCESS_TOKEN is missing")

    def send(
        self,
        address: str,
        template_kind: TemplateKind,
        parameters: Sequence[str],
    ) -> OperationResult:
        """Send a template message to one address.

        Args:
            address: Recipient number (digits, country code first).
            template_kind: Template to send.
            parameters: Body parameters in template order.

        Returns:
            OperationResult with the provider message id on success.
        """
        expected = arity_of(template_kind)
        if len(parameters) != expected:
            return OperationResult.permanent_error(
                message=(
                    f"Template {template_kind.value} takes {expected} parameters, "
                    f"got {len(parameters)}"
                ),
                error_code="ARITY_MISMATCH",
            )

        if not address or not address.isdigit():
            return OperationResult.permanent_error(
                message=f"Address is not an international phone number: {address!r}",
                error_code="INVALID_ADDRESS",
            )

        payload = build_template_payload(
            phone_number=address,
            template_name=template_kind.value,
            parameters=parameters,
            language_code=self._language_code,
        )

        try:
            response = post_template_message(
                self._api_url, self._access_token, payload, timeout=self._timeout
            )
        except requests.RequestException as e:
            logger.warning(
                "whatsapp_request_failed",
                address=address,
                template=template_kind.value,
                error=str(e),
            )
            return classify_http_error(e)

        if not response.ok:
            result = classify_response(response)
            logger.warning(
                "whatsapp_send_rejected",
                address=address,
                template=template_kind.value,
                status_code=response.status_code,
                error_code=result.error_code,
            )
            return result

        try:
            message_id = extract_message_id(response.json())
        except ValueError:
            message_id = None

        logger.info(
            "whatsapp_message_sent",
            address=address,
            template=template_kind.value,
            message_id=message_id,
        )
        return OperationResult.success(
            data={"message_id": message_id},
            message=f"Sent {template_kind.value} to {address}",
        )

    def health_check(self) -> OperationResult:
        """Check WhatsApp channel configuration.

        Returns:
            OperationResult indicating channel health.
        """
        try:
            self.ensure_configured()
        except ChannelConfigurationError as e:
            return OperationResult.permanent_error(
                message=str(e),
                error_code="NOT_CONFIGURED",
            )

        return OperationResult.success(
            message="WhatsApp channel configured",
            data={"api_url": self._api_url},
        )
