"""
HTTP Gateway Dispatcher
=======================
Delivers codes through an HTTP email/SMS gateway.

The gateway is any service accepting a JSON message:
``{"to": ..., "channel": "email"|"sms", "subject": ..., "body": ...}``.
With ``sms_via_email_domain`` set, SMS-channel codes are sent as email to
the carrier's email-to-SMS address instead.
"""

from typing import Optional, Dict
import httpx
import structlog

from tfa_core.challenges.models import Channel
from tfa_core.exceptions import DeliveryError
from .base import DeliveryDispatcher, RecipientResolver
from .phone_utils import sms_gateway_address
from .templates import Message, MessageTemplate

logger = structlog.get_logger(__name__)


class HttpGatewayDispatcher(DeliveryDispatcher):
    """
    Gateway-backed dispatcher.

    Example:
        dispatcher = HttpGatewayDispatcher(
            "https://mail.internal/v1/messages",
            resolver=lookup_address,
            api_key=os.environ["MAIL_GATEWAY_KEY"],
        )
        await dispatcher.initialize()
    """

    name = "http_gateway"

    def __init__(
        self,
        url: str,
        resolver: RecipientResolver,
        template: Optional[MessageTemplate] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        sms_via_email_domain: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            url: Gateway endpoint accepting POSTed messages
            resolver: Looks up the address for a user and channel
            template: Message text
            api_key: Sent as a bearer token
            timeout: HTTP timeout in seconds
            sms_via_email_domain: Email-to-SMS gateway domain for SMS codes
            transport: Custom httpx transport
        """
        super().__init__()
        self.url = url
        self.resolver = resolver
        self.template = template or MessageTemplate()
        self.api_key = api_key
        self.timeout = timeout
        self.sms_via_email_domain = sms_via_email_domain
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        """Create HTTP client with auth."""
        headers: Dict[str, str] = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )
        await super().initialize()

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        await super().close()

    async def build_message(self, user_id: str, channel: Channel, code: str) -> Message:
        """Resolve the recipient and render the message for a channel."""
        try:
            address = await self.resolver(user_id, channel)
        except Exception as e:
            logger.error("Recipient lookup failed", user_id=user_id, channel=channel.value, error=str(e))
            raise DeliveryError(
                "Recipient lookup failed",
                user_id=user_id,
                channel=channel.value,
                details=str(e),
            ) from e
        if not address:
            raise DeliveryError("No address for channel", user_id=user_id, channel=channel.value)

        if channel == Channel.SMS and self.sms_via_email_domain:
            try:
                address = sms_gateway_address(address, self.sms_via_email_domain)
            except ValueError as e:
                raise DeliveryError(str(e), user_id=user_id, channel=channel.value) from e
            message = self.template.render(
                address, Channel.SMS, code, user_id, expire_minutes=self.expire_minutes
            )
            # Carrier gateways take plain email; keep the short SMS text
            return Message(to=address, channel=Channel.EMAIL, subject=None, body=message.body)

        return self.template.render(address, channel, code, user_id, expire_minutes=self.expire_minutes)

    async def send(self, user_id: str, channel: Channel, code: str) -> None:
        if not self._client:
            raise RuntimeError("Dispatcher not initialized")

        message = await self.build_message(user_id, channel, code)
        payload = {
            "to": message.to,
            "channel": message.channel.value,
            "subject": message.subject,
            "body": message.body,
        }

        try:
            response = await self._client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            logger.error(
                "Gateway request failed",
                user_id=user_id,
                channel=channel.value,
                error=str(e),
            )
            raise DeliveryError(
                "Gateway unreachable",
                user_id=user_id,
                channel=channel.value,
                details=str(e),
            ) from e

        if response.is_success:
            logger.info(
                "Code handed to gateway",
                user_id=user_id,
                channel=channel.value,
                via=message.channel.value,
                status_code=response.status_code,
            )
            return

        logger.warning(
            "Gateway rejected message",
            user_id=user_id,
            channel=channel.value,
            status_code=response.status_code,
        )
        raise DeliveryError(
            "Gateway rejected message",
            user_id=user_id,
            channel=channel.value,
            status_code=response.status_code,
            details=response.text,
        )
