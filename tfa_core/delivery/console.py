"""
Console Dispatcher
==================
Development dispatcher: logs codes instead of sending them.
"""

from collections import OrderedDict, deque
from typing import Deque, Optional
import structlog

from tfa_core.challenges.models import Channel
from tfa_core.exceptions import DeliveryError
from .base import DeliveryDispatcher, RecipientResolver
from .templates import Message, MessageTemplate

logger = structlog.get_logger(__name__)


class ConsoleDispatcher(DeliveryDispatcher):
    """
    Logs every message and keeps the most recent ones in ``outbox``.

    Never use in production: the plain code is written to the log.
    At most ``max_entries`` messages and per-user codes are kept.
    """

    name = "console"

    def __init__(
        self,
        resolver: Optional[RecipientResolver] = None,
        template: Optional[MessageTemplate] = None,
        max_entries: int = 100,
    ):
        super().__init__()
        self.resolver = resolver
        self.template = template or MessageTemplate()
        self.max_entries = max_entries
        self.outbox: Deque[Message] = deque(maxlen=max_entries)
        self._last_codes: "OrderedDict[str, str]" = OrderedDict()

    async def send(self, user_id: str, channel: Channel, code: str) -> None:
        address = user_id
        if self.resolver is not None:
            try:
                address = await self.resolver(user_id, channel) or user_id
            except Exception as e:
                raise DeliveryError(
                    "Recipient lookup failed",
                    user_id=user_id,
                    channel=channel.value,
                    details=str(e),
                ) from e

        message = self.template.render(
            address, channel, code, user_id, expire_minutes=self.expire_minutes
        )
        self.outbox.append(message)
        self._remember(user_id, code)
        logger.info(
            "Console delivery",
            user_id=user_id,
            channel=channel.value,
            to=message.to,
            subject=message.subject,
            body=message.body,
        )

    def _remember(self, user_id: str, code: str) -> None:
        self._last_codes.pop(user_id, None)
        self._last_codes[user_id] = code
        while len(self._last_codes) > self.max_entries:
            self._last_codes.popitem(last=False)

    def last_code(self, user_id: str) -> Optional[str]:
        return self._last_codes.get(user_id)
