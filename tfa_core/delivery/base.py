"""
Delivery Dispatcher Interface
=============================
Hands a one-time code to an email or SMS transport.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional
import structlog

from tfa_core.challenges.models import Channel

logger = structlog.get_logger(__name__)

# Looks up where to send a code: (user_id, channel) -> address or None
RecipientResolver = Callable[[str, Channel], Awaitable[Optional[str]]]


class DeliveryDispatcher(ABC):
    """
    Abstract base class for code delivery.

    Implementations raise DeliveryError on any failure; the engine never
    inspects transport details.
    """

    name: str = "base"

    def __init__(self):
        self._is_initialized = False
        # Minutes shown in messages; set by the engine from its TTL
        self.expire_minutes: Optional[int] = None

    def set_expire_minutes(self, minutes: int) -> None:
        """Tell the dispatcher how long issued codes stay valid."""
        self.expire_minutes = minutes

    async def initialize(self) -> None:
        """Initialize the dispatcher (e.g., create HTTP clients)."""
        self._is_initialized = True
        logger.info("Delivery dispatcher initialized", dispatcher=self.name)

    async def close(self) -> None:
        """Clean up resources (e.g., close HTTP clients)."""
        self._is_initialized = False
        logger.info("Delivery dispatcher closed", dispatcher=self.name)

    @abstractmethod
    async def send(self, user_id: str, channel: Channel, code: str) -> None:
        """
        Deliver a code.

        Args:
            user_id: Recipient user
            channel: Email or SMS
            code: Plain code

        Raises:
            DeliveryError: If the code could not be handed to the transport
        """
        pass
