"""
Code Delivery
=============
Dispatcher interface, message templates and concrete dispatchers.
"""

from .base import DeliveryDispatcher, RecipientResolver
from .templates import (
    Message,
    MessageTemplate,
    DEFAULT_SUBJECT,
    DEFAULT_EMAIL_BODY,
    DEFAULT_SMS_BODY,
)
from .phone_utils import validate_e164, normalize_phone, sms_gateway_address
from .gateway import HttpGatewayDispatcher
from .console import ConsoleDispatcher

__all__ = [
    # Interface
    "DeliveryDispatcher",
    "RecipientResolver",
    # Templates
    "Message",
    "MessageTemplate",
    "DEFAULT_SUBJECT",
    "DEFAULT_EMAIL_BODY",
    "DEFAULT_SMS_BODY",
    # Phone
    "validate_e164",
    "normalize_phone",
    "sms_gateway_address",
    # Dispatchers
    "HttpGatewayDispatcher",
    "ConsoleDispatcher",
]
