"""
Message Templates
=================
Renders the email/SMS text that carries a code.
"""

from dataclasses import dataclass
from typing import Optional

from tfa_core.challenges.models import Channel

DEFAULT_SUBJECT = "Your authentication code"
DEFAULT_EMAIL_BODY = (
    "Your authentication code is: {code}\n\n"
    "This code expires in {expire} minutes. "
    "If you did not try to log in, you can ignore this message."
)
# Kept under one GSM-7 segment
DEFAULT_SMS_BODY = "Your code is {code}. Expires in {expire} min."


@dataclass
class Message:
    """A rendered message ready for a transport."""
    to: str
    channel: Channel
    subject: Optional[str]
    body: str


@dataclass
class MessageTemplate:
    """
    Subject and bodies with ``{code}``, ``{expire}`` (minutes) and
    ``{user}`` placeholders.
    """
    subject: str = DEFAULT_SUBJECT
    email_body: str = DEFAULT_EMAIL_BODY
    sms_body: str = DEFAULT_SMS_BODY
    expire_minutes: int = 5

    def render(
        self,
        to: str,
        channel: Channel,
        code: str,
        user_id: str = "",
        expire_minutes: Optional[int] = None,
    ) -> Message:
        """Render for a channel; ``expire_minutes`` overrides the template default."""
        expire = expire_minutes if expire_minutes is not None else self.expire_minutes
        values = {"code": code, "expire": expire, "user": user_id}
        if channel == Channel.SMS:
            return Message(to=to, channel=channel, subject=None, body=self.sms_body.format(**values))
        return Message(
            to=to,
            channel=channel,
            subject=self.subject.format(**values),
            body=self.email_body.format(**values),
        )
