"""Incoming-webhook payload models.

Field declaration order is the order keys appear on the wire. Optional members
left as None are omitted when serialized.
"""

from pydantic import BaseModel


class AttachmentField(BaseModel):
    """A single title/value pair rendered inside an attachment."""

    title: str
    value: str
    short: bool | None = None


class Attachment(BaseModel):
    """A colored block of fields attached to a message."""

    title: str | None = None
    fallback: str
    color: str
    fields: list[AttachmentField] = []
    mrkdwn_in: list[str] | None = None  # Attachment sections rendered as markup


class OutgoingMessage(BaseModel):
    """The complete payload POSTed to the webhook for one log record."""

    text: str
    channel: str = ""
    username: str = ""
    icon_emoji: str = ""
    attachments: list[Attachment] = []
