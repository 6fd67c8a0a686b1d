"""Wire serialization for outgoing messages.

Uses the model's own pydantic serializer so process-wide ``json`` settings
have no influence on what is sent.
"""

from slack_log_sink.models.slack import OutgoingMessage


def serialize_message(message: OutgoingMessage) -> str:
    """Serialize a message to indented JSON, omitting unset optional members."""
    return message.model_dump_json(indent=2, exclude_none=True)
