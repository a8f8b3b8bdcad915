"""Build and parse deploy protocol messages."""

import json
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from deploy_config.models.messages import MESSAGE_TYPES, Envelope, Message, Status
from deploy_config.utils.logging import get_logger

logger = get_logger(__name__)

_MESSAGE_ADAPTER: TypeAdapter[Envelope] = TypeAdapter(Message)


def make_message(
    kind: str,
    data: Any,
    *,
    status: Status = Status.INFO,
    package_name: str = "",
    message: str = "",
    user_id: str = "",
    token: str | None = None,
    conn_id: str = "",
) -> Envelope:
    """Create an envelope of the given kind.

    data may be a payload model or a plain dict; it is validated against
    the shape registered for kind.
    """
    cls = MESSAGE_TYPES.get(kind)
    if cls is None:
        raise ValueError(f"Unknown message type: '{kind}'")
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    return cls.model_validate({
        "status": status,
        "type": kind,
        "packageName": package_name,
        "message": message,
        "userId": user_id,
        "data": data,
        "token": token,
        "connId": conn_id,
    })


def parse_message(text: str | bytes) -> Envelope | None:
    """Parse a raw message.

    Returns None instead of raising when text is not JSON or is not a
    known message shape.
    """
    try:
        raw = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error("message_parse_failed", error=str(e))
        return None

    try:
        return _MESSAGE_ADAPTER.validate_python(raw)
    except ValidationError as e:
        logger.error(
            "message_shape_invalid",
            type=raw.get("type") if isinstance(raw, dict) else None,
            errors=e.error_count(),
        )
        return None
