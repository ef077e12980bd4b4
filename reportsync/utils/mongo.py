from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def serialize_document(obj):
    """
    Recursively convert models, enums and datetimes to JSON-safe values
    """
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, datetime):
        return obj.isoformat()

    if isinstance(obj, (list, tuple)):
        return [serialize_document(i) for i in obj]

    if isinstance(obj, dict):
        return {k: serialize_document(v) for k, v in obj.items()}

    return obj


def parse_iso(value):
    """ISO-8601 text (or datetime) -> aware UTC datetime, None when unparseable."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
