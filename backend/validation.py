import re
from datetime import datetime, timezone

from flask import request

from errors import BadRequest


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object")
    return data


def require_path_id(value, label):
    if not value or not str(value).strip():
        raise BadRequest(f"{label} is required")
    return value


def require_bool(body, field):
    value = body.get(field)
    # bool is checked exactly; 0/1 and "true" are rejected
    if not isinstance(value, bool):
        raise BadRequest(f"{field} must be a boolean")
    return value


def optional_bool(body, field, default=False):
    value = body.get(field)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise BadRequest(f"{field} must be a boolean")
    return value


def require_text(body, *fields, message=None):
    values = []
    for field in fields:
        value = body.get(field)
        if not isinstance(value, str) or not value.strip():
            raise BadRequest(message or f"{field} is required")
        values.append(value.strip())
    return values[0] if len(values) == 1 else values


def parse_positive_int(raw, field, default=None):
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise BadRequest(f"{field} must be a positive integer")
    if value < 1:
        raise BadRequest(f"{field} must be a positive integer")
    return value


def parse_optional_int(raw, field):
    if raw is None or str(raw).strip() == "":
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        raise BadRequest(f"Invalid {field} value")


def parse_optional_float(raw, field):
    if raw is None or str(raw).strip() == "":
        return None
    try:
        return float(str(raw).strip())
    except ValueError:
        raise BadRequest(f"Invalid {field} value")


def parse_datetime(raw, field):
    """Parse an ISO-8601 timestamp into a naive UTC datetime."""
    if not isinstance(raw, str) or not raw.strip():
        raise BadRequest(f"{field} is required")
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        value = datetime.fromisoformat(text)
    except ValueError:
        raise BadRequest(f"{field} must be an ISO-8601 datetime")
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def split_list(raw):
    """Accept a list or a comma/newline separated string."""
    if raw is None:
        return []
    if isinstance(raw, list):
        items = raw
    elif isinstance(raw, str):
        items = re.split(r"[,\n]", raw)
    else:
        raise BadRequest("Expected a list or a comma separated string")
    return [str(item).strip() for item in items if str(item).strip()]
