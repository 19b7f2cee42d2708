import json
from datetime import timedelta
from typing import Any, List, Optional

from auth.auth import GUEST_USERNAME, is_valid_principal_name

from .errors import BadRequest

WILDCARD_SESSION_KEY = "*"


def validate_principal_name(name: Optional[str]) -> str:
    if not name or name == GUEST_USERNAME or not is_valid_principal_name(name):
        raise BadRequest("Invalid or missing user name")
    return name


def parse_ttl(ttl: Any, default: timedelta) -> timedelta:
    """Turn a TTL in seconds into a timedelta. None means `default`."""
    if ttl is None:
        return default
    # bool is an int subclass
    if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl < 1:
        raise BadRequest("Invalid or missing ttl")
    return timedelta(seconds=ttl)


def parse_session_keys(payload: Any) -> List[str]:
    """
    Validate a bulk-delete body of the form {"keys": [<session id>, ...]}.

    The whole list is checked before anything is returned, so a bad element
    anywhere rejects the request.
    """
    keys = payload.get("keys") if isinstance(payload, dict) else None
    if not isinstance(keys, list) or not all(isinstance(key, str) for key in keys):
        raise BadRequest("Bad/missing keys")
    return list(keys)


def decode_bulk_payload(raw: bytes) -> Any:
    """
    Decode a raw bulk-delete body. An empty body decodes to None.

    Undecodable bytes are rejected the same way as a body without keys.
    """
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        raise BadRequest("Bad/missing keys") from e
