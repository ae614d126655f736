"""JSON-safe conversion of state snapshots before they hit a JSON column."""

import json
from typing import Any


def to_json_safe(value: Any) -> Any:
    """Round-trip ``value`` through JSON, stringifying unknown types.

    Uses the same canonical form as checksum computation
    (``sort_keys=True, default=str``).
    """
    return json.loads(json.dumps(value, sort_keys=True, default=str))
