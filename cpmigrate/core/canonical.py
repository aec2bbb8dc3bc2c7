"""
Compact JSON encoding for checkpoint records.

Key and value bytes on the checkpoint topic are compared by the broker's
compaction, so the same record must always encode to the same bytes.
"""

import json
from typing import Any


def compact_json_str(obj: Any) -> str:
    """
    Compact JSON string.

    - separators remove whitespace
    - ensure_ascii=False keeps UTF-8 text as is
    - dict insertion order is preserved; callers order fields themselves

    Control characters (tab, newline) are always escaped, so the output never
    contains a literal tab or newline.
    """
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


def compact_json_bytes(obj: Any) -> bytes:
    """Same as compact_json_str but UTF-8 encoded."""
    return compact_json_str(obj).encode("utf-8")
