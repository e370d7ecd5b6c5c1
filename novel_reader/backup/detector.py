from __future__ import annotations

import json
from typing import Any, Union


def is_foreign(data: Union[bytes, str]) -> bool:
    """
    True when the payload looks like a QuickNovel datastore dump: a top-level
    object holding a ``datastore`` object that has a ``_String`` bucket.

    Only the shape is inspected. Anything unparseable is reported as native so
    the native decoder gets to raise the format error.
    """
    try:
        text = data if isinstance(data, str) else bytes(data).decode("utf-8-sig")
        payload: Any = json.loads(text)
    except (UnicodeDecodeError, ValueError):
        return False
    if not isinstance(payload, dict):
        return False
    datastore = payload.get("datastore")
    return isinstance(datastore, dict) and "_String" in datastore
