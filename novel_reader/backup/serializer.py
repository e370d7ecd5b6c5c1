"""
JSON codec for the native backup document.

Records stay plain dataclasses; pydantic ``TypeAdapter``s do the validation
and dumping using ``RECORD_CONFIG`` (camelCase keys, snake_case accepted,
unknown keys ignored). Every field is written, defaults included, so a file
is self-describing. Missing optional keys and explicit nulls fall back to
the dataclass defaults. Anything structurally wrong raises ``FormatError``;
no partially decoded document is ever returned.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Dict, Type, TypeVar, Union

from pydantic import TypeAdapter, ValidationError

from .errors import FormatError
from .models import BackupDocument

T = TypeVar("T")

# Validation errors listed in a FormatError message before truncating.
MAX_REPORTED_ERRORS = 3


@lru_cache(maxsize=None)
def adapter_for(cls: type) -> TypeAdapter:
    return TypeAdapter(cls)


def encode(document: BackupDocument) -> bytes:
    return adapter_for(BackupDocument).dump_json(document, by_alias=True, indent=2)


def decode(data: Union[bytes, str]) -> BackupDocument:
    return record_from_dict(BackupDocument, load_json_object(data))


def load_json_object(data: Union[bytes, str]) -> Dict[str, Any]:
    if isinstance(data, str):
        text = data
    else:
        try:
            text = bytes(data).decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise FormatError(f"Backup is not valid UTF-8: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FormatError(f"Backup is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise FormatError(f"Backup must be a JSON object, got {type(payload).__name__}")
    return payload


def record_to_dict(record: Any) -> Dict[str, Any]:
    return adapter_for(type(record)).dump_python(record, mode="json", by_alias=True)


def record_from_dict(cls: Type[T], payload: Any) -> T:
    """Validate a decoded JSON object into ``cls``; raises ``FormatError``."""
    if not isinstance(payload, dict):
        raise FormatError(f"Expected an object for {cls.__name__}, got {type(payload).__name__}")
    try:
        return adapter_for(cls).validate_python(_drop_nulls(payload))
    except ValidationError as exc:
        raise FormatError(_describe(cls, exc)) from exc


def _drop_nulls(value: Any) -> Any:
    # A null field reads as absent, so the dataclass default applies.
    if isinstance(value, dict):
        return {k: _drop_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_nulls(v) for v in value]
    return value


def _describe(cls: type, exc: ValidationError) -> str:
    errors = exc.errors(include_url=False)
    parts = [
        f"{'.'.join(str(p) for p in err['loc']) or cls.__name__}: {err['msg']}"
        for err in errors[:MAX_REPORTED_ERRORS]
    ]
    if len(errors) > MAX_REPORTED_ERRORS:
        parts.append(f"... {len(errors) - MAX_REPORTED_ERRORS} more")
    return f"Invalid {cls.__name__}: " + "; ".join(parts)
