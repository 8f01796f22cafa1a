"""One-record-per-line JSON codec for expertise records.

All per-variant validation happens here, so consumers can rely on any
decoded record having every required field of its type.
"""
from __future__ import annotations

import json
from dataclasses import fields
from typing import Any

from mulch.expertise.errors import RecordDecodeError, RecordValidationError
from mulch.expertise.models import (
    RECORD_CLASSES,
    BaseRecord,
    Classification,
    Evidence,
    ExpertiseRecord,
    ExpertiseType,
    parse_timestamp,
)

_ENVELOPE_KEYS = ("classification", "recorded_at", "evidence", "tags", "id")
_EVIDENCE_KEYS = ("commit", "date", "issue", "file")
_LIST_FIELDS = frozenset({"files"})


def _require_str(data: dict[str, Any], key: str, type_name: str) -> str:
    value = data.get(key)
    if value is None:
        raise RecordValidationError(f"{type_name} record is missing required field '{key}'")
    if not isinstance(value, str):
        raise RecordValidationError(f"{type_name} field '{key}' must be a string")
    return value


def _optional_str_list(data: dict[str, Any], key: str) -> list[str] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise RecordValidationError(f"field '{key}' must be a list of strings")
    return list(value)


def _parse_evidence(value: Any) -> Evidence | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise RecordValidationError("field 'evidence' must be an object")
    kwargs: dict[str, str] = {}
    for key in _EVIDENCE_KEYS:
        item = value.get(key)
        if item is None:
            continue
        if not isinstance(item, str):
            raise RecordValidationError(f"evidence field '{key}' must be a string")
        kwargs[key] = item
    return Evidence(**kwargs)


def record_from_dict(data: Any) -> ExpertiseRecord:
    """Build a typed record from a decoded JSON object.

    Raises:
        RecordValidationError: unknown type, unknown classification, or a
            missing/ill-typed field.
    """
    if not isinstance(data, dict):
        raise RecordValidationError("record must be a JSON object")

    raw_type = data.get("type")
    try:
        record_type = ExpertiseType(raw_type)
    except ValueError:
        valid = ", ".join(t.value for t in ExpertiseType)
        raise RecordValidationError(f"unknown record type {raw_type!r} (valid: {valid})") from None
    cls = RECORD_CLASSES[record_type]

    raw_classification = data.get("classification")
    try:
        classification = Classification(raw_classification)
    except ValueError:
        raise RecordValidationError(f"unknown classification {raw_classification!r}") from None

    recorded_at = _require_str(data, "recorded_at", record_type.value)
    try:
        parse_timestamp(recorded_at)
    except ValueError:
        raise RecordValidationError(f"recorded_at is not an ISO-8601 timestamp: {recorded_at!r}") from None

    record_id = data.get("id")
    if record_id is not None and not isinstance(record_id, str):
        raise RecordValidationError("field 'id' must be a string")

    kwargs: dict[str, Any] = {
        "classification": classification,
        "recorded_at": recorded_at,
        "evidence": _parse_evidence(data.get("evidence")),
        "tags": _optional_str_list(data, "tags"),
        "id": record_id,
    }
    for name in cls.required_fields:
        kwargs[name] = _require_str(data, name, record_type.value)
    for name in cls.optional_fields:
        if name in _LIST_FIELDS:
            kwargs[name] = _optional_str_list(data, name)
        else:
            value = data.get(name)
            if value is not None and not isinstance(value, str):
                raise RecordValidationError(f"{record_type.value} field '{name}' must be a string")
            kwargs[name] = value

    known = {"type", *_ENVELOPE_KEYS, *cls.required_fields, *cls.optional_fields}
    kwargs["extra"] = {k: v for k, v in data.items() if k not in known}
    return cls(**kwargs)


def record_to_dict(record: BaseRecord) -> dict[str, Any]:
    """Serialize a record to a plain dict, omitting unset optional fields."""
    out: dict[str, Any] = {"type": record.type.value}
    envelope = {f.name for f in fields(BaseRecord)}
    for f in fields(record):
        if f.name in envelope:
            continue
        value = getattr(record, f.name)
        if value is not None:
            out[f.name] = list(value) if isinstance(value, list) else value
    out["classification"] = record.classification.value
    out["recorded_at"] = record.recorded_at
    if record.evidence is not None:
        out["evidence"] = record.evidence.to_dict()
    if record.tags is not None:
        out["tags"] = list(record.tags)
    if record.id is not None:
        out["id"] = record.id
    for key, value in record.extra.items():
        out.setdefault(key, value)
    return out


def decode_record(line: str) -> ExpertiseRecord:
    """Decode one JSONL line into a record.

    Raises:
        RecordDecodeError: if the line is not JSON or fails validation.
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as exc:
        raise RecordDecodeError(f"invalid JSON: {exc.msg}") from exc
    try:
        return record_from_dict(data)
    except RecordDecodeError:
        raise
    except RecordValidationError as exc:
        raise RecordDecodeError(str(exc)) from exc


def encode_record(record: BaseRecord) -> str:
    """Encode a record as a single line of JSON (no trailing newline)."""
    return json.dumps(record_to_dict(record), ensure_ascii=False, separators=(",", ":"))
