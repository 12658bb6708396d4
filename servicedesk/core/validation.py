from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping

from pydantic import TypeAdapter, ValidationError

from servicedesk.core.schema import RequestRecord
from servicedesk.domain import MalformedRecord

_TIMESTAMP = TypeAdapter(datetime)


@dataclass
class ParsedRecords:
    records: list[RequestRecord] = field(default_factory=list)
    malformed: list[MalformedRecord] = field(default_factory=list)


def _describe(error: ValidationError) -> str:
    parts: list[str] = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "record"
        parts.append(f"{location}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


def _raw_created_at(row: Mapping[str, Any]) -> datetime | None:
    raw = row.get("createdAt", row.get("created_at"))
    if raw is None or raw == "":
        return None
    try:
        return _TIMESTAMP.validate_python(raw)
    except ValidationError:
        return None


def parse_record(row: RequestRecord | Mapping[str, Any]) -> RequestRecord:
    if isinstance(row, RequestRecord):
        return row
    return RequestRecord.model_validate(dict(row))


def parse_records(rows: Iterable[RequestRecord | Mapping[str, Any]], *, offset: int = 0) -> ParsedRecords:
    """Validate raw store rows, keeping input order and collecting rejects.

    A rejected row keeps its ``createdAt`` when that value is still a valid
    timestamp, so callers can place the diagnostic in a period window.
    """

    parsed = ParsedRecords()
    for position, row in enumerate(rows, start=offset):
        if not isinstance(row, (RequestRecord, Mapping)):
            parsed.malformed.append(
                MalformedRecord(position=position, record_id=None, reason=f"unexpected row type {type(row).__name__}")
            )
            continue
        try:
            parsed.records.append(parse_record(row))
        except ValidationError as exc:
            raw_id = row.get("id") if isinstance(row, Mapping) else None
            parsed.malformed.append(
                MalformedRecord(
                    position=position,
                    record_id=None if raw_id is None else str(raw_id),
                    reason=_describe(exc),
                    created_at=_raw_created_at(row) if isinstance(row, Mapping) else None,
                )
            )
    return parsed
