"""Validation and export of collected intelligence.

Consumer-facing helpers for renderers: a structural check on envelope
payloads and serialization of the result cache to JSON or CSV.
"""

import csv
import io
import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .cache import ResultCache

CSV_HEADER = ("Source", "Query", "Found", "Collection Method", "Timestamp")


class ExportFormat(str, Enum):
    """Supported export formats."""

    JSON = "json"
    CSV = "csv"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of an intelligence payload check."""

    valid: bool
    reason: str | None = None


def validate_intelligence(data: Any) -> ValidationResult:
    """Check that an envelope payload is renderable.

    A payload is valid when it is a mapping that names its collection
    method (``collection_method`` or ``collectionMethod``).
    """
    if not isinstance(data, Mapping):
        return ValidationResult(valid=False, reason="Invalid data structure")

    if not (data.get("collection_method") or data.get("collectionMethod")):
        return ValidationResult(valid=False, reason="Missing collection method")

    return ValidationResult(valid=True)


def export_intelligence(cache: ResultCache, format: ExportFormat | str = ExportFormat.JSON) -> str:
    """Serialize every live cache entry.

    Args:
        cache: Cache to export.
        format: ``json`` (envelope per ``source_id:query`` key) or ``csv``.

    Returns:
        Serialized text.

    Raises:
        ValueError: If the format is not supported.
    """
    export_format = ExportFormat(format)
    exported_at = datetime.now(UTC).isoformat()

    rows: dict[str, dict[str, Any]] = {}
    for (source_id, query), envelope in cache.items():
        record = envelope.model_dump(mode="json")
        record["exported_at"] = exported_at
        rows[ResultCache.key(source_id, query)] = record

    if export_format == ExportFormat.JSON:
        return json.dumps(rows, indent=2)
    return _to_csv(rows)


def _to_csv(rows: dict[str, dict[str, Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    for record in rows.values():
        data = record.get("data") or {}
        writer.writerow(
            (
                record.get("source_name") or "Unknown",
                record.get("query") or "Unknown",
                "Yes" if data.get("found") else "No",
                data.get("collection_method") or "Unknown",
                record.get("timestamp") or "Unknown",
            )
        )

    return buffer.getvalue().rstrip("\n")
