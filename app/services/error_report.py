"""
app/services/error_report.py

CSV report of staged rows that failed validation.
"""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable
from typing import Any

from db.models.import_job import RowValidationStatus

ERROR_REPORT_HEADER = "Row Number,Error Field,Error Message,Original Data"


def _format_record(values: list[Any]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="").writerow(values)
    return buffer.getvalue()


def build_error_report_csv(rows: Iterable[Any]) -> str:
    """
    One line per error of every ERROR row: the row number as-is, then the
    field, message and JSON-encoded raw data quoted with inner quotes
    doubled. Accepts ``ImportJobRow`` objects or equivalents.
    """

    lines = [ERROR_REPORT_HEADER]
    for row in rows:
        if row.validation_status != RowValidationStatus.ERROR:
            continue
        original_data = json.dumps(row.raw_data or {}, ensure_ascii=False, separators=(",", ":"))
        for error in row.errors or []:
            lines.append(
                _format_record(
                    [
                        int(row.row_number),
                        str(error.get("field", "")),
                        str(error.get("message", "")),
                        original_data,
                    ]
                )
            )
    return "\n".join(lines)
