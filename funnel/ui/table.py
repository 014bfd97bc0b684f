# =============================================================================
# File Table View-Model
# =============================================================================
#
# Turns FileRecords into rows for the "Recent Files" table:
#   - newest upload first
#   - human-readable size and date
#   - status badge style
#   - which row actions are enabled
#
# Analysis / Model links are enabled only when the record carries that
# result. Download is enabled only for completed records.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from funnel.models.responses import FileRecord

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")

STATUS_BADGES = {
    "processing": "badge-processing",
    "completed": "badge-completed",
    "failed": "badge-failed",
}
DEFAULT_BADGE = "badge-unknown"


@dataclass
class FileRow:
    id: str
    name: str
    status: str
    badge_class: str
    created: str
    size: str
    row_count: int
    column_count: int
    download_id: str | None
    download_filename: str
    can_download: bool
    has_analysis: bool
    has_model: bool
    error_message: str | None


def format_file_size(num_bytes: int) -> str:
    """
    Base-1024 size with up to two decimals.

    >>> format_file_size(0)
    '0 Bytes'
    >>> format_file_size(1536)
    '1.5 KB'
    """
    if num_bytes <= 0:
        return "0 Bytes"
    value = float(num_bytes)
    exponent = 0
    while value >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[exponent]}"


def format_date(value: datetime | None) -> str:
    """`Jun 29, 2024, 03:05 PM` style; empty when unknown."""
    if value is None:
        return ""
    return value.strftime("%b %d, %Y, %I:%M %p")


def status_badge(status: str | None) -> str:
    return STATUS_BADGES.get(status, DEFAULT_BADGE)


def _present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, dict)):
        return bool(value)
    return True


def build_row(record: FileRecord) -> FileRow:
    name = record.csv_filename or record.original_filename or record.id
    return FileRow(
        id=record.id,
        name=name,
        status=record.status or "unknown",
        badge_class=status_badge(record.status),
        created=format_date(record.upload_date),
        size=format_file_size(record.file_size),
        row_count=record.row_count,
        column_count=len(record.columns),
        download_id=record.gridfs_file_id,
        download_filename=record.csv_filename or f"{record.id}.csv",
        can_download=record.status == "completed" and record.gridfs_file_id is not None,
        has_analysis=_present(record.financial_analysis),
        has_model=_present(record.financial_model),
        error_message=record.error_message,
    )


def build_rows(records: list[FileRecord]) -> list[FileRow]:
    """Rows sorted by upload date, newest first; undated records last."""
    dated = sorted(
        (r for r in records if r.upload_date is not None),
        key=lambda r: r.upload_date,
        reverse=True,
    )
    ordered = dated + [r for r in records if r.upload_date is None]
    return [build_row(r) for r in ordered]
