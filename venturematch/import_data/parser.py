"""
CSV / spreadsheet parsing shared by every bulk upload.

Parses the first row as header, normalizes header names, keeps values as
strings, and reports row-level problems as "Row N: message" strings.
"""

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)

VALID_EXTENSIONS = ["csv", "txt", "xls", "xlsx"]
EXCEL_EXTENSIONS = {"xls", "xlsx"}
DEFAULT_CHUNK_SIZE = 10

_WHITESPACE = re.compile(r"\s+")


@dataclass
class ParseResult:
    """Parsed rows plus the normalized header and row-level errors."""

    rows: List[Dict[str, str]] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class ChunkResult:
    """Outcome of processing one chunk (or the sum of many)."""

    processed: int = 0
    errors: int = 0
    error_messages: List[str] = field(default_factory=list)

    def merge(self, other: "ChunkResult") -> None:
        self.processed += other.processed
        self.errors += other.errors
        self.error_messages.extend(other.error_messages)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processed": self.processed,
            "errors": self.errors,
            "errorMessages": self.error_messages,
        }


def normalize_header(header: str) -> str:
    """'  Company Name ' -> 'company_name'"""
    return _WHITESPACE.sub("_", header.strip().lower())


def file_extension(filename: str) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def validate_file(filename: str, size: int, max_size_mb: int = 5) -> List[str]:
    """Check size and extension before parsing. Returns error strings."""
    errors = []

    if size > max_size_mb * 1024 * 1024:
        errors.append(f"File size exceeds {max_size_mb}MB limit")

    if file_extension(filename) not in VALID_EXTENSIONS:
        errors.append(f"Invalid file type. Expected: {', '.join(VALID_EXTENSIONS)}")

    return errors


def _decode(content: bytes) -> str:
    # Try UTF-8 (with or without BOM), fallback to latin-1
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def parse_csv(content: bytes) -> ParseResult:
    """
    Parse CSV content into header-normalized rows.

    Empty lines are skipped. A row with more fields than the header is
    reported and dropped; a short row is padded with empty strings.
    """
    try:
        text_content = _decode(content)
        reader = csv.reader(io.StringIO(text_content))
        header = next(reader, None)
    except csv.Error as e:
        logger.error(f"CSV parsing error: {e}")
        return ParseResult(errors=[f"CSV parsing error: {e}"])

    if not header:
        return ParseResult(errors=["CSV file is empty"])

    columns = [normalize_header(h) for h in header]
    result = ParseResult(columns=[c for c in columns if c])

    line_number = 1
    try:
        for line_number, values in enumerate(reader, start=2):
            if not values or all(not v.strip() for v in values):
                continue

            if len(values) > len(columns):
                result.errors.append(
                    f"Row {line_number}: Too many fields: expected {len(columns)} fields but parsed {len(values)}"
                )
                continue

            row = {}
            for i, column in enumerate(columns):
                if not column:
                    continue
                value = values[i] if i < len(values) else ""
                row[column] = value.strip()
            result.rows.append(row)
    except csv.Error as e:
        result.errors.append(f"Row {line_number + 1}: {e}")

    return result


def parse_excel(content: bytes) -> ParseResult:
    """Parse the first worksheet of an Excel workbook."""
    import openpyxl
    from io import BytesIO

    try:
        wb = openpyxl.load_workbook(BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        logger.error(f"Excel parsing error: {e}")
        return ParseResult(errors=[f"Failed to parse Excel: {e}"])

    ws = wb.active
    rows_iter = ws.iter_rows(values_only=True)
    header = next(rows_iter, None)

    if not header:
        return ParseResult(errors=["Excel file has no header row"])

    columns = [
        normalize_header(str(c)) if c is not None else f"col_{i}"
        for i, c in enumerate(header)
    ]
    result = ParseResult(columns=columns)

    for row_values in rows_iter:
        if not any(v is not None and str(v).strip() for v in row_values):
            continue
        row = {}
        for i, value in enumerate(row_values):
            if i < len(columns):
                row[columns[i]] = str(value).strip() if value is not None else ""
        result.rows.append(row)

    wb.close()
    return result


def parse_file(filename: str, content: bytes) -> ParseResult:
    """Dispatch on extension: Excel for xls/xlsx, CSV otherwise."""
    if file_extension(filename) in EXCEL_EXTENSIONS:
        return parse_excel(content)
    return parse_csv(content)


def filter_required(
    rows: Iterable[Dict[str, Any]],
    any_of: Sequence[str] = ("email", "full_name", "company_name"),
) -> List[Dict[str, Any]]:
    """
    Keep rows that have at least one of the given fields filled in.

    Dropped rows are not reported individually.
    """
    rows = list(rows)
    kept = [r for r in rows if any(str(r.get(f) or "").strip() for f in any_of)]
    if len(kept) < len(rows):
        logger.info(f"Dropped {len(rows) - len(kept)} rows missing {', '.join(any_of)}")
    return kept


def process_in_chunks(
    items: List[Any],
    processor: Callable[[List[Any]], ChunkResult],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_progress: Optional[Callable[[int, int], None]] = None,
    stop_on_error: bool = False,
) -> ChunkResult:
    """
    Feed items to processor chunk by chunk and sum the results.

    An exception inside a chunk counts every item of that chunk as an
    error. With stop_on_error the remaining chunks are abandoned; chunks
    already processed are never rolled back.
    """
    total = len(items)
    summary = ChunkResult()

    for start in range(0, total, chunk_size):
        chunk = items[start:start + chunk_size]
        try:
            summary.merge(processor(chunk))
        except Exception as e:
            logger.error(f"Exception processing chunk at offset {start}: {e}")
            summary.errors += len(chunk)
            summary.error_messages.append(f"Exception: {e}")
            if stop_on_error:
                remaining = total - start - len(chunk)
                if remaining:
                    logger.warning(f"Aborting import, {remaining} rows not processed")
                break

        done = min(start + chunk_size, total)
        if on_progress:
            on_progress(done, total)
        if total > 50 and done % 50 == 0:
            logger.info(f"Processing: {done}/{total} records")

    return summary
