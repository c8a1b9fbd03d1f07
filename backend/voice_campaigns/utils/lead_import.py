"""
Lead CSV Import
Parses uploaded lead sheets into validated rows
"""
import csv
import io
import re
from dataclasses import dataclass, field
from typing import List, Optional

REQUIRED_COLUMNS = ("first_name", "last_name", "contact_no")

# Accepted aliases for the contact number column
PHONE_ALIASES = ("contact_no", "phone_number", "phone")


@dataclass
class LeadRow:
    first_name: str
    last_name: str
    phone_number: str


@dataclass
class RowError:
    row: int
    error: str


@dataclass
class ParsedLeads:
    rows: List[LeadRow] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)
    duplicates_skipped: int = 0


def normalize_phone_number(raw: str) -> str:
    """
    Strip formatting from a phone number, keeping a leading '+'.

    Raises:
        ValueError: fewer than 7 digits remain
    """
    cleaned = re.sub(r'[\s\-\(\)\.]', '', raw.strip())
    digits = cleaned[1:] if cleaned.startswith('+') else cleaned
    if not digits.isdigit():
        raise ValueError(f"Invalid phone number: {raw}")
    if len(digits) < 7:
        raise ValueError(f"Phone number too short: {raw}")
    return cleaned


def decode_upload(content: bytes) -> str:
    """Decode an uploaded file, trying the encodings spreadsheets commonly export."""
    for encoding in ['utf-8-sig', 'utf-8', 'cp1252', 'latin-1']:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ValueError("Unable to decode CSV file. Please use UTF-8 encoding.")


def _column(row: dict, names) -> Optional[str]:
    for key, value in row.items():
        if key and key.lower().strip() in names:
            return value.strip() if value else None
    return None


def parse_leads_csv(text: str) -> ParsedLeads:
    """
    Parse a lead sheet with columns first_name, last_name, contact_no.

    Rows missing a required value or carrying an invalid number are
    reported with their row number (header is row 1). Numbers repeated
    within the file are skipped.

    Raises:
        ValueError: header row lacks a required column
    """
    reader = csv.DictReader(io.StringIO(text))
    headers = {h.lower().strip() for h in (reader.fieldnames or []) if h}
    missing = [
        name for name in ("first_name", "last_name")
        if name not in headers
    ]
    if not any(alias in headers for alias in PHONE_ALIASES):
        missing.append("contact_no")
    if missing:
        raise ValueError(f"CSV must contain columns: {', '.join(REQUIRED_COLUMNS)}")

    result = ParsedLeads()
    seen: set[str] = set()

    for row_num, row in enumerate(reader, start=2):
        first_name = _column(row, ("first_name",))
        last_name = _column(row, ("last_name",))
        phone_raw = _column(row, PHONE_ALIASES)

        if not (first_name and last_name and phone_raw):
            result.errors.append(RowError(row=row_num, error="Missing first_name, last_name or contact_no"))
            continue

        try:
            phone = normalize_phone_number(phone_raw)
        except ValueError as e:
            result.errors.append(RowError(row=row_num, error=str(e)))
            continue

        if phone in seen:
            result.duplicates_skipped += 1
            continue
        seen.add(phone)

        result.rows.append(LeadRow(first_name=first_name, last_name=last_name, phone_number=phone))

    return result
