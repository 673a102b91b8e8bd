"""
Line codec for visit records.

One record is one line of six comma-separated fields:

    id, patient name, visit date (YYYY-MM-DD), visit type, description, doctor name

A text field containing a comma, a double quote or a line break is wrapped
in double quotes, and every quote inside it is doubled. Decoding walks the
line once, toggling the "inside quotes" state on each lone quote, so a
comma inside a quoted field never splits it.
"""

from __future__ import annotations

import re
import typing
from datetime import datetime

from stairval.notepad import Notepad

from .record import VisitRecord

DATE_FORMAT = "%Y-%m-%d"
FIELD_COUNT = 6

_ID_PATTERN = re.compile(r"^\s*[0-9]+\s*$")
_NEEDS_QUOTING = re.compile(r'[,"\r\n]')


class FormatError(ValueError):
    """A line could not be decoded into a VisitRecord."""


def escape_field(field: str) -> str:
    if _NEEDS_QUOTING.search(field):
        return '"' + field.replace('"', '""') + '"'
    return field


def encode(record: VisitRecord) -> str:
    """Render `record` as a single delimited line (without a line terminator)."""
    return ",".join(
        [
            str(record.record_id),
            escape_field(record.patient_name),
            record.visit_date.isoformat(),
            escape_field(record.visit_type),
            escape_field(record.description),
            escape_field(record.doctor_name),
        ]
    )


def split_fields(line: str) -> list[str]:
    """
    Quote-aware comma split.

    - a lone quote toggles the in-quotes state
    - a doubled quote inside a quoted field yields one literal quote
    - a comma outside quotes ends the current field
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and line[i + 1:i + 2] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    fields.append("".join(current))
    return fields


def decode(line: str) -> VisitRecord:
    """
    Parse one line into a VisitRecord.

    Raises FormatError when there are fewer than six fields, the ID is not an
    integer, the date is not YYYY-MM-DD, or the values fail record validation.
    """
    fields = split_fields(line)
    if len(fields) < FIELD_COUNT:
        raise FormatError(f"Expected {FIELD_COUNT} fields, found {len(fields)}")

    raw_id, patient_name, raw_date, visit_type, description, doctor_name = fields[:FIELD_COUNT]

    if not _ID_PATTERN.match(raw_id):
        raise FormatError(f"Invalid record ID: {raw_id!r}")

    try:
        visit_date = datetime.strptime(raw_date.strip(), DATE_FORMAT).date()
    except ValueError as e:
        raise FormatError(f"Invalid visit date: {raw_date!r}") from e

    try:
        return VisitRecord(
            record_id=int(raw_id),
            patient_name=patient_name,
            visit_date=visit_date,
            visit_type=visit_type,
            description=description,
            doctor_name=doctor_name,
        )
    except ValueError as e:
        raise FormatError(str(e)) from e


def parse_line(line: str, notepad: Notepad, line_number: typing.Optional[int] = None) -> typing.Optional[VisitRecord]:
    """
    Decode `line`, reporting problems on `notepad` instead of raising.
    Returns None if the line was rejected.
    """
    try:
        return decode(line)
    except FormatError as e:
        where = f"Line {line_number}" if line_number is not None else "Line"
        notepad.add_warning(f"{where}: {e} ({line!r})")
        return None
