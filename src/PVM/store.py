"""
Record store.

RecordStore owns the live collection of VisitRecords and the ID counter.
Its mutation primitives are direct: they change the collection immediately
and keep no history. Undo/redo is layered on top by `PVM.history`.

Persistence is a plain text file, one encoded record per line (see
`PVM.codec`). Loading is additive and tolerant: malformed lines are skipped
and reported as warnings. Saving rewrites the whole file.
"""

from __future__ import annotations

import logging
import os
import typing

from stairval.notepad import Notepad, create_notepad

from .codec import encode, parse_line
from .record import VisitRecord

LOGGER = logging.getLogger(__name__)

Source = typing.Union[str, os.PathLike, typing.TextIO]


class RecordStore:
    def __init__(self, records: typing.Iterable[VisitRecord] = ()):
        self._records: list[VisitRecord] = []
        self._next_id = 1
        for record in records:
            self.insert_direct(record)

    @property
    def records(self) -> tuple[VisitRecord, ...]:
        """Read-only snapshot of the collection, in collection order."""
        return tuple(self._records)

    @property
    def next_id(self) -> int:
        return self._next_id

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: int) -> typing.Optional[VisitRecord]:
        for record in self._records:
            if record.record_id == record_id:
                return record
        return None

    def allocate_id(self) -> int:
        record_id = self._next_id
        self._next_id += 1
        return record_id

    # -----------------
    # Direct mutations
    # -----------------

    def insert_direct(self, record: VisitRecord) -> None:
        """Append `record`; bump the ID counter past its ID if needed."""
        self._records.append(record)
        if record.record_id >= self._next_id:
            self._next_id = record.record_id + 1

    def replace_direct(self, updated: VisitRecord) -> None:
        """Swap in `updated` at the position of the record with the same ID. Missing ID: no-op."""
        for index, record in enumerate(self._records):
            if record.record_id == updated.record_id:
                self._records[index] = updated
                return

    def delete_direct(self, record_id: int) -> None:
        """Remove every record carrying `record_id`. Missing ID: no-op."""
        self._records = [r for r in self._records if r.record_id != record_id]

    # ------------
    # Persistence
    # ------------

    def load(self, source: Source, notepad: typing.Optional[Notepad] = None) -> int:
        """
        Append the records read from `source` (a path or an open text stream).

        Lines that fail to decode are skipped; each one is added as a warning
        to `notepad` and logged. Returns the number of records loaded.
        Raises OSError if the file cannot be read; the store is left as it was.
        """
        if notepad is None:
            notepad = create_notepad("load")

        try:
            if isinstance(source, (str, os.PathLike)):
                with open(source, "r", encoding="utf-8", newline="") as handle:
                    loaded = self._read_records(handle, notepad)
            else:
                loaded = self._read_records(source, notepad)
        except UnicodeDecodeError as e:
            raise OSError(f"Data file is not valid UTF-8: {e}") from e

        for record in loaded:
            self.insert_direct(record)
        LOGGER.info("Loaded %d visit records", len(loaded))
        return len(loaded)

    def save(self, sink: Source) -> None:
        """
        Write every record to `sink` (a path or an open text stream), one per line.
        Raises OSError if writing fails; the collection is never modified.
        """
        if isinstance(sink, (str, os.PathLike)):
            with open(sink, "w", encoding="utf-8", newline="") as handle:
                self._write_records(handle)
        else:
            self._write_records(sink)
        LOGGER.info("Saved %d visit records", len(self._records))

    def _write_records(self, handle: typing.TextIO) -> None:
        for record in self._records:
            handle.write(encode(record))
            handle.write("\n")

    @staticmethod
    def _read_records(handle: typing.TextIO, notepad: Notepad) -> list[VisitRecord]:
        # read everything first so a failing read leaves the store untouched
        records: list[VisitRecord] = []
        for line_number, line in _logical_lines(handle):
            if not line.strip():
                continue
            record = parse_line(line, notepad, line_number)
            if record is None:
                LOGGER.warning("Skipping line %d: could not decode %r", line_number, line)
                continue
            records.append(record)
        return records


def _strip_terminator(line: str) -> str:
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith(("\n", "\r")):
        return line[:-1]
    return line


def _logical_lines(handle: typing.TextIO) -> typing.Iterator[tuple[int, str]]:
    """
    Yield (first physical line number, logical line) pairs.

    A physical line that ends inside a quoted field is joined with the
    following ones until the quote closes, so embedded line breaks survive.
    If the file ends with the quote still open, the pending lines are
    yielded one by one instead.
    """
    pending: list[str] = []
    quotes = 0
    start = 0
    for number, physical in enumerate(handle, start=1):
        if not pending:
            start = number
        pending.append(physical)
        # doubled quotes inside a field cancel out, so an odd count means still open
        quotes += physical.count('"')
        if quotes % 2 == 0:
            yield start, _strip_terminator("".join(pending))
            pending = []
            quotes = 0

    for offset, physical in enumerate(pending):
        yield start + offset, _strip_terminator(physical)
