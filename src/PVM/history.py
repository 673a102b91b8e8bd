"""
Undo/redo history for record mutations.

Every reversible change to a RecordStore is a Command: a plain frozen value
describing what happened (Add, Update or Delete) with the record snapshots
needed to replay it in both directions. `apply_command` and
`reverse_command` map a command onto the store's direct primitives.

HistoryEngine runs commands and keeps two stacks:
- undo: most recent last, at most `capacity` entries; the oldest entries
  are dropped silently once the limit is passed
- redo: filled only by undo; any new apply empties it

Records are frozen dataclasses, so a command holding one can never see it
change underneath.
"""

from __future__ import annotations

import collections
import dataclasses
import logging
import typing
from dataclasses import dataclass
from datetime import date

from .record import VisitRecord
from .store import RecordStore

LOGGER = logging.getLogger(__name__)

DEFAULT_UNDO_CAPACITY = 10


class EmptyHistoryError(Exception):
    """Raised by undo/redo when there is nothing to undo/redo."""


class RecordNotFoundError(KeyError):
    """Raised by the apply_* helpers when the target ID is not in the store."""

    def __str__(self) -> str:
        return f"No visit record with ID {self.args[0]}"


# ---------------
# Command values
# ---------------


@dataclass(frozen=True)
class AddCommand:
    record: VisitRecord


@dataclass(frozen=True)
class UpdateCommand:
    before: VisitRecord
    after: VisitRecord

    def __post_init__(self) -> None:
        if self.before.record_id != self.after.record_id:
            raise ValueError(
                f"Update must keep the record ID ({self.before.record_id} != {self.after.record_id})"
            )


@dataclass(frozen=True)
class DeleteCommand:
    record: VisitRecord


Command = typing.Union[AddCommand, UpdateCommand, DeleteCommand]


def apply_command(command: Command, store: RecordStore) -> None:
    if isinstance(command, AddCommand):
        store.insert_direct(command.record)
    elif isinstance(command, UpdateCommand):
        store.replace_direct(command.after)
    elif isinstance(command, DeleteCommand):
        store.delete_direct(command.record.record_id)
    else:
        raise TypeError(f"Unknown command: {command!r}")


def reverse_command(command: Command, store: RecordStore) -> None:
    if isinstance(command, AddCommand):
        store.delete_direct(command.record.record_id)
    elif isinstance(command, UpdateCommand):
        store.replace_direct(command.before)
    elif isinstance(command, DeleteCommand):
        store.insert_direct(command.record)
    else:
        raise TypeError(f"Unknown command: {command!r}")


def describe_command(command: Command) -> str:
    """Short human-readable label, e.g. "add visit #3"."""
    if isinstance(command, AddCommand):
        return f"add visit #{command.record.record_id}"
    if isinstance(command, UpdateCommand):
        return f"update visit #{command.after.record_id}"
    if isinstance(command, DeleteCommand):
        return f"delete visit #{command.record.record_id}"
    raise TypeError(f"Unknown command: {command!r}")


# ---------------
# History engine
# ---------------


class HistoryEngine:
    def __init__(self, store: RecordStore, capacity: int = DEFAULT_UNDO_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity!r}")
        self._store = store
        self._capacity = capacity
        self._undo: typing.Deque[Command] = collections.deque(maxlen=capacity)
        self._redo: list[Command] = []

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def apply(self, command: Command) -> Command:
        """
        Run `command` against the store and record it.
        The oldest undo entry falls off past capacity; the redo stack is emptied.
        """
        apply_command(command, self._store)
        self._undo.append(command)
        self._redo.clear()
        LOGGER.debug("Applied %s (undo=%d)", describe_command(command), len(self._undo))
        return command

    def undo(self) -> Command:
        if not self._undo:
            raise EmptyHistoryError("No operations to undo")
        command = self._undo.pop()
        reverse_command(command, self._store)
        self._redo.append(command)
        LOGGER.debug("Undid %s", describe_command(command))
        return command

    def redo(self) -> Command:
        if not self._redo:
            raise EmptyHistoryError("No operations to redo")
        command = self._redo.pop()
        apply_command(command, self._store)
        self._undo.append(command)
        LOGGER.debug("Redid %s", describe_command(command))
        return command

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    # ---------------------
    # Convenience wrappers
    # ---------------------

    def apply_add(
        self,
        patient_name: str,
        visit_date: date,
        visit_type: str,
        description: str,
        doctor_name: str = "",
    ) -> VisitRecord:
        """Create a visit with a freshly allocated ID and apply it as an AddCommand."""
        record = VisitRecord(
            record_id=self._store.next_id,
            patient_name=patient_name,
            visit_date=visit_date,
            visit_type=visit_type,
            description=description,
            doctor_name=doctor_name,
        )
        # only consume the ID once the record validated
        self._store.allocate_id()
        self.apply(AddCommand(record))
        return record

    def apply_update(self, record_id: int, **changes: typing.Any) -> VisitRecord:
        """
        Replace the visit `record_id` with a copy carrying `changes`.
        Fields not named in `changes` keep their current values.
        """
        if "record_id" in changes and changes["record_id"] != record_id:
            raise ValueError("record_id cannot be changed by an update")
        before = self._store.get(record_id)
        if before is None:
            raise RecordNotFoundError(record_id)
        after = dataclasses.replace(before, **changes)
        self.apply(UpdateCommand(before=before, after=after))
        return after

    def apply_delete(self, record_id: int) -> VisitRecord:
        """Remove the visit `record_id`; returns the removed record."""
        record = self._store.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        self.apply(DeleteCommand(record))
        return record
