"""
Tests for the undo/redo engine:
- command variants apply and reverse against the store
- redo invalidation on a new apply
- bounded undo stack
- the apply_add / apply_update / apply_delete helpers
"""

import pytest
from datetime import date

from PVM.history import (
    AddCommand,
    DeleteCommand,
    EmptyHistoryError,
    HistoryEngine,
    RecordNotFoundError,
    UpdateCommand,
    apply_command,
    describe_command,
    reverse_command,
)
from PVM.record import VisitRecord
from PVM.store import RecordStore


def _add(history: HistoryEngine, name: str) -> VisitRecord:
    return history.apply_add(name, date(2024, 6, 1), "Consultation", "note")


def test_commands_apply_and_reverse(store, obrien):
    apply_command(AddCommand(obrien), store)
    assert store.records == (obrien,)

    renamed = VisitRecord(1, "B", obrien.visit_date, obrien.visit_type, "", "")
    update = UpdateCommand(before=obrien, after=renamed)
    apply_command(update, store)
    assert store.records == (renamed,)
    reverse_command(update, store)
    assert store.records == (obrien,)

    delete = DeleteCommand(obrien)
    apply_command(delete, store)
    assert store.records == ()
    reverse_command(delete, store)
    assert store.records == (obrien,)

    reverse_command(AddCommand(obrien), store)
    assert store.records == ()


def test_unknown_command_raises_type_error(store):
    with pytest.raises(TypeError):
        apply_command("add", store)
    with pytest.raises(TypeError):
        reverse_command(None, store)


def test_update_command_must_keep_id(obrien):
    other = VisitRecord(2, "B", obrien.visit_date, "Emergency", "", "")
    with pytest.raises(ValueError):
        UpdateCommand(before=obrien, after=other)


def test_describe_command(obrien):
    assert describe_command(AddCommand(obrien)) == "add visit #1"
    assert describe_command(DeleteCommand(obrien)) == "delete visit #1"


def test_empty_history_raises(history):
    with pytest.raises(EmptyHistoryError):
        history.undo()
    with pytest.raises(EmptyHistoryError):
        history.redo()


def test_add_update_undo_redo_scenario(history, store):
    original = _add(history, "A")
    assert original.record_id == 1
    history.apply_update(1, patient_name="B")

    history.undo()
    assert store.records[0].patient_name == "A"
    history.undo()
    assert store.records == ()

    history.redo()
    history.redo()
    assert store.records[0].patient_name == "B"
    assert not history.can_redo


def test_undo_restores_every_intermediate_state(history, store):
    states = [store.records]
    _add(history, "A")
    states.append(store.records)
    _add(history, "B")
    states.append(store.records)
    history.apply_update(1, description="changed", doctor_name="Dr. Who")
    states.append(store.records)
    history.apply_delete(2)
    states.append(store.records)

    for expected in reversed(states[:-1]):
        history.undo()
        assert store.records == expected
    for expected in states[1:]:
        history.redo()
        assert store.records == expected


def test_new_apply_discards_redo(history):
    _add(history, "A")
    history.undo()
    assert history.can_redo
    _add(history, "B")
    assert history.redo_depth == 0
    with pytest.raises(EmptyHistoryError):
        history.redo()


def test_undo_stack_is_bounded(history, store):
    for i in range(11):
        _add(history, f"P{i}")
    assert history.undo_depth == 10
    for _ in range(10):
        history.undo()
    with pytest.raises(EmptyHistoryError):
        history.undo()
    # the first add fell off the stack and can no longer be undone
    assert [r.patient_name for r in store.records] == ["P0"]


@pytest.mark.parametrize("capacity, extra", [(1, 1), (3, 4), (10, 2)])
def test_capacity_plus_extra_allows_exactly_capacity_undos(capacity, extra):
    history = HistoryEngine(RecordStore(), capacity=capacity)
    for i in range(capacity + extra):
        _add(history, f"P{i}")
    undone = 0
    while history.can_undo:
        history.undo()
        undone += 1
    assert undone == capacity
    assert len(history.store) == extra


def test_redo_is_trimmed_to_capacity():
    history = HistoryEngine(RecordStore(), capacity=2)
    for name in "ABC":
        _add(history, name)
    history.undo()
    history.undo()
    history.redo()
    history.redo()
    assert history.undo_depth == 2


def test_invalid_capacity():
    with pytest.raises(ValueError):
        HistoryEngine(RecordStore(), capacity=0)


def test_apply_add_allocates_ids_after_loaded_records(store, history, obrien):
    store.insert_direct(VisitRecord(41, "Old", date(2020, 1, 1), "Emergency", "", ""))
    assert _add(history, "New").record_id == 42
    # undone IDs are never handed out again
    history.undo()
    assert _add(history, "Newer").record_id == 43


def test_apply_add_rejects_invalid_fields_without_consuming_id(history, store):
    with pytest.raises(ValueError):
        history.apply_add("A", "2024-01-01", "Consultation", "note")
    assert store.next_id == 1
    assert not history.can_undo


def test_apply_update_keeps_unchanged_fields(history, store):
    _add(history, "A")
    updated = history.apply_update(1, visit_type="Emergency")
    assert updated.patient_name == "A"
    assert updated.visit_type == "Emergency"
    assert store.records == (updated,)


def test_apply_update_cannot_change_id(history):
    _add(history, "A")
    with pytest.raises(ValueError):
        history.apply_update(1, record_id=5)


def test_apply_helpers_reject_missing_ids(history):
    with pytest.raises(RecordNotFoundError):
        history.apply_update(3, patient_name="X")
    with pytest.raises(RecordNotFoundError):
        history.apply_delete(3)
    assert not history.can_undo


def test_update_of_deleted_record_is_silent_on_replay(history, store):
    """Replaying an update against a record that is gone leaves the store alone."""
    record = _add(history, "A")
    update = UpdateCommand(before=record, after=VisitRecord(1, "B", record.visit_date, "Emergency", "", ""))
    store.delete_direct(1)
    history.apply(update)
    assert store.records == ()
    history.undo()
    assert store.records == ()


def test_clear(history):
    _add(history, "A")
    history.undo()
    history.clear()
    assert not history.can_undo and not history.can_redo
