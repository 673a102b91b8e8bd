import pytest
from datetime import date

from PVM.history import HistoryEngine
from PVM.record import VisitRecord
from PVM.store import RecordStore


@pytest.fixture
def obrien() -> VisitRecord:
    """
    A record whose text fields need quoting: comma and quote in the name,
    embedded newline in the description.
    """
    return VisitRecord(
        record_id=1,
        patient_name="O'Brien, M.D.",
        visit_date=date(2024, 3, 9),
        visit_type="Emergency",
        description='Said "ouch"\nthen left',
        doctor_name="",
    )


@pytest.fixture
def store() -> RecordStore:
    return RecordStore()


@pytest.fixture
def history(store: RecordStore) -> HistoryEngine:
    return HistoryEngine(store)


@pytest.fixture
def data_file(tmp_path):
    """Path to a not-yet-existing data file inside the test's tmp dir."""
    return tmp_path / "patient_visits.csv"
