import pytest
from datetime import date

from PVM.record import VisitRecord
from PVM.reports import (
    individual_summary,
    monthly_statistics,
    records_to_frame,
    visit_count_by_type,
    weekly_summary,
)


@pytest.fixture
def visits() -> list[VisitRecord]:
    return [
        VisitRecord(1, "A", date(2024, 3, 4), "Emergency", "", "Dr. Brown"),
        VisitRecord(2, "B", date(2024, 3, 4), "Emergency", "", ""),
        VisitRecord(3, "C", date(2024, 3, 6), "Consultation", "", "Dr. Brown"),
        VisitRecord(4, "D", date(2024, 3, 11), "Emergency", "", "Dr. Lee"),
        VisitRecord(5, "E", date(2024, 4, 1), "Follow-up", "", "Dr. Lee"),
    ]


def test_records_to_frame_columns(visits):
    df = records_to_frame(visits)
    assert list(df.columns) == [
        "record_id", "patient_name", "visit_date", "visit_type", "description", "doctor_name"
    ]
    assert len(df) == 5


def test_individual_summary_marks_missing_doctor(visits):
    lines = individual_summary(visits[1])
    assert "Visit Date: 04/03/2024" in lines
    assert "Doctor: Not specified" in lines


def test_visit_count_by_type(visits):
    counts = visit_count_by_type(visits)
    assert counts.index[0] == "Emergency"
    assert counts.to_dict() == {"Emergency": 3, "Consultation": 1, "Follow-up": 1}
    assert counts.sum() == len(visits)


def test_visit_count_by_type_empty():
    assert len(visit_count_by_type([])) == 0


def test_weekly_summary_counts_per_day(visits):
    summary = weekly_summary(visits, date(2024, 3, 4))
    assert summary.week_end == date(2024, 3, 10)
    assert summary.total == 3
    assert summary.per_day.to_dict() == {date(2024, 3, 4): 2, date(2024, 3, 6): 1}


def test_weekly_summary_follows_start_date(visits):
    # starting on the 5th drops the two visits of the 4th and picks up the 11th
    summary = weekly_summary(visits, date(2024, 3, 5))
    assert summary.total == 2
    assert summary.per_day.to_dict() == {date(2024, 3, 6): 1, date(2024, 3, 11): 1}


def test_weekly_summary_empty_week(visits):
    summary = weekly_summary(visits, date(2025, 1, 1))
    assert summary.total == 0
    assert len(summary.per_day) == 0


def test_monthly_statistics(visits):
    stats = monthly_statistics(visits, 2024, 3)
    assert stats.total == 4
    assert stats.by_type.to_dict() == {"Emergency": 3, "Consultation": 1}
    # the visit without a doctor is not counted per doctor
    assert stats.by_doctor.to_dict() == {"Dr. Brown": 2, "Dr. Lee": 1}


def test_monthly_statistics_december_rollover():
    visits = [
        VisitRecord(1, "A", date(2023, 12, 31), "Emergency", "", ""),
        VisitRecord(2, "B", date(2024, 1, 1), "Emergency", "", ""),
    ]
    assert monthly_statistics(visits, 2023, 12).total == 1
