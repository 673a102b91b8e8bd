"""
Report aggregation over visit records.

Records are turned into a pandas DataFrame (one row per visit, `visit_date`
as datetime64) and grouped from there. Reports return plain values or
pandas Series so the CLI decides how to print them.
"""

from __future__ import annotations

import dataclasses
import typing
from dataclasses import dataclass
from datetime import date, timedelta

import pandas as pd

from .record import DISPLAY_DATE_FORMAT, VisitRecord

COLUMNS = ["record_id", "patient_name", "visit_date", "visit_type", "description", "doctor_name"]


@dataclass
class WeeklySummary:
    """
    Visits in the seven days starting at `week_start`.

    Attributes:
        week_start: First day of the week.
        week_end: Last day of the week (inclusive).
        total: Number of visits in the week.
        per_day: Visit counts indexed by date, only days with visits, ascending.
    """

    week_start: date
    week_end: date
    total: int
    per_day: pd.Series


@dataclass
class MonthlyStatistics:
    """
    Visits in one calendar month.

    Attributes:
        year, month: The month reported on.
        total: Number of visits in the month.
        by_type: Counts per visit type, most frequent first.
        by_doctor: Counts per doctor, most frequent first; visits without a doctor are left out.
    """

    year: int
    month: int
    total: int
    by_type: pd.Series
    by_doctor: pd.Series


def records_to_frame(records: typing.Iterable[VisitRecord]) -> pd.DataFrame:
    df = pd.DataFrame([dataclasses.asdict(r) for r in records], columns=COLUMNS)
    df["visit_date"] = pd.to_datetime(df["visit_date"])
    return df


def individual_summary(record: VisitRecord) -> list[str]:
    return [
        f"Patient ID: {record.record_id}",
        f"Patient Name: {record.patient_name}",
        f"Visit Date: {record.visit_date.strftime(DISPLAY_DATE_FORMAT)}",
        f"Visit Type: {record.visit_type}",
        f"Doctor: {record.doctor_name or 'Not specified'}",
        f"Description: {record.description}",
    ]


def _counts(column: pd.Series) -> pd.Series:
    return column.value_counts(sort=True, ascending=False).rename("visits")


def visit_count_by_type(records: typing.Iterable[VisitRecord]) -> pd.Series:
    """Number of visits per visit type, most frequent first."""
    return _counts(records_to_frame(records)["visit_type"])


def weekly_summary(records: typing.Iterable[VisitRecord], week_start: date) -> WeeklySummary:
    df = records_to_frame(records)
    start = pd.Timestamp(week_start)
    end = start + pd.Timedelta(days=7)
    weekly = df[(df["visit_date"] >= start) & (df["visit_date"] < end)]

    per_day = weekly.groupby(weekly["visit_date"].dt.date).size().sort_index().rename("visits")
    return WeeklySummary(
        week_start=week_start,
        week_end=week_start + timedelta(days=6),
        total=len(weekly),
        per_day=per_day,
    )


def monthly_statistics(records: typing.Iterable[VisitRecord], year: int, month: int) -> MonthlyStatistics:
    df = records_to_frame(records)
    start = pd.Timestamp(year=year, month=month, day=1)
    end = start + pd.offsets.MonthBegin(1)
    monthly = df[(df["visit_date"] >= start) & (df["visit_date"] < end)]

    with_doctor = monthly[monthly["doctor_name"] != ""]
    return MonthlyStatistics(
        year=year,
        month=month,
        total=len(monthly),
        by_type=_counts(monthly["visit_type"]),
        by_doctor=_counts(with_doctor["doctor_name"]),
    )
