"""
Search helpers over a sequence of visit records.

Text searches are case-insensitive substring matches; results are always
ordered by visit date (ties keep collection order).
"""

import typing
from datetime import date

from .record import VisitRecord


def _by_date(records: typing.Iterable[VisitRecord]) -> list[VisitRecord]:
    return sorted(records, key=lambda r: r.visit_date)


def _text_match(records: typing.Sequence[VisitRecord], attr: str, text: str) -> list[VisitRecord]:
    needle = (text or "").lower()
    return _by_date(r for r in records if needle in getattr(r, attr).lower())


def by_patient_name(records: typing.Sequence[VisitRecord], text: str) -> list[VisitRecord]:
    return _text_match(records, "patient_name", text)


def by_doctor_name(records: typing.Sequence[VisitRecord], text: str) -> list[VisitRecord]:
    return _text_match(records, "doctor_name", text)


def by_visit_type(records: typing.Sequence[VisitRecord], visit_type: str) -> list[VisitRecord]:
    return _text_match(records, "visit_type", visit_type)


def by_visit_date(records: typing.Sequence[VisitRecord], visit_date: date) -> list[VisitRecord]:
    return _by_date(r for r in records if r.visit_date == visit_date)


def all_visits(records: typing.Sequence[VisitRecord]) -> list[VisitRecord]:
    return _by_date(records)
