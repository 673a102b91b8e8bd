"""
Visit record domain model.

Defines the VisitRecord class for a single patient visit kept by the clinic
console, plus the small visit-type vocabulary offered by the menus.

A record is never edited in place: an update builds a new VisitRecord with
`dataclasses.replace` and swaps it into the store under the same ID.
"""

from dataclasses import dataclass
from datetime import date, datetime

# Menu choice → visit type label
VISIT_TYPES = ("Consultation", "Follow-up", "Emergency", "Routine Check-up")
_VISIT_TYPE_CHOICES = {str(i): label for i, label in enumerate(VISIT_TYPES, start=1)}

DISPLAY_DATE_FORMAT = "%d/%m/%Y"


def visit_type_from_choice(choice: str, default: str = "Consultation") -> str:
    """
    Convert a menu choice ("1".."4") into its visit type label.
    Anything else falls back to `default`.
    """
    return _VISIT_TYPE_CHOICES.get((choice or "").strip(), default)


@dataclass(frozen=True)
class VisitRecord:
    """
    Represents one visit of a patient to the clinic.

    Attributes:
        record_id: Unique non-negative integer, fixed once assigned.
        patient_name: Name of the patient.
        visit_date: Calendar date of the visit (no time component).
        visit_type: Visit category, e.g. "Consultation" or "Emergency".
        description: Free-text notes.
        doctor_name: Attending doctor, empty when not specified.
    """

    record_id: int
    patient_name: str
    visit_date: date
    visit_type: str
    description: str
    doctor_name: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.record_id, bool) or not isinstance(self.record_id, int):
            raise ValueError(f"record_id must be an integer, got {self.record_id!r}")
        if self.record_id < 0:
            raise ValueError(f"record_id must be non-negative, got {self.record_id!r}")

        # datetime is a date subclass; reject it so the time part cannot leak in
        if isinstance(self.visit_date, datetime) or not isinstance(self.visit_date, date):
            raise ValueError(f"visit_date must be a date, got {self.visit_date!r}")

        for attr in ("patient_name", "visit_type", "description", "doctor_name"):
            val = getattr(self, attr)
            if not isinstance(val, str):
                raise ValueError(f"{attr} must be a string, got {type(val).__name__}")

    def summary(self) -> str:
        """One-line description used by search results and notifications."""
        return (
            f"ID: {self.record_id}, Name: {self.patient_name}, "
            f"Date: {self.visit_date.strftime(DISPLAY_DATE_FORMAT)}, "
            f"Type: {self.visit_type}, Doctor: {self.doctor_name}, "
            f"Description: {self.description}"
        )
