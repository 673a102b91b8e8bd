"""
Mock visit data for trying the console out on an empty data file.
"""

import random
import typing
from datetime import date, timedelta

from .record import VISIT_TYPES, VisitRecord
from .store import RecordStore

FIRST_NAMES = (
    "John", "Jane", "Michael", "Sarah", "David", "Emma", "James", "Lisa", "Robert", "Maria",
    "William", "Jennifer", "Richard", "Patricia", "Joseph", "Linda", "Thomas", "Elizabeth",
    "Charles", "Barbara", "Christopher", "Jessica", "Daniel", "Susan", "Matthew", "Karen",
    "Anthony", "Nancy", "Mark", "Betty",
)
LAST_NAMES = (
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis", "Rodriguez",
    "Martinez", "Hernandez", "Lopez", "Gonzalez", "Wilson", "Anderson", "Thomas", "Taylor",
    "Moore", "Jackson", "Martin", "Lee", "Perez", "Thompson", "White", "Harris", "Sanchez",
    "Clark", "Ramirez", "Lewis", "Robinson",
)
DOCTORS = (
    "Dr. Smith", "Dr. Johnson", "Dr. Williams", "Dr. Brown", "Dr. Davis",
    "Dr. Miller", "Dr. Wilson", "Dr. Moore", "Dr. Taylor", "Dr. Anderson",
)
DESCRIPTIONS = (
    "Regular checkup", "Follow-up appointment", "Urgent medical attention needed",
    "Routine examination", "Consultation for symptoms", "Preventive care visit",
    "Health screening", "Medical evaluation", "Treatment follow-up", "Annual physical exam",
)

MIN_MOCK_RECORDS = 300
MAX_MOCK_RECORDS = 500
DOCTOR_PROBABILITY = 0.8


def generate_mock_records(
    store: RecordStore,
    count: typing.Optional[int] = None,
    rng: typing.Optional[random.Random] = None,
    today: typing.Optional[date] = None,
) -> int:
    """
    Fill an empty store with `count` random visits from the past year.
    A store that already holds records is left alone. Returns the number inserted.
    """
    if len(store):
        return 0
    rng = rng or random.Random()
    today = today or date.today()
    if count is None:
        count = rng.randint(MIN_MOCK_RECORDS, MAX_MOCK_RECORDS)

    for _ in range(count):
        store.insert_direct(
            VisitRecord(
                record_id=store.allocate_id(),
                patient_name=f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
                visit_date=today - timedelta(days=rng.randrange(365)),
                visit_type=rng.choice(VISIT_TYPES),
                description=rng.choice(DESCRIPTIONS),
                doctor_name=rng.choice(DOCTORS) if rng.random() < DOCTOR_PROBABILITY else "",
            )
        )
    return count
