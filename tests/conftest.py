from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from exam_app.core.exam_manager import ExamManager
from exam_app.core.models import Student
from exam_app.core.services.exam_store import ExamStore


def make_student(roll_no, year="2024", branch="CSE", section="A", name=None):
    return Student(
        id=f"id-{roll_no}",
        name=name or f"Student {roll_no}",
        roll_no=roll_no,
        year=year,
        branch=branch,
        section=section,
    )


@pytest.fixture
def clock():
    """Deterministic clock advancing one minute per call."""
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ticks = count()
    return lambda: start + timedelta(minutes=next(ticks))


@pytest.fixture
def student():
    return make_student


@pytest.fixture
def store():
    return ExamStore()


@pytest.fixture
def manager(store, clock):
    return ExamManager(store=store, clock=clock)
