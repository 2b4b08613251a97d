"""Demo exam and results loaded when the application starts with an empty store."""

from __future__ import annotations

import logging
from uuid import uuid4

from exam_app.core.exam_manager import ExamManager
from exam_app.core.models import Category, CategoryMarks, Exam, Student

logger = logging.getLogger(__name__)

SAMPLE_DOCUMENTS: dict[Category, str] = {
    Category.CODING: (
        "Question: What is the main use of CSS?\n"
        "A) Styling B) Logic C) Database D) Authentication\n"
        "Answer: Styling\n"
        "\n"
        "Question: What does HTML stand for?\n"
        "A) Hyper Text Markup Language B) High Tech Multi Language "
        "C) Hyper Transfer Markup Language D) None of the above\n"
        "Answer: Hyper Text Markup Language\n"
    ),
    Category.MATH: (
        "Question: What is 2 + 2?\n"
        "A) 3 B) 4 C) 5 D) 6\n"
        "Answer: 4\n"
    ),
    Category.APTITUDE: (
        "Question: What is the capital of France?\n"
        "A) London B) Paris C) Berlin D) Madrid\n"
        "Answer: Paris\n"
    ),
    Category.COMMUNICATION: (
        "Question: Which of the following is NOT a communication channel?\n"
        "A) Email B) Face-to-face C) Telepathy D) Video call\n"
        "Answer: Telepathy\n"
    ),
}

_SAMPLE_RESULTS = [
    ("John Doe", "2023001", "2023", "CSE", "A", CategoryMarks(coding=85, math=90, aptitude=75, communication=80)),
    ("Jane Smith", "2023002", "2023", "CSE", "A", CategoryMarks(coding=90, math=85, aptitude=80, communication=85)),
    ("Bob Johnson", "2023003", "2023", "ECE", "B", CategoryMarks(coding=70, math=95, aptitude=85, communication=75)),
]


def seed_sample_data(manager: ExamManager) -> Exam | None:
    """Create a completed demo exam with three results, unless exams already exist."""
    if manager.list_exams():
        return None

    exam = manager.create_exam("2023", "Fall", SAMPLE_DOCUMENTS)
    manager.activate_exam(exam.id)
    for name, roll_no, year, branch, section, marks in _SAMPLE_RESULTS:
        student = Student(
            id=str(uuid4()),
            name=name,
            roll_no=roll_no,
            year=year,
            branch=branch,
            section=section,
        )
        manager.submit_result(exam.id, student, marks)
    manager.deactivate_exam(exam.id)
    logger.info("Seeded sample exam %s", exam.name)
    return manager.get_exam(exam.id)
