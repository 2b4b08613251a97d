"""Domain models for the exam application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Category(str, Enum):
    """Closed set of question categories; partitions questions and marks."""

    CODING = "coding"
    MATH = "math"
    APTITUDE = "aptitude"
    COMMUNICATION = "communication"

    @classmethod
    def parse(cls, value: str | Category) -> Category:
        """Normalize a user-supplied category name, rejecting unknown values."""
        if isinstance(value, Category):
            return value
        normalized = str(value).strip().lower()
        try:
            return cls(normalized)
        except ValueError as exc:
            raise ValueError(
                f"Unknown category '{value}'. Expected one of: {', '.join(c.value for c in cls)}."
            ) from exc


class ExamStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(slots=True)
class Question:
    """Multiple-choice question. ``answer`` is the text of the correct option."""

    id: str
    category: Category
    text: str
    options: list[str] = field(default_factory=list)
    answer: str = ""


@dataclass(slots=True)
class Exam:
    """Timed exam composed of questions from every category."""

    id: str
    name: str
    year: str
    semester: str
    status: ExamStatus
    questions: list[Question]
    created_at: datetime
    link: str | None = None

    def questions_for(self, category: Category) -> list[Question]:
        return [question for question in self.questions if question.category == category]

    def category_counts(self) -> dict[Category, int]:
        return {category: len(self.questions_for(category)) for category in Category}


@dataclass(slots=True)
class Student:
    """Student details captured on the exam form. ``roll_no`` is the natural key."""

    id: str
    name: str
    roll_no: str
    year: str
    branch: str
    section: str


@dataclass(slots=True)
class CategoryMarks:
    """Marks scored in each category of one exam."""

    coding: int = 0
    math: int = 0
    aptitude: int = 0
    communication: int = 0

    @property
    def total(self) -> int:
        return self.coding + self.math + self.aptitude + self.communication

    def for_category(self, category: Category) -> int:
        return getattr(self, Category.parse(category).value)


@dataclass(slots=True)
class ExamResult:
    """Submitted result of one student for one exam. Never mutated."""

    id: str
    exam_id: str
    exam_name: str
    student_id: str
    student: Student
    total_marks: int
    coding_marks: int
    math_marks: int
    aptitude_marks: int
    communication_marks: int
    completed_at: datetime

    def marks_for(self, category: Category) -> int:
        return getattr(self, f"{Category.parse(category).value}_marks")


@dataclass(slots=True)
class RankData:
    """1-based ranks of one student's result, computed on demand."""

    overall: int
    year: int
    branch: int
    section: int
    category: dict[Category, int]
