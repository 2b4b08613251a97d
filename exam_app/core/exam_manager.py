"""Business logic for managing exams and results shared between the API and tools."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import datetime, timezone
import logging
from threading import Lock
from uuid import uuid4

from exam_app.constants.exam_constants import (
    DEFAULT_LEADERBOARD_LIMIT,
    EXAM_LINK_PREFIX,
    EXAM_NAME_TEMPLATE,
)
from exam_app.core.document_parser import parse_document, question_issues
from exam_app.core.models import (
    Category,
    CategoryMarks,
    Exam,
    ExamResult,
    ExamStatus,
    Question,
    RankData,
    Student,
)
from exam_app.core.services.exam_attempt import ExamAttempt
from exam_app.core.services.exam_store import ExamStore
from exam_app.core.services.leaderboard import Leaderboard
from exam_app.core.services.scoring import score_answers

logger = logging.getLogger(__name__)


class ExamStateError(RuntimeError):
    """Raised when an exam lifecycle transition is not allowed."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExamManager:
    """Facade over the exam store, parser, scoring engine and leaderboard."""

    def __init__(self, store: ExamStore | None = None, clock: Callable[[], datetime] | None = None) -> None:
        self._lock = Lock()
        self._store = store if store is not None else ExamStore()
        self._clock = clock or _utcnow

    # --- Documents & exams ---

    def parse_document(self, text: str, category_hint: Category | str | None = None) -> list[Question]:
        return parse_document(text, category_hint)

    def create_exam(self, year: str, semester: str, documents: Mapping[Category | str, str]) -> Exam:
        """Parse one document per category and combine the questions into a new exam.

        Documents are parsed in category order (coding, math, aptitude,
        communication); a missing or empty document contributes no questions.
        """
        by_category = {Category.parse(category): text for category, text in documents.items()}
        questions: list[Question] = []
        for category in Category:
            questions.extend(parse_document(by_category.get(category) or "", category))

        exam = Exam(
            id=str(uuid4()),
            name=EXAM_NAME_TEMPLATE.format(year=year, semester=semester),
            year=year,
            semester=semester,
            status=ExamStatus.PENDING,
            questions=questions,
            created_at=self._clock(),
        )
        with self._lock:
            self._store.add_exam(exam)
        logger.info("Created exam %s (%s) with %d questions", exam.name, exam.id, len(questions))
        return exam

    def list_exams(self) -> list[Exam]:
        with self._lock:
            return self._store.list_exams()

    def get_exam(self, exam_id: str) -> Exam | None:
        with self._lock:
            return self._store.get_exam(exam_id)

    def update_exam_questions(self, exam_id: str, questions: list[Question]) -> Exam:
        """Replace the whole question list of an exam.

        The stored questions are copies; the caller's objects are left untouched.
        """
        categories = [Category.parse(question.category) for question in questions]
        questions = [
            replace(question, category=category, options=list(question.options))
            for question, category in zip(questions, categories)
        ]
        with self._lock:
            exam = self._store.replace_questions(exam_id, questions)
        logger.info("Replaced questions of exam %s (%d questions)", exam_id, len(questions))
        return exam

    def get_question_issues(self, exam_id: str) -> dict[str, list[str]]:
        """Return the problems found per question id; questions without problems are omitted."""
        with self._lock:
            exam = self._store.require_exam(exam_id)
        issues = {question.id: question_issues(question) for question in exam.questions}
        return {question_id: found for question_id, found in issues.items() if found}

    # --- Lifecycle ---

    def activate_exam(self, exam_id: str) -> str:
        """Open a pending exam for submissions and return its access link."""
        with self._lock:
            exam = self._store.require_exam(exam_id)
            if exam.status is ExamStatus.COMPLETED:
                raise ExamStateError(
                    f"Exam '{exam_id}' is completed; reopen it to accept new submissions."
                )
            link = f"{EXAM_LINK_PREFIX}{exam_id}"
            self._store.set_status(exam_id, ExamStatus.ACTIVE, link=link)
        logger.info("Activated exam %s at %s", exam_id, link)
        return link

    def deactivate_exam(self, exam_id: str) -> None:
        with self._lock:
            exam = self._store.require_exam(exam_id)
            if exam.status is ExamStatus.PENDING:
                raise ExamStateError(f"Exam '{exam_id}' has not been activated.")
            if exam.status is ExamStatus.COMPLETED:
                return
            self._store.set_status(exam_id, ExamStatus.COMPLETED)
        logger.info("Deactivated exam %s", exam_id)

    def reopen_exam(self, exam_id: str) -> str:
        """Move a completed exam back to active. Results already submitted are kept."""
        with self._lock:
            exam = self._store.require_exam(exam_id)
            if exam.status is not ExamStatus.COMPLETED:
                raise ExamStateError(f"Only completed exams can be reopened; exam '{exam_id}' is {exam.status.value}.")
            link = exam.link or f"{EXAM_LINK_PREFIX}{exam_id}"
            self._store.set_status(exam_id, ExamStatus.ACTIVE, link=link)
        logger.info("Reopened exam %s", exam_id)
        return link

    def is_exam_active(self, exam_id: str) -> bool:
        with self._lock:
            return self._store.is_active(exam_id)

    # --- Attempts & results ---

    def start_attempt(self, exam_id: str) -> ExamAttempt:
        with self._lock:
            exam = self._store.require_exam(exam_id)
            if not self._store.is_active(exam_id):
                raise ExamStateError(f"Exam '{exam_id}' is not currently active.")
        return ExamAttempt(exam)

    def submit_answers(self, exam_id: str, student: Student, selected_answers: Mapping[str, str]) -> ExamResult:
        """Score the selected answers against the exam's key and record the result."""
        with self._lock:
            exam = self._store.require_exam(exam_id)
        marks = score_answers(exam.questions, selected_answers)
        return self.submit_result(exam_id, student, marks)

    def submit_result(
        self,
        exam_id: str,
        student: Student,
        marks: CategoryMarks | Mapping[Category | str, int],
    ) -> ExamResult:
        """Record a result. Submissions are append-only; resubmitting adds a new result."""
        marks = _coerce_marks(marks)
        student_id = student.id or str(uuid4())
        with self._lock:
            exam = self._store.require_exam(exam_id)
            result = ExamResult(
                id=str(uuid4()),
                exam_id=exam_id,
                exam_name=exam.name,
                student_id=student_id,
                student=replace(student, id=student_id),
                total_marks=marks.total,
                coding_marks=marks.coding,
                math_marks=marks.math,
                aptitude_marks=marks.aptitude,
                communication_marks=marks.communication,
                completed_at=self._clock(),
            )
            self._store.add_result(result)
        logger.info(
            "Recorded result for roll no %s in exam %s: %d marks",
            student.roll_no,
            exam.name,
            result.total_marks,
        )
        return result

    def get_results(self, exam_id: str) -> list[ExamResult]:
        """Return the results of an exam, highest total first."""
        return self._leaderboard(exam_id).by_total()

    def get_student_results(self, roll_no: str) -> list[ExamResult]:
        with self._lock:
            return self._store.results_for_student(roll_no)

    # --- Leaderboard Delegation ---

    def get_rank(self, exam_id: str, roll_no: str) -> RankData | None:
        return self._leaderboard(exam_id).rank_of(roll_no)

    def get_top_performers(self, exam_id: str, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> list[ExamResult]:
        return self._leaderboard(exam_id).top(limit)

    def get_top_performers_by_category(
        self,
        exam_id: str,
        category: Category | str,
        limit: int = DEFAULT_LEADERBOARD_LIMIT,
    ) -> list[ExamResult]:
        return self._leaderboard(exam_id).top_by_category(category, limit)

    # --- Misc ---

    def reset(self) -> None:
        with self._lock:
            self._store.clear()

    def _leaderboard(self, exam_id: str) -> Leaderboard:
        with self._lock:
            return Leaderboard(self._store.results_for_exam(exam_id))


def _coerce_marks(marks: CategoryMarks | Mapping[Category | str, int]) -> CategoryMarks:
    if not isinstance(marks, CategoryMarks):
        values = {Category.parse(category).value: value for category, value in marks.items()}
        marks = CategoryMarks(**values)
    for category in Category:
        value = marks.for_category(category)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValueError(f"{category.value} marks must be a non-negative integer, got {value!r}.")
    return marks
