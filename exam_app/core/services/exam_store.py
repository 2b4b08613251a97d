"""Service holding exam and result records in memory."""

from __future__ import annotations

from dataclasses import replace

from exam_app.core.models import Exam, ExamResult, ExamStatus, Question


class ExamNotFoundError(LookupError):
    """Raised when an exam id is unknown to the store."""

    def __init__(self, exam_id: str) -> None:
        super().__init__(f"Exam '{exam_id}' not found.")
        self.exam_id = exam_id


class ExamStore:
    """Owns every exam, result and active flag of one running application.

    The store does no locking of its own; ``ExamManager`` serializes access.
    """

    def __init__(self) -> None:
        self._exams: list[Exam] = []
        self._results: list[ExamResult] = []
        self._active: dict[str, bool] = {}

    # --- Exams ---

    def add_exam(self, exam: Exam) -> Exam:
        self._exams.append(exam)
        return exam

    def list_exams(self) -> list[Exam]:
        """Return all exams, newest first."""
        return sorted(self._exams, key=lambda exam: exam.created_at, reverse=True)

    def get_exam(self, exam_id: str) -> Exam | None:
        return next((exam for exam in self._exams if exam.id == exam_id), None)

    def require_exam(self, exam_id: str) -> Exam:
        exam = self.get_exam(exam_id)
        if exam is None:
            raise ExamNotFoundError(exam_id)
        return exam

    def replace_questions(self, exam_id: str, questions: list[Question]) -> Exam:
        return self._update_exam(exam_id, questions=list(questions))

    def set_status(self, exam_id: str, status: ExamStatus, link: str | None = None) -> Exam:
        exam = self.require_exam(exam_id)
        self._active[exam_id] = status is ExamStatus.ACTIVE
        return self._update_exam(exam_id, status=status, link=link if link is not None else exam.link)

    def is_active(self, exam_id: str) -> bool:
        return self._active.get(exam_id, False)

    # --- Results ---

    def add_result(self, result: ExamResult) -> ExamResult:
        self._results.append(result)
        return result

    def results_for_exam(self, exam_id: str) -> list[ExamResult]:
        """Return the results of one exam in submission order."""
        return [result for result in self._results if result.exam_id == exam_id]

    def results_for_student(self, roll_no: str) -> list[ExamResult]:
        """Return every result of a roll number, most recent first."""
        matching = [result for result in self._results if result.student.roll_no == roll_no]
        return sorted(matching, key=lambda result: result.completed_at, reverse=True)

    def clear(self) -> None:
        self._exams = []
        self._results = []
        self._active = {}

    def _update_exam(self, exam_id: str, **changes: object) -> Exam:
        index = next((i for i, exam in enumerate(self._exams) if exam.id == exam_id), -1)
        if index < 0:
            raise ExamNotFoundError(exam_id)
        # Exams are replaced rather than mutated so earlier snapshots stay intact.
        updated = replace(self._exams[index], **changes)
        self._exams[index] = updated
        return updated
