"""Service tracking one student's answer sheet while an exam is in progress."""

from __future__ import annotations

from exam_app.core.models import Category, CategoryMarks, Exam, Question
from exam_app.core.services.scoring import score_answers


class ExamAttempt:
    """Holds the answers a student selects, grouped by category."""

    def __init__(self, exam: Exam) -> None:
        self._exam_id = exam.id
        self._questions: dict[str, Question] = {question.id: question for question in exam.questions}
        self._answers: dict[Category, dict[str, str]] = {}
        for question in exam.questions:
            self._answers.setdefault(question.category, {})[question.id] = ""

    @property
    def exam_id(self) -> str:
        return self._exam_id

    def categories(self) -> list[Category]:
        """Return the categories that have questions, in exam order."""
        return list(self._answers)

    def questions_for(self, category: Category | str) -> list[Question]:
        category = Category.parse(category)
        return [self._questions[question_id] for question_id in self._answers.get(category, {})]

    def select_answer(self, question_id: str, answer: str) -> None:
        question = self._require_question(question_id)
        self._answers[question.category][question_id] = answer

    def clear_answer(self, question_id: str) -> None:
        self.select_answer(question_id, "")

    def selected_answer(self, question_id: str) -> str:
        question = self._require_question(question_id)
        return self._answers[question.category][question_id]

    def answered_count(self, category: Category | str) -> int:
        category = Category.parse(category)
        return sum(1 for answer in self._answers.get(category, {}).values() if answer)

    def completion_percentage(self, category: Category | str) -> int:
        category = Category.parse(category)
        total = len(self._answers.get(category, {}))
        if total == 0:
            return 0
        return round(self.answered_count(category) / total * 100)

    def selected_answers(self) -> dict[str, str]:
        """Flatten the answer sheet into the question id -> answer mapping used for scoring."""
        return {
            question_id: answer
            for answers in self._answers.values()
            for question_id, answer in answers.items()
        }

    def score(self) -> CategoryMarks:
        return score_answers(self._questions.values(), self.selected_answers())

    def _require_question(self, question_id: str) -> Question:
        question = self._questions.get(question_id)
        if question is None:
            raise ValueError(f"Question '{question_id}' is not part of exam '{self._exam_id}'.")
        return question
