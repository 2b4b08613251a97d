"""Scoring of a student's selected answers against an exam's answer key."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from exam_app.core.models import CategoryMarks, Question


def score_answers(questions: Iterable[Question], selected_answers: Mapping[str, str]) -> CategoryMarks:
    """Count exact (case-sensitive) matches per category.

    ``selected_answers`` maps question ids to the selected option text. Missing
    or empty selections never score. There is no partial or negative marking.
    """
    marks = CategoryMarks()
    for question in questions:
        selected = selected_answers.get(question.id, "")
        if selected and selected == question.answer:
            field_name = question.category.value
            setattr(marks, field_name, getattr(marks, field_name) + 1)
    return marks
