"""Utilities for exporting exam questions to the document format used for imports."""

from __future__ import annotations

from pathlib import Path

from exam_app.core.document_parser import EXPECTED_OPTION_COUNT, OPTION_MARKER
from exam_app.core.models import Question

_OPTION_LETTERS = ("A", "B", "C", "D")


def save_document_to_file(file_path: Path, questions: list[Question]) -> None:
    """Persist the provided questions to disk in the text import format."""

    if not questions:
        raise ValueError("Cannot export an empty question set.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(serialize_questions(questions), encoding="utf-8")


def serialize_questions(questions: list[Question]) -> str:
    """Render questions as a document that parses back to the same questions.

    Raises ``ValueError`` for a question the format cannot carry: more than
    four options, or an option containing an option marker such as ``B.``.
    """
    lines: list[str] = []
    current_category = None
    for question in questions:
        if question.category != current_category:
            if lines:
                lines.append("")
            lines.append(f"Category: {question.category.value}")
            current_category = question.category
        lines.extend(_serialize_question(question))
    return "\n".join(lines) + "\n"


def _serialize_question(question: Question) -> list[str]:
    # The format is line oriented, so embedded newlines are flattened.
    lines = [f"Question: {_single_line(question.text)}"]
    if question.options:
        lines.append(" ".join(_serialize_options(question)))
    lines.append(f"Answer: {_single_line(question.answer)}")
    return lines


def _serialize_options(question: Question) -> list[str]:
    if len(question.options) > EXPECTED_OPTION_COUNT:
        raise ValueError(
            f"Question '{question.text}' has {len(question.options)} options; "
            f"at most {EXPECTED_OPTION_COUNT} can be exported."
        )
    rendered = []
    for letter, option in zip(_OPTION_LETTERS, question.options):
        text = _single_line(option)
        if OPTION_MARKER.search(text):
            raise ValueError(
                f"Option '{text}' of question '{question.text}' contains an option marker and cannot be exported."
            )
        rendered.append(f"{letter}) {text}")
    return rendered


def _single_line(text: str) -> str:
    return " ".join(text.split())
