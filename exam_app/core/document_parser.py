"""Utilities for importing exam questions from a line-oriented text document.

Document format (keywords are case-insensitive, blank lines are ignored):

    Category: math
    Question: What is 2 + 2?
    A) 3 B) 4 C) 5 D) 6
    Answer: 4

``Category:`` applies to every following question until the next
``Category:`` line. All four options sit on one line and accept either ``)``
or ``.`` after the letter. ``Answer:`` holds the text of the correct option,
not its letter.

Architecture note:
    The parser never raises on malformed input. Incomplete questions are
    dropped or kept with empty fields, and every anomaly is logged as a
    warning so the admin can see it when the exam is created. Callers that
    need the anomalies as data use ``question_issues``.
"""

from __future__ import annotations

import logging
from pathlib import Path
import re
from uuid import uuid4

from exam_app.core.models import Category, Question

logger = logging.getLogger(__name__)

EXPECTED_OPTION_COUNT = 4

_CATEGORY_PREFIX = "category:"
_QUESTION_PREFIX = "question:"
_ANSWER_PREFIX = "answer:"

# A marker is a letter A-D followed by ")" or "." and whitespace, at the start
# of the line or after whitespace.
OPTION_MARKER = re.compile(r"(?:(?<=\s)|^)([A-D])[).]\s+")
_OPTION_LINE = re.compile(r"^A[).]|A\)")


def load_document_from_file(file_path: Path, category_hint: Category | str | None = None) -> list[Question]:
    text = file_path.read_text(encoding="utf-8")
    return parse_document(text, category_hint)


def parse_document(text: str, category_hint: Category | str | None = None) -> list[Question]:
    """Parse document text into questions, in document order."""
    current_category = _initial_category(category_hint)
    pending: Question | None = None
    questions: list[Question] = []

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        lowered = line.lower()
        if lowered.startswith(_CATEGORY_PREFIX):
            current_category = _parse_category_line(line[len(_CATEGORY_PREFIX):])
            continue

        if lowered.startswith(_QUESTION_PREFIX):
            _finalize(pending, questions)
            pending = _start_question(line[len(_QUESTION_PREFIX):].strip(), current_category)
            continue

        if lowered.startswith(_ANSWER_PREFIX):
            if pending is None:
                logger.debug("Ignoring answer line without a question: %r", line)
                continue
            pending.answer = line[len(_ANSWER_PREFIX):].strip()
            continue

        if _OPTION_LINE.search(line):
            if pending is None:
                logger.debug("Ignoring option line without a question: %r", line)
                continue
            if pending.options:
                logger.warning("Question '%s' has more than one option line; keeping the last.", pending.text)
            pending.options = extract_options(line)
            continue

        logger.debug("Ignoring unrecognized line: %r", line)

    _finalize(pending, questions)
    return questions


def extract_options(line: str) -> list[str]:
    """Split an options line such as ``A) 3 B) 4 C) 5 D) 6`` into option texts."""
    markers = list(OPTION_MARKER.finditer(line))
    options: list[str] = []
    for index, marker in enumerate(markers):
        end = markers[index + 1].start() if index + 1 < len(markers) else len(line)
        options.append(line[marker.end():end].strip())
    return options


def question_issues(question: Question) -> list[str]:
    """Describe problems with a question that would make it unanswerable or unscorable."""
    issues: list[str] = []
    if len(question.options) != EXPECTED_OPTION_COUNT:
        issues.append(
            f"expected {EXPECTED_OPTION_COUNT} options, found {len(question.options)}"
        )
    if any(not option for option in question.options):
        issues.append("option text is empty")
    if not question.answer:
        issues.append("answer is missing")
    elif question.answer not in question.options:
        issues.append(f"answer '{question.answer}' does not match any option")
    return issues


def _initial_category(category_hint: Category | str | None) -> Category | None:
    if category_hint is None:
        return None
    return Category.parse(category_hint)


def _parse_category_line(raw_value: str) -> Category | None:
    try:
        return Category.parse(raw_value)
    except ValueError:
        logger.warning(
            "Unknown category '%s'; questions are skipped until a valid Category line.",
            raw_value.strip(),
        )
        return None


def _start_question(text: str, category: Category | None) -> Question:
    return Question(
        id=str(uuid4()),
        category=category,  # validated when the question is finalized
        text=text,
    )


def _finalize(question: Question | None, questions: list[Question]) -> None:
    if question is None or not question.text:
        return
    if question.category is None:
        logger.warning("Dropping question '%s': no valid category.", question.text)
        return
    for issue in question_issues(question):
        logger.warning("Question '%s': %s.", question.text, issue)
    questions.append(question)
