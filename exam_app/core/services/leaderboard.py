"""Service for ranking exam results and building leaderboards."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from exam_app.constants.exam_constants import DEFAULT_LEADERBOARD_LIMIT
from exam_app.core.models import Category, ExamResult, RankData, Student


class Leaderboard:
    """Ranks the results of one exam.

    Every ordering is a stable sort of the results in submission order, so
    students with equal marks keep the order in which they submitted.
    """

    def __init__(self, results: Iterable[ExamResult]) -> None:
        self._results: list[ExamResult] = list(results)

    def __len__(self) -> int:
        return len(self._results)

    def by_total(self) -> list[ExamResult]:
        return sorted(self._results, key=lambda result: result.total_marks, reverse=True)

    def by_category(self, category: Category | str) -> list[ExamResult]:
        category = Category.parse(category)
        return sorted(self._results, key=lambda result: result.marks_for(category), reverse=True)

    def top(self, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> list[ExamResult]:
        return self.by_total()[:limit]

    def top_by_category(self, category: Category | str, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> list[ExamResult]:
        return self.by_category(category)[:limit]

    def find(self, roll_no: str) -> ExamResult | None:
        return next((result for result in self.by_total() if result.student.roll_no == roll_no), None)

    def rank_of(self, roll_no: str) -> RankData | None:
        """Return the overall, scoped and per-category ranks of a roll number."""
        overall = self.by_total()
        target = self.find(roll_no)
        if target is None:
            return None

        student = target.student
        return RankData(
            overall=_position(overall, roll_no),
            year=_position(overall, roll_no, _same_year(student)),
            branch=_position(overall, roll_no, _same_branch(student)),
            section=_position(overall, roll_no, _same_section(student)),
            category={
                category: _position(self.by_category(category), roll_no)
                for category in Category
            },
        )


def format_ordinal(value: int) -> str:
    """Return ``1st``, ``2nd``, ``3rd``, ``11th``, ``22nd`` and so on."""
    if 10 <= value % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(value % 10, "th")
    return f"{value}{suffix}"


def _position(
    ordered: list[ExamResult],
    roll_no: str,
    keep: Callable[[ExamResult], bool] | None = None,
) -> int:
    scoped = ordered if keep is None else [result for result in ordered if keep(result)]
    return next(
        index for index, result in enumerate(scoped, start=1) if result.student.roll_no == roll_no
    )


def _same_year(student: Student) -> Callable[[ExamResult], bool]:
    return lambda result: result.student.year == student.year


def _same_branch(student: Student) -> Callable[[ExamResult], bool]:
    return lambda result: result.student.branch == student.branch


def _same_section(student: Student) -> Callable[[ExamResult], bool]:
    return lambda result: (
        result.student.section == student.section
        and result.student.branch == student.branch
        and result.student.year == student.year
    )
