"""Exam-related constants shared across core and server layers."""

DEFAULT_LEADERBOARD_LIMIT: int = 10
DEFAULT_EXAM_DURATION_SECONDS: int = 60 * 60
TIME_WARNING_WINDOW_SECONDS: int = 5 * 60
EXAM_LINK_PREFIX: str = "exam/"
EXAM_NAME_TEMPLATE: str = "{year}_{semester}"
