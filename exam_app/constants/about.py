"""Static metadata describing the exam application."""

APP_NAME = "ExamRank"
APP_VERSION = "0.1.0"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "ExamRank runs timed multiple-choice exams. Admins upload one question document per "
    "category, activate the exam and share its link; students submit through the link and "
    "admins follow overall, year, branch, section and category leaderboards."
)

HELP_TEXT = (
    "Upload one plain-text document per category. Each question uses the format:\n\n"
    "Category: math\n"
    "Question: What is 2 + 2?\n"
    "A) 3 B) 4 C) 5 D) 6\n"
    "Answer: 4\n\n"
    "The answer is the text of the correct option, not its letter. Keywords are "
    "case-insensitive and blank lines are ignored."
)
