"""FastAPI server that exposes admin and student endpoints."""

from __future__ import annotations

import secrets
from typing import Annotated, Literal
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field, StringConstraints
import uvicorn

from exam_app.config.settings import Settings, settings as default_settings
from exam_app.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION, HELP_TEXT
from exam_app.constants.exam_constants import DEFAULT_LEADERBOARD_LIMIT, TIME_WARNING_WINDOW_SECONDS
from exam_app.core.document_exporter import serialize_questions
from exam_app.core.document_parser import parse_document, question_issues
from exam_app.core.exam_manager import ExamManager, ExamStateError
from exam_app.core.markdown_renderer import renderer
from exam_app.core.models import (
    Category,
    CategoryMarks,
    Exam,
    ExamResult,
    Question,
    RankData,
    Student,
)
from exam_app.core.services.exam_store import ExamNotFoundError
from exam_app.core.services.leaderboard import format_ordinal

# Surrounding whitespace is stripped before the length check.
NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class LoginPayload(BaseModel):
    """Payload schema for the admin login form."""

    username: str
    password: str


class DocumentPayload(BaseModel):
    """Payload schema for parsing a single question document."""

    text: str
    category_hint: Category | None = None


class CategoryDocuments(BaseModel):
    coding: str = ""
    math: str = ""
    aptitude: str = ""
    communication: str = ""


class CreateExamPayload(BaseModel):
    """Payload schema for creating an exam from one document per category."""

    year: NonBlankStr
    semester: NonBlankStr
    documents: CategoryDocuments = Field(default_factory=CategoryDocuments)


class QuestionPayload(BaseModel):
    id: str | None = None
    category: Category
    text: NonBlankStr
    options: list[str] = Field(default_factory=list)
    answer: str = ""


class UpdateQuestionsPayload(BaseModel):
    questions: list[QuestionPayload]


class StudentPayload(BaseModel):
    """Details a student enters before starting the exam."""

    id: str = ""
    name: NonBlankStr
    roll_no: NonBlankStr
    year: NonBlankStr
    branch: NonBlankStr
    section: NonBlankStr


class SubmissionPayload(BaseModel):
    """Selected answers keyed by question id."""

    student: StudentPayload
    answers: dict[str, str] = Field(default_factory=dict)


class MarksPayload(BaseModel):
    coding: int = Field(default=0, ge=0)
    math: int = Field(default=0, ge=0)
    aptitude: int = Field(default=0, ge=0)
    communication: int = Field(default=0, ge=0)


class ResultPayload(BaseModel):
    """Precomputed category marks for one student."""

    student: StudentPayload
    marks: MarksPayload


def _question_to_dict(question: Question, include_answer: bool = True) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": question.id,
        "category": question.category.value,
        "text": question.text,
        "options": list(question.options),
    }
    if include_answer:
        payload["answer"] = question.answer
    return payload


def _exam_to_dict(exam: Exam, include_questions: bool = True) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": exam.id,
        "name": exam.name,
        "year": exam.year,
        "semester": exam.semester,
        "status": exam.status.value,
        "created_at": exam.created_at.isoformat(),
        "link": exam.link,
        "question_counts": {category.value: count for category, count in exam.category_counts().items()},
    }
    if include_questions:
        payload["questions"] = [_question_to_dict(question) for question in exam.questions]
    return payload


def _student_to_dict(student: Student) -> dict[str, object]:
    return {
        "id": student.id,
        "name": student.name,
        "roll_no": student.roll_no,
        "year": student.year,
        "branch": student.branch,
        "section": student.section,
    }


def _result_to_dict(result: ExamResult) -> dict[str, object]:
    return {
        "id": result.id,
        "exam_id": result.exam_id,
        "exam_name": result.exam_name,
        "student_id": result.student_id,
        "student": _student_to_dict(result.student),
        "total_marks": result.total_marks,
        "coding_marks": result.coding_marks,
        "math_marks": result.math_marks,
        "aptitude_marks": result.aptitude_marks,
        "communication_marks": result.communication_marks,
        "completed_at": result.completed_at.isoformat(),
    }


def _rank_to_dict(rank: RankData) -> dict[str, object]:
    ranks = {
        "overall": rank.overall,
        "year": rank.year,
        "branch": rank.branch,
        "section": rank.section,
        "category": {category.value: value for category, value in rank.category.items()},
    }
    ranks["ordinals"] = {
        "overall": format_ordinal(rank.overall),
        "year": format_ordinal(rank.year),
        "branch": format_ordinal(rank.branch),
        "section": format_ordinal(rank.section),
        "category": {category.value: format_ordinal(value) for category, value in rank.category.items()},
    }
    return ranks


def _issues_by_question(questions: list[Question]) -> dict[str, list[str]]:
    issues = {question.id: question_issues(question) for question in questions}
    return {question_id: found for question_id, found in issues.items() if found}


def _to_student(payload: StudentPayload) -> Student:
    return Student(
        id=payload.id,
        name=payload.name.strip(),
        roll_no=payload.roll_no.strip(),
        year=payload.year.strip(),
        branch=payload.branch.strip(),
        section=payload.section.strip(),
    )


def _get_exam_manager_dependency(exam_manager: ExamManager):
    def dependency() -> ExamManager:
        return exam_manager

    return dependency


def create_api_app(exam_manager: ExamManager, app_settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application wired to the provided exam manager."""
    app_settings = app_settings or default_settings
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, description=APP_ABOUT_TEXT)
    exam_manager_dep = _get_exam_manager_dependency(exam_manager)

    def require_exam(exam_id: str, manager: ExamManager) -> Exam:
        exam = manager.get_exam(exam_id)
        if exam is None:
            raise HTTPException(status_code=404, detail=f"Exam '{exam_id}' not found.")
        return exam

    @app.get("/about")
    def about() -> dict[str, object]:
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "license": APP_LICENSE,
            "about": APP_ABOUT_TEXT,
            "document_format": HELP_TEXT,
        }

    @app.post("/admin/login")
    def admin_login(payload: LoginPayload) -> dict[str, object]:
        # Placeholder check against configured credentials; no session is issued.
        valid_user = secrets.compare_digest(payload.username.encode(), app_settings.ADMIN_USERNAME.encode())
        valid_password = secrets.compare_digest(payload.password.encode(), app_settings.ADMIN_PASSWORD.encode())
        if not (valid_user and valid_password):
            raise HTTPException(status_code=401, detail="Invalid username or password.")
        return {"authenticated": True}

    @app.post("/documents/parse")
    def parse_question_document(payload: DocumentPayload) -> dict[str, object]:
        questions = parse_document(payload.text, payload.category_hint)
        return {
            "questions": [_question_to_dict(question) for question in questions],
            "issues": _issues_by_question(questions),
        }

    @app.post("/exams", status_code=201)
    def create_exam(
        payload: CreateExamPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        exam = manager.create_exam(
            payload.year.strip(),
            payload.semester.strip(),
            payload.documents.model_dump(),
        )
        response = _exam_to_dict(exam)
        response["issues"] = _issues_by_question(exam.questions)
        return response

    @app.get("/exams")
    def list_exams(manager: ExamManager = Depends(exam_manager_dep)) -> list[dict[str, object]]:
        return [_exam_to_dict(exam, include_questions=False) for exam in manager.list_exams()]

    @app.get("/exams/{exam_id}")
    def get_exam(exam_id: str, manager: ExamManager = Depends(exam_manager_dep)) -> dict[str, object]:
        return _exam_to_dict(require_exam(exam_id, manager))

    @app.get("/exams/{exam_id}/document", response_class=PlainTextResponse)
    def export_exam_document(exam_id: str, manager: ExamManager = Depends(exam_manager_dep)) -> str:
        exam = require_exam(exam_id, manager)
        try:
            return serialize_questions(exam.questions)
        except ValueError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc

    @app.put("/exams/{exam_id}/questions")
    def update_questions(
        exam_id: str,
        payload: UpdateQuestionsPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        exam = require_exam(exam_id, manager)
        available_ids = {question.id for question in exam.questions}
        questions = []
        for item in payload.questions:
            # Each existing id may be claimed once; repeats get a fresh id.
            if item.id in available_ids:
                question_id = item.id
                available_ids.discard(item.id)
            else:
                question_id = str(uuid4())
            questions.append(
                Question(
                    id=question_id,
                    category=item.category,
                    text=item.text,
                    options=[option.strip() for option in item.options],
                    answer=item.answer.strip(),
                )
            )
        try:
            updated = manager.update_exam_questions(exam_id, questions)
        except ExamNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        response = _exam_to_dict(updated)
        response["issues"] = _issues_by_question(updated.questions)
        return response

    @app.post("/exams/{exam_id}/activate")
    def activate_exam(exam_id: str, manager: ExamManager = Depends(exam_manager_dep)) -> dict[str, object]:
        try:
            link = manager.activate_exam(exam_id)
        except ExamNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ExamStateError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return {"link": link}

    @app.post("/exams/{exam_id}/deactivate")
    def deactivate_exam(exam_id: str, manager: ExamManager = Depends(exam_manager_dep)) -> dict[str, object]:
        try:
            manager.deactivate_exam(exam_id)
        except ExamNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ExamStateError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return {"active": False}

    @app.post("/exams/{exam_id}/reopen")
    def reopen_exam(exam_id: str, manager: ExamManager = Depends(exam_manager_dep)) -> dict[str, object]:
        try:
            link = manager.reopen_exam(exam_id)
        except ExamNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ExamStateError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return {"link": link}

    @app.get("/exams/{exam_id}/status")
    def exam_status(exam_id: str, manager: ExamManager = Depends(exam_manager_dep)) -> dict[str, object]:
        return {"active": manager.is_exam_active(exam_id)}

    @app.get("/exams/{exam_id}/paper")
    def exam_paper(exam_id: str, manager: ExamManager = Depends(exam_manager_dep)) -> dict[str, object]:
        try:
            attempt = manager.start_attempt(exam_id)
        except ExamNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ExamStateError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        # Answers are never sent to students.
        sections = []
        for category in attempt.categories():
            questions = []
            for question in attempt.questions_for(category):
                entry = _question_to_dict(question, include_answer=False)
                entry["text_html"] = renderer.render_fragment(question.text)
                entry["options_html"] = [renderer.render_inline(option) for option in question.options]
                questions.append(entry)
            sections.append({"category": category.value, "questions": questions})
        return {
            "exam_id": exam_id,
            "duration_seconds": app_settings.EXAM_DURATION_SECONDS,
            "warning_seconds": TIME_WARNING_WINDOW_SECONDS,
            "sections": sections,
        }

    @app.post("/exams/{exam_id}/submissions", status_code=201)
    def submit_answers(
        exam_id: str,
        payload: SubmissionPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        try:
            result = manager.submit_answers(exam_id, _to_student(payload.student), payload.answers)
        except ExamNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return _result_to_dict(result)

    @app.post("/exams/{exam_id}/results", status_code=201)
    def submit_result(
        exam_id: str,
        payload: ResultPayload,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        marks = CategoryMarks(**payload.marks.model_dump())
        try:
            result = manager.submit_result(exam_id, _to_student(payload.student), marks)
        except ExamNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _result_to_dict(result)

    @app.get("/exams/{exam_id}/results")
    def exam_results(exam_id: str, manager: ExamManager = Depends(exam_manager_dep)) -> list[dict[str, object]]:
        return [_result_to_dict(result) for result in manager.get_results(exam_id)]

    @app.get("/exams/{exam_id}/leaderboard")
    def leaderboard(
        exam_id: str,
        category: Literal["overall", "coding", "math", "aptitude", "communication"] = "overall",
        limit: int = DEFAULT_LEADERBOARD_LIMIT,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        if category == "overall":
            performers = manager.get_top_performers(exam_id, limit)
        else:
            performers = manager.get_top_performers_by_category(exam_id, category, limit)
        return {
            "exam_id": exam_id,
            "category": category,
            "entries": [
                {"rank": position, **_result_to_dict(result)}
                for position, result in enumerate(performers, start=1)
            ],
        }

    @app.get("/exams/{exam_id}/rank/{roll_no}")
    def rank_card(
        exam_id: str,
        roll_no: str,
        manager: ExamManager = Depends(exam_manager_dep),
    ) -> dict[str, object]:
        rank = manager.get_rank(exam_id, roll_no)
        if rank is None:
            raise HTTPException(
                status_code=404,
                detail=f"No result for roll no '{roll_no}' in exam '{exam_id}'.",
            )
        result = next(r for r in manager.get_results(exam_id) if r.student.roll_no == roll_no)
        return {"result": _result_to_dict(result), "rank": _rank_to_dict(rank)}

    @app.get("/students/{roll_no}/results")
    def student_results(roll_no: str, manager: ExamManager = Depends(exam_manager_dep)) -> list[dict[str, object]]:
        return [_result_to_dict(result) for result in manager.get_student_results(roll_no)]

    return app


def run_api_server(
    exam_manager: ExamManager,
    host: str = default_settings.HOST,
    port: int = default_settings.PORT,
    log_level: str = "info",
) -> None:
    """Run the FastAPI server in the current thread until interrupted."""
    app = create_api_app(exam_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level)
    server = uvicorn.Server(config)
    server.run()
