import pytest
from fastapi.testclient import TestClient

from exam_app.config.settings import Settings
from exam_app.server.api_server import create_api_app

DOCUMENTS = {
    "coding": "Question: Python list literal?\nA) [] B) {} C) () D) <>\nAnswer: []",
    "math": "Category: math\nQuestion: 2+2?\nA) 3 B) 4 C) 5 D) 6\nAnswer: 4",
    "aptitude": "",
    "communication": "Question: Broken?\nA) yes B) no\nAnswer: maybe",
}


def _student(roll_no, branch="CSE"):
    return {"name": f"Student {roll_no}", "roll_no": roll_no, "year": "2024", "branch": branch, "section": "A"}


@pytest.fixture
def client(manager):
    settings = Settings()
    settings.ADMIN_USERNAME = "proctor"
    settings.ADMIN_PASSWORD = "secret"
    settings.EXAM_DURATION_SECONDS = 1800
    return TestClient(create_api_app(manager, settings))


@pytest.fixture
def exam_id(client):
    response = client.post("/exams", json={"year": "2024", "semester": "1", "documents": DOCUMENTS})
    assert response.status_code == 201
    return response.json()["id"]


def test_admin_login(client):
    assert client.post("/admin/login", json={"username": "proctor", "password": "secret"}).json() == {"authenticated": True}
    assert client.post("/admin/login", json={"username": "proctor", "password": "nope"}).status_code == 401


def test_parse_document_endpoint(client):
    response = client.post("/documents/parse", json={"text": DOCUMENTS["math"]})

    body = response.json()
    assert response.status_code == 200
    assert body["questions"][0]["options"] == ["3", "4", "5", "6"]
    assert body["questions"][0]["category"] == "math"
    assert body["issues"] == {}


def test_parse_document_rejects_unknown_category_hint(client):
    response = client.post("/documents/parse", json={"text": "", "category_hint": "physics"})

    assert response.status_code == 422


def test_create_exam_reports_issues(client):
    response = client.post("/exams", json={"year": "2024", "semester": "1", "documents": DOCUMENTS})

    body = response.json()
    assert body["name"] == "2024_1"
    assert body["status"] == "pending"
    assert body["question_counts"] == {"coding": 1, "math": 1, "aptitude": 0, "communication": 1}
    broken = [q for q in body["questions"] if q["text"] == "Broken?"][0]
    assert "expected 4 options, found 2" in body["issues"][broken["id"]]


def test_list_and_get_exam(client, exam_id):
    listed = client.get("/exams").json()

    assert [exam["id"] for exam in listed] == [exam_id]
    assert "questions" not in listed[0]
    assert client.get(f"/exams/{exam_id}").json()["id"] == exam_id
    assert client.get("/exams/missing").status_code == 404


def test_update_questions(client, exam_id):
    exam = client.get(f"/exams/{exam_id}").json()
    kept = exam["questions"][0]
    payload = {
        "questions": [
            {**kept, "answer": "{}"},
            {"category": "aptitude", "text": "Odd one out?", "options": ["2", "4", "7", "8"], "answer": "7"},
        ]
    }

    body = client.put(f"/exams/{exam_id}/questions", json=payload).json()

    assert [q["text"] for q in body["questions"]] == [kept["text"], "Odd one out?"]
    assert body["questions"][0]["id"] == kept["id"]
    assert body["questions"][0]["answer"] == "{}"
    assert body["issues"] == {}


def test_update_questions_rejects_unknown_category(client, exam_id):
    payload = {"questions": [{"category": "physics", "text": "Q", "options": [], "answer": ""}]}

    assert client.put(f"/exams/{exam_id}/questions", json=payload).status_code == 422


def test_lifecycle_endpoints(client, exam_id):
    assert client.get(f"/exams/{exam_id}/status").json() == {"active": False}
    assert client.post(f"/exams/{exam_id}/deactivate").status_code == 409

    assert client.post(f"/exams/{exam_id}/activate").json() == {"link": f"exam/{exam_id}"}
    assert client.get(f"/exams/{exam_id}/status").json() == {"active": True}

    assert client.post(f"/exams/{exam_id}/deactivate").json() == {"active": False}
    assert client.post(f"/exams/{exam_id}/activate").status_code == 409
    assert client.post(f"/exams/{exam_id}/reopen").json() == {"link": f"exam/{exam_id}"}
    assert client.post("/exams/missing/activate").status_code == 404


def test_paper_requires_active_exam_and_hides_answers(client, exam_id):
    assert client.get(f"/exams/{exam_id}/paper").status_code == 409

    client.post(f"/exams/{exam_id}/activate")
    paper = client.get(f"/exams/{exam_id}/paper").json()

    assert paper["duration_seconds"] == 1800
    assert [section["category"] for section in paper["sections"]] == ["coding", "math", "communication"]
    question = paper["sections"][1]["questions"][0]
    assert "answer" not in question
    assert question["text_html"] == "<p>2+2?</p>\n"
    assert question["options_html"] == ["3", "4", "5", "6"]


def test_submission_is_scored_and_ranked(client, exam_id):
    client.post(f"/exams/{exam_id}/activate")
    paper = client.get(f"/exams/{exam_id}/paper").json()
    answers = {}
    for section in paper["sections"]:
        for question in section["questions"]:
            answers[question["id"]] = question["options"][1]

    response = client.post(f"/exams/{exam_id}/submissions", json={"student": _student("r1"), "answers": answers})

    assert response.status_code == 201
    result = response.json()
    # Option B is correct only for the math question.
    assert (result["coding_marks"], result["math_marks"], result["communication_marks"]) == (0, 1, 0)
    assert result["total_marks"] == 1

    card = client.get(f"/exams/{exam_id}/rank/r1").json()
    assert card["rank"]["overall"] == 1
    assert card["rank"]["ordinals"]["overall"] == "1st"
    assert card["result"]["student"]["roll_no"] == "r1"


def test_results_leaderboard_and_student_history(client, exam_id):
    client.post(f"/exams/{exam_id}/results", json={"student": _student("r1"), "marks": {"coding": 3, "math": 1}})
    client.post(f"/exams/{exam_id}/results", json={"student": _student("r2", branch="ECE"), "marks": {"math": 5}})

    results = client.get(f"/exams/{exam_id}/results").json()
    assert [r["student"]["roll_no"] for r in results] == ["r2", "r1"]
    assert results[0]["total_marks"] == 5

    board = client.get(f"/exams/{exam_id}/leaderboard", params={"category": "coding", "limit": 1}).json()
    assert [(e["rank"], e["student"]["roll_no"]) for e in board["entries"]] == [(1, "r1")]
    assert client.get(f"/exams/{exam_id}/leaderboard", params={"category": "physics"}).status_code == 422

    rank = client.get(f"/exams/{exam_id}/rank/r1").json()["rank"]
    assert rank["overall"] == 2
    assert rank["branch"] == 1
    assert rank["ordinals"]["overall"] == "2nd"
    assert rank["category"]["coding"] == 1

    history = client.get("/students/r1/results").json()
    assert [r["exam_id"] for r in history] == [exam_id]


def test_result_validation_and_not_found(client, exam_id):
    negative = client.post(f"/exams/{exam_id}/results", json={"student": _student("r1"), "marks": {"math": -1}})
    missing = client.post("/exams/missing/results", json={"student": _student("r1"), "marks": {}})

    assert negative.status_code == 422
    assert missing.status_code == 404
    assert client.get(f"/exams/{exam_id}/rank/nobody").status_code == 404


def test_about_describes_document_format(client):
    body = client.get("/about").json()

    assert body["name"] == "ExamRank"
    assert "Answer: 4" in body["document_format"]


def test_export_document_round_trips(client, exam_id):
    response = client.get(f"/exams/{exam_id}/document")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    parsed = client.post("/documents/parse", json={"text": response.text}).json()["questions"]
    original = client.get(f"/exams/{exam_id}").json()["questions"]
    assert [(q["category"], q["text"], q["options"], q["answer"]) for q in parsed] == [
        (q["category"], q["text"], q["options"], q["answer"]) for q in original
    ]
    assert client.get("/exams/missing/document").status_code == 404


def test_update_questions_rejects_blank_text(client, exam_id):
    payload = {"questions": [{"category": "math", "text": "   ", "options": [], "answer": ""}]}

    assert client.put(f"/exams/{exam_id}/questions", json=payload).status_code == 422


def test_update_questions_gives_repeated_ids_fresh_ids(client, exam_id):
    kept = client.get(f"/exams/{exam_id}").json()["questions"][0]
    payload = {"questions": [kept, {**kept, "text": "Copy"}]}

    questions = client.put(f"/exams/{exam_id}/questions", json=payload).json()["questions"]

    assert questions[0]["id"] == kept["id"]
    assert questions[1]["id"] != kept["id"]


def test_export_unrepresentable_exam_conflicts(client, exam_id):
    payload = {"questions": [{"category": "math", "text": "Pick", "options": ["1", "2", "3", "4", "5"], "answer": "5"}]}
    client.put(f"/exams/{exam_id}/questions", json=payload)

    assert client.get(f"/exams/{exam_id}/document").status_code == 409
