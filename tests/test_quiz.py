import uuid

from quizapi.core.exceptions import DependencyError
from quizapi.models.quiz import Quiz
from quizapi.models.result import Result

from conftest import SAMPLE_QUESTIONS, register_user

LINKS = ["https://example.com/news/elections", "https://example.com/news/isro"]


def _generate(client, headers, links=LINKS):
    response = client.post("/quiz/generate-quiz", json={"links": links}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["quiz"]


def test_generate_quiz(client, auth_headers, user, generator):
    response = client.post("/quiz/generate-quiz", json={"links": LINKS}, headers=auth_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Quiz generated successfully."
    quiz = body["quiz"]
    assert quiz["userID"] == user["user"]["_id"]
    assert quiz["attempt"] is False
    assert [q["answer"] for q in quiz["quiz"]] == ["A", "B", "C"]
    assert quiz["quiz"][0]["explanation"] == SAMPLE_QUESTIONS[0]["explanation"]

    prompt = generator.prompts[0]
    assert "Article 1: https://example.com/news/elections" in prompt
    assert "Article 2: https://example.com/news/isro" in prompt


def test_generate_quiz_requires_token(client):
    response = client.post("/quiz/generate-quiz", json={"links": LINKS})
    assert response.status_code == 401


def test_generate_quiz_invalid_links(client, auth_headers, generator):
    for payload in ({}, {"links": []}, {"links": "https://example.com"}, {"links": [""]}):
        response = client.post("/quiz/generate-quiz", json=payload, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid links provided."}
    assert generator.prompts == []


def test_generate_quiz_unparseable_reply(client, auth_headers, generator, db):
    generator.reply = "Sorry, I cannot read links."

    response = client.post("/quiz/generate-quiz", json={"links": LINKS}, headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to parse quiz data"}
    assert db.query(Quiz).count() == 0


def test_generate_quiz_rejects_malformed_questions(client, auth_headers, generator, db):
    generator.reply = '[{"question": "Q?", "options": {"A": "x", "B": "y"}, "answer": "A"}]'

    response = client.post("/quiz/generate-quiz", json={"links": LINKS}, headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to parse quiz data"}
    assert db.query(Quiz).count() == 0


def test_generate_quiz_generator_failure(client, auth_headers, generator):
    generator.error = DependencyError("Failed to generate quiz")

    response = client.post("/quiz/generate-quiz", json={"links": LINKS}, headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate quiz"}


def test_submit_quiz_scores_by_position(client, auth_headers):
    quiz = _generate(client, auth_headers)

    response = client.put(
        "/quiz/submit-quiz",
        json={"quizID": quiz["_id"], "answers": ["A", "X", "C"]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "message": "Quiz submitted successfully",
        "score": 2,
        "totalQuestions": 3,
        "percentage": "66.67%",
    }


def test_submit_quiz_accepts_non_string_answers(client, auth_headers):
    quiz = _generate(client, auth_headers)

    response = client.put(
        "/quiz/submit-quiz",
        json={"quizID": quiz["_id"], "answers": ["A", 2, "C"]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["score"] == 2
    assert response.json()["totalQuestions"] == 3


def test_submit_quiz_ignores_extra_and_missing_answers(client, auth_headers):
    quiz = _generate(client, auth_headers)

    short = client.put("/quiz/submit-quiz", json={"quizID": quiz["_id"], "answers": ["A"]}, headers=auth_headers)
    assert short.json()["score"] == 1
    assert short.json()["percentage"] == "33.33%"

    extra = client.put(
        "/quiz/submit-quiz",
        json={"quizID": quiz["_id"], "answers": ["A", "B", "C", "D", "A"]},
        headers=auth_headers,
    )
    assert extra.json()["score"] == 3
    assert extra.json()["percentage"] == "100.00%"


def test_resubmission_updates_result_in_place(client, auth_headers, db):
    quiz = _generate(client, auth_headers)

    first = client.put("/quiz/submit-quiz", json={"quizID": quiz["_id"], "answers": ["X", "X", "X"]}, headers=auth_headers)
    second = client.put("/quiz/submit-quiz", json={"quizID": quiz["_id"], "answers": ["A", "B", "C"]}, headers=auth_headers)

    assert first.json()["message"] == "Quiz submitted successfully"
    assert second.json()["message"] == "Quiz submission updated successfully"
    assert second.json()["score"] == 3

    results = db.query(Result).filter(Result.quiz_id == uuid.UUID(quiz["_id"])).all()
    assert len(results) == 1
    assert results[0].score == 3
    assert results[0].updated_at >= results[0].created_at


def test_submit_quiz_not_found(client, auth_headers):
    for quiz_id in (str(uuid.uuid4()), "not-an-id"):
        response = client.put("/quiz/submit-quiz", json={"quizID": quiz_id, "answers": ["A"]}, headers=auth_headers)
        assert response.status_code == 404
        assert response.json() == {"error": "Quiz not found"}


def test_submit_quiz_owned_by_someone_else(client, auth_headers):
    quiz = _generate(client, auth_headers)
    other = register_user(client, name="Ravi", email="ravi@example.com")

    response = client.put(
        "/quiz/submit-quiz",
        json={"quizID": quiz["_id"], "answers": ["A", "B", "C"]},
        headers={"Authorization": f"Bearer {other['token']}"},
    )
    assert response.status_code == 404


def test_submit_quiz_without_questions_is_zero_percent(client, auth_headers, user, db):
    quiz = Quiz(user_id=uuid.UUID(user["user"]["_id"]), content=[])
    db.add(quiz)
    db.commit()

    response = client.put("/quiz/submit-quiz", json={"quizID": str(quiz.id), "answers": ["A"]}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["totalQuestions"] == 0
    assert response.json()["percentage"] == "0.00%"


def test_get_quizzes_none_found(client, auth_headers):
    response = client.get("/quiz/get-quiz", headers=auth_headers)

    assert response.status_code == 404
    assert response.json() == {"error": "No quizzes found for this user."}


def test_get_quizzes_lists_only_own(client, auth_headers):
    first = _generate(client, auth_headers)
    second = _generate(client, auth_headers, links=["https://example.com/news/budget"])
    other = register_user(client, name="Ravi", email="ravi@example.com")
    _generate(client, {"Authorization": f"Bearer {other['token']}"})

    response = client.get("/quiz/get-quiz", headers=auth_headers)

    assert response.status_code == 200
    ids = [q["_id"] for q in response.json()["quizzes"]]
    assert sorted(ids) == sorted([first["_id"], second["_id"]])


def test_get_result(client, auth_headers, user):
    quiz = _generate(client, auth_headers)

    missing = client.get(f"/quiz/result/{quiz['_id']}", headers=auth_headers)
    assert missing.status_code == 404
    assert missing.json() == {"error": "Result not found"}

    client.put("/quiz/submit-quiz", json={"quizID": quiz["_id"], "answers": ["A", "X", "C"]}, headers=auth_headers)
    response = client.get(f"/quiz/result/{quiz['_id']}", headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Result retrieved successfully"
    result = body["result"]
    assert result["userID"] == user["user"]["_id"]
    assert result["quizID"] == quiz["_id"]
    assert result["score"] == 2
    assert result["totalQuestions"] == 3
    assert result["percentage"] == "66.67%"
    assert "createdAt" in result and "updatedAt" in result


def test_get_result_malformed_id(client, auth_headers):
    response = client.get("/quiz/result/abc", headers=auth_headers)
    assert response.status_code == 404
