import json
import os

# must be set before quizapi is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient

from quizapi.core.exceptions import DependencyError
from quizapi.db.sessions import Database
from quizapi.main import create_app
from quizapi.services.quiz_generator import QuizGenerator


SAMPLE_QUESTIONS = [
    {
        "question": "Which body conducts elections to the Lok Sabha?",
        "options": {"A": "Election Commission of India", "B": "Parliament", "C": "Supreme Court", "D": "NITI Aayog"},
        "answer": "A",
        "explanation": "Article 324 vests this in the Election Commission.",
    },
    {
        "question": "Where is the RBI headquartered?",
        "options": {"A": "Delhi", "B": "Mumbai", "C": "Kolkata", "D": "Chennai"},
        "answer": "B",
        "explanation": "The Reserve Bank of India is headquartered in Mumbai.",
    },
    {
        "question": "Which planet did Chandrayaan-3 land on?",
        "options": {"A": "Mars", "B": "Venus", "C": "The Moon", "D": "Mercury"},
        "answer": "C",
        "explanation": "Chandrayaan-3 is a lunar mission.",
    },
]


class FakeGenerator(QuizGenerator):
    """Returns a canned reply instead of calling the API."""

    def __init__(self, reply=None, error=None):
        self.reply = reply if reply is not None else "```json\n" + json.dumps(SAMPLE_QUESTIONS) + "\n```"
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


class FakeMailer:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_email(self, to_email, subject, html):
        if self.fail:
            raise DependencyError("Failed to send email")
        self.sent.append({"to": to_email, "subject": subject, "html": html})


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def app(generator, mailer):
    return create_app(database=Database("sqlite://"), quiz_generator=generator, mailer=mailer)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app, client):
    session = app.state.database.session()
    try:
        yield session
    finally:
        session.close()


def register_user(client, name="Asha", email="asha@example.com", password="secret123"):
    response = client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def user(client):
    return register_user(client)


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {user['token']}"}
