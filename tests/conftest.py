import json
import os
import tempfile
from pathlib import Path

# Must be set before anything imports knowly (settings are read at import time)
_TMP = Path(tempfile.mkdtemp(prefix="knowly-test-"))
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'knowly.db'}"
os.environ["KNOWLY_UPLOAD_BACKEND"] = "local"
os.environ["KNOWLY_UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["KNOWLY_FREE_DAILY_LIMIT"] = "3"

import pytest  # noqa: E402

from knowly.db.base import Base  # noqa: E402
from knowly.db.session import SessionLocal, engine  # noqa: E402
from knowly.services.llm.chat_client import ChatCompletion, ChatUsage, CompletionFailed  # noqa: E402

LESSONS_JSON = json.dumps(
    {
        "lessons": [
            {"title": "What is photosynthesis", "content": "Plants turn light into chemical energy."},
            {"title": "Chlorophyll", "content": "The green pigment that absorbs light."},
        ]
    }
)
QUIZ_JSON = json.dumps(
    {
        "questions": [
            {
                "question": "Which pigment absorbs light?",
                "options": ["Chlorophyll", "Keratin", "Melanin", "Hemoglobin"],
                "correctAnswer": 0,
                "explanation": "Chlorophyll is the green pigment.",
            },
            {
                "question": "What do plants release?",
                "options": ["Nitrogen", "Oxygen", "Helium", "Argon"],
                "correctAnswer": 1,
            },
        ]
    }
)
FLASHCARDS_JSON = json.dumps(
    {
        "flashcards": [
            {"front": "Photosynthesis", "back": "Turning light into chemical energy"},
            {"front": "Chlorophyll", "back": "Green pigment in plants"},
        ]
    }
)

DEFAULT_RESPONSES = {
    "language": "  English\n",
    "title": "Photosynthesis Basics",
    "category": "Science",
    "lessons": LESSONS_JSON,
    "quiz": QUIZ_JSON,
    "new_quiz": QUIZ_JSON,
    "summary": "Plants make food from light.",
    "flashcards": FLASHCARDS_JSON,
}

# system prompt marker -> stage; "new_quiz" must be checked before "quiz"
_STAGE_MARKERS = (
    ("language detection expert", "language"),
    ("content analyst", "title"),
    ("content categorization expert", "category"),
    ("educational content creator", "lessons"),
    ("NEW and DIFFERENT", "new_quiz"),
    ("quiz creator", "quiz"),
    ("summarization expert", "summary"),
    ("flashcard creator", "flashcards"),
)


def stage_of(messages) -> str:
    system = messages[0]["content"]
    for marker, stage in _STAGE_MARKERS:
        if marker in system:
            return stage
    raise AssertionError(f"unknown prompt: {system[:80]!r}")


class ScriptedChatClient:
    """
    Answers each stage with a canned response and records every call.
    """

    def __init__(self, responses=None, fail_on=None):
        self.responses = dict(DEFAULT_RESPONSES)
        self.responses.update(responses or {})
        self.fail_on = fail_on
        self.calls = []

    def stages(self):
        return [stage for stage, _ in self.calls]

    def messages_for(self, stage):
        return [m for s, m in self.calls if s == stage]

    def complete(self, messages, model=None):
        messages = list(messages)
        stage = stage_of(messages)
        self.calls.append((stage, messages))
        if stage == self.fail_on:
            raise CompletionFailed("Chat completion request failed with status 500: boom")
        return ChatCompletion(
            content=self.responses[stage],
            id=f"cmpl-{len(self.calls)}",
            model="fake-model",
            usage=ChatUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
            finish_reason="stop",
        )


@pytest.fixture(scope="session", autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_chat():
    return ScriptedChatClient


@pytest.fixture
def chat():
    return ScriptedChatClient()


@pytest.fixture
def worker_chat(monkeypatch, chat):
    """
    Routes every chat call made by background tasks to the scripted client.
    """
    from knowly.worker import generate_tasks

    monkeypatch.setattr(generate_tasks, "build_chat_client", lambda: chat)
    return chat
