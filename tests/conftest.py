"""
Shared pytest fixtures: sample article HTML, model payloads, an in-memory
quiz store, and fake network stages that count their calls.
"""

import json
import os
import sys

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

os.environ.setdefault("DATABASE_URL", "sqlite://")

from database import QuizStore, init_db
from errors import GenerationError
from models import RawArticle

TURING_URL = "https://en.wikipedia.org/wiki/Turing_Award"

TURING_PARAGRAPHS = [
    "The <b>ACM A.M. Turing Award</b> is an annual prize given by the "
    "<a href=\"/wiki/Association_for_Computing_Machinery\">Association for Computing Machinery</a>.<sup class=\"reference\">[1]</sup>",
    "It is named after Alan Turing, a British mathematician.",
    "The award is often referred to as the  \"Nobel Prize of Computing\".",
    "Since 2014 the award has been accompanied by a prize of US$1 million.",
    "The first recipient, in 1966, was Alan Perlis.",
]


def make_article_html(title="Turing Award", paragraphs=TURING_PARAGRAPHS):
    body = "\n".join(f"<p>{p}</p>" for p in paragraphs)
    title_tag = f"<title>{title} - Wikipedia</title>" if title else ""
    return f"<html><head>{title_tag}</head><body><div id=\"mw-content-text\">{body}</div></body></html>"


def make_question(i=0, answer="A", difficulty="easy"):
    return {
        "question": f"Question {i}?",
        "options": {"A": f"a{i}", "B": f"b{i}", "C": f"c{i}", "D": f"d{i}"},
        "correctAnswer": answer,
        "explanation": f"Because {i}.",
        "difficulty": difficulty,
        "relatedTopics": [f"Topic {i}"],
    }


def make_completion(count=7):
    levels = ["easy", "easy", "medium", "medium", "medium", "hard", "hard"]
    answers = "ABCD"
    questions = [
        make_question(i, answer=answers[i % 4], difficulty=levels[i % len(levels)])
        for i in range(count)
    ]
    return json.dumps({"questions": questions})


class FakeFetcher:
    def __init__(self, markup=None, error=None):
        self.markup = markup if markup is not None else make_article_html()
        self.error = error
        self.calls = []

    def fetch(self, url):
        self.calls.append(url)
        if self.error:
            raise self.error
        return RawArticle(url=url, markup=self.markup)


class FakeClient:
    def __init__(self, completion=None, error=None):
        self.completion = completion if completion is not None else make_completion()
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.completion


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    return QuizStore(engine)


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def failing_client():
    return FakeClient(error=GenerationError("upstream 503", status=503))
