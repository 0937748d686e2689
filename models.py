from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

OPTION_KEYS = ("A", "B", "C", "D")
DIFFICULTIES = ("easy", "medium", "hard")


class RawArticle(BaseModel):
    url: str
    markup: str


class ExtractedContent(BaseModel):
    title: str
    excerpt: str


class Prompt(BaseModel):
    model_config = ConfigDict(frozen=True)

    system: str
    user: str


class QuizQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    question: str
    options: Dict[str, str]
    correct_answer: str = Field(alias="correctAnswer")
    explanation: str
    difficulty: str
    related_topics: List[str] = Field(default_factory=list, alias="relatedTopics")

    @field_validator("options")
    @classmethod
    def _exactly_four_options(cls, v: Dict[str, str]) -> Dict[str, str]:
        if set(v) != set(OPTION_KEYS):
            raise ValueError(f"options must have exactly the keys A, B, C, D, got {sorted(v)}")
        return v

    @field_validator("correct_answer")
    @classmethod
    def _answer_is_option_key(cls, v: str) -> str:
        if v not in OPTION_KEYS:
            raise ValueError(f"correctAnswer must be one of A, B, C, D, got {v!r}")
        return v

    @field_validator("difficulty")
    @classmethod
    def _normalize_difficulty(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode="after")
    def _answer_in_options(self) -> "QuizQuestion":
        if self.correct_answer not in self.options:
            raise ValueError(f"correctAnswer {self.correct_answer!r} is not a key of options")
        return self

    @property
    def difficulty_label(self) -> str:
        """Difficulty bucket for display; unrecognized values show as "other"."""
        return self.difficulty if self.difficulty in DIFFICULTIES else "other"


class Quiz(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    url: str
    questions: List[QuizQuestion] = Field(min_length=1)


class QuizRecord(Quiz):
    scraped_content: Optional[str] = None
    created_at: datetime

    def to_quiz(self) -> Quiz:
        return Quiz(id=self.id, title=self.title, url=self.url, questions=self.questions)


class QuizSummary(BaseModel):
    id: int
    title: str
    url: str
    created_at: datetime
    question_count: int
    difficulty_counts: Dict[str, int]
