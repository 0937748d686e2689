import json
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from errors import PersistenceError
from models import QuizQuestion, QuizRecord
from quiz_parser import dump_questions

logger = logging.getLogger(__name__)

SCRAPED_CONTENT_LIMIT = 5000


class Base(DeclarativeBase):
    pass


class StoredQuiz(Base):
    __tablename__ = "quizzes"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    url: Mapped[str] = mapped_column(String(1024), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    scraped_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    questions_json: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)


def make_engine(database_url: str) -> Engine:
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


def init_db(engine: Engine):
    """Initialize database tables. Creates tables if they don't exist."""
    Base.metadata.create_all(bind=engine)


def _to_record(row: StoredQuiz) -> QuizRecord:
    questions = [QuizQuestion.model_validate(q) for q in json.loads(row.questions_json)]
    return QuizRecord(
        id=row.id,
        title=row.title,
        url=row.url,
        questions=questions,
        scraped_content=row.scraped_content,
        created_at=row.created_at,
    )


class QuizStore:
    """
    Append-only access to the ``quizzes`` table.

    Every call opens its own session, so concurrent pipeline runs never
    share one. Storage failures surface as PersistenceError.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def save(self, title: str, url: str, excerpt: str, questions: List[QuizQuestion]) -> QuizRecord:
        if not questions:
            raise PersistenceError("Refusing to store a quiz with no questions")

        db = self.SessionLocal()
        try:
            row = StoredQuiz(
                url=url,
                title=title,
                scraped_content=(excerpt or "")[:SCRAPED_CONTENT_LIMIT],
                questions_json=json.dumps(dump_questions(questions), ensure_ascii=False),
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            logger.info("Stored quiz %s for %s", row.id, url)
            return _to_record(row)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Database error while storing quiz for %s: %s", url, e)
            raise PersistenceError(f"Could not store quiz: {e}") from e
        finally:
            db.close()

    def list_all(self) -> List[QuizRecord]:
        db = self.SessionLocal()
        try:
            rows = db.scalars(
                select(StoredQuiz).order_by(StoredQuiz.created_at.desc(), StoredQuiz.id.desc())
            ).all()
            return [_to_record(r) for r in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not list quizzes: {e}") from e
        finally:
            db.close()

    def get(self, quiz_id: int) -> Optional[QuizRecord]:
        db = self.SessionLocal()
        try:
            row = db.get(StoredQuiz, quiz_id)
            return _to_record(row) if row else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load quiz {quiz_id}: {e}") from e
        finally:
            db.close()
