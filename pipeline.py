"""
Quiz generation pipeline.

One ``QuizPipeline.run`` call walks a URL through every stage in order:

    IDLE -> VALIDATING -> FETCHING -> EXTRACTING -> PROMPTING
         -> GENERATING -> PARSING -> PERSISTING -> DONE

Any stage can end the run in FAILED. Nothing is retried here; a caller who
wants another attempt starts a new run.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional
from urllib.parse import urlsplit

import quiz_parser
from database import QuizStore
from errors import InvalidInput, ParseError, QuizPipelineError
from llm_quiz_generator import GenerationClient
from models import Quiz
from prompts import build_prompt
from scraper import ArticleFetcher, ContentExtractor

logger = logging.getLogger(__name__)

WIKIPEDIA_DOMAIN = "wikipedia.org"


class PipelineState(str, enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    PROMPTING = "prompting"
    GENERATING = "generating"
    PARSING = "parsing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


def validate_article_url(url: Optional[str]) -> str:
    url = (url or "").strip()
    if not url:
        raise InvalidInput("Invalid Wikipedia URL: url is required")
    parts = urlsplit(url)
    host = (parts.hostname or "").lower()
    if parts.scheme not in ("http", "https"):
        raise InvalidInput("Invalid Wikipedia URL: must start with http:// or https://")
    if host != WIKIPEDIA_DOMAIN and not host.endswith("." + WIKIPEDIA_DOMAIN):
        raise InvalidInput("Invalid Wikipedia URL")
    return url


@dataclass
class PipelineOutcome:
    state: PipelineState
    failed_at: Optional[PipelineState] = None
    quiz: Optional[Quiz] = None
    error: Optional[QuizPipelineError] = None
    history: List[PipelineState] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state is PipelineState.DONE

    @property
    def status_code(self) -> int:
        return 200 if self.success else self.error.status_code

    def envelope(self) -> dict:
        if self.success:
            return {
                "success": True,
                "quiz": {
                    "id": self.quiz.id,
                    "title": self.quiz.title,
                    "url": self.quiz.url,
                    "questions": quiz_parser.dump_questions(self.quiz.questions),
                },
            }
        return {"success": False, "error": self.error.public_message}


class QuizPipeline:
    def __init__(
        self,
        fetcher: ArticleFetcher,
        extractor: ContentExtractor,
        client: Optional[GenerationClient],
        store: QuizStore,
        client_factory: Optional[Callable[[], GenerationClient]] = None,
    ):
        self.fetcher = fetcher
        self.extractor = extractor
        self.client = client
        self.store = store
        self.client_factory = client_factory

    def _client(self) -> GenerationClient:
        # built on first use, after the URL has been validated
        if self.client is None:
            self.client = self.client_factory()
        return self.client

    def run(self, url: Optional[str]) -> PipelineOutcome:
        history = [PipelineState.IDLE]

        def enter(state: PipelineState):
            history.append(state)
            logger.debug("Pipeline for %r entering %s", url, state.value)

        try:
            enter(PipelineState.VALIDATING)
            url = validate_article_url(url)

            enter(PipelineState.FETCHING)
            logger.info("Processing Wikipedia URL: %s", url)
            article = self.fetcher.fetch(url)

            enter(PipelineState.EXTRACTING)
            content = self.extractor.extract(article.markup)

            enter(PipelineState.PROMPTING)
            prompt = build_prompt(content.title, content.excerpt)

            enter(PipelineState.GENERATING)
            logger.info("Extracted %d characters for %r, generating quiz", len(content.excerpt), content.title)
            completion = self._client().generate(prompt)

            enter(PipelineState.PARSING)
            questions = quiz_parser.parse(completion)
            if not questions:
                raise ParseError("Completion contained an empty 'questions' list")

            enter(PipelineState.PERSISTING)
            record = self.store.save(content.title, url, content.excerpt, questions)
        except QuizPipelineError as e:
            return self._fail(history, e)
        except Exception as e:
            logger.exception("Unexpected error in generate-quiz pipeline")
            return self._fail(history, QuizPipelineError(f"{type(e).__name__}: {e}"))

        enter(PipelineState.DONE)
        logger.info("Quiz %s generated and saved for %s", record.id, url)
        return PipelineOutcome(state=PipelineState.DONE, quiz=record.to_quiz(), history=history)

    def _fail(self, history: List[PipelineState], error: QuizPipelineError) -> PipelineOutcome:
        failed_at = history[-1]
        log = logger.warning if error.status_code < 500 else logger.error
        log("Pipeline failed at %s with %s: %s", failed_at.value, error.kind, error.detail)
        history.append(PipelineState.FAILED)
        return PipelineOutcome(state=PipelineState.FAILED, failed_at=failed_at, error=error, history=history)
