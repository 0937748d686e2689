import logging
from collections import Counter
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import get_settings
from database import QuizStore, init_db, make_engine
from errors import QuizPipelineError
from llm_quiz_generator import GenerationClient
from models import DIFFICULTIES, QuizSummary
from pipeline import QuizPipeline
from quiz_parser import dump_questions
from scraper import ArticleFetcher, ContentExtractor

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(get_store().engine)
    yield


app = FastAPI(title="AI Wiki Quiz Generator API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def preflight(request: Request, call_next):
    # answer CORS preflight with an empty body before CORSMiddleware does
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    return await call_next(request)


class GenerateBody(BaseModel):
    url: Optional[str] = None


@lru_cache
def get_store() -> QuizStore:
    return QuizStore(make_engine(settings.database_url))


@lru_cache
def get_client() -> GenerationClient:
    return GenerationClient(
        api_key=settings.gemini_api_key,
        model_name=settings.gemini_model,
        timeout=settings.llm_timeout,
        max_attempts=settings.llm_max_attempts,
    )


def get_pipeline(store: QuizStore = Depends(get_store)) -> QuizPipeline:
    fetcher = ArticleFetcher(
        timeout=settings.fetch_timeout,
        max_attempts=settings.fetch_max_attempts,
        mobile_fallback=settings.fetch_mobile_fallback,
    )
    return QuizPipeline(fetcher, ContentExtractor(), None, store, client_factory=get_client)


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"success": False, "error": "Request body must be JSON with a 'url' field"})


@app.exception_handler(QuizPipelineError)
async def pipeline_error_handler(request: Request, exc: QuizPipelineError):
    # raised outside a pipeline run, e.g. a storage failure while listing history
    logger.error("%s: %s", exc.kind, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.public_message})


@app.get("/")
def root():
    """API root endpoint with basic information."""
    return {
        "name": "AI Wiki Quiz Generator API",
        "version": "1.0.0",
        "endpoints": ["/generate_quiz", "/history", "/quiz/{id}"]
    }


@app.post("/generate_quiz")
def generate_quiz_endpoint(body: GenerateBody, pipeline: QuizPipeline = Depends(get_pipeline)):
    """Run the full pipeline for one Wikipedia URL and return the stored quiz."""
    outcome = pipeline.run(body.url)
    return JSONResponse(status_code=outcome.status_code, content=outcome.envelope())


def _difficulty_counts(questions) -> dict:
    counts = Counter(q.difficulty_label for q in questions)
    return {label: counts[label] for label in (*DIFFICULTIES, "other")}


@app.get("/history")
def history(store: QuizStore = Depends(get_store)):
    """Get list of all generated quizzes, most recent first."""
    return [
        QuizSummary(
            id=r.id,
            title=r.title,
            url=r.url,
            created_at=r.created_at,
            question_count=len(r.questions),
            difficulty_counts=_difficulty_counts(r.questions),
        ).model_dump(mode="json")
        for r in store.list_all()
    ]


@app.get("/quiz/{quiz_id}")
def get_quiz(quiz_id: int, store: QuizStore = Depends(get_store)):
    """Get full quiz details by ID."""
    r = store.get(quiz_id)
    if not r:
        return JSONResponse(status_code=404, content={"success": False, "error": "Quiz not found"})
    return {
        "id": r.id,
        "title": r.title,
        "url": r.url,
        "questions": dump_questions(r.questions),
        "created_at": r.created_at.isoformat(),
    }
