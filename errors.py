"""
Error taxonomy for the quiz generation pipeline.

Every stage raises one of these; the orchestrator turns them into the
uniform response envelope. ``public_message`` is what the caller sees,
``detail`` stays in the logs.
"""
from typing import Optional


class QuizPipelineError(Exception):
    kind = "InternalError"
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.public_message
        super().__init__(self.detail)


class InvalidInput(QuizPipelineError):
    kind = "InvalidInput"
    status_code = 400
    public_message = "Invalid Wikipedia URL"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail)
        # validation problems are user-correctable, so the caller sees them
        self.public_message = self.detail


class RetrievalError(QuizPipelineError):
    kind = "RetrievalError"
    public_message = "Failed to fetch the Wikipedia article"

    def __init__(self, detail: Optional[str] = None, status: Optional[int] = None):
        super().__init__(detail)
        self.status = status


class ExtractionError(QuizPipelineError):
    kind = "ExtractionError"
    public_message = "Could not extract content from Wikipedia article"


class GenerationError(QuizPipelineError):
    kind = "GenerationError"
    public_message = "Failed to generate quiz with AI"

    def __init__(self, detail: Optional[str] = None, status: Optional[int] = None):
        super().__init__(detail)
        self.status = status


class ConfigurationError(GenerationError):
    kind = "ConfigurationError"


class ParseError(QuizPipelineError):
    kind = "ParseError"
    public_message = "Failed to parse quiz data from AI"


class PersistenceError(QuizPipelineError):
    kind = "PersistenceError"
    public_message = "Failed to save quiz to database"
