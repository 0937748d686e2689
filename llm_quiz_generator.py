import logging
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from errors import ConfigurationError, GenerationError
from models import Prompt

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
TRANSIENT_STATUSES = (429, 500, 503, 504)


def _status_of(error: google_exceptions.GoogleAPIError) -> Optional[int]:
    code = getattr(error, "code", None)
    return int(code) if code is not None else None


class GenerationClient:
    """
    Thin wrapper around a Gemini model for quiz completions.

    One request per ``generate`` call unless ``max_attempts`` is raised;
    only transient upstream statuses are retried then. Each attempt is a
    billed call, so callers should leave it at 1 unless they mean it.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = DEFAULT_MODEL,
        timeout: float = 60.0,
        max_attempts: int = 1,
    ):
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY / GOOGLE_API_KEY is not configured")
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)

    def _request(self, prompt: Prompt) -> str:
        model = genai.GenerativeModel(self.model_name, system_instruction=prompt.system)
        resp = model.generate_content(prompt.user, request_options={"timeout": self.timeout})
        try:
            text = resp.text
        except ValueError as e:
            # .text raises when the candidate was blocked or has no parts
            raise GenerationError(f"Model {self.model_name} returned no text: {e}") from e
        if not (text or "").strip():
            raise GenerationError(f"Model {self.model_name} returned an empty response")
        return text

    def generate(self, prompt: Prompt) -> str:
        attempt = 1
        while True:
            try:
                return self._request(prompt)
            except google_exceptions.GoogleAPIError as e:
                status = _status_of(e)
                if attempt < self.max_attempts and status in TRANSIENT_STATUSES:
                    logger.warning(
                        "Completion request failed with %s, retrying (attempt %d/%d)",
                        status, attempt + 1, self.max_attempts,
                    )
                    attempt += 1
                    continue
                logger.error("Completion service error: status=%s body=%s", status, e)
                raise GenerationError(f"Model {self.model_name} request failed: {e}", status=status) from e
