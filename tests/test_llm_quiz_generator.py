"""
Tests for llm_quiz_generator.GenerationClient with the Gemini SDK patched out.
"""

from unittest.mock import MagicMock, PropertyMock, patch

import pytest
from google.api_core import exceptions as google_exceptions

from errors import ConfigurationError, GenerationError
from llm_quiz_generator import GenerationClient
from models import Prompt

PROMPT = Prompt(system="system text", user="user text")


@pytest.fixture
def genai():
    with patch("llm_quiz_generator.genai") as mocked:
        yield mocked


def _model_returning(genai, text=None, side_effect=None):
    model = genai.GenerativeModel.return_value
    if side_effect is not None:
        model.generate_content.side_effect = side_effect
    else:
        model.generate_content.return_value = MagicMock(text=text)
    return model


def test_missing_api_key_is_configuration_error(genai):
    with pytest.raises(ConfigurationError):
        GenerationClient(api_key=None)
    with pytest.raises(ConfigurationError):
        GenerationClient(api_key="")
    genai.configure.assert_not_called()


def test_configuration_error_is_a_generation_error():
    assert issubclass(ConfigurationError, GenerationError)


def test_generate_sends_system_and_user_messages(genai):
    model = _model_returning(genai, text='{"questions": []}')
    client = GenerationClient(api_key="key", model_name="gemini-test", timeout=12)

    assert client.generate(PROMPT) == '{"questions": []}'
    genai.configure.assert_called_once_with(api_key="key")
    genai.GenerativeModel.assert_called_once_with("gemini-test", system_instruction="system text")
    model.generate_content.assert_called_once_with("user text", request_options={"timeout": 12})


def test_upstream_error_becomes_generation_error(genai):
    _model_returning(genai, side_effect=google_exceptions.InvalidArgument("bad request"))
    client = GenerationClient(api_key="key")
    with pytest.raises(GenerationError) as exc:
        client.generate(PROMPT)
    assert exc.value.status == 400
    assert "bad request" not in exc.value.public_message


def test_empty_completion_is_generation_error(genai):
    _model_returning(genai, text="   ")
    with pytest.raises(GenerationError):
        GenerationClient(api_key="key").generate(PROMPT)


def test_blocked_completion_is_generation_error(genai):
    model = genai.GenerativeModel.return_value
    resp = MagicMock()
    type(resp).text = PropertyMock(side_effect=ValueError("blocked"))
    model.generate_content.return_value = resp
    with pytest.raises(GenerationError):
        GenerationClient(api_key="key").generate(PROMPT)


def test_single_request_by_default(genai):
    model = _model_returning(genai, side_effect=google_exceptions.ServiceUnavailable("down"))
    with pytest.raises(GenerationError) as exc:
        GenerationClient(api_key="key").generate(PROMPT)
    assert exc.value.status == 503
    assert model.generate_content.call_count == 1


def test_opt_in_retry_on_transient_status(genai):
    model = _model_returning(
        genai,
        side_effect=[google_exceptions.ServiceUnavailable("down"), MagicMock(text="ok")],
    )
    client = GenerationClient(api_key="key", max_attempts=3)
    assert client.generate(PROMPT) == "ok"
    assert model.generate_content.call_count == 2


def test_non_transient_status_not_retried(genai):
    model = _model_returning(genai, side_effect=google_exceptions.PermissionDenied("no"))
    with pytest.raises(GenerationError):
        GenerationClient(api_key="key", max_attempts=3).generate(PROMPT)
    assert model.generate_content.call_count == 1
