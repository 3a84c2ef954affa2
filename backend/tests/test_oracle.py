"""
Tests for the Gemini oracle wrapper
"""
import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import errors as genai_errors

from hireflow.config import Settings
from hireflow.errors import OracleError
from hireflow.services.oracle import (
    GeminiOracle,
    build_oracle,
    clamp_score,
    parse_match_score,
    strip_code_fences,
)


def make_client(*responses):
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(side_effect=list(responses))
    return client


def reply(text):
    return SimpleNamespace(text=text)


def server_error(code=503):
    return genai_errors.ServerError(code, {"error": {"code": code, "message": "overloaded", "status": "UNAVAILABLE"}})


def make_oracle(client, **kwargs):
    kwargs.setdefault("retry_backoff", 0)
    return GeminiOracle(api_key="test-key", client=client, **kwargs)


def test_missing_api_key_fails_fast():
    with pytest.raises(OracleError) as exc_info:
        GeminiOracle(api_key="")
    assert exc_info.value.reason == OracleError.NOT_CONFIGURED


def test_build_oracle_without_key_returns_none():
    assert build_oracle(Settings(gemini_api_key="  ")) is None


@pytest.mark.parametrize("text, expected", [
    ('```json\n{"a": 1}\n```', '{"a": 1}'),
    ('```\n{"a": 1}```', '{"a": 1}'),
    ('  {"a": 1}  ', '{"a": 1}'),
])
def test_strip_code_fences(text, expected):
    assert strip_code_fences(text) == expected


@pytest.mark.parametrize("value, expected", [(73.5, 74), (142, 100), (-5, 0), ("88", 88)])
def test_clamp_score(value, expected):
    assert clamp_score(value) == expected


@pytest.mark.parametrize("value", ["high", None, float("nan")])
def test_clamp_score_rejects_non_numbers(value):
    with pytest.raises(OracleError) as exc_info:
        clamp_score(value)
    assert exc_info.value.reason == OracleError.INVALID_JSON


def test_parse_match_score_rejects_prose():
    with pytest.raises(OracleError) as exc_info:
        parse_match_score("The candidate looks great!")
    assert exc_info.value.reason == OracleError.INVALID_JSON


def test_parse_match_score_requires_score():
    with pytest.raises(OracleError):
        parse_match_score('{"explanation": "no score here"}')


async def test_score_match_clamps_and_rounds():
    client = make_client(reply('```json\n{"score": 99.5, "explanation": " Strong fit "}\n```'))
    oracle = make_oracle(client, scoring_temperature=0.0)

    match = await oracle.score_match("Backend role", "Python engineer")

    assert match.score == 100
    assert match.explanation == "Strong fit"
    kwargs = client.aio.models.generate_content.call_args.kwargs
    assert kwargs["config"].temperature == 0.0
    assert kwargs["config"].response_mime_type == "application/json"
    assert "Candidate Resume:\nPython engineer" in kwargs["contents"]


async def test_retries_transient_errors_then_succeeds():
    client = make_client(server_error(), reply('{"score": 60, "explanation": "ok"}'))
    oracle = make_oracle(client, max_retries=3)

    match = await oracle.score_match("job", "candidate")

    assert match.score == 60
    assert client.aio.models.generate_content.await_count == 2


async def test_exhausted_retries_raise_upstream_failure():
    client = make_client(server_error(), server_error(), server_error())
    oracle = make_oracle(client, max_retries=3)

    with pytest.raises(OracleError) as exc_info:
        await oracle.generate_text("system", "user")

    assert exc_info.value.reason == OracleError.UPSTREAM_FAILURE
    assert client.aio.models.generate_content.await_count == 3


async def test_client_errors_are_not_retried():
    error = genai_errors.ClientError(400, {"error": {"code": 400, "message": "bad request", "status": "INVALID_ARGUMENT"}})
    client = make_client(error)
    oracle = make_oracle(client, max_retries=3)

    with pytest.raises(OracleError) as exc_info:
        await oracle.generate_text("system", "user")

    assert exc_info.value.reason == OracleError.UPSTREAM_FAILURE
    assert client.aio.models.generate_content.await_count == 1


async def test_timeouts_are_retried():
    async def hang(**kwargs):
        await asyncio.sleep(5)

    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(side_effect=hang)
    oracle = make_oracle(client, timeout=0.01, max_retries=2)

    with pytest.raises(OracleError) as exc_info:
        await oracle.generate_text("system", "user")

    assert exc_info.value.reason == OracleError.UPSTREAM_FAILURE
    assert client.aio.models.generate_content.await_count == 2


async def test_empty_response_is_reported():
    oracle = make_oracle(make_client(reply("   ")))
    with pytest.raises(OracleError) as exc_info:
        await oracle.complete_structured("system", "user")
    assert exc_info.value.reason == OracleError.EMPTY_RESPONSE


async def test_complete_structured_embeds_schema():
    from hireflow.schemas.resume import ParsedResume

    client = make_client(reply('{"full_name": "Jane"}'))
    oracle = make_oracle(client, extraction_temperature=0.1)

    text = await oracle.complete_structured("Parse this.", "resume text", schema=ParsedResume)

    assert text == '{"full_name": "Jane"}'
    config = client.aio.models.generate_content.call_args.kwargs["config"]
    assert "years_of_experience" in config.system_instruction
    assert config.temperature == 0.1
