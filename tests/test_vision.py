import asyncio
import base64
import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from mines_predictor import vision
from mines_predictor.vision import (
    DEFAULT_ANALYSIS_TEXT,
    AnalysisCredentialError,
    AnalysisGenericError,
    AnalysisResult,
    OpenAIVisionAnalyzer,
    build_prompt,
    encode_image,
    load_image,
    parse_response_text,
)


class FakeCompletions:
    def __init__(self, outcome):
        self.outcome = outcome
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class FakeClient:
    def __init__(self, completions, closed):
        self.chat = SimpleNamespace(completions=completions)
        self.closed = closed

    async def close(self):
        self.closed.append(True)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()


def _install_client(monkeypatch, outcome, closed=None):
    completions = FakeCompletions(outcome)
    keys = []
    closed = closed if closed is not None else []

    def factory(api_key=None):
        keys.append(api_key)
        return FakeClient(completions, closed)

    monkeypatch.setattr(vision.openai, "AsyncOpenAI", factory)
    return completions, keys


def _reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _http_response(status):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    return httpx.Response(status, request=request)


def test_encode_image():
    assert encode_image(b"abc", "image/png") == "data:image/png;base64," + base64.b64encode(
        b"abc"
    ).decode("ascii")


def test_load_image(tmp_path):
    path = tmp_path / "board.png"
    path.write_bytes(b"\x89PNG")
    assert load_image(path).startswith("data:image/png;base64,")


def test_build_prompt_mentions_bounds():
    prompt = build_prompt(5)
    assert "5x5" in prompt
    assert "0..4" in prompt


def test_parse_response_text():
    result = parse_response_text(
        json.dumps(
            {"analysisText": "Cluster", "predictions": [{"r": 0, "c": 1, "p": 80, "reason": "gap"}]}
        )
    )
    assert result == AnalysisResult("Cluster", [{"r": 0, "c": 1, "p": 80, "reason": "gap"}])


def test_parse_response_text_defaults():
    result = parse_response_text("{}")
    assert result.analysis_text == DEFAULT_ANALYSIS_TEXT
    assert result.predictions == []

    assert parse_response_text(None).predictions == []


def test_parse_response_text_strips_fences():
    result = parse_response_text('```json\n{"analysisText": "ok", "predictions": []}\n```')
    assert result.analysis_text == "ok"


def test_parse_response_text_single_line_fence():
    result = parse_response_text('```{"analysisText": "ok", "predictions": []}```')
    assert result.analysis_text == "ok"

    result = parse_response_text('```json {"analysisText": "inline", "predictions": []}```')
    assert result.analysis_text == "inline"


@pytest.mark.parametrize("text", ["```", "``````", "```json```"])
def test_parse_response_text_empty_fence_is_generic_error(text):
    with pytest.raises(AnalysisGenericError):
        parse_response_text(text)


@pytest.mark.parametrize("text", ["not json", "[1, 2]", '{"predictions": 3}'])
def test_parse_response_text_rejects_malformed(text):
    with pytest.raises(AnalysisGenericError):
        parse_response_text(text)


def test_missing_key_is_credential_error(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(AnalysisCredentialError):
        asyncio.run(OpenAIVisionAnalyzer().analyze("AAAA", 5))


def test_analyze_success(monkeypatch):
    completions, keys = _install_client(
        monkeypatch,
        _reply('{"analysisText": "Diagonal", "predictions": [{"r": 1, "c": 2, "p": 88, "reason": "x"}]}'),
    )

    result = asyncio.run(OpenAIVisionAnalyzer(model="m", api_key="k").analyze("AAAA", 3))

    assert keys == ["k"]
    assert result.analysis_text == "Diagonal"
    assert result.predictions == [{"r": 1, "c": 2, "p": 88, "reason": "x"}]
    assert completions.kwargs["model"] == "m"
    content = completions.kwargs["messages"][0]["content"]
    assert content[1]["image_url"]["url"] == "data:image/jpeg;base64,AAAA"


def test_analyze_reads_key_from_env_each_call(monkeypatch):
    _, keys = _install_client(monkeypatch, _reply("{}"))
    analyzer = OpenAIVisionAnalyzer()

    monkeypatch.setenv("OPENAI_API_KEY", "first")
    asyncio.run(analyzer.analyze("data:image/png;base64,AAAA", 3))
    monkeypatch.setenv("OPENAI_API_KEY", "second")
    asyncio.run(analyzer.analyze("data:image/png;base64,AAAA", 3))

    assert keys == ["first", "second"]


def test_authentication_error_maps_to_credential_error(monkeypatch):
    error = openai.AuthenticationError("bad key", response=_http_response(401), body=None)
    _install_client(monkeypatch, error)

    with pytest.raises(AnalysisCredentialError):
        asyncio.run(OpenAIVisionAnalyzer(api_key="k").analyze("AAAA", 5))


def test_connection_error_maps_to_generic_error(monkeypatch):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    _install_client(monkeypatch, openai.APIConnectionError(request=request))

    with pytest.raises(AnalysisGenericError):
        asyncio.run(OpenAIVisionAnalyzer(api_key="k").analyze("AAAA", 5))


def test_empty_choices_is_generic_error(monkeypatch):
    _install_client(monkeypatch, SimpleNamespace(choices=[]))

    with pytest.raises(AnalysisGenericError):
        asyncio.run(OpenAIVisionAnalyzer(api_key="k").analyze("AAAA", 5))


def test_client_is_closed_after_success(monkeypatch):
    closed = []
    _install_client(monkeypatch, _reply("{}"), closed)

    asyncio.run(OpenAIVisionAnalyzer(api_key="k").analyze("AAAA", 3))

    assert closed == [True]


def test_client_is_closed_after_failure(monkeypatch):
    closed = []
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    _install_client(monkeypatch, openai.APIConnectionError(request=request), closed)

    with pytest.raises(AnalysisGenericError):
        asyncio.run(OpenAIVisionAnalyzer(api_key="k").analyze("AAAA", 3))

    assert closed == [True]
