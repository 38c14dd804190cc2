import asyncio
import json

import pytest

from healthscan import analyzer, llm
from healthscan.errors import (
    AnalysisError,
    ConfigurationError,
    EmptyProviderResponse,
    InvalidProviderOutput,
    UnsupportedFileType,
)
from healthscan.prompts import TEXT_INSTRUCTION


def test_parse_plain_json(sample_analysis):
    result = analyzer.parse_analysis(json.dumps(sample_analysis))
    assert result.model_dump() == sample_analysis


def test_parse_fenced_json(sample_analysis):
    raw = "Here you go:\n```json\n" + json.dumps(sample_analysis) + "\n```"
    assert analyzer.parse_analysis(raw).risk_level == "Low"


@pytest.mark.parametrize("raw", ["", "   \n"])
def test_parse_empty_output(raw):
    with pytest.raises(EmptyProviderResponse) as exc_info:
        analyzer.parse_analysis(raw)
    assert exc_info.value.message == "Failed to generate analysis"


@pytest.mark.parametrize(
    "raw",
    [
        "I cannot analyze this report.",
        '{"summary": "cut off',
        '["summary", "risk_level"]',
        '{"summary": "ok", "risk_level": "Critical"}',
    ],
)
def test_parse_invalid_output(raw):
    with pytest.raises(InvalidProviderOutput) as exc_info:
        analyzer.parse_analysis(raw)
    assert exc_info.value.status_code == 502


def test_missing_key_is_checked_before_file_type(no_api_key):
    with pytest.raises(ConfigurationError):
        asyncio.run(analyzer.analyze("notes.txt", "text/plain", b"hello"))


def test_unsupported_type(provider):
    with pytest.raises(UnsupportedFileType):
        asyncio.run(analyzer.analyze("notes.txt", "text/plain", b"hello"))
    assert provider.calls == []


def test_pdf_text_is_truncated_before_submission(provider):
    body = ("Glucose 92 mg/dL\n" * 1000).encode()
    assert len(body) > 10_000
    asyncio.run(analyzer.analyze("labs.pdf", "application/pdf", body))

    sent = provider.user_content
    assert sent.startswith(TEXT_INSTRUCTION)
    assert len(sent) - len(TEXT_INSTRUCTION) == 10_000


def test_image_is_sent_inline(provider):
    asyncio.run(analyzer.analyze("scan.png", "image/png", b"png-bytes"))
    parts = provider.user_content
    assert parts[1]["image_url"]["url"] == "data:image/png;base64,cG5nLWJ5dGVz"


def test_provider_exception_is_wrapped(provider):
    provider.reply = RuntimeError("quota exceeded")
    with pytest.raises(AnalysisError) as exc_info:
        asyncio.run(analyzer.analyze("labs.pdf", "application/pdf", b"x"))
    assert type(exc_info.value) is AnalysisError
    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "quota exceeded"


def test_complete_uses_json_mode_and_low_temperature(monkeypatch, api_key):
    seen = {}

    class _Completions:
        async def create(self, **kwargs):
            seen.update(kwargs)

            class _Message:
                content = '{"summary": "ok", "risk_level": "Low"}'

            class _Choice:
                message = _Message()
                finish_reason = "stop"

            class _Resp:
                choices = [_Choice()]

            return _Resp()

    class _Chat:
        completions = _Completions()

    class _Client:
        chat = _Chat()

    monkeypatch.setattr(llm, "get_client", lambda: _Client())
    text = asyncio.run(llm.complete([{"role": "user", "content": "hi"}]))

    assert text == '{"summary": "ok", "risk_level": "Low"}'
    assert seen["temperature"] == 0.3
    assert seen["response_format"] == {"type": "json_object"}
    assert seen["model"] == "gemini-2.5-flash"


def test_parse_deeply_nested_output():
    raw = '{"summary": ' + "[" * 200_000 + "]" * 200_000 + ', "risk_level": "Low"}'
    with pytest.raises(InvalidProviderOutput):
        analyzer.parse_analysis(raw)
