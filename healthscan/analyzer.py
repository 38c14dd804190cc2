import json
import logging
import re
import time
from typing import Any

from pydantic import ValidationError

from healthscan import llm
from healthscan.config import settings
from healthscan.errors import (
    AnalysisError,
    ConfigurationError,
    EmptyProviderResponse,
    InvalidProviderOutput,
)
from healthscan.extract import extract_content
from healthscan.models import AnalysisResult
from healthscan.prompts import build_messages

log = logging.getLogger(__name__)


def _parse_llm_json(text: str) -> dict[str, Any]:
    """Leniently parse a JSON object from LLM output."""
    text = text.strip()
    candidates = [text]
    # JSON mode should make these unnecessary, but models still fence output sometimes
    m = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if m:
        candidates.append(m.group(1).strip())
    m = re.search(r"\{.*\}", text, re.DOTALL)
    if m:
        candidates.append(m.group())

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, RecursionError):
            # RecursionError: nesting deeper than the decoder will follow
            continue
        if isinstance(data, dict):
            return data
    raise ValueError(f"Could not parse a JSON object from LLM output: {text[:200]}")


def parse_analysis(raw: str) -> AnalysisResult:
    """Validate provider text against the AnalysisResult schema.

    Raises EmptyProviderResponse if there is no text at all and
    InvalidProviderOutput if the text is not a conforming JSON document.
    """
    if not raw or not raw.strip():
        raise EmptyProviderResponse()
    try:
        data = _parse_llm_json(raw)
    except ValueError as e:
        log.warning("%s", e)
        raise InvalidProviderOutput() from e
    try:
        return AnalysisResult.model_validate(data)
    except RecursionError as e:
        log.warning("Provider output nested too deeply to validate")
        raise InvalidProviderOutput() from e
    except ValidationError as e:
        log.warning("Provider output failed validation: %d error(s): %s", e.error_count(), e.errors()[:3])
        raise InvalidProviderOutput() from e


async def analyze(filename: str | None, content_type: str | None, data: bytes) -> AnalysisResult:
    """Run one uploaded report through the provider and return the validated result.

    Every failure leaves as an AnalysisError; anything unexpected (SDK or
    network errors) is logged and wrapped with its own message.
    """
    t0 = time.monotonic()
    log.info("Analyzing upload %r (%s, %d bytes)", filename, content_type, len(data))

    if not settings.gemini.is_configured:
        log.error("Rejecting upload: GEMINI_API_KEY is not set")
        raise ConfigurationError()

    content = extract_content(content_type, data)
    messages = build_messages(content)

    try:
        raw = await llm.complete(messages)
    except Exception as e:
        log.exception("Provider call failed")
        raise AnalysisError(str(e) or None) from e

    result = parse_analysis(raw)
    log.info(
        "Analysis complete: risk=%s findings=%d abnormal=%d (%.2fs)",
        result.risk_level,
        len(result.key_findings),
        len(result.abnormal_values),
        time.monotonic() - t0,
    )
    return result
