import copy
import json
from typing import Any

import pytest
from fastapi.testclient import TestClient

from healthscan import llm
from healthscan.config import settings
from healthscan.main import app

SAMPLE_ANALYSIS: dict[str, Any] = {
    "summary": "Most of your blood test results are within the expected range.",
    "key_findings": [
        {
            "test_name": "Hemoglobin",
            "value": "14.2 g/dL",
            "reference_range": "13.5-17.5 g/dL",
            "status": "Normal",
        },
        {
            "test_name": "LDL Cholesterol",
            "value": "135 mg/dL",
            "reference_range": "< 100 mg/dL",
            "status": "Borderline",
        },
    ],
    "abnormal_values": [
        {
            "test_name": "LDL Cholesterol",
            "value": "135 mg/dL",
            "reference_range": "< 100 mg/dL",
            "explanation": "LDL is sometimes called bad cholesterol. Yours is a little above the usual range.",
            "possible_factors": ["Diet high in saturated fat", "Low physical activity"],
        }
    ],
    "risk_level": "Low",
    "lifestyle_guidance": {
        "hydration": "Drink water regularly through the day.",
        "exercise": "Aim for 150 minutes of moderate activity a week.",
        "diet": "Favour vegetables, whole grains and lean protein.",
        "sleep": "Try to get 7 to 9 hours of sleep.",
        "follow_ups": "Recheck your lipid panel in 6 months.",
    },
    "doctor_questions": [
        "Should I recheck my cholesterol?",
        "Are there dietary changes you recommend?",
    ],
    "disclaimer": "This is not medical advice. Talk to your doctor about your results.",
}


class FakeProvider:
    """Stands in for llm.complete and records what it was sent."""

    def __init__(self, reply: str | Exception):
        self.reply = reply
        self.calls: list[list[dict[str, Any]]] = []

    async def __call__(self, messages: list[dict[str, Any]]) -> str:
        self.calls.append(messages)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply

    @property
    def user_content(self) -> Any:
        return self.calls[-1][-1]["content"]


@pytest.fixture
def sample_analysis() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_ANALYSIS)


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(settings.gemini, "api_key", "test-key")


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.setattr(settings.gemini, "api_key", "")


@pytest.fixture
def provider(monkeypatch, api_key):
    """Install a fake provider that answers with SAMPLE_ANALYSIS; tests may change .reply."""
    fake = FakeProvider(json.dumps(SAMPLE_ANALYSIS))
    monkeypatch.setattr(llm, "complete", fake)
    return fake


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)
