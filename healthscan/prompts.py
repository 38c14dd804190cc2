from typing import Any

from healthscan.config import settings
from healthscan.extract import ExtractedContent, ExtractedImage

SYSTEM_INSTRUCTION = """\
You are a healthcare data analysis assistant designed strictly for educational and informational purposes, not for diagnosis or treatment. Your task is to analyze uploaded medical reports and generate a clear, structured, human-readable summary for a non-medical user.

Your responsibilities:
1. Extract key fields: patient metrics, test names, values, reference ranges, and flags
2. Classify results into Normal, Borderline, and High-Risk categories
3. Explain each abnormal value in very simple language (assume the user is a beginner)
4. Include possible lifestyle or dietary factors that commonly influence such results
5. Provide general wellness recommendations (hydration, exercise, diet, sleep, follow-ups) without prescribing medication
6. Clearly highlight urgent red-flag indicators that require consulting a certified doctor
7. Add a 'Questions to Ask Your Doctor' section
8. Include a final safety disclaimer

Output must be structured strictly in JSON with these sections:
- summary: Brief overview of the report
- key_findings: Array of {test_name, value, reference_range, status}
- abnormal_values: Array of {test_name, value, reference_range, explanation, possible_factors}
- risk_level: "Low", "Moderate", "High", or "Urgent"
- lifestyle_guidance: {hydration, exercise, diet, sleep, follow_ups}
- doctor_questions: Array of suggested questions
- disclaimer: Safety disclaimer text

Maintain a calm, supportive, non-alarming tone. Never give diagnoses, never suggest drugs, and never claim medical authority. If data is missing or unclear, explicitly state assumptions."""

IMAGE_INSTRUCTION = (
    "Please analyze this medical report image and provide a structured analysis "
    "following the JSON format specified."
)

TEXT_INSTRUCTION = (
    "Please analyze this medical report text and provide a structured analysis "
    "following the JSON format specified:\n\n"
)


def truncate_report_text(text: str, max_chars: int | None = None) -> str:
    limit = settings.analysis.max_text_chars if max_chars is None else max_chars
    return text[:limit]


def build_user_content(content: ExtractedContent, max_chars: int | None = None) -> str | list[dict[str, Any]]:
    """Build the user turn: instruction text, plus the inline image for uploads that are images."""
    if isinstance(content, ExtractedImage):
        return [
            {"type": "text", "text": IMAGE_INSTRUCTION},
            {"type": "image_url", "image_url": {"url": content.data_url}},
        ]
    return TEXT_INSTRUCTION + truncate_report_text(content.text, max_chars)


def build_messages(content: ExtractedContent, max_chars: int | None = None) -> list[dict[str, Any]]:
    return [
        {"role": "system", "content": SYSTEM_INSTRUCTION},
        {"role": "user", "content": build_user_content(content, max_chars)},
    ]
