from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, field_validator

RiskLevel = Literal["Low", "Moderate", "High", "Urgent"]
FindingStatus = Literal["Normal", "Borderline", "High-Risk"]

DEFAULT_DISCLAIMER = (
    "This analysis is for educational and informational purposes only and is not "
    "a medical diagnosis. Always consult a qualified healthcare professional about "
    "your results."
)


def _number_as_text(value: Any) -> Any:
    """Models often emit lab values as bare numbers; keep them as text."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _null_as_empty(value: Any) -> Any:
    return [] if value is None else value


def _null_as_blank(value: Any) -> Any:
    return "" if value is None else value


Text = Annotated[str, BeforeValidator(_number_as_text)]
# For fields that default to "": a null from the provider means "not given".
OptionalText = Annotated[str, BeforeValidator(_number_as_text), BeforeValidator(_null_as_blank)]


class _ProviderModel(BaseModel):
    # Unknown keys from the provider are dropped, not rejected.
    model_config = ConfigDict(extra="ignore", frozen=True)


class KeyFinding(_ProviderModel):
    test_name: Text
    value: Text
    reference_range: OptionalText = ""
    status: FindingStatus


class AbnormalValue(_ProviderModel):
    test_name: Text
    value: Text
    reference_range: OptionalText = ""
    explanation: OptionalText = ""
    possible_factors: Annotated[list[Text], BeforeValidator(_null_as_empty)] = []


class LifestyleGuidance(_ProviderModel):
    hydration: OptionalText = ""
    exercise: OptionalText = ""
    diet: OptionalText = ""
    sleep: OptionalText = ""
    follow_ups: OptionalText = ""


class AnalysisResult(_ProviderModel):
    summary: Text
    key_findings: Annotated[list[KeyFinding], BeforeValidator(_null_as_empty)] = []
    abnormal_values: Annotated[list[AbnormalValue], BeforeValidator(_null_as_empty)] = []
    risk_level: RiskLevel
    lifestyle_guidance: LifestyleGuidance = LifestyleGuidance()
    doctor_questions: Annotated[list[Text], BeforeValidator(_null_as_empty)] = []
    disclaimer: Text = DEFAULT_DISCLAIMER

    @field_validator("lifestyle_guidance", mode="before")
    @classmethod
    def _default_guidance(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("disclaimer", mode="before")
    @classmethod
    def _default_disclaimer(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_DISCLAIMER
        return value


# ── HTTP envelopes ──


class AnalyzeResponse(BaseModel):
    analysis: AnalysisResult


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str = "ok"
    api_key_configured: bool


class SettingsResponse(BaseModel):
    model: str
    temperature: float
    max_text_chars: int
