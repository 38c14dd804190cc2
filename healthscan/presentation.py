"""Server-side rendering of analysis results and the upload page.

`render_report` only reads its input. It accepts plain dicts as well as
validated results, so every list-typed field is checked before it is
iterated and malformed entries are skipped rather than raising.
"""

import enum
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel

from healthscan.models import DEFAULT_DISCLAIMER

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

RISK_COLORS: dict[str, str] = {
    "Low": "green",
    "Moderate": "yellow",
    "High": "orange",
    "Urgent": "red",
}
_RISK_DEFAULT = "gray"

# Anything that is not Normal or Borderline is shown as high risk.
STATUS_COLORS: dict[str, str] = {
    "Normal": "green",
    "Borderline": "yellow",
}
_STATUS_DEFAULT = "red"

STATUS_ICONS: dict[str, str] = {
    "Normal": "check",
    "Borderline": "warning",
    "High-Risk": "alert",
}
_ICON_DEFAULT = "activity"

LIFESTYLE_SECTIONS: list[tuple[str, str, str]] = [
    ("hydration", "Hydration", "\U0001f4a7"),
    ("exercise", "Exercise", "\U0001f3c3"),
    ("diet", "Diet", "\U0001f957"),
    ("sleep", "Sleep", "\U0001f634"),
    ("follow_ups", "Follow-ups", "\U0001f4c5"),
]

ACCEPTED_UPLOADS = ".pdf,image/*"


class PageState(str, enum.Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    RESULT = "result"
    ERROR = "error"


# (state, event) -> next state. Submitting is only possible from a settled page.
_TRANSITIONS: dict[tuple[PageState, str], PageState] = {
    (PageState.IDLE, "submit"): PageState.ANALYZING,
    (PageState.ERROR, "submit"): PageState.ANALYZING,
    (PageState.ANALYZING, "success"): PageState.RESULT,
    (PageState.ANALYZING, "failure"): PageState.ERROR,
    (PageState.RESULT, "reset"): PageState.IDLE,
    (PageState.ERROR, "reset"): PageState.IDLE,
}


def transition(state: PageState, event: str) -> PageState:
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise ValueError(f"Cannot '{event}' while page is {state.value}") from None


def risk_color(level: Any) -> str:
    return RISK_COLORS.get(level, _RISK_DEFAULT) if isinstance(level, str) else _RISK_DEFAULT


def status_color(status: Any) -> str:
    return STATUS_COLORS.get(status, _STATUS_DEFAULT) if isinstance(status, str) else _STATUS_DEFAULT


def status_icon(status: Any) -> str:
    return STATUS_ICONS.get(status, _ICON_DEFAULT) if isinstance(status, str) else _ICON_DEFAULT


def format_size(num_bytes: int) -> str:
    return f"{num_bytes / 1024:.1f} KB"


def _records(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _build_env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(_TEMPLATES_DIR),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.globals.update(
        risk_color=risk_color,
        status_color=status_color,
        status_icon=status_icon,
        records=_records,
        strings=_strings,
        text=_text,
        lifestyle_sections=LIFESTYLE_SECTIONS,
        accepted_uploads=ACCEPTED_UPLOADS,
    )
    return env


env = _build_env()


def _as_mapping(result: BaseModel | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(result, BaseModel):
        return result.model_dump()
    if isinstance(result, Mapping):
        return result
    raise TypeError(f"Cannot render {type(result).__name__} as an analysis result")


def report_context(result: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    data = _as_mapping(result)
    guidance = data.get("lifestyle_guidance")
    disclaimer = _text(data.get("disclaimer")).strip()
    return {
        "risk_level": _text(data.get("risk_level")) or "Unknown",
        "summary": _text(data.get("summary")),
        "key_findings": _records(data.get("key_findings")),
        "abnormal_values": _records(data.get("abnormal_values")),
        "guidance": guidance if isinstance(guidance, Mapping) else {},
        "doctor_questions": _strings(data.get("doctor_questions")),
        "disclaimer": disclaimer or DEFAULT_DISCLAIMER,
    }


def render_report(result: BaseModel | Mapping[str, Any]) -> str:
    """Render an analysis result as an HTML fragment."""
    return env.get_template("_report.html").render(**report_context(result))


def render_page(
    state: PageState,
    *,
    result: BaseModel | Mapping[str, Any] | None = None,
    error: str | None = None,
    filename: str | None = None,
    size: int | None = None,
) -> str:
    """Render the full page for one of the page states."""
    if state is PageState.RESULT:
        if result is None:
            raise ValueError("A result page needs a result")
        return env.get_template("result.html").render(
            state=state.value,
            **report_context(result),
        )
    selected = None
    if filename:
        selected = f"{filename} ({format_size(size or 0)})"
    return env.get_template("upload.html").render(
        state=state.value,
        error=error if state is PageState.ERROR else None,
        selected=selected,
    )
