"""Errors raised by the analysis pipeline.

Each carries the HTTP status and the message shown to the user; the
exception handlers in `healthscan.main` turn them into `{"error": ...}`.
"""


class AnalysisError(Exception):
    status_code: int = 500
    default_message: str = "Failed to analyze report"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(AnalysisError):
    status_code = 500
    default_message = "Gemini API key not configured"


class UnsupportedFileType(AnalysisError):
    status_code = 400
    default_message = "Unsupported file type. Please upload a PDF or image file."


class MissingUpload(AnalysisError):
    status_code = 400
    default_message = "A file upload is required"


class EmptyProviderResponse(AnalysisError):
    status_code = 500
    default_message = "Failed to generate analysis"


class InvalidProviderOutput(AnalysisError):
    status_code = 502
    default_message = "AI provider returned invalid output"
