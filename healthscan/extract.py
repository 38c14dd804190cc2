"""Turn an uploaded file into something the provider can read.

PDFs are decoded as text straight from their bytes. There is no PDF
parsing: compressed or binary streams come through as noise, and the model
is left to make what it can of the readable parts.
"""

import base64
import logging

from pydantic import BaseModel, ConfigDict

from healthscan.errors import UnsupportedFileType

log = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
IMAGE_MIME_PREFIX = "image/"


class ExtractedText(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str


class ExtractedImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    mime_type: str
    data: str  # base64

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


ExtractedContent = ExtractedText | ExtractedImage


def _normalize_mime(content_type: str | None) -> str:
    # "image/png; charset=binary" -> "image/png"
    return (content_type or "").split(";", 1)[0].strip().lower()


def extract_content(content_type: str | None, data: bytes) -> ExtractedContent:
    """Route an upload to the text or image branch by its declared type."""
    mime = _normalize_mime(content_type)
    if mime == PDF_MIME_TYPE:
        text = data.decode("utf-8", errors="replace")
        log.debug("Decoded %d bytes of PDF as %d chars of text", len(data), len(text))
        return ExtractedText(text=text)
    if mime.startswith(IMAGE_MIME_PREFIX):
        return ExtractedImage(mime_type=mime, data=base64.b64encode(data).decode("ascii"))
    raise UnsupportedFileType()
