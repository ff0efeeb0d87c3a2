"""Vital-sign extraction from photographed or scanned medical documents.

The document is sent inline to a vision-capable model with a fixed
vitals-only prompt. The reply is de-fenced, parsed as JSON and cleaned:
only positive finite numbers (or strings that parse to one) and a string
``notes`` survive. An empty result means "no vital signs found" and is not
an error.
"""

from __future__ import annotations

import json
import logging
import math
import re
from pathlib import PurePosixPath
from typing import Any, Literal

from healthpath.core.llm.client import LLMClient
from healthpath.core.llm.provider import DocumentAttachment
from healthpath.core.llm.response import strip_code_fences
from healthpath.core.llm.system_prompt import EXTRACTION_PROMPT, EXTRACTION_SYSTEM_PROMPT
from healthpath.core.storage.models import MEASUREMENT_FIELDS, VitalRecord, attr_name

logger = logging.getLogger(__name__)

MediaKind = Literal["image", "pdf"]

_IMAGE_MIME_TYPES: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}

# Leading numeric prefix, as in "72 bpm" or "37.5C".
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class ExtractionFormatError(Exception):
    """Raised when the model reply is not a JSON object.

    Distinct from ``LLMServiceError`` so callers can suggest a clearer photo
    rather than a connection check.
    """

    user_message = (
        "AI response format error. The document may not contain clear vital signs. "
        "Try retaking the photo."
    )


def resolve_mime_type(media_kind: MediaKind, filename: str | None = None) -> str:
    """MIME type for an upload: PDFs by kind, images by extension (default JPEG)."""
    if media_kind == "pdf":
        return "application/pdf"
    extension = PurePosixPath(filename or "").suffix.lower().lstrip(".")
    return _IMAGE_MIME_TYPES.get(extension, "image/jpeg")


def _positive_number(value: Any) -> float | int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) and value > 0 else None
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if not match:
            return None
        number = float(match.group(0))
        return number if math.isfinite(number) and number > 0 else None
    return None


def clean_extracted_vitals(raw: dict[str, Any]) -> dict[str, Any]:
    """Keep positive finite readings and string notes; drop everything else.

    Keys may be camelCase or snake_case; the result uses VitalRecord
    attribute names.
    """
    cleaned: dict[str, Any] = {}
    for key, value in raw.items():
        name = attr_name(key)
        if name == "notes":
            if isinstance(value, str):
                cleaned["notes"] = value
            continue
        if name not in MEASUREMENT_FIELDS:
            logger.debug("Dropping unrecognized extracted field %r", key)
            continue
        number = _positive_number(value)
        if number is not None:
            cleaned[name] = number
    return cleaned


def parse_extraction_response(text: str) -> dict[str, Any]:
    """Strip code fences and parse the reply into a cleaned field dict.

    Raises:
        ExtractionFormatError: If the reply is not a JSON object.
    """
    cleaned_text = strip_code_fences(text)
    try:
        data = json.loads(cleaned_text)
    except json.JSONDecodeError as exc:
        raise ExtractionFormatError(f"Model reply is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ExtractionFormatError(
            f"Model reply is a JSON {type(data).__name__}, expected an object"
        )
    return clean_extracted_vitals(data)


class DocumentExtractor:
    """Extracts vitals from a document through the configured LLM provider.

    Usage::

        extractor = DocumentExtractor(llm_client, timeout_s=60)
        fields = await extractor.extract(image_bytes, "image", "scan.png")
        if not fields:
            ...  # no vital signs found; do not write anything
    """

    def __init__(self, llm_client: LLMClient, timeout_s: float = 60.0) -> None:
        self._llm = llm_client
        self._timeout_s = timeout_s

    async def extract(
        self,
        document: bytes,
        media_kind: MediaKind,
        filename: str | None = None,
    ) -> dict[str, Any]:
        """Return cleaned vitals fields, or ``{}`` when the document has none.

        Raises:
            ValueError: If the document is empty or the kind is unknown.
            ExtractionFormatError: If the model reply is not a JSON object.
            LLMServiceError: On network, auth or timeout failures.
        """
        if not document:
            raise ValueError("Document is empty")
        if media_kind not in ("image", "pdf"):
            raise ValueError(f"Unsupported media kind: {media_kind!r}")

        attachment = DocumentAttachment(
            data=document,
            mime_type=resolve_mime_type(media_kind, filename),
            filename=filename or f"document.{'pdf' if media_kind == 'pdf' else 'jpg'}",
        )
        response = await self._llm.complete(
            EXTRACTION_SYSTEM_PROMPT,
            EXTRACTION_PROMPT,
            attachment=attachment,
            timeout_s=self._timeout_s,
            max_tokens=512,
            temperature=0.0,
            purpose="vitals_extraction",
        )
        fields = parse_extraction_response(response.content)
        if not fields:
            logger.info("No vitals extracted from %s document", attachment.mime_type)
        else:
            logger.info("Extracted vitals fields: %s", sorted(fields))
        return fields

    async def extract_record(
        self,
        document: bytes,
        media_kind: MediaKind,
        filename: str | None = None,
    ) -> VitalRecord | None:
        """Like :meth:`extract`, returning a partial record.

        Returns None when no measurement was found (notes alone do not count).
        """
        fields = await self.extract(document, media_kind, filename)
        record = VitalRecord(**fields)
        return None if record.is_empty() else record
