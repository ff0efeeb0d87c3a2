"""MCP tool for importing vitals from a photographed or scanned document."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from healthpath.core.llm.provider import LLMServiceError
from healthpath.core.storage.repository import PersistenceError, ValidationError
from healthpath.domains.vitals.connectors.document_extraction import ExtractionFormatError

if TYPE_CHECKING:
    from healthpath.core.storage.repository import VitalsRepository
    from healthpath.domains.vitals.connectors.document_extraction import DocumentExtractor

logger = logging.getLogger(__name__)

NO_VITALS_MESSAGE = (
    "No vital signs were found in the document. "
    "Please check the image is clear and contains vital sign measurements."
)


def register_import_tools(
    mcp: FastMCP,
    extractor: DocumentExtractor,
    repository: VitalsRepository,
) -> None:
    """Register document import tools on the MCP server."""

    @mcp.tool
    async def import_vitals_document(
        ctx: Context,
        user_id: str,
        document_base64: str,
        media_kind: str = "image",
        filename: str = "",
    ) -> str:
        """Extract vital signs from a medical document and save them.

        Supports photos (JPEG, PNG, WebP) and PDFs. Only vital signs are
        read; lab values, medications and diagnoses are ignored. Nothing is
        saved when the document holds no vital signs.

        Args:
            user_id: Account id returned by sign_in.
            document_base64: The document bytes, base64-encoded.
            media_kind: 'image' or 'pdf'.
            filename: Original file name, used to pick the image type.
        """
        try:
            document = base64.b64decode(document_base64, validate=True)
        except (binascii.Error, ValueError):
            return json.dumps({"status": "invalid", "message": "Document is not valid base64."})

        try:
            record = await extractor.extract_record(document, media_kind, filename or None)
        except ValueError as exc:
            return json.dumps({"status": "invalid", "message": str(exc)})
        except ExtractionFormatError as exc:
            logger.warning("Vitals extraction returned unparseable output: %s", exc)
            return json.dumps({"status": "format_error", "message": exc.user_message})
        except LLMServiceError as exc:
            logger.error("Vitals extraction failed (%s): %s", exc.kind, exc.detail)
            return json.dumps({"status": "service_error", "message": exc.user_message})

        if record is None:
            return json.dumps({"status": "no_vitals_found", "message": NO_VITALS_MESSAGE})

        try:
            latest, entry_id = repository.record_vitals(user_id, record, source="imported")
        except (ValidationError, PersistenceError) as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        return json.dumps({
            "status": "saved",
            "entry_id": entry_id,
            "extracted": record.to_dict(),
            "latest": latest.to_dict(),
        })
