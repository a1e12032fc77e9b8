import asyncio
import logging
import os

import pdfplumber
from pdfminer.psparser import PSException
from pdfplumber.utils.exceptions import PdfminerException

from domain.errors import ResourceError
from domain.schemas import ExtractedText
from infra.repositories.files_repository import FilesRepository

logger = logging.getLogger(__name__)


def clean_text(text: str) -> str:
    lines = (line.strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


def parse_pdf_text(path: str) -> ExtractedText:
    if not os.path.isfile(path):
        raise ResourceError(f"document file is missing: {os.path.basename(path)}")
    if os.path.getsize(path) == 0:
        raise ResourceError(f"document is empty: {os.path.basename(path)}")

    text_parts = []
    try:
        with pdfplumber.open(path) as pdf:
            for page in pdf.pages:
                t = page.extract_text() or ""
                text_parts.append(t)
    except (PdfminerException, PSException, ValueError, KeyError, TypeError) as exc:
        raise ResourceError(
            f"PDF extraction failed for {os.path.basename(path)}: {exc}. "
            "The PDF may be corrupted, password-protected, or in an unsupported format."
        ) from exc

    text = clean_text("\n".join(text_parts))
    if not text:
        raise ResourceError(
            f"no extractable text in {os.path.basename(path)} (possibly a scanned/image PDF)")
    return ExtractedText(text=text, page_count=len(text_parts))


class PdfTextExtractor:
    """Resolves uploaded file ids to paths and extracts their text off the event loop."""

    def __init__(self, files_repo: FilesRepository):
        self.files_repo = files_repo

    async def extract_text(self, document_ref: str) -> ExtractedText:
        path = self.files_repo.get_path(document_ref)
        extracted = await asyncio.to_thread(parse_pdf_text, path)
        logger.info("Extracted %d chars from %d pages (%s)",
                    len(extracted.text), extracted.page_count, document_ref)
        return extracted
