from __future__ import annotations

import logging
from io import BytesIO

from pypdf import PdfReader

logger = logging.getLogger(__name__)


class PdfExtractionFailed(Exception):
    pass


def extract_pdf_text(content: bytes) -> str:
    """Return the text of every page, pages separated by a blank line.

    Raises ``PdfExtractionFailed`` for corrupt input and for encrypted files that
    cannot be opened without a password.
    """
    try:
        reader = PdfReader(BytesIO(content))
        if reader.is_encrypted:
            try:
                unlocked = reader.decrypt("")
            except Exception as exc:
                raise PdfExtractionFailed("PDF is encrypted.") from exc
            if not unlocked:
                raise PdfExtractionFailed("PDF is password protected.")

        page_chunks: list[str] = []
        for page in reader.pages:
            page_text = page.extract_text() or ""
            page_chunks.append(page_text.strip())
        return "\n\n".join(chunk for chunk in page_chunks if chunk)
    except PdfExtractionFailed:
        raise
    except Exception as exc:
        logger.warning("pdf_extract_failed bytes=%s: %s", len(content), exc)
        raise PdfExtractionFailed(str(exc)) from exc
