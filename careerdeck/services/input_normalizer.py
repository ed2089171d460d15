from __future__ import annotations

import asyncio
import base64
import logging
from dataclasses import dataclass

from careerdeck.core.config import Settings, settings
from careerdeck.core.errors import ExtractionError
from careerdeck.parsing.pdf import PdfExtractionFailed, extract_pdf_text
from careerdeck.schemas.career import UserInput
from careerdeck.services.upload_security import (
    UploadKind,
    classify_upload,
    enforce_size_cap,
    validate_upload_signature,
)

logger = logging.getLogger(__name__)

PDF_EXTRACTION_FAILED_MESSAGE = (
    "Failed to extract text from the PDF. The file might be password protected or corrupted. "
    "Please try Copy & Paste."
)
TEXT_READ_FAILED_MESSAGE = "Failed to read text file."


@dataclass(frozen=True)
class NormalizedUpload:
    kind: UploadKind
    mime_type: str
    text: str = ""
    truncated: bool = False
    image_data: str | None = None
    image_preview: str | None = None
    should_autofill: bool = False


def truncate_resume_text(text: str, max_length: int | None = None) -> tuple[str, bool]:
    limit = settings.max_resume_length if max_length is None else max_length
    if len(text) > limit:
        return text[:limit], True
    return text, False


def encode_image(content: bytes, mime_type: str) -> tuple[str, str]:
    """Return ``(data_url, payload)`` where payload is the part after the comma."""
    data_url = f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"
    return data_url, data_url.split(",", 1)[1]


def decode_text(content: bytes) -> str:
    if content.startswith((b"\xff\xfe", b"\xfe\xff")):
        encodings: tuple[str, ...] = ("utf-16",)
    else:
        encodings = ("utf-8-sig", "latin-1")
    for encoding in encodings:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ExtractionError(TEXT_READ_FAILED_MESSAGE, code="text_read_failed")


async def extract_document_text(kind: UploadKind, content: bytes) -> str:
    if kind == "pdf":
        try:
            return await asyncio.to_thread(extract_pdf_text, content)
        except PdfExtractionFailed as exc:
            raise ExtractionError(PDF_EXTRACTION_FAILED_MESSAGE, code="pdf_extraction_failed") from exc
    return decode_text(content)


async def normalize_upload(
    *,
    filename: str,
    content_type: str | None,
    content: bytes,
    profile_link: bool = False,
    cfg: Settings | None = None,
) -> NormalizedUpload:
    """Validate one uploaded file and turn it into résumé text or an image payload.

    Size and type violations raise ``UploadValidationError``; unreadable documents
    raise ``ExtractionError``. Neither touches any session state.
    """
    cfg = cfg or settings
    kind, mime_type = classify_upload(filename, content_type)
    enforce_size_cap(
        kind,
        len(content),
        max_file_bytes=cfg.max_file_size_bytes,
        max_image_bytes=cfg.max_image_size_bytes,
    )
    validate_upload_signature(kind=kind, mime_type=mime_type, content=content)

    if kind == "image":
        data_url, payload = encode_image(content, mime_type)
        logger.info("upload_normalized kind=image mime=%s bytes=%s", mime_type, len(content))
        return NormalizedUpload(kind=kind, mime_type=mime_type, image_data=payload, image_preview=data_url)

    raw_text = await extract_document_text(kind, content)
    text, truncated = truncate_resume_text(raw_text, cfg.max_resume_length)
    should_autofill = bool(text) and (profile_link or len(raw_text) > cfg.autofill_min_chars)
    logger.info(
        "upload_normalized kind=%s bytes=%s chars=%s truncated=%s",
        kind,
        len(content),
        len(raw_text),
        truncated,
    )
    return NormalizedUpload(
        kind=kind,
        mime_type=mime_type,
        text=text,
        truncated=truncated,
        should_autofill=should_autofill,
    )


def apply_upload(user_input: UserInput, upload: NormalizedUpload) -> UserInput:
    """Fold a normalized upload into the form input.

    Images attach alongside any existing text. Documents always drop a previously
    attached image and replace the résumé text when any text was extracted.
    """
    if upload.kind == "image":
        return user_input.model_copy(
            update={"image_data": upload.image_data, "image_mime_type": upload.mime_type}
        )
    update: dict[str, object] = {"image_data": None, "image_mime_type": None}
    if upload.text:
        update["resume_text"] = upload.text
    return user_input.model_copy(update=update)
