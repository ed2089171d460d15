from __future__ import annotations

import logging
import mimetypes
from typing import Literal

from careerdeck.core.errors import UploadValidationError

logger = logging.getLogger(__name__)

UploadKind = Literal["image", "pdf", "text"]

ACCEPTED_EXTENSIONS = ("txt", "pdf", "jpg", "jpeg", "png", "webp")

EXTENSION_MIME_TYPES = {
    "txt": "text/plain",
    "pdf": "application/pdf",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}

PDF_MAGIC = b"%PDF-"
PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
JPEG_MAGIC = b"\xff\xd8\xff"
WEBP_RIFF_MAGIC = b"RIFF"
WEBP_WEBP_MAGIC = b"WEBP"


def extension_from_filename(filename: str) -> str:
    if "." not in (filename or ""):
        return ""
    return filename.rsplit(".", 1)[-1].strip().lower()[:20]


def resolve_mime_type(filename: str, content_type: str | None) -> str:
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared and declared != "application/octet-stream":
        return declared
    ext = extension_from_filename(filename)
    explicit = EXTENSION_MIME_TYPES.get(ext)
    if explicit:
        return explicit
    guessed, _encoding = mimetypes.guess_type(filename or "")
    return (guessed or "application/octet-stream").lower()


def classify_upload(filename: str, content_type: str | None) -> tuple[UploadKind, str]:
    """Return the upload kind and its MIME type.

    The extension decides both. A declared type that disagrees is only logged, so a
    mislabelled upload can never reach the model under some other image type.
    """
    ext = extension_from_filename(filename)
    if ext not in ACCEPTED_EXTENSIONS:
        allowed = ", ".join(f".{item}" for item in ACCEPTED_EXTENSIONS)
        raise UploadValidationError(
            f"Unsupported file type '.{ext}'. Allowed: {allowed}.",
            code="unsupported_type",
        )
    mime_type = EXTENSION_MIME_TYPES[ext]
    declared = resolve_mime_type(filename, content_type)
    if declared != mime_type:
        logger.info("upload_mime_mismatch ext=%s declared=%s using=%s", ext, declared, mime_type)
    if mime_type.startswith("image/"):
        return "image", mime_type
    if mime_type == "application/pdf":
        return "pdf", mime_type
    return "text", mime_type


def max_bytes_for(kind: UploadKind, *, max_file_bytes: int, max_image_bytes: int) -> int:
    return max_image_bytes if kind == "image" else max_file_bytes


def enforce_size_cap(kind: UploadKind, size: int, *, max_file_bytes: int, max_image_bytes: int) -> None:
    limit = max_bytes_for(kind, max_file_bytes=max_file_bytes, max_image_bytes=max_image_bytes)
    if size > limit:
        limit_mb = limit // (1024 * 1024)
        raise UploadValidationError(
            f"File is too large. Please upload a file smaller than {limit_mb}MB.",
            code="file_too_large",
            status_code=413,
        )


def _is_probably_text_payload(content: bytes) -> bool:
    if not content:
        return True
    sample = content[:4096]
    if b"\x00" in sample:
        # utf-16 text files carry NUL bytes; accept when a BOM is present
        return sample.startswith((b"\xff\xfe", b"\xfe\xff"))
    printable = 0
    for byte in sample:
        if byte in (9, 10, 13) or 32 <= byte <= 126 or byte >= 128:
            printable += 1
    return (printable / len(sample)) >= 0.75


def validate_upload_signature(*, kind: UploadKind, mime_type: str, content: bytes) -> None:
    if kind == "pdf":
        if not content.startswith(PDF_MAGIC):
            raise UploadValidationError("File signature does not match .pdf content.")
        return

    if kind == "text":
        if not _is_probably_text_payload(content):
            raise UploadValidationError("File signature does not match .txt text content.")
        return

    if mime_type == "image/png":
        if not content.startswith(PNG_MAGIC):
            raise UploadValidationError("File signature does not match .png content.")
        return

    if mime_type == "image/jpeg":
        if not content.startswith(JPEG_MAGIC):
            raise UploadValidationError("File signature does not match .jpg/.jpeg content.")
        return

    if mime_type == "image/webp":
        if len(content) < 12 or not content.startswith(WEBP_RIFF_MAGIC) or content[8:12] != WEBP_WEBP_MAGIC:
            raise UploadValidationError("File signature does not match .webp content.")
        return

    raise UploadValidationError(f"Unsupported image type '{mime_type}'.", code="unsupported_type")
