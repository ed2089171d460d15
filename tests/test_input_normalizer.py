import asyncio
import base64
import unittest
from io import BytesIO
from unittest.mock import patch

from fakes import SAMPLE_RESUME, fast_settings

from careerdeck.core.errors import ExtractionError, UploadValidationError  # noqa: E402
from careerdeck.parsing.pdf import PdfExtractionFailed, extract_pdf_text  # noqa: E402
from careerdeck.schemas.career import UserInput  # noqa: E402
from careerdeck.services.input_normalizer import (  # noqa: E402
    PDF_EXTRACTION_FAILED_MESSAGE,
    apply_upload,
    normalize_upload,
    truncate_resume_text,
)
from careerdeck.services.upload_security import classify_upload, validate_upload_signature  # noqa: E402

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
MB = 1024 * 1024


def _normalize(filename, content_type, content, **kwargs):
    return asyncio.run(
        normalize_upload(
            filename=filename,
            content_type=content_type,
            content=content,
            cfg=fast_settings(),
            **kwargs,
        )
    )


def _blank_pdf(password: str | None = None) -> bytes:
    from pypdf import PdfWriter

    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    if password:
        writer.encrypt(password)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class TruncationTests(unittest.TestCase):
    def test_text_over_cap_keeps_exact_prefix_and_flags(self):
        text = "a" * 15000 + "b" * 10
        truncated, flagged = truncate_resume_text(text, 15000)
        self.assertEqual(truncated, "a" * 15000)
        self.assertTrue(flagged)

    def test_text_at_cap_is_not_flagged(self):
        text = "x" * 15000
        truncated, flagged = truncate_resume_text(text, 15000)
        self.assertEqual(truncated, text)
        self.assertFalse(flagged)

    def test_short_text_is_untouched(self):
        self.assertEqual(truncate_resume_text("hello", 15000), ("hello", False))


class ClassificationTests(unittest.TestCase):
    def test_classifies_by_mime_type(self):
        self.assertEqual(classify_upload("cv.png", "image/png"), ("image", "image/png"))
        self.assertEqual(classify_upload("cv.pdf", "application/pdf"), ("pdf", "application/pdf"))
        self.assertEqual(classify_upload("cv.txt", "text/plain"), ("text", "text/plain"))

    def test_missing_content_type_falls_back_to_extension(self):
        self.assertEqual(classify_upload("scan.JPEG", None), ("image", "image/jpeg"))
        self.assertEqual(classify_upload("cv.pdf", "application/octet-stream"), ("pdf", "application/pdf"))

    def test_extension_decides_mime_over_declared_type(self):
        self.assertEqual(classify_upload("cv.png", "image/gif"), ("image", "image/png"))
        self.assertEqual(classify_upload("cv.txt", "image/svg+xml"), ("text", "text/plain"))
        self.assertEqual(classify_upload("cv.pdf", "image/png"), ("pdf", "application/pdf"))

    def test_unknown_image_type_fails_signature_check(self):
        with self.assertRaises(UploadValidationError):
            validate_upload_signature(kind="image", mime_type="image/gif", content=b"GIF89a")

    def test_rejects_unaccepted_extension(self):
        with self.assertRaises(UploadValidationError) as ctx:
            classify_upload("cv.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document")
        self.assertEqual(ctx.exception.code, "unsupported_type")


class NormalizeUploadTests(unittest.TestCase):
    def test_text_file_over_two_megabytes_is_rejected(self):
        content = b"a" * (2 * MB + 1)
        with self.assertRaises(UploadValidationError) as ctx:
            _normalize("cv.txt", "text/plain", content)
        self.assertEqual(ctx.exception.status_code, 413)
        self.assertIn("smaller than 2MB", str(ctx.exception))

    def test_image_allows_up_to_four_megabytes(self):
        content = PNG_BYTES + b"\x00" * (3 * MB)
        upload = _normalize("cv.png", "image/png", content)
        self.assertEqual(upload.kind, "image")

        too_big = PNG_BYTES + b"\x00" * (4 * MB)
        with self.assertRaises(UploadValidationError) as ctx:
            _normalize("cv.png", "image/png", too_big)
        self.assertIn("smaller than 4MB", str(ctx.exception))

    def test_image_payload_is_data_url_suffix(self):
        upload = _normalize("cv.png", "image/png", PNG_BYTES)
        self.assertTrue(upload.image_preview.startswith("data:image/png;base64,"))
        self.assertEqual(upload.image_data, upload.image_preview.split(",", 1)[1])
        self.assertEqual(base64.b64decode(upload.image_data), PNG_BYTES)
        self.assertFalse(upload.should_autofill)

    def test_mislabelled_image_is_checked_against_its_extension(self):
        with self.assertRaises(UploadValidationError):
            _normalize("cv.png", "image/gif", b"not an image at all")
        upload = _normalize("cv.png", "image/gif", PNG_BYTES)
        self.assertEqual(upload.mime_type, "image/png")
        self.assertTrue(upload.image_preview.startswith("data:image/png;base64,"))

    def test_text_file_declared_as_svg_is_read_as_text(self):
        upload = _normalize("cv.txt", "image/svg+xml", SAMPLE_RESUME.encode("utf-8"))
        self.assertEqual(upload.kind, "text")
        self.assertIsNone(upload.image_data)
        self.assertEqual(upload.text, SAMPLE_RESUME)

    def test_signature_mismatch_is_rejected(self):
        with self.assertRaises(UploadValidationError):
            _normalize("cv.png", "image/png", b"not really a png")

    def test_text_file_is_read_verbatim_and_requests_autofill(self):
        upload = _normalize("cv.txt", "text/plain", SAMPLE_RESUME.encode("utf-8"))
        self.assertEqual(upload.kind, "text")
        self.assertEqual(upload.text, SAMPLE_RESUME)
        self.assertFalse(upload.truncated)
        self.assertTrue(upload.should_autofill)

    def test_short_text_only_autofills_for_profile_links(self):
        self.assertFalse(_normalize("cv.txt", "text/plain", b"Short profile").should_autofill)
        self.assertTrue(_normalize("cv.txt", "text/plain", b"Short profile", profile_link=True).should_autofill)

    def test_long_text_file_is_truncated(self):
        upload = _normalize("cv.txt", "text/plain", b"z" * 16000)
        self.assertEqual(len(upload.text), 15000)
        self.assertTrue(upload.truncated)

    def test_blank_pdf_yields_empty_text(self):
        upload = _normalize("cv.pdf", "application/pdf", _blank_pdf())
        self.assertEqual(upload.kind, "pdf")
        self.assertEqual(upload.text, "")
        self.assertFalse(upload.should_autofill)

    def test_password_protected_pdf_raises_recoverable_error(self):
        with self.assertRaises(ExtractionError) as ctx:
            _normalize("cv.pdf", "application/pdf", _blank_pdf(password="secret"))
        self.assertEqual(str(ctx.exception), PDF_EXTRACTION_FAILED_MESSAGE)

    def test_pdf_extraction_failure_is_wrapped(self):
        with patch(
            "careerdeck.services.input_normalizer.extract_pdf_text",
            side_effect=PdfExtractionFailed("broken xref"),
        ):
            with self.assertRaises(ExtractionError) as ctx:
                _normalize("cv.pdf", "application/pdf", b"%PDF-1.4 broken")
        self.assertIn("Copy & Paste", str(ctx.exception))

    def test_corrupt_pdf_fails_extraction(self):
        with self.assertRaises(PdfExtractionFailed):
            extract_pdf_text(b"%PDF-1.4\nthis is not a real pdf body")


class ApplyUploadTests(unittest.TestCase):
    def test_document_upload_clears_attached_image(self):
        current = UserInput(resume_text="old", image_data="abc", image_mime_type="image/png")
        upload = _normalize("cv.txt", "text/plain", b"New resume text")
        updated = apply_upload(current, upload)
        self.assertEqual(updated.resume_text, "New resume text")
        self.assertIsNone(updated.image_data)
        self.assertIsNone(updated.image_mime_type)

    def test_empty_document_still_clears_image_but_keeps_text(self):
        current = UserInput(resume_text="keep me", image_data="abc", image_mime_type="image/png")
        upload = _normalize("cv.pdf", "application/pdf", _blank_pdf())
        updated = apply_upload(current, upload)
        self.assertEqual(updated.resume_text, "keep me")
        self.assertFalse(updated.has_image)

    def test_image_upload_keeps_text(self):
        current = UserInput(resume_text="typed text")
        upload = _normalize("cv.png", "image/png", PNG_BYTES)
        updated = apply_upload(current, upload)
        self.assertEqual(updated.resume_text, "typed text")
        self.assertEqual(updated.image_mime_type, "image/png")
        self.assertTrue(updated.has_image)


if __name__ == "__main__":
    unittest.main()
