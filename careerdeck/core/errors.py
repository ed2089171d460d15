from __future__ import annotations


class CareerDeckError(RuntimeError):
    """Base error. ``str(exc)`` is always safe to show to the user."""

    def __init__(self, message: str, *, code: str = "error"):
        super().__init__(message)
        self.code = code


class UploadValidationError(CareerDeckError):
    def __init__(self, message: str, *, code: str = "invalid_upload", status_code: int = 400):
        super().__init__(message, code=code)
        self.status_code = status_code


class ExtractionError(CareerDeckError):
    def __init__(self, message: str, *, code: str = "extraction_failed"):
        super().__init__(message, code=code)


class EmptySubmissionError(CareerDeckError):
    def __init__(self, message: str = "Please provide a resume text or upload an image."):
        super().__init__(message, code="empty_submission")


class ProviderConfigurationError(CareerDeckError):
    def __init__(self, message: str):
        super().__init__(message, code="provider_not_configured")


class ResponseParseError(CareerDeckError):
    def __init__(self, message: str = "Model response was not valid JSON."):
        super().__init__(message, code="invalid_response")


class AnalysisFailedError(CareerDeckError):
    def __init__(
        self,
        message: str = "Failed to analyze resume. Please try again later or check your API Key.",
    ):
        super().__init__(message, code="analysis_failed")


class SecondaryGenerationError(CareerDeckError):
    def __init__(self, message: str, *, code: str = "secondary_failed"):
        super().__init__(message, code=code)


class InvalidTransitionError(CareerDeckError):
    def __init__(self, message: str):
        super().__init__(message, code="invalid_transition")
