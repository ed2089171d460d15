from __future__ import annotations

from fastapi import HTTPException, Request, status

from careerdeck.core.context import AppContext
from careerdeck.core.errors import (
    CareerDeckError,
    EmptySubmissionError,
    ExtractionError,
    InvalidTransitionError,
    ProviderConfigurationError,
    UploadValidationError,
)
from careerdeck.ui.session import ResumeSession


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_session(request: Request, session_id: str) -> ResumeSession:
    session = get_context(request).sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found or expired.")
    return session


def raise_http_error(exc: Exception) -> None:
    if isinstance(exc, UploadValidationError):
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    if isinstance(exc, (ExtractionError, EmptySubmissionError)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, InvalidTransitionError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, ProviderConfigurationError):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if isinstance(exc, IndexError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, CareerDeckError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    raise exc
