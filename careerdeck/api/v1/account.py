from fastapi import APIRouter, Request, Response

from careerdeck.api.deps import get_context, get_session
from careerdeck.core.context import parse_theme
from careerdeck.schemas.session import LoginRequest, SessionView, ThemeRequest, ThemeResponse

router = APIRouter()

THEME_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


@router.post("/sessions/{session_id}/login", response_model=SessionView)
async def login(request: Request, session_id: str, payload: LoginRequest):
    # Mocked sign-in: any address is accepted and nothing is verified.
    session = get_session(request, session_id)
    session.user.login(payload.email)
    return session.snapshot()


@router.post("/sessions/{session_id}/logout", response_model=SessionView)
async def logout(request: Request, session_id: str):
    session = get_session(request, session_id)
    session.logout()
    return session.snapshot()


@router.get("/preferences/theme", response_model=ThemeResponse)
async def read_theme(request: Request):
    cookie_name = get_context(request).settings.theme_cookie_name
    return ThemeResponse(theme=parse_theme(request.cookies.get(cookie_name)))


@router.put("/preferences/theme", response_model=ThemeResponse)
async def write_theme(request: Request, response: Response, payload: ThemeRequest, session_id: str | None = None):
    cookie_name = get_context(request).settings.theme_cookie_name
    if session_id:
        get_session(request, session_id).user.set_theme(payload.theme)
    response.set_cookie(cookie_name, payload.theme, max_age=THEME_COOKIE_MAX_AGE, samesite="lax")
    return ThemeResponse(theme=payload.theme)
