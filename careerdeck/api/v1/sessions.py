from fastapi import APIRouter, File, Form, Request, Response, UploadFile, status

from careerdeck.api.deps import get_context, get_session, raise_http_error
from careerdeck.core.context import UserContext, parse_theme
from careerdeck.core.errors import CareerDeckError
from careerdeck.core.rate_limit import rate_limit
from careerdeck.schemas.session import (
    InputUpdateRequest,
    SessionView,
    SortRequest,
    TabRequest,
    UploadResponse,
)
from careerdeck.ui.session import QUERY_PARAM_KEYS, ResumeSession
from careerdeck.ui.state import Analyzing

router = APIRouter()

READ_CHUNK_BYTES = 1024 * 64


@router.post("/sessions", response_model=SessionView, status_code=status.HTTP_201_CREATED)
async def create_session(request: Request):
    context = get_context(request)
    query_params = {key: request.query_params[key] for key in QUERY_PARAM_KEYS if request.query_params.get(key)}
    theme = parse_theme(request.cookies.get(context.settings.theme_cookie_name))
    session = ResumeSession(
        context.sessions.new_id(),
        client=context.client,
        cfg=context.settings,
        user=UserContext(theme=theme),
        query_params=query_params,
    )
    context.sessions.add(session)
    return session.snapshot()


@router.get("/sessions/{session_id}", response_model=SessionView)
async def read_session(request: Request, session_id: str):
    return get_session(request, session_id).snapshot()


@router.patch("/sessions/{session_id}/input", response_model=SessionView)
async def update_input(request: Request, session_id: str, payload: InputUpdateRequest):
    session = get_session(request, session_id)
    try:
        session.update_input(**payload.model_dump(exclude_none=True))
    except CareerDeckError as exc:
        raise_http_error(exc)
    return session.snapshot()


@router.post("/sessions/{session_id}/upload", response_model=UploadResponse)
@rate_limit()
async def upload_file(
    request: Request,
    session_id: str,
    file: UploadFile = File(...),
    profile_link: bool = Form(default=False),
):
    session = get_session(request, session_id)
    cfg = get_context(request).settings
    # Stop reading past the largest cap. The session then rejects the oversized
    # payload with the limit for its own file type.
    hard_limit = max(cfg.max_file_size_bytes, cfg.max_image_size_bytes)

    chunks: list[bytes] = []
    total = 0
    while total <= hard_limit:
        chunk = await file.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        chunks.append(chunk)

    try:
        upload = await session.upload(
            filename=file.filename or "uploaded-file",
            content_type=file.content_type,
            content=b"".join(chunks),
            profile_link=profile_link,
        )
    except CareerDeckError as exc:
        raise_http_error(exc)

    return UploadResponse(
        kind=upload.kind,
        characters=len(upload.text),
        truncated=upload.truncated,
        autofill_started=upload.should_autofill,
        session=session.snapshot(),
    )


@router.delete("/sessions/{session_id}/image", response_model=SessionView)
async def clear_image(request: Request, session_id: str):
    session = get_session(request, session_id)
    try:
        session.clear_image()
    except CareerDeckError as exc:
        raise_http_error(exc)
    return session.snapshot()


@router.post("/sessions/{session_id}/analyze", response_model=SessionView)
@rate_limit()
async def analyze(request: Request, response: Response, session_id: str, wait: bool = False):
    session = get_session(request, session_id)
    try:
        await session.analyze(wait=wait)
    except CareerDeckError as exc:
        raise_http_error(exc)
    if isinstance(session.view, Analyzing):
        response.status_code = status.HTTP_202_ACCEPTED
    return session.snapshot()


@router.post("/sessions/{session_id}/reset", response_model=SessionView)
async def reset(request: Request, session_id: str):
    session = get_session(request, session_id)
    session.reset()
    return session.snapshot()


@router.put("/sessions/{session_id}/sort", response_model=SessionView)
async def set_sort(request: Request, session_id: str, payload: SortRequest):
    session = get_session(request, session_id)
    session.set_sort(payload.key, payload.order)
    return session.snapshot()


@router.put("/sessions/{session_id}/tab", response_model=SessionView)
async def set_tab(request: Request, session_id: str, payload: TabRequest):
    session = get_session(request, session_id)
    try:
        session.set_tab(payload.tab)
    except CareerDeckError as exc:
        raise_http_error(exc)
    return session.snapshot()


@router.post("/sessions/{session_id}/cards/{index}/expand", response_model=SessionView)
async def toggle_card_expanded(request: Request, session_id: str, index: int):
    session = get_session(request, session_id)
    try:
        session.toggle_card_expanded(index)
    except (CareerDeckError, IndexError) as exc:
        raise_http_error(exc)
    return session.snapshot()


@router.post("/sessions/{session_id}/cards/{index}/interview-prep", response_model=SessionView)
@rate_limit()
async def toggle_interview_prep(request: Request, session_id: str, index: int, wait: bool = True):
    session = get_session(request, session_id)
    try:
        await session.toggle_card_panel(index, "interview_prep", wait=wait)
    except (CareerDeckError, IndexError) as exc:
        raise_http_error(exc)
    return session.snapshot()


@router.post("/sessions/{session_id}/cards/{index}/cover-letter", response_model=SessionView)
@rate_limit()
async def toggle_cover_letter(request: Request, session_id: str, index: int, wait: bool = True):
    session = get_session(request, session_id)
    try:
        await session.toggle_card_panel(index, "cover_letter", wait=wait)
    except (CareerDeckError, IndexError) as exc:
        raise_http_error(exc)
    return session.snapshot()
