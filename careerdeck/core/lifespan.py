import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from careerdeck.ai.factory import get_ai_client
from careerdeck.core.config import settings
from careerdeck.core.context import AppContext
from careerdeck.core.session_store import SessionStore

logger = logging.getLogger(__name__)


def build_context() -> AppContext:
    return AppContext(
        settings=settings,
        client_factory=get_ai_client,
        sessions=SessionStore(ttl_minutes=settings.session_ttl_minutes),
    )


async def sweep_sessions(store: SessionStore, stop_event: asyncio.Event, interval_s: float) -> None:
    """Drop idle sessions until ``stop_event`` is set."""
    while not stop_event.is_set():
        try:
            removed = store.purge_expired()
            if removed:
                logger.info("session_sweep removed=%s remaining=%s", removed, len(store))
        except Exception as exc:  # pragma: no cover
            logger.warning("session_sweep_failed: %s", exc)
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout=interval_s)


@asynccontextmanager
async def lifespan(app):
    if getattr(app.state, "context", None) is None:
        app.state.context = build_context()
    context: AppContext = app.state.context
    logger.info(
        "startup provider=%s fast_model=%s deep_model=%s",
        context.settings.ai_provider,
        context.settings.ai_fast_model,
        context.settings.ai_deep_model,
    )

    stop_event = asyncio.Event()
    sweeper = asyncio.create_task(
        sweep_sessions(context.sessions, stop_event, context.settings.session_sweep_interval_s)
    )
    try:
        yield
    finally:
        stop_event.set()
        open_sessions = len(context.sessions)
        context.sessions.close_all()
        logger.info("shutdown closed_sessions=%s", open_sessions)
        if not sweeper.done():
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
