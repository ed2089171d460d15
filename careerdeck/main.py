import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from careerdeck.api.v1.account import router as account_router
from careerdeck.api.v1.health import router as health_router
from careerdeck.api.v1.sessions import router as sessions_router
from careerdeck.core.config import settings
from careerdeck.core.errors import CareerDeckError
from careerdeck.core.lifespan import build_context, lifespan
from careerdeck.core.rate_limit import limiter

logging.basicConfig(level=settings.log_level, format="%(message)s")
logger = logging.getLogger(__name__)

if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="Resume Job Search India API", version="0.1.0", lifespan=lifespan)
app.state.context = build_context()


@app.exception_handler(CareerDeckError)
async def careerdeck_error_handler(request: Request, exc: CareerDeckError):
    # Routers translate the errors they expect; anything reaching here escaped a handler.
    logger.warning("unhandled_domain_error path=%s code=%s", request.url.path, exc.code)
    return JSONResponse(status_code=400, content={"detail": str(exc), "code": exc.code})


app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(sessions_router, prefix="/v1", tags=["Sessions"])
app.include_router(account_router, prefix="/v1", tags=["Account"])
