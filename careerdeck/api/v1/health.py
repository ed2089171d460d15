from fastapi import APIRouter, Request

from careerdeck.api.deps import get_context

router = APIRouter()


@router.get("/health", summary="Health Check", description="Service status, configured model provider and live session count.")
async def health_check(request: Request):
    context = get_context(request)
    return {
        "status": "healthy",
        "provider": context.settings.ai_provider,
        "sessions": len(context.sessions),
    }
