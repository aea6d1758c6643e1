from fastapi import APIRouter

from app.core.config import settings

router = APIRouter()


@router.get("/health", summary="Health Check", description="Report service liveness and the configured model.")
async def health_check():
    return {"status": "healthy", "model": settings.openai_model}
