from fastapi import APIRouter

from reflection_coach.core.storage import ping_storage

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "reflection-coach-api"}


@router.get("/health/storage")
async def storage_health_check():
    """Profile storage (Redis) health check endpoint."""
    try:
        ping_storage()
        return {"status": "healthy", "service": "storage"}
    except Exception as e:
        return {"status": "unhealthy", "service": "storage", "error": str(e)}


@router.get("/health/openai")
async def openai_health_check():
    """OpenAI configuration health check."""
    from reflection_coach.services.openai_client import OpenAIClient

    client = OpenAIClient()
    if client.is_configured:
        return {
            "status": "configured",
            "service": "openai",
            "model": client.model,
            "message": "OpenAI API key is set. Evaluation and chat are available.",
        }
    else:
        return {
            "status": "not_configured",
            "service": "openai",
            "message": "OpenAI API key missing. Set OPENAI_API_KEY in backend/.env",
        }


@router.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Welcome to Reflection Coach API", "docs": "/docs"}
