from fastapi import APIRouter, Depends

from resume_advisor.api.deps import get_gateway
from resume_advisor.core.config import get_settings
from resume_advisor.core.exceptions import LLMUnavailableError
from resume_advisor.core.llm import OllamaGateway
from resume_advisor.schemas.health import HealthResponse, LLMHealth, StatusResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    gateway: OllamaGateway = Depends(get_gateway),
) -> HealthResponse:
    settings = get_settings()
    connected = await gateway.check_availability()
    return HealthResponse(
        status="healthy" if connected else "degraded",
        llm="connected" if connected else "disconnected",
        version=settings.app_version,
    )


@router.get("/status", response_model=StatusResponse)
async def liveness() -> StatusResponse:
    return StatusResponse(status="ok")


@router.get("/health/llm", response_model=LLMHealth)
async def llm_health(
    gateway: OllamaGateway = Depends(get_gateway),
) -> LLMHealth:
    health = await gateway.health_check()
    if not health.connected:
        raise LLMUnavailableError(f"Ollama is not reachable at {gateway.base_url}")
    return health
