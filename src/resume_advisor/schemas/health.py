from resume_advisor.schemas.common import CamelModel


class HealthResponse(CamelModel):
    status: str
    llm: str
    version: str


class StatusResponse(CamelModel):
    status: str


class LLMHealth(CamelModel):
    connected: bool
    models_available: int
    default_model: str
    default_model_available: bool
