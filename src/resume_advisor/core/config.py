from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Resume Advisor"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # File uploads
    upload_dir: str = "./temp-files"
    max_upload_size_mb: int = 10
    allowed_extensions: set[str] = {".pdf"}
    upload_retention_hours: int = 24

    # Ollama
    ollama_host: str = "http://localhost:11434"
    ollama_default_model: str = "llama2"
    ollama_analysis_model: str | None = None
    ollama_question_model: str | None = None
    ollama_guidance_model: str | None = None
    ollama_timeout_seconds: float = 300.0
    ollama_auto_pull: bool = True
    ollama_max_retries: int = 3
    ollama_retry_delay_seconds: float = 1.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def analysis_model(self) -> str:
        return self.ollama_analysis_model or self.ollama_default_model

    @property
    def question_model(self) -> str:
        return self.ollama_question_model or self.ollama_default_model

    @property
    def guidance_model(self) -> str:
        return self.ollama_guidance_model or self.ollama_default_model


@lru_cache
def get_settings() -> Settings:
    return Settings()
