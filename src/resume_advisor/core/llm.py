import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from resume_advisor.core.config import Settings
from resume_advisor.core.exceptions import (
    GenerationFailedError,
    GenerationTimeoutError,
    ModelUnavailableError,
    ServiceUnavailableError,
)
from resume_advisor.core.retry import RetryPolicy
from resume_advisor.schemas.health import LLMHealth

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerateOptions:
    temperature: float | None = None
    num_predict: int | None = None
    json_format: bool = False

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.json_format:
            payload["format"] = "json"
        options = {
            key: value
            for key, value in (("temperature", self.temperature), ("num_predict", self.num_predict))
            if value is not None
        }
        if options:
            payload["options"] = options
        return payload


class OllamaGateway:
    """Single point of contact with the Ollama runtime.

    Tracks whether the runtime is reachable and which models it has loaded.
    The model catalog is a tuple that is replaced wholesale on every refresh,
    so concurrent readers always see a complete list.
    """

    def __init__(
        self,
        base_url: str,
        default_model: str,
        *,
        timeout: float = 300.0,
        auto_pull: bool = True,
        retry_policy: RetryPolicy | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.timeout = timeout
        self.auto_pull = auto_pull
        self.retry_policy = retry_policy or RetryPolicy()
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )
        self._connected = False
        self._models: tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, settings: Settings) -> "OllamaGateway":
        return cls(
            settings.ollama_host,
            settings.ollama_default_model,
            timeout=settings.ollama_timeout_seconds,
            auto_pull=settings.ollama_auto_pull,
            retry_policy=RetryPolicy(
                max_attempts=settings.ollama_max_retries,
                initial_delay=settings.ollama_retry_delay_seconds,
            ),
        )

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def available_models(self) -> tuple[str, ...]:
        return self._models

    def is_model_available(self, model: str) -> bool:
        models = self._models
        # Ollama reports untagged models as "<name>:latest"
        return model in models or (":" not in model and f"{model}:latest" in models)

    async def _fetch_catalog(self) -> list[dict[str, Any]]:
        response = await self._client.get("/api/tags")
        response.raise_for_status()
        data = response.json()
        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list):
            models = []
        descriptors = [m for m in models if isinstance(m, dict) and m.get("name")]
        self._models = tuple(str(m["name"]) for m in descriptors)
        return descriptors

    async def check_availability(self) -> bool:
        """Refresh the model catalog. Never raises; failures mark the runtime disconnected."""
        try:
            await self._fetch_catalog()
        except (httpx.HTTPError, ValueError) as e:
            self._connected = False
            logger.error("Ollama connection failed: %s", e)
            return False

        self._connected = True
        logger.info(
            "Ollama connection successful, %d models available: %s",
            len(self._models),
            ", ".join(self._models),
        )
        return True

    async def list_models(self) -> list[dict[str, Any]]:
        try:
            descriptors = await self._fetch_catalog()
        except (httpx.HTTPError, ValueError) as e:
            self._connected = False
            raise ServiceUnavailableError("Unable to fetch available models from Ollama") from e
        self._connected = True
        return descriptors

    async def pull_model(self, model: str) -> bool:
        logger.info("Pulling model: %s", model)
        try:
            response = await self._client.post(
                "/api/pull", json={"name": model, "stream": False}, timeout=self.timeout
            )
        except httpx.HTTPError as e:
            logger.error("Failed to pull model %s: %s", model, e)
            return False

        if response.status_code != 200:
            logger.error("Failed to pull model %s: HTTP %d", model, response.status_code)
            return False

        logger.info("Model %s pulled successfully", model)
        await self.check_availability()
        return True

    async def generate(
        self,
        model: str,
        prompt: str,
        options: GenerateOptions | None = None,
    ) -> str:
        """Issue one non-streaming generation request and return the response text."""
        if not self._connected and not await self.check_availability():
            raise ServiceUnavailableError("Ollama service is not available")

        if not self.is_model_available(model):
            if not self.auto_pull:
                raise ModelUnavailableError(model)
            logger.warning("Model %s not found, attempting to pull...", model)
            if not await self.pull_model(model):
                raise ModelUnavailableError(model)

        payload: dict[str, Any] = {"model": model, "prompt": prompt, "stream": False}
        payload.update((options or GenerateOptions()).to_payload())

        started = time.perf_counter()
        try:
            response = await self._client.post("/api/generate", json=payload, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise GenerationTimeoutError(
                f"Ollama generation with {model} timed out after {self.timeout:.0f}s"
            ) from e
        except httpx.TransportError as e:
            self._connected = False
            raise ServiceUnavailableError(
                "Ollama service is not running. Please start Ollama and try again."
            ) from e

        if response.status_code == 404:
            raise ModelUnavailableError(model, f"Model {model} not found. Please pull the model first.")
        if response.status_code >= 400:
            raise GenerationFailedError(
                f"Ollama returned HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationFailedError("Ollama returned a non-JSON body") from e

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text:
            raise GenerationFailedError("No response received from Ollama")

        logger.info(
            "Ollama generation successful: model=%s prompt_length=%d response_length=%d latency_ms=%d",
            model,
            len(prompt),
            len(text),
            int((time.perf_counter() - started) * 1000),
        )
        return text

    async def generate_with_retry(
        self,
        model: str,
        prompt: str,
        options: GenerateOptions | None = None,
        policy: RetryPolicy | None = None,
    ) -> str:
        policy = policy or self.retry_policy
        outcome = await policy.run(lambda: self.generate(model, prompt, options))
        if not outcome.ok:
            logger.error(
                "Ollama generation with %s failed after %d attempts: %s",
                model,
                outcome.attempts,
                outcome.error,
            )
        return outcome.unwrap()

    async def health_check(self) -> LLMHealth:
        connected = await self.check_availability()
        return LLMHealth(
            connected=connected,
            models_available=len(self._models),
            default_model=self.default_model,
            default_model_available=self.is_model_available(self.default_model),
        )

    async def aclose(self) -> None:
        await self._client.aclose()
