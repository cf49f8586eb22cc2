"""Unit tests for the Ollama gateway against a mocked HTTP transport."""

import json

import httpx
import pytest

from resume_advisor.core.config import Settings
from resume_advisor.core.exceptions import (
    GenerationFailedError,
    GenerationTimeoutError,
    ModelUnavailableError,
    ServiceUnavailableError,
)
from resume_advisor.core.llm import GenerateOptions, OllamaGateway
from resume_advisor.core.retry import RetryPolicy

pytestmark = pytest.mark.unit

BASE_URL = "http://ollama.test"


async def _no_sleep(_: float) -> None:
    return None


class FakeOllama:
    """Minimal stand-in for the Ollama HTTP API."""

    def __init__(self, models: list[str] | None = None) -> None:
        self.models = list(models if models is not None else ["llama2:latest"])
        self.requests: list[httpx.Request] = []
        self.generate_responses: list[httpx.Response | Exception] = []
        self.tags_error: Exception | None = None
        self.tags_body: object | None = None
        self.pull_status = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/api/tags":
            if self.tags_error is not None:
                raise self.tags_error
            if self.tags_body is not None:
                return httpx.Response(200, json=self.tags_body)
            return httpx.Response(200, json={"models": [{"name": m} for m in self.models]})
        if request.url.path == "/api/pull":
            name = json.loads(request.content)["name"]
            if self.pull_status == 200:
                self.models.append(name)
            return httpx.Response(self.pull_status, json={"status": "success"})
        if request.url.path == "/api/generate":
            reply = self.generate_responses.pop(0) if self.generate_responses else None
            if isinstance(reply, Exception):
                raise reply
            return reply or httpx.Response(200, json={"response": "hello", "done": True})
        return httpx.Response(404)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def make_gateway(ollama: FakeOllama, **kwargs) -> OllamaGateway:
    kwargs.setdefault("retry_policy", RetryPolicy(max_attempts=1, sleep=_no_sleep))
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(ollama))
    return OllamaGateway(BASE_URL, "llama2", client=client, **kwargs)


class TestCatalog:
    async def test_check_availability_populates_models(self) -> None:
        ollama = FakeOllama(["llama2:latest", "mistral:7b"])
        gateway = make_gateway(ollama)

        assert await gateway.check_availability() is True
        assert gateway.connected
        assert gateway.available_models == ("llama2:latest", "mistral:7b")

    async def test_check_availability_never_raises(self) -> None:
        ollama = FakeOllama()
        ollama.tags_error = httpx.ConnectError("connection refused")
        gateway = make_gateway(ollama)

        assert await gateway.check_availability() is False
        assert not gateway.connected

    @pytest.mark.parametrize("body", [{"models": 5}, {"models": "llama2"}, ["llama2"]])
    async def test_unexpected_catalog_shape_yields_empty_catalog(self, body: object) -> None:
        ollama = FakeOllama()
        ollama.tags_body = body
        gateway = make_gateway(ollama)

        assert await gateway.check_availability() is True
        assert gateway.available_models == ()

    async def test_untagged_name_matches_latest(self) -> None:
        gateway = make_gateway(FakeOllama(["llama2:latest"]))
        await gateway.check_availability()

        assert gateway.is_model_available("llama2")
        assert gateway.is_model_available("llama2:latest")
        assert not gateway.is_model_available("llama2:13b")

    async def test_list_models_raises_when_unreachable(self) -> None:
        ollama = FakeOllama()
        ollama.tags_error = httpx.ConnectError("connection refused")
        gateway = make_gateway(ollama)

        with pytest.raises(ServiceUnavailableError):
            await gateway.list_models()

    async def test_health_check_reports_default_model(self) -> None:
        gateway = make_gateway(FakeOllama(["llama2:latest"]))

        health = await gateway.health_check()

        assert health.connected
        assert health.models_available == 1
        assert health.default_model == "llama2"
        assert health.default_model_available


class TestGenerate:
    async def test_generate_returns_response_text(self) -> None:
        ollama = FakeOllama()
        gateway = make_gateway(ollama)

        text = await gateway.generate("llama2", "Say hello")

        assert text == "hello"
        body = json.loads(ollama.requests[-1].content)
        assert body == {"model": "llama2", "prompt": "Say hello", "stream": False}

    async def test_generate_sends_json_format_and_options(self) -> None:
        ollama = FakeOllama()
        gateway = make_gateway(ollama)

        await gateway.generate(
            "llama2",
            "Give me JSON",
            GenerateOptions(temperature=0.1, num_predict=2000, json_format=True),
        )

        body = json.loads(ollama.requests[-1].content)
        assert body["format"] == "json"
        assert body["options"] == {"temperature": 0.1, "num_predict": 2000}

    async def test_generate_unreachable_runtime(self) -> None:
        ollama = FakeOllama()
        ollama.tags_error = httpx.ConnectError("connection refused")
        gateway = make_gateway(ollama)

        with pytest.raises(ServiceUnavailableError):
            await gateway.generate("llama2", "prompt")
        assert "/api/generate" not in ollama.paths()

    async def test_missing_model_is_pulled(self) -> None:
        ollama = FakeOllama(["llama2:latest"])
        gateway = make_gateway(ollama)

        assert await gateway.generate("mistral", "prompt") == "hello"
        assert ollama.paths().count("/api/pull") == 1
        assert gateway.is_model_available("mistral")

    async def test_missing_model_without_auto_pull(self) -> None:
        ollama = FakeOllama(["llama2:latest"])
        gateway = make_gateway(ollama, auto_pull=False)

        with pytest.raises(ModelUnavailableError) as exc_info:
            await gateway.generate("mistral", "prompt")
        assert exc_info.value.model == "mistral"
        assert "/api/pull" not in ollama.paths()

    async def test_failed_pull_raises_model_unavailable(self) -> None:
        ollama = FakeOllama(["llama2:latest"])
        ollama.pull_status = 500
        gateway = make_gateway(ollama)

        with pytest.raises(ModelUnavailableError):
            await gateway.generate("mistral", "prompt")

    async def test_timeout_maps_to_generation_timeout(self) -> None:
        ollama = FakeOllama()
        ollama.generate_responses.append(httpx.ReadTimeout("timed out"))
        gateway = make_gateway(ollama)

        with pytest.raises(GenerationTimeoutError):
            await gateway.generate("llama2", "prompt")

    async def test_connection_drop_marks_disconnected(self) -> None:
        ollama = FakeOllama()
        ollama.generate_responses.append(httpx.ConnectError("connection reset"))
        gateway = make_gateway(ollama)

        with pytest.raises(ServiceUnavailableError):
            await gateway.generate("llama2", "prompt")
        assert not gateway.connected

    @pytest.mark.parametrize(
        ("response", "error"),
        [
            (httpx.Response(404, json={"error": "model not found"}), ModelUnavailableError),
            (httpx.Response(500, text="boom"), GenerationFailedError),
            (httpx.Response(200, text="not json"), GenerationFailedError),
            (httpx.Response(200, json={"response": ""}), GenerationFailedError),
        ],
    )
    async def test_error_responses(self, response: httpx.Response, error: type) -> None:
        ollama = FakeOllama()
        ollama.generate_responses.append(response)
        gateway = make_gateway(ollama)

        with pytest.raises(error):
            await gateway.generate("llama2", "prompt")


class TestGenerateWithRetry:
    async def test_retries_transient_failures(self) -> None:
        ollama = FakeOllama()
        ollama.generate_responses.extend(
            [httpx.Response(500, text="busy"), httpx.Response(200, json={"response": "done"})]
        )
        gateway = make_gateway(ollama, retry_policy=RetryPolicy(max_attempts=3, sleep=_no_sleep))

        assert await gateway.generate_with_retry("llama2", "prompt") == "done"
        assert ollama.paths().count("/api/generate") == 2

    async def test_raises_last_error_after_exhaustion(self) -> None:
        ollama = FakeOllama()
        ollama.generate_responses.extend([httpx.Response(500, text="busy")] * 3)
        gateway = make_gateway(ollama, retry_policy=RetryPolicy(max_attempts=3, sleep=_no_sleep))

        with pytest.raises(GenerationFailedError):
            await gateway.generate_with_retry("llama2", "prompt")
        assert ollama.paths().count("/api/generate") == 3


def test_from_settings() -> None:
    settings = Settings(
        _env_file=None,
        ollama_host="http://gpu-box:11434/",
        ollama_default_model="mistral",
        ollama_timeout_seconds=30,
        ollama_max_retries=5,
        ollama_retry_delay_seconds=0.25,
        ollama_auto_pull=False,
    )

    gateway = OllamaGateway.from_settings(settings)

    assert gateway.base_url == "http://gpu-box:11434"
    assert gateway.default_model == "mistral"
    assert gateway.timeout == 30
    assert gateway.auto_pull is False
    assert gateway.retry_policy.max_attempts == 5
    assert gateway.retry_policy.initial_delay == 0.25
