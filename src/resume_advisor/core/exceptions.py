from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} with id '{resource_id}' not found",
        )


class FileValidationError(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )


class LLMUnavailableError(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
        )


class ExtractionError(Exception):
    """Raised when text extraction from a file fails."""


class ResumeAdvisorError(Exception):
    """Base class for failures talking to, or decoding answers from, the LLM runtime."""


class LLMError(ResumeAdvisorError):
    """The model did not answer."""


class ServiceUnavailableError(LLMError):
    """The Ollama runtime refused the connection or is not running."""


class ModelUnavailableError(LLMError):
    def __init__(self, model: str, detail: str | None = None) -> None:
        self.model = model
        super().__init__(detail or f"Model {model} is not available and could not be pulled")


class GenerationFailedError(LLMError):
    """The runtime answered with an error status or an empty response."""


class GenerationTimeoutError(LLMError):
    """The generation request exceeded its timeout."""


class MalformedStructuredResponseError(ResumeAdvisorError):
    """The model answered, but the answer is not valid JSON."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw
