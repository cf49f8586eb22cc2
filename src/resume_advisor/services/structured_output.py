import json
import logging
from typing import TypeAlias

from resume_advisor.core.exceptions import MalformedStructuredResponseError
from resume_advisor.core.llm import GenerateOptions, OllamaGateway

logger = logging.getLogger(__name__)

JSONValue: TypeAlias = "dict[str, JSONValue] | list[JSONValue] | str | int | float | bool | None"

JSON_ONLY_INSTRUCTION = "\n\nPlease respond with valid JSON only."

# Low temperature for consistent structured output
STRUCTURED_OPTIONS = GenerateOptions(temperature=0.1, num_predict=2000, json_format=True)


def _balanced_object_end(text: str, start: int) -> int | None:
    """Index one past the '}' closing the object that opens at text[start]."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return None


def extract_json_object(text: str) -> JSONValue:
    """Parse the first balanced top-level {...} block embedded in surrounding prose."""
    start = text.find("{")
    while start != -1:
        end = _balanced_object_end(text, start)
        if end is None:
            break
        try:
            return json.loads(text[start:end])
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
        except (ValueError, RecursionError) as e:
            raise MalformedStructuredResponseError(
                f"Response JSON cannot be decoded: {e}", raw=text
            ) from e
    raise MalformedStructuredResponseError("Response is not valid JSON", raw=text)


def decode_json(text: str) -> JSONValue:
    """Decode a model reply as JSON, tolerating commentary around a single object."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Failed to parse JSON response, attempting to extract JSON")
    except (ValueError, RecursionError) as e:
        # Oversized integers and very deep nesting are valid JSON that cannot be loaded
        raise MalformedStructuredResponseError(
            f"Response JSON cannot be decoded: {e}", raw=text
        ) from e
    return extract_json_object(text)


async def generate_structured(
    gateway: OllamaGateway,
    prompt: str,
    model: str | None = None,
) -> JSONValue:
    """Ask the model for JSON and decode the reply.

    Transport failures surface as ``LLMError``; a reply that cannot be decoded
    raises ``MalformedStructuredResponseError``.
    """
    text = await gateway.generate_with_retry(
        model or gateway.default_model,
        prompt + JSON_ONLY_INSTRUCTION,
        STRUCTURED_OPTIONS,
    )
    try:
        return decode_json(text)
    except MalformedStructuredResponseError:
        logger.error("Structured response from %s is not valid JSON: %.200s", model, text)
        raise
