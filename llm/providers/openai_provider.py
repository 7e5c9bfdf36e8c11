"""
OpenAI-compatible chat-completion provider.

Sends one authenticated POST to <base_url>/chat/completions per request.
Default endpoint is api.openai.com with model gpt-4; OPENAI_BASE_URL and
OPENAI_MODEL point it at any compatible server (a local Ollama or vLLM
instance, a proxy, ...).

Cancellation: the request runs inside the awaiting task, so cancelling that
task closes the connection via the AsyncClient context manager.
"""

import json
import logging
import os

import httpx

from ..base import BaseLLMProvider, InferenceRequest, InferenceResponse
from ..schema_validator import CompletionResponseError, extract_message_content, extract_usage

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.openai.com/v1"
_DEFAULT_MODEL = "gpt-4"
# Whole-file rewrites from large models can take minutes; override with GPTDD_TIMEOUT.
_TIMEOUT_SECONDS = float(os.environ.get("GPTDD_TIMEOUT", "300"))


class CompletionTransportError(RuntimeError):
    """Network failure or non-2xx status from the completion endpoint."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class OpenAIProvider(BaseLLMProvider):
    """
    Calls the /chat/completions endpoint with a bearer token.

    Uses httpx async client. `transport` exists for tests (httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model or os.environ.get("OPENAI_MODEL", _DEFAULT_MODEL)
        self._base_url = (base_url or os.environ.get("OPENAI_BASE_URL", _DEFAULT_BASE_URL)).rstrip("/")
        self._timeout = timeout if timeout is not None else _TIMEOUT_SECONDS
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/chat/completions"

    async def infer(self, request: InferenceRequest) -> InferenceResponse:
        payload = {
            "model": self._model,
            "messages": request.to_messages(),
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

        # Connect must be fast; read covers the whole generation.
        timeout_config = httpx.Timeout(connect=10.0, read=self._timeout, write=30.0, pool=10.0)
        async with httpx.AsyncClient(timeout=timeout_config, transport=self._transport) as client:
            try:
                response = await client.post(self.endpoint, json=payload, headers=headers)
            except httpx.TimeoutException as exc:
                raise CompletionTransportError(
                    f"Completion request to {self.endpoint} timed out after {self._timeout}s. "
                    "Set GPTDD_TIMEOUT to increase the limit."
                ) from exc
            except httpx.HTTPError as exc:
                raise CompletionTransportError(
                    f"Completion endpoint not reachable at {self.endpoint}: {exc}"
                ) from exc

        if response.is_error:
            raise CompletionTransportError(
                f"Completion endpoint returned HTTP {response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except json.JSONDecodeError as exc:
            raise CompletionResponseError(
                "Completion endpoint returned a non-JSON body",
                body=response.text,
            ) from exc

        text = extract_message_content(body)
        input_tokens, output_tokens = extract_usage(body)

        return InferenceResponse(
            text=text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            provider=self.provider_name,
            model=body.get("model", self._model),
        )


def _error_detail(response: httpx.Response) -> str:
    """Pull the API's error message out of an error body, if there is one."""
    try:
        body = response.json()
    except json.JSONDecodeError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message", "") or response.reason_phrase
    return response.reason_phrase
