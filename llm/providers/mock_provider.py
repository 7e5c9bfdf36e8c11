"""
Mock provider for deterministic testing and offline dry runs.

Returns pre-registered replacement texts in order. When none are queued it
echoes the original file back (a no-op fix), taken from
InferenceRequest.metadata['source'].
Never makes network calls, so it is safe for offline CI environments.
"""

from ..base import BaseLLMProvider, InferenceRequest, InferenceResponse


class MockProvider(BaseLLMProvider):
    """
    Deterministic provider for testing without network access.

    Every request is recorded in `requests` so tests can assert on the
    prompt that would have been sent.
    """

    def __init__(self, responses: list[str] | None = None) -> None:
        self._responses = list(responses or [])
        self.requests: list[InferenceRequest] = []

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def model_name(self) -> str:
        return "mock-v1"

    async def infer(self, request: InferenceRequest) -> InferenceResponse:
        self.requests.append(request)
        if self._responses:
            text = self._responses.pop(0)
        else:
            text = request.metadata.get("source", "")
        return InferenceResponse(
            text=text.strip(),
            input_tokens=len(request.user_prompt.split()),
            output_tokens=len(text.split()),
            provider=self.provider_name,
            model=self.model_name,
        )
