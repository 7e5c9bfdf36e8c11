"""
LLM Router: the single point of contact between the fix cycle and inference.

The fix cycle NEVER calls providers directly. This ensures:
  - Provider selection logic lives in one place
  - The prompt is always built from the YAML definition
  - Response handling is the same for every provider

Provider selection priority:
  1. Explicit provider passed to Router constructor (test injection)
  2. Environment variable: LLM_PROVIDER = mock
  3. OpenAI-compatible endpoint authenticated with the run's API key

No retry: a failed request is reported, and the user's "run again" prompt
is the only way to try again.
"""

import logging
import os

from agent.state import FixProposal
from .base import BaseLLMProvider, InferenceRequest
from .prompt_loader import get_system_prompt, render_template

logger = logging.getLogger(__name__)


def _resolve_provider(api_key: str) -> BaseLLMProvider:
    """Select provider based on environment signals."""
    env_provider = os.environ.get("LLM_PROVIDER", "").lower()

    if env_provider == "mock":
        from .providers.mock_provider import MockProvider
        logger.warning("LLM_PROVIDER=mock: proposals will echo the original file.")
        return MockProvider()

    from .providers.openai_provider import OpenAIProvider
    return OpenAIProvider(api_key=api_key)


class LLMRouter:
    """
    Stateless orchestrator that combines prompt loading, inference and
    response extraction into a single async call per fix attempt.
    """

    def __init__(self, provider: BaseLLMProvider | None = None, api_key: str = "") -> None:
        # Allow explicit injection for testing; otherwise resolve from the environment
        self._provider = provider or _resolve_provider(api_key)
        logger.info(
            "LLMRouter initialized with provider=%s model=%s",
            self._provider.provider_name,
            self._provider.model_name,
        )

    def build_request(self, failure_text: str, source: str) -> InferenceRequest:
        """Assemble the system instruction and the failing-test/file user message."""
        return InferenceRequest(
            system_prompt=get_system_prompt(),
            user_prompt=render_template(
                "fix",
                {"failure_text": failure_text, "source": source},
            ),
            metadata={"source": source},
        )

    async def request_fix(self, failure_text: str, source: str) -> FixProposal:
        """
        Ask the model for a replacement of `source` that fixes `failure_text`.

        Raises:
            CompletionTransportError: network failure or error status
            CompletionResponseError: body lacks a message content
        """
        request = self.build_request(failure_text, source)
        response = await self._provider.infer(request)
        logger.debug(
            "provider=%s input_tokens=%d output_tokens=%d",
            response.provider,
            response.input_tokens,
            response.output_tokens,
        )
        return FixProposal(
            text=response.text,
            provider=response.provider,
            model=response.model,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
        )
