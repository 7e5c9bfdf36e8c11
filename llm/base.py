"""
Abstract base class for all completion providers.

All providers must implement async inference so the event loop never blocks
and a superseded request can be cancelled mid-flight.
Token counting is best-effort; providers that cannot count return -1.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class InferenceRequest:
    """Normalized request passed to any provider."""
    system_prompt: str
    user_prompt: str
    # Caller-supplied metadata, not forwarded to models
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.user_prompt},
        ]


@dataclass
class InferenceResponse:
    """Normalized response returned from any provider."""
    text: str
    # Approximate input tokens used; -1 if provider cannot report
    input_tokens: int = -1
    # Approximate output tokens generated; -1 if provider cannot report
    output_tokens: int = -1
    provider: str = ""
    model: str = ""


class BaseLLMProvider(ABC):
    """
    Providers are stateless wrappers around completion backends.
    They handle authentication and the HTTP exchange; they never retry.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Identifier used in logs and InferenceResponse.provider."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Active model identifier."""

    @abstractmethod
    async def infer(self, request: InferenceRequest) -> InferenceResponse:
        """
        Execute inference asynchronously.

        Must not block the event loop, and must release its connection
        promptly when the awaiting task is cancelled.
        """
