"""
AI provider clients.

Each provider sends a system and user prompt to a language model and
returns the answer text with the token usage the provider reports.
Transport failures are converted to ProviderCallError or ProviderTimeout;
mapping HTTP statuses to user-facing categories is the evaluator's job.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import openai
from openai import OpenAI

from ..core.errors import ProviderTimeout, UnknownProvider

logger = logging.getLogger(__name__)


class ProviderCallError(Exception):
    """Provider call failed with an HTTP status (None when no response arrived)."""

    def __init__(self, status_code: Optional[int], message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


@dataclass(frozen=True)
class ProviderResponse:
    """Answer text and reported token usage (None when not reported)."""
    text: str
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None


class GrokProvider:
    """xAI Grok client over the OpenAI-compatible chat completions API."""

    BASE_URL = "https://api.x.ai/v1"
    MODEL = "grok-4-fast-non-reasoning"
    TEMPERATURE = 0.3

    def __init__(self, timeout: float = 30.0):
        """Initialize the provider.

        Args:
            timeout: Seconds before the HTTP call is abandoned
        """
        self.timeout = timeout
        self.model = self.MODEL

    def send(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        api_key: str,
    ) -> ProviderResponse:
        """Send one chat completion request.

        The SDK's automatic retries are disabled; a failed call is reported
        once.

        Raises:
            ProviderTimeout: If the call timed out
            ProviderCallError: For HTTP errors and connection failures
        """
        client = OpenAI(
            api_key=api_key,
            base_url=self.BASE_URL,
            timeout=self.timeout,
            max_retries=0,
        )

        try:
            response = client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.TEMPERATURE,
            )
        except openai.APITimeoutError as e:
            logger.error("Grok API timed out after %.1fs", self.timeout)
            raise ProviderTimeout(f"Request timed out after {self.timeout}s") from e
        except openai.APIStatusError as e:
            logger.error("Grok API error %s: %s", e.status_code, e.message)
            raise ProviderCallError(e.status_code, e.message) from e
        except openai.APIConnectionError as e:
            logger.error("Grok API connection failed: %s", e)
            raise ProviderCallError(None, str(e)) from e

        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""

        usage = response.usage
        return ProviderResponse(
            text=text,
            input_tokens=_token_count(getattr(usage, "prompt_tokens", None)),
            output_tokens=_token_count(getattr(usage, "completion_tokens", None)),
        )


def _token_count(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return None
    return value


PROVIDERS = {
    "grok": GrokProvider,
}

AVAILABLE_PROVIDERS: List[Dict[str, Any]] = [
    {"id": "grok", "name": "Grok (xAI)", "default": True},
]


def get_available_providers() -> List[Dict[str, Any]]:
    """List providers for a settings screen."""
    return [dict(provider) for provider in AVAILABLE_PROVIDERS]


def get_provider(provider_id: str, timeout: float = 30.0) -> GrokProvider:
    """Build the provider implementation for an id.

    Raises:
        UnknownProvider: If no implementation exists for provider_id
    """
    provider_class = PROVIDERS.get(provider_id)
    if provider_class is None:
        raise UnknownProvider(provider_id)
    return provider_class(timeout=timeout)
