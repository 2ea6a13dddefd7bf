"""
Error taxonomy for request governance.

Every way a sentence-correction request can be refused or fail is a
subclass of GuardError. Each carries the structured details a caller needs
and a user_message suitable for showing directly to the learner.
"""

from typing import Optional


class GuardError(Exception):
    """Base class for all governance and provider failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def user_message(self) -> str:
        """Actionable message for the learner."""
        return self.message


class InvalidInput(GuardError):
    """Input is empty, not text, or too short once cleaned."""

    @property
    def user_message(self) -> str:
        return "Please write a sentence of at least 3 characters."


class TooLong(GuardError):
    """Sanitized input exceeds the maximum length."""

    def __init__(self, length: int, max_length: int):
        super().__init__(f"Sentence too long ({length} characters, max {max_length})")
        self.length = length
        self.max_length = max_length

    @property
    def user_message(self) -> str:
        return f"Sentence too long (max {self.max_length} characters). Please shorten it."


class NotASentence(GuardError):
    """Input does not look like a sentence (symbols, gibberish)."""

    @property
    def user_message(self) -> str:
        return "That does not look like a sentence. Please write it using words."


class RateLimited(GuardError):
    """Local rate limiter refused the request."""

    def __init__(self, reason: str, wait_time: int):
        super().__init__(reason)
        self.reason = reason
        self.wait_time = wait_time

    @property
    def user_message(self) -> str:
        return f"{self.reason} (try again in {self.wait_time}s)"


class BudgetExceeded(GuardError):
    """Rolling spend has reached a configured budget limit."""

    def __init__(self, reason: str, period: str, current_cost: float, limit: float):
        super().__init__(reason)
        self.reason = reason
        self.period = period
        self.current_cost = current_cost
        self.limit = limit

    @property
    def user_message(self) -> str:
        return f"{self.reason}. Raise your {self.period} budget in Settings to continue."


class NoApiKey(GuardError):
    """No credential stored for the active provider."""

    def __init__(self, provider: str):
        super().__init__(f"No API key configured for provider '{provider}'")
        self.provider = provider

    @property
    def user_message(self) -> str:
        return "No API key configured. Please add one in Settings."


class UnknownProvider(GuardError):
    """Configured provider has no implementation."""

    def __init__(self, provider: str):
        super().__init__(f"Unknown AI provider: {provider}")
        self.provider = provider

    @property
    def user_message(self) -> str:
        return f"The AI provider '{self.provider}' is not supported. Choose another in Settings."


class InvalidCredential(GuardError):
    """Provider rejected the credential (HTTP 401)."""

    @property
    def user_message(self) -> str:
        return "Your API key was rejected. Please enter a new key in Settings."


class ProviderRateLimited(GuardError):
    """Provider throttled the request (HTTP 429)."""

    @property
    def user_message(self) -> str:
        return "The AI provider is busy right now. Please wait a moment and try again."


class ProviderError(GuardError):
    """Provider answered with any other failure."""

    def __init__(self, status: Optional[int], message: str):
        super().__init__(f"Provider error ({status}): {message}" if status else message)
        self.status = status
        self.detail = message

    @property
    def user_message(self) -> str:
        return f"The AI provider returned an error: {self.detail}"


class ProviderTimeout(GuardError):
    """Provider call did not complete in time."""

    @property
    def user_message(self) -> str:
        return "The AI provider took too long to answer. Please try again."


class PersistenceFailure(GuardError):
    """Durable store could not be read or written."""

    @property
    def user_message(self) -> str:
        return "Usage data could not be saved or loaded."
