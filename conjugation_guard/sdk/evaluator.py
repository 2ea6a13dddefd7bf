"""
Guarded sentence evaluation.

Entry point for the practice flow. Runs every gate before a paid
provider call and records the call's cost afterwards:

1. Sanitize input
2. Check it looks like a sentence
3. Rate limit
4. Budget
5. Resolve provider and credential
6. Consume one rate limit slot
7. Call the provider
8. Record usage
9. Parse feedback

Steps 3 to 6 run under one lock so two concurrent submissions cannot
both pass the gates before either is recorded.
"""

import logging
import threading
from typing import Callable, Optional

from ..config.loader import GuardConfig
from ..config.settings import SettingsStore
from ..core.budget import BudgetGate
from ..core.errors import (
    BudgetExceeded,
    InvalidCredential,
    NoApiKey,
    NotASentence,
    PersistenceFailure,
    ProviderError,
    ProviderRateLimited,
    RateLimited,
)
from ..core.input_guard import looks_like_sentence, sanitize
from ..core.rate_limiter import RateLimiter
from ..core.token_counter import estimate_tokens
from ..storage.kv import SqliteKeyValueStore
from ..storage.repository import UsageLedger
from .feedback import SYSTEM_PROMPT, Feedback, build_user_prompt, parse_feedback
from .providers import GrokProvider, ProviderCallError, get_provider

logger = logging.getLogger(__name__)


class SentenceEvaluator:
    """Evaluates learner sentences behind rate, budget and input guards.

    Construct once per application session; the rate limiter state lives
    on the instance.
    """

    def __init__(
        self,
        ledger: UsageLedger,
        settings: SettingsStore,
        rate_limiter: Optional[RateLimiter] = None,
        provider_factory: Callable[..., GrokProvider] = get_provider,
        timeout: float = 30.0,
    ):
        """Initialize the evaluator.

        Args:
            ledger: Usage ledger for budget checks and cost recording
            settings: Source of active provider, credential and budget limits
            rate_limiter: Session rate limiter (a default one is created if omitted)
            provider_factory: Builds a provider from its id and a timeout
            timeout: Seconds allowed for the provider call
        """
        self.ledger = ledger
        self.settings = settings
        self.rate_limiter = rate_limiter or RateLimiter()
        self.budget_gate = BudgetGate(ledger)
        self.provider_factory = provider_factory
        self.timeout = timeout
        self._gate_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: GuardConfig) -> "SentenceEvaluator":
        """Wire an evaluator from application configuration."""
        store = SqliteKeyValueStore(config.storage.db_path)
        rate_limiter = RateLimiter(
            min_delay=config.rate_limits.min_delay_seconds,
            max_per_minute=config.rate_limits.max_per_minute,
            max_per_hour=config.rate_limits.max_per_hour,
        )
        return cls(
            ledger=UsageLedger(store),
            settings=SettingsStore(
                store,
                default_provider=config.provider.default,
                default_limits=config.budget,
            ),
            rate_limiter=rate_limiter,
            timeout=config.provider.timeout_seconds,
        )

    def evaluate_sentence(self, verb: str, tense: str, user_sentence: str) -> Feedback:
        """Evaluate one learner sentence.

        Args:
            verb: Infinitive of the verb being practiced
            tense: Name of the required tense
            user_sentence: Sentence as typed by the learner

        Returns:
            Parsed Feedback. usage_recorded is False if the ledger could
            not be updated after a successful call.

        Raises:
            InvalidInput, TooLong: Input rejected by the input guard
            NotASentence: Input is not made of words
            RateLimited: Local rate limit reached
            BudgetExceeded: A budget period is exhausted
            NoApiKey, UnknownProvider: Provider configuration is incomplete
            InvalidCredential, ProviderRateLimited, ProviderError,
            ProviderTimeout: The provider call failed
            PersistenceFailure: The ledger or settings could not be read for the gates
        """
        sentence = sanitize(user_sentence)

        if not looks_like_sentence(sentence):
            raise NotASentence("Input does not appear to be a valid sentence")

        with self._gate_lock:
            rate_status = self.rate_limiter.check_rate_limit()
            if not rate_status.allowed:
                raise RateLimited(rate_status.reason, rate_status.wait_time)

            budget_status = self.budget_gate.check_budget(self.settings.get_budget_limits())
            if not budget_status.allowed:
                raise BudgetExceeded(
                    budget_status.reason,
                    budget_status.period,
                    budget_status.current_cost,
                    budget_status.limit,
                )

            provider_id = self.settings.get_active_provider()
            api_key = self.settings.get_credential(provider_id)
            if not api_key:
                raise NoApiKey(provider_id)
            provider = self.provider_factory(provider_id, timeout=self.timeout)

            self.rate_limiter.record_request()

        user_prompt = build_user_prompt(verb, tense, sentence)
        try:
            response = provider.send(SYSTEM_PROMPT, user_prompt, provider.model, api_key)
        except ProviderCallError as e:
            raise _map_provider_error(e) from e

        if not response.text:
            raise ProviderError(None, "No response from AI")

        usage_recorded = self._record_usage(
            provider.model,
            response.input_tokens or estimate_tokens(SYSTEM_PROMPT + user_prompt),
            response.output_tokens or estimate_tokens(response.text),
        )

        feedback = parse_feedback(response.text)
        feedback.usage_recorded = usage_recorded
        return feedback

    def _record_usage(self, model: str, input_tokens: int, output_tokens: int) -> bool:
        # Ledger failures never discard a completed provider answer
        try:
            self.ledger.record_usage(model, input_tokens, output_tokens)
        except PersistenceFailure:
            logger.exception("Error recording usage for model %s", model)
            return False
        return True


def _map_provider_error(error: ProviderCallError) -> Exception:
    if error.status_code == 401:
        return InvalidCredential(error.message)
    if error.status_code == 429:
        return ProviderRateLimited(error.message)
    return ProviderError(error.status_code, error.message)
