"""
Unit tests for pricing calculations.

Tests cost accuracy, fallback pricing and token estimation.
"""

import math

import pytest
from decimal import Decimal

from conjugation_guard.core.pricing import (
    DEFAULT_MODEL,
    PRICING_TABLE,
    ModelPricing,
    PricingTable,
    calculate_cost,
)
from conjugation_guard.core.token_counter import TokenUsage, estimate_tokens


class TestTokenUsage:
    """Test TokenUsage dataclass."""

    def test_total_tokens_calculation(self):
        """Verify total_tokens is computed correctly."""
        usage = TokenUsage(prompt_tokens=100, completion_tokens=50)
        assert usage.total_tokens == 150

    def test_zero_tokens(self):
        """Verify zero token handling."""
        usage = TokenUsage(prompt_tokens=0, completion_tokens=0)
        assert usage.total_tokens == 0

    def test_negative_tokens_rejected(self):
        """Verify negative counts raise."""
        with pytest.raises(ValueError, match="prompt_tokens"):
            TokenUsage(prompt_tokens=-1, completion_tokens=0)
        with pytest.raises(ValueError, match="completion_tokens"):
            TokenUsage(prompt_tokens=0, completion_tokens=-1)


class TestEstimateTokens:
    """Test length-based token estimation."""

    def test_empty_string(self):
        """Verify empty text is zero tokens."""
        assert estimate_tokens("") == 0

    def test_single_character(self):
        """Verify any non-empty text is at least one token."""
        assert estimate_tokens("a") == 1

    def test_exact_multiple(self):
        """Verify 7 characters is exactly 2 tokens."""
        assert estimate_tokens("abcdefg") == 2

    def test_rounds_up(self):
        """Verify partial tokens round up."""
        assert estimate_tokens("abcdefgh") == 3

    @pytest.mark.parametrize("text", [
        "Je mange une pomme",
        "Hello world",
        "Nous aurions dû partir plus tôt",
        "x" * 1000,
    ])
    def test_matches_formula(self, text):
        """Verify estimate is ceil(len / 3.5)."""
        assert estimate_tokens(text) == math.ceil(len(text) / 3.5)


class TestPricingTable:
    """Test pricing table functionality."""

    def test_get_supported_model(self):
        """Verify pricing retrieval for supported models."""
        pricing = PRICING_TABLE.get_pricing("grok-4")
        assert pricing.input_price_per_million == Decimal("3.00")
        assert pricing.output_price_per_million == Decimal("15.00")

    def test_unknown_model_uses_fallback(self):
        """Verify unknown models get the fallback pricing."""
        assert PRICING_TABLE.get_pricing("unknown-model") == PRICING_TABLE.get_pricing(DEFAULT_MODEL)
        assert not PRICING_TABLE.is_known("unknown-model")

    def test_fallback_must_be_priced(self):
        """Verify a table without its fallback entry is rejected."""
        with pytest.raises(ValueError, match="Fallback model"):
            PricingTable(
                prices={"a": ModelPricing(Decimal("1"), Decimal("1"))},
                fallback_model="b",
            )


class TestCostCalculation:
    """Test cost calculation accuracy."""

    def test_grok_fast_cost(self):
        """Verify 100 in / 200 out on the fast model."""
        # 100/1e6 * 0.20 + 200/1e6 * 0.50 = 0.00002 + 0.0001
        assert calculate_cost("grok-4-fast-non-reasoning", 100, 200) == pytest.approx(0.00012)

    def test_grok4_cost(self):
        """Verify one million tokens each way on grok-4."""
        assert calculate_cost("grok-4", 1_000_000, 1_000_000) == pytest.approx(18.00)

    def test_costs_not_rounded(self):
        """Verify sub-cent costs are preserved."""
        assert calculate_cost("grok-4-fast-non-reasoning", 1, 0) == pytest.approx(0.0000002)

    @pytest.mark.parametrize("model", sorted(PRICING_TABLE.prices))
    def test_zero_tokens_cost(self, model):
        """Verify zero tokens cost exactly zero for every known model."""
        assert calculate_cost(model, 0, 0) == 0

    @pytest.mark.parametrize("input_tokens, output_tokens", [
        (0, 0), (1, 1), (100, 50), (12345, 678), (1_000_000, 0),
    ])
    def test_unknown_model_priced_as_fallback(self, input_tokens, output_tokens):
        """Verify unknown models cost the same as the fallback model."""
        assert calculate_cost("unknown-model-xyz", input_tokens, output_tokens) == \
            calculate_cost(DEFAULT_MODEL, input_tokens, output_tokens)

    def test_large_token_counts(self):
        """Verify calculation with very large token counts."""
        cost = calculate_cost("grok-4-fast-non-reasoning", 10_000_000, 2_000_000)
        # 10 * 0.20 + 2 * 0.50
        assert cost == pytest.approx(3.00)

    def test_negative_tokens_raise(self):
        """Verify negative token counts are rejected."""
        with pytest.raises(ValueError):
            calculate_cost("grok-4", -5, 0)
