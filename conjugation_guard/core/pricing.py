"""
Pricing calculations and rate management.

Handles cost computations for the supported language models.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict

from .token_counter import TokenUsage

ONE_MILLION = Decimal("1000000")
DEFAULT_MODEL = "grok-4-fast-non-reasoning"


@dataclass(frozen=True)
class ModelPricing:
    """Per-token pricing for a specific model."""
    input_price_per_million: Decimal  # USD per 1M prompt tokens
    output_price_per_million: Decimal  # USD per 1M completion tokens


@dataclass(frozen=True)
class PricingTable:
    """Fixed pricing table with a designated fallback model."""
    prices: Dict[str, ModelPricing]
    fallback_model: str

    def __post_init__(self):
        if self.fallback_model not in self.prices:
            raise ValueError(f"Fallback model {self.fallback_model} has no pricing")

    def get_pricing(self, model: str) -> ModelPricing:
        """Get pricing for a model.

        Unknown identifiers are priced as the fallback model.
        """
        return self.prices.get(model, self.prices[self.fallback_model])

    def is_known(self, model: str) -> bool:
        return model in self.prices


PRICING_TABLE = PricingTable(
    prices={
        "grok-4-fast-non-reasoning": ModelPricing(
            input_price_per_million=Decimal("0.20"),
            output_price_per_million=Decimal("0.50"),
        ),
        "grok-4": ModelPricing(
            input_price_per_million=Decimal("3.00"),
            output_price_per_million=Decimal("15.00"),
        ),
    },
    fallback_model=DEFAULT_MODEL,
)


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """Calculate the dollar cost of a request.

    Uses Decimal arithmetic and does not round the result.

    Args:
        model: Model identifier (unknown models use the fallback pricing)
        input_tokens: Prompt tokens
        output_tokens: Completion tokens

    Returns:
        Cost in USD, never negative

    Raises:
        ValueError: If a token count is negative
    """
    usage = TokenUsage(prompt_tokens=input_tokens, completion_tokens=output_tokens)
    pricing = PRICING_TABLE.get_pricing(model)

    input_cost = (Decimal(usage.prompt_tokens) / ONE_MILLION) * pricing.input_price_per_million
    output_cost = (Decimal(usage.completion_tokens) / ONE_MILLION) * pricing.output_price_per_million

    return float(input_cost + output_cost)
