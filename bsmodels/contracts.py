"""
Option contract description and model selection.

A contract is an immutable bag of the parameters every Black-Scholes
variant may need. Which fields matter depends on the ModelVariant it is
priced under:

    SPOT         S, X, T, r, σ
    DIVIDEND     S, X, T, r, σ, q
    FUTURES      F, X, T, r, σ
    ASAY         F, X, T, σ
    CURRENCY     S, X, T, r, r_f, σ
    GENERALIZED  S, X, T, r, σ, q (or an explicit cost of carry b)
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .errors import InvalidModelVariant, InvalidOptionKind


class OptionKind(Enum):
    """Right conferred by a European option."""

    CALL = "call"
    PUT = "put"

    @classmethod
    def parse(cls, value: Union["OptionKind", str]) -> "OptionKind":
        """Accept an OptionKind or a case-insensitive name such as "Call"."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidOptionKind(
            f"Option kind must be 'call' or 'put', got {value!r}",
            field="kind",
            value=value,
        )


class ModelVariant(Enum):
    """Member of the Black-Scholes family a contract is priced under."""

    SPOT = "spot"  # Black-Scholes (1973), b = r
    DIVIDEND = "dividend"  # Merton (1973), b = r - q
    FUTURES = "futures"  # Black (1976), b = 0 on a forward price
    ASAY = "asay"  # Asay (1982) margined futures, b = 0 and no discounting
    CURRENCY = "currency"  # Garman-Kohlhagen (1983), b = r - r_f
    GENERALIZED = "generalized"  # any b, r - q by default

    @classmethod
    def parse(cls, value: Union["ModelVariant", str]) -> "ModelVariant":
        """Accept a ModelVariant, its value, or a common model name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("_", "-").replace(" ", "-")
            if key in _VARIANT_ALIASES:
                return _VARIANT_ALIASES[key]
        raise InvalidModelVariant(
            f"Unknown model variant {value!r}", field="variant", value=value
        )


_VARIANT_ALIASES = {
    **{variant.value: variant for variant in ModelVariant},
    "1973": ModelVariant.SPOT,
    "1976": ModelVariant.SPOT,
    "black-scholes": ModelVariant.SPOT,
    "merton": ModelVariant.DIVIDEND,
    "black-scholes-merton": ModelVariant.DIVIDEND,
    "black-76": ModelVariant.FUTURES,
    "black76": ModelVariant.FUTURES,
    "garman-kohlhagen": ModelVariant.CURRENCY,
    "gbs": ModelVariant.GENERALIZED,
}


@dataclass(frozen=True)
class OptionContract:
    """
    European option and the market inputs needed to price it.

    Range checks are deferred to pricing so that a bad field is reported
    by the pricing call as a typed error for the variant being priced.

    Attributes:
        kind: Call or put (strings such as "Call" are coerced)
        strike: Strike price X
        maturity: Time to expiry T in years
        volatility: Annualized volatility σ
        spot: Spot price S, for spot-based variants
        forward: Forward or futures price F, for FUTURES and ASAY
        risk_free_rate: Continuously compounded domestic rate r
        foreign_rate: Foreign rate r_f, for CURRENCY
        dividend_yield: Continuous dividend yield q >= 0
        cost_of_carry: Explicit b, honoured by GENERALIZED only
    """

    kind: OptionKind
    strike: float
    maturity: float
    volatility: float
    spot: Optional[float] = None
    forward: Optional[float] = None
    risk_free_rate: float = 0.0
    foreign_rate: Optional[float] = None
    dividend_yield: float = 0.0
    cost_of_carry: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "kind", OptionKind.parse(self.kind))

    @property
    def is_call(self) -> bool:
        return self.kind is OptionKind.CALL

    def replace(self, **changes) -> "OptionContract":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)
