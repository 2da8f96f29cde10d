"""
Closed-form prices for the Black-Scholes family of European option models.

Every named model is the generalized Black-Scholes formula with a
particular cost of carry b:

    b = r           Black-Scholes (1973) stock options
    b = r - q       Merton (1973) stock options with dividend yield q
    b = 0           Black (1976) options on futures
    b = 0, r = 0    Asay (1982) margined futures options
    b = r - r_f     Garman-Kohlhagen (1983) currency options

Two formula shapes are kept. Spot-based models fold the carry into the
underlying term:

    C = S·exp((b-r)T)·N(d1) - X·exp(-rT)·N(d2)

while the futures models discount the whole bracket of a forward price:

    C = exp(-rT)·(F·N(d1) - X·N(d2))
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, Union

import numpy as np
from scipy.stats import norm

from .contracts import ModelVariant, OptionContract, OptionKind
from .errors import (
    InvalidModelVariant,
    NonPositiveMaturity,
    NonPositivePrice,
    NonPositiveVolatility,
    PricingError,
)

logger = logging.getLogger(__name__)


class FormulaShape(Enum):
    """Where the discount factor is applied."""

    SPOT = "spot"  # carry folded into the underlying term
    FORWARD = "forward"  # exp(-rT) applied to the whole payoff bracket


@dataclass(frozen=True)
class CarryTerms:
    """Per-variant substitution fed into the closed-form formula."""

    reference_price: float  # S for spot shapes, F for forward shapes
    cost_of_carry: float  # b
    discount_rate: float  # r used in exp(-rT)
    shape: FormulaShape


def norm_cdf(x):
    """Standard normal cumulative distribution function."""
    return norm.cdf(x)


def d1_d2(
    reference_price: float,
    strike: float,
    maturity: float,
    cost_of_carry: float,
    volatility: float,
) -> Tuple[float, float]:
    """Standardized moneyness terms of the generalized formula."""
    vol_sqrt_t = volatility * np.sqrt(maturity)
    d1 = (
        np.log(reference_price / strike)
        + (cost_of_carry + 0.5 * volatility**2) * maturity
    ) / vol_sqrt_t
    d2 = d1 - vol_sqrt_t
    return float(d1), float(d2)


def generalized_black_scholes(
    kind: Union[OptionKind, str],
    spot: float,
    strike: float,
    maturity: float,
    rate: float,
    cost_of_carry: float,
    volatility: float,
) -> float:
    """
    Generalized Black-Scholes price with cost of carry b.

    Inputs are not validated here; use price() for checked pricing.

    Args:
        kind: Call or put
        spot: Underlying spot price S
        strike: Strike price X
        maturity: Time to expiry T in years
        rate: Risk-free rate r used for discounting
        cost_of_carry: Cost of carry b
        volatility: Annualized volatility σ

    Returns:
        Option price
    """
    kind = OptionKind.parse(kind)
    d1, d2 = d1_d2(spot, strike, maturity, cost_of_carry, volatility)
    carry_factor = np.exp((cost_of_carry - rate) * maturity)
    discount_factor = np.exp(-rate * maturity)

    if kind is OptionKind.CALL:
        value = spot * carry_factor * norm_cdf(d1) - strike * discount_factor * norm_cdf(d2)
    else:
        value = strike * discount_factor * norm_cdf(-d2) - spot * carry_factor * norm_cdf(-d1)
    return float(value)


def black76(
    kind: Union[OptionKind, str],
    forward: float,
    strike: float,
    maturity: float,
    rate: float,
    volatility: float,
) -> float:
    """
    Black (1976) price of an option on a forward or futures price.

    Pass rate=0 for the Asay margined-futures model.
    """
    kind = OptionKind.parse(kind)
    d1, d2 = d1_d2(forward, strike, maturity, 0.0, volatility)
    discount_factor = np.exp(-rate * maturity)

    if kind is OptionKind.CALL:
        bracket = forward * norm_cdf(d1) - strike * norm_cdf(d2)
    else:
        bracket = strike * norm_cdf(-d2) - forward * norm_cdf(-d1)
    return float(discount_factor * bracket)


def _require(contract: OptionContract, field: str, variant: ModelVariant) -> float:
    value = getattr(contract, field)
    if value is None:
        raise InvalidModelVariant(
            f"{variant.name} pricing requires '{field}'", field=field, value=None
        )
    return value


def carry_terms(
    contract: OptionContract, variant: Union[ModelVariant, str]
) -> CarryTerms:
    """
    Map a contract onto the generalized formula for the given variant.

    Raises:
        InvalidModelVariant: Unknown variant or a required field is missing
    """
    variant = ModelVariant.parse(variant)
    r = contract.risk_free_rate
    q = contract.dividend_yield

    if variant is ModelVariant.SPOT:
        return CarryTerms(_require(contract, "spot", variant), r, r, FormulaShape.SPOT)
    if variant is ModelVariant.DIVIDEND:
        return CarryTerms(
            _require(contract, "spot", variant), r - q, r, FormulaShape.SPOT
        )
    if variant is ModelVariant.FUTURES:
        return CarryTerms(
            _require(contract, "forward", variant), 0.0, r, FormulaShape.FORWARD
        )
    if variant is ModelVariant.ASAY:
        return CarryTerms(
            _require(contract, "forward", variant), 0.0, 0.0, FormulaShape.FORWARD
        )
    if variant is ModelVariant.CURRENCY:
        spot = _require(contract, "spot", variant)
        r_f = _require(contract, "foreign_rate", variant)
        return CarryTerms(spot, r - r_f, r, FormulaShape.SPOT)

    # GENERALIZED
    b = contract.cost_of_carry if contract.cost_of_carry is not None else r - q
    return CarryTerms(_require(contract, "spot", variant), b, r, FormulaShape.SPOT)


def _check_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise PricingError(f"{name} must be finite, got {value!r}", field=name, value=value)


def _uses_dividend_yield(contract: OptionContract, variant: ModelVariant) -> bool:
    if variant is ModelVariant.DIVIDEND:
        return True
    return variant is ModelVariant.GENERALIZED and contract.cost_of_carry is None


def validated_terms(
    contract: OptionContract, variant: Union[ModelVariant, str]
) -> CarryTerms:
    """
    Carry terms for a contract that is safe to price under the variant.

    Raises the same errors as price().
    """
    OptionKind.parse(contract.kind)
    terms = carry_terms(contract, variant)
    price_field = "forward" if terms.shape is FormulaShape.FORWARD else "spot"
    for name, value in ((price_field, terms.reference_price), ("strike", contract.strike)):
        if not value > 0 or not math.isfinite(value):
            raise NonPositivePrice(
                f"{name} must be positive, got {value!r}", field=name, value=value
            )
    if not contract.maturity > 0 or not math.isfinite(contract.maturity):
        raise NonPositiveMaturity(
            f"maturity must be positive, got {contract.maturity!r}",
            field="maturity",
            value=contract.maturity,
        )
    if not contract.volatility > 0 or not math.isfinite(contract.volatility):
        raise NonPositiveVolatility(
            f"volatility must be positive, got {contract.volatility!r}",
            field="volatility",
            value=contract.volatility,
        )
    _check_finite("cost_of_carry", terms.cost_of_carry)
    _check_finite("risk_free_rate", terms.discount_rate)
    q = contract.dividend_yield
    if _uses_dividend_yield(contract, ModelVariant.parse(variant)) and not q >= 0:
        raise PricingError(
            f"dividend_yield must be non-negative, got {q!r}",
            field="dividend_yield",
            value=q,
        )
    return terms


def price(
    contract: OptionContract,
    variant: Union[ModelVariant, str] = ModelVariant.GENERALIZED,
) -> float:
    """
    Closed-form price of a European option under a Black-Scholes variant.

    Args:
        contract: Option and market inputs
        variant: Model to price under (default: GENERALIZED)

    Returns:
        Finite option price

    Raises:
        InvalidOptionKind: Kind is not call or put
        InvalidModelVariant: Unknown variant or missing required field
        NonPositivePrice: Spot/forward or strike is not positive
        NonPositiveMaturity: Maturity is not positive
        NonPositiveVolatility: Volatility is not positive
        PricingError: Negative dividend yield, or a non-finite rate
    """
    kind = OptionKind.parse(contract.kind)
    variant = ModelVariant.parse(variant)
    terms = validated_terms(contract, variant)

    if terms.shape is FormulaShape.FORWARD:
        value = black76(
            kind,
            terms.reference_price,
            contract.strike,
            contract.maturity,
            terms.discount_rate,
            contract.volatility,
        )
    else:
        value = generalized_black_scholes(
            kind,
            terms.reference_price,
            contract.strike,
            contract.maturity,
            terms.discount_rate,
            terms.cost_of_carry,
            contract.volatility,
        )

    if not math.isfinite(value):
        raise PricingError(f"{variant.name} price is not finite for {contract!r}")

    logger.debug(
        "%s %s priced at %.10f (b=%g, r=%g)",
        variant.name,
        kind.value,
        value,
        terms.cost_of_carry,
        terms.discount_rate,
    )
    return value


def applicable_variants(contract: OptionContract) -> Tuple[ModelVariant, ...]:
    """Variants whose required fields are all present on the contract."""
    found = []
    for variant in ModelVariant:
        try:
            carry_terms(contract, variant)
        except InvalidModelVariant:
            continue
        found.append(variant)
    return tuple(found)


def price_all(
    contract: OptionContract,
    variants: Optional[Iterable[Union[ModelVariant, str]]] = None,
) -> Dict[ModelVariant, float]:
    """
    Price one contract under several variants.

    With no variants given, every variant the contract has inputs for is
    priced. Explicitly requested variants propagate their errors.
    """
    if variants is None:
        selected = applicable_variants(contract)
    else:
        selected = [ModelVariant.parse(v) for v in variants]
    return {variant: price(contract, variant) for variant in selected}


def intrinsic_forward_value(
    contract: OptionContract,
    variant: Union[ModelVariant, str] = ModelVariant.GENERALIZED,
) -> float:
    """
    Zero-volatility limit of the closed-form price.

    For a call this is max(S·exp((b-r)T) - X·exp(-rT), 0); the put mirrors it.
    """
    terms = carry_terms(contract, variant)
    t = contract.maturity
    carried = terms.reference_price * np.exp(
        (terms.cost_of_carry - terms.discount_rate) * t
    )
    discounted_strike = contract.strike * np.exp(-terms.discount_rate * t)
    if OptionKind.parse(contract.kind) is OptionKind.CALL:
        return float(max(carried - discounted_strike, 0.0))
    return float(max(discounted_strike - carried, 0.0))
