"""
Monte Carlo estimation of European option prices.

Prices are estimated as the discounted mean payoff over simulated
terminal prices:

    price ≈ exp(-rT) · mean(payoff(S_T))

The discount is always applied exactly once, here. The simulator does
not discount, so the caller is responsible for simulating under a
risk-neutral drift (the model's cost of carry b). risk_neutral_config()
builds such a configuration from a contract.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from .black_scholes import price as closed_form_price
from .black_scholes import validated_terms
from .config import get_settings
from .contracts import ModelVariant, OptionContract
from .errors import EstimationError
from .gbm import CancellationToken, Seed, SimulationConfig, simulate_paths
from .payoffs import EuropeanCallPayoff, Payoff, payoff_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonteCarloResult:
    """Result of Monte Carlo pricing."""

    price: float  # Estimated option price
    std_error: float  # Standard error of the estimate
    n_paths: int  # Number of simulation paths used
    confidence_interval_95: Tuple[float, float]  # 95% confidence interval

    def __str__(self) -> str:
        return (
            f"Price: {self.price:.6f} "
            f"(SE: {self.std_error:.6f}, "
            f"95% CI: [{self.confidence_interval_95[0]:.6f}, "
            f"{self.confidence_interval_95[1]:.6f}])"
        )


def _check_inputs(
    terminal_prices: Union[Sequence[float], np.ndarray],
    discount_rate: float,
    maturity: float,
) -> np.ndarray:
    prices = np.asarray(terminal_prices, dtype=float)
    if prices.ndim != 1:
        raise EstimationError(
            f"Terminal prices must be one-dimensional, got shape {prices.shape}"
        )
    if prices.size == 0:
        raise EstimationError("Cannot estimate a price from zero paths")
    if not maturity > 0 or not math.isfinite(maturity):
        raise EstimationError(f"Maturity must be positive, got {maturity!r}")
    if not math.isfinite(discount_rate):
        raise EstimationError(f"Discount rate must be finite, got {discount_rate!r}")
    return prices


def estimate_call_price(
    terminal_prices: Union[Sequence[float], np.ndarray],
    strike: float,
    discount_rate: float,
    maturity: float,
) -> float:
    """
    Discounted mean call payoff: exp(-rT) · mean(max(S_T - K, 0)).

    Args:
        terminal_prices: Simulated S(T), one per path
        strike: Strike price K
        discount_rate: Rate r used for discounting
        maturity: Time to maturity T (in years)

    Returns:
        Estimated call price
    """
    prices = _check_inputs(terminal_prices, discount_rate, maturity)
    payoffs = EuropeanCallPayoff(strike).evaluate(prices)
    return float(np.exp(-discount_rate * maturity) * payoffs.mean())


def estimate_price(
    terminal_prices: Union[Sequence[float], np.ndarray],
    payoff: Payoff,
    discount_rate: float,
    maturity: float,
) -> MonteCarloResult:
    """
    Discounted mean payoff with its standard error and 95% interval.

    The standard error is std(discounted payoffs) / sqrt(n). A single
    path carries no spread information, so its standard error is inf.
    """
    prices = _check_inputs(terminal_prices, discount_rate, maturity)
    n_paths = prices.size

    discounted_payoffs = np.exp(-discount_rate * maturity) * payoff.evaluate(prices)
    price = discounted_payoffs.mean()
    if n_paths > 1:
        std_error = np.std(discounted_payoffs, ddof=1) / np.sqrt(n_paths)
    else:
        std_error = np.inf

    # 95% confidence interval (1.96 standard errors)
    ci_lower = price - 1.96 * std_error
    ci_upper = price + 1.96 * std_error

    return MonteCarloResult(
        price=float(price),
        std_error=float(std_error),
        n_paths=n_paths,
        confidence_interval_95=(float(ci_lower), float(ci_upper)),
    )


def risk_neutral_config(
    contract: OptionContract,
    variant: Union[ModelVariant, str] = ModelVariant.GENERALIZED,
    paths: Optional[int] = None,
    steps: Optional[int] = None,
    seed: Seed = None,
    **kwargs,
) -> SimulationConfig:
    """
    Simulation parameters matching a contract under a model variant.

    The drift is the variant's cost of carry b, the initial price is its
    reference price (spot or forward) and the discount rate is the rate
    the closed form discounts with (0 for ASAY).

    Extra keyword arguments (batch_size, workers) go to SimulationConfig.
    """
    terms = validated_terms(contract, variant)
    settings = get_settings()
    return SimulationConfig(
        paths=settings.mc_paths if paths is None else paths,
        steps=settings.mc_steps if steps is None else steps,
        spot=terms.reference_price,
        risk_free_rate=terms.discount_rate,
        drift=terms.cost_of_carry,
        volatility=contract.volatility,
        maturity=contract.maturity,
        seed=seed,
        **kwargs,
    )


@dataclass(frozen=True)
class Comparison:
    """Closed-form price next to a Monte Carlo estimate of it."""

    closed_form: float
    estimate: MonteCarloResult

    @property
    def abs_error(self) -> float:
        return abs(self.estimate.price - self.closed_form)

    @property
    def standard_errors(self) -> float:
        """Distance between the two prices in units of the standard error."""
        if self.estimate.std_error == 0:
            return 0.0 if self.abs_error == 0 else np.inf
        return self.abs_error / self.estimate.std_error

    def within(self, n_std_errors: float = 3.0) -> bool:
        return self.standard_errors <= n_std_errors

    def __str__(self) -> str:
        return (
            f"Closed form: {self.closed_form:.6f} | Monte Carlo: {self.estimate} | "
            f"|diff| = {self.abs_error:.6f} ({self.standard_errors:.2f} SE)"
        )


class MonteCarloEngine:
    """
    Monte Carlo engine for European options in the Black-Scholes family.

    Prices a contract by:
    1. Simulating terminal prices under the variant's risk-neutral drift
    2. Evaluating the call or put payoff on each path
    3. Discounting once and averaging

    Defaults not given here come from the BSMODELS_MC_* settings.
    """

    def __init__(
        self,
        paths: Optional[int] = None,
        steps: Optional[int] = None,
        seed: Seed = None,
        batch_size: Optional[int] = None,
        workers: Optional[int] = None,
    ):
        settings = get_settings()
        self.paths = settings.mc_paths if paths is None else paths
        self.steps = settings.mc_steps if steps is None else steps
        self.seed = seed
        self.batch_size = settings.mc_batch_size if batch_size is None else batch_size
        self.workers = settings.mc_workers if workers is None else workers

    def config_for(
        self,
        contract: OptionContract,
        variant: Union[ModelVariant, str] = ModelVariant.GENERALIZED,
        paths: Optional[int] = None,
    ) -> SimulationConfig:
        return risk_neutral_config(
            contract,
            variant,
            paths=self.paths if paths is None else paths,
            steps=self.steps,
            seed=self.seed,
            batch_size=self.batch_size,
            workers=self.workers,
        )

    def price(
        self,
        contract: OptionContract,
        variant: Union[ModelVariant, str] = ModelVariant.GENERALIZED,
        paths: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> MonteCarloResult:
        """
        Estimate the price of a contract by simulation.

        Args:
            contract: Option and market inputs
            variant: Model whose drift and discounting to simulate
            paths: Number of paths (overrides default)
            cancel_token: Optional token to abort between batches

        Returns:
            MonteCarloResult containing price, standard error, and confidence interval
        """
        config = self.config_for(contract, variant, paths)
        terminal_prices = simulate_paths(config, cancel_token)
        result = estimate_price(
            terminal_prices,
            payoff_for(contract.kind, contract.strike),
            config.risk_free_rate,
            config.maturity,
        )
        logger.info(
            "%s %s Monte Carlo estimate over %d paths: %s",
            ModelVariant.parse(variant).name,
            contract.kind.value,
            config.paths,
            result,
        )
        return result

    def compare(
        self,
        contract: OptionContract,
        variant: Union[ModelVariant, str] = ModelVariant.GENERALIZED,
        paths: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Comparison:
        """Price a contract both in closed form and by simulation."""
        exact = closed_form_price(contract, variant)
        estimate = self.price(contract, variant, paths, cancel_token)
        return Comparison(closed_form=exact, estimate=estimate)
