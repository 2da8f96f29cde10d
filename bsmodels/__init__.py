"""
Black-Scholes Family Option Pricing Library

Closed-form prices for the generalized Black-Scholes model and its named
variants (Black-Scholes, Merton, Black-76, Asay, Garman-Kohlhagen), plus
a Monte Carlo estimator using Geometric Brownian Motion (GBM) paths to
check them against.
"""

from .black_scholes import (
    CarryTerms,
    FormulaShape,
    black76,
    carry_terms,
    generalized_black_scholes,
    intrinsic_forward_value,
    price,
    price_all,
)
from .contracts import ModelVariant, OptionContract, OptionKind
from .errors import (
    BSModelsError,
    EstimationError,
    InvalidModelVariant,
    InvalidOptionKind,
    InvalidSimulationConfig,
    NonPositiveMaturity,
    NonPositivePrice,
    NonPositiveVolatility,
    PricingError,
    SimulationCancelled,
    SimulationError,
)
from .gbm import (
    CancellationToken,
    GBMSimulator,
    SimulationConfig,
    simulate_full_paths,
    simulate_paths,
)
from .payoffs import EuropeanCallPayoff, EuropeanPutPayoff, Payoff
from .pricing import (
    Comparison,
    MonteCarloEngine,
    MonteCarloResult,
    estimate_call_price,
    estimate_price,
    risk_neutral_config,
)

__all__ = [
    "OptionKind",
    "ModelVariant",
    "OptionContract",
    "CarryTerms",
    "FormulaShape",
    "price",
    "price_all",
    "carry_terms",
    "generalized_black_scholes",
    "black76",
    "intrinsic_forward_value",
    "SimulationConfig",
    "CancellationToken",
    "GBMSimulator",
    "simulate_paths",
    "simulate_full_paths",
    "Payoff",
    "EuropeanCallPayoff",
    "EuropeanPutPayoff",
    "MonteCarloResult",
    "Comparison",
    "MonteCarloEngine",
    "estimate_call_price",
    "estimate_price",
    "risk_neutral_config",
    "BSModelsError",
    "PricingError",
    "InvalidOptionKind",
    "InvalidModelVariant",
    "NonPositiveVolatility",
    "NonPositiveMaturity",
    "NonPositivePrice",
    "SimulationError",
    "InvalidSimulationConfig",
    "SimulationCancelled",
    "EstimationError",
]

__version__ = "0.1.0"
