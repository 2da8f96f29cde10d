"""
Terminal payoffs of European options.

The estimator only needs S(T), so payoffs take an array of terminal
prices (or full paths, in which case the last column is used).
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union

import numpy as np

from .contracts import OptionKind
from .errors import EstimationError


def _terminal(prices: np.ndarray) -> np.ndarray:
    prices = np.asarray(prices, dtype=float)
    return prices if prices.ndim == 1 else prices[:, -1]


class Payoff(ABC):
    """Payoff of a European option as a function of S(T)."""

    @abstractmethod
    def evaluate(self, prices: np.ndarray) -> np.ndarray:
        """
        Evaluate the payoff.

        Args:
            prices: Terminal prices with shape (n_paths,), or full paths
                    with shape (n_paths, n_steps + 1)

        Returns:
            Array of payoff values with shape (n_paths,)
        """


@dataclass(frozen=True)
class EuropeanCallPayoff(Payoff):
    """European call payoff: max(S(T) - K, 0)"""

    strike: float

    def __post_init__(self):
        if not self.strike > 0 or not math.isfinite(self.strike):
            raise EstimationError(f"Strike must be positive and finite, got {self.strike!r}")

    def evaluate(self, prices: np.ndarray) -> np.ndarray:
        return np.maximum(_terminal(prices) - self.strike, 0.0)


@dataclass(frozen=True)
class EuropeanPutPayoff(Payoff):
    """European put payoff: max(K - S(T), 0)"""

    strike: float

    def __post_init__(self):
        if not self.strike > 0 or not math.isfinite(self.strike):
            raise EstimationError(f"Strike must be positive and finite, got {self.strike!r}")

    def evaluate(self, prices: np.ndarray) -> np.ndarray:
        return np.maximum(self.strike - _terminal(prices), 0.0)


def payoff_for(kind: Union[OptionKind, str], strike: float) -> Payoff:
    """Payoff matching an option kind."""
    if OptionKind.parse(kind) is OptionKind.CALL:
        return EuropeanCallPayoff(strike)
    return EuropeanPutPayoff(strike)
