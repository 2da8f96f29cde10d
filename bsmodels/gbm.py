"""
Geometric Brownian Motion (GBM) path simulation.

The underlying is assumed to follow:
    dS = μS dt + σS dW

and each path is discretized on a uniform grid of `steps` intervals:
    log S(t + dt) = log S(t) + (μ - σ²/2) dt + σ √dt Z,    Z ~ N(0, 1)

Paths are generated in batches. Every batch draws a fresh block of
i.i.d. normals from its own generator, and the batch generators are
spawned from a single SeedSequence, so output for a given integer seed is
identical whatever the batch distribution across workers.

For risk-neutral pricing pass the model's cost of carry as the drift
(r for a non-dividend stock).
"""

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Union

import numpy as np

from .config import get_settings
from .errors import InvalidSimulationConfig, SimulationCancelled

logger = logging.getLogger(__name__)

Seed = Union[None, int, np.random.SeedSequence]


def _default_batch_size() -> int:
    return get_settings().mc_batch_size


def _default_workers() -> int:
    return get_settings().mc_workers


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters for a batch of GBM paths."""

    paths: int  # Number of independent paths
    steps: int  # Discretization steps per path
    spot: float  # Initial price S(0)
    risk_free_rate: float  # Rate used to discount payoffs
    drift: float  # Drift μ of the simulated process
    volatility: float  # Volatility σ (annualized)
    maturity: float  # Horizon T (in years)
    # An int seed gives identical draws on every run. A SeedSequence is
    # spawned from in place, so reusing the same config gives new draws.
    seed: Seed = None
    batch_size: int = field(default_factory=_default_batch_size)
    workers: int = field(default_factory=_default_workers)

    def __post_init__(self):
        for name in ("paths", "steps", "batch_size", "workers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise InvalidSimulationConfig(
                    f"{name} must be an integer, got {value!r}", field=name, value=value
                )
            if value <= 0:
                raise InvalidSimulationConfig(
                    f"{name} must be positive, got {value}", field=name, value=value
                )
        if not self.spot > 0 or not math.isfinite(self.spot):
            raise InvalidSimulationConfig(
                "Initial price must be positive", field="spot", value=self.spot
            )
        if not self.maturity > 0 or not math.isfinite(self.maturity):
            raise InvalidSimulationConfig(
                "Maturity must be positive", field="maturity", value=self.maturity
            )
        if not self.volatility >= 0 or not math.isfinite(self.volatility):
            raise InvalidSimulationConfig(
                "Volatility cannot be negative", field="volatility", value=self.volatility
            )
        for name in ("drift", "risk_free_rate"):
            if not math.isfinite(getattr(self, name)):
                raise InvalidSimulationConfig(
                    f"{name} must be finite", field=name, value=getattr(self, name)
                )

    @property
    def dt(self) -> float:
        return self.maturity / self.steps

    def batch_sizes(self) -> List[int]:
        """Path counts of each batch, in output order."""
        full, rest = divmod(self.paths, self.batch_size)
        return [self.batch_size] * full + ([rest] if rest else [])


class CancellationToken:
    """
    Cooperative cancellation flag shared with a running simulation.

    The simulator checks the token before starting each batch.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def _log_increments(
    config: SimulationConfig, n_paths: int, seed: np.random.SeedSequence
) -> np.ndarray:
    """Log-price increments with shape (n_paths, steps), fresh per batch."""
    rng = np.random.default_rng(seed)
    z = rng.standard_normal((n_paths, config.steps))
    sigma = config.volatility
    dt = config.dt
    return (config.drift - 0.5 * sigma**2) * dt + sigma * np.sqrt(dt) * z


def _batch_seeds(config: SimulationConfig) -> List[np.random.SeedSequence]:
    root = (
        config.seed
        if isinstance(config.seed, np.random.SeedSequence)
        else np.random.SeedSequence(config.seed)
    )
    return root.spawn(len(config.batch_sizes()))


def _run_batches(config: SimulationConfig, batch_fn, cancel_token) -> List[np.ndarray]:
    sizes = config.batch_sizes()
    seeds = _batch_seeds(config)

    def run(index: int) -> Optional[np.ndarray]:
        if cancel_token is not None and cancel_token.cancelled:
            return None
        logger.debug("Batch %d/%d: %d paths", index + 1, len(sizes), sizes[index])
        return batch_fn(sizes[index], seeds[index])

    if config.workers == 1 or len(sizes) == 1:
        results = []
        for index in range(len(sizes)):
            result = run(index)
            if result is None:
                break
            results.append(result)
    else:
        with ThreadPoolExecutor(max_workers=config.workers) as pool:
            results = list(pool.map(run, range(len(sizes))))

    if len(results) < len(sizes) or any(r is None for r in results):
        completed = sum(len(r) for r in results if r is not None)
        logger.warning(
            "Simulation cancelled after %d of %d paths", completed, config.paths
        )
        raise SimulationCancelled(completed, config.paths)
    return results


def simulate_paths(
    config: SimulationConfig, cancel_token: Optional[CancellationToken] = None
) -> np.ndarray:
    """
    Simulate terminal prices S(T) of `config.paths` independent GBM paths.

    Args:
        config: Simulation parameters
        cancel_token: Optional token checked before each batch

    Returns:
        Array of terminal prices with shape (paths,)

    Raises:
        SimulationCancelled: The token was cancelled before all batches ran
    """

    def batch(n_paths, seed):
        log_returns = _log_increments(config, n_paths, seed)
        return config.spot * np.exp(log_returns.sum(axis=1))

    results = _run_batches(config, batch, cancel_token)
    logger.debug(
        "Simulated %d paths x %d steps in %d batch(es)",
        config.paths,
        config.steps,
        len(results),
    )
    return np.concatenate(results)


def simulate_full_paths(
    config: SimulationConfig, cancel_token: Optional[CancellationToken] = None
) -> np.ndarray:
    """
    Simulate full GBM paths from time 0 to T.

    Uses the same random draws as simulate_paths() for the same config,
    so the last column matches its terminal prices.

    Returns:
        Array of prices with shape (paths, steps + 1)
        First column is S(0), last column is S(T)
    """

    def batch(n_paths, seed):
        log_returns = _log_increments(config, n_paths, seed)
        block = np.empty((n_paths, config.steps + 1))
        block[:, 0] = config.spot
        block[:, 1:] = config.spot * np.exp(np.cumsum(log_returns, axis=1))
        return block

    return np.concatenate(_run_batches(config, batch, cancel_token))


def time_grid(config: SimulationConfig) -> np.ndarray:
    """Time points of the simulation grid, shape (steps + 1,)."""
    return np.linspace(0.0, config.maturity, config.steps + 1)


class GBMSimulator:
    """
    Convenience wrapper holding one SimulationConfig.

    Each call re-runs the simulation; with an integer seed every call
    returns the same draws.
    """

    def __init__(self, config: SimulationConfig):
        self.config = config

    def terminal_prices(
        self, cancel_token: Optional[CancellationToken] = None
    ) -> np.ndarray:
        return simulate_paths(self.config, cancel_token)

    def paths(self, cancel_token: Optional[CancellationToken] = None) -> np.ndarray:
        return simulate_full_paths(self.config, cancel_token)

    def time_grid(self) -> np.ndarray:
        return time_grid(self.config)
