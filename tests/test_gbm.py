"""Unit tests for the GBM simulation engine."""

import numpy as np
import pytest

from bsmodels.errors import InvalidSimulationConfig, SimulationCancelled
from bsmodels.gbm import (
    CancellationToken,
    GBMSimulator,
    SimulationConfig,
    simulate_full_paths,
    simulate_paths,
    time_grid,
)


def make_config(**overrides):
    fields = dict(paths=10_000, steps=12, spot=100.0, risk_free_rate=0.05, drift=0.05,
                  volatility=0.2, maturity=1.0, seed=42, batch_size=2_500, workers=1)
    fields.update(overrides)
    return SimulationConfig(**fields)


class CancelAfter(CancellationToken):
    """Token that reports cancellation after a number of checks."""

    def __init__(self, checks):
        super().__init__()
        self.remaining = checks

    @property
    def cancelled(self):
        if self.remaining <= 0:
            return True
        self.remaining -= 1
        return False


class TestSimulationConfig:
    """Tests for SimulationConfig validation."""

    def test_valid_parameters(self):
        config = make_config()
        assert config.paths == 10_000
        assert config.dt == pytest.approx(1.0 / 12)

    @pytest.mark.parametrize("field", ["paths", "steps", "batch_size", "workers"])
    @pytest.mark.parametrize("value", [0, -5])
    def test_non_positive_counts_raise(self, field, value):
        with pytest.raises(InvalidSimulationConfig, match=f"{field} must be positive") as excinfo:
            make_config(**{field: value})
        assert excinfo.value.field == field

    def test_non_integer_paths_raise(self):
        with pytest.raises(InvalidSimulationConfig, match="integer"):
            make_config(paths=10.5)

    def test_zero_initial_price_raises(self):
        with pytest.raises(InvalidSimulationConfig, match="Initial price must be positive"):
            make_config(spot=0.0)

    def test_zero_maturity_raises(self):
        with pytest.raises(InvalidSimulationConfig, match="Maturity must be positive"):
            make_config(maturity=0.0)

    def test_negative_volatility_raises(self):
        with pytest.raises(InvalidSimulationConfig, match="Volatility cannot be negative"):
            make_config(volatility=-0.2)

    def test_zero_volatility_allowed(self):
        assert make_config(volatility=0.0).volatility == 0.0

    def test_config_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            make_config(steps=0)

    def test_batch_sizes(self):
        assert make_config(paths=10, batch_size=4).batch_sizes() == [4, 4, 2]
        assert make_config(paths=8, batch_size=4).batch_sizes() == [4, 4]
        assert make_config(paths=3, batch_size=4).batch_sizes() == [3]


class TestSimulatePaths:
    """Tests for terminal price simulation."""

    def test_shape(self):
        assert simulate_paths(make_config(paths=1_234)).shape == (1_234,)

    def test_positive_prices(self):
        assert np.all(simulate_paths(make_config()) > 0)

    def test_reproducibility_with_seed(self):
        np.testing.assert_array_equal(
            simulate_paths(make_config(seed=123)), simulate_paths(make_config(seed=123))
        )

    def test_different_seeds_different_results(self):
        result1 = simulate_paths(make_config(seed=123))
        result2 = simulate_paths(make_config(seed=456))
        assert not np.allclose(result1, result2)

    def test_seed_sequence_advances_between_runs(self):
        config = make_config(seed=np.random.SeedSequence(7))
        assert not np.allclose(simulate_paths(config), simulate_paths(config))

    def test_worker_count_does_not_change_output(self):
        serial = simulate_paths(make_config(workers=1))
        threaded = simulate_paths(make_config(workers=4))
        np.testing.assert_array_equal(serial, threaded)

    def test_mean_matches_drift(self):
        """E[S(T)] = S(0) * exp(drift * T)."""
        config = make_config(paths=100_000, steps=4, drift=0.1, batch_size=10_000)
        result = simulate_paths(config)
        expected_mean = config.spot * np.exp(config.drift * config.maturity)
        assert abs(result.mean() - expected_mean) / expected_mean < 0.01

    def test_log_variance_independent_of_steps(self):
        """Var[log S(T)] = σ²T whatever the discretization."""
        for steps in (1, 10, 50):
            config = make_config(paths=40_000, steps=steps, volatility=0.3, batch_size=10_000)
            log_terminal = np.log(simulate_paths(config))
            assert np.var(log_terminal) == pytest.approx(0.09, rel=0.03)

    def test_paths_are_independent(self):
        """Neighbouring paths, including across batch boundaries, are uncorrelated."""
        config = make_config(paths=40_000, batch_size=1_000)
        log_returns = np.log(simulate_paths(config) / config.spot)
        corr = np.corrcoef(log_returns[:-1], log_returns[1:])[0, 1]
        assert abs(corr) < 0.03

    def test_batches_are_not_repeated(self):
        config = make_config(paths=2_000, batch_size=1_000)
        result = simulate_paths(config)
        assert not np.allclose(result[:1_000], result[1_000:])

    def test_zero_volatility_deterministic(self):
        config = make_config(paths=100, volatility=0.0)
        expected = 100 * np.exp(0.05 * 1.0)
        np.testing.assert_allclose(simulate_paths(config), expected)

    def test_longer_maturity_higher_variance(self):
        short = simulate_paths(make_config(maturity=0.25))
        long = simulate_paths(make_config(maturity=1.0))
        assert np.var(long) > np.var(short)


class TestSimulateFullPaths:
    def test_shape(self):
        paths = simulate_full_paths(make_config(paths=100, steps=252))
        assert paths.shape == (100, 253)  # n_paths x (n_steps + 1)

    def test_initial_price(self):
        paths = simulate_full_paths(make_config(paths=100))
        np.testing.assert_array_equal(paths[:, 0], 100.0)

    def test_positive_prices(self):
        assert np.all(simulate_full_paths(make_config(paths=500)) > 0)

    def test_terminal_column_matches_simulate_paths(self):
        config = make_config(paths=5_000)
        np.testing.assert_allclose(
            simulate_full_paths(config)[:, -1], simulate_paths(config), rtol=1e-12
        )

    def test_time_grid(self):
        grid = time_grid(make_config(steps=12))
        assert len(grid) == 13  # n_steps + 1
        assert grid[0] == 0.0
        assert grid[-1] == 1.0
        np.testing.assert_array_almost_equal(grid, np.linspace(0, 1, 13))


class TestCancellation:
    def test_cancelled_before_start(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(SimulationCancelled) as excinfo:
            simulate_paths(make_config(), token)
        assert excinfo.value.completed_paths == 0
        assert excinfo.value.total_paths == 10_000

    def test_cancelled_between_batches(self):
        with pytest.raises(SimulationCancelled) as excinfo:
            simulate_paths(make_config(paths=10_000, batch_size=2_500), CancelAfter(2))
        assert excinfo.value.completed_paths == 5_000

    def test_cancelled_with_workers(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(SimulationCancelled):
            simulate_paths(make_config(workers=3), token)

    def test_uncancelled_token_completes(self):
        token = CancellationToken()
        assert not token.cancelled
        assert simulate_paths(make_config(), token).shape == (10_000,)

    def test_full_paths_cancellable(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(SimulationCancelled):
            simulate_full_paths(make_config(), token)


class TestGBMSimulator:
    @pytest.fixture
    def simulator(self):
        return GBMSimulator(make_config(paths=200, steps=12))

    def test_terminal_prices(self, simulator):
        np.testing.assert_array_equal(
            simulator.terminal_prices(), simulate_paths(simulator.config)
        )

    def test_repeat_calls_identical_with_seed(self, simulator):
        np.testing.assert_array_equal(simulator.paths(), simulator.paths())

    def test_paths_and_grid_align(self, simulator):
        assert simulator.paths().shape[1] == len(simulator.time_grid())
