"""
Exception types raised by the pricing engine and the path simulator.

Every precondition failure is reported as a typed exception. Pricing and
configuration errors also derive from ValueError, so code that already
guards parameter construction with ``except ValueError`` keeps working.
"""

from typing import Any, Optional


class BSModelsError(Exception):
    """Base class for all errors raised by this package."""


class PricingError(BSModelsError, ValueError):
    """
    A closed-form price could not be computed from the given contract.

    Attributes:
        field: Name of the offending contract field, if any
        value: The rejected value
    """

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class InvalidOptionKind(PricingError):
    """Option kind is neither call nor put."""


class InvalidModelVariant(PricingError):
    """Unknown variant, or a variant missing a field it requires."""


class NonPositiveVolatility(PricingError):
    """Volatility must be strictly positive."""


class NonPositiveMaturity(PricingError):
    """Time to expiry must be strictly positive."""


class NonPositivePrice(PricingError):
    """Spot, forward or strike is not strictly positive."""


class SimulationError(BSModelsError):
    """Base class for path simulation failures."""


class InvalidSimulationConfig(SimulationError, ValueError):
    """Simulation parameters are out of range."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class SimulationCancelled(SimulationError):
    """A simulation was aborted through its cancellation token."""

    def __init__(self, completed_paths: int, total_paths: int):
        super().__init__(
            f"Simulation cancelled after {completed_paths} of {total_paths} paths"
        )
        self.completed_paths = completed_paths
        self.total_paths = total_paths


class EstimationError(BSModelsError, ValueError):
    """Monte Carlo estimate requested from unusable inputs."""
