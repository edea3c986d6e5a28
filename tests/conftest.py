"""
Centralized pytest fixtures for the exotic-pricing test suite.

Fixture Categories:
1. Market Parameters - Standard model parameters for option pricing
2. Engines - Sequential and antithetic engines
3. Test Payoffs - Instrumented payoffs for cancellation and fault tests
"""

import math
import threading
import time
from dataclasses import dataclass
from types import SimpleNamespace

import numpy as np
import pytest

from exotic_pricing.options.payoffs.base import Payoff
from exotic_pricing.options.simulation.engine import CancellationToken, ExoticEngine
from exotic_pricing.options.simulation.paths import ModelParameters


# =============================================================================
# TOLERANCE TIERS
# =============================================================================

@dataclass(frozen=True)
class ToleranceTiers:
    """Tiered tolerance framework for different test types."""

    # Anti-pattern tests: Very tight (fundamental violations)
    anti_pattern: float = 1e-10

    # Closed-form values quoted to 4 decimals
    quoted: float = 1e-4

    # Monte Carlo vs analytical, in standard errors
    mc_standard_errors: float = 3.0


TOLERANCES = ToleranceTiers()


@pytest.fixture(scope="session")
def tolerances() -> ToleranceTiers:
    """Provide tiered tolerance settings for all tests."""
    return TOLERANCES


# =============================================================================
# MARKET PARAMETERS
# =============================================================================

@pytest.fixture
def standard_params() -> ModelParameters:
    """Spot=100, r=5%, σ=20%, T=1, terminal-only."""
    return ModelParameters(spot=100.0, rate=0.05, volatility=0.20, expiry=1.0, steps=1)


@pytest.fixture
def monthly_params() -> ModelParameters:
    """Same market, 12 monthly monitoring dates."""
    return ModelParameters(spot=100.0, rate=0.05, volatility=0.20, expiry=1.0, steps=12)


# =============================================================================
# ENGINES
# =============================================================================

@pytest.fixture
def engine() -> ExoticEngine:
    """Sequential Park-Miller engine without variance reduction."""
    return ExoticEngine(generator="park_miller", antithetic=False, n_workers=1)


@pytest.fixture
def antithetic_engine() -> ExoticEngine:
    """Sequential Park-Miller engine with antithetic variates."""
    return ExoticEngine(generator="park_miller", antithetic=True, n_workers=1)


# =============================================================================
# INSTRUMENTED PAYOFFS
# =============================================================================

class CountingPayoff(Payoff):
    """
    Terminal payoff (the terminal spot itself) that counts evaluations.

    Shares its counter with its duplicates so one test can see every
    evaluation made by every worker.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.evaluations = 0
        self.duplicates = 0

    def _tick(self) -> int:
        with self._lock:
            self.evaluations += 1
            return self.evaluations

    def evaluate(self, path: np.ndarray) -> float:
        self._tick()
        return float(path[-1])

    def duplicate(self) -> "CountingPayoff":
        self.duplicates += 1
        return self


class CancellingPayoff(CountingPayoff):
    """Cancels ``token`` while evaluating the ``after``-th path."""

    def __init__(self, token: CancellationToken, after: int) -> None:
        super().__init__()
        self.token = token
        self.after = after

    def evaluate(self, path: np.ndarray) -> float:
        if self._tick() == self.after:
            self.token.cancel()
        return float(path[-1])


class FaultingPayoff(CountingPayoff):
    """Returns NaN on the ``at``-th evaluation."""

    def __init__(self, at: int) -> None:
        super().__init__()
        self.at = at

    def evaluate(self, path: np.ndarray) -> float:
        if self._tick() == self.at:
            return math.nan
        return float(path[-1])


class SleepingPayoff(CountingPayoff):
    """Sleeps a little on every evaluation, for time-budget tests."""

    def __init__(self, seconds: float) -> None:
        super().__init__()
        self.seconds = seconds

    def evaluate(self, path: np.ndarray) -> float:
        self._tick()
        time.sleep(self.seconds)
        return float(path[-1])


@pytest.fixture
def payoff_doubles() -> SimpleNamespace:
    """Instrumented payoff classes, constructed by the test that needs them."""
    return SimpleNamespace(
        Counting=CountingPayoff,
        Cancelling=CancellingPayoff,
        Faulting=FaultingPayoff,
        Sleeping=SleepingPayoff,
    )
