"""
Lognormal path generation.

[T1] GBM SDE: dS = (r - q)S dt + σS dW
[T1] Exact step: S(t+Δt) = S(t) * exp((r - q - σ²/2)Δt + σ√Δt * Z)

A ``PathGenerator`` is built once per pricing run. The per-step drift and
diffusion constants are derived at construction and reused for every path.

See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering", Ch. 3
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from exotic_pricing.errors import InvalidParameter, NumericFault
from exotic_pricing.options.payoffs.base import Payoff
from exotic_pricing.options.simulation.rng import RandomSource


@dataclass(frozen=True)
class ModelParameters:
    """
    One-factor lognormal model parameters.

    Rate, dividend and volatility are constant over the life of the contract.

    Attributes
    ----------
    spot : float
        Initial spot price
    rate : float
        Risk-free rate (annualized, continuously compounded)
    volatility : float
        Volatility (annualized, decimal)
    expiry : float
        Time to expiry in years
    steps : int, default 1
        Number of equally spaced monitoring dates
    dividend : float, default 0.0
        Continuous dividend yield
    """

    spot: float
    rate: float
    volatility: float
    expiry: float
    steps: int = 1
    dividend: float = 0.0

    def __post_init__(self) -> None:
        """Validate parameters."""
        for name in ("spot", "rate", "volatility", "expiry", "dividend"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise InvalidParameter(f"CRITICAL: {name} must be finite, got {value}")
        if self.spot <= 0:
            raise InvalidParameter(f"CRITICAL: spot must be > 0, got {self.spot}")
        if self.volatility < 0:
            raise InvalidParameter(f"CRITICAL: volatility must be >= 0, got {self.volatility}")
        if self.expiry <= 0:
            raise InvalidParameter(f"CRITICAL: expiry must be > 0, got {self.expiry}")
        if isinstance(self.steps, bool) or not isinstance(self.steps, (int, np.integer)):
            raise InvalidParameter(f"CRITICAL: steps must be an integer, got {self.steps!r}")
        if self.steps < 1:
            raise InvalidParameter(f"CRITICAL: steps must be >= 1, got {self.steps}")

    @property
    def drift(self) -> float:
        """Risk-neutral log drift: r - q - σ²/2."""
        return self.rate - self.dividend - 0.5 * self.volatility**2

    @property
    def forward(self) -> float:
        """Forward price: S * exp((r-q)*T)."""
        return self.spot * math.exp((self.rate - self.dividend) * self.expiry)

    @property
    def discount_factor(self) -> float:
        """Risk-neutral discount factor: exp(-rT). Overflows to inf, never raises."""
        with np.errstate(over="ignore"):
            return float(np.exp(-np.float64(self.rate) * self.expiry))


class PathGenerator:
    """
    Maps draw sequences to simulated asset paths.

    Parameters
    ----------
    params : ModelParameters
        Model parameters
    steps : int, optional
        Monitoring dates per path; defaults to ``params.steps``. One step
        gives a terminal-only path.

    Examples
    --------
    >>> params = ModelParameters(spot=100, rate=0.05, volatility=0.20, expiry=1.0, steps=4)
    >>> generator = PathGenerator(params)
    >>> generator.build(np.zeros(4)).shape
    (4,)
    """

    def __init__(self, params: ModelParameters, steps: Optional[int] = None):
        if steps is None:
            steps = params.steps
        if steps < 1:
            raise InvalidParameter(f"CRITICAL: steps must be >= 1, got {steps}")

        self.params = params
        self.steps = int(steps)

        # Per-step constants, in float64 so degenerate inputs overflow to inf
        # instead of raising; build() reports them as NumericFault.
        with np.errstate(over="ignore", invalid="ignore"):
            dt = np.float64(params.expiry) / self.steps
            vol = np.float64(params.volatility)
            self._drift = (np.float64(params.rate) - params.dividend - 0.5 * vol * vol) * dt
            self._diffusion = vol * np.sqrt(dt)
        self._dt = float(dt)
        self._spot = float(params.spot)

    @classmethod
    def for_payoff(cls, params: ModelParameters, payoff: Payoff) -> "PathGenerator":
        """Full grid for path-dependent payoffs, a single step otherwise."""
        steps = params.steps if payoff.path_dependent else 1
        return cls(params, steps)

    @property
    def dt(self) -> float:
        return self._dt

    @property
    def drift_per_step(self) -> float:
        """(r - q - σ²/2)Δt"""
        return float(self._drift)

    @property
    def diffusion_per_step(self) -> float:
        """σ√Δt"""
        return float(self._diffusion)

    @property
    def times(self) -> np.ndarray:
        """Monitoring dates t_1..t_N."""
        return np.linspace(self._dt, self.params.expiry, self.steps)

    def build(self, draws: np.ndarray) -> np.ndarray:
        """
        Build one path from one draw sequence.

        Parameters
        ----------
        draws : np.ndarray
            Standard-normal deviates, shape (steps,)

        Returns
        -------
        np.ndarray
            Asset levels at t_1..t_N, shape (steps,)

        Raises
        ------
        InvalidParameter
            If the number of draws does not match the step count
        NumericFault
            If the per-step constants, any log level or any level is NaN or
            infinite
        """
        draws = np.asarray(draws, dtype=float)
        if draws.shape != (self.steps,):
            raise InvalidParameter(
                f"CRITICAL: expected {self.steps} draws, got shape {draws.shape}"
            )

        if not (np.isfinite(self._drift) and np.isfinite(self._diffusion)):
            raise NumericFault(
                f"Non-finite per-step constants: drift={self._drift}, "
                f"diffusion={self._diffusion}"
            )

        with np.errstate(over="ignore", invalid="ignore"):
            log_levels = np.cumsum(self._drift + self._diffusion * draws)

        # exp(-inf) is a finite 0.0, so the exponent is checked before exp()
        if not np.all(np.isfinite(log_levels)):
            bad = int(np.argmin(np.isfinite(log_levels)))
            raise NumericFault(
                f"Non-finite log level {log_levels[bad]} at step {bad + 1} of {self.steps}"
            )

        with np.errstate(over="ignore"):
            path = self._spot * np.exp(log_levels)

        if not np.all(np.isfinite(path)):
            bad = int(np.argmin(np.isfinite(path)))
            raise NumericFault(
                f"Non-finite asset level {path[bad]} at step {bad + 1} of {self.steps}"
            )

        return path

    def build_from(self, source: RandomSource) -> np.ndarray:
        """Draw one sequence from ``source`` and build the path."""
        return self.build(source.generate(self.steps))
