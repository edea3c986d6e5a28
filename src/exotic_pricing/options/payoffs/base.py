"""
Base classes for option payoffs.

Every contract is a flat frozen dataclass exposing exactly two capabilities:
``evaluate`` (path -> cash amount) and ``duplicate`` (independent copy).
Payoffs hold no simulation state, so evaluating one is deterministic.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import replace
from enum import Enum
from typing import ClassVar

import numpy as np

from exotic_pricing.errors import InvalidParameter


class OptionType(Enum):
    """Option type enumeration."""

    CALL = "call"
    PUT = "put"


class Payoff(ABC):
    """
    Abstract base class for option payoffs.

    Subclasses are frozen dataclasses. ``path_dependent`` tells the path
    generator whether the full monitoring grid is needed or whether a single
    terminal draw suffices.

    The ``path`` handed to ``evaluate`` is a 1-D array of asset levels at the
    monitoring dates; terminal-only payoffs read its last element.
    """

    path_dependent: ClassVar[bool] = False

    @abstractmethod
    def evaluate(self, path: np.ndarray) -> float:
        """
        Calculate the undiscounted cash amount for one simulated path.

        Parameters
        ----------
        path : np.ndarray
            Asset levels at the monitoring dates (length 1 for terminal-only)

        Returns
        -------
        float
            Payoff amount
        """
        pass

    def duplicate(self) -> "Payoff":
        """Return an independently owned copy of this payoff."""
        return replace(self)  # type: ignore[type-var]

    def evaluate_terminal(self, spot: float) -> float:
        """Evaluate against a bare terminal spot."""
        return self.evaluate(np.array([spot], dtype=float))


def validate_strike(strike: float) -> None:
    """Strikes must be finite and strictly positive."""
    if not math.isfinite(strike) or strike <= 0:
        raise InvalidParameter(f"CRITICAL: strike must be > 0, got {strike}")


def intrinsic_value(spot: float, strike: float, option_type: OptionType) -> float:
    """
    Intrinsic value of a vanilla option.

    [T1] Call: max(S - K, 0)
    [T1] Put:  max(K - S, 0)
    """
    if option_type == OptionType.CALL:
        return max(spot - strike, 0.0)
    return max(strike - spot, 0.0)
