"""
Terminal-value payoffs: vanilla call/put and double digital.

[T1] Call payoff: max(S - K, 0)
[T1] Put payoff: max(K - S, 0)
[T1] Double digital: fixed payout if L < S < U, else 0
"""

import math
from dataclasses import dataclass

import numpy as np

from exotic_pricing.errors import InvalidParameter
from exotic_pricing.options.payoffs.base import (
    OptionType,
    Payoff,
    intrinsic_value,
    validate_strike,
)


@dataclass(frozen=True)
class CallPayoff(Payoff):
    """
    European call on the terminal spot.

    Attributes
    ----------
    strike : float
        Strike price
    """

    strike: float

    def __post_init__(self) -> None:
        validate_strike(self.strike)

    def evaluate(self, path: np.ndarray) -> float:
        return intrinsic_value(float(path[-1]), self.strike, OptionType.CALL)


@dataclass(frozen=True)
class PutPayoff(Payoff):
    """
    European put on the terminal spot.

    Attributes
    ----------
    strike : float
        Strike price
    """

    strike: float

    def __post_init__(self) -> None:
        validate_strike(self.strike)

    def evaluate(self, path: np.ndarray) -> float:
        return intrinsic_value(float(path[-1]), self.strike, OptionType.PUT)


@dataclass(frozen=True)
class DoubleDigitalPayoff(Payoff):
    """
    Double digital (range binary) on the terminal spot.

    Pays ``payout`` when the terminal spot lies strictly inside
    ``(lower, upper)``. Both barriers are excluded: a spot exactly at
    ``lower`` or ``upper`` pays zero.

    Attributes
    ----------
    lower : float
        Lower barrier
    upper : float
        Upper barrier
    payout : float, default 1.0
        Fixed cash amount paid inside the range
    """

    lower: float
    upper: float
    payout: float = 1.0

    def __post_init__(self) -> None:
        if not math.isfinite(self.lower) or self.lower < 0:
            raise InvalidParameter(f"CRITICAL: lower barrier must be >= 0, got {self.lower}")
        if not math.isfinite(self.upper) or self.upper <= self.lower:
            raise InvalidParameter(
                f"CRITICAL: upper barrier must exceed lower barrier, "
                f"got lower={self.lower}, upper={self.upper}"
            )
        if not math.isfinite(self.payout) or self.payout < 0:
            raise InvalidParameter(f"CRITICAL: payout must be >= 0, got {self.payout}")

    def evaluate(self, path: np.ndarray) -> float:
        spot = float(path[-1])
        if self.lower < spot < self.upper:
            return self.payout
        return 0.0
