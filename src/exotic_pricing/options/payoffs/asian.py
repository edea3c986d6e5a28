"""
Average-price (Asian) payoffs.

The average is taken over the monitoring dates t_1..t_N produced by the path
generator; the initial spot is not a fixing.

[T1] Arithmetic Asian call: max(mean(S_i) - K, 0)
[T1] Geometric Asian call:  max(exp(mean(log S_i)) - K, 0)

See: Glasserman (2003) Section 4.5 for the geometric control variate
"""

from dataclasses import dataclass
from typing import ClassVar

import numpy as np

from exotic_pricing.options.payoffs.base import (
    OptionType,
    Payoff,
    intrinsic_value,
    validate_strike,
)


@dataclass(frozen=True)
class ArithmeticAsianPayoff(Payoff):
    """
    Arithmetic average-price option.

    Attributes
    ----------
    strike : float
        Strike applied to the path average
    option_type : OptionType, default CALL
        Call or put on the average
    """

    strike: float
    option_type: OptionType = OptionType.CALL

    path_dependent: ClassVar[bool] = True

    def __post_init__(self) -> None:
        validate_strike(self.strike)

    def evaluate(self, path: np.ndarray) -> float:
        average = float(np.mean(path))
        return intrinsic_value(average, self.strike, self.option_type)


@dataclass(frozen=True)
class GeometricAsianPayoff(Payoff):
    """
    Geometric average-price option.

    Has a closed form under GBM (see ``geometric_asian_price``), which makes
    it a convenient oracle for the path-dependent machinery.

    Attributes
    ----------
    strike : float
        Strike applied to the geometric average
    option_type : OptionType, default CALL
        Call or put on the average
    """

    strike: float
    option_type: OptionType = OptionType.CALL

    path_dependent: ClassVar[bool] = True

    def __post_init__(self) -> None:
        validate_strike(self.strike)

    def evaluate(self, path: np.ndarray) -> float:
        average = float(np.exp(np.mean(np.log(path))))
        return intrinsic_value(average, self.strike, self.option_type)
