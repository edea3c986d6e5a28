"""
Option payoffs.

Provides:
- Terminal payoffs: call, put, double digital
- Path-dependent payoffs: arithmetic and geometric Asian
- An explicit name -> payoff registry
"""

from exotic_pricing.options.payoffs.asian import ArithmeticAsianPayoff, GeometricAsianPayoff
from exotic_pricing.options.payoffs.base import OptionType, Payoff
from exotic_pricing.options.payoffs.registry import (
    PayoffFactory,
    PayoffRegistry,
    default_registry,
)
from exotic_pricing.options.payoffs.vanilla import CallPayoff, DoubleDigitalPayoff, PutPayoff

__all__ = [
    "OptionType",
    "Payoff",
    "CallPayoff",
    "PutPayoff",
    "DoubleDigitalPayoff",
    "ArithmeticAsianPayoff",
    "GeometricAsianPayoff",
    "PayoffFactory",
    "PayoffRegistry",
    "default_registry",
]
