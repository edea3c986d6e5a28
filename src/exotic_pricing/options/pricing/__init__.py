"""
Closed-form option pricing.

Provides:
- Black-Scholes call/put with put-call parity check
- Double digital
- Discrete geometric Asian
"""

from exotic_pricing.options.pricing.black_scholes import (
    black_scholes_call,
    black_scholes_price,
    black_scholes_put,
    double_digital_price,
    geometric_asian_price,
    put_call_parity_check,
)

__all__ = [
    "black_scholes_call",
    "black_scholes_put",
    "black_scholes_price",
    "double_digital_price",
    "geometric_asian_price",
    "put_call_parity_check",
]
