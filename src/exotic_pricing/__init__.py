"""
exotic-pricing: Monte Carlo pricing of path-dependent options under GBM.

Quick Start
-----------
>>> from exotic_pricing import ExoticEngine, ModelParameters, ArithmeticAsianPayoff
>>> params = ModelParameters(spot=100.0, rate=0.05, volatility=0.20, expiry=1.0, steps=12)
>>> engine = ExoticEngine(antithetic=True)
>>> result = engine.price(params, ArithmeticAsianPayoff(strike=100.0), path_count=10_000, seed=42)

Version: 0.1.0
"""

__version__ = "0.1.0"

# =============================================================================
# Engine - Primary API
# =============================================================================
from exotic_pricing.options.simulation.engine import (
    CancellationToken,
    ExoticEngine,
    PricingResult,
    PricingStatus,
    price_exotic,
)
from exotic_pricing.options.simulation.paths import ModelParameters, PathGenerator

# =============================================================================
# Payoffs
# =============================================================================
from exotic_pricing.options.payoffs import (
    ArithmeticAsianPayoff,
    CallPayoff,
    DoubleDigitalPayoff,
    GeometricAsianPayoff,
    OptionType,
    Payoff,
    PayoffFactory,
    PayoffRegistry,
    PutPayoff,
    default_registry,
)

# =============================================================================
# Closed Forms
# =============================================================================
from exotic_pricing.options.pricing import (
    black_scholes_call,
    black_scholes_put,
    double_digital_price,
    geometric_asian_price,
)

# =============================================================================
# Random Sources and Statistics
# =============================================================================
from exotic_pricing.options.simulation.rng import (
    AntitheticSource,
    NumpySource,
    ParkMillerSource,
    RandomSource,
    create_random_source,
)
from exotic_pricing.options.simulation.statistics import ConvergenceTable, RunningStatistics

# =============================================================================
# Configuration and Errors
# =============================================================================
from exotic_pricing.config.settings import SETTINGS
from exotic_pricing.errors import (
    CancellationRequested,
    InvalidParameter,
    NumericFault,
    SeedInvalid,
)

__all__ = [
    # Version
    "__version__",
    # Engine
    "CancellationToken",
    "ExoticEngine",
    "PricingResult",
    "PricingStatus",
    "price_exotic",
    "ModelParameters",
    "PathGenerator",
    # Payoffs
    "Payoff",
    "OptionType",
    "CallPayoff",
    "PutPayoff",
    "DoubleDigitalPayoff",
    "ArithmeticAsianPayoff",
    "GeometricAsianPayoff",
    "PayoffFactory",
    "PayoffRegistry",
    "default_registry",
    # Closed forms
    "black_scholes_call",
    "black_scholes_put",
    "double_digital_price",
    "geometric_asian_price",
    # Random sources and statistics
    "RandomSource",
    "ParkMillerSource",
    "NumpySource",
    "AntitheticSource",
    "create_random_source",
    "RunningStatistics",
    "ConvergenceTable",
    # Config
    "SETTINGS",
    # Errors
    "InvalidParameter",
    "SeedInvalid",
    "NumericFault",
    "CancellationRequested",
]
