"""
Monte Carlo simulation for option pricing.

Provides:
- Random draw sources with antithetic variance reduction
- Lognormal path generation
- Running statistics and convergence tables
- The exotic pricing engine
"""

from exotic_pricing.options.simulation.engine import (
    CancellationToken,
    ExoticEngine,
    PricingResult,
    PricingStatus,
    price_exotic,
)
from exotic_pricing.options.simulation.paths import ModelParameters, PathGenerator
from exotic_pricing.options.simulation.rng import (
    AntitheticSource,
    NumpySource,
    ParkMiller,
    ParkMillerSource,
    RandomSource,
    create_random_source,
)
from exotic_pricing.options.simulation.statistics import (
    ConvergenceRow,
    ConvergenceTable,
    RunningStatistics,
    merge_convergence_tables,
)

__all__ = [
    # Random sources
    "RandomSource",
    "ParkMiller",
    "ParkMillerSource",
    "NumpySource",
    "AntitheticSource",
    "create_random_source",
    # Paths
    "ModelParameters",
    "PathGenerator",
    # Statistics
    "RunningStatistics",
    "ConvergenceRow",
    "ConvergenceTable",
    "merge_convergence_tables",
    # Engine
    "CancellationToken",
    "ExoticEngine",
    "PricingResult",
    "PricingStatus",
    "price_exotic",
]
