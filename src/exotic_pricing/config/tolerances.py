"""
Centralized tolerance framework for Monte Carlo pricing.

Tolerance Tiers:
    Tier 1 (Analytical): Machine-precision achievable, deterministic results
    Tier 2 (Stochastic): CLT-derived, path-dependent calculations

References:
    [T1] Higham (2002) "Accuracy and Stability of Numerical Algorithms"
    [T1] Glasserman (2003) Ch. 3-4 - Monte Carlo error bounds
"""

import numpy as np
from typing import Final

# =============================================================================
# Tier 1: Analytical Tolerances (Deterministic)
# =============================================================================

#: No-arbitrage bounds and exact payoff values
ANTI_PATTERN_TOLERANCE: Final[float] = 1e-10

#: Put-call parity on closed-form prices
PUT_CALL_PARITY_TOLERANCE: Final[float] = 1e-8

#: Online (Welford) vs two-pass mean/variance
#: Relative tolerance; both are O(n * eps) accurate for well-scaled data
ACCUMULATOR_TOLERANCE: Final[float] = 1e-9


# =============================================================================
# Tier 2: Stochastic Tolerances (CLT-Derived)
# =============================================================================


def mc_tolerance(n_paths: int, sigma: float = 0.20, confidence: float = 3.0) -> float:
    """
    Calculate CLT-derived Monte Carlo tolerance.

    [T1] Standard error of MC estimate is σ/√N.
    3σ gives 99.7% confidence interval.

    Parameters
    ----------
    n_paths : int
        Number of Monte Carlo paths
    sigma : float
        Estimated volatility of payoff (default 0.20 for options)
    confidence : float
        Number of standard deviations (default 3 for 99.7% CI)

    Returns
    -------
    float
        Tolerance for MC vs analytical comparison

    Examples
    --------
    >>> round(mc_tolerance(10_000), 4)
    0.006
    """
    if n_paths <= 0:
        raise ValueError(f"CRITICAL: n_paths must be > 0, got {n_paths}")
    return confidence * sigma / np.sqrt(n_paths)


#: Number of standard errors an MC estimate may sit from its closed form
MC_STANDARD_ERRORS: Final[float] = 3.0

#: MC tolerance for 10,000 paths: 3 * 0.20 / sqrt(10000) ≈ 0.006
MC_10K_TOLERANCE: Final[float] = 0.006

#: BS to MC convergence for vanilla options (relative)
BS_MC_CONVERGENCE_TOLERANCE: Final[float] = 0.01


# =============================================================================
# Tolerance Registry (For Dynamic Access)
# =============================================================================

TOLERANCE_REGISTRY: dict[str, float] = {
    "anti_pattern": ANTI_PATTERN_TOLERANCE,
    "put_call_parity": PUT_CALL_PARITY_TOLERANCE,
    "accumulator": ACCUMULATOR_TOLERANCE,
    "mc_standard_errors": MC_STANDARD_ERRORS,
    "mc_10k": MC_10K_TOLERANCE,
    "bs_mc_convergence": BS_MC_CONVERGENCE_TOLERANCE,
}


def get_tolerance(name: str) -> float:
    """
    Get tolerance by name from registry.

    Parameters
    ----------
    name : str
        Tolerance name (see TOLERANCE_REGISTRY keys)

    Returns
    -------
    float
        Tolerance value

    Raises
    ------
    KeyError
        If tolerance name not found
    """
    if name not in TOLERANCE_REGISTRY:
        available = ", ".join(sorted(TOLERANCE_REGISTRY.keys()))
        raise KeyError(f"Unknown tolerance '{name}'. Available: {available}")
    return TOLERANCE_REGISTRY[name]
