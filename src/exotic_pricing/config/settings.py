"""
Frozen configuration settings for Monte Carlo pricing.

All configuration is immutable (frozen dataclasses) to ensure reproducibility.
Environment variables are read once, when the module is imported.
"""

import os
from dataclasses import dataclass, field

SUPPORTED_GENERATORS: tuple[str, ...] = ("park_miller", "pcg64")


def _resolve_workers() -> int:
    """
    Resolve worker count with environment variable override.

    Priority:
    1. EXOTIC_PRICING_WORKERS environment variable (if set)
    2. Default: 1 (sequential reference semantics)

    Returns
    -------
    int
        Number of worker threads for the engine
    """
    env_value = os.environ.get("EXOTIC_PRICING_WORKERS")
    if env_value:
        workers = int(env_value)
        if workers < 1:
            raise ValueError(f"CRITICAL: EXOTIC_PRICING_WORKERS must be >= 1, got {workers}")
        return workers
    return 1


def _resolve_generator() -> str:
    """Resolve generator name from EXOTIC_PRICING_GENERATOR, default park_miller."""
    name = os.environ.get("EXOTIC_PRICING_GENERATOR", "park_miller").strip().lower()
    if name not in SUPPORTED_GENERATORS:
        raise ValueError(
            f"CRITICAL: EXOTIC_PRICING_GENERATOR must be one of {SUPPORTED_GENERATORS}, got {name!r}"
        )
    return name


# =============================================================================
# Simulation Configuration
# =============================================================================

@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable Monte Carlo configuration.

    Attributes
    ----------
    default_paths : int
        Path count used by convenience wrappers
    default_seed : int
        Seed used when the caller does not supply one
    default_steps : int
        Monitoring dates for path-dependent contracts
    generator : str
        Random generator family ("park_miller" or "pcg64")
    antithetic : bool
        Whether engines wrap their source in the antithetic decorator
    snapshot_ratio : int
        Geometric ratio of the convergence table schedule (1, 2, 4, ...)
    n_workers : int
        Worker threads; 1 means sequential iteration
    confidence_z : float
        Normal quantile for the reported confidence interval
    """

    default_paths: int = 100_000
    default_seed: int = 42
    default_steps: int = 12
    generator: str = field(default_factory=_resolve_generator)
    antithetic: bool = False
    snapshot_ratio: int = 2
    n_workers: int = field(default_factory=_resolve_workers)
    confidence_z: float = 1.96

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.default_paths < 1:
            raise ValueError(f"CRITICAL: default_paths must be >= 1, got {self.default_paths}")
        if self.default_steps < 1:
            raise ValueError(f"CRITICAL: default_steps must be >= 1, got {self.default_steps}")
        if self.generator not in SUPPORTED_GENERATORS:
            raise ValueError(
                f"CRITICAL: generator must be one of {SUPPORTED_GENERATORS}, got {self.generator!r}"
            )
        if self.snapshot_ratio < 2:
            raise ValueError(f"CRITICAL: snapshot_ratio must be >= 2, got {self.snapshot_ratio}")
        if self.n_workers < 1:
            raise ValueError(f"CRITICAL: n_workers must be >= 1, got {self.n_workers}")
        if self.confidence_z <= 0:
            raise ValueError(f"CRITICAL: confidence_z must be > 0, got {self.confidence_z}")


# =============================================================================
# Master Configuration
# =============================================================================

@dataclass(frozen=True)
class Settings:
    """
    Master frozen configuration.

    Usage
    -----
    >>> from exotic_pricing.config.settings import SETTINGS
    >>> SETTINGS.simulation.default_seed
    42
    """

    simulation: SimulationConfig = field(default_factory=SimulationConfig)


# Singleton instance - import this
SETTINGS = Settings()
