"""Configuration and tolerances."""

from exotic_pricing.config.settings import SETTINGS, Settings, SimulationConfig
from exotic_pricing.config.tolerances import get_tolerance, mc_tolerance

__all__ = [
    "SETTINGS",
    "Settings",
    "SimulationConfig",
    "get_tolerance",
    "mc_tolerance",
]
