"""
Payoff registry - maps contract names to payoff instances.

The registry is an explicit object handed to whatever assembles payoffs.
There is no module-level instance: ``default_registry()`` builds a fresh
one each time, so its lifetime is whatever the caller makes it.
"""

from typing import Any, Callable, Mapping, Protocol

from exotic_pricing.errors import InvalidParameter
from exotic_pricing.options.payoffs.asian import ArithmeticAsianPayoff, GeometricAsianPayoff
from exotic_pricing.options.payoffs.base import OptionType, Payoff
from exotic_pricing.options.payoffs.vanilla import CallPayoff, DoubleDigitalPayoff, PutPayoff

PayoffBuilder = Callable[[Mapping[str, Any]], Payoff]


class PayoffFactory(Protocol):
    """Anything that can turn a contract name and parameters into a Payoff."""

    def create(self, name: str, parameters: Mapping[str, Any]) -> Payoff:
        ...


def _require(parameters: Mapping[str, Any], key: str, name: str) -> Any:
    if key not in parameters:
        raise InvalidParameter(f"CRITICAL: payoff '{name}' requires parameter '{key}'")
    return parameters[key]


def _option_type(parameters: Mapping[str, Any]) -> OptionType:
    value = parameters.get("option_type", OptionType.CALL)
    if isinstance(value, OptionType):
        return value
    try:
        return OptionType(str(value).lower())
    except ValueError as e:
        raise InvalidParameter(f"CRITICAL: option_type must be 'call' or 'put', got {value!r}") from e


def _build_call(parameters: Mapping[str, Any]) -> Payoff:
    return CallPayoff(strike=float(_require(parameters, "strike", "call")))


def _build_put(parameters: Mapping[str, Any]) -> Payoff:
    return PutPayoff(strike=float(_require(parameters, "strike", "put")))


def _build_double_digital(parameters: Mapping[str, Any]) -> Payoff:
    return DoubleDigitalPayoff(
        lower=float(_require(parameters, "lower", "double_digital")),
        upper=float(_require(parameters, "upper", "double_digital")),
        payout=float(parameters.get("payout", 1.0)),
    )


def _build_arithmetic_asian(parameters: Mapping[str, Any]) -> Payoff:
    return ArithmeticAsianPayoff(
        strike=float(_require(parameters, "strike", "asian_arithmetic")),
        option_type=_option_type(parameters),
    )


def _build_geometric_asian(parameters: Mapping[str, Any]) -> Payoff:
    return GeometricAsianPayoff(
        strike=float(_require(parameters, "strike", "asian_geometric")),
        option_type=_option_type(parameters),
    )


class PayoffRegistry:
    """
    Name -> builder registry implementing ``PayoffFactory``.

    Names are case-insensitive.

    Examples
    --------
    >>> registry = default_registry()
    >>> registry.create("call", {"strike": 100.0})
    CallPayoff(strike=100.0)
    """

    def __init__(self) -> None:
        self._builders: dict[str, PayoffBuilder] = {}

    def register(self, name: str, builder: PayoffBuilder, replace: bool = False) -> None:
        """
        Register a builder under ``name``.

        Raises
        ------
        ValueError
            If the name is already taken and ``replace`` is False
        """
        key = name.strip().lower()
        if not key:
            raise ValueError("CRITICAL: payoff name cannot be empty")
        if key in self._builders and not replace:
            raise ValueError(f"CRITICAL: payoff '{key}' is already registered")
        self._builders[key] = builder

    def create(self, name: str, parameters: Mapping[str, Any]) -> Payoff:
        """
        Build a payoff by name.

        Raises
        ------
        KeyError
            If no builder is registered under ``name``
        InvalidParameter
            If a required parameter is missing or out of range
        """
        key = name.strip().lower()
        if key not in self._builders:
            available = ", ".join(self.names)
            raise KeyError(f"Unknown payoff '{name}'. Available: {available}")
        return self._builders[key](parameters)

    @property
    def names(self) -> list[str]:
        """Registered names, sorted."""
        return sorted(self._builders)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._builders

    def __len__(self) -> int:
        return len(self._builders)


def default_registry() -> PayoffRegistry:
    """Build a new registry holding the built-in contracts."""
    registry = PayoffRegistry()
    registry.register("call", _build_call)
    registry.register("put", _build_put)
    registry.register("double_digital", _build_double_digital)
    registry.register("asian_arithmetic", _build_arithmetic_asian)
    registry.register("asian_geometric", _build_geometric_asian)
    return registry
