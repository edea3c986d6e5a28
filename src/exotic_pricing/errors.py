"""
Exception taxonomy for the pricing core.

- InvalidParameter: out-of-range inputs, raised before any simulation work
- SeedInvalid: degenerate seed handed to a random source
- NumericFault: non-finite value produced while simulating
- CancellationRequested: cooperative stop, not a failure

No retries are attempted anywhere. Given identical parameters and seed the
computation is deterministic, so a retry would reproduce the same fault.
"""


class InvalidParameter(ValueError):
    """Raised when a model, payoff or run parameter is out of range."""

    pass


class SeedInvalid(InvalidParameter):
    """Raised when a random source is constructed with an unusable seed."""

    pass


class NumericFault(ArithmeticError):
    """Raised when path construction or payoff evaluation yields NaN/Inf."""

    pass


class CancellationRequested(Exception):
    """Raised between iterations when a run has been asked to stop early."""

    def __init__(self, reason: str = "cancelled"):
        super().__init__(reason)
        self.reason = reason
