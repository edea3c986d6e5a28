"""
Monte Carlo engine for path-dependent options.

Wires the pieces into one simulation loop:

    RandomSource -> PathGenerator -> Payoff -> discount -> ConvergenceTable

Scheduling:
- n_workers == 1: sequential iteration (reference semantics)
- n_workers > 1: contiguous blocks of paths on a thread pool; worker i owns a
  source seeded ``seed + i`` and its own accumulator, merged after join

Cancellation is cooperative and checked between paths, never inside one.
A NumericFault aborts the whole run and yields an invalid result that keeps
the partial statistics.

[T1] Price = e^(-rT) E[payoff], standard error = s / √N

See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering"
"""

import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

import pandas as pd

from exotic_pricing.config.settings import SETTINGS, SUPPORTED_GENERATORS, Settings
from exotic_pricing.errors import CancellationRequested, InvalidParameter, NumericFault
from exotic_pricing.options.payoffs.base import Payoff
from exotic_pricing.options.payoffs.registry import PayoffFactory
from exotic_pricing.options.simulation.paths import ModelParameters, PathGenerator
from exotic_pricing.options.simulation.rng import RandomSource, create_random_source
from exotic_pricing.options.simulation.statistics import (
    ConvergenceRow,
    ConvergenceTable,
    RunningStatistics,
    merge_convergence_tables,
)

logger = logging.getLogger(__name__)


class PricingStatus(Enum):
    """How a pricing run ended."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAULTED = "faulted"


@dataclass(frozen=True)
class PricingResult:
    """
    Monte Carlo pricing result.

    Attributes
    ----------
    estimate : float
        Mean discounted payoff (NaN when no path completed)
    standard_error : float
        Standard error of the estimate
    convergence_table : tuple[ConvergenceRow, ...]
        Running (n_paths, estimate, standard_error) snapshots
    valid : bool
        False when the run faulted or no path completed
    status : PricingStatus
        COMPLETED, CANCELLED or FAULTED
    n_paths : int
        Paths that contributed to the estimate
    requested_paths : int
        Paths the caller asked for
    seed : int
        Base seed of the run
    discount_factor : float
        exp(-rT) applied to every payoff
    elapsed_sec : float
        Wall-clock duration of the simulation loop
    message : str, optional
        Cancellation reason or fault description
    confidence_z : float
        Normal quantile used for ``confidence_interval``
    """

    estimate: float
    standard_error: float
    convergence_table: tuple[ConvergenceRow, ...]
    valid: bool
    status: PricingStatus
    n_paths: int
    requested_paths: int
    seed: int
    discount_factor: float
    elapsed_sec: float = 0.0
    message: Optional[str] = None
    confidence_z: float = 1.96

    @property
    def is_partial(self) -> bool:
        """True when fewer paths than requested contributed."""
        return self.n_paths < self.requested_paths

    @property
    def confidence_interval(self) -> tuple[float, float]:
        """Confidence interval at ``confidence_z`` standard errors."""
        half_width = self.confidence_z * self.standard_error
        return (self.estimate - half_width, self.estimate + half_width)

    @property
    def relative_error(self) -> float:
        """Relative standard error (SE / estimate)."""
        if abs(self.estimate) < 1e-10:
            return float("inf")
        return self.standard_error / abs(self.estimate)

    def convergence_frame(self) -> pd.DataFrame:
        """Convergence table as a DataFrame indexed by path count."""
        frame = pd.DataFrame(
            [
                {
                    "n_paths": row.n_paths,
                    "estimate": row.estimate,
                    "standard_error": row.standard_error,
                }
                for row in self.convergence_table
            ],
            columns=["n_paths", "estimate", "standard_error"],
        )
        return frame.set_index("n_paths")

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "estimate": self.estimate,
            "standard_error": self.standard_error,
            "valid": self.valid,
            "status": self.status.value,
            "n_paths": self.n_paths,
            "requested_paths": self.requested_paths,
            "seed": self.seed,
            "elapsed_sec": self.elapsed_sec,
            "message": self.message,
        }


class CancellationToken:
    """
    Cooperative cancellation flag shared between a caller and a run.

    Safe to cancel from any thread; the engine observes it between paths.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = "cancelled"

    def cancel(self, reason: str = "cancelled") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def raise_if_requested(self) -> None:
        """Raise CancellationRequested if ``cancel`` has been called."""
        if self._event.is_set():
            raise CancellationRequested(self._reason)


class _RunControl:
    """Stop conditions checked between paths: token, deadline, fault abort."""

    def __init__(self, token: Optional[CancellationToken], deadline: Optional[float]):
        self._token = token
        self._deadline = deadline
        self._abort = threading.Event()

    def abort(self) -> None:
        self._abort.set()

    def check(self) -> None:
        if self._abort.is_set():
            raise CancellationRequested("aborted after numeric fault in another worker")
        if self._token is not None:
            self._token.raise_if_requested()
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise CancellationRequested("time budget exceeded")


@dataclass
class _BlockOutcome:
    """What one worker hands back after its block of paths."""

    worker_index: int
    table: ConvergenceTable
    stop_reason: Optional[str] = None
    fault: Optional[str] = None
    attempted: int = 0


def _partition(path_count: int, n_workers: int) -> list[int]:
    """Split ``path_count`` into ``n_workers`` contiguous block sizes."""
    base, extra = divmod(path_count, n_workers)
    return [base + (1 if i < extra else 0) for i in range(n_workers)]


class ExoticEngine:
    """
    Monte Carlo engine for exotic options under one-factor GBM.

    Parameters
    ----------
    generator : str, optional
        "park_miller" or "pcg64" (default from settings)
    antithetic : bool, optional
        Wrap each source in the antithetic decorator (default from settings)
    n_workers : int, optional
        Worker threads; 1 runs sequentially (default from settings)
    snapshot_ratio : int, optional
        Geometric ratio of the convergence schedule (default from settings)
    settings : Settings, default SETTINGS
        Configuration supplying the defaults

    Examples
    --------
    >>> from exotic_pricing.options.payoffs import CallPayoff
    >>> engine = ExoticEngine(antithetic=True)
    >>> params = ModelParameters(spot=100, rate=0.05, volatility=0.20, expiry=1.0)
    >>> result = engine.price(params, CallPayoff(strike=100), path_count=10_000, seed=42)
    >>> print(f"Price: {result.estimate:.4f} ± {result.standard_error:.4f}")
    """

    def __init__(
        self,
        generator: Optional[str] = None,
        antithetic: Optional[bool] = None,
        n_workers: Optional[int] = None,
        snapshot_ratio: Optional[int] = None,
        settings: Settings = SETTINGS,
    ):
        config = settings.simulation

        self.generator = (generator or config.generator).strip().lower()
        self.antithetic = config.antithetic if antithetic is None else bool(antithetic)
        self.n_workers = config.n_workers if n_workers is None else n_workers
        self.snapshot_ratio = config.snapshot_ratio if snapshot_ratio is None else snapshot_ratio
        self.confidence_z = config.confidence_z

        if self.generator not in SUPPORTED_GENERATORS:
            raise InvalidParameter(
                f"CRITICAL: generator must be one of {SUPPORTED_GENERATORS}, got {self.generator!r}"
            )
        if self.n_workers < 1:
            raise InvalidParameter(f"CRITICAL: n_workers must be >= 1, got {self.n_workers}")
        if self.snapshot_ratio < 2:
            raise InvalidParameter(
                f"CRITICAL: snapshot_ratio must be >= 2, got {self.snapshot_ratio}"
            )

    def price(
        self,
        params: ModelParameters,
        payoff: Payoff,
        path_count: int,
        seed: int,
        cancel_token: Optional[CancellationToken] = None,
        time_budget: Optional[float] = None,
    ) -> PricingResult:
        """
        Estimate the discounted expected payoff.

        Parameters
        ----------
        params : ModelParameters
            Model parameters (validated at construction)
        payoff : Payoff
            Contract; the engine works on its own duplicate
        path_count : int
            Number of paths to simulate
        seed : int
            Base seed; worker i uses ``seed + i``
        cancel_token : CancellationToken, optional
            Checked between paths
        time_budget : float, optional
            Seconds after which the run stops between paths

        Returns
        -------
        PricingResult
            Estimate, standard error, convergence table and status

        Raises
        ------
        InvalidParameter
            For out-of-range inputs, before any draw is generated
        SeedInvalid
            If ``seed`` (or a worker seed) is invalid for the generator
        """
        self._validate(params, payoff, path_count, time_budget)

        contract = payoff.duplicate()
        n_workers = min(self.n_workers, path_count)
        blocks = _partition(path_count, n_workers)

        # Sources first, so a bad seed fails before any path is simulated
        steps = PathGenerator.for_payoff(params, contract).steps
        sources = [
            create_random_source(
                seed + worker_index,
                dimensionality=steps,
                generator=self.generator,
                antithetic=self.antithetic,
            )
            for worker_index in range(n_workers)
        ]

        deadline = None if time_budget is None else time.monotonic() + time_budget
        control = _RunControl(cancel_token, deadline)

        logger.info(
            f"Pricing {type(contract).__name__}: {path_count} paths, {steps} steps, "
            f"{n_workers} worker(s), seed={seed}, antithetic={self.antithetic}"
        )
        start_time = time.time()

        if n_workers == 1:
            outcomes = [
                self._simulate_block(0, blocks[0], sources[0], params, contract, control)
            ]
        else:
            with ThreadPoolExecutor(max_workers=n_workers) as executor:
                futures = [
                    executor.submit(
                        self._simulate_block,
                        worker_index,
                        blocks[worker_index],
                        sources[worker_index],
                        params,
                        contract.duplicate(),
                        control,
                    )
                    for worker_index in range(n_workers)
                ]
                outcomes = [future.result() for future in futures]

        elapsed = time.time() - start_time
        return self._finalize(outcomes, params, path_count, seed, elapsed)

    def price_contract(
        self,
        factory: PayoffFactory,
        name: str,
        parameters: Mapping[str, Any],
        params: ModelParameters,
        path_count: int,
        seed: int,
        cancel_token: Optional[CancellationToken] = None,
        time_budget: Optional[float] = None,
    ) -> PricingResult:
        """Build the payoff through ``factory`` and price it."""
        payoff = factory.create(name, parameters)
        return self.price(params, payoff, path_count, seed, cancel_token, time_budget)

    @staticmethod
    def _validate(
        params: ModelParameters,
        payoff: Payoff,
        path_count: int,
        time_budget: Optional[float],
    ) -> None:
        if not isinstance(params, ModelParameters):
            raise InvalidParameter(
                f"CRITICAL: params must be ModelParameters, got {type(params).__name__}"
            )
        if not isinstance(payoff, Payoff):
            raise InvalidParameter(f"CRITICAL: payoff must be a Payoff, got {type(payoff).__name__}")
        if isinstance(path_count, bool) or not isinstance(path_count, int):
            raise InvalidParameter(f"CRITICAL: path_count must be an integer, got {path_count!r}")
        if path_count < 1:
            raise InvalidParameter(f"CRITICAL: path_count must be >= 1, got {path_count}")
        if time_budget is not None and not time_budget > 0:
            raise InvalidParameter(f"CRITICAL: time_budget must be > 0, got {time_budget}")

    def _simulate_block(
        self,
        worker_index: int,
        n_paths: int,
        source: RandomSource,
        params: ModelParameters,
        payoff: Payoff,
        control: _RunControl,
    ) -> _BlockOutcome:
        """Run one contiguous block of paths with worker-owned state."""
        generator = PathGenerator.for_payoff(params, payoff)
        discount_factor = params.discount_factor
        outcome = _BlockOutcome(worker_index, ConvergenceTable(ratio=self.snapshot_ratio))

        try:
            for _ in range(n_paths):
                control.check()
                outcome.attempted += 1
                path = generator.build_from(source)
                value = discount_factor * payoff.evaluate(path)
                if not math.isfinite(value):
                    raise NumericFault(
                        f"Non-finite discounted payoff {value} on path {outcome.attempted} "
                        f"of worker {worker_index}"
                    )
                outcome.table.accumulate(value)
        except CancellationRequested as e:
            outcome.stop_reason = e.reason
        except NumericFault as e:
            outcome.fault = str(e)
            control.abort()

        return outcome

    def _finalize(
        self,
        outcomes: list[_BlockOutcome],
        params: ModelParameters,
        path_count: int,
        seed: int,
        elapsed: float,
    ) -> PricingResult:
        statistics = RunningStatistics.combine(o.table.statistics for o in outcomes)
        if len(outcomes) == 1:
            rows = outcomes[0].table.rows()
        else:
            rows = merge_convergence_tables(o.table for o in outcomes)

        faults = [o.fault for o in outcomes if o.fault]
        stops = [o.stop_reason for o in outcomes if o.stop_reason]

        if faults:
            status = PricingStatus.FAULTED
            message: Optional[str] = faults[0]
            logger.warning(
                f"Numeric fault, run aborted after {statistics.count} of {path_count} paths: "
                f"{message}"
            )
        elif stops:
            status = PricingStatus.CANCELLED
            message = stops[0]
            logger.warning(
                f"Run stopped ({message}) after {statistics.count} of {path_count} paths"
            )
        else:
            status = PricingStatus.COMPLETED
            message = None

        valid = status != PricingStatus.FAULTED and statistics.count > 0

        result = PricingResult(
            estimate=statistics.mean,
            standard_error=statistics.standard_error,
            convergence_table=tuple(rows),
            valid=valid,
            status=status,
            n_paths=statistics.count,
            requested_paths=path_count,
            seed=seed,
            discount_factor=params.discount_factor,
            elapsed_sec=elapsed,
            message=message,
            confidence_z=self.confidence_z,
        )

        logger.info(
            f"Completed in {elapsed:.2f}s: {result.estimate:.6f} ± {result.standard_error:.6f} "
            f"({result.n_paths} paths, {status.value})"
        )
        return result


def price_exotic(
    spot: float,
    rate: float,
    volatility: float,
    expiry: float,
    payoff: Payoff,
    n_paths: Optional[int] = None,
    steps: Optional[int] = None,
    seed: Optional[int] = None,
    antithetic: bool = False,
    dividend: float = 0.0,
    n_workers: int = 1,
) -> PricingResult:
    """
    Convenience function to price a payoff via Monte Carlo.

    Unspecified path count, step count and seed come from ``SETTINGS``.

    Examples
    --------
    >>> from exotic_pricing.options.payoffs import ArithmeticAsianPayoff
    >>> result = price_exotic(100, 0.05, 0.20, 1.0, ArithmeticAsianPayoff(strike=100),
    ...                       n_paths=5_000, steps=12, seed=7)
    >>> result.valid
    True
    """
    config = SETTINGS.simulation
    params = ModelParameters(
        spot=spot,
        rate=rate,
        volatility=volatility,
        expiry=expiry,
        steps=config.default_steps if steps is None else steps,
        dividend=dividend,
    )
    engine = ExoticEngine(antithetic=antithetic, n_workers=n_workers)
    return engine.price(
        params,
        payoff,
        path_count=config.default_paths if n_paths is None else n_paths,
        seed=config.default_seed if seed is None else seed,
    )
