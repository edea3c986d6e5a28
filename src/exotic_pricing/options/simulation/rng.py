"""
Deterministic pseudorandom draw sources.

Implements:
- Park-Miller minimal standard generator (Schrage's method)
- Gaussian sources: Park-Miller + inverse normal CDF, and numpy PCG64
- Antithetic decorator wrapping any source

Two sources built with the same seed produce identical streams; the n-th
call to ``generate`` depends only on the seed and n.

See: Park & Miller (1988) "Random number generators: good ones are hard to find"
See: Glasserman (2003) "Monte Carlo Methods in Financial Engineering", Ch. 2 and 4.2
"""

import copy
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
from scipy.special import ndtri

from exotic_pricing.errors import InvalidParameter, SeedInvalid


def _is_integer(value: object) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


class ParkMiller:
    """
    Minimal standard multiplicative linear congruential generator.

    [T1] x_{k+1} = a * x_k mod m, a = 16807, m = 2^31 - 1

    The period is m - 2 over the states 1..m-1. Schrage's decomposition
    m = a*q + r with r < q keeps every intermediate product below m, so the
    recurrence never needs more than 32-bit signed arithmetic.

    Parameters
    ----------
    seed : int, default 1
        Initial state in [1, m - 1]
    """

    A = 16807
    M = 2147483647
    Q = 127773  # M // A
    R = 2836  # M % A

    def __init__(self, seed: int = 1):
        self._state = 0
        self.set_seed(seed)

    def set_seed(self, seed: int) -> None:
        """Reset the state; raises SeedInvalid outside [1, m - 1]."""
        if not _is_integer(seed):
            raise SeedInvalid(f"CRITICAL: seed must be an integer, got {seed!r}")
        if seed < self.minimum or seed > self.maximum:
            raise SeedInvalid(
                f"CRITICAL: seed must be in [{self.minimum}, {self.maximum}], got {seed}"
            )
        self._state = int(seed)

    @property
    def state(self) -> int:
        return self._state

    @property
    def minimum(self) -> int:
        return 1

    @property
    def maximum(self) -> int:
        return self.M - 1

    def next_integer(self) -> int:
        """Advance one step and return the new state."""
        k = self._state // self.Q
        state = self.A * (self._state - k * self.Q) - k * self.R
        if state < 0:
            state += self.M
        self._state = state
        return state


class RandomSource(ABC):
    """
    Abstract source of standard-normal draw sequences.

    Parameters
    ----------
    dimensionality : int
        Default length of each draw sequence (one per path)
    """

    def __init__(self, dimensionality: int = 1):
        if not _is_integer(dimensionality) or dimensionality < 1:
            raise InvalidParameter(f"CRITICAL: dimensionality must be >= 1, got {dimensionality}")
        self._dimensionality = int(dimensionality)

    @property
    def dimensionality(self) -> int:
        """Default number of draws per ``generate`` call."""
        return self._dimensionality

    def _resolve_length(self, n: Optional[int]) -> int:
        if n is None:
            return self._dimensionality
        if not _is_integer(n) or n < 1:
            raise InvalidParameter(f"CRITICAL: n must be >= 1, got {n}")
        return int(n)

    @abstractmethod
    def generate(self, n: Optional[int] = None) -> np.ndarray:
        """
        Return the next draw sequence.

        Parameters
        ----------
        n : int, optional
            Number of deviates (defaults to ``dimensionality``)

        Returns
        -------
        np.ndarray
            Standard-normal deviates, shape (n,)
        """
        pass

    @abstractmethod
    def skip(self, n_paths: int) -> None:
        """Advance as if ``generate()`` had been called ``n_paths`` times."""
        pass

    @abstractmethod
    def set_seed(self, seed: int) -> None:
        """Reseed; subsequent ``reset`` calls return to this seed."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Restart the stream from the most recent seed."""
        pass

    def duplicate(self) -> "RandomSource":
        """Independent copy carrying the current state."""
        return copy.deepcopy(self)


class ParkMillerSource(RandomSource):
    """
    Gaussian source driven by Park-Miller uniforms.

    Uniforms are x / m, which lie strictly inside (0, 1), and are mapped to
    normals with the inverse normal CDF.

    Parameters
    ----------
    dimensionality : int, default 1
        Default draws per call
    seed : int, default 1
        Seed in [1, 2^31 - 2]
    """

    def __init__(self, dimensionality: int = 1, seed: int = 1):
        super().__init__(dimensionality)
        self._generator = ParkMiller(seed)
        self._initial_seed = int(seed)
        self._reciprocal = 1.0 / ParkMiller.M

    def generate_uniforms(self, n: Optional[int] = None) -> np.ndarray:
        """Next ``n`` uniforms in (0, 1)."""
        length = self._resolve_length(n)
        next_integer = self._generator.next_integer
        return np.fromiter(
            (next_integer() * self._reciprocal for _ in range(length)),
            dtype=float,
            count=length,
        )

    def generate(self, n: Optional[int] = None) -> np.ndarray:
        return ndtri(self.generate_uniforms(n))

    def skip(self, n_paths: int) -> None:
        if n_paths < 0:
            raise InvalidParameter(f"CRITICAL: n_paths must be >= 0, got {n_paths}")
        for _ in range(n_paths * self._dimensionality):
            self._generator.next_integer()

    def set_seed(self, seed: int) -> None:
        self._generator.set_seed(seed)
        self._initial_seed = int(seed)

    def reset(self) -> None:
        self._generator.set_seed(self._initial_seed)

    @property
    def seed(self) -> int:
        return self._initial_seed


class NumpySource(RandomSource):
    """
    Gaussian source backed by numpy's PCG64 ``Generator``.

    Parameters
    ----------
    dimensionality : int, default 1
        Default draws per call
    seed : int, default 0
        Non-negative integer seed
    """

    def __init__(self, dimensionality: int = 1, seed: int = 0):
        super().__init__(dimensionality)
        self._validate_seed(seed)
        self._initial_seed = int(seed)
        self._rng = np.random.default_rng(self._initial_seed)

    @staticmethod
    def _validate_seed(seed: int) -> None:
        if not _is_integer(seed) or seed < 0:
            raise SeedInvalid(f"CRITICAL: seed must be a non-negative integer, got {seed!r}")

    def generate(self, n: Optional[int] = None) -> np.ndarray:
        return self._rng.standard_normal(self._resolve_length(n))

    def skip(self, n_paths: int) -> None:
        if n_paths < 0:
            raise InvalidParameter(f"CRITICAL: n_paths must be >= 0, got {n_paths}")
        for _ in range(n_paths):
            self._rng.standard_normal(self._dimensionality)

    def set_seed(self, seed: int) -> None:
        self._validate_seed(seed)
        self._initial_seed = int(seed)
        self._rng = np.random.default_rng(self._initial_seed)

    def reset(self) -> None:
        self._rng = np.random.default_rng(self._initial_seed)

    @property
    def seed(self) -> int:
        return self._initial_seed


class AntitheticSource(RandomSource):
    """
    Antithetic decorator: pairs every draw sequence with its reflection.

    Calls alternate strictly. The first call of each pair returns fresh
    draws from the wrapped source and remembers them; the second returns
    their element-wise negation without touching the wrapped source.

    [T1] For monotone payoffs f, Cov(f(Z), f(-Z)) <= 0, so the pair average
    has lower variance than two independent draws.

    Parameters
    ----------
    base : RandomSource
        Wrapped source; owned by the decorator from here on
    """

    def __init__(self, base: RandomSource):
        super().__init__(base.dimensionality)
        self._base = base
        self._reflect_next = False
        self._last: Optional[np.ndarray] = None

    @property
    def base(self) -> RandomSource:
        return self._base

    @property
    def reflect_next(self) -> bool:
        """True when the next call will return a reflected sequence."""
        return self._reflect_next

    def generate(self, n: Optional[int] = None) -> np.ndarray:
        length = self._resolve_length(n)

        if self._reflect_next:
            assert self._last is not None
            if length != self._last.shape[0]:
                raise InvalidParameter(
                    f"CRITICAL: reflected call must request {self._last.shape[0]} draws, got {length}"
                )
            self._reflect_next = False
            return -self._last

        draws = self._base.generate(length)
        self._last = draws.copy()
        self._reflect_next = True
        return draws

    def skip(self, n_paths: int) -> None:
        if n_paths < 0:
            raise InvalidParameter(f"CRITICAL: n_paths must be >= 0, got {n_paths}")
        if n_paths == 0:
            return

        if self._reflect_next:
            self._reflect_next = False
            n_paths -= 1

        self._base.skip(n_paths // 2)

        if n_paths % 2:
            self.generate()

    def set_seed(self, seed: int) -> None:
        self._base.set_seed(seed)
        self._reflect_next = False
        self._last = None

    def reset(self) -> None:
        self._base.reset()
        self._reflect_next = False
        self._last = None


def create_random_source(
    seed: int,
    dimensionality: int = 1,
    generator: str = "park_miller",
    antithetic: bool = False,
) -> RandomSource:
    """
    Assemble a random source from configuration names.

    Parameters
    ----------
    seed : int
        Seed for the underlying generator
    dimensionality : int, default 1
        Draws per path
    generator : str, default "park_miller"
        "park_miller" or "pcg64"
    antithetic : bool, default False
        Wrap the source in ``AntitheticSource``

    Returns
    -------
    RandomSource
        Ready-to-use source

    Raises
    ------
    SeedInvalid
        If the seed is not valid for the chosen generator
    """
    key = generator.strip().lower()
    source: RandomSource
    if key == "park_miller":
        source = ParkMillerSource(dimensionality=dimensionality, seed=seed)
    elif key == "pcg64":
        source = NumpySource(dimensionality=dimensionality, seed=seed)
    else:
        raise InvalidParameter(
            f"CRITICAL: generator must be 'park_miller' or 'pcg64', got {generator!r}"
        )

    if antithetic:
        source = AntitheticSource(source)

    return source
