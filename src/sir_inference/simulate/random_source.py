# src/sir_inference/simulate/random_source.py
# Seeded source of binomial and gamma variates.
# Every simulation run and every MCMC chain owns exactly one of these;
# use spawn() to hand out independent sources instead of sharing one.

from typing import List, Optional

import numpy as np
from numpy.random import Generator, SeedSequence, default_rng

from ..errors import InvalidParameterError


class RandomVariateSource:
    """Wrap a numpy Generator seeded from an explicit SeedSequence.

    Two sources built from the same seed and driven through the same
    sequence of calls return identical values.

    Args:
        seed (int | SeedSequence | None): entropy for the generator. ``None``
            draws fresh OS entropy and is only useful for exploratory runs.
    """

    def __init__(self, seed=None):
        if isinstance(seed, SeedSequence):
            self._seed_seq = seed
        else:
            self._seed_seq = SeedSequence(seed)
        self._rng: Generator = default_rng(self._seed_seq)

    @property
    def seed_sequence(self) -> SeedSequence:
        return self._seed_seq

    def spawn(self, n: int) -> List["RandomVariateSource"]:
        """Return n independent child sources."""
        if n < 0:
            raise InvalidParameterError("Number of child sources must be >= 0")
        return [RandomVariateSource(child) for child in self._seed_seq.spawn(n)]

    def binomial(self, n: int, p: float) -> int:
        """Draw from Binomial(n, p)."""
        try:
            whole = not isinstance(n, bool) and int(n) == n
        except (ValueError, OverflowError, TypeError):
            whole = False
        if not whole:
            raise InvalidParameterError(f"Binomial n must be a whole number, got {n!r}")
        if n < 0:
            raise InvalidParameterError(f"Binomial n must be >= 0, got {n}")
        if not 0.0 <= p <= 1.0:
            raise InvalidParameterError(f"Binomial p must lie in [0, 1], got {p}")
        # numpy already handles these, but keep the boundary cases exact
        if n == 0 or p == 0.0:
            return 0
        if p == 1.0:
            return int(n)
        return int(self._rng.binomial(int(n), p))

    def gamma(self, shape: float, rate: float) -> float:
        """Draw from Gamma(shape, rate). numpy takes a scale, so scale = 1 / rate."""
        if shape <= 0 or rate <= 0:
            raise InvalidParameterError(
                f"Gamma shape and rate must be > 0, got shape={shape}, rate={rate}"
            )
        return float(self._rng.gamma(shape, scale=1.0 / rate))

    def normal(self, loc: float = 0.0, scale: float = 1.0) -> float:
        if scale < 0:
            raise InvalidParameterError(f"Normal scale must be >= 0, got {scale}")
        return float(self._rng.normal(loc, scale))

    def uniform(self) -> float:
        """Draw from Uniform[0, 1)."""
        return float(self._rng.random())

    def __repr__(self) -> str:
        return f"RandomVariateSource(entropy={self._seed_seq.entropy!r})"


def as_source(rng: Optional[object] = None) -> RandomVariateSource:
    """Coerce a seed, a SeedSequence, or an existing source to a RandomVariateSource."""
    if isinstance(rng, RandomVariateSource):
        return rng
    if rng is None or isinstance(rng, (int, np.integer, SeedSequence)):
        return RandomVariateSource(rng)
    raise TypeError(f"Cannot build a RandomVariateSource from {type(rng).__name__}")
