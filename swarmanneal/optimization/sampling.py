# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import swarmanneal.common.typing as tp
from swarmanneal.common import errors


def make_random_state(seed: tp.Seed = None) -> np.random.RandomState:
    """Builds a random state from a seed

    Parameters
    ----------
    seed: None, int or np.random.RandomState
        an existing random state is returned as is, an int seeds a new one,
        None seeds a new one from the system entropy
    """
    if isinstance(seed, np.random.RandomState):
        return seed
    if seed is not None and (not isinstance(seed, (int, np.integer)) or seed < 0):
        raise errors.ConfigurationError(f"Seed must be None, a non-negative int or a RandomState, got {seed!r}")
    return np.random.RandomState(seed)


def derive_random_state(random_state: np.random.RandomState) -> np.random.RandomState:
    """Draws a 32-bit seed from the parent state and returns a new, independent state
    seeded with it. The parent state is advanced by exactly one draw.
    """
    return np.random.RandomState(random_state.randint(2**32, dtype=np.uint32))


class Bounds:
    """Closed interval [lower, upper] shared by every coordinate of the search space

    Parameters
    ----------
    lower: float
        lower bound
    upper: float
        upper bound, must be greater or equal to lower
    """

    def __init__(self, lower: float, upper: float) -> None:
        lower, upper = float(lower), float(upper)
        if np.isnan(lower) or np.isnan(upper) or lower > upper:
            raise errors.ConfigurationError(f"Bounds must satisfy lower <= upper, got ({lower}, {upper})")
        self._lower = lower
        self._upper = upper

    @property
    def lower(self) -> float:
        return self._lower

    @property
    def upper(self) -> float:
        return self._upper

    @property
    def width(self) -> float:
        return self._upper - self._lower

    def contains(self, x: tp.ArrayLike) -> bool:
        """Whether all coordinates lie within the bounds (bounds included)"""
        array = np.asarray(x, dtype=float)
        return bool(np.all(array >= self._lower) and np.all(array <= self._upper))

    def clip(self, x: tp.ArrayLike) -> np.ndarray:
        return np.clip(np.asarray(x, dtype=float), self._lower, self._upper)

    def __iter__(self) -> tp.Iterator[float]:
        return iter((self._lower, self._upper))

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, Bounds):
            return NotImplemented
        return (self._lower, self._upper) == (other.lower, other.upper)

    def __hash__(self) -> int:
        return hash((self._lower, self._upper))

    def __repr__(self) -> str:
        return f"Bounds({self._lower}, {self._upper})"


class UniformSampler:
    """Seedable uniform sampler over [lower, upper)

    Parameters
    ----------
    bounds: Bounds
        the interval to sample from
    random_state: np.random.RandomState
        the random state owned by this sampler (it is not copied)
    """

    def __init__(self, bounds: Bounds, random_state: np.random.RandomState) -> None:
        self.bounds = bounds
        self.random_state = random_state

    def sample(self) -> float:
        return float(self.random_state.uniform(self.bounds.lower, self.bounds.upper))

    def sample_multiple(self, n: int) -> np.ndarray:
        if n < 0:
            raise ValueError(f"Number of samples must be non-negative, got {n}")
        return self.random_state.uniform(self.bounds.lower, self.bounds.upper, size=n)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.bounds!r})"
