# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Firefly swarm engine.

References:
    Firefly Algorithm: Recent Advances and Applications, Xin-She Yang and Xingshi He
    https://arxiv.org/abs/1308.3898
"""

import math
import warnings
import numpy as np
import swarmanneal.common.typing as tp
from swarmanneal.common import errors
from swarmanneal.functions.base import Oracle
from . import sampling
from .options import FireflyRunOptions
from .utils import PointValue


_JITTER_BOUNDS = sampling.Bounds(-0.5, 0.5)


def _evaluate(oracle: Oracle, position: np.ndarray) -> float:
    value = float(oracle.evaluate(position))
    if np.isnan(value):
        warnings.warn(f"Objective function returned NaN at {position}", errors.BadLossWarning)
    return value


def _sort_key(firefly: "Firefly") -> float:
    # NaN is considered the worst possible value
    return math.inf if np.isnan(firefly.value) else firefly.value


class Firefly:
    """One candidate solution of the swarm: a position and its (never stale) value.

    Parameters
    ----------
    position: array-like
        the position, which is copied
    oracle: Oracle
        the function to evaluate the position with
    """

    def __init__(self, position: tp.ArrayLike, oracle: Oracle) -> None:
        array = np.array(position, dtype=float, copy=True)
        if array.shape != (oracle.dimension,):
            raise errors.DimensionMismatchError(f"Expected a position of shape ({oracle.dimension},) but got {array.shape}")
        self.position = array
        self.value = _evaluate(oracle, self.position)

    def copy(self) -> "Firefly":
        """Clones the firefly, without evaluating it again"""
        firefly = self.__class__.__new__(self.__class__)
        firefly.position = self.position.copy()
        firefly.value = self.value
        return firefly

    def move_towards(
        self,
        brighter: "Firefly",
        oracle: Oracle,
        jitter_coefficient: float,
        jitter_sampler: sampling.UniformSampler,
        options: FireflyRunOptions,
    ) -> None:
        """Moves the firefly towards a brighter one, with an attraction decaying
        with the squared distance, plus a uniform jitter, then clips the position
        to the bounds and evaluates it again.
        """
        diff = brighter.position - self.position
        squared_distance = float(diff.dot(diff))
        attraction = options.attractiveness_coefficient * math.exp(-options.light_absorption_coefficient * squared_distance)
        jitter = jitter_sampler.sample_multiple(self.position.size)
        self.position = oracle.bounds.clip(self.position + attraction * diff + jitter_coefficient * jitter)
        self.value = _evaluate(oracle, self.position)

    def __repr__(self) -> str:
        return f"Firefly<value: {self.value}, position: {self.position}>"


class IterationResult(tp.NamedTuple):
    """Progress signal returned after each generation"""

    improved: bool
    best_value: float
    iterations_since_improvement: int
    jitter_coefficient: float


class FireflySwarm:
    """Fixed size population of fireflies, moving one generation at a time.

    Parameters
    ----------
    oracle: Oracle
        the function to minimize
    options: FireflyRunOptions
        options of the run
    random_state: int, np.random.RandomState or None
        seed of the swarm. Independent streams are derived from it for the
        initial positions and for the jitter.
    initial_point: array-like or None
        if provided, all fireflies start at this point ("refinement" mode),
        otherwise they are drawn uniformly within the oracle bounds

    Note
    ----
    The fireflies are kept sorted by value in descending order (worst first).
    A firefly can therefore only be attracted by the ones that follow it, and
    only if they are strictly brighter than its current value.
    """

    def __init__(
        self,
        oracle: Oracle,
        options: FireflyRunOptions,
        random_state: tp.Seed = None,
        initial_point: tp.Optional[tp.ArrayLike] = None,
    ) -> None:
        self.oracle = oracle
        self.options = options
        state = sampling.make_random_state(random_state)
        self._position_sampler = sampling.UniformSampler(oracle.bounds, sampling.derive_random_state(state))
        self._jitter_sampler = sampling.UniformSampler(_JITTER_BOUNDS, sampling.derive_random_state(state))
        if initial_point is None:
            fireflies = [Firefly(self._position_sampler.sample_multiple(oracle.dimension), oracle) for _ in range(options.swarm_size)]
        else:
            first = Firefly(initial_point, oracle)
            fireflies = [first] + [first.copy() for _ in range(options.swarm_size - 1)]
        self._fireflies = sorted(fireflies, key=_sort_key, reverse=True)
        self._best: tp.Optional[PointValue] = None
        for firefly in self._fireflies:
            self._update_best(firefly)
        self._jitter_coefficient = float(options.movement_jitter_starting_coefficient)
        self._iterations_since_improvement = 0
        self._num_iterations = 0
        self._callbacks: tp.Dict[str, tp.List[tp.Callable[["FireflySwarm", IterationResult], None]]] = {"step": []}
        self._check_size()

    @property
    def best(self) -> tp.Optional[PointValue]:
        """Best position and value found so far (None if the function only returned NaN)"""
        return self._best

    @property
    def fireflies(self) -> tp.List[Firefly]:
        """Copies of the fireflies, sorted by value, worst first"""
        return [f.copy() for f in self._fireflies]

    @property
    def jitter_coefficient(self) -> float:
        return self._jitter_coefficient

    @property
    def iterations_since_improvement(self) -> int:
        return self._iterations_since_improvement

    @property
    def num_iterations(self) -> int:
        return self._num_iterations

    def __len__(self) -> int:
        return len(self._fireflies)

    def register_callback(self, name: str, callback: tp.Callable[["FireflySwarm", IterationResult], None]) -> None:
        """Add a callback method called after each generation.

        Parameters
        ----------
        name: str
            name of the method to register the callback for (only "step" is available)
        callback: callable
            a callable taking the swarm and the IterationResult of the generation as parameters
        """
        if name not in self._callbacks:
            raise ValueError(f"Unrecognized method {name}")
        self._callbacks[name].append(callback)

    def remove_all_callbacks(self) -> None:
        for key in self._callbacks:
            self._callbacks[key] = []

    def _check_size(self) -> None:
        if len(self._fireflies) != self.options.swarm_size:
            raise errors.SwarmInvariantError(
                f"Swarm holds {len(self._fireflies)} fireflies while its size is {self.options.swarm_size}"
            )

    def _update_best(self, firefly: Firefly) -> bool:
        if np.isnan(firefly.value):
            return False
        candidate = PointValue(firefly.position, firefly.value)
        if candidate.is_better_than(self._best):
            self._best = candidate
            return True
        return False

    def step(self) -> IterationResult:
        """Performs one generation: each firefly moves towards all the strictly
        brighter ones which follow it, then the jitter coefficient is cooled down,
        or heated up if the swarm has not improved for a while.
        """
        self._check_size()
        previous = self._fireflies
        improved = False
        generation: tp.List[Firefly] = []
        for i, firefly in enumerate(previous):
            moving = firefly.copy()
            for peer in previous[i + 1:]:
                if peer.value < moving.value:
                    moving.move_towards(peer, self.oracle, self._jitter_coefficient, self._jitter_sampler, self.options)
            improved |= self._update_best(moving)
            generation.append(moving)
        self._fireflies = sorted(generation, key=_sort_key, reverse=True)
        self._check_size()
        self._iterations_since_improvement = 0 if improved else self._iterations_since_improvement + 1
        opts = self.options
        if self._iterations_since_improvement < opts.movement_jitter_min_stuck_iterations_to_reheat:
            self._jitter_coefficient = max(self._jitter_coefficient * opts.movement_jitter_cooling_factor,
                                           opts.movement_jitter_minimum_coefficient)
        else:
            self._jitter_coefficient = min(self._jitter_coefficient * opts.movement_jitter_heating_factor,
                                           opts.movement_jitter_maximum_coefficient)
        self._num_iterations += 1
        result = IterationResult(
            improved=improved,
            best_value=float("nan") if self._best is None else self._best.value,
            iterations_since_improvement=self._iterations_since_improvement,
            jitter_coefficient=self._jitter_coefficient,
        )
        for callback in self._callbacks["step"]:
            callback(self, result)
        return result

    def __repr__(self) -> str:
        best = None if self._best is None else self._best.value
        return f"{self.__class__.__name__}(size={len(self)}, iterations={self._num_iterations}, best={best})"
