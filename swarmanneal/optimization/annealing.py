# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Simulated annealing followed by a local search.

The global phase walks randomly through neighborhoods of the current point,
accepting worse points with a probability decreasing with the temperature.
The local phase then scans exhaustively the neighborhoods of the best point,
reducing the step once the best value stagnates.
"""

import enum
import math
import logging
from collections import deque
import numpy as np
import swarmanneal.common.typing as tp
from swarmanneal.common import errors
from swarmanneal.common import tools
from swarmanneal.functions.base import Oracle
from . import sampling
from .neighborhood import global_neighborhood
from .neighborhood import local_neighborhood
from .options import SAOptions
from .utils import PointValue


logger = logging.getLogger(__name__)


class Phase(enum.Enum):
    GLOBAL = "global"
    LOCAL = "local"
    DONE = "done"


class Termination(enum.Enum):
    CONVERGED = "converged"  # temperature reached its minimum
    ITERATION_LIMIT = "iteration_limit"
    STEP_UNDERFLOW = "step_underflow"


class AnnealingStep(tp.NamedTuple):
    """State after one step: current phase, best value, temperature and local search step"""

    phase: Phase
    value: float
    temperature: float
    step_size: float


class AnnealingResult(tp.NamedTuple):
    best: PointValue
    start: PointValue
    global_iterations: int
    local_iterations: int
    global_termination: tp.Optional[Termination]
    local_termination: tp.Optional[Termination]


class SimulatedAnnealing:
    """Simulated annealing engine, stepping through a global then a local phase

    Parameters
    ----------
    oracle: Oracle
        the function to minimize
    options: SAOptions
        options of the run
    random_state: int, np.random.RandomState or None
        seed of the run (defaults to options.seed)
    start: PointValue or None
        already evaluated starting point (a random point within the bounds is drawn and evaluated if None)
    """

    def __init__(
        self,
        oracle: Oracle,
        options: SAOptions,
        random_state: tp.Seed = None,
        start: tp.Optional[PointValue] = None,
    ) -> None:
        self.oracle = oracle
        self.options = options
        state = sampling.make_random_state(options.seed if random_state is None else random_state)
        self._position_sampler = sampling.UniformSampler(oracle.bounds, sampling.derive_random_state(state))
        self._rng = sampling.derive_random_state(state)
        self._global_neighborhood = global_neighborhood(options)
        self._local_neighborhood = local_neighborhood(options)
        if start is None:
            position = self._position_sampler.sample_multiple(oracle.dimension)
            start = PointValue(position, oracle.evaluate(position))
        elif start.position.shape != (oracle.dimension,):
            raise errors.DimensionMismatchError(
                f"Expected a starting point of shape ({oracle.dimension},) but got {start.position.shape}"
            )
        self._start = start
        self._current = start
        self._minimal = start
        self._phase = Phase.GLOBAL
        self._temperature = float(options.initial_temperature)
        self._step_size = float(options.initial_step_size_ls)
        self._recent_values: tp.Deque[float] = deque(maxlen=options.stagnation_window)
        self._global_iterations = 0
        self._local_iterations = 0
        self._global_termination: tp.Optional[Termination] = None
        self._local_termination: tp.Optional[Termination] = None
        self._callbacks: tp.Dict[str, tp.List[tp.Callable[["SimulatedAnnealing", AnnealingStep], None]]] = {"step": []}

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def temperature(self) -> float:
        return self._temperature

    @property
    def step_size(self) -> float:
        """Current step of the local search"""
        return self._step_size

    @property
    def current(self) -> PointValue:
        """Current point of the random walk of the global phase"""
        return self._current

    @property
    def best(self) -> PointValue:
        return self._minimal

    @property
    def num_iterations(self) -> int:
        return self._global_iterations + self._local_iterations

    def register_callback(self, name: str, callback: tp.Callable[["SimulatedAnnealing", AnnealingStep], None]) -> None:
        """Add a callback method called after each step ("step" is the only available method)"""
        if name not in self._callbacks:
            raise ValueError(f"Unrecognized method {name}")
        self._callbacks[name].append(callback)

    def skip_global_phase(self) -> None:
        """Starts the local search directly from the starting point"""
        if self._phase != Phase.GLOBAL or self._global_iterations:
            raise RuntimeError("The global phase can only be skipped before it starts")
        self._phase = Phase.LOCAL

    # # # # # global phase # # # # #

    def _global_termination_check(self) -> tp.Optional[Termination]:
        if self._temperature <= self.options.min_temperature:
            return Termination.CONVERGED
        if self._global_iterations >= self.options.max_iterations_sa:
            return Termination.ITERATION_LIMIT
        return None

    def _global_step(self) -> None:
        self._global_iterations += 1
        candidates = self._global_neighborhood.generate(self._current, self.oracle, self.options.initial_step_size_sa)
        if not candidates:
            logger.debug("No candidate within bounds around %s, skipping global step", self._current.position)
            return
        position = candidates[self._rng.randint(len(candidates))]
        candidate = PointValue(position, self.oracle.evaluate(position))
        if candidate.is_better_than(self._minimal):
            self._minimal = candidate
            return
        delta = candidate.value - self._current.value
        if delta <= 0 or self._rng.uniform() <= math.exp(-delta / self._temperature):
            self._current = candidate
        self._temperature *= self.options.annealing_schedule

    # # # # # local phase # # # # #

    def _local_termination_check(self) -> tp.Optional[Termination]:
        if self._local_iterations >= self.options.max_iterations_ls:
            return Termination.ITERATION_LIMIT
        if self._step_size < self.options.minimum_step_size:
            return Termination.STEP_UNDERFLOW
        return None

    def _local_step(self) -> None:
        self._local_iterations += 1
        for position in self._local_neighborhood.generate(self._minimal, self.oracle, self._step_size):
            candidate = PointValue(position, self.oracle.evaluate(position))
            if candidate.is_better_than(self._minimal):
                self._minimal = candidate
        self._recent_values.append(self._minimal.value)
        if len(self._recent_values) == self._recent_values.maxlen:
            if tools.spread(self._recent_values) <= self.options.stagnation_tolerance:
                decrease = self.options.ls_step_decrease
                if self._step_size <= 1:
                    self._step_size *= decrease
                else:
                    self._step_size = max(0.0, self._step_size - decrease)

    # # # # # stepping # # # # #

    def step(self) -> AnnealingStep:
        """Performs one iteration of the current phase, moving to the next phase
        first if the current one is over. Does nothing once the run is done.
        """
        stepped = False
        while not stepped and self._phase != Phase.DONE:
            if self._phase == Phase.GLOBAL:
                reason = self._global_termination_check()
                if reason is None:
                    self._global_step()
                    stepped = True
                else:
                    self._global_termination = reason
                    self._phase = Phase.LOCAL
                    logger.debug("Global phase stopped (%s) after %s iterations with value %s at temperature %s",
                                 reason.value, self._global_iterations, self._minimal.value, self._temperature)
            else:
                reason = self._local_termination_check()
                if reason is None:
                    self._local_step()
                    stepped = True
                else:
                    self._local_termination = reason
                    self._phase = Phase.DONE
                    logger.debug("Local search stopped (%s) after %s iterations with value %s and step %s",
                                 reason.value, self._local_iterations, self._minimal.value, self._step_size)
        result = AnnealingStep(phase=self._phase, value=self._minimal.value,
                               temperature=self._temperature, step_size=self._step_size)
        if stepped:
            for callback in self._callbacks["step"]:
                callback(self, result)
        return result

    def result(self) -> AnnealingResult:
        return AnnealingResult(
            best=self._minimal,
            start=self._start,
            global_iterations=self._global_iterations,
            local_iterations=self._local_iterations,
            global_termination=self._global_termination,
            local_termination=self._local_termination,
        )

    def minimize(self) -> AnnealingResult:
        """Runs both phases to completion"""
        while self._phase != Phase.DONE:
            self.step()
        return self.result()

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(phase={self._phase.value}, best={self._minimal.value}, "
                f"temperature={self._temperature}, step_size={self._step_size})")


def run_sa(oracle: Oracle, options: SAOptions, random_state: tp.Seed = None) -> AnnealingResult:
    """Runs simulated annealing then local search on the oracle from a random point"""
    return SimulatedAnnealing(oracle, options, random_state=random_state).minimize()


def local_search(
    oracle: Oracle,
    start: tp.Union[PointValue, tp.ArrayLike],
    options: SAOptions,
    random_state: tp.Seed = None,
) -> AnnealingResult:
    """Runs the local search phase only, from the provided starting point

    Parameters
    ----------
    oracle: Oracle
        the function to minimize
    start: PointValue or array-like
        starting point (evaluated first if it is not a PointValue)
    options: SAOptions
        options of the search (only the local search fields are used)
    random_state: int, np.random.RandomState or None
        seed of the search (defaults to options.seed)
    """
    if not isinstance(start, PointValue):
        position = np.array(start, dtype=float, copy=True)
        if position.shape != (oracle.dimension,):
            raise errors.DimensionMismatchError(f"Expected a starting point of shape ({oracle.dimension},) but got {position.shape}")
        start = PointValue(position, oracle.evaluate(position))
    engine = SimulatedAnnealing(oracle, options, random_state=random_state, start=start)
    engine.skip_global_phase()
    return engine.minimize()
