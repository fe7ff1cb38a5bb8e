# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import numpy as np
import swarmanneal.common.typing as tp
from swarmanneal.common import errors
from swarmanneal.functions.base import Oracle
from . import sampling
from .firefly import FireflySwarm
from .firefly import IterationResult
from .options import FireflyOptions
from .options import FireflyRunOptions
from .utils import PointValue
from .utils import SequentialExecutor


logger = logging.getLogger(__name__)
StepCallback = tp.Callable[[FireflySwarm, IterationResult], None]


class RunResult(tp.NamedTuple):
    best: PointValue
    iterations_performed: int


class FireflyResult(tp.NamedTuple):
    best: PointValue
    iterations_per_restart: tp.List[int]
    iterations_per_refinement: tp.List[int]


def run_swarm(
    oracle: Oracle,
    run_options: FireflyRunOptions,
    random_state: tp.Seed = None,
    initial_point: tp.Optional[tp.ArrayLike] = None,
    callbacks: tp.Iterable[StepCallback] = (),
) -> RunResult:
    """Runs one swarm until the maximum number of iterations is reached
    or until it is considered stuck.

    Parameters
    ----------
    oracle: Oracle
        the function to minimize
    run_options: FireflyRunOptions
        options of the run
    random_state: int, np.random.RandomState or None
        seed of the run
    initial_point: array-like or None
        starting point of all fireflies (random initialization if None)
    callbacks: iterable of callables
        callbacks registered on the "step" method of the swarm

    Returns
    -------
    RunResult
        the best point found and the number of iterations performed
    """
    swarm = FireflySwarm(oracle, run_options, random_state=random_state, initial_point=initial_point)
    for callback in callbacks:
        swarm.register_callback("step", callback)
    # stuck detection only happens between iterations
    while (swarm.num_iterations < run_options.maximum_iterations
           and swarm.iterations_since_improvement < run_options.consider_stuck_after_iterations):
        swarm.step()
    if swarm.iterations_since_improvement >= run_options.consider_stuck_after_iterations:
        logger.debug("Swarm considered stuck after %s iterations without improvement (%s iterations overall)",
                     swarm.iterations_since_improvement, swarm.num_iterations)
    if swarm.best is None:
        raise errors.NoSolutionError(f"The objective function only returned NaN values on {oracle}")
    return RunResult(best=swarm.best, iterations_performed=swarm.num_iterations)


def optimize(
    oracle: Oracle,
    options: FireflyOptions,
    executor: tp.Optional[tp.ExecutorLike] = None,
    callbacks: tp.Iterable[StepCallback] = (),
) -> FireflyResult:
    """Performs independent restarts of the firefly algorithm, then optional
    refinement runs seeded at the best position found.

    Parameters
    ----------
    oracle: Oracle
        the function to minimize. It must support concurrent evaluations if the executor is concurrent.
    options: FireflyOptions
        options of the full optimization
    executor: ExecutorLike
        executor with a :code:`submit(fn, *args)` method, used for running the restarts
        (they run sequentially if not provided)
    callbacks: iterable of callables
        callbacks registered on the "step" method of every swarm

    Returns
    -------
    FireflyResult
        the best point found, and the number of iterations performed by each run

    Note
    ----
    The random states of all runs are derived from the seed before any run starts,
    so that the result does not depend on the executor.
    """
    variants = options.restart_run_options()
    if not variants:
        raise errors.NoSolutionError("At least one restart is required, but none was configured.")
    callbacks = list(callbacks)
    random_state = sampling.make_random_state(options.seed)
    restart_states = [sampling.derive_random_state(random_state) for _ in variants]
    refinement_states = [sampling.derive_random_state(random_state) for _ in range(options.refinement_count)]
    if executor is None:
        executor = SequentialExecutor()
    jobs = [executor.submit(run_swarm, oracle, variant, state, None, callbacks)
            for variant, state in zip(variants, restart_states)]
    best: tp.Optional[PointValue] = None
    iterations_per_restart: tp.List[int] = []
    for k, job in enumerate(jobs):
        result = job.result()
        iterations_per_restart.append(result.iterations_performed)
        logger.info("Restart %s/%s: best value %s after %s iterations",
                    k + 1, len(jobs), result.best.value, result.iterations_performed)
        if result.best.is_better_than(best):
            best = result.best
    assert best is not None
    iterations_per_refinement: tp.List[int] = []
    for k, state in enumerate(refinement_states):
        result = run_swarm(oracle, options.refinement_options, state, initial_point=best.position, callbacks=callbacks)
        iterations_per_refinement.append(result.iterations_performed)
        improved = result.best.is_better_than(best)
        logger.info("Refinement %s/%s: best value %s after %s iterations (%s)",
                    k + 1, len(refinement_states), result.best.value, result.iterations_performed,
                    "improved" if improved else "no improvement")
        if improved:
            best = result.best
    return FireflyResult(best=best, iterations_per_restart=iterations_per_restart,
                         iterations_per_refinement=iterations_per_refinement)


class FireflyOptimizer:
    """Firefly optimizer with restarts and refinement

    Parameters
    ----------
    options: FireflyOptions
        options of the optimization (defaults to FireflyOptions())

    Example
    -------
    >>> from swarmanneal.functions import BenchmarkProblem
    >>> optimizer = FireflyOptimizer(FireflyOptions(seed=12, restart_count=2))
    >>> result = optimizer.minimize(BenchmarkProblem("sphere", dimension=10))
    """

    def __init__(self, options: tp.Optional[FireflyOptions] = None) -> None:
        self.options = FireflyOptions() if options is None else options
        self._callbacks: tp.Dict[str, tp.List[StepCallback]] = {"step": []}

    def register_callback(self, name: str, callback: StepCallback) -> None:
        """Add a callback method called after each generation of every swarm.

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

    def minimize(self, oracle: Oracle, executor: tp.Optional[tp.ExecutorLike] = None) -> FireflyResult:
        """Minimizes the oracle and returns the best point found with statistics of the runs"""
        logger.info("Starting firefly optimization of %s with %s", oracle, self.options)
        result = optimize(oracle, self.options, executor=executor, callbacks=self._callbacks["step"])
        distance = result.best.value - oracle.reference_minimum
        logger.info("Firefly optimization finished with value %s (distance to reference minimum: %s)",
                    result.best.value, distance if np.isfinite(distance) else "unknown")
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.options!r})"
