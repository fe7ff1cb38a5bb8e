# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
from pathlib import Path
import numpy as np
import pandas as pd
import swarmanneal.common.typing as tp
from swarmanneal.common import errors
from swarmanneal.common.decorators import Registry
from swarmanneal.functions import problems
from swarmanneal.functions.base import Oracle
from swarmanneal.optimization import sampling
from swarmanneal.optimization.annealing import run_sa
from swarmanneal.optimization.options import FireflyOptions
from swarmanneal.optimization.options import FireflyRunOptions
from swarmanneal.optimization.options import SAOptions
from swarmanneal.optimization.runner import FireflyOptimizer
from swarmanneal.optimization.utils import PointValue
from swarmanneal.optimization.utils import SequentialExecutor


logger = logging.getLogger(__name__)
Runner = tp.Callable[..., PointValue]
optimizers: Registry[Runner] = Registry()


@optimizers.register_with_info(description="firefly swarm with independent restarts")
def firefly(
    oracle: Oracle,
    seed: tp.Optional[int] = None,
    restarts: int = 4,
    executor: tp.Optional[tp.ExecutorLike] = None,
    run_options: tp.Optional[FireflyRunOptions] = None,
    refinements: int = 0,
    refinement_options: tp.Optional[FireflyRunOptions] = None,
) -> PointValue:
    options = FireflyOptions(seed=seed, restart_count=restarts, run_options=run_options,
                             refinement_count=refinements, refinement_options=refinement_options)
    return FireflyOptimizer(options).minimize(oracle, executor=executor).best


@optimizers.register_with_info(description="simulated annealing and local search, best of independent runs")
def annealing(
    oracle: Oracle,
    seed: tp.Optional[int] = None,
    restarts: int = 4,
    executor: tp.Optional[tp.ExecutorLike] = None,
    sa_options: tp.Optional[SAOptions] = None,
) -> PointValue:
    if restarts < 1:
        raise errors.NoSolutionError("At least one run is required, but none was configured.")
    sa_options = SAOptions() if sa_options is None else sa_options
    random_state = sampling.make_random_state(seed)
    # seeds are drawn up front so that the result does not depend on the executor
    seeds = [int(random_state.randint(2**31)) for _ in range(restarts)]
    if executor is None:
        executor = SequentialExecutor()
    jobs = [executor.submit(run_sa, oracle, sa_options.copy(seed=s)) for s in seeds]
    best: tp.Optional[PointValue] = None
    for job in jobs:
        result = job.result()
        if result.best.is_better_than(best):
            best = result.best
    assert best is not None
    return best


def compute(
    optimizer: str,
    functions: tp.Optional[tp.Iterable[str]] = None,
    dimension: int = 40,
    instance: int = 2023,
    seed: tp.Optional[int] = None,
    restarts: int = 4,
    executor: tp.Optional[tp.ExecutorLike] = None,
    **kwargs: tp.Any,
) -> pd.DataFrame:
    """Runs an optimizer on benchmark problems and returns one row per function

    Parameters
    ----------
    optimizer: str
        name of the optimizer in the optimizers registry ("firefly" or "annealing")
    functions: iterable of str
        names of the functions to optimize (all registered functions if None)
    dimension: int
        dimension of the problems
    instance: int
        instance of the problems (location of the optimum and reference minimum)
    seed: int
        seed of the optimizer, identical for every function
    restarts: int
        number of independent runs on each function
    executor: ExecutorLike
        executor for running the independent runs
    **kwargs:
        additional options of the optimizer runner (run_options, refinements and refinement_options
        for firefly, sa_options for annealing)

    Returns
    -------
    pd.DataFrame
        columns: function, dimension, instance, optimizer, seed, value, reference_minimum,
        distance, num_evaluations and elapsed_time
    """
    (_, runner), = optimizers.select([optimizer])
    rows: tp.List[tp.Dict[str, tp.Any]] = []
    for problem in problems.make_problems(functions, dimension=dimension, instance=instance):
        t0 = time.time()
        best = runner(problem, seed=seed, restarts=restarts, executor=executor, **kwargs)
        elapsed = time.time() - t0
        distance = best.value - problem.reference_minimum
        logger.info("%s on %s: value %s, distance to reference minimum %s (%.2fs, %s evaluations)",
                    optimizer, problem.name, best.value, distance, elapsed, problem.num_evaluations)
        rows.append(dict(function=problem.name, dimension=dimension, instance=instance, optimizer=optimizer,
                         seed=seed, value=best.value, reference_minimum=problem.reference_minimum,
                         distance=distance, num_evaluations=problem.num_evaluations, elapsed_time=elapsed))
    df = pd.DataFrame(rows, columns=["function", "dimension", "instance", "optimizer", "seed", "value",
                                     "reference_minimum", "distance", "num_evaluations", "elapsed_time"])
    if not df.empty:
        logger.info("Mean distance to reference minimum: %s", float(np.mean(df.distance)))
    return df


def save_or_append_to_csv(df: pd.DataFrame, path: tp.PathLike) -> None:
    """Saves a dataframe to a file in append mode
    """
    path = Path(path)
    if path.exists():
        logger.info("Appending to existing file %s", path)
        predf = pd.read_csv(str(path))
        df = pd.concat([predf, df], sort=False)
    df.to_csv(path, index=False)
