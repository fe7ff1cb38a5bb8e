# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import pytest
import numpy as np
from swarmanneal.common import errors
from swarmanneal.functions import ObjectiveFunction
from swarmanneal.functions import corefuncs
from . import annealing as an
from .options import SAOptions
from .utils import PointValue


SMALL = SAOptions(seed=12, max_iterations_sa=40, max_iterations_ls=40, n_best_sa=2, n_best_ls=2)


def _bounded_sphere(x: np.ndarray) -> float:
    assert np.all(np.abs(x) <= 5), f"Evaluation out of bounds: {x}"
    return corefuncs.sphere(x)


def test_run_sa() -> None:
    oracle = ObjectiveFunction(_bounded_sphere, 3)
    result = an.run_sa(oracle, SMALL)
    assert result.best.value <= result.start.value
    assert result.global_iterations == 40
    assert result.global_termination == an.Termination.ITERATION_LIMIT
    assert result.local_termination in (an.Termination.ITERATION_LIMIT, an.Termination.STEP_UNDERFLOW)
    assert 0 < result.local_iterations <= 40
    np.testing.assert_almost_equal(oracle.evaluate(result.best.position), result.best.value)


def test_run_sa_determinism() -> None:
    oracle = ObjectiveFunction(corefuncs.rastrigin, 4)
    first, second = (an.run_sa(oracle, SMALL) for _ in range(2))
    assert first == second
    other = an.run_sa(oracle, SMALL.copy(seed=13))
    assert other.start != first.start


def test_stepping_and_best_non_increasing() -> None:
    oracle = ObjectiveFunction(corefuncs.ackley, 3)
    engine = an.SimulatedAnnealing(oracle, SMALL)
    assert engine.phase == an.Phase.GLOBAL
    phases: tp.List[an.Phase] = []
    values: tp.List[float] = []
    while engine.phase != an.Phase.DONE:
        step = engine.step()
        phases.append(step.phase)
        values.append(step.value)
    assert values == sorted(values, reverse=True)
    assert phases[0] == an.Phase.GLOBAL
    assert an.Phase.LOCAL in phases
    assert phases[-1] == an.Phase.DONE
    # stepping a finished engine does nothing
    num_iterations = engine.num_iterations
    assert engine.step().phase == an.Phase.DONE
    assert engine.num_iterations == num_iterations
    repr(engine)


def test_temperature_convergence() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 3)
    options = SAOptions(seed=12, initial_temperature=1.0, annealing_schedule=0.5, min_temperature=0.1,
                        max_iterations_sa=1000, max_iterations_ls=0)
    engine = an.SimulatedAnnealing(oracle, options)
    result = engine.minimize()
    assert result.global_termination == an.Termination.CONVERGED
    assert result.global_iterations < 1000
    assert engine.temperature <= 0.1
    assert result.local_iterations == 0


def test_min_temperature_above_initial_temperature() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 3)
    with pytest.warns(errors.InefficientSettingsWarning):
        options = SAOptions(seed=12, initial_temperature=1.0, min_temperature=2.0, max_iterations_ls=0)
    result = an.SimulatedAnnealing(oracle, options).minimize()
    assert result.global_iterations == 0
    assert result.global_termination == an.Termination.CONVERGED
    assert result.best == result.start
    assert oracle.num_evaluations == 1
    # the local search starts from the random starting point
    engine = an.SimulatedAnnealing(oracle, options.copy(max_iterations_ls=5))
    start = engine.best
    assert engine.step().phase == an.Phase.LOCAL
    assert engine.temperature == 1.0
    assert engine.best.value <= start.value


def test_local_search_monotonic() -> None:
    oracle = ObjectiveFunction(corefuncs.rastrigin, 4)
    rng = np.random.RandomState(12)
    for _ in range(5):
        start = rng.uniform(-5, 5, size=4)
        result = an.local_search(oracle, start, SMALL)
        assert result.best.value <= oracle.evaluate(start)
        assert result.global_iterations == 0
        assert result.global_termination is None
        assert result.local_termination is not None


def test_local_search_step_underflow() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 2)
    options = SAOptions(max_iterations_ls=1000, stagnation_window=2, stagnation_tolerance=1e9)
    result = an.local_search(oracle, PointValue([1.0, 1.0], 2.0), options)
    assert result.local_termination == an.Termination.STEP_UNDERFLOW
    assert result.local_iterations < 100


def test_local_search_step_schedule() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 2)
    options = SAOptions(initial_step_size_ls=3.0, ls_step_decrease=0.5, stagnation_window=1, stagnation_tolerance=1e9)
    engine = an.SimulatedAnnealing(oracle, options, start=PointValue([1.0, 1.0], 2.0))
    engine.skip_global_phase()
    steps = [engine.step().step_size for _ in range(6)]
    np.testing.assert_array_almost_equal(steps, [2.5, 2.0, 1.5, 1.0, 0.5, 0.25])


def test_local_search_no_shrink_while_progressing() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 1)
    options = SAOptions(initial_step_size_ls=0.1, n_best_ls=1, stagnation_window=3, stagnation_tolerance=1e-2)
    engine = an.SimulatedAnnealing(oracle, options, start=PointValue([4.0], 16.0))
    engine.skip_global_phase()
    # each step moves 0.1 closer to 0, improving by more than the tolerance
    steps = [engine.step().step_size for _ in range(5)]
    assert steps == [0.1] * 5
    np.testing.assert_almost_equal(engine.best.position, [3.5])


def test_engine_errors() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 2)
    with pytest.raises(errors.DimensionMismatchError):
        an.SimulatedAnnealing(oracle, SMALL, start=PointValue([1.0], 1.0))
    with pytest.raises(errors.DimensionMismatchError):
        an.local_search(oracle, [1.0, 2.0, 3.0], SMALL)
    engine = an.SimulatedAnnealing(oracle, SMALL)
    engine.step()
    with pytest.raises(RuntimeError):
        engine.skip_global_phase()
    with pytest.raises(ValueError):
        engine.register_callback("ask", lambda e, s: None)


def test_callbacks() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 2)
    engine = an.SimulatedAnnealing(oracle, SMALL)
    steps: tp.List[an.AnnealingStep] = []
    engine.register_callback("step", lambda e, s: steps.append(s))
    result = engine.minimize()
    assert len(steps) == result.global_iterations + result.local_iterations


def test_objective_errors_propagate() -> None:

    def failing(x: np.ndarray) -> float:
        raise ZeroDivisionError("Boom")

    with pytest.raises(ZeroDivisionError):
        an.run_sa(ObjectiveFunction(failing, 2), SMALL)


def _distance_to_one(x: np.ndarray) -> float:
    return float(abs(x[0] - 1.0))


def _walk(options: SAOptions, num_steps: int) -> tp.Tuple[an.SimulatedAnnealing, tp.List[PointValue], tp.List[float]]:
    """Steps a 1-d engine started at the minimum of |x - 1|, so that every candidate is worse"""
    oracle = ObjectiveFunction(_distance_to_one, 1)
    engine = an.SimulatedAnnealing(oracle, options, start=PointValue([1.0], 0.0))
    currents = [engine.current]
    temperatures = [engine.temperature]
    for _ in range(num_steps):
        engine.step()
        currents.append(engine.current)
        temperatures.append(engine.temperature)
    return engine, currents, temperatures


def test_improving_step_keeps_current_and_temperature() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 2)
    options = SAOptions(seed=1, initial_temperature=1e-6, min_temperature=1e-12)
    start = PointValue([1.0, 1.0], 2.0)
    engine = an.SimulatedAnnealing(oracle, options, start=start)
    for _ in range(50):
        temperature = engine.temperature
        engine.step()
        if engine.best != start:
            assert engine.best.value < start.value
            assert engine.current == start
            assert engine.temperature == temperature
            break
    else:
        raise AssertionError("The best point never improved")


def test_worse_candidates_rejected_at_low_temperature() -> None:
    options = SAOptions(seed=12, initial_temperature=1e-6, min_temperature=1e-12, annealing_schedule=0.9)
    engine, currents, temperatures = _walk(options, 10)
    assert all(c == currents[0] for c in currents)
    assert engine.best == currents[0]
    np.testing.assert_array_almost_equal(np.array(temperatures) / 1e-6, 0.9 ** np.arange(11))


def test_worse_candidates_accepted_at_high_temperature() -> None:
    options = SAOptions(seed=12, initial_temperature=1e12, annealing_schedule=0.9)
    engine, currents, temperatures = _walk(options, 10)
    for previous, current in zip(currents[:-1], currents[1:]):
        assert not np.array_equal(previous.position, current.position)
    # the accepted worse points never become the best one
    assert engine.best == PointValue([1.0], 0.0)
    np.testing.assert_array_almost_equal(np.array(temperatures) / 1e12, 0.9 ** np.arange(11))


def test_acceptance_probability() -> None:
    # both candidates (0.5 and 1.5) are worse by 0.5, accepted with probability exp(-0.5 / 0.5)
    oracle = ObjectiveFunction(_distance_to_one, 1)
    options = SAOptions(initial_temperature=0.5, initial_step_size_sa=0.5, step_multiples_sa=(1,))
    num_runs = 2000
    accepted = 0
    for seed in range(num_runs):
        engine = an.SimulatedAnnealing(oracle, options, random_state=seed, start=PointValue([1.0], 0.0))
        engine.step()
        assert engine.best.value == 0.0
        if engine.current.value > 0:
            np.testing.assert_almost_equal(engine.current.value, 0.5)
            accepted += 1
    assert abs(accepted / num_runs - np.exp(-1)) < 0.05


def test_temperature_only_cooled_on_non_improving_steps() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 1)
    options = SAOptions(seed=12, initial_temperature=1e-3, min_temperature=1e-12, annealing_schedule=0.9)
    engine = an.SimulatedAnnealing(oracle, options, start=PointValue([4.0], 16.0))
    num_improving = 0
    num_cooling = 0
    for _ in range(30):
        temperature = engine.temperature
        best = engine.best
        engine.step()
        if engine.best.is_better_than(best):
            num_improving += 1
            assert engine.temperature == temperature
        else:
            num_cooling += 1
            np.testing.assert_almost_equal(engine.temperature / temperature, 0.9)
    assert num_improving > 0
    assert num_cooling > 0
