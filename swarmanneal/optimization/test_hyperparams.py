# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pytest
import numpy as np
from swarmanneal.common import errors
from swarmanneal.common import testing
from swarmanneal.functions import ObjectiveFunction
from swarmanneal.functions import corefuncs
from . import hyperparams
from .annealing import run_sa
from .options import SAOptions


SMALL = SAOptions(seed=12, max_iterations_sa=20, max_iterations_ls=20, n_best_sa=2, n_best_ls=2)


@testing.parametrized(
    n_best_floor=("n_best_sa", 1, "decrease", 1),
    n_best=("n_best_ls", 3, "increase", 4),
    schedule_cap=("annealing_schedule", 0.98, "increase", 0.99),
    schedule=("annealing_schedule", 0.95, "decrease", 0.93),
    step=("initial_step_size_ls", 0.5, "decrease", 0.05),
    temperature_floor=("initial_temperature", 3, "decrease", 1e-3),
    iterations_floor=("max_iterations_sa", 300, "decrease", 0),
)
def test_perturbations(name: str, value: float, direction: str, expected: float) -> None:
    output = hyperparams.PERTURBATIONS[name].apply(value, direction)
    np.testing.assert_almost_equal(output, expected)
    if hyperparams.PERTURBATIONS[name].integer:
        assert isinstance(output, int)


def test_perturbations_produce_valid_options() -> None:
    options = SAOptions()
    for name, perturbation in hyperparams.PERTURBATIONS.items():
        for direction in ["increase", "decrease"]:
            options.copy(**{name: perturbation.apply(getattr(options, name), direction)})


def test_probe_parameters() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 3)
    base_value = run_sa(oracle, SMALL).best.value
    effects = hyperparams.probe_parameters(oracle, SMALL, names=["n_best_sa", "initial_step_size_ls"])
    assert sorted(e.name for e in effects) == ["initial_step_size_ls", "n_best_sa"]
    improvements = [e.improvement for e in effects]
    assert improvements == sorted(improvements, reverse=True)
    for effect in effects:
        assert effect.direction in ("increase", "decrease")
        assert effect.options.seed == SMALL.seed
        assert effect.options.copy(**{effect.name: getattr(SMALL, effect.name)}) == SMALL
        np.testing.assert_almost_equal(effect.improvement, base_value - run_sa(oracle, effect.options).best.value)


def test_probe_parameters_unknown_name() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 3)
    with pytest.raises(errors.ConfigurationError, match="available names"):
        hyperparams.probe_parameters(oracle, SMALL, names=["blublu"])
    assert oracle.num_evaluations == 0


def test_tune() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 3)
    base_value = run_sa(oracle, SMALL).best.value
    result = hyperparams.tune(oracle, SMALL, rounds=1, names=["n_best_sa", "initial_step_size_ls"])
    assert result.value <= base_value
    assert len(result.applied) <= 1
    np.testing.assert_almost_equal(result.value, run_sa(oracle, result.options).best.value)
    unchanged = hyperparams.tune(oracle, SMALL, rounds=0)
    assert unchanged.options == SMALL
    assert not unchanged.applied
    with pytest.raises(errors.ConfigurationError):
        hyperparams.tune(oracle, SMALL, rounds=-1)


def test_missing_seed_drawn_from_random_state() -> None:
    options = SAOptions(max_iterations_sa=5, max_iterations_ls=5)
    np.random.seed(0)
    first = hyperparams._with_seed(options, random_state=12)
    np.random.seed(1)
    second = hyperparams._with_seed(options, random_state=12)
    assert first.seed is not None
    assert first.seed == second.seed
    state = np.random.RandomState(12)
    assert hyperparams._with_seed(options, random_state=state).seed == first.seed
    assert hyperparams._with_seed(options, random_state=state).seed != first.seed
    # an explicit seed is kept
    assert hyperparams._with_seed(SMALL, random_state=3) is SMALL


def test_tune_reproducible_with_random_state() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 2)
    options = SAOptions(max_iterations_sa=10, max_iterations_ls=10, n_best_sa=2, n_best_ls=2)
    first, second = (hyperparams.tune(oracle, options, rounds=1, names=["n_best_ls"], random_state=7) for _ in range(2))
    assert first.options == second.options
    assert first.value == second.value
