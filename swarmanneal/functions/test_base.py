# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from concurrent import futures
import pytest
import numpy as np
from swarmanneal.common import errors
from swarmanneal.optimization.sampling import Bounds
from . import corefuncs
from .base import ObjectiveFunction


def test_objective_function() -> None:
    func = ObjectiveFunction(corefuncs.sphere, 3)
    assert func.name == "sphere"
    assert func.bounds == Bounds(-5, 5)
    assert np.isnan(func.reference_minimum)
    assert func.evaluate([1, 2, 3]) == 14.0
    assert func([0, 0, 1]) == 1.0
    assert func.num_evaluations == 2
    assert repr(func) == "ObjectiveFunction(sphere, dimension=3, bounds=Bounds(-5.0, 5.0))"


@pytest.mark.parametrize("position", [[1.0, 2.0], [[1.0, 2.0, 3.0]], 12.0])  # type: ignore
def test_objective_function_dimension_mismatch(position: object) -> None:
    func = ObjectiveFunction(corefuncs.sphere, 3, reference_minimum=0)
    with pytest.raises(errors.DimensionMismatchError):
        func.evaluate(position)  # type: ignore
    assert func.num_evaluations == 0


def test_objective_function_invalid_dimension() -> None:
    with pytest.raises(errors.ConfigurationError):
        ObjectiveFunction(corefuncs.sphere, 0)


def test_objective_function_errors_propagate() -> None:

    def failing(x: np.ndarray) -> float:
        raise ZeroDivisionError("oops")

    func = ObjectiveFunction(failing, 2)
    with pytest.raises(ZeroDivisionError):
        func.evaluate([0, 0])


def test_objective_function_concurrent_count() -> None:
    func = ObjectiveFunction(corefuncs.sphere, 2)
    with futures.ThreadPoolExecutor(max_workers=4) as executor:
        jobs = [executor.submit(func.evaluate, [k, 0]) for k in range(200)]
        values = [j.result() for j in jobs]
    assert func.num_evaluations == 200
    assert values[3] == 9.0
