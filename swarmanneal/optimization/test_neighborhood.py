# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
from swarmanneal.functions import ObjectiveFunction
from swarmanneal.functions import corefuncs
from . import neighborhood as nb
from .options import SAOptions
from .sampling import Bounds
from .utils import PointValue


def test_rank_dimensions_signed_improvement() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 3)
    position = np.array([1.0, -2.0, 0.5])
    value = oracle.evaluate(position)
    assert nb.rank_dimensions(position, value, oracle, 0.1) == [1, 0, 2]
    # upwards only: dimension 0 worsens more than dimension 2
    assert nb.rank_dimensions(position, value, oracle, 0.1, both_directions=False) == [1, 2, 0]
    assert oracle.num_evaluations == 1 + 6 + 3


def test_rank_dimensions_out_of_bounds_probes() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 2)
    position = np.array([5.0, 0.0])
    ranking = nb.rank_dimensions(position, oracle.evaluate(position), oracle, 0.1, both_directions=False)
    assert ranking == [1, 0]


def test_rank_dimensions_ties_are_stable() -> None:
    oracle = ObjectiveFunction(lambda x: 3.0, 5, name="constant")
    assert nb.rank_dimensions(np.zeros(5), 3.0, oracle, 0.01) == [0, 1, 2, 3, 4]


def test_synthesize_candidates_boundary_exclusion() -> None:
    position = np.array([0.0, 5.0])
    candidates = nb.synthesize_candidates(position, [0, 1], 1.0, (1, 2), Bounds(-5, 5))
    # 8 moves, the 2 upward moves along dimension 1 leave the bounds
    assert len(candidates) == 6
    for candidate in candidates:
        assert np.sum(candidate != position) == 1
        assert Bounds(-5, 5).contains(candidate)
    assert not any(c[1] > 5 for c in candidates)
    np.testing.assert_array_equal(candidates[0], [1.0, 5.0])
    np.testing.assert_array_equal(candidates[-1], [0.0, 3.0])


def test_synthesize_candidates_all_excluded() -> None:
    assert not nb.synthesize_candidates(np.zeros(3), [0, 1, 2], 20.0, (1,), Bounds(-5, 5))
    assert len(nb.synthesize_candidates(np.zeros(3), [0, 1, 2], 5.0, (1,), Bounds(-5, 5))) == 6


def test_neighborhood_on_boundary() -> None:
    oracle = ObjectiveFunction(corefuncs.sphere, 3)
    state = PointValue([5.0, 5.0, 5.0], 75.0)
    neighborhood = nb.Neighborhood(n_best=2, probe_delta=0.01, step_multiples=(1, 2, 3))
    candidates = neighborhood.generate(state, oracle, 0.5)
    # only downward moves remain
    assert len(candidates) == 2 * 3
    assert all(oracle.bounds.contains(c) for c in candidates)
    repr(neighborhood)


def test_local_neighborhoods_stay_in_bounds() -> None:
    oracle = ObjectiveFunction(corefuncs.rastrigin, 6)
    options = SAOptions(n_best_ls=6, step_multiples_ls=(1, 2))
    neighborhood = nb.local_neighborhood(options)
    rng = np.random.RandomState(12)
    for _ in range(20):
        position = rng.uniform(-5, 5, size=6)
        candidates = neighborhood.generate(PointValue(position, oracle.evaluate(position)), oracle, rng.uniform(0, 6))
        assert all(oracle.bounds.contains(c) for c in candidates)


def test_neighborhood_factories() -> None:
    options = SAOptions(n_best_sa=3, n_best_ls=4, probe_both_directions=False)
    first = nb.global_neighborhood(options)
    assert (first.n_best, first.step_multiples, first.both_directions) == (3, (1, 2, 3, 4, 5), False)
    second = nb.local_neighborhood(options)
    assert (second.n_best, second.step_multiples) == (4, (1,))
