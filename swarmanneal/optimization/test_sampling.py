# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pytest
import numpy as np
from swarmanneal.common import errors
from swarmanneal.common import testing
from . import sampling


def test_bounds() -> None:
    bounds = sampling.Bounds(-5, 5)
    assert bounds.lower == -5.0
    assert bounds.width == 10.0
    assert bounds.contains([5.0, -5.0, 0])
    assert not bounds.contains([5.000001, 0])
    np.testing.assert_array_equal(bounds.clip([12, -7, 1]), [5, -5, 1])
    assert tuple(bounds) == (-5.0, 5.0)
    assert bounds == sampling.Bounds(-5.0, 5.0)
    assert repr(bounds) == "Bounds(-5.0, 5.0)"


@testing.parametrized(
    inverted=(1.0, 0.0),
    nan=(float("nan"), 1.0),
)
def test_bounds_errors(lower: float, upper: float) -> None:
    with pytest.raises(errors.ConfigurationError):
        sampling.Bounds(lower, upper)


def test_degenerate_bounds() -> None:
    sampler = sampling.UniformSampler(sampling.Bounds(2, 2), np.random.RandomState(12))
    assert sampler.sample() == 2.0
    np.testing.assert_array_equal(sampler.sample_multiple(3), [2.0, 2.0, 2.0])


def test_uniform_sampler() -> None:
    bounds = sampling.Bounds(-0.5, 0.5)
    sampler = sampling.UniformSampler(bounds, np.random.RandomState(12))
    samples = sampler.sample_multiple(1000)
    assert samples.shape == (1000,)
    assert np.all(samples >= -0.5)
    assert np.all(samples < 0.5)
    assert abs(float(np.mean(samples))) < 0.05
    assert -0.5 <= sampler.sample() < 0.5
    assert sampler.sample_multiple(0).shape == (0,)
    with pytest.raises(ValueError):
        sampler.sample_multiple(-1)


def test_uniform_sampler_determinism() -> None:
    bounds = sampling.Bounds(0, 1)
    samples = [sampling.UniformSampler(bounds, np.random.RandomState(3)).sample_multiple(5) for _ in range(2)]
    np.testing.assert_array_equal(samples[0], samples[1])


def test_make_random_state() -> None:
    state = np.random.RandomState(12)
    assert sampling.make_random_state(state) is state
    np.testing.assert_equal(sampling.make_random_state(12).randint(1000), np.random.RandomState(12).randint(1000))
    assert isinstance(sampling.make_random_state(None), np.random.RandomState)
    with pytest.raises(errors.ConfigurationError):
        sampling.make_random_state(-1)


def test_derive_random_state() -> None:
    parents = [np.random.RandomState(12) for _ in range(2)]
    children = [sampling.derive_random_state(p) for p in parents]
    assert children[0] is not parents[0]
    np.testing.assert_equal(children[0].randint(2**20), children[1].randint(2**20))
    # deriving again gives a different stream
    other = sampling.derive_random_state(parents[0])
    assert other.randint(2**30) != sampling.derive_random_state(np.random.RandomState(12)).randint(2**30)
