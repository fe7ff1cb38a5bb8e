# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Neighborhood generators of the simulated annealing optimizer.

Neighborhoods are built in two stages: the dimensions are first ranked by how
much a small probe along them improves the value, then candidates are
synthesized by moving along the most promising dimensions only.
"""

import math
import numpy as np
import swarmanneal.common.typing as tp
from swarmanneal.functions.base import Oracle
from .options import SAOptions
from .sampling import Bounds
from .utils import PointValue


def rank_dimensions(
    position: tp.ArrayLike, value: float, oracle: Oracle, delta: float, both_directions: bool = True
) -> tp.List[int]:
    """Ranks the dimensions by decreasing improvement of the value when probing
    :code:`position +/- delta` along them.

    Parameters
    ----------
    position: array-like
        the point to probe around
    value: float
        the value at this point
    oracle: Oracle
        the function to probe
    delta: float
        size of the probes
    both_directions: bool
        probes in both directions (otherwise only upwards)

    Returns
    -------
    list of int
        indices of the dimensions, the most improving first. The improvement of a dimension
        is the best signed improvement among its probes, or -inf if no probe lies within the bounds.
        Ties keep the order of the dimensions.
    """
    base = np.array(position, dtype=float, copy=True)
    bounds = oracle.bounds
    signs = (1.0, -1.0) if both_directions else (1.0,)
    improvements: tp.List[float] = []
    for k in range(base.size):
        best = -math.inf
        for sign in signs:
            probe = base.copy()
            probe[k] += sign * delta
            if not bounds.lower <= probe[k] <= bounds.upper:
                continue
            improvement = value - oracle.evaluate(probe)
            if improvement > best:  # NaN probes are ignored
                best = improvement
        improvements.append(best)
    return sorted(range(base.size), key=lambda k: -improvements[k])


def synthesize_candidates(
    position: tp.ArrayLike, dimensions: tp.Iterable[int], step: float, multiples: tp.Iterable[float], bounds: Bounds
) -> tp.List[np.ndarray]:
    """Creates the candidates moved by :code:`+/- step * multiple` along exactly one
    of the provided dimensions. Candidates which would leave the bounds are discarded.
    """
    base = np.array(position, dtype=float, copy=True)
    multiples = list(multiples)
    candidates: tp.List[np.ndarray] = []
    for k in dimensions:
        for sign in (1.0, -1.0):
            for multiple in multiples:
                coordinate = base[k] + sign * step * multiple
                if bounds.lower <= coordinate <= bounds.upper:
                    candidate = base.copy()
                    candidate[k] = coordinate
                    candidates.append(candidate)
    return candidates


class Neighborhood:
    """Generates candidates around a point, along its most sensitive dimensions

    Parameters
    ----------
    n_best: int
        number of dimensions to move along
    probe_delta: float
        size of the probes used for ranking the dimensions
    step_multiples: sequence of float
        each candidate is moved by +/- step times one of these multiples
    both_directions: bool
        whether to probe in both directions when ranking
    """

    def __init__(self, n_best: int, probe_delta: float, step_multiples: tp.Sequence[float], both_directions: bool = True) -> None:
        self.n_best = n_best
        self.probe_delta = probe_delta
        self.step_multiples = tuple(step_multiples)
        self.both_directions = both_directions

    def generate(self, state: PointValue, oracle: Oracle, step: float) -> tp.List[np.ndarray]:
        """Returns the (unevaluated) candidate positions around the state.
        The list is empty only if every synthesized move leaves the bounds.
        """
        ranking = rank_dimensions(state.position, state.value, oracle, self.probe_delta, self.both_directions)
        return synthesize_candidates(state.position, ranking[: self.n_best], step, self.step_multiples, oracle.bounds)

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(n_best={self.n_best}, probe_delta={self.probe_delta}, "
                f"step_multiples={self.step_multiples}, both_directions={self.both_directions})")


def global_neighborhood(options: SAOptions) -> Neighborhood:
    return Neighborhood(options.n_best_sa, options.probe_delta, options.step_multiples_sa, options.probe_both_directions)


def local_neighborhood(options: SAOptions) -> Neighborhood:
    return Neighborhood(options.n_best_ls, options.probe_delta, options.step_multiples_ls, options.probe_both_directions)
