# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import zlib
import numpy as np
import swarmanneal.common.typing as tp
from swarmanneal.optimization.sampling import Bounds
from . import corefuncs
from .base import ObjectiveFunction


class BenchmarkProblem(ObjectiveFunction):
    """Test function from the core registry, with its optimum moved to a random
    location of [-4, 4]^dimension and its value offset by a random reference minimum.
    Both are deterministic given the name, the dimension and the instance number.

    Parameters
    ----------
    name: str
        name of the function in corefuncs.registry
    dimension: int
        dimension of the search space
    instance: int
        instance number, seeding the location of the optimum and the offset

    Note
    ----
    Functions registered with "no_shift" keep the location of their optimum
    (which lies on the boundary) and only get the value offset.
    """

    def __init__(self, name: str, dimension: int = 40, instance: int = 2023) -> None:
        (_, function), = corefuncs.registry.select([name])
        info = corefuncs.registry.get_info(name)
        self.instance = instance
        self._core = function
        seed = (zlib.crc32(name.encode("utf8")) + 7919 * int(instance) + dimension) % 2**32
        rng = np.random.RandomState(seed)
        natural = np.full(dimension, float(info.get("optimum", 0.0)))
        if info.get("no_shift", False):
            self.optimum = natural
        else:
            self.optimum = rng.uniform(-4, 4, size=dimension)
        self._translation = natural - self.optimum
        self.offset = float(np.round(rng.uniform(-1000, 1000), 2))
        reference = self.offset + float(function(natural))
        super().__init__(self._shifted, dimension, bounds=Bounds(-5, 5), reference_minimum=reference, name=name)

    def _shifted(self, x: np.ndarray) -> float:
        return float(self._core(x + self._translation)) + self.offset

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name}, dimension={self.dimension}, instance={self.instance})"


def make_problems(
    names: tp.Optional[tp.Iterable[str]] = None, dimension: int = 40, instance: int = 2023
) -> tp.List[BenchmarkProblem]:
    """Builds benchmark problems for the provided function names (all registered functions if None)"""
    return [BenchmarkProblem(name, dimension=dimension, instance=instance) for name, _ in corefuncs.registry.select(names)]
