# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Continuous test functions, all with minimum 0 at the origin unless
registered with another "optimum" (coordinate of the minimum, repeated
on every dimension) or with "no_shift" when the optimum lies on the boundary.
"""

from math import exp, sqrt
import numpy as np
import swarmanneal.common.typing as tp
from swarmanneal.common.decorators import Registry


registry: Registry[tp.Callable[[np.ndarray], float]] = Registry()


def _exponents(dim: int, scale: float) -> np.ndarray:
    """i / (dim - 1) * scale for i in [0, dim), with 0 for a single dimension"""
    if dim == 1:
        return np.zeros(1)
    return scale * np.arange(dim) / (dim - 1)


@registry.register
def sphere(x: np.ndarray) -> float:
    """The most classical continuous optimization testbed.

    If you do not solve that one then you have a bug."""
    assert x.ndim == 1
    return float(x.dot(x))


@registry.register
def ellipsoid(x: np.ndarray) -> float:
    """Classical example of ill conditioned function.

    The other classical example is bentcigar.
    """
    weights = 10 ** _exponents(x.size, 6)
    return float(weights.dot(x ** 2))


@registry.register
def rastrigin(x: np.ndarray) -> float:
    """Classical multimodal function."""
    cosi = float(np.sum(np.cos(2 * np.pi * x)))
    return float(10 * (len(x) - cosi) + sphere(x))


@registry.register
def bucherastrigin(x: np.ndarray) -> float:
    """Classical multimodal function, with asymmetric scaling of positive coordinates."""
    odd = np.arange(len(x)) % 2 == 0  # 1-based odd indices
    s = x * np.where((x > 0) & odd, 10.0, 1.0) * 10 ** _exponents(len(x), 0.5)
    cosi = float(np.sum(np.cos(2 * np.pi * s)))
    return float(10 * (len(x) - cosi) + sphere(s))


@registry.register_with_info(optimum=5.0, no_shift=True)
def linearslope(x: np.ndarray) -> float:
    """Linear function with its optimum at the upper bound.
    Coordinates above 5 are considered equal to 5."""
    slopes = 10 ** _exponents(len(x), 1)
    return float(slopes.dot(5 - np.minimum(x, 5)))


@registry.register
def attractivesector(x: np.ndarray) -> float:
    """Highly asymmetric function, only a small sector leads to the optimum."""
    s = np.where(x > 0, 100.0, 1.0)
    return float(sphere(s * x) ** 0.9)


@registry.register
def stepellipsoid(x: np.ndarray) -> float:
    """Ill conditioned function with plateaus, i.e. a gradient equal to zero almost everywhere."""
    rounded = np.where(np.abs(x) > 0.5, np.floor(0.5 + x), np.floor(0.5 + 10 * x) / 10)
    weights = 10 ** _exponents(x.size, 2)
    return float(0.1 * max(abs(float(x[0])) / 1e4, weights.dot(rounded ** 2)))


@registry.register_with_info(optimum=1.0)
def rosenbrock(x: np.ndarray) -> float:
    x_m_1 = x[:-1] - 1
    x_diff = x[:-1] ** 2 - x[1:]
    return float(100 * x_diff.dot(x_diff) + x_m_1.dot(x_m_1))


@registry.register
def discus(x: np.ndarray) -> float:
    """Only one variable is very penalized."""
    return sphere(x[1:]) + 1000000.0 * float(x[0]) ** 2


@registry.register
def bentcigar(x: np.ndarray) -> float:
    """Classical example of ill conditioned function, but bent."""
    positive = np.maximum(x, 0)
    y = np.where(x > 0, positive ** (1 + 0.5 * np.sqrt(positive) * _exponents(len(x), 1)), x)
    return float(y[0]) ** 2 + 1000000.0 * sphere(y[1:])


@registry.register
def sharpridge(x: np.ndarray) -> float:
    """The minimum lies along a sharp ridge, which must be followed."""
    return float(x[0]) ** 2 + 100 * sqrt(sphere(x[1:]))


@registry.register
def differentpowers(x: np.ndarray) -> float:
    """Each variable is penalized with a different power."""
    return sqrt(float(np.sum(np.abs(x) ** (2 + _exponents(len(x), 4)))))


@registry.register
def schaffersf7(x: np.ndarray) -> float:
    """Multimodal function with highly variable frequency and amplitude of the modulation."""
    if len(x) < 2:
        return sqrt(abs(float(x[0])))
    s = np.sqrt(x[:-1] ** 2 + x[1:] ** 2)
    terms = np.sqrt(s) * (1 + np.sin(50 * s ** 0.2) ** 2)
    return float(np.mean(terms)) ** 2


@registry.register_with_info(optimum=4.209687462275036)
def schwefel(x: np.ndarray) -> float:
    """Deceptive function: the second best local minimum is far away from the optimum.
    The input is scaled by 100 so that [-5, 5] covers the usual [-500, 500] domain."""
    z = 100 * x
    return float(418.9828872724339 * len(x) - np.sum(z * np.sin(np.sqrt(np.abs(z)))))


@registry.register
def griewankrosenbrock(x: np.ndarray) -> float:
    """Composition of griewank and rosenbrock functions, optimum translated to the origin."""
    if len(x) < 2:
        return 0.0 if x[0] == 0 else 1 - float(np.cos(x[0]))
    z = max(1.0, sqrt(len(x)) / 8) * x + 1
    s = 100 * (z[:-1] ** 2 - z[1:]) ** 2 + (z[:-1] - 1) ** 2
    return float(10 * np.mean(s / 4000 - np.cos(s)) + 10)


@registry.register_with_info(optimum=2.5)
def lunacek(x: np.ndarray) -> float:
    """Multimodal function, with two funnels.

    Based on https://www.cs.unm.edu/~neal.holts/dga/benchmarkFunction/lunacek.html."""
    dim = len(x)
    s = 1.0 - (1.0 / (2.0 * np.sqrt(dim + 20.0) - 8.2))
    mu1 = 2.5
    mu2 = -np.sqrt(abs((mu1 ** 2 - 1.0) / s))
    first = float(np.sum((x - mu1) ** 2))
    second = float(np.sum((x - mu2) ** 2))
    third = float(np.sum(1.0 - np.cos(2 * np.pi * (x - mu1))))
    return min(first, 1.0 * dim + s * second) + 10 * third


@registry.register
def ackley(x: np.ndarray) -> float:
    dim = x.size
    sum_cos = np.sum(np.cos(2 * np.pi * x))
    return -20.0 * exp(-0.2 * sqrt(sphere(x) / dim)) - exp(sum_cos / dim) + 20 + exp(1)


@registry.register
def griewank(x: np.ndarray) -> float:
    """Multimodal function, often used in Bayesian optimization."""
    part1 = sphere(x)
    part2 = np.prod(np.cos(x / np.sqrt(1 + np.arange(len(x)))))
    return 1 + (float(part1) / 4000.0) - float(part2)
