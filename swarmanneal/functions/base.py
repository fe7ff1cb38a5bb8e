# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import threading
import numpy as np
import swarmanneal.common.typing as tp
from swarmanneal.common import errors
from swarmanneal.optimization.sampling import Bounds


class Oracle(tp.Protocol):
    """Objective function as seen by the optimizers: an opaque evaluator
    of fixed dimension, with declared bounds shared by every coordinate.
    The reference minimum is only used for reporting.
    """
    # pylint: disable=pointless-statement

    @property
    def dimension(self) -> int:
        ...

    @property
    def bounds(self) -> Bounds:
        ...

    @property
    def reference_minimum(self) -> float:
        ...

    def evaluate(self, x: tp.ArrayLike) -> float:
        ...


class ObjectiveFunction:
    """Wraps a function of a 1d array into an oracle, checking dimensions
    and counting evaluations.

    Parameters
    ----------
    function: callable
        the function to minimize, taking a 1d np.ndarray and returning a float
    dimension: int
        dimension of the search space
    bounds: Bounds
        declared search interval, shared by every coordinate
    reference_minimum: float
        known minimum value, for reporting only (NaN if unknown)
    name: str
        name of the function (defaults to the function __name__)

    Note
    ----
    The evaluation counter is protected by a lock so that independent
    restarts may evaluate the same instance from several threads.
    """

    def __init__(
        self,
        function: tp.Callable[[np.ndarray], float],
        dimension: int,
        bounds: tp.Optional[Bounds] = None,
        reference_minimum: float = float("nan"),
        name: tp.Optional[str] = None,
    ) -> None:
        if not isinstance(dimension, (int, np.integer)) or dimension < 1:
            raise errors.ConfigurationError(f"Dimension must be a positive int, got {dimension!r}")
        self.function = function
        self._dimension = int(dimension)
        self._bounds = Bounds(-5, 5) if bounds is None else bounds
        self._reference_minimum = float(reference_minimum)
        self.name = name if name is not None else getattr(function, "__name__", function.__class__.__name__)
        self._num_evaluations = 0
        self._lock = threading.Lock()

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def bounds(self) -> Bounds:
        return self._bounds

    @property
    def reference_minimum(self) -> float:
        return self._reference_minimum

    @property
    def num_evaluations(self) -> int:
        return self._num_evaluations

    def check_position(self, x: tp.ArrayLike) -> np.ndarray:
        """Converts to a 1d float array, raising DimensionMismatchError if its shape is not (dimension,)"""
        array = np.asarray(x, dtype=float)
        if array.shape != (self._dimension,):
            raise errors.DimensionMismatchError(
                f"Expected a position of shape ({self._dimension},) for {self.name} but got {array.shape}"
            )
        return array

    def evaluate(self, x: tp.ArrayLike) -> float:
        array = self.check_position(x)
        with self._lock:
            self._num_evaluations += 1
        return float(self.function(array))

    def __call__(self, x: tp.ArrayLike) -> float:
        return self.evaluate(x)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name}, dimension={self._dimension}, bounds={self._bounds!r})"
