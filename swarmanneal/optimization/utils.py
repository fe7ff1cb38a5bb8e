# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import swarmanneal.common.typing as tp


class PointValue:
    """Immutable snapshot of a position and its value.
    The position is copied and made read-only, so that a record never
    aliases the state of an engine.

    Parameters
    ----------
    position: array-like
        the evaluated position
    value: float
        the value of the objective function at this position
    """

    def __init__(self, position: tp.ArrayLike, value: float) -> None:
        array = np.array(position, dtype=float, copy=True)
        array.flags.writeable = False
        self._position = array
        self._value = float(value)

    @property
    def position(self) -> np.ndarray:
        return self._position

    @property
    def value(self) -> float:
        return self._value

    def is_better_than(self, other: tp.Optional["PointValue"]) -> bool:
        """Strictly smaller value (any value is better than no record at all)"""
        return other is None or self._value < other.value

    def __eq__(self, other: tp.Any) -> bool:
        if not isinstance(other, PointValue):
            return NotImplemented
        return self._value == other.value and np.array_equal(self._position, other.position)

    def __repr__(self) -> str:
        return f"PointValue<value: {self._value}, position: {self._position}>"


class DelayedJob:
    """Future-like object which delays computation
    """

    def __init__(self, func: tp.Callable[..., tp.Any], *args: tp.Any, **kwargs: tp.Any) -> None:
        self.func = func
        self.args = args
        self.kwargs = kwargs
        self._result: tp.Optional[tp.Any] = None
        self._computed = False

    def done(self) -> bool:
        return True

    def result(self) -> tp.Any:
        if not self._computed:
            self._result = self.func(*self.args, **self.kwargs)
            self._computed = True
        return self._result


class SequentialExecutor:
    """Executor which run sequentially and locally
    (just calls the function and returns a DelayedJob)
    """

    def submit(self, fn: tp.Callable[..., tp.Any], *args: tp.Any, **kwargs: tp.Any) -> DelayedJob:
        return DelayedJob(fn, *args, **kwargs)
