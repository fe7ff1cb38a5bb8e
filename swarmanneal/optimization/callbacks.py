# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
import swarmanneal.common.typing as tp


global_logger = logging.getLogger(__name__)


class IterationLogger:
    """Logger to register as "step" callback of a swarm, an annealing engine
    or an optimizer, for logging the best value regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_iterations: int
        number of iterations between two logs
    log_interval_seconds:
        max number of seconds before performing another log
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_iterations: int = 1,
        log_interval_seconds: float = 60.0,
    ) -> None:
        assert log_interval_iterations > 0
        assert log_interval_seconds > 0
        self._logger = logger
        self._log_level = log_level
        self._log_interval_iterations = int(log_interval_iterations)
        self._log_interval_seconds = log_interval_seconds
        self._next_iteration = self._log_interval_iterations
        self._next_time = time.time() + log_interval_seconds

    def __call__(self, engine: tp.Any, *args: tp.Any, **kwargs: tp.Any) -> None:
        num_iterations = engine.num_iterations
        if time.time() >= self._next_time or num_iterations >= self._next_iteration:
            self._next_time = time.time() + self._log_interval_seconds
            self._next_iteration = num_iterations + self._log_interval_iterations
            best = engine.best
            self._logger.log(self._log_level, "After %s iterations, best value is %s",
                             num_iterations, None if best is None else best.value)


class ProgressBar:
    """Progress bar to register as "step" callback

    Parameters
    ----------
    total: int or None
        expected number of iterations, if known
    """

    def __init__(self, total: tp.Optional[int] = None) -> None:
        self._progress_bar: tp.Any = None
        self._total = total
        self._current = 0

    def __call__(self, engine: tp.Any, *args: tp.Any, **kwargs: tp.Any) -> None:
        if self._progress_bar is None:
            # pylint: disable=import-outside-toplevel
            try:
                from tqdm import tqdm  # Inline import to avoid additional dependency
            except ImportError as e:
                raise ImportError(
                    f"{self.__class__.__name__} requires tqdm which is not installed by default "
                    "(pip install tqdm)"
                ) from e
            self._progress_bar = tqdm(total=self._total)
            self._progress_bar.update(self._current)
        self._progress_bar.update(1)
        self._current += 1
        best = getattr(engine, "best", None)
        if best is not None:
            self._progress_bar.set_postfix(best=best.value, refresh=False)

    def close(self) -> None:
        if self._progress_bar is not None:
            self._progress_bar.close()
            self._progress_bar = None

    def __getstate__(self) -> tp.Dict[str, tp.Any]:
        """Used for pickling (tqdm is not picklable)"""
        state = dict(self.__dict__)
        state["_progress_bar"] = None
        return state
