# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .common import typing as typing
from .common import errors as errors
# optimization must be imported before functions (functions.base depends on optimization.sampling)
from .optimization import FireflyOptimizer as FireflyOptimizer
from .optimization import FireflyOptions as FireflyOptions
from .optimization import FireflyRunOptions as FireflyRunOptions
from .optimization import SAOptions as SAOptions
from .optimization import SimulatedAnnealing as SimulatedAnnealing
from .optimization import callbacks as callbacks
from .optimization import presets as presets
from . import functions as functions


__all__ = [
    "FireflyOptimizer",
    "FireflyOptions",
    "FireflyRunOptions",
    "SAOptions",
    "SimulatedAnnealing",
    "callbacks",
    "presets",
    "functions",
    "errors",
    "typing",
]


__version__ = "0.1.0"
