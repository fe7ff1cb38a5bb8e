# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .options import FireflyRunOptions
from .options import FireflyOptions
from .options import SAOptions
from .options import presets
from .firefly import FireflySwarm
from .runner import FireflyOptimizer
from .runner import optimize
from .runner import run_swarm
from .annealing import SimulatedAnnealing
from .annealing import run_sa
from .annealing import local_search
from . import hyperparams
from . import callbacks
