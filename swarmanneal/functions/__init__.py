# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .base import Oracle
from .base import ObjectiveFunction
from .problems import BenchmarkProblem
from .problems import make_problems
from . import corefuncs
