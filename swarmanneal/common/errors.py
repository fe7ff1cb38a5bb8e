# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Errors and warnings raised by swarmanneal.

Configuration errors are programming mistakes: they are raised immediately
and never retried. Exceptions raised by the objective function itself are
never wrapped and propagate unchanged.
"""


# base classes


class SwarmAnnealError(Exception):
    """Base class for error raised by swarmanneal"""


class SwarmAnnealWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class ConfigurationError(ValueError, SwarmAnnealError):
    """Invalid option value, bounds or swarm size"""


class DimensionMismatchError(ConfigurationError):
    """A position does not have the dimension of the objective function"""


class NoSolutionError(RuntimeError, SwarmAnnealError):
    """The orchestrator was configured to perform no run at all"""


class SwarmInvariantError(RuntimeError, SwarmAnnealError):
    """The swarm size changed during an iteration (this is a bug)"""


# warnings


class BadLossWarning(RuntimeWarning, SwarmAnnealWarning):
    """The objective function returned an unhelpful value (eg: NaN)"""


class InefficientSettingsWarning(RuntimeWarning, SwarmAnnealWarning):
    """Optimization settings are valid but not sensible"""
