# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Probing of the simulated annealing hyperparameters: each parameter is
perturbed in turn, and the run is performed again with the same seed to
measure the effect of the perturbation.
"""

import logging
import warnings
import numpy as np
import swarmanneal.common.typing as tp
from swarmanneal.common import errors
from swarmanneal.common.decorators import Registry
from swarmanneal.functions.base import Oracle
from . import sampling
from .annealing import run_sa
from .options import SAOptions


logger = logging.getLogger(__name__)


class Perturbation:
    """Increase and decrease functions of one parameter, with clipping into its valid range

    Parameters
    ----------
    increase: callable
        function returning the increased value
    decrease: callable
        function returning the decreased value
    lower: float
        smallest valid value
    upper: float
        largest valid value
    integer: bool
        whether the parameter is an integer
    """

    def __init__(
        self,
        increase: tp.Callable[[float], float],
        decrease: tp.Callable[[float], float],
        lower: float,
        upper: float = float("inf"),
        integer: bool = False,
    ) -> None:
        self.increase = increase
        self.decrease = decrease
        self.lower = lower
        self.upper = upper
        self.integer = integer

    def apply(self, value: float, direction: str) -> tp.Union[int, float]:
        func = {"increase": self.increase, "decrease": self.decrease}[direction]
        output = float(np.clip(func(value), self.lower, self.upper))
        return int(round(output)) if self.integer else output


PERTURBATIONS: Registry[Perturbation] = Registry()
PERTURBATIONS.register_name("initial_temperature", Perturbation(lambda x: x + 5, lambda x: x - 5, lower=1e-3))
PERTURBATIONS.register_name("annealing_schedule", Perturbation(lambda x: x + 0.02, lambda x: x - 0.02, lower=0.01, upper=0.99))
PERTURBATIONS.register_name("min_temperature", Perturbation(lambda x: 10 * x, lambda x: 0.1 * x, lower=0.0))
PERTURBATIONS.register_name("max_iterations_sa", Perturbation(lambda x: x + 500, lambda x: x - 500, lower=0, integer=True))
PERTURBATIONS.register_name("max_iterations_ls", Perturbation(lambda x: x + 500, lambda x: x - 500, lower=0, integer=True))
PERTURBATIONS.register_name("initial_step_size_sa", Perturbation(lambda x: x + 0.1, lambda x: 0.1 * x, lower=1e-6))
PERTURBATIONS.register_name("initial_step_size_ls", Perturbation(lambda x: x + 0.1, lambda x: 0.1 * x, lower=1e-6))
PERTURBATIONS.register_name("n_best_sa", Perturbation(lambda x: x + 1, lambda x: x - 1, lower=1, integer=True))
PERTURBATIONS.register_name("n_best_ls", Perturbation(lambda x: x + 1, lambda x: x - 1, lower=1, integer=True))


class ParameterEffect(tp.NamedTuple):
    """Best effect of perturbing one parameter (improvement is positive when the perturbation helps)"""

    name: str
    improvement: float
    direction: str
    options: SAOptions


def _run(oracle: Oracle, options: SAOptions) -> float:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", errors.InefficientSettingsWarning)
        return run_sa(oracle, options).best.value


def _with_seed(options: SAOptions, random_state: tp.Seed = None) -> SAOptions:
    if options.seed is not None:
        return options
    seed = int(sampling.make_random_state(random_state).randint(2**31))
    logger.info("No seed provided for comparing runs, using seed %s", seed)
    return options.copy(seed=seed)


def probe_parameters(
    oracle: Oracle,
    options: SAOptions,
    names: tp.Optional[tp.Iterable[str]] = None,
    base_value: tp.Optional[float] = None,
    random_state: tp.Seed = None,
) -> tp.List[ParameterEffect]:
    """Measures the effect of perturbing each parameter, one at a time

    Parameters
    ----------
    oracle: Oracle
        the function to minimize
    options: SAOptions
        the reference options. Every run uses the same seed (one is drawn if it is None).
    names: iterable of str
        names of the parameters to probe (all of PERTURBATIONS if None)
    base_value: float
        result of the run with the reference options, if already known
    random_state: int, np.random.RandomState or None
        random state used for drawing the seed of the runs when options.seed is None

    Returns
    -------
    list of ParameterEffect
        the best direction for each parameter, sorted by decreasing improvement
    """
    selected = PERTURBATIONS.select(names)
    options = _with_seed(options, random_state)
    if base_value is None:
        base_value = _run(oracle, options)
    effects: tp.List[ParameterEffect] = []
    for name, perturbation in selected:
        current = getattr(options, name)
        best: tp.Optional[ParameterEffect] = None
        for direction in ["increase", "decrease"]:
            value = perturbation.apply(current, direction)
            if value == current:
                continue
            perturbed = options.copy(**{name: value})
            effect = ParameterEffect(name, base_value - _run(oracle, perturbed), direction, perturbed)
            logger.debug("%s %s to %s: improvement %s", direction.capitalize(), name, value, effect.improvement)
            if best is None or effect.improvement > best.improvement:
                best = effect
        if best is not None:
            effects.append(best)
    return sorted(effects, key=lambda e: -e.improvement)


class TuningResult(tp.NamedTuple):
    options: SAOptions
    value: float
    applied: tp.List[ParameterEffect]


def tune(
    oracle: Oracle,
    options: SAOptions,
    rounds: int = 3,
    names: tp.Optional[tp.Iterable[str]] = None,
    random_state: tp.Seed = None,
) -> TuningResult:
    """Greedily applies the most effective perturbation, as long as it improves the result

    Parameters
    ----------
    oracle: Oracle
        the function to minimize
    options: SAOptions
        the starting options
    rounds: int
        maximum number of perturbations to apply
    names: iterable of str
        names of the parameters which can be perturbed (all of PERTURBATIONS if None)
    random_state: int, np.random.RandomState or None
        random state used for drawing the seed of the runs when options.seed is None
    """
    if rounds < 0:
        raise errors.ConfigurationError(f"rounds must be non-negative, got {rounds}")
    names = None if names is None else list(names)
    options = _with_seed(options, random_state)
    value = _run(oracle, options)
    applied: tp.List[ParameterEffect] = []
    for k in range(rounds):
        effects = probe_parameters(oracle, options, names=names, base_value=value)
        if not effects or effects[0].improvement <= 0:
            logger.info("No improving perturbation found at round %s, stopping", k + 1)
            break
        effect = effects[0]
        options = effect.options
        value -= effect.improvement
        applied.append(effect)
        logger.info("Round %s: %s %s (improvement %s, value %s)", k + 1, effect.direction, effect.name, effect.improvement, value)
    return TuningResult(options=options, value=value, applied=applied)
