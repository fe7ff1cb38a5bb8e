# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Option records of the firefly and simulated annealing optimizers.

Each algorithm has one canonical record. Records are validated at construction
and are not meant to be modified afterwards: use :code:`copy(**changes)` to get
a new, validated, record. Named presets are registered in :code:`presets`.
"""

import inspect
import warnings
import numpy as np
import swarmanneal.common.typing as tp
from swarmanneal.common import errors
from swarmanneal.common import tools
from swarmanneal.common.decorators import Registry


O = tp.TypeVar("O", bound="_Options")


class _Options:
    """Base class providing copy, equality and a short repr for option records"""

    def _validate(self) -> None:
        raise NotImplementedError

    @classmethod
    def _field_names(cls) -> tp.List[str]:
        return [x for x in inspect.signature(cls.__init__).parameters if x != "self"]

    def _check(self, condition: bool, message: str) -> None:
        if not condition:
            raise errors.ConfigurationError(f"Invalid {self.__class__.__name__}: {message}")

    def copy(self: O, **changes: tp.Any) -> O:
        """Returns a new validated record, with the provided fields updated"""
        kwargs = {name: getattr(self, name) for name in self._field_names()}
        unknown = set(changes) - set(kwargs)
        if unknown:
            raise errors.ConfigurationError(f"Unknown field(s) {sorted(unknown)} for {self.__class__.__name__}")
        kwargs.update(changes)
        return self.__class__(**kwargs)

    def __eq__(self, other: tp.Any) -> bool:
        if self.__class__ != other.__class__:
            return False
        return all(getattr(self, name) == getattr(other, name) for name in self._field_names())

    def __hash__(self) -> int:
        return hash(tuple(repr(getattr(self, name)) for name in self._field_names()))

    def __repr__(self) -> str:
        diff = tools.different_from_defaults(instance=self)
        reference = self.__class__()  # None defaults are replaced by records at construction
        diff = {x: y for x, y in diff.items() if y != getattr(reference, x)}
        params = ", ".join(f"{x}={y!r}" for x, y in sorted(diff.items()))
        return f"{self.__class__.__name__}({params})"


def _is_int(value: tp.Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


class FireflyRunOptions(_Options):
    """Options of one firefly run (one swarm, from initialization to stop)

    Parameters
    ----------
    swarm_size: int
        number of fireflies, constant during the run
    maximum_iterations: int
        maximum number of generations
    consider_stuck_after_iterations: int
        the run is stopped after this number of consecutive generations without improvement
    attractiveness_coefficient: float
        base attraction towards brighter fireflies (beta_0), in [0, 1]
    light_absorption_coefficient: float
        decay of the attraction with the squared distance (gamma), in [0, 1].
        The smaller, the wider the attraction field.
    movement_jitter_starting_coefficient: float
        initial amplitude of the random component of the moves
    movement_jitter_minimum_coefficient: float
        lower bound of the jitter coefficient
    movement_jitter_maximum_coefficient: float
        upper bound of the jitter coefficient
    movement_jitter_cooling_factor: float
        multiplicative decrease of the jitter at each generation while progressing, in (0, 1]
    movement_jitter_heating_factor: float
        multiplicative increase of the jitter when stagnating, at least 1
    movement_jitter_min_stuck_iterations_to_reheat: int
        number of generations without improvement after which the jitter is increased
        instead of decreased
    """

    def __init__(
        self,
        *,
        swarm_size: int = 150,
        maximum_iterations: int = 2000,
        consider_stuck_after_iterations: int = 500,
        attractiveness_coefficient: float = 1.0,
        light_absorption_coefficient: float = 0.025,
        movement_jitter_starting_coefficient: float = 0.01,
        movement_jitter_minimum_coefficient: float = 0.005,
        movement_jitter_maximum_coefficient: float = 1.0,
        movement_jitter_cooling_factor: float = 0.99,
        movement_jitter_heating_factor: float = 1.02,
        movement_jitter_min_stuck_iterations_to_reheat: int = 50,
    ) -> None:
        self.swarm_size = swarm_size
        self.maximum_iterations = maximum_iterations
        self.consider_stuck_after_iterations = consider_stuck_after_iterations
        self.attractiveness_coefficient = attractiveness_coefficient
        self.light_absorption_coefficient = light_absorption_coefficient
        self.movement_jitter_starting_coefficient = movement_jitter_starting_coefficient
        self.movement_jitter_minimum_coefficient = movement_jitter_minimum_coefficient
        self.movement_jitter_maximum_coefficient = movement_jitter_maximum_coefficient
        self.movement_jitter_cooling_factor = movement_jitter_cooling_factor
        self.movement_jitter_heating_factor = movement_jitter_heating_factor
        self.movement_jitter_min_stuck_iterations_to_reheat = movement_jitter_min_stuck_iterations_to_reheat
        self._validate()

    def _validate(self) -> None:
        self._check(_is_int(self.swarm_size) and self.swarm_size >= 1, f"swarm_size must be a positive int, got {self.swarm_size!r}")
        self._check(_is_int(self.maximum_iterations) and self.maximum_iterations >= 0,
                    f"maximum_iterations must be a non-negative int, got {self.maximum_iterations!r}")
        self._check(_is_int(self.consider_stuck_after_iterations) and self.consider_stuck_after_iterations >= 1,
                    f"consider_stuck_after_iterations must be a positive int, got {self.consider_stuck_after_iterations!r}")
        self._check(_is_int(self.movement_jitter_min_stuck_iterations_to_reheat) and self.movement_jitter_min_stuck_iterations_to_reheat >= 0,
                    "movement_jitter_min_stuck_iterations_to_reheat must be a non-negative int")
        for name in ["attractiveness_coefficient", "light_absorption_coefficient"]:
            value = getattr(self, name)
            self._check(0 <= value <= 1, f"{name} must be in [0, 1], got {value}")
        self._check(0 < self.movement_jitter_cooling_factor <= 1,
                    f"movement_jitter_cooling_factor must be in (0, 1], got {self.movement_jitter_cooling_factor}")
        self._check(self.movement_jitter_heating_factor >= 1,
                    f"movement_jitter_heating_factor must be at least 1, got {self.movement_jitter_heating_factor}")
        low, start, high = (self.movement_jitter_minimum_coefficient, self.movement_jitter_starting_coefficient,
                            self.movement_jitter_maximum_coefficient)
        self._check(0 <= low <= start <= high,
                    f"jitter coefficients must satisfy 0 <= minimum <= starting <= maximum, got ({low}, {start}, {high})")
        if self.swarm_size == 1:
            warnings.warn("A swarm of size 1 never moves, only its random initial point is evaluated.",
                          errors.InefficientSettingsWarning)


class FireflyOptions(_Options):
    """Options of a full firefly optimization: several independent restarts,
    optionally followed by refinement runs seeded at the best position.

    Parameters
    ----------
    seed: int or None
        seed of the random state from which every run derives its own state
    restart_count: int
        number of independent runs using :code:`run_options` (ignored if restart_variants is provided)
    run_options: FireflyRunOptions
        options of each restart (defaults to :code:`FireflyRunOptions()`)
    restart_variants: sequence of FireflyRunOptions
        if provided, one restart is performed for each of these options
    refinement_count: int
        number of refinement runs performed after the restarts
    refinement_options: FireflyRunOptions
        options of the refinement runs (defaults to the "refinement" preset)
    """

    def __init__(
        self,
        *,
        seed: tp.Optional[int] = None,
        restart_count: int = 4,
        run_options: tp.Optional[FireflyRunOptions] = None,
        restart_variants: tp.Optional[tp.Sequence[FireflyRunOptions]] = None,
        refinement_count: int = 0,
        refinement_options: tp.Optional[FireflyRunOptions] = None,
    ) -> None:
        self.seed = seed
        self.restart_count = restart_count
        self.run_options = FireflyRunOptions() if run_options is None else run_options
        self.restart_variants = None if restart_variants is None else tuple(restart_variants)
        self.refinement_count = refinement_count
        self.refinement_options = presets["refinement"]() if refinement_options is None else refinement_options
        self._validate()

    def _validate(self) -> None:
        self._check(self.seed is None or (_is_int(self.seed) and self.seed >= 0),
                    f"seed must be None or a non-negative int, got {self.seed!r}")
        self._check(_is_int(self.restart_count) and self.restart_count >= 0,
                    f"restart_count must be a non-negative int, got {self.restart_count!r}")
        self._check(_is_int(self.refinement_count) and self.refinement_count >= 0,
                    f"refinement_count must be a non-negative int, got {self.refinement_count!r}")
        runs = [self.run_options, self.refinement_options] + list(self.restart_variants or [])
        self._check(all(isinstance(r, FireflyRunOptions) for r in runs), "run options must be FireflyRunOptions instances")

    def restart_run_options(self) -> tp.List[FireflyRunOptions]:
        """Options of each of the restarts, in order"""
        if self.restart_variants is not None:
            return list(self.restart_variants)
        return [self.run_options] * self.restart_count


class SAOptions(_Options):
    """Options of the simulated annealing optimizer and of its local search phase

    Parameters
    ----------
    initial_temperature: float
        starting temperature of the global phase
    annealing_schedule: float
        the temperature is multiplied by this factor after each non-improving step, in (0, 1)
    min_temperature: float
        the global phase stops once the temperature is below or equal to this value
    max_iterations_sa: int
        maximum number of steps of the global phase
    max_iterations_ls: int
        maximum number of steps of the local search phase
    initial_step_size_sa: float
        move size of the global phase neighborhoods
    initial_step_size_ls: float
        initial move size of the local search neighborhoods
    n_best_sa: int
        number of most sensitive dimensions used to build global neighborhoods
    n_best_ls: int
        number of most sensitive dimensions used to build local neighborhoods
    seed: int or None
        seed of the random state of the run
    ls_step_decrease: float
        decrease of the local search step once the search stagnates (multiplicative
        when the step is at most 1, subtractive otherwise), in (0, 1)
    probe_delta: float
        size of the probes used for ranking dimension sensitivity
    probe_both_directions: bool
        whether to probe in both directions along each dimension (upwards only otherwise)
    step_multiples_sa: sequence of float
        multiples of the step used for each candidate move of the global phase
    step_multiples_ls: sequence of float
        multiples of the step used for each candidate move of the local search
    stagnation_window: int
        number of recent best values considered for stagnation detection
    stagnation_tolerance: float
        the local search stagnates when the recent best values spread within this tolerance
    minimum_step_size: float
        the local search stops once the step goes below this value
    """

    def __init__(
        self,
        *,
        initial_temperature: float = 100.0,
        annealing_schedule: float = 0.95,
        min_temperature: float = 1e-3,
        max_iterations_sa: int = 2000,
        max_iterations_ls: int = 2000,
        initial_step_size_sa: float = 0.5,
        initial_step_size_ls: float = 0.1,
        n_best_sa: int = 5,
        n_best_ls: int = 5,
        seed: tp.Optional[int] = None,
        ls_step_decrease: float = 0.5,
        probe_delta: float = 1e-3,
        probe_both_directions: bool = True,
        step_multiples_sa: tp.Sequence[float] = (1, 2, 3, 4, 5),
        step_multiples_ls: tp.Sequence[float] = (1,),
        stagnation_window: int = 10,
        stagnation_tolerance: float = 1e-2,
        minimum_step_size: float = 1e-15,
    ) -> None:
        self.initial_temperature = initial_temperature
        self.annealing_schedule = annealing_schedule
        self.min_temperature = min_temperature
        self.max_iterations_sa = max_iterations_sa
        self.max_iterations_ls = max_iterations_ls
        self.initial_step_size_sa = initial_step_size_sa
        self.initial_step_size_ls = initial_step_size_ls
        self.n_best_sa = n_best_sa
        self.n_best_ls = n_best_ls
        self.seed = seed
        self.ls_step_decrease = ls_step_decrease
        self.probe_delta = probe_delta
        self.probe_both_directions = probe_both_directions
        self.step_multiples_sa = tuple(step_multiples_sa)
        self.step_multiples_ls = tuple(step_multiples_ls)
        self.stagnation_window = stagnation_window
        self.stagnation_tolerance = stagnation_tolerance
        self.minimum_step_size = minimum_step_size
        self._validate()

    def _validate(self) -> None:
        self._check(self.initial_temperature > 0, f"initial_temperature must be positive, got {self.initial_temperature}")
        self._check(0 < self.annealing_schedule < 1, f"annealing_schedule must be in (0, 1), got {self.annealing_schedule}")
        self._check(self.min_temperature >= 0, f"min_temperature must be non-negative, got {self.min_temperature}")
        for name in ["max_iterations_sa", "max_iterations_ls"]:
            value = getattr(self, name)
            self._check(_is_int(value) and value >= 0, f"{name} must be a non-negative int, got {value!r}")
        for name in ["n_best_sa", "n_best_ls", "stagnation_window"]:
            value = getattr(self, name)
            self._check(_is_int(value) and value >= 1, f"{name} must be a positive int, got {value!r}")
        for name in ["initial_step_size_sa", "initial_step_size_ls", "probe_delta", "minimum_step_size"]:
            value = getattr(self, name)
            self._check(value > 0, f"{name} must be positive, got {value}")
        self._check(0 < self.ls_step_decrease < 1, f"ls_step_decrease must be in (0, 1), got {self.ls_step_decrease}")
        self._check(self.stagnation_tolerance >= 0, f"stagnation_tolerance must be non-negative, got {self.stagnation_tolerance}")
        self._check(self.seed is None or (_is_int(self.seed) and self.seed >= 0),
                    f"seed must be None or a non-negative int, got {self.seed!r}")
        for name in ["step_multiples_sa", "step_multiples_ls"]:
            multiples = getattr(self, name)
            self._check(bool(multiples) and all(m > 0 for m in multiples), f"{name} must be a non-empty sequence of positive values")
        if self.min_temperature >= self.initial_temperature:
            warnings.warn(f"min_temperature ({self.min_temperature}) is not below initial_temperature ({self.initial_temperature}), "
                          "the global phase will be skipped.", errors.InefficientSettingsWarning)


# # # # # presets # # # # #


presets: Registry[tp.Callable[[], FireflyRunOptions]] = Registry()


@presets.register
def exploration() -> FireflyRunOptions:
    """Large swarm with a strong jitter, for the initial restarts"""
    return FireflyRunOptions(movement_jitter_starting_coefficient=0.05, movement_jitter_minimum_coefficient=0.01)


@presets.register
def refinement() -> FireflyRunOptions:
    """Smaller swarm with a tiny jitter, for runs seeded at the best known position"""
    return FireflyRunOptions(
        swarm_size=50,
        maximum_iterations=1000,
        consider_stuck_after_iterations=200,
        movement_jitter_starting_coefficient=0.001,
        movement_jitter_minimum_coefficient=0.0001,
        movement_jitter_maximum_coefficient=0.01,
        movement_jitter_cooling_factor=0.98,
    )


@presets.register
def low_jitter() -> FireflyRunOptions:
    return FireflyRunOptions(
        movement_jitter_starting_coefficient=0.005,
        movement_jitter_minimum_coefficient=0.001,
        movement_jitter_maximum_coefficient=0.05,
    )


@presets.register
def medium_jitter() -> FireflyRunOptions:
    return FireflyRunOptions(
        movement_jitter_starting_coefficient=0.01,
        movement_jitter_minimum_coefficient=0.005,
        movement_jitter_maximum_coefficient=0.5,
    )


@presets.register
def high_jitter() -> FireflyRunOptions:
    return FireflyRunOptions(
        movement_jitter_starting_coefficient=0.1,
        movement_jitter_minimum_coefficient=0.01,
        movement_jitter_maximum_coefficient=1.0,
        movement_jitter_heating_factor=1.05,
    )


def jitter_profiles() -> tp.List[FireflyRunOptions]:
    """Low, medium and high jitter variants, to use as restart variants"""
    return [presets[name]() for name in ["low_jitter", "medium_jitter", "high_jitter"]]
