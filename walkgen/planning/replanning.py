from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

from walkgen.config import GaitConfig
from walkgen.errors import ConfigurationError, SequencingError
from walkgen.models.geometry import compose_yaw
from walkgen.planning.footsteps import FootstepPlanner, FootstepSequence, Step
from walkgen.planning.interpolator import FeetInterpolator, GaitTrajectory
from walkgen.planning.states import BoundaryCondition, GenerationMode

logger = logging.getLogger(__name__)


class CoordinatorState(Enum):
    FRESH = "fresh"            # no trajectory yet, only generate() is allowed
    REPLANNING = "replanning"  # regenerate() continues the last trajectory


@dataclass(frozen=True, eq=False)
class MeasuredStep:
    """Measured pose of a foot that is currently on the ground."""
    position: np.ndarray
    angle: float

    def __post_init__(self):
        p = np.array(self.position, dtype=float).reshape(-1)
        if p.shape != (2,) or not np.all(np.isfinite(p)) or not np.isfinite(self.angle):
            raise SequencingError(f"invalid measured step: position={self.position!r}, angle={self.angle!r}")
        object.__setattr__(self, "position", p)
        object.__setattr__(self, "angle", float(self.angle))


def correct_step(previous: Step, measured: MeasuredStep) -> Step:
    """
    The committed step moved to the measured position. Its yaw is the committed
    yaw rotated by the measured-minus-commanded rotation, so it stays close to
    the committed angle even when the measurement wraps around.
    """
    return previous.with_pose(measured.position, compose_yaw(previous.angle, measured.angle))


class ReplanningCoordinator:
    """
    Owns the footstep sequences of both feet across successive calls.

    generate() starts from scratch; regenerate() trims the retained steps to the
    ones on the ground at the new start time, optionally corrects them with
    measurements, asks the planner for new steps and interpolates again from the
    boundary state of the previous trajectory. A call either returns a complete
    GaitTrajectory and commits the new sequences, or raises and leaves the
    retained state as it was.
    """

    def __init__(self, config: GaitConfig | None = None, planner: FootstepPlanner | None = None):
        self.config = config if config is not None else GaitConfig()
        self.planner = planner
        self._interpolator = FeetInterpolator(self.config)
        self._left = FootstepSequence()
        self._right = FootstepSequence()
        self._state = CoordinatorState.FRESH
        self._last_init_time = None
        self._trajectory = None

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def left_steps(self) -> FootstepSequence:
        return self._left.copy()

    @property
    def right_steps(self) -> FootstepSequence:
        return self._right.copy()

    @property
    def trajectory(self) -> GaitTrajectory | None:
        return self._trajectory

    def boundary_at(self, merge_index: int) -> BoundaryCondition:
        if self._trajectory is None:
            raise SequencingError("no trajectory has been generated yet")
        return self._trajectory.boundary_at(merge_index)

    def _extend(self, left: FootstepSequence, right: FootstepSequence, init_time: float, end_time: float):
        if end_time < init_time:
            raise SequencingError(f"end_time={end_time} precedes init_time={init_time}")
        left, right = self.planner(left, right, init_time, end_time)
        return FootstepSequence(left), FootstepSequence(right)

    def _commit(self, left, right, init_time, trajectory, state):
        self._left, self._right = left, right
        self._last_init_time = float(init_time)
        self._trajectory = trajectory
        self._state = state

    def generate(self, init_time: float, dt: float, end_time: float | None = None,
                 left=None, right=None,
                 mode: GenerationMode | None = None,
                 boundary: BoundaryCondition | None = None) -> GaitTrajectory:
        """
        Fresh generation. Uses the given footsteps (extended by the planner when
        both a planner and end_time are available) or, without footsteps, lets
        the planner build the whole sequence up to end_time.
        """
        if (left is None) != (right is None):
            raise SequencingError("give the footsteps of both feet, or none of them")

        if left is None:
            if self.planner is None or end_time is None:
                raise ConfigurationError("generation without footsteps needs a planner and an end_time")
            left, right = self._extend(FootstepSequence(), FootstepSequence(), init_time, end_time)
        else:
            left, right = FootstepSequence(left), FootstepSequence(right)
            if self.planner is not None and end_time is not None:
                left, right = self._extend(left, right, init_time, end_time)

        trajectory = self._interpolator.interpolate(left, right, init_time, dt, boundary=boundary, mode=mode)
        self._commit(left, right, init_time, trajectory, CoordinatorState.REPLANNING)
        logger.info("generated %d samples from t=%.3f (%s)", trajectory.n_samples, init_time, trajectory.mode.value)
        return trajectory

    def regenerate(self, init_time: float, dt: float, end_time: float,
                   boundary: BoundaryCondition,
                   measured_left: MeasuredStep | None = None,
                   measured_right: MeasuredStep | None = None) -> GaitTrajectory:
        """
        Continue the last trajectory from init_time (normally one of its merge
        points) with `boundary` (normally its boundary state there). The mode
        follows the boundary type.
        """
        if self._state is CoordinatorState.FRESH:
            raise SequencingError("nothing to replan: call generate() first")
        if init_time < self._last_init_time:
            raise SequencingError(
                f"init_time={init_time} precedes the previous start time {self._last_init_time}"
            )
        if boundary is None:
            raise SequencingError("replanning needs the boundary state at the merge point")
        if self.planner is None:
            raise ConfigurationError("replanning needs a footstep planner")

        left, right = self._left.copy(), self._right.copy()
        try:
            previous_left = left.keep_only_present_step(init_time)
            previous_right = right.keep_only_present_step(init_time)
        except SequencingError:
            logger.warning("init_time=%.3f is not compatible with previous runs; call generate() instead", init_time)
            raise

        if measured_left is not None:
            left = FootstepSequence([correct_step(previous_left, measured_left)])
        if measured_right is not None:
            right = FootstepSequence([correct_step(previous_right, measured_right)])

        # the transfer under way keeps its timing whatever the new steps are
        switch_end = self._trajectory.timeline.active_switch_end(init_time)

        left, right = self._extend(left, right, init_time, end_time)
        trajectory = self._interpolator.interpolate(left, right, init_time, dt, boundary=boundary,
                                                    switch_end_time=switch_end)
        self._commit(left, right, init_time, trajectory, CoordinatorState.REPLANNING)
        logger.info("replanned %d samples from t=%.3f (%s)", trajectory.n_samples, init_time, trajectory.mode.value)
        return trajectory
