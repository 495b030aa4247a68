from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Iterable

import numpy as np

from walkgen.errors import ConfigurationError, SequencingError
from walkgen.models.geometry import planar_rotations


@dataclass(frozen=True, eq=False)
class Step:
    position: np.ndarray  # (2,) ground position of the foot frame
    angle: float          # yaw
    impact_time: float

    def __post_init__(self):
        p = np.array(self.position, dtype=float).reshape(-1)
        if p.shape != (2,) or not np.all(np.isfinite(p)):
            raise SequencingError(f"step position must be a finite 2D vector, got {self.position!r}")
        if not (np.isfinite(self.angle) and np.isfinite(self.impact_time)):
            raise SequencingError("step angle and impact time must be finite")
        p.flags.writeable = False
        object.__setattr__(self, "position", p)
        object.__setattr__(self, "angle", float(self.angle))
        object.__setattr__(self, "impact_time", float(self.impact_time))

    def with_pose(self, position: np.ndarray, angle: float) -> Step:
        return replace(self, position=position, angle=angle)

    def __repr__(self):
        return f"Step(position={self.position.tolist()}, angle={self.angle:.4f}, impact_time={self.impact_time:.4f})"


class FootstepSequence:
    """
    Steps of one foot, with strictly increasing impact times.
    """

    def __init__(self, steps: Iterable[Step] = ()):
        self._steps: list[Step] = []
        for s in steps:
            self.add_step(s)

    def add_step(self, step: Step):
        if self._steps and step.impact_time <= self._steps[-1].impact_time:
            raise SequencingError(
                f"impact time {step.impact_time} does not follow the last one ({self._steps[-1].impact_time})"
            )
        self._steps.append(step)

    def __len__(self):
        return len(self._steps)

    def __iter__(self):
        return iter(self._steps)

    def __getitem__(self, i):
        return self._steps[i]

    def __repr__(self):
        return f"FootstepSequence({self._steps!r})"

    @property
    def impact_times(self) -> np.ndarray:
        return np.array([s.impact_time for s in self._steps], dtype=float)

    def is_empty(self) -> bool:
        return not self._steps

    def first_step(self) -> Step:
        if not self._steps:
            raise SequencingError("empty footstep sequence")
        return self._steps[0]

    def last_step(self) -> Step:
        if not self._steps:
            raise SequencingError("empty footstep sequence")
        return self._steps[-1]

    def present_step(self, t: float) -> Step | None:
        # last step already on the ground at time t
        present = None
        for s in self._steps:
            if s.impact_time > t:
                break
            present = s
        return present

    def keep_only_present_step(self, t: float) -> Step:
        step = self.present_step(t)
        if step is None:
            raise SequencingError(
                f"no step has impacted at or before t={t}; the start time is not compatible with previous runs"
            )
        self._steps = [step]
        return step

    def clear(self):
        self._steps = []

    def copy(self) -> FootstepSequence:
        out = FootstepSequence()
        out._steps = list(self._steps)
        return out


# planner(left, right, init_time, end_time) -> (left, right), chronologically ordered and extended
FootstepPlanner = Callable[[FootstepSequence, FootstepSequence, float, float],
                           tuple[FootstepSequence, FootstepSequence]]


@dataclass
class StraightLinePlanner:
    """
    Alternating walk along a fixed heading:
        without steps, both feet are placed side by side at init_time
        then the foot that has been on the ground longest moves step_length forward
        one step every step_time, until end_time.
    """
    step_length: float = 0.1
    step_width: float = 0.16
    step_time: float = 1.0
    heading: float = 0.0
    origin: np.ndarray = field(default_factory=lambda: np.zeros(2))
    first_foot: str = "right"

    def __post_init__(self):
        if self.step_time <= 0.0:
            raise ConfigurationError(f"step_time must be positive, got {self.step_time}")
        if self.first_foot not in ("left", "right"):
            raise ConfigurationError(f"first_foot must be 'left' or 'right', got {self.first_foot!r}")
        self.origin = np.asarray(self.origin, dtype=float).reshape(2)

    def __call__(self, left: FootstepSequence, right: FootstepSequence, init_time: float, end_time: float):
        left, right = left.copy(), right.copy()
        R = planar_rotations(self.heading)[0]
        forward, lateral = R[:, 0], R[:, 1]

        if left.is_empty() != right.is_empty():
            raise SequencingError("both feet need a current step, or none of them")
        if left.is_empty():
            left.add_step(Step(self.origin + 0.5 * self.step_width * lateral, self.heading, init_time))
            right.add_step(Step(self.origin - 0.5 * self.step_width * lateral, self.heading, init_time))

        feet = {"left": left, "right": right}
        while True:
            last_l, last_r = left.last_step(), right.last_step()
            if last_l.impact_time < last_r.impact_time:
                mover = "left"
            elif last_r.impact_time < last_l.impact_time:
                mover = "right"
            else:
                mover = self.first_foot
            # keep the cadence of the committed steps, restart it after a stop
            t_next = max(last_l.impact_time, last_r.impact_time) + self.step_time
            if t_next <= init_time:
                t_next = init_time + self.step_time
            if t_next > end_time:
                break
            previous = feet[mover].last_step()
            feet[mover].add_step(Step(previous.position + self.step_length * forward, self.heading, t_next))

        return left, right
