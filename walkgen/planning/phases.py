from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np

from walkgen.config import GaitConfig
from walkgen.errors import ConfigurationError, InfeasibleTimingError, SequencingError
from walkgen.planning.footsteps import FootstepSequence, Step

logger = logging.getLogger(__name__)

FEET = ("left", "right")


class StepPhase(Enum):
    STANCE = "stance"
    SWITCH_IN = "switch_in"    # grounded, receiving weight
    SWITCH_OUT = "switch_out"  # grounded, releasing weight before lifting
    SWING = "swing"


def other_foot(foot: str) -> str:
    return "right" if foot == "left" else "left"


@dataclass(frozen=True)
class Impact:
    foot: str
    step: Step


@dataclass(frozen=True)
class SwitchWindow:
    """
    Double support stretch in which the weight moves towards `incoming`
    (towards the middle of the feet when `incoming` is None).
    Samples [start, end) are switching; the transfer is complete at sample `end`.
    """
    start: int
    end: int
    start_time: float  # earlier than the first sample when continuing a switch
    incoming: str | None
    kind: str          # "initial", "full" or "terminal"
    merge: int | None = None


@dataclass(frozen=True)
class SwingWindow:
    foot: str
    start: int  # lift-off sample
    end: int    # touch-down sample
    lift_off: Step
    touch_down: Step


@dataclass(frozen=True, eq=False)
class PhaseTimeline:
    init_time: float
    dt: float
    left_phases: np.ndarray    # (N,) StepPhase
    right_phases: np.ndarray   # (N,) StepPhase
    phase_shifts: np.ndarray   # indices where a phase changes, last = N
    merge_points: np.ndarray   # indices where a new trajectory can be merged, last = N
    left_fixed: np.ndarray     # (N,) bool
    initial_left: Step
    initial_right: Step
    switches: tuple
    swings: tuple

    @property
    def n_samples(self) -> int:
        return int(self.left_phases.shape[0])

    @property
    def times(self) -> np.ndarray:
        return self.init_time + self.dt * np.arange(self.n_samples)

    def time_of(self, k: int) -> float:
        return self.init_time + self.dt * k

    def index_of(self, t: float) -> int:
        return _index_of(t, self.init_time, self.dt)

    def phases(self, foot: str) -> np.ndarray:
        return self.left_phases if foot == "left" else self.right_phases

    def initial_step(self, foot: str) -> Step:
        return self.initial_left if foot == "left" else self.initial_right

    def contact(self, foot: str) -> np.ndarray:
        return self.phases(foot) != StepPhase.SWING

    @property
    def double_support(self) -> np.ndarray:
        return self.contact("left") & self.contact("right")

    def phase_at(self, foot: str, t: float) -> StepPhase:
        # clamp to the timeline, like segment lookups
        k = min(max(self.index_of(t), 0), self.n_samples - 1)
        return self.phases(foot)[k]

    def active_switch_end(self, t: float) -> float | None:
        """End time of the weight transfer in progress at time t, None outside of one."""
        for window in self.switches:
            if window.incoming is None:
                continue
            t_end = self.time_of(window.end)
            if window.start_time <= t < t_end:
                return t_end
        return None


def _index_of(t: float, init_time: float, dt: float) -> int:
    return int(np.floor((t - init_time) / dt + 0.5))


def order_steps(left, right, init_time: float):
    """
    Merge the impacts of both feet after init_time in chronological order.
    Returns (present left step, present right step, [Impact, ...]).
    """
    sequences = {}
    for foot, seq in (("left", left), ("right", right)):
        if not isinstance(seq, FootstepSequence):
            seq = FootstepSequence(seq)
        if len(seq) == 0:
            raise SequencingError(f"the {foot} footstep sequence is empty")
        if np.any(np.diff(seq.impact_times) <= 0.0):
            raise SequencingError(f"the {foot} footsteps are not chronologically ordered")
        sequences[foot] = seq

    present = {}
    for foot, seq in sequences.items():
        present[foot] = seq.present_step(init_time)
        if present[foot] is None:
            raise SequencingError(
                f"init_time={init_time} precedes the first impact of the {foot} foot "
                f"({seq.first_step().impact_time}); both feet must be on the ground"
            )

    impacts = [Impact(foot, s) for foot, seq in sequences.items() for s in seq if s.impact_time > init_time]
    impacts.sort(key=lambda e: (e.step.impact_time, e.foot))
    for a, b in zip(impacts, impacts[1:]):
        if b.step.impact_time == a.step.impact_time:
            raise InfeasibleTimingError(
                f"both feet land at t={a.step.impact_time}: they would be airborne at the same time"
            )
    return present["left"], present["right"], impacts


def step_timings(t_prev: float, t_next: float, config: GaitConfig, half: bool = False):
    """
    Split a step [t_prev, t_next] in switch and swing time.
    Returns (switch_time, swing_time, paused).
    """
    step_time = t_next - t_prev
    switch_time = config.switch_ratio * step_time
    if half:
        switch_time *= 0.5
    swing_time = step_time - switch_time

    paused = False
    if config.pause_active and (swing_time > config.max_swing_time or switch_time > config.max_switch_time):
        # walk at the nominal pace and stand still in double support for the rest
        swing_time = config.nominal_swing_time
        switch_time = step_time - swing_time
        paused = True

    if swing_time <= 0.0 or switch_time <= 0.0:
        raise InfeasibleTimingError(
            f"step [{t_prev}, {t_next}] leaves switch={switch_time:.4f}s swing={swing_time:.4f}s"
        )
    return switch_time, swing_time, paused


def _first_switch_start(present: dict, mover: str, init_time: float, t_next: float, config: GaitConfig,
                        switch_end_time: float | None = None):
    """
    Start time of the first switch, whether it is a half switch, and the end
    time it must keep (None when it follows from the step timing).
    A switch already in progress at init_time (the other foot landed last, less
    than a switch time ago) keeps its original timing. switch_end_time is the
    end of that switch in the trajectory being continued; without it the end
    is derived from t_next.
    """
    stance = other_foot(mover)
    t_land = present[stance].impact_time
    if present[mover].impact_time < t_land < init_time:
        if switch_end_time is not None:
            if init_time < switch_end_time:
                return t_land, False, float(switch_end_time)
        else:
            full_switch, _, _ = step_timings(t_land, t_next, config)
            if init_time < t_land + full_switch:
                return t_land, False, None
    return init_time, True, None


def build_phase_timeline(left, right, init_time: float, dt: float, config: GaitConfig,
                         switch_end_time: float | None = None) -> PhaseTimeline:
    """
    switch_end_time: end of the switch in progress at init_time, when continuing
    a previous timeline from inside that switch.
    """
    if not (np.isfinite(dt) and dt > 0.0):
        raise ConfigurationError(f"dT must be positive, got {dt}")
    if not np.isfinite(init_time):
        raise SequencingError(f"init_time must be finite, got {init_time}")

    present_l, present_r, impacts = order_steps(left, right, init_time)
    present = {"left": present_l, "right": present_r}

    t_last = impacts[-1].step.impact_time if impacts else init_time
    end_time = t_last + config.terminal_half_switch_time
    n = _index_of(end_time, init_time, dt) + 1

    phases = {foot: np.full(n, StepPhase.STANCE, dtype=object) for foot in FEET}
    left_fixed = np.ones(n, dtype=bool)
    switches, swings = [], []

    current = dict(present)
    for k, impact in enumerate(impacts):
        mover, t_next = impact.foot, impact.step.impact_time
        stance = other_foot(mover)

        fixed_end = None
        if k == 0:
            start_time, half, fixed_end = _first_switch_start(present, mover, init_time, t_next, config, switch_end_time)
        else:
            start_time, half = impacts[k - 1].step.impact_time, False
        if fixed_end is None:
            switch_time, swing_time, paused = step_timings(start_time, t_next, config, half)
        else:
            # the executed part of the switch cannot change
            switch_time, swing_time, paused = fixed_end - start_time, t_next - fixed_end, False
            if swing_time <= 0.0:
                raise InfeasibleTimingError(
                    f"the {mover} step at t={t_next} lands before the switch in progress ends (t={fixed_end})"
                )
        if paused:
            logger.debug("pause before the %s step at t=%.3f: switch %.3fs", mover, t_next, switch_time)

        s = max(_index_of(start_time, init_time, dt), 0)
        e_switch = max(_index_of(start_time + switch_time, init_time, dt), s + 1)
        e = _index_of(t_next, init_time, dt)
        if e <= e_switch:
            raise InfeasibleTimingError(
                f"no sample left for the {mover} swing ending at t={t_next} "
                f"(switch {switch_time:.4f}s, swing {swing_time:.4f}s, dT {dt})"
            )

        phases[mover][s:e_switch] = StepPhase.SWITCH_OUT
        phases[stance][s:e_switch] = StepPhase.SWITCH_IN
        phases[mover][e_switch:e] = StepPhase.SWING
        phases[stance][e_switch:e] = StepPhase.STANCE

        kind = "initial" if k == 0 else "full"
        merge = s + (e_switch - s) // 2 if kind == "full" and e_switch - s >= 2 else None
        # the fixed foot changes in the middle of the switch
        if merge is None:
            left_fixed[s:e] = stance == "left"
        else:
            left_fixed[s:merge] = left_fixed[s - 1]
            left_fixed[merge:e] = stance == "left"

        switches.append(SwitchWindow(s, e_switch, start_time, stance, kind, merge))
        swings.append(SwingWindow(mover, e_switch, e, current[mover], impact.step))
        current[mover] = impact.step

    s = _index_of(t_last, init_time, dt)
    if config.terminal_half_switch_time > 0.0 and n - 1 > s:
        if impacts:
            landed = impacts[-1].foot
        elif present_l.impact_time != present_r.impact_time:
            landed = "left" if present_l.impact_time > present_r.impact_time else "right"
        else:
            landed = None
        if landed is not None:
            phases[landed][s:] = StepPhase.SWITCH_IN
            phases[other_foot(landed)][s:] = StepPhase.SWITCH_OUT
            left_fixed[s:] = landed == "left"
        elif s > 0:
            left_fixed[s:] = left_fixed[s - 1]
        switches.append(SwitchWindow(s, n - 1, t_last, None, "terminal"))
    elif n > 1:
        left_fixed[n - 1] = left_fixed[n - 2]

    changed = (phases["left"][1:] != phases["left"][:-1]) | (phases["right"][1:] != phases["right"][:-1])
    phase_shifts = np.append(np.flatnonzero(changed) + 1, n).astype(int)
    merge_points = np.array([w.merge for w in switches if w.merge is not None] + [n], dtype=int)

    for a in (phases["left"], phases["right"], left_fixed, phase_shifts, merge_points):
        a.flags.writeable = False

    logger.debug("phase timeline: %d samples, %d steps, merge points %s", n, len(impacts), merge_points.tolist())
    return PhaseTimeline(
        init_time=float(init_time),
        dt=float(dt),
        left_phases=phases["left"],
        right_phases=phases["right"],
        phase_shifts=phase_shifts,
        merge_points=merge_points,
        left_fixed=left_fixed,
        initial_left=present_l,
        initial_right=present_r,
        switches=tuple(switches),
        swings=tuple(swings),
    )
