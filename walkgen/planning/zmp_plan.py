import numpy as np

from walkgen.config import GaitConfig
from walkgen.errors import InfeasibleTimingError
from walkgen.models.geometry import to_world
from walkgen.models.splines import from_boundary_conditions, rest_to_rest
from walkgen.planning.phases import PhaseTimeline, StepPhase
from walkgen.planning.states import InitialState

WEIGHT_TOLERANCE = 1e-6


def _transfer_target(incoming) -> float:
    if incoming is None:
        return 0.5
    return 1.0 if incoming == "left" else 0.0


def weight_in_left_polynomial(timeline: PhaseTimeline, initial: InitialState):
    """
    Piecewise polynomial of the weight portion on the left foot.
    Knots at the start and end of every switch window, zero velocity at each
    window end; the first knot carries the (position, velocity, acceleration)
    of `initial`. Returns None for a single-sample timeline.
    """
    knots = [timeline.time_of(0)]
    conditions = [[initial.position, initial.velocity, initial.acceleration]]
    current = initial.position

    for window in timeline.switches:
        t_start, t_end = timeline.time_of(window.start), timeline.time_of(window.end)
        if t_start > knots[-1]:
            knots.append(t_start)
            conditions.append([current, 0.0])
        current = _transfer_target(window.incoming)
        knots.append(t_end)
        conditions.append([current, 0.0])

    t_final = timeline.time_of(timeline.n_samples - 1)
    if t_final > knots[-1]:
        knots.append(t_final)
        conditions.append([current, 0.0])

    if len(knots) < 2:
        return None
    return from_boundary_conditions(knots, conditions)


def compute_foot_weight_portion(timeline: PhaseTimeline, initial: InitialState):
    """Weight portion on the left foot (N,), each element in [0, 1], and its polynomial."""
    poly = weight_in_left_polynomial(timeline, initial)
    if poly is None:
        return np.full(timeline.n_samples, initial.position), None
    weight = poly(timeline.times)
    if weight.min() < -WEIGHT_TOLERANCE or weight.max() > 1.0 + WEIGHT_TOLERANCE:
        k = int(np.argmax(np.abs(weight - 0.5)))
        raise InfeasibleTimingError(
            f"the initial weight state {initial} cannot reach the next transfer in time "
            f"(weight in left {weight[k]:.4f} at t={timeline.time_of(k):.3f})"
        )
    return np.clip(weight, 0.0, 1.0), poly


def mirror_weight_portion(weight: np.ndarray) -> np.ndarray:
    return 1.0 - weight


def weight_states_at(poly, timeline: PhaseTimeline, indices, initial: InitialState) -> tuple:
    """InitialState of the left weight at each index (an index past the end maps to the last sample)."""
    states = []
    for k in indices:
        k = min(int(k), timeline.n_samples - 1)
        if poly is None:
            states.append(initial)
            continue
        t = timeline.time_of(k)
        states.append(InitialState(float(np.clip(poly(t), 0.0, 1.0)), float(poly(t, 1)), float(poly(t, 2))))
    return tuple(states)


def compute_local_zmp(timeline: PhaseTimeline, foot: str, stance_zmp: np.ndarray, switch_zmp: np.ndarray) -> np.ndarray:
    """
    ZMP in the foot frame (N, 2):
        stance / switch-in: stance offset
        switch-out: cubic from the stance offset to the initial-switch offset
        swing: last grounded value
    The terminal switch keeps both feet at their stance offsets.
    """
    n = timeline.n_samples
    zmp = np.tile(np.asarray(stance_zmp, dtype=float), (n, 1))

    for window in timeline.switches:
        if window.incoming is None or window.incoming == foot:
            continue
        t0, t1 = window.start_time, timeline.time_of(window.end)
        t = timeline.times[window.start:window.end]
        for axis in range(2):
            zmp[window.start:window.end, axis] = rest_to_rest(t0, t1, stance_zmp[axis], switch_zmp[axis])(t)

    phases = timeline.phases(foot)
    for k in range(1, n):
        if phases[k] is StepPhase.SWING:
            zmp[k] = zmp[k - 1]
    return zmp


def compute_global_zmp(left_position, left_yaw, left_zmp, weight_in_left,
                       right_position, right_yaw, right_zmp, weight_in_right) -> np.ndarray:
    """Weighted sum of the two local ZMPs expressed in the world frame."""
    zl = to_world(left_position, left_yaw, left_zmp)
    zr = to_world(right_position, right_yaw, right_zmp)
    return weight_in_left[:, None] * zl + weight_in_right[:, None] * zr


def generate_weight_and_zmp(timeline: PhaseTimeline, feet: dict, config: GaitConfig, initial: InitialState) -> dict:
    """
    feet: {"left": (positions, yaw), "right": (positions, yaw)}
    Returns a dict with weight_in_left/right, left/right_zmp_local, zmp and
    the InitialState at every merge point.
    """
    weight_in_left, poly = compute_foot_weight_portion(timeline, initial)
    weight_in_right = mirror_weight_portion(weight_in_left)

    left_zmp = compute_local_zmp(timeline, "left", config.stance_zmp("left"), config.switch_zmp("left"))
    right_zmp = compute_local_zmp(timeline, "right", config.stance_zmp("right"), config.switch_zmp("right"))

    (lp, ly), (rp, ry) = feet["left"], feet["right"]
    zmp = compute_global_zmp(lp, ly, left_zmp, weight_in_left, rp, ry, right_zmp, weight_in_right)

    return {
        "weight_in_left": weight_in_left,
        "weight_in_right": weight_in_right,
        "left_zmp_local": left_zmp,
        "right_zmp_local": right_zmp,
        "zmp": zmp,
        "boundary_states": weight_states_at(poly, timeline, timeline.merge_points, initial),
    }
