"""
Foot pose references.

Grounded phases hold the pose of the committed step exactly. During a swing the
planar position and the yaw move along quintics from the lift-off step to the
touch-down step, starting and stopping with zero velocity and acceleration, while the height goes through
(lift-off, 0) -> (apex, step_height) -> (touch-down, 0) with zero vertical
velocity at the three knots.
"""

import numpy as np

from walkgen.config import GaitConfig
from walkgen.errors import ConfigurationError
from walkgen.models.geometry import wrap_angle
from walkgen.models.splines import from_boundary_conditions, smooth_rest_to_rest
from walkgen.planning.phases import PhaseTimeline, SwingWindow


def swing_height_profile(t0: float, t1: float, step_height: float, apex_ratio: float):
    if step_height < 0.0:
        raise ConfigurationError(f"step height must be non-negative, got {step_height}")
    if not 0.0 < apex_ratio < 1.0:
        raise ConfigurationError(f"apex time ratio must be in (0, 1), got {apex_ratio}")
    t_apex = t0 + apex_ratio * (t1 - t0)
    return from_boundary_conditions([t0, t_apex, t1], [[0.0, 0.0], [step_height, 0.0], [0.0, 0.0]])


def swing_pose(window: SwingWindow, t: np.ndarray, t0: float, t1: float, config: GaitConfig):
    """Positions (N, 3) and yaw (N,) of a swinging foot at times t in [t0, t1]."""
    a, b = window.lift_off, window.touch_down
    position = np.zeros((t.shape[0], 3))
    for axis in range(2):
        position[:, axis] = smooth_rest_to_rest(t0, t1, a.position[axis], b.position[axis])(t)
    position[:, 2] = swing_height_profile(t0, t1, config.step_height, config.apex_ratio)(t)
    # shortest rotation towards the touch-down yaw
    yaw_target = a.angle + float(wrap_angle(b.angle - a.angle))
    yaw = smooth_rest_to_rest(t0, t1, a.angle, yaw_target)(t)
    return position, yaw


def interpolate_foot(timeline: PhaseTimeline, foot: str, config: GaitConfig):
    """
    Returns positions (N, 3) and yaw (N,) of one foot on the timeline grid.
    """
    n = timeline.n_samples
    times = timeline.times
    initial = timeline.initial_step(foot)

    position = np.zeros((n, 3))
    position[:, 0:2] = initial.position
    yaw = np.full(n, initial.angle)

    for window in timeline.swings:
        if window.foot != foot:
            continue
        t0, t1 = timeline.time_of(window.start), timeline.time_of(window.end)
        p, y = swing_pose(window, times[window.start:window.end], t0, t1, config)
        position[window.start:window.end] = p
        yaw[window.start:window.end] = y
        position[window.end:, 0:2] = window.touch_down.position
        position[window.end:, 2] = 0.0
        yaw[window.end:] = window.touch_down.angle

    return position, yaw
