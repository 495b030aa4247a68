"""
DCM reference from the phase timeline.

Each single support stretch has a constant VRP on the stance foot. The DCM
end-of-step values are obtained by backward recursion from the final VRP (the
middle of the feet), the DCM follows the exponential solution within each step,
and every double support window is replaced by a cubic Hermite blend that
matches position and velocity at both ends. The first window starts from the
DCMInitialState.
"""

import numpy as np

from walkgen.config import GaitConfig
from walkgen.models.geometry import to_world
from walkgen.models.lipm import dcm_at_step_start, dcm_in_step, natural_frequency, zmp_from_dcm
from walkgen.models.splines import evaluate, hermite
from walkgen.planning.com_height import support_runs
from walkgen.planning.phases import PhaseTimeline, other_foot
from walkgen.planning.states import DCMInitialState


def stance_points(timeline: PhaseTimeline, feet: dict, config: GaitConfig) -> dict:
    """World position (N, 2) of each foot's stance ZMP offset."""
    return {
        foot: to_world(feet[foot][0], feet[foot][1], config.stance_zmp(foot))
        for foot in ("left", "right")
    }


def compute_dcm_trajectory(timeline: PhaseTimeline, feet: dict, config: GaitConfig,
                           initial: DCMInitialState | None = None) -> dict:
    n = timeline.n_samples
    times = timeline.times
    omega = natural_frequency(config.com_height, config.gravity)
    points = stance_points(timeline, feet, config)

    # VRP of each single support, anchored at its lift-off sample
    anchors = [w.start for w in timeline.swings]
    vrps = [points[other_foot(w.foot)][w.start] for w in timeline.swings]
    r_final = 0.5 * (points["left"][n - 1] + points["right"][n - 1])

    # end-of-step DCM, backwards
    t_anchor = [timeline.time_of(k) for k in anchors] + [timeline.time_of(n - 1)]
    xi_anchor = [None] * len(anchors) + [r_final]
    for j in range(len(anchors) - 1, -1, -1):
        xi_anchor[j] = dcm_at_step_start(t_anchor[j + 1] - t_anchor[j], xi_anchor[j + 1], vrps[j], omega)

    xi = np.tile(r_final, (n, 1))
    xi_dot = np.zeros((n, 2))
    bounds = anchors + [n]
    for j in range(len(anchors)):
        a, b = bounds[j], bounds[j + 1]
        xi[a:b], xi_dot[a:b] = dcm_in_step(times[a:b], t_anchor[j + 1], xi_anchor[j + 1], vrps[j], omega)

    if initial is None:
        mid = 0.5 * (points["left"][0] + points["right"][0])
        initial = DCMInitialState(mid, np.zeros(2))

    # blend the double support windows
    for a, b, is_double in support_runs(timeline.double_support):
        if not is_double:
            continue
        if a == 0:
            p0, v0 = initial.position, initial.velocity
        else:
            p0, v0 = xi[a], xi_dot[a]
        if b < n:
            j = anchors.index(b)
            p1, v1 = xi_anchor[j], omega * (xi_anchor[j] - vrps[j])
            t1 = timeline.time_of(b)
            stop = b
        else:
            p1, v1 = r_final, np.zeros(2)
            t1 = timeline.time_of(n - 1)
            stop = n
        t0 = timeline.time_of(a)
        if t1 <= t0:
            # a single final sample: nothing to blend
            if a == 0:
                xi[a], xi_dot[a] = p0, v0
            continue
        polys = hermite(t0, t1, p0, v0, p1, v1)
        xi[a:stop] = evaluate(polys, times[a:stop])
        xi_dot[a:stop] = evaluate(polys, times[a:stop], nu=1)

    states = tuple(
        DCMInitialState(xi[min(int(k), n - 1)], xi_dot[min(int(k), n - 1)])
        for k in timeline.merge_points
    )
    return {
        "dcm_position": xi,
        "dcm_velocity": xi_dot,
        "zmp": zmp_from_dcm(xi, xi_dot, omega),
        "boundary_states": states,
    }
