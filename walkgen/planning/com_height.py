import numpy as np

from walkgen.config import GaitConfig
from walkgen.models.splines import from_boundary_conditions
from walkgen.planning.phases import PhaseTimeline


def support_runs(double_support: np.ndarray):
    """Maximal runs of constant support type: [(start, end, is_double), ...], end exclusive."""
    n = double_support.shape[0]
    edges = np.flatnonzero(double_support[1:] != double_support[:-1]) + 1
    bounds = np.concatenate(([0], edges, [n]))
    return [(int(a), int(b), bool(double_support[a])) for a, b in zip(bounds[:-1], bounds[1:])]


def compute_com_height(timeline: PhaseTimeline, config: GaitConfig):
    """
    CoM height (N,) and its second derivative (N,).
    nominal + delta in the middle of double support, nominal in the middle of
    single support, rest-to-rest cubics in between. The first stretch only pins
    its first sample, the last one also pins the final sample.
    """
    n = timeline.n_samples
    high = config.com_height + config.com_height_delta
    low = config.com_height

    runs = support_runs(timeline.double_support)
    knot_samples, values = [], []
    for i, (a, b, is_double) in enumerate(runs):
        value = high if is_double else low
        candidates = [a] if i == 0 else [a + (b - a) // 2]
        if i == len(runs) - 1:
            candidates.append(n - 1)
        for k in candidates:
            if knot_samples and k <= knot_samples[-1]:
                continue
            knot_samples.append(k)
            values.append(value)

    if len(knot_samples) < 2:
        return np.full(n, values[0]), np.zeros(n)

    knots = [timeline.time_of(k) for k in knot_samples]
    poly = from_boundary_conditions(knots, [[v, 0.0] for v in values])
    t = timeline.times
    return poly(t), poly(t, 2)
