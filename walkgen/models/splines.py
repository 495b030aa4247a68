import numpy as np
from scipy.interpolate import BPoly


def from_boundary_conditions(knots, conditions) -> BPoly:
    """
    Piecewise polynomial through `knots` with prescribed derivatives.
    conditions[i] = [y, y', (y'')] at knots[i]; each piece has the lowest degree
    compatible with the conditions at its two ends (two pairs give a cubic).
    """
    knots = np.asarray(knots, dtype=float)
    if knots.shape[0] < 2 or np.any(np.diff(knots) <= 0.0):
        raise ValueError("knots must be at least two and strictly increasing")
    return BPoly.from_derivatives(knots, [list(map(float, c)) for c in conditions])


def rest_to_rest(t0: float, t1: float, y0: float, y1: float) -> BPoly:
    """Cubic from y0 to y1 with zero velocity at both ends."""
    return from_boundary_conditions([t0, t1], [[y0, 0.0], [y1, 0.0]])


def smooth_rest_to_rest(t0: float, t1: float, y0: float, y1: float) -> BPoly:
    """Quintic from y0 to y1 with zero velocity and acceleration at both ends."""
    return from_boundary_conditions([t0, t1], [[y0, 0.0, 0.0], [y1, 0.0, 0.0]])


def hermite(t0: float, t1: float, p0, v0, p1, v1) -> list:
    """Per-axis cubic Hermite pieces between (p0, v0) and (p1, v1)."""
    p0, v0, p1, v1 = (np.atleast_1d(np.asarray(a, dtype=float)) for a in (p0, v0, p1, v1))
    return [from_boundary_conditions([t0, t1], [[p0[k], v0[k]], [p1[k], v1[k]]]) for k in range(p0.shape[0])]


def evaluate(polys, t, nu: int = 0) -> np.ndarray:
    """Evaluate a list of per-axis polynomials at times t -> (len(t), n_axes)."""
    t = np.asarray(t, dtype=float)
    return np.stack([p(t, nu) for p in polys], axis=-1)
