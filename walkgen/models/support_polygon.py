import numpy as np
from scipy.spatial import ConvexHull

from walkgen.models.foot_rect import foot_corners, rectangle_Hh

def polygon_halfspaces_from_hull(points: np.ndarray):
    """
    Given a set of 2D points, compute convex hull and return:
      H (m x 2), h (m,) s.t. H p <= h describes the hull.
    Also return ordered hull vertices (counterclockwise).
    """
    hull = ConvexHull(points)
    verts = points[hull.vertices]  # ordered (CCW)

    # Hull equations: each row is [a, b, c] with a*x + b*y + c == 0 on the boundary
    # For points inside hull: a*x + b*y + c <= 0
    eq = hull.equations  # shape (m, 3)

    H = eq[:, 0:2].copy()
    h = (-eq[:, 2]).copy()  # because a*x + b*y + c <= 0  ->  a*x + b*y <= -c
    return H, h, verts

def support_single(position: np.ndarray, yaw: float, half_sizes: np.ndarray):
    """
    Single support polygon: the (rotated) foot rectangle itself.
    Returns (H, h, verts).
    """
    H, h = rectangle_Hh(position, yaw, half_sizes)
    verts = foot_corners(position, yaw, half_sizes)
    return H, h, verts

def support_double(position_L: np.ndarray, yaw_L: float,
                   position_R: np.ndarray, yaw_R: float,
                   half_sizes: np.ndarray):
    """
    Double support polygon = convex hull of both foot rectangles.
    Returns (H, h, verts).
    """
    pts = np.vstack([
        foot_corners(position_L, yaw_L, half_sizes),
        foot_corners(position_R, yaw_R, half_sizes),
    ])
    return polygon_halfspaces_from_hull(pts)

def margin_halfspaces(H: np.ndarray, h: np.ndarray, p: np.ndarray) -> float:
    """
    min_i (h_i - H_i p)
    Negative => violation.
    """
    m = h - H @ p
    return float(np.min(m))

def support_at(trajectory, k: int, half_sizes: np.ndarray):
    """Support polygon (H, h, verts) of sample k of a GaitTrajectory, from its contact flags."""
    left_on = bool(trajectory.left_contact[k])
    right_on = bool(trajectory.right_contact[k])
    pL, yL = trajectory.left_foot_position[k], trajectory.left_foot_yaw[k]
    pR, yR = trajectory.right_foot_position[k], trajectory.right_foot_yaw[k]
    if left_on and right_on:
        return support_double(pL, yL, pR, yR, half_sizes)
    if left_on:
        return support_single(pL, yL, half_sizes)
    if right_on:
        return support_single(pR, yR, half_sizes)
    raise ValueError(f"no foot in contact at sample {k}")

def zmp_margins(trajectory, half_sizes: np.ndarray) -> np.ndarray:
    """Per-sample margin of the global ZMP reference w.r.t. the support polygon."""
    margins = np.zeros(trajectory.n_samples)
    for k in range(trajectory.n_samples):
        H, h, _ = support_at(trajectory, k, half_sizes)
        margins[k] = margin_halfspaces(H, h, trajectory.zmp[k])
    return margins
