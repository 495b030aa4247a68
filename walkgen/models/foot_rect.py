import numpy as np

from walkgen.models.geometry import planar_rotations

def foot_corners(position: np.ndarray, yaw: float, half_sizes: np.ndarray) -> np.ndarray:
    """
    Corners (4, 2) of a foot rectangle centered at position[:2], rotated by yaw,
    with half-lengths half_sizes = (hx, hy). Counterclockwise order.
    """
    hx, hy = float(half_sizes[0]), float(half_sizes[1])
    local = np.array([
        [-hx, -hy],
        [ hx, -hy],
        [ hx,  hy],
        [-hx,  hy],
    ], dtype=float)
    R = planar_rotations(yaw)[0]
    return np.asarray(position, dtype=float)[0:2] + local @ R.T

def rectangle_Hh(position: np.ndarray, yaw: float, half_sizes: np.ndarray):
    """
    Rotated rectangle as half-spaces: returns H, h s.t. H @ [x, y] <= h
    """
    R = planar_rotations(yaw)[0]
    axes = np.vstack([R[:, 0], -R[:, 0], R[:, 1], -R[:, 1]])
    c = np.asarray(position, dtype=float)[0:2]
    hx, hy = float(half_sizes[0]), float(half_sizes[1])
    h = axes @ c + np.array([hx, hx, hy, hy])
    return axes, h
