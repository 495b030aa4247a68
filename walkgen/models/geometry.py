import numpy as np
from scipy.spatial.transform import Rotation


def rot_z(angle: float) -> Rotation:
    return Rotation.from_euler("z", float(angle))


def yaw_of(rotation: Rotation) -> float:
    return float(rotation.as_euler("xyz")[2])


def wrap_angle(angle):
    """Map an angle (or array of angles) to [-pi, pi)."""
    return (np.asarray(angle, dtype=float) + np.pi) % (2.0 * np.pi) - np.pi


def compose_yaw(previous_angle: float, measured_angle: float) -> float:
    """
    Rotate previous_angle by the relative rotation Rz(previous)^-1 * Rz(measured).
    The result is close to previous_angle instead of being wrapped like measured_angle.
    """
    delta = rot_z(previous_angle).inv() * rot_z(measured_angle)
    return float(previous_angle) + yaw_of(delta)


def planar_rotations(yaw: np.ndarray) -> np.ndarray:
    """(N,) yaw angles -> (N, 2, 2) rotation matrices."""
    # one rotation per angle: angles shaped (N, 1)
    yaw = np.asarray(yaw, dtype=float).reshape(-1, 1)
    return Rotation.from_euler("z", yaw).as_matrix()[:, 0:2, 0:2]


def to_world(position: np.ndarray, yaw: np.ndarray, local_xy: np.ndarray) -> np.ndarray:
    """
    Express a point given in the foot frame in the world (ground) frame.
    position: (N, 2|3), yaw: (N,), local_xy: (2,) or (N, 2) -> (N, 2)
    """
    position = np.atleast_2d(np.asarray(position, dtype=float))
    local_xy = np.asarray(local_xy, dtype=float)
    if local_xy.ndim == 1:
        local_xy = np.broadcast_to(local_xy, (position.shape[0], 2))
    R = planar_rotations(yaw)
    return position[:, 0:2] + np.einsum("nij,nj->ni", R, local_xy)


def homogeneous(position: np.ndarray, yaw: np.ndarray) -> np.ndarray:
    """(N, 3) positions and (N,) yaw angles -> (N, 4, 4) rigid transforms."""
    position = np.atleast_2d(np.asarray(position, dtype=float))
    T = np.zeros((position.shape[0], 4, 4))
    T[:, 0:3, 0:3] = Rotation.from_euler("z", np.asarray(yaw, dtype=float).reshape(-1, 1)).as_matrix()
    T[:, 0:3, 3] = position
    T[:, 3, 3] = 1.0
    return T


def reflect_y(v: np.ndarray) -> np.ndarray:
    """Mirror a left-foot quantity onto the right foot (reflection about the sagittal axis)."""
    v = np.asarray(v, dtype=float)
    return np.array([v[0], -v[1]], dtype=float)
