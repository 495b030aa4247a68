import numpy as np


def natural_frequency(zc: float, g: float) -> float:
    # omega of the linear inverted pendulum
    return float(np.sqrt(g / zc))


def dcm_in_step(t: np.ndarray, t_end: float, xi_end: np.ndarray, vrp: np.ndarray, omega: float):
    """
    DCM under a constant VRP, integrated backwards from its end-of-step value:
        xi(t) = r + exp(omega (t - t_end)) (xi_end - r)
        xi_dot = omega (xi - r)
    t: (N,) -> xi (N, 2), xi_dot (N, 2)
    """
    t = np.atleast_1d(np.asarray(t, dtype=float))
    decay = np.exp(omega * (t - t_end))[:, None]
    xi = vrp + decay * (np.asarray(xi_end) - vrp)
    return xi, omega * (xi - vrp)


def dcm_at_step_start(step_duration: float, xi_end: np.ndarray, vrp: np.ndarray, omega: float) -> np.ndarray:
    return vrp + np.exp(-omega * step_duration) * (np.asarray(xi_end) - vrp)


def zmp_from_dcm(xi: np.ndarray, xi_dot: np.ndarray, omega: float) -> np.ndarray:
    return xi - xi_dot / omega
