import sys
from pathlib import Path

import numpy as np
import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from walkgen.config import GaitConfig
from walkgen.errors import ConfigurationError
from walkgen.models.geometry import homogeneous, wrap_angle
from walkgen.models.splines import smooth_rest_to_rest
from walkgen.planning.feet import interpolate_foot, swing_height_profile
from walkgen.planning.footsteps import FootstepSequence, Step
from walkgen.planning.interpolator import FeetInterpolator
from walkgen.planning.phases import build_phase_timeline


def _timeline(config, left_yaw=(0.0, 0.0)):
    # left steps at t=1.0, right stays
    left = FootstepSequence([
        Step([0.0, 0.08], left_yaw[0], 0.0),
        Step([0.2, 0.10], left_yaw[1], 1.0),
    ])
    right = FootstepSequence([Step([0.0, -0.08], 0.0, 0.0)])
    return build_phase_timeline(left, right, 0.0, 0.01, config)


def test_grounded_pose_is_exact():
    config = GaitConfig(step_height=0.02)
    tl = _timeline(config)
    p, yaw = interpolate_foot(tl, "left", config)

    np.testing.assert_array_equal(p[0:10, 0:2], np.tile([0.0, 0.08], (10, 1)))
    np.testing.assert_array_equal(p[100:, 0:2], [[0.2, 0.10]])
    assert np.all(p[0:10, 2] == 0.0) and np.all(p[100:, 2] == 0.0)

    pr, yr = interpolate_foot(tl, "right", config)
    np.testing.assert_array_equal(pr[:, 0:2], np.tile([0.0, -0.08], (tl.n_samples, 1)))
    assert np.all(yr == 0.0)


def test_swing_height_peaks_at_apex():
    config = GaitConfig(step_height=0.02, apex_ratio=0.5)
    tl = _timeline(config)
    p, _ = interpolate_foot(tl, "left", config)

    # swing [0.1, 1.0], apex at 0.55
    assert np.isclose(p[:, 2].max(), 0.02, atol=1e-9)
    assert np.isclose(p[55, 2], 0.02, atol=1e-9)
    assert p[10, 2] == pytest.approx(0.0, abs=1e-12)
    assert np.all(p[:, 2] >= -1e-12)


def test_apex_ratio_moves_the_peak():
    config = GaitConfig(step_height=0.03, apex_ratio=0.3)
    tl = _timeline(config)
    p, _ = interpolate_foot(tl, "left", config)
    # 0.1 + 0.3 * 0.9 = 0.37
    assert int(np.argmax(p[:, 2])) == 37
    assert np.isclose(p[37, 2], 0.03, atol=1e-9)


def test_planar_motion_is_monotone():
    config = GaitConfig()
    tl = _timeline(config)
    p, _ = interpolate_foot(tl, "left", config)
    assert np.all(np.diff(p[:, 0]) >= -1e-12)
    assert np.all(np.diff(p[:, 1]) >= -1e-12)


def test_yaw_takes_the_shortest_path():
    config = GaitConfig()
    tl = _timeline(config, left_yaw=(3.0, -3.0))
    _, yaw = interpolate_foot(tl, "left", config)

    # 3.0 -> -3.0 is a +0.283 rad rotation, not -6.0
    assert np.all(yaw[10:100] >= 3.0 - 1e-12)
    assert np.all(yaw[10:100] <= 3.0 + float(wrap_angle(-6.0)) + 1e-12)
    assert abs(float(wrap_angle(yaw[100] - yaw[99]))) < 1e-3
    assert yaw[100] == -3.0


def test_swing_starts_and_stops_without_acceleration():
    config = GaitConfig()
    dt = 0.001
    left = FootstepSequence([Step([0.0, 0.08], 0.0, 0.0), Step([0.2, 0.08], 0.5, 1.0)])
    right = FootstepSequence([Step([0.0, -0.08], 0.0, 0.0)])
    tl = build_phase_timeline(left, right, 0.0, dt, config)
    p, yaw = interpolate_foot(tl, "left", config)

    # swing [100, 1000)
    for k in (100, 999):
        assert abs(p[k + 1, 0] - 2.0 * p[k, 0] + p[k - 1, 0]) / dt**2 < 0.05
        assert abs(yaw[k + 1] - 2.0 * yaw[k] + yaw[k - 1]) / dt**2 < 0.2

    poly = smooth_rest_to_rest(0.1, 1.0, 0.0, 0.2)
    for t in (0.1, 1.0):
        assert poly(t, 1) == pytest.approx(0.0, abs=1e-9)
        assert poly(t, 2) == pytest.approx(0.0, abs=1e-9)


def test_foot_transforms():
    config = GaitConfig()
    left = FootstepSequence([Step([0.0, 0.08], 0.0, 0.0), Step([0.2, 0.10], 0.4, 1.0)])
    right = FootstepSequence([Step([0.0, -0.08], -0.2, 0.0)])
    traj = FeetInterpolator(config).interpolate(left, right, 0.0, 0.01)

    for foot, position, yaw in (("left", traj.left_foot_position, traj.left_foot_yaw),
                                ("right", traj.right_foot_position, traj.right_foot_yaw)):
        T = traj.foot_transforms(foot)
        assert T.shape == (traj.n_samples, 4, 4)
        # a grounded sample and a swing sample
        for k in (5, 50):
            c, s = np.cos(yaw[k]), np.sin(yaw[k])
            np.testing.assert_allclose(T[k, 0:3, 3], position[k])
            np.testing.assert_allclose(T[k, 0:2, 0:2], [[c, -s], [s, c]], atol=1e-12)
            np.testing.assert_allclose(T[k], homogeneous(position[k], yaw[k])[0])
            np.testing.assert_allclose(T[k, 3], [0.0, 0.0, 0.0, 1.0])


def test_height_profile_validation():
    with pytest.raises(ConfigurationError):
        swing_height_profile(0.0, 1.0, -0.01, 0.5)
    with pytest.raises(ConfigurationError):
        swing_height_profile(0.0, 1.0, 0.02, 1.0)


def main():
    config = GaitConfig(step_height=0.02)
    tl = _timeline(config)
    p, yaw = interpolate_foot(tl, "left", config)
    for k in (0, 10, 30, 55, 80, 100):
        print(f"k={k:3d} p={p[k]} yaw={yaw[k]:.3f}")


if __name__ == "__main__":
    main()
