import sys
from pathlib import Path

import numpy as np
import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from walkgen.config import GaitConfig
from walkgen.errors import ConfigurationError, InfeasibleTimingError
from walkgen.models.geometry import reflect_y
from walkgen.models.support_polygon import zmp_margins
from walkgen.planning.footsteps import FootstepSequence, Step, StraightLinePlanner
from walkgen.planning.interpolator import FeetInterpolator
from walkgen.planning.phases import build_phase_timeline
from walkgen.planning.states import InitialState
from walkgen.planning.zmp_plan import weight_in_left_polynomial

foot_half = np.array([0.09, 0.045])


def _single_step(first="right"):
    left = FootstepSequence([Step([0.0, 0.08], 0.0, 0.0)])
    right = FootstepSequence([Step([0.0, -0.08], 0.0, 0.0)])
    if first == "right":
        right.add_step(Step([0.1, -0.08], 0.0, 1.0))
    else:
        left.add_step(Step([0.1, 0.08], 0.0, 1.0))
    return left, right


def _walk_config():
    config = GaitConfig(switch_ratio=0.2, step_height=0.02)
    config.set_stance_zmp_delta([0.01, 0.02])
    config.set_initial_switch_zmp_delta([0.03, 0.0])
    return config


def test_weights_sum_to_one():
    planner = StraightLinePlanner()
    left, right = planner(FootstepSequence(), FootstepSequence(), 0.0, 4.0)
    traj = FeetInterpolator(GaitConfig()).interpolate(left, right, 0.0, 0.01)
    np.testing.assert_allclose(traj.weight_in_left + traj.weight_in_right, 1.0, atol=1e-12)
    assert np.all(traj.weight_in_left >= -1e-9) and np.all(traj.weight_in_left <= 1.0 + 1e-9)


def test_single_step_scenario():
    left, right = _single_step("right")
    traj = FeetInterpolator(GaitConfig(switch_ratio=0.2, step_height=0.02)).interpolate(left, right, 0.0, 0.01)
    w = traj.weight_in_left

    assert traj.n_samples == 101
    # the left foot takes the weight during the (half) switch window
    assert w[0] == pytest.approx(0.5)
    assert np.all(np.diff(w[0:11]) >= -1e-12)
    np.testing.assert_allclose(w[10:], 1.0, atol=1e-9)
    assert traj.right_foot_position[:, 2].max() == pytest.approx(0.02, abs=1e-9)

    # ZMP inside the support polygon at every sample
    assert zmp_margins(traj, foot_half).min() >= -1e-9


def test_left_first_goes_to_the_right_foot():
    left, right = _single_step("left")
    traj = FeetInterpolator(GaitConfig()).interpolate(left, right, 0.0, 0.01)
    np.testing.assert_allclose(traj.weight_in_left[10:], 0.0, atol=1e-9)


def test_local_zmp_offsets():
    config = _walk_config()
    left, right = _single_step("right")
    traj = FeetInterpolator(config).interpolate(left, right, 0.0, 0.01)

    np.testing.assert_array_equal(config.right_stance_zmp, [0.01, -0.02])
    np.testing.assert_array_equal(config.right_switch_zmp, [0.03, 0.0])

    # the supporting foot keeps its stance offset
    np.testing.assert_allclose(traj.left_zmp_local, np.tile([0.01, 0.02], (101, 1)))

    # the lifting foot moves towards its switch offset, then holds it during the swing
    zr = traj.right_zmp_local
    np.testing.assert_allclose(zr[0], [0.01, -0.02])
    assert zr[9, 0] > 0.01 and zr[9, 1] > -0.02
    np.testing.assert_array_equal(zr[10:100], np.tile(zr[9], (90, 1)))
    np.testing.assert_allclose(zr[100], [0.01, -0.02])

    # single support: global ZMP on the left stance point
    np.testing.assert_allclose(traj.zmp[10:100], np.tile([0.01, 0.10], (90, 1)), atol=1e-9)


def test_global_zmp_follows_foot_yaw():
    config = GaitConfig()
    config.set_stance_zmp_delta([0.02, 0.0])
    left = FootstepSequence([Step([0.0, 0.08], np.pi / 2, 0.0)])
    right = FootstepSequence([Step([0.0, -0.08], 0.0, 0.0), Step([0.1, -0.08], 0.0, 1.0)])
    traj = FeetInterpolator(config).interpolate(left, right, 0.0, 0.01)
    # forward offset of a foot turned by 90 deg points along +y
    np.testing.assert_allclose(traj.zmp[50], [0.0, 0.10], atol=1e-9)


def test_left_and_right_are_mirrored():
    config = _walk_config()
    a = FeetInterpolator(config).interpolate(*_single_step("right"), 0.0, 0.01)
    b = FeetInterpolator(config).interpolate(*_single_step("left"), 0.0, 0.01)

    np.testing.assert_allclose(a.weight_in_left, b.weight_in_right, atol=1e-12)
    np.testing.assert_allclose(a.right_zmp_local, np.array([reflect_y(z) for z in b.left_zmp_local]), atol=1e-12)
    np.testing.assert_allclose(a.zmp[:, 0], b.zmp[:, 0], atol=1e-12)
    np.testing.assert_allclose(a.zmp[:, 1], -b.zmp[:, 1], atol=1e-12)


def test_initial_state_seeds_the_weight():
    left, right = _single_step("right")
    initial = InitialState(0.2, 1.0, 0.0)
    tl = build_phase_timeline(left, right, 0.0, 0.01, GaitConfig())
    poly = weight_in_left_polynomial(tl, initial)
    assert poly(0.0) == pytest.approx(0.2)
    assert poly(0.0, 1) == pytest.approx(1.0)
    assert poly(0.0, 2) == pytest.approx(0.0, abs=1e-9)

    traj = FeetInterpolator(GaitConfig()).interpolate(left, right, 0.0, 0.01, boundary=initial)
    assert traj.weight_in_left[0] == pytest.approx(0.2)
    np.testing.assert_allclose(traj.weight_in_left[10:], 1.0, atol=1e-9)


def test_weight_leaving_the_unit_interval_is_infeasible():
    # a fast drift to the right cannot be turned around within the 0.1 s switch
    left, right = _single_step("right")
    with pytest.raises(InfeasibleTimingError):
        FeetInterpolator(GaitConfig()).interpolate(left, right, 0.0, 0.01, boundary=InitialState(0.5, -40.0))


def test_boundary_states_at_merge_points():
    planner = StraightLinePlanner()
    left, right = planner(FootstepSequence(), FootstepSequence(), 0.0, 3.0)
    traj = FeetInterpolator(GaitConfig()).interpolate(left, right, 0.0, 0.01)

    assert len(traj.boundary_states) == len(traj.merge_points)
    s = traj.boundary_at(0)
    assert isinstance(s, InitialState)
    # middle of the 1 -> 0 transfer towards the right foot
    assert s.position == pytest.approx(0.5, abs=1e-9)
    assert s.velocity < 0.0
    assert traj.boundary_at(-1).position == pytest.approx(traj.weight_in_left[-1])


def test_initial_state_validation():
    with pytest.raises(ConfigurationError):
        InitialState(1.5)
    with pytest.raises(ConfigurationError):
        InitialState(0.5, np.nan)


def main():
    config = _walk_config()
    left, right = _single_step("right")
    traj = FeetInterpolator(config).interpolate(left, right, 0.0, 0.01)
    margins = zmp_margins(traj, foot_half)
    for k in (0, 5, 9, 10, 50, 100):
        print(f"k={k:3d} wL={traj.weight_in_left[k]:.3f} zmp={traj.zmp[k]} margin={margins[k]:.4f}")


if __name__ == "__main__":
    main()
