import os
import sys
from pathlib import Path

import numpy as np

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from walkgen.config import GaitConfig
from walkgen.models.support_polygon import zmp_margins
from walkgen.planning.footsteps import StraightLinePlanner
from walkgen.planning.replanning import MeasuredStep, ReplanningCoordinator
from walkgen.viz.plot_gait_timeseries import plot_gait_timeseries

def main():
    dt = 0.01
    horizon = 6.0

    config = GaitConfig()
    config.set_switch_ratio(0.2)
    config.set_terminal_half_switch_time(0.5)
    config.set_step_height(0.03)
    config.set_foot_apex_time(0.5)
    config.set_stance_zmp_delta([0.0, -0.01])          # right offset mirrored
    config.set_initial_switch_zmp_delta([0.03, 0.0])
    config.set_com_height_settings(0.53, 0.01)

    planner = StraightLinePlanner(step_length=0.1, step_width=0.16, step_time=1.0)
    coordinator = ReplanningCoordinator(config, planner)

    traj = coordinator.generate(init_time=0.0, dt=dt, end_time=horizon)
    foot_half = np.array([0.09, 0.045])

    print("fresh: N =", traj.n_samples, "merge points =", traj.merge_points.tolist())
    print("min ZMP margin:", float(np.min(zmp_margins(traj, foot_half))))

    # replan from the second merge point, with a measured left foot slightly off
    m = 1
    t_merge = traj.merge_time(m)
    previous_left = coordinator.left_steps.present_step(t_merge)
    measured = MeasuredStep(previous_left.position + np.array([0.01, 0.0]), previous_left.angle + 0.05)
    replanned = coordinator.regenerate(t_merge, dt, t_merge + horizon, traj.boundary_at(m), measured_left=measured)

    k = int(traj.merge_points[m])
    print(f"replanned from t={t_merge:.2f}: N =", replanned.n_samples)
    print("weight at junction:", float(traj.weight_in_left[k]), float(replanned.weight_in_left[0]))

    os.makedirs("results/plots", exist_ok=True)
    plot_gait_timeseries(traj, "results/plots/gait_fresh.png")
    plot_gait_timeseries(replanned, "results/plots/gait_replanned.png")

    # same walk, DCM references
    dcm = coordinator.generate(init_time=0.0, dt=dt, end_time=horizon, mode="dcm")
    plot_gait_timeseries(dcm, "results/plots/gait_dcm.png")
    print("DCM: N =", dcm.n_samples, "final DCM:", dcm.dcm_position[-1])

    print("Done.")

if __name__ == "__main__":
    main()
