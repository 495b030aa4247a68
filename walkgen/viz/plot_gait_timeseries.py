import os
import matplotlib.pyplot as plt

def plot_gait_timeseries(traj, outpath: str):
    out_dir = os.path.dirname(outpath)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    t = traj.times
    lp = traj.left_foot_position
    rp = traj.right_foot_position

    fig = plt.figure(figsize=(11, 10))

    ax1 = plt.subplot(5, 1, 1)
    ax1.plot(t, lp[:,0], label="left x")
    ax1.plot(t, rp[:,0], label="right x")
    ax1.legend()
    ax1.set_ylabel("feet x [m]")

    ax2 = plt.subplot(5, 1, 2)
    ax2.plot(t, lp[:,2], label="left z")
    ax2.plot(t, rp[:,2], label="right z")
    ax2.legend()
    ax2.set_ylabel("feet z [m]")

    ax3 = plt.subplot(5, 1, 3)
    if traj.weight_in_left is not None:
        ax3.plot(t, traj.weight_in_left, label="weight left")
        ax3.plot(t, traj.weight_in_right, label="weight right")
        ax3.set_ylabel("weight [-]")
    else:
        ax3.plot(t, traj.dcm_position[:,0], label="dcm_x")
        ax3.plot(t, traj.dcm_position[:,1], label="dcm_y")
        ax3.set_ylabel("DCM [m]")
    for k in traj.merge_points[:-1]:
        ax3.axvline(t[k], linestyle=":", color="gray")
    ax3.legend()

    ax4 = plt.subplot(5, 1, 4)
    ax4.plot(t, traj.zmp[:,0], label="zmp_x")
    ax4.plot(t, traj.zmp[:,1], label="zmp_y")
    ax4.legend(ncol=2)
    ax4.set_ylabel("ZMP [m]")

    ax5 = plt.subplot(5, 1, 5)
    ax5.plot(t, traj.com_height, label="CoM height")
    ax5.legend()
    ax5.set_ylabel("height [m]")
    ax5.set_xlabel("time [s]")

    fig.tight_layout()
    fig.savefig(outpath, dpi=160)
    plt.close(fig)
