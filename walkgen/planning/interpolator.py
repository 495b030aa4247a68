from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from walkgen.config import GaitConfig
from walkgen.models.geometry import homogeneous
from walkgen.planning.com_height import compute_com_height
from walkgen.planning.dcm_plan import compute_dcm_trajectory
from walkgen.planning.feet import interpolate_foot
from walkgen.planning.phases import PhaseTimeline, build_phase_timeline
from walkgen.planning.states import (
    BoundaryCondition,
    GenerationMode,
    InitialState,
    resolve_mode,
)
from walkgen.planning.zmp_plan import generate_weight_and_zmp

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class GaitTrajectory:
    """
    Dense references produced by one generation call. Every array has one row
    per sample and is read-only. Weight-mode fields are None in DCM mode and
    vice versa; `zmp` is always set.
    """
    mode: GenerationMode
    timeline: PhaseTimeline
    left_foot_position: np.ndarray   # (N, 3)
    left_foot_yaw: np.ndarray        # (N,)
    right_foot_position: np.ndarray
    right_foot_yaw: np.ndarray
    left_contact: np.ndarray         # (N,) bool
    right_contact: np.ndarray
    left_fixed: np.ndarray
    zmp: np.ndarray                  # (N, 2) global ZMP
    com_height: np.ndarray
    com_height_acceleration: np.ndarray
    boundary_states: tuple           # one per merge point
    weight_in_left: np.ndarray | None = None
    weight_in_right: np.ndarray | None = None
    left_zmp_local: np.ndarray | None = None
    right_zmp_local: np.ndarray | None = None
    dcm_position: np.ndarray | None = None
    dcm_velocity: np.ndarray | None = None

    @property
    def n_samples(self) -> int:
        return self.timeline.n_samples

    @property
    def init_time(self) -> float:
        return self.timeline.init_time

    @property
    def dt(self) -> float:
        return self.timeline.dt

    @property
    def times(self) -> np.ndarray:
        return self.timeline.times

    @property
    def merge_points(self) -> np.ndarray:
        return self.timeline.merge_points

    @property
    def phase_shifts(self) -> np.ndarray:
        return self.timeline.phase_shifts

    def foot_transforms(self, foot: str) -> np.ndarray:
        """(N, 4, 4) world poses of one foot."""
        if foot == "left":
            return homogeneous(self.left_foot_position, self.left_foot_yaw)
        return homogeneous(self.right_foot_position, self.right_foot_yaw)

    def boundary_at(self, merge_index: int) -> BoundaryCondition:
        """Boundary state at merge_points[merge_index]."""
        return self.boundary_states[merge_index]

    def merge_time(self, merge_index: int) -> float:
        k = min(int(self.merge_points[merge_index]), self.n_samples - 1)
        return self.timeline.time_of(k)


def _frozen(a):
    if a is None:
        return None
    a = np.array(a)
    a.flags.writeable = False
    return a


class FeetInterpolator:
    """Runs the timeline and the trajectory generators for one call."""

    def __init__(self, config: GaitConfig | None = None):
        self.config = config if config is not None else GaitConfig()

    def interpolate(self, left, right, init_time: float, dt: float,
                    boundary: BoundaryCondition | None = None,
                    mode: GenerationMode | None = None,
                    switch_end_time: float | None = None) -> GaitTrajectory:
        """
        Both feet are on the ground at init_time, i.e. init_time is not earlier
        than the first impact of either foot. Without a boundary condition the
        weight starts equally shared (weight mode) or the DCM starts at rest in
        the middle of the feet (DCM mode). switch_end_time pins the end of a
        weight transfer that is already in progress at init_time.
        """
        mode = resolve_mode(boundary, mode)
        self.config.validate()

        timeline = build_phase_timeline(left, right, init_time, dt, self.config, switch_end_time)
        feet = {foot: interpolate_foot(timeline, foot, self.config) for foot in ("left", "right")}

        if mode is GenerationMode.WEIGHT:
            out = generate_weight_and_zmp(timeline, feet, self.config, boundary or InitialState())
        else:
            out = compute_dcm_trajectory(timeline, feet, self.config, boundary)

        com_height, com_acc = compute_com_height(timeline, self.config)

        logger.debug("%s interpolation from t=%.3f: %d samples", mode.value, init_time, timeline.n_samples)
        return GaitTrajectory(
            mode=mode,
            timeline=timeline,
            left_foot_position=_frozen(feet["left"][0]),
            left_foot_yaw=_frozen(feet["left"][1]),
            right_foot_position=_frozen(feet["right"][0]),
            right_foot_yaw=_frozen(feet["right"][1]),
            left_contact=_frozen(timeline.contact("left")),
            right_contact=_frozen(timeline.contact("right")),
            left_fixed=timeline.left_fixed,
            zmp=_frozen(out["zmp"]),
            com_height=_frozen(com_height),
            com_height_acceleration=_frozen(com_acc),
            boundary_states=out["boundary_states"],
            weight_in_left=_frozen(out.get("weight_in_left")),
            weight_in_right=_frozen(out.get("weight_in_right")),
            left_zmp_local=_frozen(out.get("left_zmp_local")),
            right_zmp_local=_frozen(out.get("right_zmp_local")),
            dcm_position=_frozen(out.get("dcm_position")),
            dcm_velocity=_frozen(out.get("dcm_velocity")),
        )
