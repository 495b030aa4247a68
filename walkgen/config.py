"""Configuration of the footstep interpolation.

A single `GaitConfig` holds every timing, swing, ZMP and CoM height parameter
used by the phase timeline and the trajectory generators. Fields can be given at
construction time (validated in `__post_init__`) or changed afterwards through
the `set_*` methods, which validate their arguments and leave the configuration
untouched when they raise.
"""

from dataclasses import dataclass, field

import numpy as np

from walkgen.errors import ConfigurationError
from walkgen.models.geometry import reflect_y


def _vector2(value, name: str) -> np.ndarray:
    v = np.asarray(value, dtype=float).reshape(-1)
    if v.shape != (2,) or not np.all(np.isfinite(v)):
        raise ConfigurationError(f"{name} must be a finite 2D vector, got {value!r}")
    return v


@dataclass
class GaitConfig:
    """Unified configuration for timeline, feet, weight/ZMP, DCM and CoM height."""

    # --- phase timing ---
    # switch (double support) time over step time
    switch_ratio: float = 0.2
    # 0.0 disables the final ZMP re-centering
    terminal_half_switch_time: float = 0.0

    # --- pause conditions ---
    pause_active: bool = False
    max_step_time: float = 1.05
    nominal_step_time: float = 0.8

    # --- swing foot ---
    step_height: float = 0.02
    apex_ratio: float = 0.5

    # --- ZMP offsets in the foot frames ---
    left_stance_zmp: np.ndarray = field(default_factory=lambda: np.zeros(2))
    right_stance_zmp: np.ndarray = field(default_factory=lambda: np.zeros(2))
    left_switch_zmp: np.ndarray = field(default_factory=lambda: np.zeros(2))
    right_switch_zmp: np.ndarray = field(default_factory=lambda: np.zeros(2))

    # --- CoM height ---
    com_height: float = 0.53
    com_height_delta: float = 0.0
    gravity: float = 9.81

    def __post_init__(self):
        self.left_stance_zmp = _vector2(self.left_stance_zmp, "left_stance_zmp")
        self.right_stance_zmp = _vector2(self.right_stance_zmp, "right_stance_zmp")
        self.left_switch_zmp = _vector2(self.left_switch_zmp, "left_switch_zmp")
        self.right_switch_zmp = _vector2(self.right_switch_zmp, "right_switch_zmp")
        self.validate()

    def validate(self):
        _check_switch_ratio(self.switch_ratio)
        _check_non_negative(self.terminal_half_switch_time, "terminal_half_switch_time")
        _check_step_height(self.step_height)
        _check_apex_ratio(self.apex_ratio)
        _check_pause(self.max_step_time, self.nominal_step_time)
        _check_com_height(self.com_height, self.com_height_delta)
        if not self.gravity > 0.0:
            raise ConfigurationError(f"gravity must be positive, got {self.gravity}")

    # pause thresholds derived from the step times
    @property
    def max_switch_time(self) -> float:
        return self.switch_ratio * self.max_step_time

    @property
    def nominal_switch_time(self) -> float:
        return self.switch_ratio * self.nominal_step_time

    @property
    def max_swing_time(self) -> float:
        return (1.0 - self.switch_ratio) * self.max_step_time

    @property
    def nominal_swing_time(self) -> float:
        return (1.0 - self.switch_ratio) * self.nominal_step_time

    # --- setters ---

    def set_switch_ratio(self, ratio: float):
        _check_switch_ratio(ratio)
        self.switch_ratio = float(ratio)

    def set_terminal_half_switch_time(self, last_half_switch_time: float):
        _check_non_negative(last_half_switch_time, "terminal_half_switch_time")
        self.terminal_half_switch_time = float(last_half_switch_time)

    def set_step_height(self, step_height: float):
        _check_step_height(step_height)
        self.step_height = float(step_height)

    def set_foot_apex_time(self, swing_time_ratio: float = 0.5):
        _check_apex_ratio(swing_time_ratio)
        self.apex_ratio = float(swing_time_ratio)

    def set_pause_conditions(self, max_step_time: float, nominal_step_time: float):
        """Enable pauses: steps longer than max_step_time keep a nominal swing and stand still for the rest."""
        _check_pause(max_step_time, nominal_step_time)
        self.max_step_time = float(max_step_time)
        self.nominal_step_time = float(nominal_step_time)
        self.pause_active = True

    def disable_pause(self):
        self.pause_active = False

    def set_stance_zmp_delta(self, offset_in_left_foot, offset_in_right_foot=None):
        """If the right offset is omitted, the left one is reflected about the foot sagittal axis."""
        left = _vector2(offset_in_left_foot, "offset_in_left_foot")
        right = reflect_y(left) if offset_in_right_foot is None else _vector2(offset_in_right_foot, "offset_in_right_foot")
        self.left_stance_zmp, self.right_stance_zmp = left, right

    def set_initial_switch_zmp_delta(self, offset_in_left_foot, offset_in_right_foot=None):
        """Position the local ZMP reaches when the weight starts moving to the other foot."""
        left = _vector2(offset_in_left_foot, "offset_in_left_foot")
        right = reflect_y(left) if offset_in_right_foot is None else _vector2(offset_in_right_foot, "offset_in_right_foot")
        self.left_switch_zmp, self.right_switch_zmp = left, right

    def set_com_height_settings(self, com_height: float, com_height_stance_delta: float):
        _check_com_height(com_height, com_height_stance_delta)
        self.com_height = float(com_height)
        self.com_height_delta = float(com_height_stance_delta)

    def stance_zmp(self, foot: str) -> np.ndarray:
        return self.left_stance_zmp if foot == "left" else self.right_stance_zmp

    def switch_zmp(self, foot: str) -> np.ndarray:
        return self.left_switch_zmp if foot == "left" else self.right_switch_zmp


def _check_switch_ratio(ratio):
    if not np.isfinite(ratio) or not 0.0 < ratio < 1.0:
        raise ConfigurationError(f"switch ratio must be in (0, 1), got {ratio}")


def _check_non_negative(value, name):
    if not np.isfinite(value) or value < 0.0:
        raise ConfigurationError(f"{name} must be non-negative, got {value}")


def _check_step_height(step_height):
    if not np.isfinite(step_height) or step_height < 0.0:
        raise ConfigurationError(f"step height must be non-negative, got {step_height}")


def _check_apex_ratio(ratio):
    if not np.isfinite(ratio) or not 0.0 < ratio < 1.0:
        raise ConfigurationError(f"apex time ratio must be in (0, 1), got {ratio}")


def _check_pause(max_step_time, nominal_step_time):
    if not (np.isfinite(max_step_time) and np.isfinite(nominal_step_time)):
        raise ConfigurationError("pause step times must be finite")
    if nominal_step_time <= 0.0 or max_step_time < nominal_step_time:
        raise ConfigurationError(
            f"pause conditions need 0 < nominal_step_time <= max_step_time, got {nominal_step_time}, {max_step_time}"
        )


def _check_com_height(com_height, delta):
    if not (np.isfinite(com_height) and np.isfinite(delta)):
        raise ConfigurationError("CoM height settings must be finite")
    if com_height <= 0.0 or com_height + delta <= 0.0:
        raise ConfigurationError(f"CoM height must stay positive, got {com_height} (+ {delta})")
