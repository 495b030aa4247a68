"""Boundary conditions used to merge a new trajectory onto the running one."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from walkgen.errors import ConfigurationError


class GenerationMode(Enum):
    WEIGHT = "weight"  # weight distribution + ZMP
    DCM = "dcm"


@dataclass(frozen=True)
class InitialState:
    """Weight in the left foot at the merge point, with its first two derivatives."""
    position: float = 0.5
    velocity: float = 0.0
    acceleration: float = 0.0

    def __post_init__(self):
        values = (self.position, self.velocity, self.acceleration)
        if not np.all(np.isfinite(values)):
            raise ConfigurationError(f"initial weight state must be finite, got {values}")
        if not -1e-9 <= self.position <= 1.0 + 1e-9:
            raise ConfigurationError(f"initial weight in left foot must be in [0, 1], got {self.position}")
        for name, v in zip(("position", "velocity", "acceleration"), values):
            object.__setattr__(self, name, float(v))


@dataclass(frozen=True, eq=False)
class DCMInitialState:
    position: np.ndarray = field(default_factory=lambda: np.zeros(2))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2))

    def __post_init__(self):
        for name in ("position", "velocity"):
            v = np.array(getattr(self, name), dtype=float).reshape(-1)
            if v.shape != (2,) or not np.all(np.isfinite(v)):
                raise ConfigurationError(f"DCM initial {name} must be a finite 2D vector")
            v.flags.writeable = False
            object.__setattr__(self, name, v)


BoundaryCondition = InitialState | DCMInitialState


def resolve_mode(boundary: BoundaryCondition | None, mode: GenerationMode | None = None) -> GenerationMode:
    """The boundary type selects the generation branch; an explicit mode must agree with it."""
    if boundary is None:
        return GenerationMode.WEIGHT if mode is None else GenerationMode(mode)
    if isinstance(boundary, InitialState):
        implied = GenerationMode.WEIGHT
    elif isinstance(boundary, DCMInitialState):
        implied = GenerationMode.DCM
    else:
        raise TypeError(f"unsupported boundary condition {type(boundary).__name__}")
    if mode is not None and GenerationMode(mode) is not implied:
        raise ConfigurationError(f"a {type(boundary).__name__} boundary cannot seed a {GenerationMode(mode).value} generation")
    return implied
