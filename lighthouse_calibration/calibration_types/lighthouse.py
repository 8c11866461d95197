################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Lighthouse base station state."""

from __future__ import annotations

import math
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace

from lighthouse_calibration.math_utils.pose6 import Pose6


@dataclass(frozen=True)
class AxisCorrection:
    """Per-axis sweep correction parameters broadcast by a lighthouse.

    Attributes:
        phase: Constant angle offset in radians
        tilt: Coupling with the other axis angle, unitless
        curve: Coupling with the square of the other axis angle, 1/rad
        gib_mag: Gibbous correction magnitude in radians
        gib_phase: Gibbous correction phase in radians
    """

    phase: float = 0.0
    tilt: float = 0.0
    curve: float = 0.0
    gib_mag: float = 0.0
    gib_phase: float = 0.0

    def __post_init__(self) -> None:
        """Validate correction parameters."""
        for name in ("phase", "tilt", "curve", "gib_mag", "gib_phase"):
            value: float = float(getattr(self, name))
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite")
            object.__setattr__(self, name, value)


def _default_corrections() -> tuple[AxisCorrection, AxisCorrection]:
    return (AxisCorrection(), AxisCorrection())


@dataclass(frozen=True)
class Lighthouse:
    """Lighthouse identity, pose and correction parameters.

    Attributes:
        serial: Lighthouse serial number
        transform: Transform from the lighthouse frame into the vive frame
        corrections: Correction parameters for axis 0 and axis 1
        ready: True once correction parameters have been received
    """

    serial: str
    transform: Pose6 = field(default_factory=Pose6.identity)
    corrections: tuple[AxisCorrection, AxisCorrection] = field(
        default_factory=_default_corrections
    )
    ready: bool = False

    def __post_init__(self) -> None:
        """Validate lighthouse fields."""
        if not isinstance(self.serial, str) or not self.serial:
            raise ValueError("serial must be a non-empty string")
        if not isinstance(self.transform, Pose6):
            raise ValueError("transform must be a Pose6")
        corrections: tuple[AxisCorrection, ...] = tuple(self.corrections)
        if len(corrections) != 2:
            raise ValueError("corrections must have one entry per axis")
        for correction in corrections:
            if not isinstance(correction, AxisCorrection):
                raise ValueError("corrections must contain AxisCorrection entries")
        object.__setattr__(self, "corrections", corrections)

    def with_transform(self, transform: Pose6) -> Lighthouse:
        """Return a copy with a new lighthouse-to-vive transform."""
        return replace(self, transform=transform)

    def with_corrections(
        self, corrections: tuple[AxisCorrection, AxisCorrection]
    ) -> Lighthouse:
        """Return a ready copy with new correction parameters."""
        return replace(self, corrections=corrections, ready=True)
