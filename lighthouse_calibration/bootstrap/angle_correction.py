################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Cross-coupled sweep angle correction."""

from __future__ import annotations

import math

from lighthouse_calibration.calibration_types.lighthouse import AxisCorrection


def correct_axis(angle: float, other: float, correction: AxisCorrection) -> float:
    """Correct one axis angle given the angle of the other axis."""
    corrected: float = angle
    corrected -= correction.phase
    corrected -= correction.tilt * other
    corrected -= correction.curve * other * other
    corrected -= correction.gib_mag * math.cos(other + correction.gib_phase)
    return corrected


def correct_angles(
    angles: tuple[float, float],
    corrections: tuple[AxisCorrection, AxisCorrection],
) -> tuple[float, float]:
    """Correct an (axis 0, axis 1) angle pair.

    Axis 0 is corrected first using the raw axis 1 angle. Axis 1 is then
    corrected using the already-corrected axis 0 angle.
    """
    horizontal: float = correct_axis(angles[0], angles[1], corrections[0])
    vertical: float = correct_axis(angles[1], horizontal, corrections[1])
    return horizontal, vertical
