################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Pinhole model that turns sweep angles into image coordinates."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray


# Units: rad. Meaning: assumed horizontal field of view of a lighthouse
FIELD_OF_VIEW_RAD: float = math.radians(120.0)

# Units: unitless. Meaning: assumed image plane width
IMAGE_WIDTH: float = 1.0


def principal_distance(
    fov_rad: float = FIELD_OF_VIEW_RAD, width: float = IMAGE_WIDTH
) -> float:
    """Return the focal length placing the image plane edges at the FOV."""
    return width / (2.0 * math.tan(fov_rad / 2.0))


def project_angles(
    horizontal: float, vertical: float, z: float
) -> tuple[float, float]:
    """Return image coordinates of a sweep angle pair."""
    return z * math.tan(horizontal), z * math.tan(vertical)


def camera_matrix(z: float) -> NDArray[np.float64]:
    """Return the intrinsic matrix with focal length z and no offset."""
    return np.array(
        [
            [z, 0.0, 0.0],
            [0.0, z, 0.0],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


def distortion_coefficients() -> NDArray[np.float64]:
    """Return zero distortion coefficients."""
    return np.zeros(5, dtype=np.float64)
