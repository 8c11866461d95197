################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################
"""Pure-Python TF publication policy for calibration results.

The calibration publishes a static transform tree:

    world -> vive                  registration
    vive  -> <lighthouse serial>   lighthouse transforms
    body  -> <tracker serial>      tracker extrinsics
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from lighthouse_calibration.config.calibration_params import FramesParams
from lighthouse_calibration.math_utils.pose6 import Pose6


class TransformPublisherError(Exception):
    """Raised when TF publication inputs are invalid."""


@dataclass(frozen=True)
class PublishedTransform:
    """Published transform output from the TF policy.

    Attributes:
        t_ns: Timestamp for the transform in nanoseconds
        parent_frame: Parent frame ID
        child_frame: Child frame ID
        translation_m: Translation vector in meters
        quaternion_wxyz: Unit quaternion in [w, x, y, z] order
        is_static: True when the transform should be latched as static
    """

    t_ns: int
    parent_frame: str
    child_frame: str
    translation_m: NDArray[np.float64]
    quaternion_wxyz: NDArray[np.float64]
    is_static: bool

    def __post_init__(self) -> None:
        """Validate published transform fields."""
        if not isinstance(self.t_ns, int) or isinstance(self.t_ns, bool):
            raise TransformPublisherError("t_ns must be an int")
        if self.t_ns < 0:
            raise TransformPublisherError("t_ns must be non-negative")
        _require_frame(self.parent_frame, "parent_frame")
        _require_frame(self.child_frame, "child_frame")
        if self.parent_frame == self.child_frame:
            raise TransformPublisherError("parent_frame and child_frame must differ")
        translation_m: NDArray[np.float64] = np.asarray(self.translation_m, dtype=float)
        if translation_m.shape != (3,):
            raise TransformPublisherError("translation_m must be shape (3,)")
        if not np.all(np.isfinite(translation_m)):
            raise TransformPublisherError("translation_m must be finite")
        quaternion_wxyz: NDArray[np.float64] = np.asarray(
            self.quaternion_wxyz,
            dtype=float,
        )
        if quaternion_wxyz.shape != (4,):
            raise TransformPublisherError("quaternion_wxyz must be shape (4,)")
        if not np.all(np.isfinite(quaternion_wxyz)):
            raise TransformPublisherError("quaternion_wxyz must be finite")
        norm: float = float(np.linalg.norm(quaternion_wxyz))
        if norm <= 0.0:
            raise TransformPublisherError("quaternion_wxyz must be non-zero")
        object.__setattr__(self, "translation_m", translation_m)
        object.__setattr__(self, "quaternion_wxyz", quaternion_wxyz / norm)


class TransformPublisher:
    """Builds the static transform tree of a calibration."""

    def __init__(self, frames: FramesParams) -> None:
        _require_frame(frames.world, "frames.world")
        _require_frame(frames.vive, "frames.vive")
        _require_frame(frames.body, "frames.body")
        self._frames: FramesParams = frames

    def transforms(
        self,
        *,
        t_ns: int,
        registration: Pose6,
        lighthouses: Sequence[tuple[str, Pose6]],
        trackers: Sequence[tuple[str, Pose6]],
    ) -> list[PublishedTransform]:
        """Return every transform of the calibration tree."""
        published: list[PublishedTransform] = [
            _make(t_ns, self._frames.world, self._frames.vive, registration)
        ]
        for serial, transform in lighthouses:
            published.append(_make(t_ns, self._frames.vive, serial, transform))
        for serial, extrinsics in trackers:
            published.append(_make(t_ns, self._frames.body, serial, extrinsics))
        return published


def _make(t_ns: int, parent: str, child: str, pose: Pose6) -> PublishedTransform:
    return PublishedTransform(
        t_ns=t_ns,
        parent_frame=parent,
        child_frame=child,
        translation_m=np.array(pose.translation, dtype=np.float64),
        quaternion_wxyz=pose.quaternion_wxyz(),
        is_static=True,
    )


def _require_frame(frame: str, name: str) -> None:
    if not isinstance(frame, str) or not frame:
        raise TransformPublisherError(f"{name} must be a non-empty string")
