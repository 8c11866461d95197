################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Per-epoch tracker pose estimation from bundled sweep angles.

Each lighthouse is modelled as a pinhole camera. For every epoch of every
(tracker, lighthouse) pair the sensors with both axis angles become 3D-2D
correspondences and a perspective-n-point solve recovers the tracker pose in
the lighthouse frame. Epochs without enough correspondences, or whose solve
fails, are skipped.
"""

from __future__ import annotations

import logging
from typing import Mapping

import cv2
import numpy as np
from numpy.typing import NDArray

from lighthouse_calibration.bootstrap.angle_correction import correct_angles
from lighthouse_calibration.bootstrap.pinhole import camera_matrix
from lighthouse_calibration.bootstrap.pinhole import distortion_coefficients
from lighthouse_calibration.bootstrap.pinhole import principal_distance
from lighthouse_calibration.bootstrap.pinhole import project_angles
from lighthouse_calibration.bundling.temporal_bundler import Bundle
from lighthouse_calibration.calibration_types.epoch_pose import MIN_CORRESPONDENCES
from lighthouse_calibration.calibration_types.epoch_pose import EpochKey
from lighthouse_calibration.calibration_types.epoch_pose import EpochPose
from lighthouse_calibration.calibration_types.lighthouse import Lighthouse
from lighthouse_calibration.calibration_types.tracker import Tracker
from lighthouse_calibration.math_utils.pose6 import Pose6


_LOG: logging.Logger = logging.getLogger(__name__)


class PoseBootstrapper:
    """Solves one tracker pose per epoch and lighthouse."""

    def __init__(self, *, apply_corrections: bool) -> None:
        self._apply_corrections: bool = apply_corrections
        self._z: float = principal_distance()
        self._K: NDArray[np.float64] = camera_matrix(self._z)
        self._dist: NDArray[np.float64] = distortion_coefficients()

    def bootstrap(
        self,
        bundle: Bundle,
        trackers: Mapping[str, Tracker],
        lighthouses: Mapping[str, Lighthouse],
    ) -> dict[EpochKey, EpochPose]:
        """Return the epoch poses recoverable from a bundle."""
        poses: dict[EpochKey, EpochPose] = {}
        attempts: int = 0
        for tracker_serial, lighthouse_serial in bundle.pairs():
            tracker: Tracker | None = trackers.get(tracker_serial)
            lighthouse: Lighthouse | None = lighthouses.get(lighthouse_serial)
            if tracker is None or lighthouse is None:
                continue
            for bin_index in bundle.bins_for(tracker_serial, lighthouse_serial):
                key: EpochKey = EpochKey(tracker_serial, lighthouse_serial, bin_index)
                attempts += 1
                epoch_pose: EpochPose | None = self.solve_epoch(
                    key, bundle, tracker, lighthouse
                )
                if epoch_pose is not None:
                    poses[key] = epoch_pose

        _LOG.info("Bootstrapped %d of %d epoch poses", len(poses), attempts)
        return poses

    def solve_epoch(
        self,
        key: EpochKey,
        bundle: Bundle,
        tracker: Tracker,
        lighthouse: Lighthouse,
    ) -> EpochPose | None:
        """Solve the tracker pose for one epoch, or None if not possible."""
        object_points: list[NDArray[np.float64]] = []
        image_points: list[tuple[float, float]] = []
        for sensor in range(tracker.num_sensors):
            angles: tuple[float, float] | None = bundle.angles_at(
                key.tracker, key.lighthouse, key.bin_index, sensor
            )
            if angles is None:
                continue
            if self._apply_corrections:
                angles = correct_angles(angles, lighthouse.corrections)
            object_points.append(tracker.sensor_position(sensor))
            image_points.append(project_angles(angles[0], angles[1], self._z))

        if len(object_points) < MIN_CORRESPONDENCES:
            return None

        pose: Pose6 | None = self._solve_pnp(
            np.asarray(object_points, dtype=np.float64),
            np.asarray(image_points, dtype=np.float64),
        )
        if pose is None:
            return None

        return EpochPose(
            key=key,
            pose=pose,
            correspondences=len(object_points),
            t_ns=bundle.clock.bin_time_ns(key.bin_index),
        )

    def _solve_pnp(
        self,
        object_points: NDArray[np.float64],
        image_points: NDArray[np.float64],
    ) -> Pose6 | None:
        obj: NDArray[np.float64] = object_points.reshape(-1, 1, 3)
        img: NDArray[np.float64] = image_points.reshape(-1, 1, 2)
        try:
            ok, rvec, tvec = cv2.solvePnP(
                obj, img, self._K, self._dist, flags=cv2.SOLVEPNP_EPNP
            )
            if not ok:
                return None
            rvec, tvec = cv2.solvePnPRefineLM(obj, img, self._K, self._dist, rvec, tvec)
        except cv2.error as exc:
            _LOG.debug("Pose solve failed: %s", exc)
            return None

        rotvec: NDArray[np.float64] = np.asarray(rvec, dtype=np.float64).reshape(3)
        translation: NDArray[np.float64] = np.asarray(tvec, dtype=np.float64).reshape(3)
        if not np.all(np.isfinite(rotvec)) or not np.all(np.isfinite(translation)):
            return None
        # Sweep angles only describe points in front of the lighthouse
        if translation[2] <= 0.0:
            return None

        R: NDArray[np.float64] = cv2.Rodrigues(rotvec)[0]
        return Pose6.from_matrix(R, translation)
