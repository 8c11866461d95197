################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""YAML schema utilities for lighthouse calibration snapshots.

Transforms are stored as [x, y, z, qx, qy, qz, qw] lists. Lighthouses and
trackers are mappings keyed by serial, in configuration order.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Any
from typing import cast

import numpy as np
import yaml


# Current snapshot schema version
FORMAT_VERSION: int = 1


class CalibrationYamlError(Exception):
    """Raised when the calibration YAML schema is invalid."""


@dataclass(frozen=True)
class FramesYaml:
    """Frame identifiers used by the calibration snapshot.

    Attributes:
        world: World frame id
        vive: Shared lighthouse reference frame id
        body: Body frame id
    """

    world: str
    vive: str
    body: str

    def __post_init__(self) -> None:
        """Validate frame identifiers."""
        object.__setattr__(self, "world", _require_str(self.world, "world"))
        object.__setattr__(self, "vive", _require_str(self.vive, "vive"))
        object.__setattr__(self, "body", _require_str(self.body, "body"))


@dataclass(frozen=True)
class CalibrationSnapshotYaml:
    """Serializable calibration snapshot.

    Attributes:
        format_version: Schema version
        frames: Frame identifiers
        master: Serial of the master lighthouse
        registration: World-to-vive transform as a 7-vector
        lighthouses: Lighthouse-to-vive transforms keyed by serial
        trackers: Tracker extrinsics keyed by serial
    """

    format_version: int
    frames: FramesYaml
    master: str
    registration: np.ndarray
    lighthouses: dict[str, np.ndarray]
    trackers: dict[str, np.ndarray]

    def __post_init__(self) -> None:
        """Validate snapshot fields."""
        if _require_int(self.format_version, "format_version") != FORMAT_VERSION:
            raise CalibrationYamlError(
                f"Unsupported format_version {self.format_version}"
            )
        if not isinstance(self.frames, FramesYaml):
            raise CalibrationYamlError("frames must be FramesYaml")
        master: str = _require_str(self.master, "master")
        registration: np.ndarray = _coerce_vector7(self.registration, "registration")
        lighthouses: dict[str, np.ndarray] = _coerce_pose_map(
            self.lighthouses, "lighthouses"
        )
        trackers: dict[str, np.ndarray] = _coerce_pose_map(self.trackers, "trackers")
        if master not in lighthouses:
            raise CalibrationYamlError("master must be one of the lighthouses")
        object.__setattr__(self, "master", master)
        object.__setattr__(self, "registration", registration)
        object.__setattr__(self, "lighthouses", lighthouses)
        object.__setattr__(self, "trackers", trackers)


def snapshot_to_dict(snapshot: CalibrationSnapshotYaml) -> dict[str, object]:
    """Convert a snapshot to a plain dictionary."""
    return {
        "format_version": snapshot.format_version,
        "frames": {
            "world": snapshot.frames.world,
            "vive": snapshot.frames.vive,
            "body": snapshot.frames.body,
        },
        "master": snapshot.master,
        "registration": _vector_to_list(snapshot.registration),
        "lighthouses": {
            serial: _vector_to_list(transform)
            for serial, transform in snapshot.lighthouses.items()
        },
        "trackers": {
            serial: _vector_to_list(extrinsics)
            for serial, extrinsics in snapshot.trackers.items()
        },
    }


def snapshot_from_dict(data: dict[str, object]) -> CalibrationSnapshotYaml:
    """Parse a snapshot from a dictionary."""
    _require_keys(
        "root",
        data,
        {
            "format_version",
            "frames",
            "master",
            "registration",
            "lighthouses",
            "trackers",
        },
    )
    frames_data: dict[str, object] = _require_mapping(data["frames"], "frames")
    _require_keys("frames", frames_data, {"world", "vive", "body"})
    frames: FramesYaml = FramesYaml(
        world=_require_str(frames_data["world"], "frames.world"),
        vive=_require_str(frames_data["vive"], "frames.vive"),
        body=_require_str(frames_data["body"], "frames.body"),
    )
    return CalibrationSnapshotYaml(
        format_version=_require_int(data["format_version"], "format_version"),
        frames=frames,
        master=_require_str(data["master"], "master"),
        registration=_coerce_vector7(data["registration"], "registration"),
        lighthouses=_coerce_pose_map(
            _require_mapping(data["lighthouses"], "lighthouses"), "lighthouses"
        ),
        trackers=_coerce_pose_map(
            _require_mapping(data["trackers"], "trackers"), "trackers"
        ),
    )


def dumps_yaml(snapshot: CalibrationSnapshotYaml) -> str:
    """Serialize a snapshot to YAML text."""
    data: dict[str, object] = snapshot_to_dict(snapshot)
    safe_dump: Any = cast(Any, yaml.safe_dump)
    return str(
        safe_dump(
            data,
            sort_keys=False,
            indent=2,
            default_flow_style=False,
        )
    )


def loads_yaml(text: str) -> CalibrationSnapshotYaml:
    """Parse YAML text into a snapshot."""
    try:
        loaded: Any = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise CalibrationYamlError("Calibration file is not valid YAML") from exc
    if not isinstance(loaded, dict):
        raise CalibrationYamlError("YAML root must be a mapping")
    return snapshot_from_dict(loaded)


def _require_keys(scope: str, data: dict[str, object], required: set[str]) -> None:
    """Ensure a mapping has exactly the required keys."""
    unknown: set[str] = {key for key in data.keys() if key not in required}
    if unknown:
        raise CalibrationYamlError(
            f"Unexpected keys in {scope}: {', '.join(sorted(unknown))}"
        )
    missing: set[str] = {key for key in required if key not in data}
    if missing:
        raise CalibrationYamlError(
            f"Missing keys in {scope}: {', '.join(sorted(missing))}"
        )


def _require_mapping(value: object, name: str) -> dict[str, object]:
    """Ensure the value is a dictionary."""
    if not isinstance(value, dict):
        raise CalibrationYamlError(f"{name} must be a mapping")
    return value


def _require_str(value: object, name: str) -> str:
    """Ensure the value is a non-empty string."""
    if not isinstance(value, str) or not value:
        raise CalibrationYamlError(f"{name} must be a non-empty string")
    return value


def _require_int(value: object, name: str) -> int:
    """Ensure the value is an integer."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise CalibrationYamlError(f"{name} must be an integer")
    return int(value)


def _coerce_vector7(value: object, name: str) -> np.ndarray:
    """Convert an input to a finite 7-vector with a non-zero quaternion."""
    try:
        array: np.ndarray = np.array(value, dtype=np.float64, copy=True)
    except (TypeError, ValueError) as exc:
        raise CalibrationYamlError(f"{name} must be numeric") from exc
    if array.shape != (7,):
        raise CalibrationYamlError(f"{name} must have shape (7,)")
    if not np.all(np.isfinite(array)):
        raise CalibrationYamlError(f"{name} must be finite")
    if float(np.linalg.norm(array[3:])) <= 0.0:
        raise CalibrationYamlError(f"{name} quaternion must be non-zero")
    return array


def _coerce_pose_map(value: object, name: str) -> dict[str, np.ndarray]:
    """Convert a mapping of serial to 7-vector."""
    mapping: dict[str, object] = _require_mapping(value, name)
    result: dict[str, np.ndarray] = {}
    for serial, vector in mapping.items():
        key: str = _require_str(serial, f"{name} key")
        result[key] = _coerce_vector7(vector, f"{name}.{key}")
    return result


def _vector_to_list(vector: np.ndarray) -> list[float]:
    return [float(value) for value in vector]
