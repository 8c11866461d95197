################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Load lighthouse calibration configuration from YAML documents.

The document layout follows the tracking configuration shared with the
lighthouse driver:

    frames: {world: ..., vive: ..., body: ...}
    thresholds: {count: ..., angle: ..., duration: ...}
    resolution: 0.1
    correct: false
    refine: {sensors: false, params: false}
    solver: {max_time: 30.0, max_iterations: 100, threads: 4, debug: false}
    visualize: true
    lighthouses: [lighthouse_left, ...]
    lighthouse_left: {serial: "...", transform: [x, y, z, qx, qy, qz, qw]}
    trackers: [tracker_test, ...]
    tracker_test: {serial: "...", extrinsics: [x, y, z, qx, qy, qz, qw]}

Keys used only by other consumers of the same file are ignored.
"""

from __future__ import annotations

import numbers
import os
from pathlib import Path
from typing import Any

import yaml

from lighthouse_calibration.config.calibration_config import CalibrationConfig
from lighthouse_calibration.config.calibration_config import CalibrationConfigError
from lighthouse_calibration.config.calibration_config import LighthouseEntry
from lighthouse_calibration.config.calibration_config import TrackerEntry
from lighthouse_calibration.config.calibration_config import pose_from_vector7
from lighthouse_calibration.config.calibration_params import BundleParams
from lighthouse_calibration.config.calibration_params import CalibrationParams
from lighthouse_calibration.config.calibration_params import CorrectionParams
from lighthouse_calibration.config.calibration_params import FramesParams
from lighthouse_calibration.config.calibration_params import RecordingParams
from lighthouse_calibration.config.calibration_params import SaveParams
from lighthouse_calibration.config.calibration_params import SolverParams
from lighthouse_calibration.config.calibration_params import ThresholdParams
from lighthouse_calibration.config.calibration_params import VisualizeParams


def load_config_yaml(path: str | os.PathLike[str]) -> CalibrationConfig:
    """Load and validate a calibration configuration file."""
    path_obj: Path = Path(os.fspath(path))
    try:
        text: str = path_obj.read_text(encoding="utf-8")
    except OSError as exc:
        raise CalibrationConfigError(
            f"Failed to read configuration from {path_obj}"
        ) from exc
    return loads_config_yaml(text)


def loads_config_yaml(text: str) -> CalibrationConfig:
    """Parse and validate a calibration configuration document."""
    try:
        loaded: Any = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise CalibrationConfigError("Configuration is not valid YAML") from exc
    if not isinstance(loaded, dict):
        raise CalibrationConfigError("Configuration root must be a mapping")
    return config_from_dict(loaded)


def config_from_dict(data: dict[str, Any]) -> CalibrationConfig:
    """Build a calibration configuration from a parsed mapping."""
    defaults: CalibrationParams = CalibrationParams.defaults()

    frames_data: dict[str, Any] = _require_mapping(data, "frames")
    thresholds_data: dict[str, Any] = _require_mapping(data, "thresholds")
    refine_data: dict[str, Any] = _require_mapping(data, "refine")
    solver_data: dict[str, Any] = _require_mapping(data, "solver")

    frames: FramesParams = FramesParams(
        world=_require_str(frames_data, "world", "frames"),
        vive=_require_str(frames_data, "vive", "frames"),
        body=_require_str(frames_data, "body", "frames"),
    )
    thresholds: ThresholdParams = ThresholdParams(
        count=_require_int(thresholds_data, "count", "thresholds"),
        angle_deg=_require_float(thresholds_data, "angle", "thresholds"),
        duration_us=_require_float(thresholds_data, "duration", "thresholds"),
    )
    bundle: BundleParams = BundleParams(
        resolution_sec=_require_float(data, "resolution", ""),
    )
    correction: CorrectionParams = CorrectionParams(
        correct=_require_bool(data, "correct", ""),
        refine_params=_require_bool(refine_data, "params", "refine"),
        refine_sensors=_require_bool(refine_data, "sensors", "refine"),
    )
    solver: SolverParams = SolverParams(
        max_time_sec=_require_float(solver_data, "max_time", "solver"),
        max_iterations=_require_int(solver_data, "max_iterations", "solver"),
        threads=_require_int(solver_data, "threads", "solver"),
        debug=_require_bool(solver_data, "debug", "solver"),
        robust_loss=str(solver_data.get("robust_loss", defaults.solver.robust_loss)),
        robust_scale=_optional_float(
            solver_data, "robust_scale", "solver", defaults.solver.robust_scale
        ),
    )
    recording: RecordingParams = RecordingParams(
        offline=_optional_bool(data, "offline", "", defaults.recording.offline),
        timeout_sec=_optional_float(
            data, "timeout", "", defaults.recording.timeout_sec
        ),
    )
    visualize: VisualizeParams = VisualizeParams(
        enabled=_require_bool(data, "visualize", ""),
    )
    calfile: Any = data.get("calfile", defaults.save.calfile)
    if calfile is not None and not isinstance(calfile, str):
        raise CalibrationConfigError("calfile must be a string")
    save: SaveParams = SaveParams(calfile=calfile or None)

    params: CalibrationParams = defaults.replace(
        frames=frames,
        thresholds=thresholds,
        bundle=bundle,
        correction=correction,
        solver=solver,
        recording=recording,
        visualize=visualize,
        save=save,
    )

    lighthouses: list[LighthouseEntry] = []
    for name in _require_name_list(data, "lighthouses"):
        block: dict[str, Any] = _require_mapping(data, name)
        lighthouses.append(
            LighthouseEntry(
                name=name,
                serial=_require_serial(block, name),
                transform=pose_from_vector7(
                    _require_key(block, "transform", name), f"{name}.transform"
                ),
            )
        )

    trackers: list[TrackerEntry] = []
    for name in _require_name_list(data, "trackers"):
        block = _require_mapping(data, name)
        trackers.append(
            TrackerEntry(
                name=name,
                serial=_require_serial(block, name),
                extrinsics=pose_from_vector7(
                    _require_key(block, "extrinsics", name), f"{name}.extrinsics"
                ),
            )
        )

    return CalibrationConfig(params, lighthouses, trackers)


def _scoped(scope: str, key: str) -> str:
    return f"{scope}.{key}" if scope else key


def _require_key(data: dict[str, Any], key: str, scope: str) -> Any:
    if key not in data:
        raise CalibrationConfigError(f"Missing key: {_scoped(scope, key)}")
    return data[key]


def _require_mapping(data: dict[str, Any], key: str) -> dict[str, Any]:
    value: Any = _require_key(data, key, "")
    if not isinstance(value, dict):
        raise CalibrationConfigError(f"{key} must be a mapping")
    return value


def _require_str(data: dict[str, Any], key: str, scope: str) -> str:
    value: Any = _require_key(data, key, scope)
    if not isinstance(value, str):
        raise CalibrationConfigError(f"{_scoped(scope, key)} must be a string")
    return value


def _require_serial(data: dict[str, Any], scope: str) -> str:
    # Numeric-looking serials are common in hand written files
    value: Any = _require_key(data, "serial", scope)
    if isinstance(value, bool) or not isinstance(value, (str, numbers.Integral)):
        raise CalibrationConfigError(f"{scope}.serial must be a string")
    return str(value)


def _require_bool(data: dict[str, Any], key: str, scope: str) -> bool:
    value: Any = _require_key(data, key, scope)
    if not isinstance(value, bool):
        raise CalibrationConfigError(f"{_scoped(scope, key)} must be a boolean")
    return value


def _require_int(data: dict[str, Any], key: str, scope: str) -> int:
    value: Any = _require_key(data, key, scope)
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise CalibrationConfigError(f"{_scoped(scope, key)} must be an integer")
    return int(value)


def _require_float(data: dict[str, Any], key: str, scope: str) -> float:
    value: Any = _require_key(data, key, scope)
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise CalibrationConfigError(f"{_scoped(scope, key)} must be a number")
    return float(value)


def _optional_bool(
    data: dict[str, Any], key: str, scope: str, default: bool
) -> bool:
    if key not in data:
        return default
    return _require_bool(data, key, scope)


def _optional_float(
    data: dict[str, Any], key: str, scope: str, default: float
) -> float:
    if key not in data:
        return default
    return _require_float(data, key, scope)


def _require_name_list(data: dict[str, Any], key: str) -> list[str]:
    value: Any = _require_key(data, key, "")
    if not isinstance(value, list):
        raise CalibrationConfigError(f"{key} must be a list of names")
    names: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item:
            raise CalibrationConfigError(f"{key} must contain non-empty names")
        names.append(item)
    return names
