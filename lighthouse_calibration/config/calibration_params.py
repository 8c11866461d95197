################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Structured configuration schema for lighthouse calibration."""

from __future__ import annotations

import math
from dataclasses import dataclass
from dataclasses import fields
from dataclasses import replace
from typing import Any


# Light topic name
TOPIC_LIGHT: str = "light"
# Tracker geometry topic name
TOPIC_TRACKERS: str = "trackers"
# Lighthouse parameter topic name
TOPIC_LIGHTHOUSES: str = "lighthouses"

# World frame name
FRAME_WORLD: str = "world"
# Shared lighthouse reference frame name
FRAME_VIVE: str = "vive"
# Body frame name
FRAME_BODY: str = "body"

# Minimum pulses per sweep for an observation to be kept
THRESH_COUNT: int = 4
# Maximum absolute sweep angle in degrees
THRESH_ANGLE_DEG: float = 60.0
# Minimum pulse duration in microseconds
THRESH_DURATION_US: float = 1.0

# Temporal bundle resolution in seconds
BUNDLE_RESOLUTION_SEC: float = 0.1

# Apply lighthouse correction parameters to sweep angles
CORRECTION_CORRECT: bool = False
# Refine lighthouse correction parameters when solving
CORRECTION_REFINE_PARAMS: bool = False
# Refine sensor positions when solving
CORRECTION_REFINE_SENSORS: bool = False

# Maximum solver wall-clock time in seconds
SOLVER_MAX_TIME_SEC: float = 30.0
# Maximum solver iterations
SOLVER_MAX_ITERATIONS: int = 100
# Worker threads used to evaluate residual blocks
SOLVER_THREADS: int = 4
# Log per-iteration solver progress
SOLVER_DEBUG: bool = False
# Robust loss identifier
SOLVER_ROBUST_LOSS: str = "huber"
# Robust loss scale
SOLVER_ROBUST_SCALE: float = 1.0
# Relative cost decrease below which the solver stops
SOLVER_FUNCTION_TOLERANCE: float = 1e-12
# Relative step size below which the solver stops
SOLVER_PARAMETER_TOLERANCE: float = 1e-12
# Gradient max-norm below which the solver stops
SOLVER_GRADIENT_TOLERANCE: float = 1e-12

# Start recording immediately for offline replay
RECORDING_OFFLINE: bool = False
# Inactivity period after which a recording stops, in seconds
RECORDING_TIMEOUT_SEC: float = 1.0

# Publish trajectories and sensor markers
VISUALIZE_ENABLED: bool = True

# Output path for the calibration file, None selects the default path
SAVE_CALFILE: str | None = None
# Use atomic write for persistence
SAVE_ATOMIC_WRITE: bool = True


class CalibrationParamsError(Exception):
    """Raised when calibration parameter validation fails."""


def _require_positive(value: float, name: str) -> None:
    """Require a finite positive value."""
    if not math.isfinite(value) or value <= 0.0:
        raise CalibrationParamsError(f"{name} must be positive")


def _require_non_negative(value: float, name: str) -> None:
    """Require a finite non-negative value."""
    if not math.isfinite(value) or value < 0.0:
        raise CalibrationParamsError(f"{name} must be non-negative")


def _require_positive_int(value: int, name: str) -> None:
    """Require a positive integer value."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise CalibrationParamsError(f"{name} must be an int")
    if value <= 0:
        raise CalibrationParamsError(f"{name} must be positive")


def _require_name(value: str, name: str) -> None:
    """Require a non-empty string."""
    if not isinstance(value, str) or not value:
        raise CalibrationParamsError(f"{name} must be set")


@dataclass(frozen=True)
class TopicsParams:
    """Topic names consumed by lighthouse calibration."""

    # Light topic name
    light: str = TOPIC_LIGHT
    # Tracker geometry topic name
    trackers: str = TOPIC_TRACKERS
    # Lighthouse parameter topic name
    lighthouses: str = TOPIC_LIGHTHOUSES


@dataclass(frozen=True)
class FramesParams:
    """Frame identifiers for lighthouse calibration."""

    # World frame name
    world: str = FRAME_WORLD
    # Shared lighthouse reference frame name
    vive: str = FRAME_VIVE
    # Body frame name
    body: str = FRAME_BODY


@dataclass(frozen=True)
class ThresholdParams:
    """Pulse rejection thresholds."""

    # Minimum pulses per sweep
    count: int = THRESH_COUNT
    # Maximum absolute sweep angle in degrees
    angle_deg: float = THRESH_ANGLE_DEG
    # Minimum pulse duration in microseconds
    duration_us: float = THRESH_DURATION_US

    def angle_rad(self) -> float:
        """Return the angle threshold in radians."""
        return math.radians(self.angle_deg)

    def duration_sec(self) -> float:
        """Return the duration threshold in seconds."""
        return self.duration_us * 1e-6


@dataclass(frozen=True)
class BundleParams:
    """Temporal bundling parameters."""

    # Bundle resolution in seconds
    resolution_sec: float = BUNDLE_RESOLUTION_SEC


@dataclass(frozen=True)
class CorrectionParams:
    """Sweep angle correction and refinement switches.

    Refinement is only meaningful when corrections are applied, so
    refine_params is forced off when correct is off.
    """

    # Apply lighthouse correction parameters
    correct: bool = CORRECTION_CORRECT
    # Refine lighthouse correction parameters
    refine_params: bool = CORRECTION_REFINE_PARAMS
    # Refine sensor positions
    refine_sensors: bool = CORRECTION_REFINE_SENSORS

    def __post_init__(self) -> None:
        """Force parameter refinement off without corrections."""
        if not self.correct:
            object.__setattr__(self, "refine_params", False)


@dataclass(frozen=True)
class SolverParams:
    """Global transform solver configuration."""

    # Maximum wall-clock time in seconds
    max_time_sec: float = SOLVER_MAX_TIME_SEC
    # Maximum iterations
    max_iterations: int = SOLVER_MAX_ITERATIONS
    # Worker threads
    threads: int = SOLVER_THREADS
    # Log per-iteration progress
    debug: bool = SOLVER_DEBUG
    # Robust loss identifier
    robust_loss: str = SOLVER_ROBUST_LOSS
    # Robust loss scale
    robust_scale: float = SOLVER_ROBUST_SCALE
    # Relative cost decrease tolerance
    function_tolerance: float = SOLVER_FUNCTION_TOLERANCE
    # Relative step size tolerance
    parameter_tolerance: float = SOLVER_PARAMETER_TOLERANCE
    # Gradient max-norm tolerance
    gradient_tolerance: float = SOLVER_GRADIENT_TOLERANCE


@dataclass(frozen=True)
class RecordingParams:
    """Recording session policy."""

    # Start recording immediately for offline replay
    offline: bool = RECORDING_OFFLINE
    # Inactivity timeout in seconds
    timeout_sec: float = RECORDING_TIMEOUT_SEC


@dataclass(frozen=True)
class VisualizeParams:
    """Visualization output switches."""

    # Publish trajectories and sensor markers
    enabled: bool = VISUALIZE_ENABLED


@dataclass(frozen=True)
class SaveParams:
    """Persistence parameters for calibration output."""

    # Output path for the calibration file
    calfile: str | None = SAVE_CALFILE
    # Use atomic write for persistence
    atomic_write: bool = SAVE_ATOMIC_WRITE


@dataclass(frozen=True)
class CalibrationParams:
    """Complete configuration tree for lighthouse calibration."""

    topics: TopicsParams
    frames: FramesParams
    thresholds: ThresholdParams
    bundle: BundleParams
    correction: CorrectionParams
    solver: SolverParams
    recording: RecordingParams
    visualize: VisualizeParams
    save: SaveParams

    @classmethod
    def defaults(cls) -> CalibrationParams:
        """Return the default calibration parameter tree."""
        return cls(
            topics=TopicsParams(),
            frames=FramesParams(),
            thresholds=ThresholdParams(),
            bundle=BundleParams(),
            correction=CorrectionParams(),
            solver=SolverParams(),
            recording=RecordingParams(),
            visualize=VisualizeParams(),
            save=SaveParams(),
        )

    def validate(self) -> None:
        """Validate parameter invariants and constraints."""
        _require_name(self.topics.light, "topics.light")
        _require_name(self.topics.trackers, "topics.trackers")
        _require_name(self.topics.lighthouses, "topics.lighthouses")
        _require_name(self.frames.world, "frames.world")
        _require_name(self.frames.vive, "frames.vive")
        _require_name(self.frames.body, "frames.body")
        if len({self.frames.world, self.frames.vive, self.frames.body}) != 3:
            raise CalibrationParamsError("frames must be distinct")

        _require_positive_int(self.thresholds.count, "thresholds.count")
        _require_positive(self.thresholds.angle_deg, "thresholds.angle_deg")
        if self.thresholds.angle_deg >= 90.0:
            raise CalibrationParamsError("thresholds.angle_deg must be below 90")
        _require_non_negative(self.thresholds.duration_us, "thresholds.duration_us")

        _require_positive(self.bundle.resolution_sec, "bundle.resolution_sec")
        if self.bundle.resolution_sec < 1e-9:
            raise CalibrationParamsError(
                "bundle.resolution_sec must be at least one nanosecond"
            )

        _require_positive(self.solver.max_time_sec, "solver.max_time_sec")
        _require_positive_int(self.solver.max_iterations, "solver.max_iterations")
        _require_positive_int(self.solver.threads, "solver.threads")
        _require_name(self.solver.robust_loss, "solver.robust_loss")
        _require_positive(self.solver.robust_scale, "solver.robust_scale")
        _require_non_negative(
            self.solver.function_tolerance, "solver.function_tolerance"
        )
        _require_non_negative(
            self.solver.parameter_tolerance, "solver.parameter_tolerance"
        )
        _require_non_negative(
            self.solver.gradient_tolerance, "solver.gradient_tolerance"
        )

        _require_positive(self.recording.timeout_sec, "recording.timeout_sec")

        if self.save.calfile is not None and not isinstance(self.save.calfile, str):
            raise CalibrationParamsError("save.calfile must be a string")

    def replace(self, **namespace_overrides: Any) -> CalibrationParams:
        """Return a modified copy of the parameters."""
        return replace(self, **namespace_overrides)

    def as_nested_dict(self) -> dict[str, Any]:
        """Return a nested dict representation for debugging."""
        return _dataclass_to_dict(self)


def _dataclass_to_dict(value: Any) -> Any:
    """Convert dataclasses into plain Python values."""
    if hasattr(value, "__dataclass_fields__"):
        return {
            field.name: _dataclass_to_dict(getattr(value, field.name))
            for field in fields(value)
        }
    return value
