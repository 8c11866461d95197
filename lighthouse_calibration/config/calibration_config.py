################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""High-level configuration wrapper for lighthouse calibration.

The configuration couples the parameter tree with the device roster. The
roster lists lighthouses and trackers by a human readable name, each with a
serial number and an initial pose given as [x, y, z, qx, qy, qz, qw].

The master lighthouse is the first lighthouse in configuration order. Its
transform is identity and it is never solved for.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from lighthouse_calibration.config.calibration_params import CalibrationParams
from lighthouse_calibration.config.calibration_params import CalibrationParamsError
from lighthouse_calibration.math_utils.pose6 import Pose6


class CalibrationConfigError(Exception):
    """Raised when calibration configuration validation fails."""


@dataclass(frozen=True)
class LighthouseEntry:
    """Configured lighthouse.

    Attributes:
        name: Configuration name, used for topic names
        serial: Lighthouse serial number
        transform: Initial lighthouse-to-vive transform
    """

    name: str
    serial: str
    transform: Pose6


@dataclass(frozen=True)
class TrackerEntry:
    """Configured tracker.

    Attributes:
        name: Configuration name, used for topic names
        serial: Tracker serial number
        extrinsics: Tracker head-to-body transform
    """

    name: str
    serial: str
    extrinsics: Pose6


def pose_from_vector7(values: Sequence[float], name: str) -> Pose6:
    """Parse a 7-component pose vector, raising a configuration error."""
    if isinstance(values, (str, bytes)):
        raise CalibrationConfigError(f"{name} must be a list of 7 numbers")
    try:
        components: list[float] = [float(value) for value in values]
    except (TypeError, ValueError) as exc:
        raise CalibrationConfigError(f"{name} must be a list of 7 numbers") from exc
    if len(components) != 7:
        raise CalibrationConfigError(f"{name} must have 7 components")
    try:
        return Pose6.from_vector7(components)
    except ValueError as exc:
        raise CalibrationConfigError(f"Failed to parse {name}: {exc}") from exc


@dataclass(frozen=True)
class CalibrationConfig:
    """Validated parameters and device roster."""

    params: CalibrationParams
    lighthouses: tuple[LighthouseEntry, ...]
    trackers: tuple[TrackerEntry, ...]

    def __init__(
        self,
        params: CalibrationParams,
        lighthouses: Sequence[LighthouseEntry],
        trackers: Sequence[TrackerEntry],
    ) -> None:
        """Initialize the configuration wrapper and validate."""
        object.__setattr__(self, "params", params)
        object.__setattr__(self, "lighthouses", tuple(lighthouses))
        object.__setattr__(self, "trackers", tuple(trackers))
        self.validate()

    def validate(self) -> None:
        """Validate parameter invariants and roster policies."""
        try:
            self.params.validate()
        except CalibrationParamsError as exc:
            raise CalibrationConfigError(str(exc)) from exc

        if self.params.solver.robust_loss.lower() not in {"huber", "cauchy", "none"}:
            raise CalibrationConfigError(
                "solver.robust_loss must be huber, cauchy, or none"
            )

        if not self.lighthouses:
            raise CalibrationConfigError("At least one lighthouse must be configured")

        _require_unique(
            [entry.name for entry in self.lighthouses], "lighthouse names"
        )
        _require_unique([entry.name for entry in self.trackers], "tracker names")
        _require_unique(
            [entry.serial for entry in self.lighthouses]
            + [entry.serial for entry in self.trackers],
            "serials",
        )
        for lighthouse in self.lighthouses:
            _require_identifier(lighthouse.name, "lighthouse name")
            _require_identifier(lighthouse.serial, "lighthouse serial")
        for tracker in self.trackers:
            _require_identifier(tracker.name, "tracker name")
            _require_identifier(tracker.serial, "tracker serial")

    def master_serial(self) -> str:
        """Return the serial of the master lighthouse."""
        return self.lighthouses[0].serial

    def lighthouse_serials(self) -> tuple[str, ...]:
        """Return lighthouse serials in configuration order."""
        return tuple(entry.serial for entry in self.lighthouses)

    def tracker_serials(self) -> tuple[str, ...]:
        """Return tracker serials in configuration order."""
        return tuple(entry.serial for entry in self.trackers)

    def lighthouse_name(self, serial: str) -> str:
        """Return the configuration name of a lighthouse."""
        for entry in self.lighthouses:
            if entry.serial == serial:
                return entry.name
        raise KeyError(serial)

    def tracker_name(self, serial: str) -> str:
        """Return the configuration name of a tracker."""
        for entry in self.trackers:
            if entry.serial == serial:
                return entry.name
        raise KeyError(serial)


def _require_unique(values: list[str], name: str) -> None:
    seen: set[str] = set()
    for value in values:
        if value in seen:
            raise CalibrationConfigError(f"Duplicate {name}: {value}")
        seen.add(value)


def _require_identifier(value: str, name: str) -> None:
    if not isinstance(value, str) or not value:
        raise CalibrationConfigError(f"{name} must be a non-empty string")
