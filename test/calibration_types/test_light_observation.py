################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for light observation types."""

from __future__ import annotations

import pytest

from lighthouse_calibration.calibration_types.light_observation import (
    LightObservation,
)
from lighthouse_calibration.calibration_types.light_observation import Pulse


def _pulses() -> tuple[Pulse, ...]:
    return (
        Pulse(sensor=0, angle_rad=0.1, duration_sec=5e-6),
        Pulse(sensor=3, angle_rad=-0.2, duration_sec=6e-6),
    )


def test_pulse_coerces_floats() -> None:
    """Ensure integer angle and duration values become floats."""
    pulse: Pulse = Pulse(sensor=1, angle_rad=0, duration_sec=1)
    assert isinstance(pulse.angle_rad, float)
    assert isinstance(pulse.duration_sec, float)


@pytest.mark.parametrize("sensor", [-1, True, 1.5])
def test_pulse_rejects_bad_sensor(sensor: object) -> None:
    """Sensor indices must be non-negative integers."""
    with pytest.raises(ValueError):
        Pulse(sensor=sensor, angle_rad=0.0, duration_sec=1e-6)  # type: ignore[arg-type]


def test_pulse_rejects_non_finite_angle() -> None:
    """Non-finite sweep angles are rejected."""
    with pytest.raises(ValueError):
        Pulse(sensor=0, angle_rad=float("inf"), duration_sec=1e-6)


def test_observation_rejects_bad_axis() -> None:
    """Only axes 0 and 1 exist."""
    with pytest.raises(ValueError):
        LightObservation(tracker="T", lighthouse="L", axis=2, pulses=_pulses())


def test_observation_rejects_empty_serials() -> None:
    """Tracker and lighthouse serials must be set."""
    with pytest.raises(ValueError):
        LightObservation(tracker="", lighthouse="L", axis=0, pulses=_pulses())
    with pytest.raises(ValueError):
        LightObservation(tracker="T", lighthouse="", axis=0, pulses=_pulses())


def test_observation_stores_pulses_as_tuple() -> None:
    """Ensure a pulse list is frozen into a tuple."""
    observation: LightObservation = LightObservation(
        tracker="T",
        lighthouse="L",
        axis=1,
        pulses=list(_pulses()),  # type: ignore[arg-type]
    )
    assert isinstance(observation.pulses, tuple)
    assert len(observation.pulses) == 2


def test_with_pulses_keeps_identity() -> None:
    """Check with_pulses only replaces the pulses."""
    observation: LightObservation = LightObservation(
        tracker="T", lighthouse="L", axis=0, pulses=_pulses()
    )
    trimmed: LightObservation = observation.with_pulses(_pulses()[:1])
    assert trimmed.tracker == "T"
    assert trimmed.lighthouse == "L"
    assert trimmed.axis == 0
    assert trimmed.pulses == _pulses()[:1]
