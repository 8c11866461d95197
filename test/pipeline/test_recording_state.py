################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for the recording state machine."""

from __future__ import annotations

from lighthouse_calibration.pipeline.recording_state import RecordingState
from lighthouse_calibration.pipeline.recording_state import RecordingStateMachine
from lighthouse_calibration.pipeline.recording_state import Transition


def test_trigger_toggles() -> None:
    """Ensure triggers alternate between starting and stopping."""
    machine: RecordingStateMachine = RecordingStateMachine()
    assert machine.state is RecordingState.IDLE
    assert machine.trigger() is Transition.STARTED
    assert machine.is_recording()
    assert machine.trigger() is Transition.STOPPED
    assert not machine.is_recording()
    assert machine.trigger() is Transition.STARTED


def test_timeout_only_stops_recording() -> None:
    """A timeout while idle has no effect."""
    machine: RecordingStateMachine = RecordingStateMachine()
    assert machine.timeout() is Transition.NONE
    assert machine.state is RecordingState.IDLE

    machine.trigger()
    assert machine.timeout() is Transition.STOPPED
    assert machine.timeout() is Transition.NONE


def test_offline_starts_recording() -> None:
    """Check offline sessions record from construction."""
    machine: RecordingStateMachine = RecordingStateMachine(offline=True)
    assert machine.is_recording()
    assert machine.timeout() is Transition.STOPPED
    assert machine.trigger() is Transition.STARTED
