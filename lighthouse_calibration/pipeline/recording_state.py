################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Two-state recording machine driven by triggers and inactivity."""

from __future__ import annotations

from enum import Enum


class RecordingState(Enum):
    """Recording session state."""

    IDLE = "idle"
    RECORDING = "recording"


class Transition(Enum):
    """Effect of an event on the recording machine."""

    STARTED = "started"
    STOPPED = "stopped"
    NONE = "none"


class RecordingStateMachine:
    """Tracks whether observations are being recorded.

    A trigger toggles the state. An inactivity timeout only stops an active
    recording and is ignored while idle. Leaving RECORDING is the point at
    which the owner runs a solve.
    """

    def __init__(self, *, offline: bool = False) -> None:
        self._state: RecordingState = (
            RecordingState.RECORDING if offline else RecordingState.IDLE
        )

    @property
    def state(self) -> RecordingState:
        return self._state

    def is_recording(self) -> bool:
        return self._state is RecordingState.RECORDING

    def trigger(self) -> Transition:
        """Toggle recording and return the transition taken."""
        if self._state is RecordingState.RECORDING:
            self._state = RecordingState.IDLE
            return Transition.STOPPED
        self._state = RecordingState.RECORDING
        return Transition.STARTED

    def timeout(self) -> Transition:
        """Stop an active recording after inactivity."""
        if self._state is RecordingState.RECORDING:
            self._state = RecordingState.IDLE
            return Transition.STOPPED
        return Transition.NONE
