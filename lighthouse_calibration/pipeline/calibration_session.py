################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Aggregate state of one calibration run.

The session owns the device roster, the measurement store, the recording
state and the inactivity timer. Every public method takes the session lock,
so message callbacks, trigger requests and timer polls may arrive from
different threads.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from lighthouse_calibration.calibration_types.light_observation import (
    LightObservation,
)
from lighthouse_calibration.calibration_types.lighthouse import AxisCorrection
from lighthouse_calibration.calibration_types.lighthouse import Lighthouse
from lighthouse_calibration.calibration_types.solve_report import (
    MSG_RECORDING_STARTED,
)
from lighthouse_calibration.calibration_types.solve_report import SolveReport
from lighthouse_calibration.calibration_types.solve_report import TriggerResult
from lighthouse_calibration.calibration_types.tracker import Tracker
from lighthouse_calibration.config.calibration_config import CalibrationConfig
from lighthouse_calibration.config.calibration_params import FramesParams
from lighthouse_calibration.math_utils.pose6 import Pose6
from lighthouse_calibration.pipeline.calibration_pipeline import CalibrationPipeline
from lighthouse_calibration.pipeline.calibration_pipeline import SolveOutcome
from lighthouse_calibration.pipeline.ingestion_filter import IngestionFilter
from lighthouse_calibration.pipeline.ingestion_filter import IngestionResult
from lighthouse_calibration.pipeline.ingestion_filter import IngestionStatus
from lighthouse_calibration.pipeline.measurement_store import MeasurementStore
from lighthouse_calibration.pipeline.recording_state import RecordingStateMachine
from lighthouse_calibration.pipeline.recording_state import Transition
from lighthouse_calibration.storage.path_utils import calibration_path
from lighthouse_calibration.storage.persistence import CalibrationPersistenceError
from lighthouse_calibration.storage.persistence import load_yaml_snapshot
from lighthouse_calibration.storage.persistence import save_yaml_snapshot
from lighthouse_calibration.storage.yaml_format import FORMAT_VERSION
from lighthouse_calibration.storage.yaml_format import CalibrationSnapshotYaml
from lighthouse_calibration.storage.yaml_format import FramesYaml
from lighthouse_calibration.tf.transform_publisher import PublishedTransform
from lighthouse_calibration.tf.transform_publisher import TransformPublisher
from lighthouse_calibration.timing.epoch_clock import sec_to_ns
from lighthouse_calibration.timing.inactivity_timer import InactivityTimer
from lighthouse_calibration.visualization.trajectory import Trajectory


_LOG: logging.Logger = logging.getLogger(__name__)


class CalibrationSessionError(Exception):
    """Raised when a snapshot does not fit the configured roster."""


class CalibrationSession:
    """Owns calibration state between and across solves."""

    def __init__(
        self,
        config: CalibrationConfig,
        *,
        calibration_file: str | Path | None = None,
    ) -> None:
        self._config: CalibrationConfig = config
        self._lock: threading.RLock = threading.RLock()

        self._master: str = config.master_serial()
        self._lighthouses: dict[str, Lighthouse] = {}
        for entry in config.lighthouses:
            transform: Pose6 = entry.transform
            if entry.serial == self._master:
                if not transform.is_identity():
                    _LOG.warning(
                        "Master lighthouse %s transform forced to identity",
                        entry.name,
                    )
                transform = Pose6.identity()
            self._lighthouses[entry.serial] = Lighthouse(
                serial=entry.serial, transform=transform
            )

        self._trackers: dict[str, Tracker] = {
            entry.serial: Tracker(serial=entry.serial, body_to_head=entry.extrinsics)
            for entry in config.trackers
        }

        self._registration: Pose6 = Pose6.identity()
        self._store: MeasurementStore = MeasurementStore()
        self._state: RecordingStateMachine = RecordingStateMachine(
            offline=config.params.recording.offline
        )
        self._timer: InactivityTimer = InactivityTimer(
            sec_to_ns(config.params.recording.timeout_sec)
        )
        self._filter: IngestionFilter = IngestionFilter(config.params.thresholds)
        self._pipeline: CalibrationPipeline = CalibrationPipeline(config.params)
        self._publisher: TransformPublisher = TransformPublisher(config.params.frames)

        self._calibration_file: Path = (
            Path(calibration_file)
            if calibration_file is not None
            else calibration_path(calfile=config.params.save.calfile)
        )
        self._trajectories: tuple[Trajectory, ...] = ()
        self._started_ns: int | None = None

    @property
    def config(self) -> CalibrationConfig:
        return self._config

    @property
    def master(self) -> str:
        return self._master

    @property
    def calibration_file(self) -> Path:
        return self._calibration_file

    @property
    def registration(self) -> Pose6:
        with self._lock:
            return self._registration

    def is_recording(self) -> bool:
        with self._lock:
            return self._state.is_recording()

    def measurement_count(self) -> int:
        with self._lock:
            return len(self._store)

    def lighthouses(self) -> tuple[Lighthouse, ...]:
        """Return lighthouses in configuration order."""
        with self._lock:
            return tuple(self._lighthouses.values())

    def trackers(self) -> tuple[Tracker, ...]:
        """Return trackers in configuration order."""
        with self._lock:
            return tuple(self._trackers.values())

    def tracker(self, serial: str) -> Tracker | None:
        with self._lock:
            return self._trackers.get(serial)

    def lighthouse_transform(self, serial: str) -> Pose6:
        with self._lock:
            return self._lighthouses[serial].transform

    def trajectories(self) -> tuple[Trajectory, ...]:
        """Return the trajectories of the last successful solve."""
        with self._lock:
            return self._trajectories

    def update_tracker(self, serial: str, sensors: NDArray[np.float64]) -> bool:
        """Store tracker sensor geometry.

        Returns True when the tracker became ready with this update.
        Unknown trackers are ignored.
        """
        with self._lock:
            tracker: Tracker | None = self._trackers.get(serial)
            if tracker is None:
                return False
            was_ready: bool = tracker.ready
            self._trackers[serial] = tracker.with_sensors(sensors)
            if not was_ready:
                _LOG.info(
                    "Found tracker %s (%s)", self._config.tracker_name(serial), serial
                )
            return not was_ready

    def update_lighthouse(
        self, serial: str, corrections: tuple[AxisCorrection, AxisCorrection]
    ) -> bool:
        """Store lighthouse correction parameters.

        Returns True when the lighthouse became ready with this update.
        Unknown lighthouses are ignored.
        """
        with self._lock:
            lighthouse: Lighthouse | None = self._lighthouses.get(serial)
            if lighthouse is None:
                return False
            was_ready: bool = lighthouse.ready
            self._lighthouses[serial] = lighthouse.with_corrections(corrections)
            if not was_ready:
                _LOG.info(
                    "Found lighthouse %s (%s)",
                    self._config.lighthouse_name(serial),
                    serial,
                )
            return not was_ready

    def ingest(
        self,
        observation: LightObservation,
        t_ns: int,
        *,
        now_ns: int | None = None,
    ) -> IngestionResult:
        """Filter an observation and store it when accepted.

        t_ns is the observation stamp used for bundling. now_ns is the
        wall-clock time used for the inactivity timer and defaults to t_ns.
        """
        with self._lock:
            result: IngestionResult = self._filter.filter(
                observation,
                recording=self._state.is_recording(),
                trackers=self._trackers,
                lighthouses=self._lighthouses,
            )
            if result.observation is not None:
                self._store.append(t_ns, result.observation)
                self._timer.reset(t_ns if now_ns is None else now_ns)
            elif result.status is IngestionStatus.TOO_FEW_PULSES:
                _LOG.debug(
                    "Dropped observation from %s/%s: %s",
                    observation.tracker,
                    observation.lighthouse,
                    result.status.value,
                )
            return result

    def trigger(self, now_ns: int) -> TriggerResult:
        """Toggle recording, solving when a recording stops."""
        with self._lock:
            transition: Transition = self._state.trigger()
            if transition is Transition.STARTED:
                self._timer.cancel()
                self._started_ns = now_ns
                _LOG.info("Recording started")
                return TriggerResult(
                    success=True, message=MSG_RECORDING_STARTED, recording=True
                )
            _LOG.info(
                "Recording stopped by trigger after %.1f s", self._elapsed_sec(now_ns)
            )
            return self._stop_and_solve()

    def poll_timeout(self, now_ns: int) -> TriggerResult | None:
        """Stop recording if the inactivity timeout has expired."""
        with self._lock:
            if not self._timer.expired(now_ns):
                return None
            if self._state.timeout() is not Transition.STOPPED:
                return None
            _LOG.info(
                "Recording stopped after inactivity, %.1f s recorded",
                self._elapsed_sec(now_ns),
            )
            return self._stop_and_solve()

    def _elapsed_sec(self, now_ns: int) -> float:
        if self._started_ns is None:
            return 0.0
        return max(now_ns - self._started_ns, 0) * 1e-9

    def _stop_and_solve(self) -> TriggerResult:
        self._timer.cancel()
        self._started_ns = None
        try:
            outcome: SolveOutcome = self._pipeline.solve(
                self._store,
                trackers=self._trackers,
                lighthouses=self._lighthouses,
                master=self._master,
            )
        finally:
            self._store.clear()

        report: SolveReport = outcome.report
        if report.success:
            for serial, transform in outcome.transforms.items():
                self._lighthouses[serial] = self._lighthouses[serial].with_transform(
                    transform
                )
            self._trajectories = outcome.trajectories
            report = replace(report, saved=self.save_calibration())

        _LOG.info(report.message)
        return TriggerResult(
            success=report.success,
            message=report.message,
            recording=self._state.is_recording(),
            report=report,
        )

    def snapshot(self) -> CalibrationSnapshotYaml:
        """Return the current calibration as a serializable snapshot."""
        with self._lock:
            frames: FramesParams = self._config.params.frames
            return CalibrationSnapshotYaml(
                format_version=FORMAT_VERSION,
                frames=FramesYaml(
                    world=frames.world, vive=frames.vive, body=frames.body
                ),
                master=self._master,
                registration=self._registration.to_vector7(),
                lighthouses={
                    serial: lighthouse.transform.to_vector7()
                    for serial, lighthouse in self._lighthouses.items()
                },
                trackers={
                    serial: tracker.body_to_head.to_vector7()
                    for serial, tracker in self._trackers.items()
                },
            )

    def apply_snapshot(self, snapshot: CalibrationSnapshotYaml) -> None:
        """Adopt the transforms of a snapshot.

        Devices in the snapshot that are not configured are ignored, and
        configured devices missing from the snapshot keep their transforms.
        """
        with self._lock:
            if snapshot.master != self._master:
                raise CalibrationSessionError(
                    f"Calibration master {snapshot.master} does not match "
                    f"configured master {self._master}"
                )
            self._registration = Pose6.from_vector7(snapshot.registration)
            for serial, vector in snapshot.lighthouses.items():
                if serial == self._master or serial not in self._lighthouses:
                    continue
                self._lighthouses[serial] = self._lighthouses[serial].with_transform(
                    Pose6.from_vector7(vector)
                )
            for serial, vector in snapshot.trackers.items():
                tracker: Tracker | None = self._trackers.get(serial)
                if tracker is None:
                    continue
                self._trackers[serial] = replace(
                    tracker, body_to_head=Pose6.from_vector7(vector)
                )

    def load_calibration(self) -> bool:
        """Apply the calibration file if one exists.

        Returns True if a calibration was applied. A missing, unreadable or
        mismatched file leaves the configured transforms in place.
        """
        if not self._calibration_file.exists():
            _LOG.info("No calibration found at %s", self._calibration_file)
            return False
        try:
            snapshot: CalibrationSnapshotYaml = load_yaml_snapshot(
                self._calibration_file
            )
            self.apply_snapshot(snapshot)
        except (CalibrationPersistenceError, CalibrationSessionError) as exc:
            _LOG.warning("Ignoring calibration %s: %s", self._calibration_file, exc)
            return False
        _LOG.info("Loaded calibration from %s", self._calibration_file)
        return True

    def save_calibration(self) -> bool:
        """Write the current calibration, returning True on success."""
        try:
            save_yaml_snapshot(
                self._calibration_file,
                self.snapshot(),
                atomic_write=self._config.params.save.atomic_write,
            )
        except CalibrationPersistenceError as exc:
            _LOG.error("Could not save calibration: %s", exc)
            return False
        _LOG.info("Saved calibration to %s", self._calibration_file)
        return True

    def published_transforms(self, t_ns: int) -> list[PublishedTransform]:
        """Return the static transform tree of the current calibration."""
        with self._lock:
            lighthouses: Sequence[tuple[str, Pose6]] = [
                (serial, lighthouse.transform)
                for serial, lighthouse in self._lighthouses.items()
            ]
            trackers: Sequence[tuple[str, Pose6]] = [
                (serial, tracker.body_to_head)
                for serial, tracker in self._trackers.items()
            ]
            return self._publisher.transforms(
                t_ns=t_ns,
                registration=self._registration,
                lighthouses=lighthouses,
                trackers=trackers,
            )
