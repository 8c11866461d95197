################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Reading and writing lighthouse calibration files.

A calibration file is a YAML snapshot of the lighthouse transforms. Saves are
atomic by default: the snapshot goes to a hidden sibling file that is synced
and renamed over the calibration file, and the sibling is removed if any step
fails.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from lighthouse_calibration.storage.yaml_format import CalibrationSnapshotYaml
from lighthouse_calibration.storage.yaml_format import CalibrationYamlError
from lighthouse_calibration.storage.yaml_format import dumps_yaml
from lighthouse_calibration.storage.yaml_format import loads_yaml


# Accepted calibration file extensions
YAML_SUFFIXES: frozenset[str] = frozenset({".yaml", ".yml"})


class CalibrationPersistenceError(Exception):
    """Raised when a lighthouse calibration file cannot be read or written."""


def is_yaml_path(path: str | os.PathLike[str]) -> bool:
    """Return True if the path has a YAML extension."""
    return Path(os.fspath(path)).suffix.lower() in YAML_SUFFIXES


def _calibration_file(path: str | os.PathLike[str]) -> Path:
    calfile: Path = Path(os.fspath(path))
    if calfile.suffix.lower() not in YAML_SUFFIXES:
        raise CalibrationPersistenceError(
            f"Calibration file {calfile} must end with .yaml or .yml"
        )
    return calfile


def _replace_atomically(calfile: Path, text: str) -> None:
    fd, staging = tempfile.mkstemp(
        prefix=f".{calfile.name}.", suffix=".tmp", dir=calfile.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(staging, calfile)
    except OSError:
        Path(staging).unlink(missing_ok=True)
        raise


def save_yaml_snapshot(
    path: str | os.PathLike[str],
    snapshot: CalibrationSnapshotYaml,
    *,
    atomic_write: bool = True,
) -> None:
    """Write a calibration snapshot, creating parent directories."""
    calfile: Path = _calibration_file(path)
    try:
        text: str = dumps_yaml(snapshot)
        calfile.parent.mkdir(parents=True, exist_ok=True)
        if atomic_write:
            _replace_atomically(calfile, text)
        else:
            calfile.write_text(text, encoding="utf-8")
    except (OSError, CalibrationYamlError) as exc:
        raise CalibrationPersistenceError(
            f"Could not write lighthouse calibration {calfile}: {exc}"
        ) from exc


def load_yaml_snapshot(path: str | os.PathLike[str]) -> CalibrationSnapshotYaml:
    """Read a calibration snapshot."""
    calfile: Path = _calibration_file(path)
    try:
        return loads_yaml(calfile.read_text(encoding="utf-8"))
    except (OSError, CalibrationYamlError) as exc:
        raise CalibrationPersistenceError(
            f"Could not read lighthouse calibration {calfile}: {exc}"
        ) from exc
