"""
Persistent storage of the tracked data.

This module manages one JSON file (default: acadnav/data/academic_data.json)
holding the whole AppData blob under a fixed key:

    {"academicNavigatorData": { "semesters": ..., "timetable": ..., ... }}

The blob is read once at startup and rewritten after every mutation.
Storage problems are never fatal: a missing or broken file falls back to
the built-in seed data, a failed write is logged and reported as False.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from pathlib import Path

from acadnav.config import DATA_FILE_ENV, DEFAULT_DATA_FILE, STORAGE_KEY
from acadnav.defaults import default_data
from acadnav.model import AppData

logger = logging.getLogger(__name__)


def _default_data_path() -> Path:
    """
    Return the data file path: $ACADNAV_DATA_FILE if set, else the package default.

    Using a function instead of a constant makes testing easier,
    because tests can override the path or the environment.
    """
    env = os.environ.get(DATA_FILE_ENV, "").strip()
    return Path(env) if env else DEFAULT_DATA_FILE


def resolve_path(path: str | Path | None = None) -> Path:
    return Path(path) if path is not None else _default_data_path()


def backup_path(data_path: Path) -> Path:
    return data_path.with_name(data_path.name + ".bak")


def _backup_unreadable(data_path: Path) -> None:
    """
    Copy an unreadable data file aside, so the next save (which writes the
    seed data) does not destroy it.
    """
    target = backup_path(data_path)
    try:
        shutil.copyfile(data_path, target)
    except OSError as e:
        logger.error("Could not back up %s to %s: %s", data_path, target, e)
        return
    logger.warning("Unreadable data file kept as %s", target)


def load_data(path: str | Path | None = None) -> AppData:
    """
    Load AppData from disk.

    Returns the seed data if the file does not exist, cannot be read,
    or does not contain a usable blob. An existing but unusable file is
    copied to "<name>.bak" first.
    """
    data_path = resolve_path(path)

    # First run: nothing stored yet
    if not data_path.exists():
        logger.info("No data file at %s, starting from defaults", data_path)
        return default_data()

    try:
        doc = json.loads(data_path.read_text(encoding="utf-8"))
        blob = doc[STORAGE_KEY]
        return AppData.from_dict(blob)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to load data from %s: %s", data_path, e)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.error("Stored data in %s is invalid (%s), using defaults", data_path, e)
    _backup_unreadable(data_path)
    return default_data()


def save_data(data: AppData, path: str | Path | None = None) -> bool:
    """
    Save AppData to disk. Creates parent directories if needed.

    Returns False (and logs) if the file could not be written.
    """
    data_path = resolve_path(path)
    payload = {STORAGE_KEY: data.to_dict()}

    try:
        data_path.parent.mkdir(parents=True, exist_ok=True)
        data_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as e:
        logger.error("Failed to save data to %s: %s", data_path, e)
        return False
    return True
