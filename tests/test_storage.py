"""
Unit tests for local storage of the tracked data.

Storage contract:
- Missing/invalid file -> built-in seed data (never raises)
- An invalid file is copied to "<name>.bak" before it can be overwritten
- JSON schema: {"academicNavigatorData": { ...AppData blob... }}
- Write failures are reported as False, not raised
"""

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from acadnav import mutate
from acadnav.config import DATA_FILE_ENV, STORAGE_KEY
from acadnav.defaults import SEED_CURRICULUM
from acadnav.storage import backup_path, load_data, resolve_path, save_data


class TestStorage(unittest.TestCase):
    def test_load_missing_file_returns_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            data = load_data(Path(d) / "missing.json")
            self.assertEqual(sorted(data.semesters), sorted(SEED_CURRICULUM))

    def test_save_and_load_roundtrip(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "nested" / "data.json"
            data = mutate.set_target_average(load_data(p), 7.5)
            self.assertTrue(save_data(data, p))

            raw = json.loads(p.read_text(encoding="utf-8"))
            self.assertIn(STORAGE_KEY, raw)
            self.assertEqual(raw[STORAGE_KEY]["targetCGPA"], 7.5)

            self.assertEqual(load_data(p), data)

    def test_corrupt_file_falls_back_to_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "data.json"
            p.write_text("{not json", encoding="utf-8")
            with self.assertLogs("acadnav.storage", level="ERROR"):
                data = load_data(p)
            self.assertEqual(data.max_semester, 8)

    def test_corrupt_file_is_backed_up_before_overwrite(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "data.json"
            p.write_text("{not json", encoding="utf-8")
            with self.assertLogs("acadnav.storage", level="WARNING"):
                data = load_data(p)
            self.assertTrue(save_data(data, p))

            self.assertEqual(backup_path(p), Path(d) / "data.json.bak")
            self.assertEqual(backup_path(p).read_text(encoding="utf-8"), "{not json")
            self.assertIn(STORAGE_KEY, json.loads(p.read_text(encoding="utf-8")))

    def test_wrong_schema_falls_back_to_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "data.json"
            for doc in ({"other": 1}, {STORAGE_KEY: {"semesters": {}}}, {STORAGE_KEY: []}):
                p.write_text(json.dumps(doc), encoding="utf-8")
                with self.assertLogs("acadnav.storage", level="ERROR"):
                    data = load_data(p)
                self.assertEqual(sorted(data.semesters), sorted(SEED_CURRICULUM))

    def test_save_failure_returns_false(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            # a directory where the file should be makes write_text fail
            p = Path(d) / "data.json"
            p.mkdir()
            with self.assertLogs("acadnav.storage", level="ERROR"):
                self.assertFalse(save_data(load_data(Path(d) / "x.json"), p))

    def test_env_override(self) -> None:
        with mock.patch.dict(os.environ, {DATA_FILE_ENV: "/tmp/acadnav-test.json"}):
            self.assertEqual(resolve_path(), Path("/tmp/acadnav-test.json"))
        self.assertEqual(resolve_path("x.json"), Path("x.json"))


if __name__ == "__main__":
    unittest.main()
