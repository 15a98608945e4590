"""Tests for runtime data directory resolution helpers."""

from __future__ import annotations

import os
import sys
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

# Ensure the repository's src/ directory is importable without installation.
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from post_ledger.core.paths import (  # noqa: E402
    ensure_data_dir,
    get_data_dir,
    resolve_data_file,
    resolve_output_dir,
)


class DataDirEnvironmentOverrideTests(unittest.TestCase):
    """Verify that POST_LEDGER_DATA_DIR overrides the runtime data dir."""

    def test_get_data_dir_honors_environment_override(self) -> None:
        with TemporaryDirectory() as tmp:
            override = Path(tmp) / "custom-location"
            with mock.patch.dict(os.environ, {"POST_LEDGER_DATA_DIR": str(override)}, clear=False):
                data_dir = get_data_dir()
        self.assertEqual(data_dir, override.resolve())

    def test_ensure_data_dir_creates_override_and_seeds_templates(self) -> None:
        with TemporaryDirectory() as tmp:
            override = Path(tmp) / "nested" / "override"
            with mock.patch.dict(os.environ, {"POST_LEDGER_DATA_DIR": str(override)}, clear=False):
                data_dir = ensure_data_dir()
                self.assertTrue(override.exists(), "override directory was not created")
                self.assertTrue((override / "templates" / "page_template.html").exists())
        self.assertEqual(data_dir, override.resolve())

    def test_resolve_data_file_keeps_absolute_paths(self) -> None:
        with TemporaryDirectory() as tmp:
            absolute = Path(tmp) / "elsewhere" / "posts.db"
            resolved = resolve_data_file(str(absolute), ensure_parent=True)
            self.assertEqual(resolved, absolute)
            self.assertTrue(absolute.parent.is_dir())

    def test_resolve_data_file_places_relative_paths_in_data_dir(self) -> None:
        with TemporaryDirectory() as tmp:
            with mock.patch.dict(os.environ, {"POST_LEDGER_DATA_DIR": tmp}, clear=False):
                resolved = resolve_data_file("posts.db")
        self.assertEqual(resolved, Path(tmp).resolve() / "posts.db")

    def test_seeding_keeps_existing_files(self) -> None:
        with TemporaryDirectory() as tmp:
            config_file = Path(tmp) / "config" / "config.yaml"
            config_file.parent.mkdir()
            config_file.write_text("site: {}\n", encoding="utf-8")
            with mock.patch.dict(os.environ, {"POST_LEDGER_DATA_DIR": tmp}, clear=False):
                ensure_data_dir()
            self.assertEqual(config_file.read_text(encoding="utf-8"), "site: {}\n")
            self.assertTrue((Path(tmp) / "templates" / "page_template.html").exists())

    def test_resolve_output_dir_creates_relative_dirs_under_data_dir(self) -> None:
        with TemporaryDirectory() as tmp:
            with mock.patch.dict(os.environ, {"POST_LEDGER_DATA_DIR": tmp}, clear=False):
                out = resolve_output_dir("html")
            self.assertEqual(out, Path(tmp).resolve() / "html")
            self.assertTrue(out.is_dir())


if __name__ == "__main__":
    unittest.main()
