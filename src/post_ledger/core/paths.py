"""Locations of the runtime data directory and the bundled ``system`` assets.

The data directory holds everything post-ledger writes: ``config/``,
``templates/``, the index database and rendered HTML. Posts themselves are
never stored there.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

DATA_DIR_ENV = "POST_LEDGER_DATA_DIR"
DEFAULT_DIRNAME = ".post_ledger"
SEED_DIRS = ("config", "templates")

_REPO_ROOT = Path(__file__).resolve().parents[3]
_SYSTEM_DIR = Path(__file__).resolve().parents[1] / "system"


def get_data_dir() -> Path:
    """Return the runtime data directory without creating it.

    ``POST_LEDGER_DATA_DIR`` wins when set; a relative value is taken from the
    repository root and a blank one means ``<repo>/.post_ledger``. Otherwise
    ``~/.post_ledger``.
    """
    override = os.getenv(DATA_DIR_ENV)
    if override is None:
        return (Path.home() / DEFAULT_DIRNAME).resolve()

    override = override.strip() or DEFAULT_DIRNAME
    candidate = Path(override).expanduser()
    if not candidate.is_absolute():
        candidate = _REPO_ROOT / candidate
    return candidate.resolve()


def ensure_data_dir() -> Path:
    """Create the data directory if needed and seed it from ``system/``."""
    data_dir = get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    if data_dir != _SYSTEM_DIR.resolve():
        for name in SEED_DIRS:
            _seed_missing_files(_SYSTEM_DIR / name, data_dir / name)
    return data_dir


def resolve_data_path(*relative: str, ensure_parent: bool = False) -> Path:
    """Join *relative* onto the data directory."""
    full_path = ensure_data_dir().joinpath(*relative)
    if ensure_parent:
        full_path.parent.mkdir(parents=True, exist_ok=True)
    return full_path


def resolve_data_file(path: str, ensure_parent: bool = False) -> Path:
    """Resolve a configured file path such as ``database.path``.

    Absolute paths are used as-is; relative ones live under the data dir.
    """
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        return resolve_data_path(*candidate.parts, ensure_parent=ensure_parent)
    if ensure_parent:
        candidate.parent.mkdir(parents=True, exist_ok=True)
    return candidate


def resolve_output_dir(path: str) -> Path:
    """Resolve and create an output directory (``paths.output_dir`` or ``--output``)."""
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = resolve_data_path(*candidate.parts)
    candidate.mkdir(parents=True, exist_ok=True)
    return candidate


def get_system_path(*relative: str) -> Path:
    """Return a path inside the package's bundled ``system`` directory."""
    return _SYSTEM_DIR.joinpath(*relative)


def _seed_missing_files(source: Path, dest: Path) -> None:
    """Copy files from *source* that are absent under *dest*; never overwrite."""
    if not source.is_dir():
        return
    for item in source.rglob("*"):
        if not item.is_file():
            continue
        target = dest / item.relative_to(source)
        if target.exists():
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(item, target)


__all__ = [
    "DATA_DIR_ENV",
    "get_data_dir",
    "ensure_data_dir",
    "resolve_data_path",
    "resolve_data_file",
    "resolve_output_dir",
    "get_system_path",
]
