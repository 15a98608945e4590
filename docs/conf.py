"""Sphinx configuration for the post-ledger documentation."""

from __future__ import annotations

import os
import sys
from datetime import datetime
from importlib.metadata import PackageNotFoundError, version as get_version


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_DIR = os.path.join(ROOT, "src")

# Make post_ledger importable for autodoc without an install
sys.path.insert(0, SRC_DIR)


project = "post-ledger"
author = "post-ledger contributors"
copyright = f"{datetime.now():%Y}, {author}"

try:
    release = get_version("post-ledger")
except PackageNotFoundError:  # pragma: no cover - local builds without install
    release = "0.0.0"
version = release


extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx_autodoc_typehints",
]

autodoc_typehints = "description"
autodoc_default_options = {
    "members": True,
    "undoc-members": False,
}

napoleon_google_docstring = True
napoleon_numpy_docstring = False

exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

html_theme = "furo"
