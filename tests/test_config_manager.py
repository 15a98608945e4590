"""Tests for configuration management defaults and validation."""

from __future__ import annotations

from pathlib import Path
import sys
import textwrap

# Ensure the repository's src/ directory is importable without installation.
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from post_ledger.core.config import ConfigManager  # noqa: E402


def _write_config(path: Path, body: str) -> Path:
    path.write_text(textwrap.dedent(body).strip() + "\n", encoding="utf-8")
    return path


def test_config_manager_creates_defaults(tmp_path):
    """When pointed at an empty directory, a default config.yaml is created and valid."""

    config_path = tmp_path / "config.yaml"
    assert not config_path.exists()

    cfg = ConfigManager(str(config_path))

    assert config_path.exists(), "config.yaml should be created on first run"
    data = cfg.load_config()
    assert isinstance(data, dict)
    assert data["database"]["path"] == "posts.db"
    assert cfg.validate_config() is True


def test_existing_config_is_not_overwritten(tmp_path):
    config_path = _write_config(tmp_path / "config.yaml", """
        site:
          title: "Mine"
        paths:
          posts_dir: "content"
        database:
          path: "mine.db"
    """)
    original = config_path.read_text(encoding="utf-8")

    cfg = ConfigManager(str(config_path))

    assert config_path.read_text(encoding="utf-8") == original
    assert cfg.get_site()["title"] == "Mine"
    assert cfg.get_posts_dir() == tmp_path / "content"


def test_posts_dir_override_and_absolute_paths(tmp_path, monkeypatch):
    absolute = tmp_path / "elsewhere"
    config_path = _write_config(tmp_path / "config.yaml", f"""
        site: {{}}
        paths:
          posts_dir: "{absolute.as_posix()}"
        database:
          path: "posts.db"
    """)
    cfg = ConfigManager(str(config_path))

    assert cfg.get_posts_dir() == absolute
    blog = tmp_path / "blog"
    blog.mkdir()
    monkeypatch.chdir(blog)
    # --posts-dir is relative to the working directory, not the config file
    assert cfg.get_posts_dir("drafts") == (blog / "drafts").resolve()


def test_lint_settings_merge_over_defaults(tmp_path):
    config_path = _write_config(tmp_path / "config.yaml", """
        site: {}
        paths: {}
        database:
          path: "posts.db"
        lint:
          max_title_length: 60
    """)
    settings = ConfigManager(str(config_path)).get_lint_settings()

    assert settings["max_title_length"] == 60
    assert settings["required_fields"] == ["title", "date"]
    assert settings["check_code_blocks"] is True


def test_validate_config_rejects_missing_section(tmp_path):
    config_path = _write_config(tmp_path / "config.yaml", """
        site: {}
        database:
          path: "posts.db"
    """)
    assert ConfigManager(str(config_path)).validate_config() is False


def test_validate_config_rejects_bad_ignore_regex(tmp_path):
    config_path = _write_config(tmp_path / "config.yaml", """
        site: {}
        paths: {}
        database:
          path: "posts.db"
        links:
          ignore: ["(unclosed"]
    """)
    assert ConfigManager(str(config_path)).validate_config() is False


def test_validate_config_rejects_non_positive_title_length(tmp_path):
    config_path = _write_config(tmp_path / "config.yaml", """
        site: {}
        paths: {}
        database:
          path: "posts.db"
        lint:
          max_title_length: 0
    """)
    assert ConfigManager(str(config_path)).validate_config() is False
