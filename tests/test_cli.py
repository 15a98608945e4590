import shutil
import sys
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner


PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from post_ledger.cli import cli  # noqa: E402

FIXTURES = Path(__file__).parent / "fixtures" / "_posts"


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    monkeypatch.setenv("POST_LEDGER_DATA_DIR", str(tmp_path / "data"))
    shutil.copytree(FIXTURES, tmp_path / "_posts")
    path = tmp_path / "config.yaml"
    path.write_text(textwrap.dedent("""
        site:
          title: "CLI blog"
        paths:
          posts_dir: "_posts"
        database:
          path: "posts.db"
    """).strip() + "\n", encoding="utf-8")
    return str(path)


def _invoke(config_path, *args):
    return CliRunner().invoke(cli, ["--config", config_path, *args])


def test_lint_clean_corpus_exits_zero(config_path):
    result = _invoke(config_path, "lint")
    assert result.exit_code == 0, result.output
    assert "✅ 3 posts checked: 0 errors, 0 warnings" in result.output


def test_lint_errors_exit_non_zero(config_path, tmp_path):
    (tmp_path / "_posts" / "2016-10-01-bad-json.md").write_text(
        "---\ntitle: Bad\ndate: 2016-10-01\n---\n```json\n{\"a\": 1,}\n```\n",
        encoding="utf-8",
    )
    result = _invoke(config_path, "lint")
    assert result.exit_code == 1
    assert "[code-block] json block: invalid JSON" in result.output
    assert "2016-10-01-bad-json.md:6: error" in result.output


def test_strict_lint_fails_on_warnings(config_path, tmp_path):
    (tmp_path / "_posts" / "about.md").write_text(
        "---\ntitle: About\ndate: 2016-01-01\n---\nHello.\n", encoding="utf-8"
    )
    assert _invoke(config_path, "lint").exit_code == 0

    result = _invoke(config_path, "lint", "--strict")
    assert result.exit_code == 1
    assert "[filename-date]" in result.output


def test_index_then_categories(config_path):
    result = _invoke(config_path, "index")
    assert result.exit_code == 0, result.output
    assert "3 new, 0 changed, 0 unchanged, 0 removed" in result.output

    result = _invoke(config_path, "categories")
    lines = [line.split() for line in result.output.splitlines() if line.strip()]
    assert ["node", "2"] in lines
    assert ["postgresql", "1"] in lines


def test_categories_before_index(config_path):
    result = _invoke(config_path, "categories")
    assert "No categories indexed" in result.output


def test_html_command(config_path, tmp_path):
    out = tmp_path / "public"
    result = _invoke(config_path, "html", "--output", str(out))
    assert result.exit_code == 0, result.output
    assert (out / "index.html").exists()


def test_status_and_purge(config_path):
    _invoke(config_path, "index")

    result = _invoke(config_path, "status")
    assert "✅ Configuration is valid" in result.output
    assert "(3 post files)" in result.output
    assert "(3 posts)" in result.output

    result = _invoke(config_path, "purge")
    assert "✅ Index database removed" in result.output
    result = _invoke(config_path, "purge")
    assert "Index database did not exist" in result.output


def test_missing_posts_dir_fails(config_path, tmp_path):
    result = _invoke(config_path, "lint", "--posts-dir", str(tmp_path / "missing"))
    assert result.exit_code == 1
    assert "Posts directory not found" in result.output


def test_posts_dir_option_is_relative_to_working_directory(config_path, tmp_path, monkeypatch):
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(tmp_path)

    result = _invoke(config_path, "lint", "--posts-dir", "_posts")
    assert result.exit_code == 0, result.output
    assert "3 posts checked" in result.output

    monkeypatch.chdir(elsewhere)
    result = _invoke(config_path, "lint", "--posts-dir", "_posts")
    assert result.exit_code == 1
    assert "Posts directory not found" in result.output
