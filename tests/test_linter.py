import sys
import textwrap
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from post_ledger.core.corpus import load_posts  # noqa: E402
from post_ledger.core.front_matter import parse_post_text  # noqa: E402
from post_ledger.processors.linter import PostLinter, lint_posts  # noqa: E402

FIXTURES = Path(__file__).parent / "fixtures" / "_posts"


def _post(front_matter: str, body: str = "Some text.\n", name: str = "2016-01-02-sample.md"):
    text = "---\n" + textwrap.dedent(front_matter).strip() + "\n---\n" + textwrap.dedent(body)
    return parse_post_text(text, f"_posts/{name}")


def _rules(issues):
    return sorted(issue.rule for issue in issues)


def test_fixture_corpus_is_clean():
    posts, failures = load_posts(FIXTURES)
    report = lint_posts(posts, failures)
    assert failures == {}
    assert report.checked == 3
    assert report.issues == []
    assert report.ok


def test_missing_title_and_date_are_errors():
    issues = PostLinter().lint(_post("layout: post\ntitle: '   '"))
    assert _rules(issues) == ["required-field", "required-field"]
    assert all(i.severity == "error" for i in issues)


def test_invalid_date_is_reported():
    issues = PostLinter().lint(_post("title: X\ndate: someday"))
    assert "invalid-date" in _rules(issues)


def test_filename_date_mismatch_is_a_warning():
    issues = PostLinter().lint(_post("title: X\ndate: 2016-01-03"))
    assert [(i.rule, i.severity) for i in issues] == [("filename-date", "warning")]


def test_filename_without_date_prefix():
    issues = PostLinter().lint(_post("title: X\ndate: 2016-01-02", name="about.md"))
    assert _rules(issues) == ["filename-date"]
    assert not PostLinter({"require_filename_date": False}).lint(
        _post("title: X\ndate: 2016-01-02", name="about.md")
    )


def test_type_checks_for_categories_and_comments():
    issues = PostLinter().lint(_post("title: X\ndate: 2016-01-02\ncategories: {a: 1}\ncomments: 'yes'"))
    assert _rules(issues) == ["categories-type", "comments-type"]


def test_allowed_categories_and_title_length_warnings():
    linter = PostLinter({"allowed_categories": ["node"], "max_title_length": 5})
    issues = linter.lint(_post("title: Too long a title\ndate: 2016-01-02\ncategories: [node, rust]"))
    assert [(i.rule, i.severity) for i in sorted(issues, key=lambda i: i.rule)] == [
        ("title-length", "warning"),
        ("unknown-category", "warning"),
    ]


def test_empty_body_warning():
    issues = PostLinter().lint(_post("title: X\ndate: 2016-01-02", body="\n  \n"))
    assert _rules(issues) == ["empty-body"]


def test_code_block_errors_carry_file_lines():
    body = """
    Intro

    ```json
    {"a": }
    ```
    """
    post = _post("title: X\ndate: 2016-01-02", body=body)
    issues = PostLinter().lint(post)
    assert _rules(issues) == ["code-block"]
    # front matter occupies lines 1-4, the fence opens on line 8
    assert issues[0].line == 9
    assert issues[0].message.startswith("json block: invalid JSON")


def test_code_block_checks_can_be_disabled():
    body = "```json\n{broken\n```\n"
    post = _post("title: X\ndate: 2016-01-02", body=body)
    assert PostLinter({"check_code_blocks": False}).lint(post) == []


def test_language_aliases_from_settings():
    body = "```pgsql\nSELECT (1;\n```\n"
    post = _post("title: X\ndate: 2016-01-02", body=body)
    assert PostLinter().lint(post) == []
    issues = PostLinter({"languages": {"pgsql": "sql"}}).lint(post)
    assert _rules(issues) == ["code-block"]


def test_lint_posts_reports_unparsable_files(tmp_path):
    (tmp_path / "2016-01-01-good.md").write_text("---\ntitle: Good\ndate: 2016-01-01\n---\nok\n", encoding="utf-8")
    (tmp_path / "2016-01-02-bad.md").write_text("---\ntitle: [oops\n---\n", encoding="utf-8")
    (tmp_path / "2016-01-03-none.md").write_text("no front matter\n", encoding="utf-8")

    posts, failures = load_posts(tmp_path)
    report = lint_posts(posts, failures)

    assert report.checked == 3
    assert report.error_count == 2
    assert {Path(i.path).name for i in report.issues if i.rule == "front-matter"} == {
        "2016-01-02-bad.md",
        "2016-01-03-none.md",
    }
    assert not report.ok


@pytest.mark.parametrize("value", ["", None, []])
def test_blank_required_values(value):
    post = _post("title: X\ndate: 2016-01-02")
    post.front_matter["title"] = value
    assert "required-field" in _rules(PostLinter().lint(post))


def test_impossible_dates_are_reported_per_post(tmp_path):
    (tmp_path / "2016-02-03-a.md").write_text(
        "---\ntitle: A\ndate: 2016-02-31\n---\nBody\n", encoding="utf-8"
    )
    (tmp_path / "2016-02-04-b.md").write_text(
        "---\ntitle: B\ndate: 2016-02-04\n---\n```yaml\nreleased: 2016-13-01\n```\n",
        encoding="utf-8",
    )
    (tmp_path / "2016-02-05-c.md").write_text(
        "---\ntitle: C\ndate: 2016-02-05\n---\nFine.\n", encoding="utf-8"
    )

    posts, failures = load_posts(tmp_path)
    report = lint_posts(posts, failures)

    assert failures == {}
    assert report.checked == 3
    by_name = {Path(path).name: issues for path, issues in report.by_path().items()}
    assert [i.rule for i in by_name["2016-02-03-a.md"]] == ["invalid-date"]
    yaml_issue = by_name["2016-02-04-b.md"][0]
    assert (yaml_issue.rule, yaml_issue.line) == ("code-block", 6)
    assert yaml_issue.message.startswith("yaml block: invalid YAML")
    assert "2016-02-05-c.md" not in by_name


def test_post_with_impossible_date_keeps_filename_date():
    post = _post("title: X\ndate: 2016-02-31", name="2016-02-03-x.md")
    assert post.front_matter["date"] == "2016-02-31"
    assert post.date.date().isoformat() == "2016-02-03"
