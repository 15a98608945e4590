import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from post_ledger.core.corpus import load_posts  # noqa: E402
from post_ledger.core.database import PostIndex  # noqa: E402
from post_ledger.core.front_matter import parse_post_text  # noqa: E402

FIXTURES = Path(__file__).parent / "fixtures" / "_posts"


@pytest.fixture
def index(tmp_path):
    post_index = PostIndex({"database": {"path": str(tmp_path / "posts.db")}})
    yield post_index
    post_index.close()


def test_upsert_reports_insert_unchanged_and_update(index):
    post = parse_post_text("---\ntitle: One\ndate: 2016-01-01\ncategories: [a]\n---\nbody\n", "p/2016-01-01-one.md")
    assert index.upsert_post(post) == "inserted"
    assert index.upsert_post(post) == "unchanged"

    edited = parse_post_text("---\ntitle: One\ndate: 2016-01-01\ncategories: [b]\n---\nbody\n", "p/2016-01-01-one.md")
    assert index.upsert_post(edited) == "updated"

    row = index.get_post("p/2016-01-01-one.md")
    assert row["categories"] == ["b"]
    assert row["url"] == "/b/2016/01/01/one.html"
    assert row["comments"] is True
    assert index.get_categories() == [("b", 1)]


def test_fixture_posts_by_category_newest_first(index):
    posts, _failures = load_posts(FIXTURES)
    for post in posts:
        index.upsert_post(post)

    assert index.count() == 3
    assert index.get_categories()[0] == ("node", 2)
    node_titles = [row["title"] for row in index.get_posts("node")]
    assert node_titles == ["How I vet an npm dependency", "Validating JSON payloads with ajv"]
    all_slugs = [row["slug"] for row in index.get_posts()]
    assert all_slugs[-1] == "partitioning-with-postgres"


def test_remove_missing_drops_stale_rows(index):
    for name in ("2016-01-01-a.md", "2016-01-02-b.md"):
        index.upsert_post(parse_post_text("---\ntitle: T\ncategories: x\n---\nb\n", name))

    assert index.remove_missing(["2016-01-01-a.md"]) == 1
    assert [row["path"] for row in index.get_posts()] == ["2016-01-01-a.md"]
    assert index.get_categories() == [("x", 1)]


def test_clear_and_delete_file(tmp_path, index):
    index.upsert_post(parse_post_text("---\ntitle: T\n---\nb\n", "2016-01-01-a.md"))
    index.clear()
    assert index.count() == 0
    assert index.delete_file() is True
    assert not (tmp_path / "posts.db").exists()
    assert index.delete_file() is False
