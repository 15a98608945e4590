"""Discovery and loading of post files from a posts directory."""

from __future__ import annotations

import logging
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Iterator, List, Tuple

from .front_matter import POST_EXTENSIONS, FrontMatterError, parse_post
from .models import Post

logger = logging.getLogger(__name__)

UNCATEGORIZED = 'uncategorized'


def iter_post_files(posts_dir: str | Path) -> Iterator[Path]:
    """Yield post files under *posts_dir* in sorted order.

    Hidden files and underscore-prefixed names (drafts, includes) are skipped.
    """
    root = Path(posts_dir)
    for path in sorted(root.rglob('*')):
        if not path.is_file():
            continue
        if path.suffix.lower() not in POST_EXTENSIONS:
            continue
        relative = path.relative_to(root)
        if any(part.startswith(('.', '_')) for part in relative.parts):
            continue
        yield path


def load_posts(posts_dir: str | Path) -> Tuple[List[Post], Dict[str, FrontMatterError]]:
    """Parse every post under *posts_dir*.

    Returns:
        ``(posts, failures)``; *failures* maps a file path to the
        :class:`FrontMatterError` that prevented it from loading.

    Raises:
        FileNotFoundError: if *posts_dir* does not exist.
    """
    root = Path(posts_dir)
    if not root.is_dir():
        raise FileNotFoundError(f"Posts directory not found: {root}")

    posts: List[Post] = []
    failures: Dict[str, FrontMatterError] = {}
    for path in iter_post_files(root):
        try:
            posts.append(parse_post(path))
        except FrontMatterError as exc:
            logger.warning("Skipping %s: %s", path, exc)
            failures[str(path)] = exc
        except UnicodeDecodeError as exc:
            logger.warning("Skipping %s: not valid UTF-8 (%s)", path, exc)
            failures[str(path)] = FrontMatterError(f"file is not valid UTF-8: {exc}", path=str(path))

    logger.info("Loaded %d posts from %s (%d failed)", len(posts), root, len(failures))
    return posts, failures


def sort_newest_first(posts: List[Post]) -> List[Post]:
    return sorted(posts, key=lambda p: p.sort_key(), reverse=True)


def group_by_category(posts: List[Post]) -> "OrderedDict[str, List[Post]]":
    """Group posts by category, categories sorted by name, posts newest first.

    Shared categories are the only relationship between posts; a post with
    several categories appears under each of them.
    """
    groups: Dict[str, List[Post]] = {}
    for post in posts:
        for category in post.categories or [UNCATEGORIZED]:
            groups.setdefault(category, []).append(post)

    ordered: "OrderedDict[str, List[Post]]" = OrderedDict()
    for category in sorted(groups, key=str.lower):
        ordered[category] = sort_newest_first(groups[category])
    return ordered
