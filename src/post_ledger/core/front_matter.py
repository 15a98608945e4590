"""
Front-matter parsing for Jekyll-style post files.

A post file starts with a ``---`` line, followed by a YAML mapping, closed by
another ``---`` (or ``...``) line. Everything after the closing delimiter is
the body and is kept verbatim.
"""

from __future__ import annotations

import datetime
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .models import Post
from .text_utils import normalize_category, slugify

logger = logging.getLogger(__name__)

POST_EXTENSIONS = ('.md', '.markdown', '.html')

_FILENAME_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})-(.+)$")
_DATE_RE = re.compile(
    r"^(\d{4})-(\d{1,2})-(\d{1,2})"
    r"(?:[ T](\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?)?"
    r"\s*(Z|[+-]\d{2}:?\d{2})?$"
)


class _FrontMatterLoader(yaml.SafeLoader):
    """SafeLoader that keeps timestamps as strings; ``parse_date`` validates them."""


_FrontMatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class FrontMatterError(ValueError):
    """Raised when a post's leading metadata block cannot be parsed."""

    def __init__(self, message: str, path: Optional[str] = None, line: Optional[int] = None):
        self.path = path
        self.line = line
        super().__init__(message)


def split_front_matter(text: str) -> Tuple[Dict[str, Any], str, int]:
    """Split *text* into ``(front_matter, body, body_start_line)``.

    ``body_start_line`` is the 1-based line number of the first body line in
    the original text, so code-block positions can be reported against the
    file.

    Raises:
        FrontMatterError: opening delimiter missing, block unterminated, YAML
            invalid, or YAML not a mapping.
    """
    if text.startswith('\ufeff'):
        text = text[1:]
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != '---':
        raise FrontMatterError("missing front matter (file must start with '---')", line=1)

    closing = None
    for index in range(1, len(lines)):
        if lines[index].rstrip() in ('---', '...'):
            closing = index
            break
    if closing is None:
        raise FrontMatterError("unterminated front matter (no closing '---')", line=1)

    block = ''.join(lines[1:closing])
    try:
        data = yaml.load(block, Loader=_FrontMatterLoader)
    except yaml.YAMLError as exc:
        mark = getattr(exc, 'problem_mark', None)
        line = mark.line + 2 if mark is not None else None
        raise FrontMatterError(f"invalid YAML in front matter: {exc}", line=line) from exc
    except ValueError as exc:
        raise FrontMatterError(f"invalid value in front matter: {exc}", line=2) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"front matter must be a key-value mapping, got {type(data).__name__}", line=2
        )

    body = ''.join(lines[closing + 1:])
    return data, body, closing + 2


def parse_filename(name: str) -> Tuple[Optional[datetime.date], str]:
    """Return ``(date, slug)`` for a ``YYYY-MM-DD-slug.ext`` post filename.

    Examples:
        >>> parse_filename("2016-05-01-vetting-dependencies.md")
        (datetime.date(2016, 5, 1), 'vetting-dependencies')
        >>> parse_filename("about.md")
        (None, 'about')
    """
    stem = Path(name).stem
    match = _FILENAME_RE.match(stem)
    if not match:
        return None, stem
    year, month, day, slug = match.groups()
    try:
        return datetime.date(int(year), int(month), int(day)), slug
    except ValueError:
        return None, stem


def parse_date(value: Any) -> Optional[datetime.datetime]:
    """Coerce a front-matter date value into a ``datetime``.

    Accepts the ``date``/``datetime`` objects PyYAML produces as well as the
    string forms Jekyll understands (``YYYY-MM-DD``, ``YYYY-MM-DD HH:MM[:SS]``
    with an optional ``+HHMM`` offset). Returns ``None`` when the value is
    empty or unparseable.
    """
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    match = _DATE_RE.match(value.strip())
    if not match:
        return None
    year, month, day, hour, minute, second, offset = match.groups()
    tzinfo = None
    if offset:
        if offset == 'Z':
            tzinfo = datetime.timezone.utc
        else:
            sign = -1 if offset[0] == '-' else 1
            digits = offset[1:].replace(':', '')
            delta = datetime.timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
            tzinfo = datetime.timezone(sign * delta)
    try:
        return datetime.datetime(
            int(year), int(month), int(day),
            int(hour or 0), int(minute or 0), int(second or 0),
            tzinfo=tzinfo,
        )
    except ValueError:
        return None


def normalize_categories(front_matter: Dict[str, Any]) -> List[str]:
    """Merge ``categories`` and ``category`` into an ordered, de-duplicated list.

    A string value is split on whitespace, as Jekyll does.
    """
    raw: List[Any] = []
    for key in ('categories', 'category'):
        value = front_matter.get(key)
        if value is None:
            continue
        if isinstance(value, str):
            raw.extend(value.split())
        elif isinstance(value, (list, tuple)):
            raw.extend(value)
        else:
            raw.append(value)

    categories: List[str] = []
    for item in raw:
        if item is None:
            continue
        label = normalize_category(str(item))
        if label and label not in categories:
            categories.append(label)
    return categories


def parse_comments(value: Any, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', 'yes', 'on'):
            return True
        if lowered in ('false', 'no', 'off'):
            return False
    return default


def parse_post_text(text: str, path: str) -> Post:
    """Build a :class:`Post` from raw file content."""
    try:
        front_matter, body, body_line = split_front_matter(text)
    except FrontMatterError as exc:
        exc.path = path
        raise

    filename_date, file_slug = parse_filename(Path(path).name)
    title = front_matter.get('title')
    title = str(title).strip() if title is not None else ''
    slug = front_matter.get('slug')
    slug = slugify(str(slug)) if slug else file_slug

    return Post(
        path=path,
        title=title,
        date=parse_date(front_matter.get('date')) or (
            datetime.datetime.combine(filename_date, datetime.time()) if filename_date else None
        ),
        categories=normalize_categories(front_matter),
        comments=parse_comments(front_matter.get('comments')),
        body=body,
        front_matter=front_matter,
        slug=slug,
        filename_date=filename_date,
        body_line=body_line,
    )


def parse_post(path: str | Path) -> Post:
    """Read and parse a post file from disk."""
    file_path = Path(path)
    text = file_path.read_text(encoding='utf-8')
    post = parse_post_text(text, str(file_path))
    logger.debug("Parsed post %s (%d categories)", file_path, len(post.categories))
    return post


__all__ = [
    "FrontMatterError",
    "POST_EXTENSIONS",
    "split_front_matter",
    "parse_filename",
    "parse_date",
    "normalize_categories",
    "parse_comments",
    "parse_post_text",
    "parse_post",
]
