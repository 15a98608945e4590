"""
Data models for posts and lint results.

Posts are loaded read-only from the corpus; nothing here writes back to a
post file.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .text_utils import excerpt as make_excerpt
from .text_utils import slugify, word_count as count_words

SEVERITY_ERROR = 'error'
SEVERITY_WARNING = 'warning'


@dataclass
class Post:
    """A single article parsed from a front-matter file."""

    path: str
    title: str
    date: Optional[datetime.datetime]
    categories: List[str]
    comments: bool
    body: str
    front_matter: Dict[str, Any] = field(default_factory=dict)
    slug: str = ''
    filename_date: Optional[datetime.date] = None
    body_line: int = 1

    @property
    def url(self) -> str:
        """Jekyll's default ``date`` permalink: /cat/.../YYYY/MM/DD/slug.html."""
        parts = [slugify(c) for c in self.categories if slugify(c)]
        day = self.date.date() if self.date else self.filename_date
        if day is not None:
            parts.extend([f"{day.year:04d}", f"{day.month:02d}", f"{day.day:02d}"])
        parts.append(f"{self.slug or slugify(self.title) or 'post'}.html")
        return "/" + "/".join(parts)

    @property
    def excerpt(self) -> str:
        return make_excerpt(self.body)

    @property
    def word_count(self) -> int:
        return count_words(self.body)

    def sort_key(self):
        """Newest first when used with ``reverse=True``; undated posts sort last."""
        if self.date is None:
            return (0, datetime.datetime.min, self.path)
        moment = self.date
        if moment.tzinfo is not None:
            moment = moment.astimezone(datetime.timezone.utc)
        return (1, moment.replace(tzinfo=None), self.path)


@dataclass
class CodeBlock:
    """A fenced or Liquid-highlighted code sample inside a post body."""

    language: str
    code: str
    line: int
    fence: str = '```'
    # File line of the first code line; 0 means the line after `line`.
    code_line: int = 0


@dataclass
class LintIssue:
    path: str
    rule: str
    message: str
    severity: str = SEVERITY_ERROR
    line: Optional[int] = None

    def format(self) -> str:
        location = f"{self.path}:{self.line}" if self.line else self.path
        return f"{location}: {self.severity} [{self.rule}] {self.message}"


@dataclass
class LintReport:
    """Issues collected over a corpus run, keyed by post path."""

    issues: List[LintIssue] = field(default_factory=list)
    checked: int = 0

    def add(self, issue: LintIssue) -> None:
        self.issues.append(issue)

    def extend(self, issues: List[LintIssue]) -> None:
        self.issues.extend(issues)

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == SEVERITY_ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == SEVERITY_WARNING)

    @property
    def ok(self) -> bool:
        return self.error_count == 0

    def by_path(self) -> Dict[str, List[LintIssue]]:
        grouped: Dict[str, List[LintIssue]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.path, []).append(issue)
        return grouped
