"""
Editorial checks for posts: front matter well-formedness, required metadata
and code samples that parse in their annotated language.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from ..core.config import DEFAULT_LINT_SETTINGS
from ..core.front_matter import FrontMatterError, parse_date
from ..core.models import SEVERITY_ERROR, SEVERITY_WARNING, LintIssue, LintReport, Post
from .code_blocks import check_code_block, extract_code_blocks

logger = logging.getLogger(__name__)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


class PostLinter:
    """Applies the configured lint rules to parsed posts."""

    def __init__(self, settings: Optional[Mapping[str, Any]] = None):
        merged = dict(DEFAULT_LINT_SETTINGS)
        merged.update(settings or {})
        self.required_fields: List[str] = list(merged.get('required_fields') or [])
        self.allowed_categories: List[str] = list(merged.get('allowed_categories') or [])
        self.max_title_length: Optional[int] = merged.get('max_title_length')
        self.check_code_blocks: bool = bool(merged.get('check_code_blocks', True))
        self.require_filename_date: bool = bool(merged.get('require_filename_date', True))
        self.language_aliases: Dict[str, str] = dict(merged.get('languages') or {})

    def lint(self, post: Post) -> List[LintIssue]:
        """Return every issue found in *post* (empty list when clean)."""
        issues: List[LintIssue] = []
        fm = post.front_matter

        def add(rule: str, message: str, severity: str = SEVERITY_ERROR, line: Optional[int] = None) -> None:
            issues.append(LintIssue(post.path, rule, message, severity, line))

        for field_name in self.required_fields:
            value = fm.get(field_name)
            if _is_blank(value):
                add('required-field', f"front matter field '{field_name}' is missing or empty")

        if 'date' in fm and not _is_blank(fm.get('date')):
            if parse_date(fm.get('date')) is None:
                add('invalid-date', f"date {fm.get('date')!r} is not a valid YYYY-MM-DD[ HH:MM:SS [+ZZZZ]] value")

        if self.require_filename_date:
            self._check_filename_date(post, add)

        categories = fm.get('categories')
        if categories is not None and not isinstance(categories, str):
            if not isinstance(categories, list) or not all(isinstance(c, str) for c in categories):
                add('categories-type', "categories must be a list of strings or a space-separated string")

        if self.allowed_categories:
            for category in post.categories:
                if category not in self.allowed_categories:
                    add('unknown-category', f"category '{category}' is not in the allowed list", SEVERITY_WARNING)

        if 'comments' in fm and not isinstance(fm.get('comments'), bool):
            add('comments-type', f"comments must be true or false, got {fm.get('comments')!r}")

        if self.max_title_length and len(post.title) > self.max_title_length:
            add(
                'title-length',
                f"title is {len(post.title)} characters (limit {self.max_title_length})",
                SEVERITY_WARNING,
            )

        if not post.body.strip():
            add('empty-body', "post body is empty", SEVERITY_WARNING)

        if self.check_code_blocks:
            for block in extract_code_blocks(post.body, post.body_line):
                problems = check_code_block(block, self.language_aliases)
                for line, message in problems or []:
                    add('code-block', f"{block.language} block: {message}", line=line)

        logger.debug("Linted %s: %d issues", post.path, len(issues))
        return issues

    def _check_filename_date(self, post: Post, add) -> None:
        if post.filename_date is None:
            add('filename-date', "filename does not start with a YYYY-MM-DD- date prefix", SEVERITY_WARNING)
            return
        declared = parse_date(post.front_matter.get('date'))
        if declared is None:
            return
        if declared.date() != post.filename_date:
            add(
                'filename-date',
                f"front matter date {declared.date().isoformat()} does not match "
                f"filename date {post.filename_date.isoformat()}",
                SEVERITY_WARNING,
            )


def lint_posts(
    posts: List[Post],
    failures: Optional[Mapping[str, FrontMatterError]] = None,
    settings: Optional[Mapping[str, Any]] = None,
) -> LintReport:
    """Lint a corpus; unparsable files become ``front-matter`` errors."""
    linter = PostLinter(settings)
    report = LintReport()

    for path, error in (failures or {}).items():
        report.add(LintIssue(path, 'front-matter', str(error), SEVERITY_ERROR, getattr(error, 'line', None)))
        report.checked += 1

    for post in posts:
        report.extend(linter.lint(post))
        report.checked += 1

    report.issues.sort(key=lambda i: (i.path, i.line or 0, i.rule))
    logger.info(
        "Linted %d posts: %d errors, %d warnings",
        report.checked, report.error_count, report.warning_count,
    )
    return report
