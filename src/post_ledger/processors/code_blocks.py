"""
Extraction and syntax checking of code samples embedded in post bodies.

Posts carry fenced blocks (backticks or tildes) and Liquid
``{% highlight lang %}`` blocks. Each block can be checked against its
annotated language:

- JSON, YAML and Python are parsed with their real parsers.
- JavaScript and SQL get a structural scan: brackets must balance and string
  literals, comments, template literals, regex literals and PostgreSQL
  dollar-quoted bodies must be closed.

Languages without a checker are skipped rather than reported.
"""

from __future__ import annotations

import ast
import json
import logging
import re
from typing import Callable, Dict, List, Optional, Tuple

import yaml

from ..core.models import CodeBlock

logger = logging.getLogger(__name__)

Problem = Tuple[int, str]

_FENCE_OPEN_RE = re.compile(r"^( {0,3})(`{3,}|~{3,})\s*([^\s`{]*)?(.*)$")
_HIGHLIGHT_OPEN_RE = re.compile(r"^\s*\{%-?\s*highlight\s+([\w+#.-]+)[^%]*-?%\}(.*)$")
_HIGHLIGHT_CLOSE_RE = re.compile(r"\{%-?\s*endhighlight\s*-?%\}")

_PAIRS = {')': '(', ']': '[', '}': '{'}
_OPENERS = set(_PAIRS.values())

# Characters after which a '/' starts a regex literal rather than a division.
_REGEX_PRECEDERS = set('(,=:[!&|?{};+-*%<>~^') | {'', 'keyword'}
_REGEX_KEYWORDS = {
    'return', 'typeof', 'case', 'in', 'of', 'delete',
    'void', 'throw', 'new', 'yield', 'await', 'instanceof', 'else', 'do',
}


def extract_code_blocks(body: str, start_line: int = 1) -> List[CodeBlock]:
    """Return every fenced or highlight block in *body*.

    Args:
        body: Post body text.
        start_line: File line number of the first body line, so reported
            positions match the source file.
    """
    lines = body.splitlines()
    blocks: List[CodeBlock] = []
    i = 0
    while i < len(lines):
        line = lines[i]

        fence = _FENCE_OPEN_RE.match(line)
        if fence:
            indent, marker, language, _rest = fence.groups()
            if marker[0] == '`' and '`' in (_rest or ''):
                i += 1
                continue
            closing = re.compile(r"^ {0,3}" + re.escape(marker[0]) + "{" + str(len(marker)) + r",}\s*$")
            code_lines = []
            j = i + 1
            while j < len(lines) and not closing.match(lines[j]):
                code_lines.append(_dedent(lines[j], len(indent)))
                j += 1
            blocks.append(CodeBlock(
                language=(language or '').lower(),
                code='\n'.join(code_lines),
                line=start_line + i,
                fence=marker[:3],
                code_line=start_line + i + 1,
            ))
            i = j + 1
            continue

        highlight = _HIGHLIGHT_OPEN_RE.match(line)
        if highlight:
            language, trailing = highlight.groups()
            code_lines = []
            j = i
            remainder = trailing
            while True:
                end = _HIGHLIGHT_CLOSE_RE.search(remainder)
                if end:
                    if remainder[:end.start()].strip() or j > i:
                        code_lines.append(remainder[:end.start()])
                    break
                if j > i or remainder.strip():
                    code_lines.append(remainder)
                j += 1
                if j >= len(lines):
                    break
                remainder = lines[j]
            while code_lines and not code_lines[-1].strip():
                code_lines.pop()
            blocks.append(CodeBlock(
                language=language.lower(),
                code='\n'.join(code_lines),
                line=start_line + i,
                fence='highlight',
                code_line=start_line + i + (0 if trailing.strip() else 1),
            ))
            i = j + 1
            continue

        i += 1
    return blocks


def _dedent(line: str, width: int) -> str:
    count = 0
    while count < width and count < len(line) and line[count] == ' ':
        count += 1
    return line[count:]


def _check_json(code: str) -> List[Problem]:
    try:
        json.loads(code)
    except json.JSONDecodeError as exc:
        return [(exc.lineno, f"invalid JSON: {exc.msg} (column {exc.colno})")]
    return []


def _check_yaml(code: str) -> List[Problem]:
    try:
        list(yaml.safe_load_all(code))
    except yaml.YAMLError as exc:
        mark = getattr(exc, 'problem_mark', None)
        line = mark.line + 1 if mark is not None else 1
        problem = getattr(exc, 'problem', None) or str(exc)
        return [(line, f"invalid YAML: {problem}")]
    except ValueError as exc:
        # Well-formed scalars can still fail to construct, e.g. 2016-13-01.
        return [(1, f"invalid YAML: {exc}")]
    return []


def _check_python(code: str) -> List[Problem]:
    try:
        ast.parse(code)
    except SyntaxError as exc:
        return [(exc.lineno or 1, f"invalid Python: {exc.msg}")]
    return []


class _Scanner:
    """Bracket balancer shared by the JavaScript and SQL checks."""

    def __init__(self, code: str):
        self.code = code
        self.pos = 0
        self.line = 1
        self.stack: List[Tuple[str, int]] = []
        self.problems: List[Problem] = []

    def peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.code[index] if index < len(self.code) else ''

    def advance(self, count: int = 1) -> None:
        for _ in range(count):
            if self.pos < len(self.code) and self.code[self.pos] == '\n':
                self.line += 1
            self.pos += 1

    def at_end(self) -> bool:
        return self.pos >= len(self.code)

    def bracket(self, ch: str) -> None:
        if ch in _OPENERS:
            self.stack.append((ch, self.line))
            return
        expected = _PAIRS[ch]
        if not self.stack:
            self.problems.append((self.line, f"unexpected '{ch}'"))
            return
        opener, opened_at = self.stack.pop()
        if opener != expected:
            self.problems.append(
                (self.line, f"'{ch}' does not match '{opener}' opened on line {opened_at}")
            )

    def skip_until(self, terminator: str, start_line: int, what: str, escapes: bool = True) -> bool:
        """Advance past *terminator*; record a problem if the code ends first."""
        while not self.at_end():
            if escapes and self.peek() == '\\':
                self.advance(2)
                continue
            if self.code.startswith(terminator, self.pos):
                self.advance(len(terminator))
                return True
            self.advance()
        self.problems.append((start_line, f"unterminated {what}"))
        return False

    def finish(self) -> List[Problem]:
        for opener, opened_at in self.stack:
            self.problems.append((opened_at, f"unclosed '{opener}'"))
        self.stack = []
        return self.problems


def _check_javascript(code: str) -> List[Problem]:
    scanner = _Scanner(code)
    # Brace depth at which each open template literal's ${ ... } began.
    template_depths: List[int] = []
    last_significant = ''

    while not scanner.at_end():
        ch = scanner.peek()
        start = scanner.line

        if ch in ' \t\r\n':
            scanner.advance()
            continue
        if ch == '/' and scanner.peek(1) == '/':
            while not scanner.at_end() and scanner.peek() != '\n':
                scanner.advance()
            continue
        if ch == '/' and scanner.peek(1) == '*':
            scanner.advance(2)
            scanner.skip_until('*/', start, 'block comment', escapes=False)
            continue
        if ch in ('"', "'"):
            scanner.advance()
            while not scanner.at_end() and scanner.peek() not in (ch, '\n'):
                scanner.advance(2 if scanner.peek() == '\\' else 1)
            if scanner.peek() == ch:
                scanner.advance()
            else:
                scanner.problems.append((start, "unterminated string literal"))
            last_significant = ch
            continue
        if ch == '`' or (ch == '}' and template_depths and template_depths[-1] == len(scanner.stack)):
            if ch == '}':
                template_depths.pop()
            scanner.advance()
            closed = False
            while not scanner.at_end():
                c = scanner.peek()
                if c == '\\':
                    scanner.advance(2)
                    continue
                if c == '`':
                    scanner.advance()
                    closed = True
                    break
                if c == '$' and scanner.peek(1) == '{':
                    scanner.advance(2)
                    template_depths.append(len(scanner.stack))
                    closed = True
                    break
                scanner.advance()
            if not closed:
                scanner.problems.append((start, "unterminated template literal"))
            last_significant = '`'
            continue
        if ch == '/' and last_significant in _REGEX_PRECEDERS:
            scanner.advance()
            in_class = False
            while not scanner.at_end() and scanner.peek() != '\n':
                c = scanner.peek()
                if c == '\\':
                    scanner.advance(2)
                    continue
                if c == '[':
                    in_class = True
                elif c == ']':
                    in_class = False
                elif c == '/' and not in_class:
                    break
                scanner.advance()
            if scanner.peek() == '/':
                scanner.advance()
            else:
                scanner.problems.append((start, "unterminated regular expression literal"))
            last_significant = 'regex'
            continue
        if ch.isalnum() or ch in '_$':
            begin = scanner.pos
            while not scanner.at_end() and (scanner.peek().isalnum() or scanner.peek() in '_$'):
                scanner.advance()
            word = code[begin:scanner.pos]
            last_significant = 'keyword' if word in _REGEX_KEYWORDS else 'word'
            continue
        if ch in _OPENERS or ch in _PAIRS:
            scanner.bracket(ch)
        scanner.advance()
        last_significant = ch

    if template_depths:
        scanner.problems.append((scanner.line, "unterminated template literal"))
    return scanner.finish()


_DOLLAR_TAG_RE = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)?\$")


def _check_sql(code: str) -> List[Problem]:
    scanner = _Scanner(code)
    while not scanner.at_end():
        ch = scanner.peek()
        start = scanner.line

        if ch == '-' and scanner.peek(1) == '-':
            while not scanner.at_end() and scanner.peek() != '\n':
                scanner.advance()
            continue
        if ch == '/' and scanner.peek(1) == '*':
            scanner.advance(2)
            scanner.skip_until('*/', start, 'block comment', escapes=False)
            continue
        if ch == "'":
            scanner.advance()
            closed = False
            while not scanner.at_end():
                if scanner.peek() == "'":
                    if scanner.peek(1) == "'":
                        scanner.advance(2)
                        continue
                    scanner.advance()
                    closed = True
                    break
                scanner.advance()
            if not closed:
                scanner.problems.append((start, "unterminated string literal"))
            continue
        if ch == '"':
            scanner.advance()
            scanner.skip_until('"', start, 'quoted identifier', escapes=False)
            continue
        if ch == '$':
            tag = _DOLLAR_TAG_RE.match(code, scanner.pos)
            if tag:
                scanner.advance(len(tag.group(0)))
                scanner.skip_until(tag.group(0), start, f"dollar-quoted body {tag.group(0)}", escapes=False)
                continue
        if ch in _OPENERS or ch in _PAIRS:
            scanner.bracket(ch)
        scanner.advance()
    return scanner.finish()


CHECKERS: Dict[str, Callable[[str], List[Problem]]] = {
    'json': _check_json,
    'yaml': _check_yaml,
    'python': _check_python,
    'javascript': _check_javascript,
    'sql': _check_sql,
}

LANGUAGE_ALIASES: Dict[str, str] = {
    'json': 'json',
    'yaml': 'yaml',
    'yml': 'yaml',
    'python': 'python',
    'py': 'python',
    'python3': 'python',
    'javascript': 'javascript',
    'js': 'javascript',
    'node': 'javascript',
    'nodejs': 'javascript',
    'sql': 'sql',
    'plpgsql': 'sql',
    'postgresql': 'sql',
    'postgres': 'sql',
    'psql': 'sql',
}


def resolve_checker(language: str, aliases: Optional[Dict[str, str]] = None) -> Optional[str]:
    """Map a fence language onto a checker name, or ``None`` when unchecked."""
    lang = (language or '').strip().lower()
    if not lang:
        return None
    if aliases:
        lowered = {str(k).lower(): str(v).lower() for k, v in aliases.items()}
        if lang in lowered:
            target = lowered[lang]
            return LANGUAGE_ALIASES.get(target, target if target in CHECKERS else None)
    return LANGUAGE_ALIASES.get(lang)


def check_code_block(block: CodeBlock, aliases: Optional[Dict[str, str]] = None) -> Optional[List[Problem]]:
    """Check *block* against its language.

    Returns:
        ``None`` when the language has no checker, otherwise a list of
        ``(file_line, message)`` problems (empty when the block is valid).
    """
    checker_name = resolve_checker(block.language, aliases)
    if checker_name is None:
        logger.debug("No checker for language '%s' (line %d)", block.language, block.line)
        return None
    if not block.code.strip():
        return [(block.line, f"empty {block.language} code block")]

    problems = CHECKERS[checker_name](block.code)
    first_line = block.code_line or block.line + 1
    return [(first_line + line - 1, message) for line, message in problems]


__all__ = [
    "CHECKERS",
    "LANGUAGE_ALIASES",
    "extract_code_blocks",
    "resolve_checker",
    "check_code_block",
]
