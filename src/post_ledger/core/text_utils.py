"""Shared text processing utilities.

Slugs, excerpts and plain-text extraction used by the index, the HTML
renderer and the post model.
"""

import re
import html as htmllib
import unicodedata
from typing import Optional

_LIQUID_RE = re.compile(r"\{%.*?%\}|\{\{.*?\}\}", re.DOTALL)
_FENCE_RE = re.compile(r"^(`{3,}|~{3,}).*?^\1[ \t]*$", re.MULTILINE | re.DOTALL)
_HIGHLIGHT_RE = re.compile(r"\{%-?\s*highlight\b.*?\{%-?\s*endhighlight\s*-?%\}", re.DOTALL)


def strip_html(text: Optional[str]) -> Optional[str]:
    """Remove HTML tags and unescape entities.

    Examples:
        >>> strip_html("<p>Some <em>text</em></p>")
        'Some text'
        >>> strip_html("a &lt; b")
        'a < b'
    """
    if not text:
        return text
    text = re.sub(r"<[^>]+>", "", text)
    return htmllib.unescape(text).strip()


def strip_accents(text: str) -> str:
    """Return ASCII-ish text by removing accent marks via Unicode normalization.

    Examples:
        >>> strip_accents("José García")
        'Jose Garcia'
    """
    return "".join(
        c for c in unicodedata.normalize("NFKD", text)
        if not unicodedata.combining(c)
    )


def slugify(text: str) -> str:
    """Lower-case, accent-free, hyphen-separated slug.

    Examples:
        >>> slugify("JSON Schema & ajv")
        'json-schema-ajv'
        >>> slugify("  Node.js  ")
        'node-js'
    """
    t = strip_accents(text or "").lower()
    t = re.sub(r"[^a-z0-9]+", "-", t)
    return t.strip("-")


def normalize_category(text: str) -> str:
    """Collapse whitespace inside a category label without changing case."""
    return re.sub(r"\s+", " ", text or "").strip()


def plain_text(body: str) -> str:
    """Reduce a markdown/HTML body to prose: no code, Liquid tags or markup."""
    s = _HIGHLIGHT_RE.sub(" ", body or "")
    s = _FENCE_RE.sub(" ", s)
    s = _LIQUID_RE.sub(" ", s)
    s = re.sub(r"`[^`\n]*`", " ", s)
    # Keep link text, drop targets
    s = re.sub(r"!?\[([^\]]*)\]\([^)]*\)", r"\1", s)
    s = strip_html(s) or ""
    s = re.sub(r"^\s{0,3}(#{1,6}|>|[-*+]|\d+\.)\s+", "", s, flags=re.MULTILINE)
    s = re.sub(r"(\*{1,3}|_{1,3})(\S(?:.*?\S)?)\1", r"\2", s)
    return re.sub(r"\s+", " ", s).strip()


def word_count(body: str) -> int:
    return len(plain_text(body).split())


def excerpt(body: str, max_chars: int = 200) -> str:
    """First ``max_chars`` of the plain text, cut on a word boundary.

    Examples:
        >>> excerpt("Short post.")
        'Short post.'
    """
    text = plain_text(body)
    if len(text) <= max_chars:
        return text
    cut = text[:max_chars].rsplit(" ", 1)[0]
    return cut.rstrip(",.;:") + "…"
