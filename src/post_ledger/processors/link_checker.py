"""
External link extraction and reachability checks for post bodies.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import requests

from ..core.http_client import RetryableHTTPClient

logger = logging.getLogger(__name__)

_INLINE_LINK_RE = re.compile(r"!?\[[^\]]*\]\(\s*<?([^)\s>]+)>?(?:\s+[\"'(][^)]*[\"')])?\s*\)")
_REFERENCE_DEF_RE = re.compile(r"^\s{0,3}\[[^\]]+\]:\s*<?(\S+?)>?(?:\s+.*)?$", re.MULTILINE)
_ATTR_RE = re.compile(r"""\b(?:href|src)\s*=\s*["']([^"']+)["']""", re.IGNORECASE)
_AUTOLINK_RE = re.compile(r"<(https?://[^>\s]+)>")
_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,}).*?^ {0,3}\1[ \t]*$", re.MULTILINE | re.DOTALL)


@dataclass
class LinkResult:
    url: str
    ok: bool
    status: Optional[int] = None
    error: Optional[str] = None


def extract_links(body: str) -> List[str]:
    """Return link targets in *body* in first-seen order, without duplicates.

    Code blocks are skipped so URLs inside samples are not reported.
    """
    text = _FENCE_RE.sub('', body or '')
    found = []
    for regex in (_INLINE_LINK_RE, _REFERENCE_DEF_RE, _ATTR_RE, _AUTOLINK_RE):
        for match in regex.finditer(text):
            found.append((match.start(), match.group(1)))
    found.sort()

    links: List[str] = []
    for _pos, url in found:
        if url not in links:
            links.append(url)
    return links


def is_external(url: str) -> bool:
    return url.lower().startswith(('http://', 'https://'))


class LinkChecker:
    """Checks external URLs with a shared rate-limited HTTP client.

    Results are cached per URL for the lifetime of the checker, so a link
    cited by several posts is requested once.
    """

    def __init__(self, rps: float = 2.0, max_retries: int = 3, timeout: int = 10,
                 ignore: Optional[Iterable[str]] = None, client: Optional[RetryableHTTPClient] = None):
        self.client = client or RetryableHTTPClient(rps=rps, max_retries=max_retries, timeout=timeout)
        self.ignore = [re.compile(p) for p in (ignore or [])]
        self._cache: Dict[str, LinkResult] = {}

    def should_check(self, url: str) -> bool:
        return is_external(url) and not any(p.search(url) for p in self.ignore)

    def check(self, url: str) -> LinkResult:
        if url in self._cache:
            return self._cache[url]
        try:
            status = self.client.status_of(url)
            result = LinkResult(url, ok=status < 400, status=status)
        except requests.RequestException as exc:
            result = LinkResult(url, ok=False, error=str(exc))
        if not result.ok:
            logger.warning("Broken link %s (%s)", url, result.status or result.error)
        self._cache[url] = result
        return result

    def check_body(self, body: str) -> List[LinkResult]:
        return [self.check(url) for url in extract_links(body) if self.should_check(url)]

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
