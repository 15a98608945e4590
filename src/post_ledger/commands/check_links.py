"""
Check-links command implementation.
Requests every external link cited in the posts and reports broken ones.
"""

import logging
from typing import Dict, List, Optional

from ..core.command_context import CommandContext
from ..processors.link_checker import LinkChecker, LinkResult

logger = logging.getLogger(__name__)


def run(config_path: str, posts_dir: Optional[str] = None) -> Dict[str, List[LinkResult]]:
    """Check external links per post.

    Returns:
        Mapping of post path to the *broken* links found in it.
    """
    logger.info("Starting check-links command")
    broken: Dict[str, List[LinkResult]] = {}

    with CommandContext(config_path, posts_dir) as ctx:
        settings = ctx.config_manager.get_link_settings()
        posts, _failures = ctx.load_posts()

        with LinkChecker(
            rps=float(settings['rps']),
            max_retries=int(settings['max_retries']),
            timeout=settings['timeout'],
            ignore=settings.get('ignore') or [],
        ) as checker:
            for post in posts:
                results = checker.check_body(post.body)
                bad = [r for r in results if not r.ok]
                logger.debug(f"{post.path}: {len(results)} links checked, {len(bad)} broken")
                if bad:
                    broken[post.path] = bad

    total = sum(len(v) for v in broken.values())
    logger.info(f"Check-links command completed: {total} broken links in {len(broken)} posts")
    return broken
