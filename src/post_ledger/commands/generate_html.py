"""
Render the post corpus to static HTML: one page per post, an index page and
per-category listings.
"""

import logging
from pathlib import Path
from typing import Optional

from ..core.command_context import CommandContext
from ..core.corpus import group_by_category, sort_newest_first
from ..core.paths import resolve_output_dir
from ..processors.html_generator import HTMLGenerator

logger = logging.getLogger(__name__)


def run(config_path: str, posts_dir: Optional[str] = None, output_dir: Optional[str] = None) -> Path:
    """
    Generate HTML for every parsable post.

    Posts whose front matter cannot be parsed are skipped with a warning,
    the same way the external site generator would refuse them.

    Args:
        config_path: Path to the main configuration file
        posts_dir: Optional override of the configured posts directory
        output_dir: Optional output directory (default: ``paths.output_dir``)

    Returns:
        The output directory.
    """
    logger.info("Starting HTML generation")

    with CommandContext(config_path, posts_dir) as ctx:
        site = ctx.config_manager.get_site()
        target_dir = resolve_output_dir(output_dir or ctx.config_manager.get_output_dir())
        posts, failures = ctx.load_posts()
        for path in failures:
            logger.warning(f"Not rendering {path}: front matter could not be parsed")

        generator = HTMLGenerator(site=site)
        ordered = sort_newest_first(posts)

        for post in ordered:
            try:
                generator.write_post(post, str(target_dir))
            except Exception as e:
                logger.error(f"Error rendering post '{post.path}': {e}")
                continue

        generator.write_index(ordered, str(target_dir), site['title'], site['description'] or None)
        generator.write_category_pages(group_by_category(ordered), str(target_dir))

    logger.info(f"HTML generation completed: {len(posts)} posts written to {target_dir}")
    return target_dir
