"""
Lint command implementation.
Parses every post and reports front-matter, metadata and code-sample issues.
"""

import logging
from typing import Optional

from ..core.command_context import CommandContext
from ..core.models import LintReport
from ..processors.linter import lint_posts

logger = logging.getLogger(__name__)


def run(config_path: str, posts_dir: Optional[str] = None) -> LintReport:
    """Lint all posts and return the report.

    Workflow:
    1. Load and validate configuration and resolve the posts directory.
    2. Parse every post file; files with broken front matter become
       ``front-matter`` errors instead of aborting the run.
    3. Apply the configured lint rules, including code-block checks.

    Args:
        config_path: Path to the main configuration file
        posts_dir: Optional override of the configured posts directory
    """
    logger.info("Starting lint command")

    try:
        with CommandContext(config_path, posts_dir) as ctx:
            posts, failures = ctx.load_posts()
            report = lint_posts(posts, failures, ctx.config_manager.get_lint_settings())
    except Exception as e:
        logger.error(f"Lint command failed: {e}")
        raise

    logger.info("Lint command completed")
    return report
