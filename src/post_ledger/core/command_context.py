"""
Command context for shared initialization across CLI commands.

Bundles config loading and validation with posts-directory resolution so
each command's ``run()`` starts from the same state.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from .config import ConfigManager
from .corpus import load_posts
from .database import PostIndex
from .front_matter import FrontMatterError
from .models import Post

logger = logging.getLogger(__name__)


class CommandContext:
    """Encapsulates shared initialization logic for CLI commands.

    Example:
        ```python
        with CommandContext(config_path, posts_dir) as ctx:
            posts, failures = ctx.load_posts()
            with ctx.open_index() as index:
                ...
        ```
    """

    def __init__(self, config_path: Optional[str] = None, posts_dir: Optional[str] = None):
        """Initialize command context.

        Args:
            config_path: Path to main config file (None = use default)
            posts_dir: Optional override of ``paths.posts_dir``

        Raises:
            ValueError: If configuration is invalid
        """
        self.config_manager = ConfigManager(config_path)

        if not self.config_manager.validate_config():
            raise ValueError("Invalid configuration. Run 'post-ledger status' for details.")

        self.config = self.config_manager.load_config()
        self.posts_dir: Path = self.config_manager.get_posts_dir(posts_dir)
        self._index: Optional[PostIndex] = None

        logger.debug(f"CommandContext initialized with config from {self.config_manager.config_path}")

    def load_posts(self) -> tuple[List[Post], Dict[str, FrontMatterError]]:
        """Load all posts from the resolved posts directory."""
        return load_posts(self.posts_dir)

    def open_index(self) -> PostIndex:
        """Open (once) and return the post index."""
        if self._index is None:
            self._index = PostIndex(self.config)
        return self._index

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._index is not None:
            self._index.close()
            self._index = None
