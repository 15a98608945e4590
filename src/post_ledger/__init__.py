from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .commands import check_links as check_links_cmd
from .commands import generate_html as html_cmd
from .commands import index as index_cmd
from .commands import lint as lint_cmd
from .core.config import ConfigManager, DEFAULT_CONFIG_PATH
from .core.corpus import iter_post_files
from .core.database import PostIndex
from .core.models import LintReport

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = str(DEFAULT_CONFIG_PATH)

__all__ = [
    'lint',
    'index',
    'categories',
    'html',
    'check_links',
    'status',
    'purge',
]


def lint(posts_dir: Optional[str] = None, config_path: Optional[str] = None) -> LintReport:
    """Lint every post and return the report.

    Args:
        posts_dir: Optional posts directory; defaults to ``paths.posts_dir``.
        config_path: Path to main YAML config; defaults to the data-dir config.
    """
    cfg_path = config_path or _DEFAULT_CONFIG
    return lint_cmd.run(cfg_path, posts_dir)


def index(posts_dir: Optional[str] = None, config_path: Optional[str] = None) -> Dict[str, int]:
    """Synchronize posts.db with the posts directory and return change counts."""
    cfg_path = config_path or _DEFAULT_CONFIG
    return index_cmd.run(cfg_path, posts_dir)


def categories(config_path: Optional[str] = None) -> List[Tuple[str, int]]:
    """Return ``(category, post_count)`` pairs from the index."""
    cfg_path = config_path or _DEFAULT_CONFIG
    return index_cmd.categories(cfg_path)


def html(
    posts_dir: Optional[str] = None,
    output_dir: Optional[str] = None,
    config_path: Optional[str] = None,
) -> Path:
    """Render posts, the index page and category pages; returns the output dir."""
    cfg_path = config_path or _DEFAULT_CONFIG
    return html_cmd.run(cfg_path, posts_dir, output_dir)


def check_links(posts_dir: Optional[str] = None, config_path: Optional[str] = None):
    """Check external links; returns a mapping of post path to broken links."""
    cfg_path = config_path or _DEFAULT_CONFIG
    return check_links_cmd.run(cfg_path, posts_dir)


def purge(config_path: Optional[str] = None) -> bool:
    """Delete the post index database."""
    cfg_path = config_path or _DEFAULT_CONFIG
    return index_cmd.purge(cfg_path)


def status(config_path: Optional[str] = None, posts_dir: Optional[str] = None) -> Dict[str, Any]:
    """Return configuration and corpus status for programmatic use."""
    cfg_path = config_path or _DEFAULT_CONFIG
    info: Dict[str, Any] = {'config_path': cfg_path}
    if config_path and not os.path.exists(cfg_path):
        info.update({'valid': False, 'error': f'Config file not found: {cfg_path}'})
        return info
    try:
        cm = ConfigManager(cfg_path)
        valid = cm.validate_config()
        info['valid'] = bool(valid)
        if not valid:
            return info
        resolved_posts = cm.get_posts_dir(posts_dir)
        info['posts_dir'] = str(resolved_posts)
        info['post_files'] = len(list(iter_post_files(resolved_posts))) if resolved_posts.is_dir() else 0
        with PostIndex(cm.load_config()) as post_index:
            info['db_path'] = post_index.db_path
            info['indexed_posts'] = post_index.count()
        return info
    except Exception as e:
        info.update({'valid': False, 'error': str(e)})
        return info
