"""
Index command implementation.
Keeps posts.db in step with the posts directory and answers category queries.
"""

import logging
from typing import Dict, List, Optional, Tuple

from ..core.command_context import CommandContext
from ..core.config import ConfigManager
from ..core.database import UPSERT_INSERTED, UPSERT_UNCHANGED, UPSERT_UPDATED, PostIndex
from ..core.paths import resolve_data_file

logger = logging.getLogger(__name__)


def run(config_path: str, posts_dir: Optional[str] = None) -> Dict[str, int]:
    """Upsert every parsable post and drop rows for deleted files.

    Returns:
        Counts keyed by ``inserted``, ``updated``, ``unchanged``, ``removed``
        and ``failed``.
    """
    logger.info("Starting index command")
    counts = {UPSERT_INSERTED: 0, UPSERT_UPDATED: 0, UPSERT_UNCHANGED: 0, 'removed': 0, 'failed': 0}

    try:
        with CommandContext(config_path, posts_dir) as ctx:
            posts, failures = ctx.load_posts()
            counts['failed'] = len(failures)
            index = ctx.open_index()
            for post in posts:
                counts[index.upsert_post(post)] += 1
            # Files that failed to parse keep their previous rows.
            counts['removed'] = index.remove_missing([p.path for p in posts] + list(failures))
    except Exception as e:
        logger.error(f"Index command failed: {e}")
        raise

    logger.info(
        "Index command completed: %(inserted)d inserted, %(updated)d updated, "
        "%(unchanged)d unchanged, %(removed)d removed, %(failed)d failed", counts,
    )
    return counts


def categories(config_path: str) -> List[Tuple[str, int]]:
    """Return ``(category, count)`` pairs from the index."""
    config = ConfigManager(config_path).load_config()
    with PostIndex(config) as index:
        return index.get_categories()


def purge(config_path: str) -> bool:
    """Delete the index database; it is rebuilt by the next ``index`` run."""
    logger.info("Starting purge command")
    config = ConfigManager(config_path).load_config()
    db_path = resolve_data_file(config['database']['path'])
    if not db_path.exists():
        logger.info("No index database at %s", db_path)
        return False
    removed = PostIndex(config).delete_file()
    logger.info("Purge command completed")
    return removed
