"""
SQLite index of parsed posts and their categories.

The index is derived data: it can be deleted and rebuilt from the posts
directory at any time. Post files themselves are never modified.
"""

import datetime
import hashlib
import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .models import Post
from .paths import resolve_data_file

logger = logging.getLogger(__name__)

UPSERT_INSERTED = 'inserted'
UPSERT_UPDATED = 'updated'
UPSERT_UNCHANGED = 'unchanged'


def compute_content_hash(post: Post) -> str:
    """Stable hash over the metadata and body that the index stores."""
    parts = [
        post.title,
        post.date.isoformat() if post.date else '',
        '\x1f'.join(post.categories),
        '1' if post.comments else '0',
        post.slug,
        post.body,
    ]
    return hashlib.sha1('\x1e'.join(parts).encode('utf-8')).hexdigest()


class PostIndex:
    """Manages the posts.db index file."""

    def __init__(self, config: Dict[str, Any]):
        """Resolve the index path from config and ensure the schema exists."""
        self.config = config
        self.db_path = str(resolve_data_file(config['database']['path'], ensure_parent=True))
        self._conn: Optional[sqlite3.Connection] = None
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute('PRAGMA foreign_keys = ON')
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor; commit on success, roll back on error."""
        conn = self._connect()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()

    def _init_database(self) -> None:
        """Create tables and indexes if they do not exist."""
        with self.transaction() as cursor:
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS posts (
                    path TEXT PRIMARY KEY,
                    slug TEXT NOT NULL,
                    title TEXT NOT NULL,
                    date TEXT,
                    url TEXT NOT NULL,
                    comments INTEGER NOT NULL DEFAULT 1,
                    word_count INTEGER NOT NULL DEFAULT 0,
                    excerpt TEXT,
                    content_hash TEXT NOT NULL,
                    indexed_at TEXT DEFAULT (datetime('now'))
                )
            ''')
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS post_categories (
                    path TEXT NOT NULL REFERENCES posts(path) ON DELETE CASCADE,
                    category TEXT NOT NULL,
                    position INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (path, category)
                )
            ''')
            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_posts_date
                ON posts(date)
            ''')
            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_post_categories_category
                ON post_categories(category)
            ''')

    def upsert_post(self, post: Post) -> str:
        """Insert or replace *post*; returns inserted/updated/unchanged."""
        content_hash = compute_content_hash(post)
        with self.transaction() as cursor:
            cursor.execute('SELECT content_hash FROM posts WHERE path = ?', (post.path,))
            row = cursor.fetchone()
            if row is not None and row['content_hash'] == content_hash:
                return UPSERT_UNCHANGED

            cursor.execute('DELETE FROM post_categories WHERE path = ?', (post.path,))
            cursor.execute('''
                INSERT OR REPLACE INTO posts
                (path, slug, title, date, url, comments, word_count, excerpt, content_hash, indexed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (
                post.path,
                post.slug,
                post.title,
                post.date.isoformat() if post.date else None,
                post.url,
                1 if post.comments else 0,
                post.word_count,
                post.excerpt,
                content_hash,
                datetime.datetime.now().isoformat(timespec='seconds'),
            ))
            cursor.executemany(
                'INSERT INTO post_categories (path, category, position) VALUES (?, ?, ?)',
                [(post.path, category, index) for index, category in enumerate(post.categories)],
            )
        status = UPSERT_INSERTED if row is None else UPSERT_UPDATED
        logger.debug("Index %s: %s", status, post.path)
        return status

    def remove_missing(self, present_paths: Iterable[str]) -> int:
        """Delete rows for posts whose files are no longer present."""
        keep = set(present_paths)
        with self.transaction() as cursor:
            cursor.execute('SELECT path FROM posts')
            stale = [row['path'] for row in cursor.fetchall() if row['path'] not in keep]
            cursor.executemany('DELETE FROM posts WHERE path = ?', [(p,) for p in stale])
        if stale:
            logger.info("Removed %d stale posts from index", len(stale))
        return len(stale)

    def _rows_to_dicts(self, rows: List[sqlite3.Row]) -> List[Dict[str, Any]]:
        conn = self._connect()
        results = []
        for row in rows:
            item = dict(row)
            item['comments'] = bool(item['comments'])
            cats = conn.execute(
                'SELECT category FROM post_categories WHERE path = ? ORDER BY position',
                (item['path'],),
            ).fetchall()
            item['categories'] = [c['category'] for c in cats]
            results.append(item)
        return results

    def get_post(self, path: str) -> Optional[Dict[str, Any]]:
        rows = self._connect().execute('SELECT * FROM posts WHERE path = ?', (path,)).fetchall()
        items = self._rows_to_dicts(rows)
        return items[0] if items else None

    def get_posts(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        """Return indexed posts newest first, optionally limited to one category."""
        conn = self._connect()
        if category:
            rows = conn.execute('''
                SELECT p.* FROM posts p
                JOIN post_categories c ON c.path = p.path
                WHERE c.category = ?
                ORDER BY p.date IS NULL, p.date DESC, p.path
            ''', (category,)).fetchall()
        else:
            rows = conn.execute(
                'SELECT * FROM posts ORDER BY date IS NULL, date DESC, path'
            ).fetchall()
        return self._rows_to_dicts(rows)

    def get_categories(self) -> List[Tuple[str, int]]:
        """Return ``(category, post_count)`` pairs, most used first."""
        rows = self._connect().execute('''
            SELECT category, COUNT(*) AS n FROM post_categories
            GROUP BY category
            ORDER BY n DESC, category
        ''').fetchall()
        return [(row['category'], row['n']) for row in rows]

    def count(self) -> int:
        return self._connect().execute('SELECT COUNT(*) FROM posts').fetchone()[0]

    def clear(self) -> None:
        with self.transaction() as cursor:
            cursor.execute('DELETE FROM post_categories')
            cursor.execute('DELETE FROM posts')
        logger.info("Cleared post index %s", self.db_path)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def delete_file(self) -> bool:
        """Close and remove the index file; returns True if a file was removed."""
        self.close()
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
            logger.info("Removed database: %s", self.db_path)
            return True
        return False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
