"""Configuration management for YAML-based config files."""

import logging
import re
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .paths import get_data_dir, get_system_path

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = get_data_dir() / "config"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.yaml"
_TEMPLATE_CONFIG = get_system_path("config", "config.yaml")

_DEFAULT_CONFIG_TEMPLATE = """# Auto-generated default configuration for post-ledger
site:
  title: "Blog"
  base_url: ""
  description: ""

paths:
  posts_dir: "_posts"
  output_dir: "html"

database:
  path: "posts.db"

lint:
  required_fields: ["title", "date"]
  allowed_categories: []
  check_code_blocks: true
  require_filename_date: true

links:
  rps: 2.0
  max_retries: 3
  timeout: 10
  ignore: []
"""

DEFAULT_LINT_SETTINGS: Dict[str, Any] = {
    'required_fields': ['title', 'date'],
    'allowed_categories': [],
    'max_title_length': None,
    'check_code_blocks': True,
    'require_filename_date': True,
    'languages': {},
}

DEFAULT_LINK_SETTINGS: Dict[str, Any] = {
    'rps': 2.0,
    'max_retries': 3,
    'timeout': 10,
    'ignore': [],
}


def _write_template(path: Path, content: str) -> None:
    """Write templated YAML content to disk with a trailing newline."""
    path.write_text(content.strip() + "\n", encoding="utf-8")


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(x, str) for x in value)


class ConfigManager:
    """Manages loading and validation of the YAML configuration file."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize the manager and ensure a baseline config file exists."""
        path = Path(config_path or DEFAULT_CONFIG_PATH).expanduser()
        if not path.is_absolute():
            path = path.resolve()
        self.config_path = str(path)
        self.base_dir = str(path.parent)
        self._config = None
        self._ensure_default_config()

    def load_config(self) -> Dict[str, Any]:
        """Load the main configuration file."""
        if self._config is None:
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    self._config = yaml.safe_load(f) or {}
                logger.info(f"Loaded configuration from {self.config_path}")
            except Exception as e:
                logger.error(f"Failed to load config from {self.config_path}: {e}")
                raise

        return self._config

    def _ensure_default_config(self) -> None:
        """Create the default configuration file if it is missing."""
        config_file = Path(self.config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        if config_file.exists():
            return

        if _TEMPLATE_CONFIG.exists():
            try:
                shutil.copyfile(_TEMPLATE_CONFIG, config_file)
                logger.info("Created default config.yaml at %s", config_file)
                return
            except OSError as exc:
                logger.warning("Failed to copy template config: %s", exc)
        _write_template(config_file, _DEFAULT_CONFIG_TEMPLATE)
        logger.info("Created fallback default config.yaml at %s", config_file)

    def get_site(self) -> Dict[str, Any]:
        """Return the ``site`` section with empty-string defaults."""
        site = self.load_config().get('site') or {}
        return {
            'title': site.get('title') or 'Blog',
            'base_url': (site.get('base_url') or '').rstrip('/'),
            'description': site.get('description') or '',
        }

    def get_posts_dir(self, override: Optional[str] = None) -> Path:
        """Resolve the posts directory.

        An explicit *override* (``--posts-dir``) is taken relative to the working
        directory; a relative ``paths.posts_dir`` relative to the config file.
        """
        if override:
            return Path(override).expanduser().resolve()
        raw = (self.load_config().get('paths') or {}).get('posts_dir') or '_posts'
        candidate = Path(raw).expanduser()
        if not candidate.is_absolute():
            candidate = Path(self.base_dir) / candidate
        return candidate

    def get_output_dir(self) -> str:
        return (self.load_config().get('paths') or {}).get('output_dir') or 'html'

    def get_lint_settings(self) -> Dict[str, Any]:
        """Merge the ``lint`` section over the built-in defaults."""
        settings = dict(DEFAULT_LINT_SETTINGS)
        settings.update(self.load_config().get('lint') or {})
        return settings

    def get_link_settings(self) -> Dict[str, Any]:
        """Merge the ``links`` section over the built-in defaults."""
        settings = dict(DEFAULT_LINK_SETTINGS)
        settings.update(self.load_config().get('links') or {})
        return settings

    def validate_config(self) -> bool:
        """Validate the configuration file."""
        try:
            config = self.load_config()
            if not isinstance(config, dict):
                logger.error("Configuration root must be a mapping")
                return False

            for section in ('site', 'paths', 'database'):
                if section not in config:
                    logger.error(f"Missing required section '{section}' in main config")
                    return False

            db_config = config['database'] or {}
            if not db_config.get('path'):
                logger.error("Missing required database path 'path'")
                return False

            lint_cfg = config.get('lint') or {}
            required = lint_cfg.get('required_fields')
            if required is not None and not _is_str_list(required):
                logger.error("'lint.required_fields' must be a list of strings")
                return False
            allowed = lint_cfg.get('allowed_categories')
            if allowed is not None and not _is_str_list(allowed):
                logger.error("'lint.allowed_categories' must be a list of strings")
                return False
            max_len = lint_cfg.get('max_title_length')
            if max_len is not None and (not isinstance(max_len, int) or isinstance(max_len, bool) or max_len <= 0):
                logger.error("'lint.max_title_length' must be a positive integer")
                return False
            languages = lint_cfg.get('languages')
            if languages is not None and not isinstance(languages, dict):
                logger.error("'lint.languages' must map language names to checker names")
                return False

            links_cfg = config.get('links') or {}
            ignore = links_cfg.get('ignore')
            if ignore is not None:
                if not _is_str_list(ignore):
                    logger.error("'links.ignore' must be a list of strings")
                    return False
                for pattern in ignore:
                    try:
                        re.compile(pattern)
                    except re.error as e:
                        logger.error(f"links.ignore pattern '{pattern}' is not a valid regex: {e}")
                        return False
            for key in ('rps', 'timeout'):
                value = links_cfg.get(key)
                if value is not None and not isinstance(value, (int, float)):
                    logger.error(f"'links.{key}' must be a number (int/float)")
                    return False

            logger.info("Configuration validation passed")
            return True

        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            return False


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_LINT_SETTINGS",
    "DEFAULT_LINK_SETTINGS",
]
