"""
HTML output for posts, the post index and per-category listings.

Page shells come from ``templates/page_template.html`` in the runtime data
directory (seeded from the bundled copy); post bodies are rendered with
Python-Markdown.
"""

import html
import datetime
import logging
import re
import shutil
from pathlib import Path
from string import Template
from typing import Dict, List, Optional

import markdown

from ..core.models import Post
from ..core.paths import get_system_path, resolve_data_path
from ..core.text_utils import slugify

CUSTOM_TEMPLATE_MARKER = "post-ledger:custom-template"
MARKDOWN_EXTENSIONS = ['fenced_code', 'tables', 'sane_lists']

logger = logging.getLogger(__name__)

_HIGHLIGHT_BLOCK_RE = re.compile(
    r"\{%-?\s*highlight\s+([\w+#.-]+)[^%]*-?%\}\n?(.*?)\n?\{%-?\s*endhighlight\s*-?%\}",
    re.DOTALL,
)

POST_LINK = Template(
    '<li class="post-item">\n'
    '  <a href="$href">$title</a>\n'
    '  <span class="post-date">$date</span>\n'
    '  <span class="post-categories">$categories</span>\n'
    '  <p class="post-excerpt">$excerpt</p>\n'
    '</li>'
)
POST_ARTICLE = Template(
    '<article class="post">\n'
    '  <header class="post-header">\n'
    '    <p class="post-meta"><time datetime="$iso_date">$date</time>$categories</p>\n'
    '  </header>\n'
    '  <div class="post-content">\n$body\n  </div>\n'
    '$comments'
    '</article>'
)


def highlight_to_fences(body: str) -> str:
    """Rewrite Liquid ``{% highlight lang %}`` blocks as fenced code."""
    def _replace(match: re.Match) -> str:
        return f"```{match.group(1)}\n{match.group(2)}\n```"
    return _HIGHLIGHT_BLOCK_RE.sub(_replace, body)


def format_date(value: Optional[datetime.datetime]) -> str:
    return value.strftime('%b %d, %Y') if value else ''


class HTMLGenerator:
    """Generates HTML pages for a post corpus."""

    def __init__(self, template_path: str = "page_template.html", site: Optional[Dict[str, str]] = None):
        """Prepare the generator, resolving the template path into the data directory."""
        self.template_path = self._resolve_template(template_path)
        self.site = site or {}

    def render_body(self, post: Post) -> str:
        """Render the markdown body to HTML; ``.html`` posts pass through untouched."""
        if post.path.lower().endswith('.html'):
            return post.body
        return markdown.markdown(highlight_to_fences(post.body), extensions=MARKDOWN_EXTENSIONS)

    def render_post(self, post: Post) -> str:
        """Return the complete HTML page for a single post."""
        categories = ''
        if post.categories:
            links = ', '.join(
                f'<a href="{self._href("categories", slugify(c) + ".html")}">{html.escape(c)}</a>'
                for c in post.categories
            )
            categories = f' &middot; <span class="post-categories">{links}</span>'
        comments = '  <section class="comments" id="comments"></section>\n' if post.comments else ''
        article = POST_ARTICLE.substitute(
            iso_date=html.escape(post.date.isoformat() if post.date else ''),
            date=html.escape(format_date(post.date)),
            categories=categories,
            body=self.render_body(post),
            comments=comments,
        )
        return self._page(post.title or post.slug, None, article)

    def write_post(self, post: Post, output_dir: str) -> Path:
        """Write *post* under *output_dir* at the path given by its URL."""
        target = Path(output_dir) / post.url.lstrip('/')
        self._write(target, self.render_post(post))
        logger.debug("Wrote post page %s", target)
        return target

    def write_index(self, posts: List[Post], output_dir: str, heading: Optional[str] = None,
                    description: Optional[str] = None) -> Path:
        """Write ``index.html`` listing *posts* in the given order."""
        target = Path(output_dir) / 'index.html'
        content = self._post_list(posts, empty_text='No posts published yet.')
        self._write(target, self._page(heading or self.site.get('title') or 'Posts', description, content))
        logger.info("Generated index with %d posts: %s", len(posts), target)
        return target

    def write_category_pages(self, groups: Dict[str, List[Post]], output_dir: str) -> List[Path]:
        """Write ``categories/<slug>.html`` per category plus ``categories/index.html``."""
        written: List[Path] = []
        category_dir = Path(output_dir) / 'categories'
        for category, posts in groups.items():
            target = category_dir / f"{slugify(category) or 'category'}.html"
            content = self._post_list(posts, empty_text='No posts in this category.')
            self._write(target, self._page(f"Category: {category}", f"{len(posts)} posts", content))
            written.append(target)

        items = '\n'.join(
            f'<li><a href="{self._href("categories", slugify(c) + ".html")}">{html.escape(c)}</a> '
            f'<span class="count">({len(p)})</span></li>'
            for c, p in groups.items()
        )
        overview = f'<ul class="category-list">\n{items}\n</ul>' if items else \
            '<p class="no-entries">No categories.</p>'
        target = category_dir / 'index.html'
        self._write(target, self._page('Categories', None, overview))
        written.append(target)
        logger.info("Generated %d category pages under %s", len(groups), category_dir)
        return written

    def _post_list(self, posts: List[Post], empty_text: str) -> str:
        if not posts:
            return f'<p class="no-entries">{html.escape(empty_text)}</p>'
        items = []
        for post in posts:
            items.append(POST_LINK.substitute(
                href=html.escape(self._href(post.url.lstrip('/')), quote=True),
                title=html.escape(post.title or post.slug),
                date=html.escape(format_date(post.date)),
                categories=html.escape(', '.join(post.categories)),
                excerpt=html.escape(post.excerpt),
            ))
        return f'<div class="entry-count">{len(posts)} posts</div>\n<ul class="post-list">\n' + \
            '\n'.join(items) + '\n</ul>'

    def _href(self, *parts: str) -> str:
        base = (self.site.get('base_url') or '').rstrip('/')
        return base + '/' + '/'.join(p.strip('/') for p in parts)

    def _page(self, title_text: str, subtitle_text: Optional[str], content: str) -> str:
        with open(self.template_path, 'r', encoding='utf-8') as tmpl:
            template = tmpl.read()

        site_title = html.escape(self.site.get('title') or '')
        rendered = (
            template
            .replace("%{title}", html.escape(title_text or "Posts"))
            .replace("%{site_title}", site_title)
            .replace("%{home}", html.escape(self._href(''), quote=True))
            .replace("%{date}", html.escape(str(datetime.date.today())))
        )
        if subtitle_text:
            sub = f"\n<p class=\"site-subtitle\">{html.escape(subtitle_text)}</p>\n"
            end_header = rendered.find('</header>')
            if end_header != -1:
                rendered = rendered[:end_header] + sub + rendered[end_header:]
        return rendered.replace("%{content}", content)

    @staticmethod
    def _write(target: Path, content: str) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8') as f:
            f.write(content)

    def _create_basic_template(self, target: Path) -> None:
        """Create a basic HTML template if none exists."""
        basic_template = (
            "<!DOCTYPE html>\n"
            "<html>\n"
            "<head>\n"
            "<meta charset=\"UTF-8\">\n"
            "<title>%{title}</title>\n"
            "</head>\n"
            "<body>\n"
            "<header><a href=\"%{home}\">%{site_title}</a>\n"
            "<h1>%{title}</h1>\n"
            "</header>\n"
            "<main>\n%{content}\n</main>\n"
            "</body>\n"
            "</html>\n"
        )
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8') as f:
            f.write(basic_template)

    def _ensure_template_available(self, template_path: Path) -> Path:
        """
        Ensure a template is present in the runtime data directory.

        If a system template exists and the runtime copy differs, overwrite it unless the
        runtime template carries the custom-template marker comment.
        """
        if template_path.is_absolute():
            if template_path.exists():
                return template_path
            return self._ensure_template_available(Path(template_path.name))

        data_template = resolve_data_path('templates', *template_path.parts)
        system_template = get_system_path('templates', *template_path.parts)

        if system_template.exists():
            data_template.parent.mkdir(parents=True, exist_ok=True)

            runtime_has_marker = False
            if data_template.exists():
                try:
                    runtime_has_marker = CUSTOM_TEMPLATE_MARKER in data_template.read_text(encoding='utf-8')
                except (OSError, UnicodeDecodeError):
                    runtime_has_marker = False

            if runtime_has_marker:
                logger.debug("Skipping template refresh for %s (custom marker present)", data_template)
                return data_template

            needs_copy = True
            if data_template.exists():
                try:
                    needs_copy = data_template.read_bytes() != system_template.read_bytes()
                except OSError:
                    needs_copy = True

            if needs_copy:
                shutil.copyfile(system_template, data_template)
                logger.info("Refreshed HTML template %s from system copy", data_template.name)

            return data_template

        if not data_template.exists():
            self._create_basic_template(data_template)
        return data_template

    def _resolve_template(self, template_path: str) -> str:
        """Locate a template by checking runtime, system, and fallback locations."""
        return str(self._ensure_template_available(Path(template_path)))
