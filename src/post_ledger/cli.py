"""Command-line entry point for post-ledger."""

from __future__ import annotations

import logging
import sys

import click

from .commands import check_links as check_links_cmd
from .commands import generate_html as html_cmd
from .commands import index as index_cmd
from .commands import lint as lint_cmd
from .core.config import ConfigManager, DEFAULT_CONFIG_PATH
from .core.corpus import iter_post_files
from .core.database import PostIndex

# Setup logging early so submodules inherit sane defaults
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@click.group()
@click.option(
    "--config",
    default=str(DEFAULT_CONFIG_PATH),
    show_default=True,
    help="Path to config file (defaults to data_dir/config/config.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: str, verbose: bool) -> None:
    """post-ledger - lint, index and render Jekyll-style blog posts."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


@cli.command("lint")
@click.option("--posts-dir", help="Posts directory (overrides paths.posts_dir)")
@click.option("--strict", is_flag=True, help="Treat warnings as failures")
@click.pass_context
def lint(ctx: click.Context, posts_dir: str | None, strict: bool) -> None:
    """Check front matter, required metadata and code samples in every post."""
    try:
        report = lint_cmd.run(ctx.obj["config_path"], posts_dir)
    except Exception as exc:  # pragma: no cover - click echoes the message
        click.echo(f"❌ Lint command failed: {exc}", err=True)
        sys.exit(1)

    for issue in report.issues:
        click.echo(issue.format())

    summary = f"{report.checked} posts checked: {report.error_count} errors, {report.warning_count} warnings"
    if report.error_count or (strict and report.warning_count):
        click.echo(f"❌ {summary}", err=True)
        sys.exit(1)
    click.echo(f"✅ {summary}")


@cli.command("index")
@click.option("--posts-dir", help="Posts directory (overrides paths.posts_dir)")
@click.pass_context
def index(ctx: click.Context, posts_dir: str | None) -> None:
    """Synchronize the post index (posts.db) with the posts directory."""
    try:
        counts = index_cmd.run(ctx.obj["config_path"], posts_dir)
        click.echo(
            "✅ Index updated: "
            f"{counts['inserted']} new, {counts['updated']} changed, "
            f"{counts['unchanged']} unchanged, {counts['removed']} removed"
        )
        if counts['failed']:
            click.echo(f"⚠️  {counts['failed']} posts could not be parsed (run 'lint' for details)")
    except Exception as exc:  # pragma: no cover - click echoes the message
        click.echo(f"❌ Index command failed: {exc}", err=True)
        sys.exit(1)


@cli.command("categories")
@click.pass_context
def categories(ctx: click.Context) -> None:
    """List categories in the index with their post counts."""
    try:
        rows = index_cmd.categories(ctx.obj["config_path"])
    except Exception as exc:  # pragma: no cover - click echoes the message
        click.echo(f"❌ Categories command failed: {exc}", err=True)
        sys.exit(1)

    if not rows:
        click.echo("No categories indexed (run 'index' first)")
        return
    width = max(len(name) for name, _count in rows)
    for name, count in rows:
        click.echo(f"{name.ljust(width)}  {count}")


@cli.command("html")
@click.option("--posts-dir", help="Posts directory (overrides paths.posts_dir)")
@click.option("--output", "output_dir", help="Output directory (overrides paths.output_dir)")
@click.pass_context
def generate_html(ctx: click.Context, posts_dir: str | None, output_dir: str | None) -> None:
    """Render posts, the index page and category pages to HTML."""
    try:
        target = html_cmd.run(ctx.obj["config_path"], posts_dir, output_dir)
        click.echo(f"✅ HTML generated in {target}")
    except Exception as exc:  # pragma: no cover - click echoes the message
        click.echo(f"❌ HTML generation failed: {exc}", err=True)
        sys.exit(1)


@cli.command("check-links")
@click.option("--posts-dir", help="Posts directory (overrides paths.posts_dir)")
@click.pass_context
def check_links(ctx: click.Context, posts_dir: str | None) -> None:
    """Request every external link in the posts and report broken ones."""
    try:
        broken = check_links_cmd.run(ctx.obj["config_path"], posts_dir)
    except Exception as exc:  # pragma: no cover - click echoes the message
        click.echo(f"❌ Check-links command failed: {exc}", err=True)
        sys.exit(1)

    for path, results in broken.items():
        for result in results:
            reason = f"HTTP {result.status}" if result.status else result.error
            click.echo(f"{path}: {result.url} ({reason})")
    if broken:
        click.echo(f"❌ {sum(len(v) for v in broken.values())} broken links", err=True)
        sys.exit(1)
    click.echo("✅ No broken links found")


@cli.command("purge")
@click.pass_context
def purge(ctx: click.Context) -> None:
    """Delete the post index database."""
    try:
        if index_cmd.purge(ctx.obj["config_path"]):
            click.echo("✅ Index database removed")
        else:
            click.echo("Index database did not exist")
    except Exception as exc:  # pragma: no cover - click echoes the message
        click.echo(f"❌ Purge command failed: {exc}", err=True)
        sys.exit(1)


@cli.command("status")
@click.option("--posts-dir", help="Posts directory (overrides paths.posts_dir)")
@click.pass_context
def status(ctx: click.Context, posts_dir: str | None) -> None:
    """Show configuration, posts directory and index status."""
    try:
        config_manager = ConfigManager(ctx.obj["config_path"])
        click.echo(f"📄 Config file: {config_manager.config_path}")

        if config_manager.validate_config():
            click.echo("✅ Configuration is valid")
        else:
            click.echo("❌ Configuration validation failed")
            return

        resolved = config_manager.get_posts_dir(posts_dir)
        if resolved.is_dir():
            count = len(list(iter_post_files(resolved)))
            click.echo(f"📝 Posts directory: {resolved} ({count} post files)")
        else:
            click.echo(f"⚠️  Posts directory not found: {resolved}")

        with PostIndex(config_manager.load_config()) as post_index:
            click.echo(f"🗄️  Index: {post_index.db_path} ({post_index.count()} posts)")

    except Exception as exc:  # pragma: no cover - click echoes the message
        click.echo(f"❌ Error checking status: {exc}", err=True)


def main() -> None:  # pragma: no cover - console script
    cli()


if __name__ == "__main__":  # pragma: no cover - script entry
    cli()
