"""CLI command implementations"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdcbridge.config import Settings, load_config
from mdcbridge.core.highlight import Highlighter
from mdcbridge.core.pipeline import roundtrip, run_check, run_load, run_save
from mdcbridge.core.utils.diff import DiffType, compute_word_diff


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    return settings


def _highlighter(settings: Settings) -> Highlighter | None:
    return Highlighter(settings.highlight_themes()) if settings.highlight else None


def _read(path: str) -> str:
    try:
        return Path(path).read_text(encoding='utf-8')
    except OSError as e:
        _fail(f"Cannot read {path}", e)


def load_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file or directory to load")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    ):
    """Convert markdown documents to editor JSON."""
    settings = _settings(overrides={"output_dir": out, "parser_config": parser})
    output_dir = Path(settings.output_dir)
    try:
        results = run_load(path, settings.parser_config, output_dir)
    except RuntimeError as e:
        _fail(str(e))
    for src, out_file in results:
        typer.echo(f"  {src} -> {out_file}")
    typer.echo(f"Loaded {len(results)} document(s) to {output_dir}/")


def save_cmd(
    path: Annotated[str, typer.Argument(help="Editor JSON file or directory to save")],
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    highlight: Annotated[Optional[bool], typer.Option("--highlight/--no-highlight", help="Decorate code blocks")] = None,
    ):
    """Convert editor JSON documents back to markdown."""
    settings = _settings(overrides={"output_dir": out, "highlight": highlight})
    output_dir = Path(settings.output_dir)
    try:
        results = run_save(path, output_dir, _highlighter(settings))
    except RuntimeError as e:
        _fail(str(e))
    for src, out_file in results:
        typer.echo(f"  {src} -> {out_file}")
    typer.echo(f"Saved {len(results)} document(s) to {output_dir}/")


def roundtrip_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file to round-trip")],
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    ):
    """Print a markdown file after loading it into the editor model and saving it again."""
    settings = _settings(overrides={"parser_config": parser})
    text = _read(path)
    try:
        output = roundtrip(text, settings.parser_config, strict=True)
    except ValueError as e:
        _fail(f"Cannot parse {path}", e)
    typer.echo(output, nl=False)


def check_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file or directory to check")],
    parser: Annotated[Optional[str], typer.Option("--parser-config", help="MarkdownIt preset name")] = None,
    ):
    """Verify that documents survive the editor round trip unchanged."""
    settings = _settings(overrides={"parser_config": parser})
    try:
        results = run_check(path, settings.parser_config)
    except RuntimeError as e:
        _fail(str(e))
    changed = [p for p, ok in results if not ok]
    for p, ok in results:
        typer.echo(f"  {'ok' if ok else 'changed'}: {p}")
    typer.echo(f"Checked {len(results)} document(s), {len(changed)} changed")
    if changed:
        raise typer.Exit(1)


def diff_cmd(
    original: Annotated[str, typer.Argument(help="Original text file")],
    updated: Annotated[str, typer.Argument(help="Updated text file")],
    max_tokens: Annotated[Optional[int], typer.Option("--max-tokens", help="Token ceiling per side")] = None,
    ):
    """Show a word diff of updated against original; added text is highlighted."""
    settings = _settings(overrides={"max_diff_tokens": max_tokens})
    old_text, new_text = _read(original), _read(updated)
    parts = compute_word_diff(old_text, new_text, settings.max_diff_tokens)
    if not parts and new_text:
        _fail(f"Inputs exceed {settings.max_diff_tokens} tokens; diff skipped")
    for part in parts:
        if part.type == DiffType.added:
            typer.echo(typer.style(part.text, fg=typer.colors.GREEN, underline=True), nl=False)
        else:
            typer.echo(part.text, nl=False)
    typer.echo()
