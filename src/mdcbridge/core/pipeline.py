"""Pipeline step functions: load, save, round-trip and check orchestration"""

import json
import logging
from pathlib import Path

from mdcbridge.core.convert.forward import markup_to_editor
from mdcbridge.core.convert.reverse import editor_to_markup
from mdcbridge.core.editor import EditorDoc, doc_from_json, doc_to_json
from mdcbridge.core.highlight import Highlighter
from mdcbridge.core.markdown.parse import parse_file, parse_markdown
from mdcbridge.core.markdown.render import render_markdown
from mdcbridge.core.models import MarkupTree


logger = logging.getLogger(__name__)

MD_EXTENSIONS = {'.md', '.mdx'}
JSON_EXTENSIONS = {'.json'}


def discover_files(path: Path, extensions: set[str] = MD_EXTENSIONS) -> list[Path]:
    """Return sorted files with a matching suffix under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in extensions else []
    return sorted(p for p in path.rglob('*') if p.suffix in extensions)


def load_document(markdown: str, parser_config: str = 'gfm-like', strict: bool = False) -> EditorDoc:
    """Parse markdown and convert it to an editor document."""
    return markup_to_editor(parse_markdown(markdown, parser_config, strict=strict))


def save_document(doc: EditorDoc, highlighter: Highlighter | None = None) -> str:
    """Convert an editor document back to markdown."""
    return render_markdown(editor_to_markup(doc, highlighter))


def roundtrip(
    markdown: str,
    parser_config: str = 'gfm-like',
    highlighter: Highlighter | None = None,
    strict: bool = False,
    ) -> str:
    """markdown -> editor document -> markdown."""
    return save_document(load_document(markdown, parser_config, strict), highlighter)


def check_tree(tree: MarkupTree, parser_config: str = 'gfm-like') -> bool:
    """True when the editor round trip reproduces tree and its markdown parses back to it."""
    back = editor_to_markup(markup_to_editor(tree))
    if back.nodes != tree.nodes or back.frontmatter != tree.frontmatter:
        return False
    return parse_markdown(render_markdown(back), parser_config).nodes == tree.nodes


def run_load(path: str, parser_config: str, output_dir: Path) -> list[tuple[Path, Path]]:
    """Convert markdown under path to editor JSON in output_dir. Returns (source, output) pairs."""
    output_dir.mkdir(parents=True, exist_ok=True)
    results = []
    for p in discover_files(Path(path)):
        try:
            doc = markup_to_editor(parse_file(p, parser_config))
            out_file = output_dir / f"{p.stem}.json"
            out_file.write_text(json.dumps(doc_to_json(doc), indent=2, ensure_ascii=False), encoding='utf-8')
            results.append((p, out_file))
        except Exception as e:
            raise RuntimeError(f"Failed to load {p}: {e}") from e
    return results


def run_save(path: str, output_dir: Path, highlighter: Highlighter | None = None) -> list[tuple[Path, Path]]:
    """Convert editor JSON under path back to markdown in output_dir. Returns (source, output) pairs."""
    output_dir.mkdir(parents=True, exist_ok=True)
    results = []
    for p in discover_files(Path(path), JSON_EXTENSIONS):
        try:
            doc = doc_from_json(json.loads(p.read_text(encoding='utf-8')))
            out_file = output_dir / f"{p.stem}.md"
            out_file.write_text(save_document(doc, highlighter), encoding='utf-8')
            results.append((p, out_file))
        except Exception as e:
            raise RuntimeError(f"Failed to save {p}: {e}") from e
    return results


def run_check(path: str, parser_config: str) -> list[tuple[Path, bool]]:
    """Round-trip every markdown file under path. Returns (path, unchanged) pairs."""
    results = []
    for p in discover_files(Path(path)):
        try:
            ok = check_tree(parse_file(p, parser_config), parser_config)
        except Exception as e:
            raise RuntimeError(f"Failed to check {p}: {e}") from e
        if not ok:
            logger.info("round trip changed %s", p)
        results.append((p, ok))
    return results
