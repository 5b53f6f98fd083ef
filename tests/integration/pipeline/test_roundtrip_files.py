"""Integration test for load -> save over a directory of documents"""

from mdcbridge.core.pipeline import run_check, run_load, run_save


DOCS = {
    "index.md": "---\ntitle: Home\n---\n\n# Welcome\n\nStart with the [guide](/guide).\n",
    "guide/setup.mdx": (
        "## Install\n\n"
        "```bash [terminal]\npip install mdcbridge\n```\n\n"
        "::tip{.compact}\n#title\nHeads up\n\n#default\n- one\n- two\n::\n"
    ),
    "guide/usage.md": "> Use `load` then `save`.\n\n1. parse\n2. edit\n3. render\n",
}


def test_directory_survives_load_and_save(tmp_path):
    src = tmp_path / "content"
    for name, text in DOCS.items():
        path = src / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)

    loaded = run_load(str(src), "gfm-like", tmp_path / "json")
    assert len(loaded) == len(DOCS)

    saved = run_save(str(tmp_path / "json"), tmp_path / "md")
    assert len(saved) == len(DOCS)
    for name, text in DOCS.items():
        stem = name.rsplit("/", 1)[-1].rsplit(".", 1)[0]
        assert (tmp_path / "md" / f"{stem}.md").read_text() == text

    assert all(ok for _, ok in run_check(str(src), "gfm-like"))
