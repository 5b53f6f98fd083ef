"""Unit tests for the editor JSON codec in core/editor.py"""

import logging

import pytest

from mdcbridge.core.editor import (
    Binding, CodeBlock, EditorDoc, Element, Frontmatter, Heading, Image, Link, ListItem, Mark,
    MarkType, OrderedList, Paragraph, Slot, SpanStyle, Text, UnknownNode, Video,
    doc_from_json, doc_to_json, node_from_json, node_to_json,
)


BOLD = Mark(type=MarkType.bold)
LINK = Mark(type=MarkType.link, attrs={'href': 'https://example.com', 'target': '_blank'})


@pytest.mark.parametrize("node", [
    Paragraph(content=(Text(value='plain'), Text(value='strong', marks=(BOLD, LINK)))),
    Heading(level=3, id='setup', props={'class': 'x'}, content=(Text(value='Setup'),)),
    OrderedList(start=4, content=(ListItem(content=(Paragraph(content=(Text(value='a'),)),)),)),
    Element(tag='alert', props={'type': 'info'}, wrapped=True, content=(
        Slot(name='default', synthetic=True, content=(Paragraph(),)),
    )),
    CodeBlock(language='python', filename='main.py', raw_source='x = 1\n\ty'),
    Image(tag='nuxt-img', props={'src': '/a.png', 'width': 200}),
    Video(props={'src': '/v.mp4', 'controls': True}),
    Link(href='/docs', props={'class': 'btn'}, content=(Image(props={'src': '/i.png'}),)),
    SpanStyle(style='color: red', css_class='warn', content=(Text(value='hot'),)),
    Binding(value='user.name', default_value='Guest'),
])
def test_node_json_roundtrip(node):
    assert node_from_json(node_to_json(node)) == node


def test_text_json_shape():
    data = node_to_json(Text(value='x', marks=(BOLD,)))
    assert data == {"type": "text", "text": "x", "marks": [{"type": "bold", "attrs": {}}]}


def test_code_block_json_carries_source_as_text():
    data = node_to_json(CodeBlock(language='js', raw_source='let a'))
    assert data == {
        "type": "codeBlock",
        "attrs": {"language": "js", "filename": None},
        "content": [{"type": "text", "text": "let a"}],
    }


def test_code_block_falls_back_to_code_attr():
    node = node_from_json({"type": "codeBlock", "attrs": {"code": "raw"}})
    assert node.raw_source == "raw"


def test_unknown_marks_are_dropped():
    node = node_from_json({"type": "text", "text": "x", "marks": [{"type": "underline"}, {"type": "italic"}]})
    assert node.marks == (Mark(type=MarkType.italic),)


def test_emoji_node_decodes_to_glyph_text():
    node = node_from_json({"type": "emoji", "attrs": {"name": "thumbsup"}})
    assert node == Text(value="\U0001F44D")


def test_unknown_type_is_kept_and_logged(caplog):
    data = {"type": "mystery", "attrs": {"x": 1}}
    with caplog.at_level(logging.WARNING):
        node = node_from_json(data)
    assert node == UnknownNode(type="mystery", data=data)
    assert "mystery" in caplog.text
    assert node_to_json(node) == data


def test_missing_node_decodes_to_empty_paragraph():
    assert node_from_json(None) == Paragraph()


def test_doc_json_roundtrip():
    doc = EditorDoc(content=(
        Frontmatter(data={'title': 'T'}),
        Heading(level=1, id='t', content=(Text(value='T'),)),
    ))
    data = doc_to_json(doc)
    assert data["type"] == "doc"
    assert data["content"][0] == {"type": "frontmatter", "attrs": {"frontmatter": {'title': 'T'}}}
    assert doc_from_json(data) == doc


def test_doc_from_json_inserts_frontmatter():
    doc = doc_from_json({"type": "doc", "content": [{"type": "paragraph"}]})
    assert doc.content == (Frontmatter(), Paragraph())


def test_doc_from_json_moves_frontmatter_first():
    doc = doc_from_json({"content": [
        {"type": "paragraph"},
        {"type": "frontmatter", "attrs": {"frontmatter": {"a": 1}}},
    ]})
    assert doc.content[0] == Frontmatter(data={"a": 1})
    assert doc.body == (Paragraph(),)


def test_non_mapping_frontmatter_becomes_error():
    doc = doc_from_json({"content": [{"type": "frontmatter", "attrs": {"frontmatter": "oops"}}]})
    assert doc.frontmatter.data == {}
    assert doc.frontmatter.error == "expected a mapping, got str"
