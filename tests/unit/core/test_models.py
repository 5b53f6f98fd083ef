"""Unit tests for core/models.py"""

from mdcbridge.core.models import (
    Comment, Element, MarkupTree, code_block_element, el, node_from_wire, node_to_wire,
    text_content, tree_from_wire, tree_to_wire, without_tag,
)


def test_el_builds_element():
    node = el('p', {'class': 'x'}, 'a', el('strong', {}, 'b'))
    assert node == Element('p', {'class': 'x'}, ('a', Element('strong', {}, ('b',))))


def test_text_content_ignores_comments():
    node = el('p', {}, 'a', Comment('hidden'), el('em', {}, 'b'))
    assert text_content(node) == 'ab'


def test_code_block_element_layout():
    """Raw source is kept on the pre element and as the inner code text."""
    node = code_block_element('x = 1', 'python', 'main.py')
    assert node.attrs == {'language': 'python', 'filename': 'main.py', 'code': 'x = 1'}
    assert node.children == (el('code', {'__ignoreMap': ''}, 'x = 1'),)


def test_code_block_element_empty_code():
    node = code_block_element('')
    assert node.attrs == {'code': ''}
    assert node.children == (el('code', {'__ignoreMap': ''}),)


def test_without_tag_is_recursive():
    nodes = (el('style', {}, 'css'), el('div', {}, el('style', {}, 'css'), 'keep'))
    assert without_tag(nodes, 'style') == (el('div', {}, 'keep'),)


def test_wire_layout():
    node = el('a', {'href': '/x'}, 'link', Comment('c'))
    assert node_to_wire(node) == ['a', {'href': '/x'}, 'link', [None, {}, 'c']]
    assert node_from_wire(node_to_wire(node)) == node


def test_node_from_wire_degrades_garbage_to_text():
    assert node_from_wire(42) == ''
    assert node_from_wire([]) == ''


def test_tree_wire_roundtrip():
    tree = MarkupTree(nodes=(el('p', {}, 'x'),), frontmatter={'title': 'T'}, meta={'k': 1})
    data = tree_to_wire(tree)
    assert data == {"nodes": [['p', {}, 'x']], "frontmatter": {'title': 'T'}, "meta": {'k': 1}}
    assert tree_from_wire(data) == tree


def test_tree_from_wire_defaults():
    tree = tree_from_wire({"nodes": None, "frontmatter": None})
    assert tree == MarkupTree()
