"""Unit tests for core/convert/reverse.py"""

import logging

from mdcbridge.core.convert.marks import DEFAULT_REL
from mdcbridge.core.convert.reverse import editor_to_markup, plain_text, reverse_slice
from mdcbridge.core.editor import (
    Binding, BulletList, CodeBlock, EditorDoc, Element, Frontmatter, Heading, Image, Link, ListItem,
    Mark, MarkType, OrderedList, Paragraph, Slot, SpanStyle, Text, UnknownNode, Video,
)
from mdcbridge.core.models import code_block_element, el


BOLD = Mark(type=MarkType.bold)
ITALIC = Mark(type=MarkType.italic)


def nodes(*content, frontmatter=None):
    doc = EditorDoc(content=(frontmatter or Frontmatter(), *content))
    return editor_to_markup(doc).nodes


def para(*content):
    return Paragraph(content=content)


def link(href, target=None, rel=None):
    attrs = {'href': href, 'target': target, 'rel': rel}
    return Mark(type=MarkType.link, attrs={k: v for k, v in attrs.items() if v is not None})


def test_frontmatter_data_and_error():
    doc = EditorDoc(content=(Frontmatter(data={'title': 'T'}),))
    assert editor_to_markup(doc).frontmatter == {'title': 'T'}
    doc = EditorDoc(content=(Frontmatter(error='bad'),))
    assert editor_to_markup(doc).frontmatter == {'__error__': 'bad'}


def test_nested_marks_rebuild_nesting():
    result = nodes(para(Text(value='y ', marks=(ITALIC,)), Text(value='x', marks=(BOLD, ITALIC))))
    assert result == (el('p', {}, el('em', {}, 'y ', el('strong', {}, 'x'))),)


def test_shared_single_mark_run_is_wrapped_once():
    result = nodes(para(Text(value='a ', marks=(BOLD,)), Text(value='b', marks=(BOLD,))))
    assert result == (el('p', {}, el('strong', {}, 'a b')),)


def test_edge_whitespace_moves_outside_marks():
    result = nodes(para(Text(value='a'), Text(value=' b ', marks=(BOLD,)), Text(value='c')))
    assert result == (el('p', {}, 'a ', el('strong', {}, 'b'), ' c'),)


def test_external_link_drops_default_target_and_rel():
    mark = link('https://example.com', '_blank', DEFAULT_REL)
    assert nodes(para(Text(value='Docs', marks=(mark,)))) == (
        el('p', {}, el('a', {'href': 'https://example.com'}, 'Docs')),
    )


def test_external_link_keeps_custom_rel():
    mark = link('https://example.com', '_blank', 'nofollow')
    (p,) = nodes(para(Text(value='Docs', marks=(mark,))))
    assert p.children[0].attrs == {'href': 'https://example.com', 'rel': 'nofollow'}


def test_relative_link_keeps_target():
    mark = link('/docs', '_blank')
    (p,) = nodes(para(Text(value='Docs', marks=(mark,))))
    assert p.children[0].attrs == {'href': '/docs', 'target': '_blank'}


def test_link_element_applies_link_policy():
    node = Link(href='https://x.dev', target='_blank', rel=DEFAULT_REL, content=(Image(props={'src': '/i.png'}),))
    assert nodes(para(node)) == (el('p', {}, el('a', {'href': 'https://x.dev'}, el('img', {'src': '/i.png'}))),)


def test_heading_ids_recomputed():
    result = nodes(
        Heading(level=2, id='stale', content=(Text(value='Intro'),)),
        Heading(level=2, content=(Text(value='Intro'),)),
    )
    assert result == (el('h2', {'id': 'intro'}, 'Intro'), el('h2', {'id': 'intro-1'}, 'Intro'))


def test_list_item_single_paragraph_is_flattened():
    item = ListItem(content=(para(Text(value='a')), BulletList(content=(ListItem(content=(para(Text(value='b')),)),))))
    (ul,) = nodes(BulletList(content=(item,)))
    assert ul == el('ul', {}, el('li', {}, 'a', el('ul', {}, el('li', {}, 'b'))))


def test_list_item_with_two_paragraphs_keeps_them():
    item = ListItem(content=(para(Text(value='a')), para(Text(value='b'))))
    (ul,) = nodes(BulletList(content=(item,)))
    assert ul == el('ul', {}, el('li', {}, el('p', {}, 'a'), el('p', {}, 'b')))


def test_ordered_list_start():
    (ol,) = nodes(OrderedList(start=5, content=(ListItem(content=(para(Text(value='x')),)),)))
    assert ol.attrs == {'start': 5}


def test_code_block_restores_pre_layout():
    (pre,) = nodes(CodeBlock(language='python', raw_source='x = 1'))
    assert pre == code_block_element('x = 1', 'python')


def test_synthetic_slot_and_wrapped_paragraph_are_unwrapped():
    node = Element(tag='alert', props={'type': 'info'}, wrapped=True, content=(
        Slot(name='default', synthetic=True, content=(para(Text(value='Careful')),)),
    ))
    assert nodes(node) == (el('alert', {'type': 'info'}, 'Careful'),)


def test_named_slots_become_templates():
    node = Element(tag='card', content=(
        Slot(name='title', content=(para(Text(value='T')),)),
        Slot(name='default', props={'v-slot:default': ''}, content=(para(Text(value='a')), para(Text(value='b')))),
    ))
    assert nodes(node) == (el('card', {},
        el('template', {'v-slot:title': ''}, 'T'),
        el('template', {'v-slot:default': ''}, el('p', {}, 'a'), el('p', {}, 'b')),
    ),)


def test_paragraph_with_props_is_not_unwrapped():
    node = Element(tag='card', content=(
        Slot(name='default', synthetic=True, content=(Paragraph(props={'class': 'lead'}, content=(Text(value='x'),)),)),
    ))
    assert nodes(node) == (el('card', {}, el('p', {'class': 'lead'}, 'x')),)


def test_image_and_video_attrs():
    image = Image(props={'alt': 'Logo', 'src': '/logo.png', 'title': ''})
    video = Video(props={'src': '/v.mp4', 'controls': True, 'loop': False})
    (p,) = nodes(para(image, video))
    img, vid = p.children
    assert list(img.attrs) == ['src', 'alt']
    assert vid.attrs == {'src': '/v.mp4', ':controls': 'true'}


def test_span_and_binding():
    (p,) = nodes(para(
        SpanStyle(style='color: red', content=(Text(value='hot'),)),
        Binding(value='name'),
    ))
    assert p.children == (el('span', {'style': 'color: red'}, 'hot'), el('binding', {'value': 'name'}))


def test_unknown_node_renders_placeholder(caplog):
    with caplog.at_level(logging.WARNING):
        result = nodes(UnknownNode(type='mystery'))
    assert result == (el('p', {}, '--- Unknown node: mystery ---'),)
    assert 'mystery' in caplog.text


def test_plain_text():
    assert plain_text(para(Text(value='a'), SpanStyle(content=(Text(value='b'),)))) == 'ab'


def test_reverse_slice_drops_frontmatter():
    tree = reverse_slice([Frontmatter(data={'a': 1}), para(Text(value='x'))])
    assert tree.frontmatter == {}
    assert tree.nodes == (el('p', {}, 'x'),)
