"""Unit tests for core/convert/forward.py"""

from mdcbridge.core.convert.forward import clean_props, markup_to_editor, slot_name
from mdcbridge.core.convert.marks import DEFAULT_REL
from mdcbridge.core.editor import (
    Binding, BulletList, CodeBlock, Comment, Element, Frontmatter, Heading, Image, InlineElement,
    Link, ListItem, Mark, MarkType, OrderedList, Paragraph, Slot, SpanStyle, Text, Video,
)
from mdcbridge.core.models import Comment as MarkupComment
from mdcbridge.core.models import MarkupTree, code_block_element, el


BOLD = Mark(type=MarkType.bold)
ITALIC = Mark(type=MarkType.italic)


def convert(*nodes, frontmatter=None):
    return markup_to_editor(MarkupTree(nodes=nodes, frontmatter=frontmatter or {}))


def body(*nodes):
    return convert(*nodes).body


def test_clean_props_drops_internal_and_joins_class_lists():
    props = clean_props({'__ignoreMap': '', 'className': ['a', 'b'], 'id': 'x'})
    assert props == {'class': 'a b', 'id': 'x'}


def test_slot_name_prefers_v_slot():
    assert slot_name({'v-slot:title': ''}) == 'title'
    assert slot_name({'name': 'footer'}) == 'footer'
    assert slot_name({}) == 'default'


def test_document_starts_with_frontmatter():
    doc = convert(el('p', {}, 'x'), frontmatter={'title': 'T'})
    assert doc.content[0] == Frontmatter(data={'title': 'T'})


def test_empty_document_gets_empty_paragraph():
    assert convert().content == (Frontmatter(), Paragraph())


def test_frontmatter_error_is_kept():
    doc = convert(frontmatter={'__error__': 'bad yaml'})
    assert doc.frontmatter.error == 'bad yaml'


def test_top_level_text_is_wrapped_and_blank_text_skipped():
    assert body('hello', '\n') == (Paragraph(content=(Text(value='hello'),)),)


def test_style_elements_are_dropped():
    assert body(el('style', {}, 'css'), el('p', {}, 'x')) == (Paragraph(content=(Text(value='x'),)),)


def test_nested_marks_are_stored_innermost_first():
    (para,) = body(el('p', {}, el('em', {}, 'y ', el('strong', {}, 'x'))))
    assert para.content == (
        Text(value='y ', marks=(ITALIC,)),
        Text(value='x', marks=(BOLD, ITALIC)),
    )


def test_code_mark_keeps_language():
    (para,) = body(el('p', {}, el('code', {'language': 'js'}, 'a()')))
    assert para.content == (Text(value='a()', marks=(Mark(type=MarkType.code, attrs={'language': 'js'}),)),)


def test_external_link_mark_gets_defaults():
    (para,) = body(el('p', {}, el('a', {'href': 'https://example.com'}, 'Docs')))
    (text,) = para.content
    assert text.marks == (Mark(type=MarkType.link, attrs={
        'href': 'https://example.com', 'target': '_blank', 'rel': DEFAULT_REL,
    }),)


def test_link_around_image_becomes_link_element():
    (para,) = body(el('p', {}, el('a', {'href': '/x'}, el('img', {'src': '/i.png'}))))
    assert para.content == (Link(href='/x', content=(Image(props={'src': '/i.png'}),)),)


def test_emoji_shortcodes_become_glyphs():
    (para,) = body(el('p', {}, 'good :thumbsup: job'))
    assert [t.value for t in para.content] == ['good ', '\U0001F44D', ' job']


def test_heading_ids_are_recomputed_and_unique():
    h1, h2 = body(el('h1', {'id': 'stale'}, 'Intro'), el('h2', {}, 'Intro'))
    assert (h1.level, h1.id) == (1, 'intro')
    assert (h2.level, h2.id) == (2, 'intro-1')


def test_lists():
    ul, ol = body(
        el('ul', {}, el('li', {}, 'a', el('ul', {}, el('li', {}, 'b')))),
        el('ol', {'start': 3}, el('li', {}, 'c')),
    )
    assert ul == BulletList(content=(ListItem(content=(
        Paragraph(content=(Text(value='a'),)),
        BulletList(content=(ListItem(content=(Paragraph(content=(Text(value='b'),)),)),)),
    )),))
    assert ol.start == 3
    assert ol.props == {}


def test_ordered_list_without_start():
    (ol,) = body(el('ol', {}, el('li', {}, 'x')))
    assert isinstance(ol, OrderedList) and ol.start is None


def test_ordered_list_with_non_numeric_start():
    (ol,) = body(el('ol', {'start': 'three'}, el('li', {}, 'x')))
    assert ol.start is None
    assert 'start' not in ol.props


def test_code_block_uses_raw_source():
    (block,) = body(code_block_element('x = 1', 'python', 'main.py'))
    assert block == CodeBlock(language='python', filename='main.py', raw_source='x = 1')


def test_code_block_without_code_attr_uses_text():
    (block,) = body(el('pre', {}, el('code', {}, 'a'), el('style', {}, 'css')))
    assert block.raw_source == 'a'


def test_video_flags_become_booleans():
    (para,) = body(el('p', {}, el('video', {'src': '/v.mp4', ':controls': 'true', 'muted': 'false'})))
    assert para.content == (Video(props={'src': '/v.mp4', 'controls': True, 'muted': False}),)


def test_span_style():
    (para,) = body(el('p', {}, el('span', {'style': ' color: red ', 'class': 'warn'}, 'hot')))
    assert para.content == (SpanStyle(style='color: red', css_class='warn', content=(Text(value='hot'),)),)


def test_binding():
    (para,) = body(el('p', {}, el('binding', {'value': 'name', 'defaultValue': 'Guest'})))
    assert para.content == (Binding(value='name', default_value='Guest'),)


def test_comment_is_kept():
    assert body(MarkupComment(' note ')) == (Comment(text=' note '),)


def test_component_with_inline_body_is_wrapped():
    """Leading inline content goes into a paragraph inside a synthetic default slot."""
    (node,) = body(el('alert', {'type': 'info'}, 'Be ', el('strong', {}, 'careful')))
    assert node == Element(tag='alert', props={'type': 'info'}, wrapped=True, content=(
        Slot(name='default', synthetic=True, content=(
            Paragraph(content=(Text(value='Be '), Text(value='careful', marks=(BOLD,)))),
        )),
    ))


def test_component_with_named_slots():
    (node,) = body(el('card', {},
        el('template', {'v-slot:title': ''}, 'Title'),
        el('template', {'v-slot:default': ''}, el('p', {}, 'a'), el('p', {}, 'b')),
    ))
    title, default = node.content
    assert not node.wrapped
    assert title == Slot(name='title', props={'v-slot:title': ''}, content=(
        Paragraph(content=(Text(value='Title'),)),
    ))
    assert default.name == 'default' and not default.synthetic
    assert len(default.content) == 2


def test_loose_children_join_explicit_default_slot():
    (node,) = body(el('card', {},
        el('h2', {}, 'Heading'),
        el('template', {'v-slot:default': ''}, el('p', {}, 'a'), el('p', {}, 'b')),
    ))
    (default,) = node.content
    assert [type(n) for n in default.content] == [Paragraph, Paragraph, Heading]


def test_component_inside_paragraph_is_inline():
    (para,) = body(el('p', {}, 'a ', el('badge', {'type': 'info'}, 'New')))
    assert para.content[1] == InlineElement(tag='badge', props={'type': 'info'}, content=(Text(value='New'),))


def test_images_with_component_tags():
    (para,) = body(el('p', {}, el('nuxt-img', {'src': '/a.png', 'width': '200'})))
    assert para.content == (Image(tag='nuxt-img', props={'src': '/a.png', 'width': '200'}),)
