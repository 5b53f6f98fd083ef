"""Editor document model: typed nodes for the rich-text surface and their JSON codec"""

import logging
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from mdcbridge.core.dispatch import DispatchTable
from mdcbridge.core.utils.emoji import emoji_unicode


logger = logging.getLogger(__name__)


class MarkType(str, Enum):
    """Character-level formatting annotations"""
    bold = "bold"
    italic = "italic"
    strike = "strike"
    code = "code"
    link = "link"


class EditorModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class Mark(EditorModel):
    type: MarkType
    attrs: dict[str, Any] = Field(default_factory=dict)


class Frontmatter(EditorModel):
    """Leading pseudo-node holding the document frontmatter."""
    kind: Literal["frontmatter"] = "frontmatter"
    data: dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None     # set when the source frontmatter was not a mapping


class Paragraph(EditorModel):
    kind: Literal["paragraph"] = "paragraph"
    props: dict[str, Any] = Field(default_factory=dict)
    content: tuple["EditorNode", ...] = ()


class Heading(EditorModel):
    kind: Literal["heading"] = "heading"
    level: int = Field(default=1, ge=1, le=6)
    id: str = ""
    props: dict[str, Any] = Field(default_factory=dict)
    content: tuple["EditorNode", ...] = ()


class BulletList(EditorModel):
    kind: Literal["bulletList"] = "bulletList"
    props: dict[str, Any] = Field(default_factory=dict)
    content: tuple["EditorNode", ...] = ()


class OrderedList(EditorModel):
    kind: Literal["orderedList"] = "orderedList"
    start: Optional[int] = None
    props: dict[str, Any] = Field(default_factory=dict)
    content: tuple["EditorNode", ...] = ()


class ListItem(EditorModel):
    kind: Literal["listItem"] = "listItem"
    content: tuple["EditorNode", ...] = ()


class Blockquote(EditorModel):
    kind: Literal["blockquote"] = "blockquote"
    props: dict[str, Any] = Field(default_factory=dict)
    content: tuple["EditorNode", ...] = ()


class HorizontalRule(EditorModel):
    kind: Literal["horizontalRule"] = "horizontalRule"


class Text(EditorModel):
    """A text run; marks are stored innermost first, outermost last."""
    kind: Literal["text"] = "text"
    value: str
    marks: tuple[Mark, ...] = ()


class Element(EditorModel):
    """Block-level custom component; content is a sequence of slots."""
    kind: Literal["element"] = "element"
    tag: str
    props: dict[str, Any] = Field(default_factory=dict)
    wrapped: bool = False           # leading bare text was wrapped in a paragraph on load
    content: tuple["EditorNode", ...] = ()


class InlineElement(EditorModel):
    kind: Literal["inline-element"] = "inline-element"
    tag: str
    props: dict[str, Any] = Field(default_factory=dict)
    content: tuple["EditorNode", ...] = ()


class Slot(EditorModel):
    kind: Literal["slot"] = "slot"
    name: str = "default"
    synthetic: bool = False         # created on load, not present in the source
    props: dict[str, Any] = Field(default_factory=dict)
    content: tuple["EditorNode", ...] = ()


class CodeBlock(EditorModel):
    kind: Literal["codeBlock"] = "codeBlock"
    language: Optional[str] = None
    filename: Optional[str] = None
    raw_source: str = ""


class Image(EditorModel):
    kind: Literal["image"] = "image"
    tag: str = "img"
    props: dict[str, Any] = Field(default_factory=dict)


class Video(EditorModel):
    kind: Literal["video"] = "video"
    props: dict[str, Any] = Field(default_factory=dict)


class Link(EditorModel):
    """A link wrapping non-text content (images, components)."""
    kind: Literal["link-element"] = "link-element"
    href: str = ""
    target: Optional[str] = None
    rel: Optional[str] = None
    props: dict[str, Any] = Field(default_factory=dict)
    content: tuple["EditorNode", ...] = ()


class SpanStyle(EditorModel):
    kind: Literal["span-style"] = "span-style"
    style: Optional[str] = None
    css_class: Optional[str] = None
    props: dict[str, Any] = Field(default_factory=dict)
    content: tuple["EditorNode", ...] = ()


class Binding(EditorModel):
    kind: Literal["binding"] = "binding"
    value: Optional[str] = None
    default_value: Optional[str] = None


class Comment(EditorModel):
    kind: Literal["comment"] = "comment"
    text: str = ""


class UnknownNode(EditorModel):
    """Editor JSON of a kind this engine does not know; kept only to degrade visibly."""
    kind: Literal["unknown"] = "unknown"
    type: str = ""
    data: dict[str, Any] = Field(default_factory=dict)


EditorNode = Annotated[
    Union[
        Frontmatter, Paragraph, Heading, BulletList, OrderedList, ListItem, Blockquote,
        HorizontalRule, Text, Element, InlineElement, Slot, CodeBlock, Image, Video, Link,
        SpanStyle, Binding, Comment, UnknownNode,
    ],
    Field(discriminator="kind"),
]

NODE_TYPES: tuple[type[EditorModel], ...] = (
    Frontmatter, Paragraph, Heading, BulletList, OrderedList, ListItem, Blockquote,
    HorizontalRule, Text, Element, InlineElement, Slot, CodeBlock, Image, Video, Link,
    SpanStyle, Binding, Comment, UnknownNode,
)


class EditorDoc(EditorModel):
    """Root of the editor tree; content[0] is always the Frontmatter pseudo-node."""
    content: tuple[EditorNode, ...] = ()

    @property
    def frontmatter(self) -> Frontmatter:
        for node in self.content:
            if isinstance(node, Frontmatter):
                return node
        return Frontmatter()

    @property
    def body(self) -> tuple[EditorNode, ...]:
        return tuple(n for n in self.content if not isinstance(n, Frontmatter))


for _model in (*NODE_TYPES, EditorDoc):
    _model.model_rebuild()


# --- JSON codec ({type, attrs?, content?, marks?} nodes under {type: "doc"}) ---

_to_json: DispatchTable[type] = DispatchTable("editor-json-encode")
_from_json: DispatchTable[str] = DispatchTable("editor-json-decode")


def _props(props: dict[str, Any]) -> dict[str, Any]:
    return {"props": dict(props)} if props else {}


def _content_json(node: Any) -> list[dict[str, Any]]:
    return [node_to_json(c) for c in node.content]


def _content_from(data: dict[str, Any]) -> tuple:
    return tuple(node_from_json(c) for c in data.get("content") or [])


def _attrs(data: dict[str, Any]) -> dict[str, Any]:
    attrs = data.get("attrs")
    return attrs if isinstance(attrs, dict) else {}


def _node(kind: str, attrs: dict[str, Any] | None = None, content: list | None = None) -> dict[str, Any]:
    data: dict[str, Any] = {"type": kind}
    if attrs:
        data["attrs"] = attrs
    if content:
        data["content"] = content
    return data


@_to_json.register(Frontmatter)
def _frontmatter_to_json(node: Frontmatter) -> dict[str, Any]:
    attrs: dict[str, Any] = {"frontmatter": dict(node.data)}
    if node.error:
        attrs["error"] = node.error
    return {"type": node.kind, "attrs": attrs}


@_from_json.register("frontmatter")
def _frontmatter_from_json(data: dict[str, Any]) -> Frontmatter:
    fm = _attrs(data).get("frontmatter", {})
    if fm is None:
        fm = {}
    if not isinstance(fm, dict):
        logger.warning("frontmatter is not a mapping (%s); keeping it as an error", type(fm).__name__)
        return Frontmatter(error=f"expected a mapping, got {type(fm).__name__}")
    return Frontmatter(data=fm, error=_attrs(data).get("error"))


@_to_json.register(Paragraph, BulletList, Blockquote)
def _plain_block_to_json(node: Any) -> dict[str, Any]:
    return _node(node.kind, _props(node.props), _content_json(node))


@_from_json.register("paragraph")
def _paragraph_from_json(data: dict[str, Any]) -> Paragraph:
    return Paragraph(props=_attrs(data).get("props") or {}, content=_content_from(data))


@_from_json.register("bulletList")
def _bullet_list_from_json(data: dict[str, Any]) -> BulletList:
    return BulletList(props=_attrs(data).get("props") or {}, content=_content_from(data))


@_from_json.register("blockquote")
def _blockquote_from_json(data: dict[str, Any]) -> Blockquote:
    return Blockquote(props=_attrs(data).get("props") or {}, content=_content_from(data))


@_to_json.register(Heading)
def _heading_to_json(node: Heading) -> dict[str, Any]:
    return _node(node.kind, {"level": node.level, "id": node.id, **_props(node.props)}, _content_json(node))


@_from_json.register("heading")
def _heading_from_json(data: dict[str, Any]) -> Heading:
    attrs = _attrs(data)
    return Heading(
        level=int(attrs.get("level") or 1),
        id=str(attrs.get("id") or ""),
        props=attrs.get("props") or {},
        content=_content_from(data),
    )


@_to_json.register(OrderedList)
def _ordered_list_to_json(node: OrderedList) -> dict[str, Any]:
    return _node(node.kind, {"start": node.start, **_props(node.props)}, _content_json(node))


@_from_json.register("orderedList")
def _ordered_list_from_json(data: dict[str, Any]) -> OrderedList:
    attrs = _attrs(data)
    start = attrs.get("start")
    return OrderedList(
        start=int(start) if start is not None else None,
        props=attrs.get("props") or {},
        content=_content_from(data),
    )


@_to_json.register(ListItem)
def _list_item_to_json(node: ListItem) -> dict[str, Any]:
    return _node(node.kind, None, _content_json(node))


@_from_json.register("listItem")
def _list_item_from_json(data: dict[str, Any]) -> ListItem:
    return ListItem(content=_content_from(data))


@_to_json.register(HorizontalRule)
def _hr_to_json(node: HorizontalRule) -> dict[str, Any]:
    return {"type": node.kind}


@_from_json.register("horizontalRule")
def _hr_from_json(data: dict[str, Any]) -> HorizontalRule:
    return HorizontalRule()


@_to_json.register(Text)
def _text_to_json(node: Text) -> dict[str, Any]:
    data: dict[str, Any] = {"type": node.kind, "text": node.value}
    if node.marks:
        data["marks"] = [{"type": m.type.value, "attrs": dict(m.attrs)} for m in node.marks]
    return data


@_from_json.register("text")
def _text_from_json(data: dict[str, Any]) -> Text:
    marks = tuple(
        Mark(type=m["type"], attrs=m.get("attrs") or {})
        for m in data.get("marks") or []
        if isinstance(m, dict) and m.get("type") in MarkType._value2member_map_
    )
    return Text(value=str(data.get("text") or ""), marks=marks)


@_from_json.register("emoji")
def _emoji_from_json(data: dict[str, Any]) -> Text:
    name = str(_attrs(data).get("name") or "")
    return Text(value=emoji_unicode(name) or "")


@_to_json.register(Element)
def _element_to_json(node: Element) -> dict[str, Any]:
    attrs = {"tag": node.tag, **_props(node.props)}
    if node.wrapped:
        attrs["wrapped"] = True
    return _node(node.kind, attrs, _content_json(node))


@_from_json.register("element")
def _element_from_json(data: dict[str, Any]) -> Element:
    attrs = _attrs(data)
    return Element(
        tag=str(attrs.get("tag") or "div"),
        props=attrs.get("props") or {},
        wrapped=bool(attrs.get("wrapped")),
        content=_content_from(data),
    )


@_to_json.register(InlineElement)
def _inline_element_to_json(node: InlineElement) -> dict[str, Any]:
    return _node(node.kind, {"tag": node.tag, **_props(node.props)}, _content_json(node))


@_from_json.register("inline-element")
def _inline_element_from_json(data: dict[str, Any]) -> InlineElement:
    attrs = _attrs(data)
    return InlineElement(
        tag=str(attrs.get("tag") or "span"),
        props=attrs.get("props") or {},
        content=_content_from(data),
    )


@_to_json.register(Slot)
def _slot_to_json(node: Slot) -> dict[str, Any]:
    attrs = {"name": node.name, **_props(node.props)}
    if node.synthetic:
        attrs["synthetic"] = True
    return _node(node.kind, attrs, _content_json(node))


@_from_json.register("slot")
def _slot_from_json(data: dict[str, Any]) -> Slot:
    attrs = _attrs(data)
    return Slot(
        name=str(attrs.get("name") or "default"),
        synthetic=bool(attrs.get("synthetic")),
        props=attrs.get("props") or {},
        content=_content_from(data),
    )


@_to_json.register(CodeBlock)
def _code_block_to_json(node: CodeBlock) -> dict[str, Any]:
    content = [{"type": "text", "text": node.raw_source}] if node.raw_source else []
    return _node(node.kind, {"language": node.language, "filename": node.filename}, content)


@_from_json.register("codeBlock")
def _code_block_from_json(data: dict[str, Any]) -> CodeBlock:
    # The surface edits the text content; attrs.code is only a fallback for empty content.
    attrs = _attrs(data)
    text = "".join(str(c.get("text") or "") for c in data.get("content") or [] if isinstance(c, dict))
    return CodeBlock(
        language=attrs.get("language"),
        filename=attrs.get("filename"),
        raw_source=text or str(attrs.get("code") or ""),
    )


@_to_json.register(Image, Video)
def _media_to_json(node: Any) -> dict[str, Any]:
    attrs: dict[str, Any] = {"props": dict(node.props)}
    if isinstance(node, Image) and node.tag != "img":
        attrs["tag"] = node.tag
    return {"type": node.kind, "attrs": attrs}


@_from_json.register("image")
def _image_from_json(data: dict[str, Any]) -> Image:
    attrs = _attrs(data)
    props = dict(attrs.get("props") or {})
    for key in ("src", "alt"):
        if key in attrs and key not in props:
            props[key] = attrs[key]
    return Image(tag=str(attrs.get("tag") or "img"), props=props)


@_from_json.register("video")
def _video_from_json(data: dict[str, Any]) -> Video:
    attrs = _attrs(data)
    props = dict(attrs.get("props") or {})
    if "src" in attrs and "src" not in props:
        props["src"] = attrs["src"]
    return Video(props=props)


@_to_json.register(Link)
def _link_to_json(node: Link) -> dict[str, Any]:
    attrs = {"href": node.href, "target": node.target, "rel": node.rel, **_props(node.props)}
    return _node(node.kind, attrs, _content_json(node))


@_from_json.register("link-element")
def _link_from_json(data: dict[str, Any]) -> Link:
    attrs = _attrs(data)
    return Link(
        href=str(attrs.get("href") or ""),
        target=attrs.get("target"),
        rel=attrs.get("rel"),
        props=attrs.get("props") or {},
        content=_content_from(data),
    )


@_to_json.register(SpanStyle)
def _span_to_json(node: SpanStyle) -> dict[str, Any]:
    attrs = {"style": node.style, "class": node.css_class, **_props(node.props)}
    return _node(node.kind, attrs, _content_json(node))


@_from_json.register("span-style")
def _span_from_json(data: dict[str, Any]) -> SpanStyle:
    attrs = _attrs(data)
    return SpanStyle(
        style=attrs.get("style"),
        css_class=attrs.get("class"),
        props=attrs.get("props") or {},
        content=_content_from(data),
    )


@_to_json.register(Binding)
def _binding_to_json(node: Binding) -> dict[str, Any]:
    return {"type": node.kind, "attrs": {"value": node.value, "defaultValue": node.default_value}}


@_from_json.register("binding")
def _binding_from_json(data: dict[str, Any]) -> Binding:
    attrs = _attrs(data)
    return Binding(value=attrs.get("value"), default_value=attrs.get("defaultValue"))


@_to_json.register(Comment)
def _comment_to_json(node: Comment) -> dict[str, Any]:
    return {"type": node.kind, "attrs": {"text": node.text}}


@_from_json.register("comment")
def _comment_from_json(data: dict[str, Any]) -> Comment:
    return Comment(text=str(_attrs(data).get("text") or ""))


@_to_json.register(UnknownNode)
def _unknown_to_json(node: UnknownNode) -> dict[str, Any]:
    return dict(node.data)


@_from_json.set_fallback
def _unknown_from_json(data: dict[str, Any]) -> UnknownNode:
    kind = str(data.get("type") or "")
    logger.warning("unknown editor node type %r", kind)
    return UnknownNode(type=kind, data=data)


_to_json.require(NODE_TYPES)


def node_to_json(node: EditorModel) -> dict[str, Any]:
    return _to_json.lookup(type(node))(node)


def node_from_json(data: Any) -> EditorModel:
    """Decode one editor JSON node; a missing node decodes to an empty paragraph."""
    if not isinstance(data, dict):
        return Paragraph()
    return _from_json.lookup(str(data.get("type") or ""))(data)


def doc_to_json(doc: EditorDoc) -> dict[str, Any]:
    return {"type": "doc", "content": [node_to_json(n) for n in doc.content]}


def doc_from_json(data: dict[str, Any]) -> EditorDoc:
    """Decode an editor document, guaranteeing a leading frontmatter node."""
    content = [node_from_json(n) for n in data.get("content") or []]
    fm = [n for n in content if isinstance(n, Frontmatter)]
    body = [n for n in content if not isinstance(n, Frontmatter)]
    return EditorDoc(content=(fm[0] if fm else Frontmatter(), *body))
