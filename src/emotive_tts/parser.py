"""Markup parser -- converts SSML / MaryXML strings into ``MarkupDocument``.

Uses ``lxml.etree`` with recursive descent through the element tree.
Mixed content (text interleaved with child elements) is handled via
``element.text`` / ``child.tail``.  Elements the compiler never emits are
skipped, but the text that follows them is kept.
"""

from __future__ import annotations

from lxml import etree

from .compiler import XML_NS
from .exceptions import MarkupParseError
from .models import ChildNode, Emphasis, MarkupDialect, MarkupDocument, Prosody

_ROOT_DIALECTS: dict[str, MarkupDialect] = {
    "speak": MarkupDialect.SSML,
    "maryxml": MarkupDialect.MARYXML,
}


def _strip_ns(tag: str) -> str:
    """Remove namespace prefix from an element tag if present."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _merge(children: list[ChildNode], node: ChildNode) -> None:
    if isinstance(node, str) and children and isinstance(children[-1], str):
        children[-1] = children[-1] + node
    else:
        children.append(node)


def _collect_children(element: etree._Element) -> list[ChildNode]:
    children: list[ChildNode] = []
    if element.text:
        children.append(element.text)

    for child_el in element:
        # Comments and processing instructions have non-string tags.
        if isinstance(child_el.tag, str):
            tag = _strip_ns(child_el.tag)
            if tag == "prosody":
                children.append(Prosody(
                    children=tuple(_collect_children(child_el)),
                    contour=child_el.get("contour"),
                    rate=child_el.get("rate"),
                    volume=child_el.get("volume"),
                ))
            elif tag == "emphasis":
                children.append(Emphasis(
                    level=child_el.get("level", "moderate"),
                    children=tuple(_collect_children(child_el)),
                ))
            elif tag in ("p", "s"):
                for node in _collect_children(child_el):
                    _merge(children, node)
        if child_el.tail:
            _merge(children, child_el.tail)

    return children


def _children_to_plain_text(children: tuple[ChildNode, ...]) -> str:
    parts: list[str] = []
    for child in children:
        if isinstance(child, str):
            parts.append(child)
        else:
            parts.append(_children_to_plain_text(child.children))
    return "".join(parts)


class MarkupParser:
    """Parse speech markup into :class:`MarkupDocument` objects."""

    def parse(self, markup: str) -> MarkupDocument:
        """Parse an SSML or MaryXML string.

        Raises :class:`~emotive_tts.exceptions.MarkupParseError` on
        malformed XML or an unsupported root element.
        """
        try:
            root = etree.fromstring(markup.encode("utf-8"))  # noqa: S320
        except etree.XMLSyntaxError as exc:
            raise MarkupParseError(
                str(exc),
                line=getattr(exc, "lineno", None),
                column=exc.position[1] if hasattr(exc, "position") else None,
            ) from exc

        root_tag = _strip_ns(root.tag)
        dialect = _ROOT_DIALECTS.get(root_tag)
        if dialect is None:
            raise MarkupParseError(
                f"Expected root element <speak> or <maryxml>, got <{root_tag}>"
            )

        return MarkupDocument(
            dialect=dialect,
            children=tuple(_collect_children(root)),
            language=root.get(f"{{{XML_NS}}}lang", "en-US"),
        )

    def to_plain_text(self, doc: MarkupDocument) -> str:
        """Extract the spoken text from *doc*, stripping all markup."""
        return _children_to_plain_text(doc.children)
