"""MarkupCompiler -- turn an utterance and an emotional style into markup.

Pipeline:
  1. Normalize the utterance (terminal punctuation appended if absent)
  2. Wrap ALL CAPS tokens in ``<emphasis level="strong">``
  3. Wrap the content in ``<prosody>`` carrying the style's profile
  4. Place it in a dialect root with a single ``<p>`` paragraph
  5. Serialize with ``lxml``

Two dialects are supported:

  Dialect     Root                                   Input type
  ────────    ───────────────────────────────────    ──────────
  SSML        <speak version="1.0" ...>              SSML
  MaryXML     <maryxml version="0.4" ...>            RAWMARYXML

Emphasis and prosody spans are built as real child elements, so the
serializer never escapes markup that belongs to the document structure.
"""

from __future__ import annotations

from dataclasses import dataclass

from lxml import etree

from .emphasis import detect_emphasis
from .exceptions import CompilationError
from .models import (
    ChildNode,
    CompiledMarkup,
    EmotionalStyle,
    Emphasis,
    InputType,
    MarkupDialect,
    MarkupDocument,
    Prosody,
)
from .profiles import resolve_profile

TERMINAL_PUNCTUATION = (".", ",", "?", "!")

XML_NS = "http://www.w3.org/XML/1998/namespace"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
SSML_NS = "http://www.w3.org/2001/10/synthesis"
MARYXML_NS = "http://mary.dfki.de/2002/MaryXML"
SSML_SCHEMA_LOCATION = (
    "http://www.w3.org/2001/10/synthesis "
    "http://www.w3.org/TR/speech-synthesis/synthesis.xsd"
)


@dataclass(frozen=True)
class DialectSpec:
    """Root element layout for one markup dialect."""

    root: str
    namespace: str
    version: str
    input_type: InputType
    schema_location: str | None = None


DIALECTS: dict[MarkupDialect, DialectSpec] = {
    MarkupDialect.SSML: DialectSpec(
        root="speak",
        namespace=SSML_NS,
        version="1.0",
        input_type=InputType.SSML,
        schema_location=SSML_SCHEMA_LOCATION,
    ),
    MarkupDialect.MARYXML: DialectSpec(
        root="maryxml",
        namespace=MARYXML_NS,
        version="0.4",
        input_type=InputType.RAWMARYXML,
    ),
}


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def normalize_utterance(text: str) -> str:
    """Append ``.`` unless *text* already ends in terminal punctuation.

    Raises :class:`~emotive_tts.exceptions.CompilationError` for empty or
    whitespace-only text.
    """
    if not text or not text.strip():
        raise CompilationError("Cannot compile an empty utterance")
    if text.endswith(TERMINAL_PUNCTUATION):
        return text
    return text + "."


def annotate_emphasis(text: str) -> tuple[ChildNode, ...]:
    """Split *text* into plain runs and :class:`Emphasis` nodes.

    Non-emphasized tokens and all whitespace are kept verbatim in the
    surrounding text runs.
    """
    children: list[ChildNode] = []
    buffer = ""
    cursor = 0
    for span in detect_emphasis(text):
        buffer += text[cursor:span.start]
        token = span.text(text)
        if span.emphasized:
            if buffer:
                children.append(buffer)
                buffer = ""
            children.append(Emphasis(level="strong", children=(token,)))
        else:
            buffer += token
        cursor = span.end
    buffer += text[cursor:]
    if buffer:
        children.append(buffer)
    return tuple(children)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def _append_text(parent: etree._Element, text: str) -> None:
    if len(parent):
        last = parent[-1]
        last.tail = (last.tail or "") + text
    else:
        parent.text = (parent.text or "") + text


def _append_children(
    parent: etree._Element, children: tuple[ChildNode, ...], namespace: str
) -> None:
    for child in children:
        if isinstance(child, str):
            _append_text(parent, child)
        elif isinstance(child, Prosody):
            el = etree.SubElement(parent, f"{{{namespace}}}prosody")
            for name, value in child.attributes():
                el.set(name, value)
            _append_children(el, child.children, namespace)
        elif isinstance(child, Emphasis):
            el = etree.SubElement(parent, f"{{{namespace}}}emphasis")
            el.set("level", child.level)
            _append_children(el, child.children, namespace)


def to_element(doc: MarkupDocument) -> etree._Element:
    """Build the ``lxml`` element tree for *doc*."""
    layout = DIALECTS[doc.dialect]
    ns = layout.namespace
    root = etree.Element(f"{{{ns}}}{layout.root}", nsmap={None: ns, "xsi": XSI_NS})
    root.set("version", layout.version)
    if layout.schema_location is not None:
        root.set(f"{{{XSI_NS}}}schemaLocation", layout.schema_location)
    root.set(f"{{{XML_NS}}}lang", doc.language)
    paragraph = etree.SubElement(root, f"{{{ns}}}p")
    _append_children(paragraph, doc.children, ns)
    return root


def serialize(doc: MarkupDocument) -> str:
    """Serialize *doc* to a UTF-8 XML string with declaration.

    Raises :class:`~emotive_tts.exceptions.CompilationError` if the
    document cannot be represented as XML (e.g. control characters).
    """
    try:
        root = to_element(doc)
        return etree.tostring(root, xml_declaration=True, encoding="UTF-8").decode("utf-8")
    except (ValueError, etree.LxmlError) as exc:
        raise CompilationError(f"Cannot build {doc.dialect.value} document: {exc}") from exc


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class MarkupCompiler:
    """Compile utterances into backend-ready speech markup.

    Parameters
    ----------
    dialect:
        Default dialect used when :meth:`compile` is called without one.
    plain_text_for_neutral:
        When ``True``, an utterance with style ``NONE`` and no emphasized
        tokens is passed to the backend as plain text instead of markup.
    language:
        Value of the root ``xml:lang`` attribute.
    """

    def __init__(
        self,
        dialect: MarkupDialect = MarkupDialect.SSML,
        plain_text_for_neutral: bool = False,
        language: str = "en-US",
    ) -> None:
        self.dialect = dialect
        self.plain_text_for_neutral = plain_text_for_neutral
        self.language = language

    def build(
        self,
        text: str,
        style: EmotionalStyle,
        dialect: MarkupDialect | None = None,
    ) -> MarkupDocument:
        """Build the markup tree for *text* without serializing it."""
        normalized = normalize_utterance(text)
        content = annotate_emphasis(normalized)

        profile = resolve_profile(style)
        if profile is not None:
            content = (Prosody(children=content, **dict(profile.attributes())),)

        return MarkupDocument(
            dialect=dialect or self.dialect,
            children=content,
            language=self.language,
        )

    def compile(
        self,
        text: str,
        style: EmotionalStyle,
        dialect: MarkupDialect | None = None,
    ) -> CompiledMarkup:
        """Compile *text* and return the serialized markup with its input type."""
        if self.plain_text_for_neutral and style is EmotionalStyle.NONE:
            normalized = normalize_utterance(text)
            if not any(span.emphasized for span in detect_emphasis(normalized)):
                return CompiledMarkup(markup=normalized, input_type=InputType.TEXT)

        doc = self.build(text, style, dialect)
        return CompiledMarkup(
            markup=serialize(doc),
            input_type=DIALECTS[doc.dialect].input_type,
            document=doc,
        )
