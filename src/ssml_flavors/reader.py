"""SSML reader -- converts SSML markup back into ``models.Document`` trees.

Uses ``lxml.etree`` with recursive descent through the element tree.
Reads the output of every flavor: namespaces are stripped, Azure's
``bookmark`` becomes a :class:`~ssml_flavors.models.Mark` and the
``mstts:`` extensions become ``Express`` / ``Viseme`` nodes.

The reader is lenient: unknown elements are skipped (their tail text is
kept) unless the reader keeps them as ``Custom`` nodes, attribute values that do not parse are dropped, and missing
required attributes are left unset for the validator to report.  Text is
stripped and whitespace-only text is dropped.
"""

from __future__ import annotations

import logging
from dataclasses import Field, fields
from functools import lru_cache
from pathlib import Path
from typing import Any

from lxml import etree

from .exceptions import ShapeError, SSMLParseError, ValueFormatError
from .models import (
    Audio,
    Break,
    Custom,
    Document,
    Element,
    Emphasis,
    Express,
    Lang,
    LeafElement,
    Mark,
    Node,
    Paragraph,
    Phoneme,
    Prosody,
    SayAs,
    Sentence,
    Sub,
    Text,
    Viseme,
    Voice,
)

logger = logging.getLogger(__name__)

_XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"

_ELEMENTS: dict[str, type[Element]] = {
    "break": Break,
    "emphasis": Emphasis,
    "prosody": Prosody,
    "say-as": SayAs,
    "audio": Audio,
    "voice": Voice,
    "p": Paragraph,
    "s": Sentence,
    "mark": Mark,
    "bookmark": Mark,
    "lang": Lang,
    "phoneme": Phoneme,
    "sub": Sub,
    "express-as": Express,
    "viseme": Viseme,
}

# Flavor-specific attribute spellings.
_ATTRIBUTE_ALIASES: dict[tuple[str, str], str] = {
    ("bookmark", "mark"): "name",
}

# Header attributes every flavor may write on <speak>.
_SPEAK_HEADER = frozenset({"version"})


def _strip_ns(tag: str) -> str:
    """Remove namespace prefix from an element tag if present."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _attr_name(key: str) -> str:
    if key == _XML_LANG:
        return "xml:lang"
    return _strip_ns(key)


@lru_cache(maxsize=None)
def _fields_by_wire(cls: type[Element]) -> dict[str, Field[Any]]:
    return {f.metadata["attr"]: f for f in fields(cls) if "attr" in f.metadata}


def _clean_text(raw: str | None) -> str | None:
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped or None


def _is_markup(element: Any) -> bool:
    return not isinstance(element, (etree._Comment, etree._ProcessingInstruction))


def _parse_attributes(element: etree._Element, cls: type[Element], tag: str) -> dict[str, Any]:
    by_wire = _fields_by_wire(cls)
    kwargs: dict[str, Any] = {f.name: None for f in by_wire.values()}
    for key, raw in element.attrib.items():
        name = _attr_name(key)
        name = _ATTRIBUTE_ALIASES.get((tag, name), name)
        f = by_wire.get(name)
        if f is None:
            if not (cls is Document and name in _SPEAK_HEADER):
                logger.warning("Dropping unknown attribute %r on <%s> (line %s)", name, tag, element.sourceline)
            continue
        coerce = f.metadata["coerce"]
        try:
            kwargs[f.name] = coerce(raw) if coerce is not None else raw
        except (ValueFormatError, ValueError) as exc:
            logger.warning(
                "Dropping unparseable %s=%r on <%s> (line %s): %s",
                name, raw, tag, element.sourceline, exc,
            )
    return kwargs


def _collect_children(element: etree._Element, kwargs: dict[str, Any], keep_unknown: bool) -> list[Node]:
    """Walk mixed content of *element*, returning the ordered child nodes."""
    children: list[Node] = []

    leading = _clean_text(element.text)
    if leading:
        children.append(Text(leading))

    for child_el in element:
        if _is_markup(child_el):
            tag = _strip_ns(child_el.tag)  # type: ignore[arg-type]
            if tag == "desc" and "desc" in kwargs:
                kwargs["desc"] = _clean_text(child_el.text)
            else:
                node = _parse_element(child_el, keep_unknown)
                if node is not None:
                    children.append(node)
        tail = _clean_text(child_el.tail)
        if tail:
            children.append(Text(tail))

    return children


def _build(cls: type[Element], element: etree._Element, tag: str, keep_unknown: bool) -> Element:
    kwargs = _parse_attributes(element, cls, tag)
    try:
        if issubclass(cls, LeafElement):
            if any(_is_markup(c) for c in element) or _clean_text(element.text):
                raise ShapeError(f"<{tag}> is a leaf element and cannot have content")
            return cls(**kwargs)
        children = _collect_children(element, kwargs, keep_unknown)
        return cls(**kwargs, children=children)
    except (ShapeError, ValueFormatError) as exc:
        raise SSMLParseError(f"Invalid <{tag}>: {exc}", line=element.sourceline) from exc


def _qualified(element: etree._Element, name: str) -> str:
    """Re-attach the namespace prefix lxml resolved away (``amazon:effect``)."""
    if name == _XML_LANG:
        return "xml:lang"
    if not name.startswith("{"):
        return name
    uri, local = name[1:].split("}", 1)
    for prefix, ns in element.nsmap.items():
        if ns == uri and prefix:
            return f"{prefix}:{local}"
    return local


def _build_custom(element: etree._Element, keep_unknown: bool) -> Custom:
    name = _qualified(element, element.tag)  # type: ignore[arg-type]
    attributes = [(_qualified(element, key), value) for key, value in element.attrib.items()]
    try:
        children = _collect_children(element, {}, keep_unknown)
        return Custom(name=name, attributes=attributes, children=children)  # type: ignore[arg-type]
    except (ShapeError, ValueFormatError) as exc:
        raise SSMLParseError(f"Invalid <{name}>: {exc}", line=element.sourceline) from exc


def _parse_element(element: etree._Element, keep_unknown: bool) -> Element | None:
    """Dispatch parsing based on element tag name."""
    tag = _strip_ns(element.tag)  # type: ignore[arg-type]
    cls = _ELEMENTS.get(tag)
    if cls is None:
        if keep_unknown:
            return _build_custom(element, keep_unknown)
        # Unknown element -- skip it; the caller keeps its tail text.
        logger.warning("Skipping unknown element <%s> (line %s)", tag, element.sourceline)
        return None
    return _build(cls, element, tag, keep_unknown)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class SSMLReader:
    """Parse SSML markup into :class:`~ssml_flavors.models.Document` trees.

    With ``keep_unknown=True`` elements the reader does not know become
    :class:`~ssml_flavors.models.Custom` nodes instead of being skipped.
    """

    def __init__(self, keep_unknown: bool = False) -> None:
        self.keep_unknown = keep_unknown
        self._parser = etree.XMLParser(resolve_entities=False, no_network=True)

    def parse(self, markup: str) -> Document:
        """Parse an SSML string.

        Raises :class:`~ssml_flavors.exceptions.SSMLParseError` on
        malformed XML, a root other than ``<speak>``, or nesting that no
        flavor accepts.
        """
        try:
            root = etree.fromstring(markup.encode("utf-8"), self._parser)  # noqa: S320
        except etree.XMLSyntaxError as exc:
            raise SSMLParseError(
                str(exc),
                line=getattr(exc, "lineno", None),
                column=getattr(exc, "position", (None, None))[1] if hasattr(exc, "position") else None,
            ) from exc

        root_tag = _strip_ns(root.tag)
        if root_tag != "speak":
            raise SSMLParseError(f"Expected root element <speak>, got <{root_tag}>", line=root.sourceline)

        return _build(Document, root, root_tag, self.keep_unknown)  # type: ignore[return-value]

    def parse_file(self, path: str | Path) -> Document:
        """Parse an SSML file from disk."""
        p = Path(path)
        return self.parse(p.read_text(encoding="utf-8"))
