"""SSMLSerializer -- render a validated document as one flavor's markup.

Rendering rules:

  node            output
  ─────────────   ─────────────────────────────────────────────────
  Document        <speak ...>children</speak>  (always a tag pair)
  Text            escaped content followed by one space
  Meta            raw markup, verbatim
  Group           children only
  Custom          its own tag and attributes, in the order given
  other element   <tag attrs/> when empty, else <tag attrs>...</tag>

With ``pretty=True`` every node starts on its own line, indented with one
tab per depth; text loses its separator space and empty elements close
with ``" />"``.

Attributes follow the canonical order of each element class and are
spelled the way the flavor's profile says (``bookmark mark=`` on Azure).
The serializer does not re-check capabilities: hand it a tree validated
for the same flavor, or use :func:`serialize_to_string`, which validates
implicitly.
"""

from __future__ import annotations

import logging
from typing import Any

from .config import Settings
from .exceptions import SerializeError, ValidationError
from .flavors import Flavor, FlavorProfile, FlavorRegistry, default_registry
from .models import Custom, Document, Element, Group, Meta, Text, set_attributes
from .validator import ValidatedDocument, validate
from .values import render_value

logger = logging.getLogger(__name__)


def _escape_xml(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _ssml_attr(name: str, value: str) -> str:
    return f' {name}="{_escape_xml(value)}"'


class _Renderer:
    def __init__(self, profile: FlavorProfile, pretty: bool = False) -> None:
        self.profile = profile
        self.pretty = pretty

    def _break(self, depth: int) -> str:
        if not self.pretty:
            return ""
        return "\n" + "\t" * depth

    def document(self, doc: Document) -> str:
        head = [_ssml_attr(name, value) for name, value in self.profile.speak_prefix]
        tail = [_ssml_attr(name, value) for name, value in self.profile.speak_suffix]
        rest = []
        for name, value in self._attributes(doc):
            if name == "xml:lang":
                head.append(_ssml_attr(name, value))
            else:
                rest.append(_ssml_attr(name, value))
        attrs = "".join(head + tail + rest)
        inner = self.children(doc.children, 1)
        if inner:
            inner += self._break(0)
        return f"<speak{attrs}>{inner}</speak>"

    def children(self, children: Any, depth: int) -> str:
        return "".join(self.node(child, depth) for child in children)

    def node(self, node: Any, depth: int) -> str:
        if isinstance(node, Text):
            if self.pretty:
                return self._break(depth) + _escape_xml(node.content)
            return _escape_xml(node.content) + " "
        if isinstance(node, Meta):
            return self._break(depth) + node.raw
        if isinstance(node, Group):
            return self.children(node.children, depth)
        if isinstance(node, Document):
            raise SerializeError("A <speak> document cannot be nested inside another element")
        if not isinstance(node, Element):
            raise SerializeError(f"Cannot serialize {type(node).__name__}: not an SSML node")

        if isinstance(node, Custom):
            tag = node.name
            pairs = list(node.attributes)
        else:
            tag = self.profile.tag_name(node.kind, node.tag)
            pairs = self._attributes(node)
        attrs = "".join(_ssml_attr(name, value) for name, value in pairs)
        inner = "".join(
            f"{self._break(depth + 1)}<{name}>{_escape_xml(value)}</{name}>"
            for name, value in self._child_attributes(node)
        )
        inner += self.children(node.children, depth + 1)
        start = self._break(depth)
        if not inner:
            return f"{start}<{tag}{attrs}{' />' if self.pretty else '/>'}"
        return f"{start}<{tag}{attrs}>{inner}{self._break(depth)}</{tag}>"

    def _rendered(self, node: Element, as_child: bool) -> list[tuple[str, str]]:
        pairs = []
        for spec, value in set_attributes(node):
            if spec.as_child != as_child:
                continue
            rule = self.profile.rule(node.kind, spec.wire_name)
            rendered = render_value(value)
            if rule.omit_default is not None and rendered == rule.omit_default:
                continue
            pairs.append((self.profile.attribute_name(node.kind, spec.wire_name), rendered))
        return pairs

    def _attributes(self, node: Element) -> list[tuple[str, str]]:
        return self._rendered(node, as_child=False)

    def _child_attributes(self, node: Element) -> list[tuple[str, str]]:
        return self._rendered(node, as_child=True)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class SSMLSerializer:
    """Render documents as markup for one flavor.

    Parameters
    ----------
    flavor:
        Target flavor.
    registry:
        Capability registry; defaults to :func:`default_registry`.
    pretty:
        Indent the output, one node per line.
    """

    def __init__(
        self,
        flavor: Flavor | str,
        registry: FlavorRegistry | None = None,
        *,
        pretty: bool = False,
    ) -> None:
        self.flavor = Flavor.parse(flavor)
        self._registry = registry
        self.pretty = pretty

    @property
    def registry(self) -> FlavorRegistry:
        return self._registry if self._registry is not None else default_registry()

    def serialize(self, tree: Document | ValidatedDocument) -> str:
        """Render *tree* without re-checking it against the flavor."""
        if isinstance(tree, ValidatedDocument):
            tree = tree.document
        if not isinstance(tree, Document):
            raise SerializeError(f"Cannot serialize {type(tree).__name__}: expected a Document")
        return _Renderer(self.registry.profile(self.flavor), self.pretty).document(tree)

    def serialize_checked(self, tree: Document | ValidatedDocument) -> str:
        """Validate *tree* for this flavor if needed, then render it.

        Raises :class:`~ssml_flavors.exceptions.SerializeError` wrapping
        the validation error when the tree is not legal for the flavor.
        """
        if isinstance(tree, ValidatedDocument) and tree.flavor is self.flavor:
            return self.serialize(tree)
        logger.debug("Validating document for %s before serializing", self.flavor)
        try:
            validated = validate(tree, self.flavor, self._registry)
        except ValidationError as exc:
            raise SerializeError(f"Cannot serialize for {self.flavor}: {exc}", cause=exc) from exc
        return self.serialize(validated)


def serialize(tree: Document | ValidatedDocument, flavor: Flavor | str, *, pretty: bool = False) -> str:
    """Render *tree* for *flavor* without validating it (validate first)."""
    return SSMLSerializer(flavor, pretty=pretty).serialize(tree)


def serialize_to_string(
    tree: Document | ValidatedDocument,
    flavor: Flavor | str | None = None,
    registry: FlavorRegistry | None = None,
    *,
    pretty: bool = False,
) -> str:
    """Validate (when needed) and render *tree*.

    A :class:`ValidatedDocument` for the same flavor is rendered directly.
    Without *flavor*, a validated document keeps its own flavor and a
    plain document uses ``Settings.default_flavor``.
    """
    if flavor is None:
        if isinstance(tree, ValidatedDocument):
            flavor = tree.flavor
        else:
            flavor = Settings().default_flavor
    return SSMLSerializer(flavor, registry, pretty=pretty).serialize_checked(tree)
