"""Flavor validator -- checks a document against one flavor's capability table.

The walk is depth-first in document order and stops at the first error:

  1. the ``speak`` root's attributes are checked first (path ``/``);
  2. each element must be supported by the flavor and allowed inside its
     parent (groups are transparent: their children are checked against
     the nearest non-group ancestor);
  3. each attribute set on an element, in canonical order, must be
     supported, and its value is normalized (clamped or rejected) by the
     flavor's rule; required attributes must be set;
  4. children are visited.

The input is never mutated.  A successful walk returns a fresh tree with
normalized values, wrapped in :class:`ValidatedDocument`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

from .exceptions import (
    AttributeOutOfRange,
    MissingAttribute,
    RangeError,
    UnsupportedAttribute,
    UnsupportedElement,
    ValidationError,
)
from .flavors import Flavor, FlavorProfile, FlavorRegistry, default_registry
from .models import (
    ContainerElement,
    Document,
    Element,
    ElementKind,
    Group,
    Meta,
    Node,
    Text,
    attribute_specs,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValidatedDocument:
    """A document confirmed legal for ``flavor``, with normalized values."""

    document: Document
    flavor: Flavor


@dataclass
class ValidationResult:
    """Outcome of :meth:`FlavorValidator.check`."""

    valid: bool = True
    document: ValidatedDocument | None = None
    error: ValidationError | None = None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


class _Walker:
    """Rebuilds a tree node by node while checking it against a profile."""

    def __init__(self, profile: FlavorProfile, registry: FlavorRegistry) -> None:
        self.profile = profile
        self.registry = registry
        self.flavor = profile.flavor

    def document(self, doc: Document) -> Document:
        attrs = self._attributes(doc, ())
        return replace(doc, **attrs, children=self._children(doc, ElementKind.SPEAK, ()))

    def _children(self, node: ContainerElement, parent_kind: ElementKind, path: tuple[int, ...]) -> list[Node]:
        return [self._node(child, parent_kind, path + (i,)) for i, child in enumerate(node.children)]

    def _node(self, node: Any, parent_kind: ElementKind, path: tuple[int, ...]) -> Node:
        if isinstance(node, (Text, Meta)):
            return replace(node)
        if not isinstance(node, Element):
            raise UnsupportedElement(
                f"{type(node).__name__} is not an SSML node",
                path=path,
                flavor=str(self.flavor),
                element=type(node).__name__,
            )
        if isinstance(node, Group):
            return replace(node, children=self._children(node, parent_kind, path))

        kind = node.kind
        if not self.registry.element_supported(self.flavor, kind):
            raise UnsupportedElement(
                f"<{kind}> is not supported",
                path=path,
                flavor=str(self.flavor),
                element=str(kind),
            )
        if not self.registry.element_allowed(self.flavor, kind, parent_kind):
            raise UnsupportedElement(
                f"<{kind}> is not allowed inside <{parent_kind}>",
                path=path,
                flavor=str(self.flavor),
                element=str(kind),
            )

        attrs = self._attributes(node, path)
        if isinstance(node, ContainerElement):
            return replace(node, **attrs, children=self._children(node, kind, path))
        return replace(node, **attrs)

    def _attributes(self, node: Element, path: tuple[int, ...]) -> dict[str, Any]:
        kind = node.kind
        normalized: dict[str, Any] = {}
        for spec in attribute_specs(type(node)):
            value = getattr(node, spec.field_name)
            rule = self.profile.rule(kind, spec.wire_name)
            if value is None:
                if rule.required:
                    raise MissingAttribute(
                        attribute=spec.wire_name, path=path, flavor=str(self.flavor), element=str(kind)
                    )
                continue
            if not rule.supported:
                raise UnsupportedAttribute(
                    attribute=spec.wire_name, path=path, flavor=str(self.flavor), element=str(kind)
                )
            try:
                fitted = rule.normalize(value)
            except RangeError as exc:
                raise AttributeOutOfRange(
                    attribute=spec.wire_name,
                    value=value,
                    domain=exc.domain,
                    path=path,
                    flavor=str(self.flavor),
                    element=str(kind),
                ) from exc
            if fitted != value:
                logger.debug(
                    "Clamped <%s> %s from %s to %s for %s",
                    kind, spec.wire_name, value, fitted, self.flavor,
                )
            normalized[spec.field_name] = fitted
        return normalized


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class FlavorValidator:
    """Validate documents against one flavor."""

    def __init__(self, flavor: Flavor | str, registry: FlavorRegistry | None = None) -> None:
        self.flavor = Flavor.parse(flavor)
        self._registry = registry

    @property
    def registry(self) -> FlavorRegistry:
        return self._registry if self._registry is not None else default_registry()

    def validate(self, tree: Document | ValidatedDocument) -> ValidatedDocument:
        """Validate *tree* and return the normalized copy.

        Raises a :class:`~ssml_flavors.exceptions.ValidationError`
        subclass for the first problem found.
        """
        if isinstance(tree, ValidatedDocument):
            tree = tree.document
        if not isinstance(tree, Document):
            raise TypeError(f"Expected a Document, got {type(tree).__name__}")
        registry = self.registry
        walker = _Walker(registry.profile(self.flavor), registry)
        return ValidatedDocument(walker.document(tree), self.flavor)

    def check(self, tree: Document | ValidatedDocument) -> ValidationResult:
        """Like :meth:`validate`, but report the outcome instead of raising."""
        try:
            validated = self.validate(tree)
        except ValidationError as exc:
            return ValidationResult(valid=False, error=exc)
        return ValidationResult(valid=True, document=validated)


def validate(
    tree: Document | ValidatedDocument,
    flavor: Flavor | str,
    registry: FlavorRegistry | None = None,
) -> ValidatedDocument:
    """Validate *tree* for *flavor*; see :class:`FlavorValidator`."""
    return FlavorValidator(flavor, registry).validate(tree)
