"""Flavor capability registry.

Each flavor's support matrix lives in ``data/capabilities.yaml``: which
elements and attributes it accepts, which value forms, keywords, ranges
and URI schemes, and how it spells tag and attribute names.  The table is
schema-checked with pydantic and frozen into immutable :class:`Rule`,
:class:`ElementCapability` and :class:`FlavorProfile` objects, so a loaded
registry can be shared freely.

Lookups::

    from ssml_flavors.flavors import Flavor, capability
    from ssml_flavors.models import ElementKind

    rule = capability(Flavor.AMAZON_POLLY, ElementKind.BREAK, "time")
    rule.normalize(TimeDesignation(5000))     # unchanged
    rule.normalize(TimeDesignation(15000))    # raises RangeError
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as SchemaError

from .config import Settings
from .exceptions import CapabilityTableError, RangeError, ValueFormatError
from .models import ELEMENT_CLASSES, ElementKind, attribute_specs
from .values import (
    ProsodyContour,
    format_number,
    magnitude_of,
    render_value,
    value_form,
    with_magnitude,
)

logger = logging.getLogger(__name__)

FORMS = frozenset({
    "keyword", "ms", "dB", "%", "st", "Hz", "contour",
    "language", "name", "uri", "number", "text",
})

# Node kinds every flavor accepts wherever the structural rules allow them.
_ALWAYS_SUPPORTED = frozenset({ElementKind.TEXT, ElementKind.META, ElementKind.GROUP})


class Flavor(str, Enum):
    """Target speech services."""

    GENERIC = "generic"
    AZURE = "azure"
    GOOGLE = "google"
    AMAZON_POLLY = "amazon-polly"
    SONGBIRD = "songbird"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: Flavor | str) -> Flavor:
        try:
            return cls(raw)
        except ValueError as exc:
            accepted = ", ".join(m.value for m in cls)
            raise ValueFormatError(f"Unknown flavor {raw!r} (expected one of: {accepted})") from exc


# ---------------------------------------------------------------------------
# Frozen capability objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValueRange:
    """Accepted magnitude interval for one value form."""

    minimum: float | None
    maximum: float | None
    policy: Literal["clamp", "reject"] = "reject"

    def fit(self, magnitude: float) -> float | None:
        """Return the accepted magnitude, or None if it must be rejected."""
        low = self.minimum if self.minimum is not None else magnitude
        high = self.maximum if self.maximum is not None else magnitude
        if low <= magnitude <= high:
            return magnitude
        if self.policy == "clamp":
            return min(max(magnitude, low), high)
        return None

    def describe(self, unit: str) -> str:
        low = "-inf" if self.minimum is None else format_number(self.minimum)
        high = "inf" if self.maximum is None else format_number(self.maximum)
        return f"{unit} in [{low}, {high}]"


@dataclass(frozen=True)
class Rule:
    """How one flavor treats one attribute of one element kind.

    The default instance is the unsupported rule.
    """

    supported: bool = False
    forms: frozenset[str] | None = None
    keywords: frozenset[str] | None = None
    ranges: Mapping[str, ValueRange] = field(default_factory=lambda: MappingProxyType({}))
    schemes: frozenset[str] | None = None
    required: bool = False
    omit_default: str | None = None
    wire_name: str | None = None

    def normalize(self, value: Any) -> Any:
        """Return *value* fitted to this rule's domain.

        Out-of-range magnitudes are clamped or rejected according to the
        range policy.  Raises :class:`~ssml_flavors.exceptions.RangeError`
        when the value cannot be accepted.
        """
        if not self.supported:
            raise RangeError(value, "attribute not supported")
        if isinstance(value, tuple):
            return tuple(self._normalize_one(v) for v in value)
        return self._normalize_one(value)

    def describe(self) -> str:
        """Human-readable summary of the accepted domain."""
        parts = []
        if self.forms is not None:
            parts.append("forms " + ", ".join(sorted(self.forms)))
        if self.keywords is not None:
            parts.append("one of " + ", ".join(sorted(self.keywords)))
        for unit, bounds in sorted(self.ranges.items()):
            parts.append(bounds.describe(unit))
        if self.schemes is not None:
            parts.append("schemes " + ", ".join(sorted(self.schemes)))
        return "; ".join(parts) or "any value"

    def _normalize_one(self, value: Any) -> Any:
        form = value_form(value)
        if self.forms is not None and form not in self.forms:
            raise RangeError(value, self.describe())
        if form in ("keyword", "text") and self.keywords is not None:
            if render_value(value) not in self.keywords:
                raise RangeError(value, self.describe())
        if form == "uri" and self.schemes is not None and value.scheme not in self.schemes:
            raise RangeError(value, self.describe())
        if isinstance(value, ProsodyContour):
            return ProsodyContour(tuple((pos, self._fit(pitch)) for pos, pitch in value.points))
        return self._fit(value)

    def _fit(self, value: Any) -> Any:
        bounds = self.ranges.get(value_form(value))
        magnitude = magnitude_of(value)
        if bounds is None or magnitude is None:
            return value
        fitted = bounds.fit(magnitude)
        if fitted is None:
            raise RangeError(value, self.describe())
        if fitted == magnitude:
            return value
        return with_magnitude(value, fitted)


UNSUPPORTED = Rule()


@dataclass(frozen=True)
class ElementCapability:
    """One flavor's support entry for an element kind."""

    kind: ElementKind
    tag: str | None
    parents: frozenset[ElementKind] | None
    deny_parents: frozenset[ElementKind]
    attributes: Mapping[str, Rule]

    def allows_parent(self, parent: ElementKind) -> bool:
        if parent in self.deny_parents:
            return False
        return self.parents is None or parent in self.parents


@dataclass(frozen=True)
class FlavorProfile:
    """A flavor's support matrix and rendering dialect."""

    flavor: Flavor
    speak_prefix: tuple[tuple[str, str], ...]
    speak_suffix: tuple[tuple[str, str], ...]
    elements: Mapping[ElementKind, ElementCapability]

    def element(self, kind: ElementKind) -> ElementCapability | None:
        return self.elements.get(kind)

    def rule(self, kind: ElementKind, attribute: str) -> Rule:
        entry = self.elements.get(kind)
        if entry is None:
            return UNSUPPORTED
        return entry.attributes.get(attribute, UNSUPPORTED)

    def tag_name(self, kind: ElementKind, default: str) -> str:
        entry = self.elements.get(kind)
        if entry is not None and entry.tag:
            return entry.tag
        return default

    def attribute_name(self, kind: ElementKind, attribute: str) -> str:
        return self.rule(kind, attribute).wire_name or attribute


# ---------------------------------------------------------------------------
# Table schema
# ---------------------------------------------------------------------------


class _RangeSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min: float | None = None
    max: float | None = None
    policy: Literal["clamp", "reject"] = "reject"

    @model_validator(mode="after")
    def _ordered(self) -> _RangeSchema:
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"range min {self.min} exceeds max {self.max}")
        return self


class _RuleSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    forms: list[str] | None = None
    keywords: list[str] | None = None
    ranges: dict[str, _RangeSchema] = Field(default_factory=dict)
    schemes: list[str] | None = None
    required: bool = False
    omit_default: str | None = None
    wire_name: str | None = None

    @field_validator("forms")
    @classmethod
    def _known_forms(cls, forms: list[str] | None) -> list[str] | None:
        unknown = set(forms or ()) - FORMS
        if unknown:
            raise ValueError(f"unknown value forms: {', '.join(sorted(unknown))}")
        return forms

    @field_validator("ranges")
    @classmethod
    def _known_range_units(cls, ranges: dict[str, _RangeSchema]) -> dict[str, _RangeSchema]:
        unknown = set(ranges) - FORMS
        if unknown:
            raise ValueError(f"unknown range units: {', '.join(sorted(unknown))}")
        return ranges


class _ElementSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tag: str | None = None
    parents: list[str] | None = None
    deny_parents: list[str] = Field(default_factory=list)
    attributes: dict[str, _RuleSchema] = Field(default_factory=dict)


class _SpeakSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    prefix: dict[str, str] = Field(default_factory=dict)
    suffix: dict[str, str] = Field(default_factory=dict)


class _FlavorSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    speak: _SpeakSchema = Field(default_factory=_SpeakSchema)
    elements: dict[str, _ElementSchema]


class _TableSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: int = 1
    flavors: dict[str, _FlavorSchema]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def _kind(name: str, source: str) -> ElementKind:
    try:
        return ElementKind(name)
    except ValueError as exc:
        raise CapabilityTableError(f"Unknown element kind {name!r} in {source}") from exc


def _build_rule(schema: _RuleSchema) -> Rule:
    return Rule(
        supported=True,
        forms=frozenset(schema.forms) if schema.forms is not None else None,
        keywords=frozenset(schema.keywords) if schema.keywords is not None else None,
        ranges=MappingProxyType({
            unit: ValueRange(r.min, r.max, r.policy) for unit, r in schema.ranges.items()
        }),
        schemes=frozenset(s.lower() for s in schema.schemes) if schema.schemes is not None else None,
        required=schema.required,
        omit_default=schema.omit_default,
        wire_name=schema.wire_name,
    )


def _build_element(kind: ElementKind, schema: _ElementSchema, source: str) -> ElementCapability:
    cls = ELEMENT_CLASSES.get(kind)
    if cls is None or kind is ElementKind.GROUP:
        raise CapabilityTableError(f"<{kind}> cannot carry capability data ({source})")
    known = {spec.wire_name for spec in attribute_specs(cls)}
    unknown = set(schema.attributes) - known
    if unknown:
        raise CapabilityTableError(
            f"<{kind}> has no attribute(s) {', '.join(sorted(unknown))} ({source})"
        )
    return ElementCapability(
        kind=kind,
        tag=schema.tag,
        parents=(
            frozenset(_kind(p, source) for p in schema.parents)
            if schema.parents is not None else None
        ),
        deny_parents=frozenset(_kind(p, source) for p in schema.deny_parents),
        attributes=MappingProxyType({
            name: _build_rule(rule) for name, rule in schema.attributes.items()
        }),
    )


def _build_profile(flavor: Flavor, schema: _FlavorSchema, source: str) -> FlavorProfile:
    elements = {}
    for name, entry in schema.elements.items():
        kind = _kind(name, source)
        elements[kind] = _build_element(kind, entry, source)
    if ElementKind.SPEAK not in elements:
        raise CapabilityTableError(f"Flavor {flavor} has no <speak> entry ({source})")
    return FlavorProfile(
        flavor=flavor,
        speak_prefix=tuple(schema.speak.prefix.items()),
        speak_suffix=tuple(schema.speak.suffix.items()),
        elements=MappingProxyType(elements),
    )


class FlavorRegistry:
    """Immutable lookup over the capability tables of all flavors."""

    def __init__(self, profiles: Mapping[Flavor, FlavorProfile]) -> None:
        self._profiles: Mapping[Flavor, FlavorProfile] = MappingProxyType(dict(profiles))

    @classmethod
    def from_yaml(cls, path: str | Path) -> FlavorRegistry:
        """Load a registry from a YAML capability table.

        Raises :class:`~ssml_flavors.exceptions.CapabilityTableError`
        if the file cannot be read or does not match the table schema.
        """
        p = Path(path)
        try:
            text = p.read_text(encoding="utf-8")
        except OSError as exc:
            raise CapabilityTableError(f"Cannot read capability table: {exc}") from exc

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise CapabilityTableError(f"Invalid YAML in capability table {p}: {exc}") from exc

        registry = cls.from_mapping(data, source=str(p))
        logger.debug("Loaded capability table from %s (%d flavors)", p, len(registry.flavors))
        return registry

    @classmethod
    def from_mapping(cls, data: Any, source: str = "<mapping>") -> FlavorRegistry:
        """Build a registry from an already-parsed table."""
        if not isinstance(data, dict):
            raise CapabilityTableError(
                f"Capability table must be a mapping, got {type(data).__name__} ({source})"
            )
        try:
            table = _TableSchema.model_validate(data)
        except SchemaError as exc:
            raise CapabilityTableError(f"Malformed capability table {source}: {exc}") from exc

        profiles = {}
        for name, block in table.flavors.items():
            try:
                flavor = Flavor(name)
            except ValueError as exc:
                raise CapabilityTableError(f"Unknown flavor {name!r} in {source}") from exc
            profiles[flavor] = _build_profile(flavor, block, source)
        return cls(profiles)

    @property
    def flavors(self) -> tuple[Flavor, ...]:
        return tuple(self._profiles)

    def profile(self, flavor: Flavor | str) -> FlavorProfile:
        flavor = Flavor.parse(flavor)
        try:
            return self._profiles[flavor]
        except KeyError as exc:
            raise CapabilityTableError(f"No capability data for flavor {flavor}") from exc

    def capability(self, flavor: Flavor | str, kind: ElementKind, attribute: str) -> Rule:
        """Return the rule for *attribute* (canonical wire name) on *kind*."""
        return self.profile(flavor).rule(kind, attribute)

    def element_supported(self, flavor: Flavor | str, kind: ElementKind) -> bool:
        if kind in _ALWAYS_SUPPORTED:
            return True
        return self.profile(flavor).element(kind) is not None

    def element_allowed(self, flavor: Flavor | str, kind: ElementKind, parent_kind: ElementKind) -> bool:
        """Return True if the flavor accepts *kind* directly inside *parent_kind*."""
        if kind in _ALWAYS_SUPPORTED:
            return True
        entry = self.profile(flavor).element(kind)
        return entry is not None and entry.allows_parent(parent_kind)


@lru_cache(maxsize=1)
def default_registry() -> FlavorRegistry:
    """The process-wide registry, loaded on first use.

    Reads ``SSML_FLAVORS_CAPABILITIES`` when set, else the packaged table.
    """
    return FlavorRegistry.from_yaml(Settings().capabilities_path)


def profile(flavor: Flavor | str) -> FlavorProfile:
    return default_registry().profile(flavor)


def capability(flavor: Flavor | str, kind: ElementKind, attribute: str) -> Rule:
    return default_registry().capability(flavor, kind, attribute)


def element_supported(flavor: Flavor | str, kind: ElementKind) -> bool:
    return default_registry().element_supported(flavor, kind)


def element_allowed(flavor: Flavor | str, kind: ElementKind, parent_kind: ElementKind) -> bool:
    return default_registry().element_allowed(flavor, kind, parent_kind)
