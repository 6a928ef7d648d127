"""Element tree for SSML documents.

One dataclass per element kind, each with a fixed, typed attribute set.
Attribute fields carry their wire name in the field metadata; the field
definition order is the canonical attribute order used on output.

Container elements own an ordered ``children`` list.  Every append runs
the flavor-independent structural check and raises
:class:`~ssml_flavors.exceptions.ShapeError` for placements no flavor
could accept (anything inside a ``break``, a ``p`` inside an ``s``, ...).
Flavor-specific restrictions are the validator's job.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, fields
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, ClassVar, Iterable, Mapping, TypeAlias, Union

from .exceptions import ShapeError, ValueFormatError
from .values import (
    AudioSource,
    BreakStrength,
    Decibels,
    EmphasisLevel,
    Keyword,
    LangFailure,
    LanguageTag,
    Percent,
    PhoneticAlphabet,
    ProsodyContour,
    ProsodyPitch,
    ProsodyRate,
    ProsodyVolume,
    TimeDesignation,
    VisemeType,
    VoiceEffect,
    VoiceGender,
    VoiceName,
    parse_pitch,
    parse_rate,
    parse_volume,
    render_value,
)


class ElementKind(str, Enum):
    """Node kinds; the value is the key used in capability tables."""

    SPEAK = "speak"
    TEXT = "text"
    META = "meta"
    BREAK = "break"
    EMPHASIS = "emphasis"
    PROSODY = "prosody"
    SAY_AS = "say-as"
    AUDIO = "audio"
    VOICE = "voice"
    PARAGRAPH = "p"
    SENTENCE = "s"
    MARK = "mark"
    LANG = "lang"
    PHONEME = "phoneme"
    SUB = "sub"
    GROUP = "group"
    EXPRESS = "express-as"
    VISEME = "viseme"
    CUSTOM = "custom"

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Structural rules (flavor independent)
# ---------------------------------------------------------------------------

_ANY = frozenset(k for k in ElementKind if k is not ElementKind.SPEAK)
_BLOCKS = frozenset({ElementKind.PARAGRAPH, ElementKind.SENTENCE})
_NOTHING: frozenset[ElementKind] = frozenset()

_STRUCTURE: dict[ElementKind, frozenset[ElementKind]] = {
    ElementKind.SPEAK: _ANY,
    ElementKind.TEXT: _NOTHING,
    ElementKind.META: _NOTHING,
    ElementKind.BREAK: _NOTHING,
    ElementKind.MARK: _NOTHING,
    ElementKind.VISEME: _NOTHING,
    ElementKind.PHONEME: frozenset({ElementKind.TEXT}),
    ElementKind.SUB: frozenset({ElementKind.TEXT}),
    ElementKind.PARAGRAPH: _ANY - {ElementKind.PARAGRAPH},
    ElementKind.SENTENCE: _ANY - _BLOCKS,
    ElementKind.EMPHASIS: _ANY - _BLOCKS,
    ElementKind.SAY_AS: _ANY - _BLOCKS,
    ElementKind.PROSODY: _ANY,
    ElementKind.AUDIO: _ANY,
    ElementKind.VOICE: _ANY,
    ElementKind.LANG: _ANY,
    ElementKind.GROUP: _ANY,
    ElementKind.EXPRESS: _ANY,
    ElementKind.CUSTOM: _ANY,
}


def structurally_allowed(parent: ElementKind, child: ElementKind) -> bool:
    """Return True if *child* may ever appear directly inside *parent*."""
    return child in _STRUCTURE[parent]


def is_leaf(kind: ElementKind) -> bool:
    return not _STRUCTURE[kind]


# ---------------------------------------------------------------------------
# Attribute field helpers
# ---------------------------------------------------------------------------


def _attr(
    wire: str,
    coerce: Callable[[Any], Any] | None = None,
    *,
    default: Any = None,
    required: bool = False,
    child: bool = False,
    kw_only: bool = False,
) -> Any:
    metadata = {"attr": wire, "coerce": coerce, "child": child}
    if required:
        return field(metadata=metadata, kw_only=kw_only)
    return field(default=default, metadata=metadata, kw_only=kw_only)


@dataclass(frozen=True)
class AttributeSpec:
    """One typed attribute of an element kind."""

    field_name: str
    wire_name: str
    as_child: bool


@lru_cache(maxsize=None)
def attribute_specs(cls: type) -> tuple[AttributeSpec, ...]:
    """Attribute specs of an element class, in canonical order."""
    return tuple(
        AttributeSpec(f.name, f.metadata["attr"], f.metadata["child"])
        for f in fields(cls)
        if "attr" in f.metadata
    )


def set_attributes(node: Any) -> list[tuple[AttributeSpec, Any]]:
    """Return the (spec, value) pairs of attributes set on *node*."""
    if not isinstance(node, Element):
        return []
    pairs = []
    for spec in attribute_specs(type(node)):
        value = getattr(node, spec.field_name)
        if value is not None:
            pairs.append((spec, value))
    return pairs


def _parser(parse: Callable[[str], Any]) -> Callable[[Any], Any]:
    def coerce(value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, Keyword):
            return parse(value)
        return value

    return coerce


def _time(value: Any) -> Any:
    if isinstance(value, (int, float)):
        return TimeDesignation(float(value))
    return _parser(TimeDesignation.parse)(value)


def _speed(value: Any) -> Any:
    # Multipliers (1.0 == normal speed) become percentages.
    if isinstance(value, (int, float)):
        return Percent(float(value) * 100.0)
    return _parser(Percent.parse)(value)


def _rate(value: Any) -> Any:
    if isinstance(value, (int, float)):
        return Percent(float(value) * 100.0)
    return _parser(parse_rate)(value)


def _decibels(value: Any) -> Any:
    if isinstance(value, (int, float)):
        return Decibels(float(value))
    return _parser(Decibels.parse)(value)


def _volume(value: Any) -> Any:
    if isinstance(value, (int, float)):
        return Decibels(float(value))
    return _parser(parse_volume)(value)


def _keyword(enum: type[Keyword]) -> Callable[[Any], Any]:
    def coerce(value: Any) -> Any:
        if isinstance(value, enum):
            return value
        return enum.parse(str(value))

    return coerce


def _names(value: Any) -> Any:
    if isinstance(value, (str, VoiceName)):
        value = str(value).split()
    return tuple(v if isinstance(v, VoiceName) else VoiceName.parse(v) for v in value)


def _languages(value: Any) -> Any:
    if isinstance(value, (str, LanguageTag)):
        value = str(value).split()
    return tuple(v if isinstance(v, LanguageTag) else LanguageTag.parse(v) for v in value)


def _number(value: Any, what: str) -> float:
    if isinstance(value, bool):
        raise ValueFormatError(f"{what} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueFormatError(f"{what} must be a number, got {value!r}") from exc
    if not math.isfinite(number):
        raise ValueFormatError(f"{what} must be finite, got {value!r}")
    return number


def _non_negative_number(what: str) -> Callable[[Any], Any]:
    def coerce(value: Any) -> Any:
        number = _number(value, what)
        if number < 0:
            raise ValueFormatError(f"{what} cannot be negative, got {value}")
        return number

    return coerce


def _age(value: Any) -> Any:
    number = _number(value, "voice age")
    if not number.is_integer():
        raise ValueFormatError(f"voice age must be a whole number, got {value}")
    if number < 0:
        raise ValueFormatError(f"voice age cannot be negative, got {value}")
    return int(number)


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


@dataclass
class _Node:
    kind: ClassVar[ElementKind]
    _owned: bool = field(default=False, init=False, repr=False, compare=False)


@dataclass
class Text(_Node):
    """Plain spoken text; escaped exactly once on output."""

    content: str
    kind = ElementKind.TEXT


@dataclass
class Meta(_Node):
    """Raw markup written verbatim (never escaped)."""

    raw: str
    kind = ElementKind.META


@dataclass
class Element(_Node):
    """Base for markup elements."""

    tag: ClassVar[str]

    def __post_init__(self) -> None:
        for f in fields(self):
            coerce = f.metadata.get("coerce")
            value = getattr(self, f.name)
            if coerce is not None and value is not None:
                setattr(self, f.name, coerce(value))


@dataclass
class LeafElement(Element):
    """An element that never has children."""

    @property
    def children(self) -> tuple[Node, ...]:
        return ()

    def append(self, child: Node | str) -> Node:
        raise ShapeError(f"<{self.kind}> is a leaf element and cannot contain <{_kind_of(child)}>")


@dataclass
class ContainerElement(Element):
    """An element owning an ordered list of child nodes."""

    children: list[Node] = field(default_factory=list, kw_only=True)

    def __post_init__(self) -> None:
        super().__post_init__()
        initial, self.children = list(self.children), []
        self.extend(initial)

    def _context(self) -> ElementKind | None:
        return self.kind

    def append(self, child: Node | str) -> Node:
        """Append *child* and return it (so it can be nested into further)."""
        node = _as_node(child)
        if node._owned:
            raise ShapeError(f"<{node.kind}> already belongs to another element; nodes cannot be shared")
        if node is self or _contains(node, self):
            raise ShapeError(f"appending <{node.kind}> here would create a cycle")
        context = self._context()
        if context is not None:
            _check_placement(context, node)
        if isinstance(node, Group):
            node._set_context(context)
        node._owned = True
        self.children.append(node)
        return node

    def extend(self, children: Iterable[Node | str]) -> ContainerElement:
        """Append every node in *children*; returns self."""
        for child in children:
            self.append(child)
        return self


Node: TypeAlias = Union[Text, Meta, Element]


def _kind_of(child: Any) -> str:
    if isinstance(child, str):
        return str(ElementKind.TEXT)
    return str(getattr(child, "kind", type(child).__name__))


def _as_node(child: Any) -> Node:
    if isinstance(child, str):
        return Text(str(child))
    if isinstance(child, (Text, Meta, Element)):
        return child
    raise ShapeError(f"{type(child).__name__} is not an SSML node")


def _contains(root: Node, target: Node) -> bool:
    for child in getattr(root, "children", ()):
        if child is target or _contains(child, target):
            return True
    return False


def _check_placement(parent: ElementKind, node: Node) -> None:
    if is_leaf(parent):
        raise ShapeError(f"<{parent}> is a leaf element and cannot contain <{node.kind}>")
    if isinstance(node, Group):
        for child in node.children:
            _check_placement(parent, child)
        return
    if not structurally_allowed(parent, node.kind):
        raise ShapeError(f"<{node.kind}> can never be placed inside <{parent}>")


# ---------------------------------------------------------------------------
# Element kinds
# ---------------------------------------------------------------------------


@dataclass
class Document(ContainerElement):
    """The root ``speak`` container of an SSML document."""

    lang: LanguageTag | None = _attr("xml:lang", _parser(LanguageTag.parse))
    start_mark: str | None = _attr("startmark")
    end_mark: str | None = _attr("endmark")
    kind = ElementKind.SPEAK
    tag = "speak"


@dataclass
class Break(LeafElement):
    """A pause, by strength and/or explicit time."""

    strength: BreakStrength | None = _attr("strength", _keyword(BreakStrength))
    time: TimeDesignation | None = _attr("time", _time)
    kind = ElementKind.BREAK
    tag = "break"


@dataclass
class Emphasis(ContainerElement):
    level: EmphasisLevel | None = _attr("level", _keyword(EmphasisLevel), default=EmphasisLevel.MODERATE)
    kind = ElementKind.EMPHASIS
    tag = "emphasis"


@dataclass
class Prosody(ContainerElement):
    """Pitch, range, rate, duration and volume control for a span."""

    pitch: ProsodyPitch | None = _attr("pitch", _parser(parse_pitch))
    contour: ProsodyContour | None = _attr("contour", _parser(ProsodyContour.parse))
    pitch_range: ProsodyPitch | None = _attr("range", _parser(parse_pitch))
    rate: ProsodyRate | None = _attr("rate", _rate)
    duration: TimeDesignation | None = _attr("duration", _time)
    volume: ProsodyVolume | None = _attr("volume", _volume)
    kind = ElementKind.PROSODY
    tag = "prosody"


@dataclass
class SayAs(ContainerElement):
    """Interpretation hint for the contained text (``interpret-as``)."""

    interpret_as: str = _attr("interpret-as", required=True)
    format: str | None = _attr("format")
    detail: str | None = _attr("detail")
    kind = ElementKind.SAY_AS
    tag = "say-as"


@dataclass
class Audio(ContainerElement):
    """Recorded audio; the children are spoken if the audio is unavailable."""

    src: AudioSource = _attr("src", _parser(AudioSource.parse), required=True)
    clip_begin: TimeDesignation | None = _attr("clipBegin", _time)
    clip_end: TimeDesignation | None = _attr("clipEnd", _time)
    repeat_count: float | None = _attr("repeatCount", _non_negative_number("repeat count"))
    repeat_dur: TimeDesignation | None = _attr("repeatDur", _time)
    sound_level: Decibels | None = _attr("soundLevel", _decibels)
    speed: Percent | None = _attr("speed", _speed)
    desc: str | None = _attr("desc", child=True)
    kind = ElementKind.AUDIO
    tag = "audio"

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.repeat_count is not None and self.repeat_dur is not None:
            raise ValueFormatError("audio repeatCount and repeatDur are mutually exclusive")


@dataclass
class Voice(ContainerElement):
    gender: VoiceGender | None = _attr("gender", _keyword(VoiceGender))
    age: int | None = _attr("age", _age)
    names: tuple[VoiceName, ...] | None = _attr("name", _names)
    variant: str | None = _attr("variant")
    languages: tuple[LanguageTag, ...] | None = _attr("language", _languages)
    effect: VoiceEffect | None = _attr("effect", _keyword(VoiceEffect))
    kind = ElementKind.VOICE
    tag = "voice"


@dataclass
class Paragraph(ContainerElement):
    kind = ElementKind.PARAGRAPH
    tag = "p"


@dataclass
class Sentence(ContainerElement):
    kind = ElementKind.SENTENCE
    tag = "s"


@dataclass
class Mark(LeafElement):
    """A named marker reported back by the engine when reached."""

    name: str = _attr("name", required=True)
    kind = ElementKind.MARK
    tag = "mark"


@dataclass
class Lang(ContainerElement):
    language: LanguageTag = _attr("xml:lang", _parser(LanguageTag.parse), required=True)
    on_failure: LangFailure | None = _attr("onlangfailure", _keyword(LangFailure))
    kind = ElementKind.LANG
    tag = "lang"


@dataclass
class Phoneme(ContainerElement):
    alphabet: PhoneticAlphabet | None = _attr("alphabet", _keyword(PhoneticAlphabet))
    ph: str = _attr("ph", required=True, kw_only=True)
    kind = ElementKind.PHONEME
    tag = "phoneme"


@dataclass
class Sub(ContainerElement):
    alias: str = _attr("alias", required=True)
    kind = ElementKind.SUB
    tag = "sub"


@dataclass
class Group(ContainerElement):
    """A transparent container: only its children are rendered.

    Its children are checked against whatever it is appended to.
    """

    _parent_kind: ElementKind | None = field(default=None, init=False, repr=False, compare=False)
    kind = ElementKind.GROUP
    tag = ""

    def _context(self) -> ElementKind | None:
        return self._parent_kind

    def _set_context(self, kind: ElementKind | None) -> None:
        self._parent_kind = kind
        for child in self.children:
            if isinstance(child, Group):
                child._set_context(kind)


@dataclass
class Express(ContainerElement):
    """Azure speaking style (``mstts:express-as``)."""

    style: str = _attr("style", required=True)
    degree: float | None = _attr("styledegree", _non_negative_number("style degree"))
    role: str | None = _attr("role")
    kind = ElementKind.EXPRESS
    tag = "mstts:express-as"


@dataclass
class Viseme(LeafElement):
    """Azure viseme request (``mstts:viseme``)."""

    viseme_type: VisemeType = _attr("type", _keyword(VisemeType), required=True)
    kind = ElementKind.VISEME
    tag = "mstts:viseme"


_XML_NAME = re.compile(r"^[A-Za-z_][\w.\-]*(?::[A-Za-z_][\w.\-]*)?$")


@dataclass
class Custom(ContainerElement):
    """A caller-defined element written as-is (``amazon:effect``, ...).

    Its attributes are free-form ``(name, value)`` pairs kept in the order
    given.  Flavors only decide whether custom elements are accepted at all.
    """

    name: str
    attributes: tuple[tuple[str, str], ...] = ()
    kind = ElementKind.CUSTOM
    tag = ""

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not _XML_NAME.match(self.name):
            raise ValueFormatError(f"invalid element name {self.name!r}")
        pairs = self.attributes.items() if isinstance(self.attributes, Mapping) else self.attributes
        attributes = tuple((str(key), render_value(value)) for key, value in pairs)
        seen = set()
        for key, _ in attributes:
            if not _XML_NAME.match(key):
                raise ValueFormatError(f"invalid attribute name {key!r} on <{self.name}>")
            if key in seen:
                raise ValueFormatError(f"duplicate attribute {key!r} on <{self.name}>")
            seen.add(key)
        self.attributes = attributes
        super().__post_init__()


ELEMENT_CLASSES: dict[ElementKind, type[Element]] = {
    cls.kind: cls
    for cls in (
        Document, Break, Emphasis, Prosody, SayAs, Audio, Voice, Paragraph,
        Sentence, Mark, Lang, Phoneme, Sub, Group, Express, Viseme, Custom,
    )
}


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

Children: TypeAlias = Iterable[Union[Node, str]]


def speak(lang: LanguageTag | str | None = None, children: Children = ()) -> Document:
    """Create a document; plain strings become text children.

    ::

        doc = speak("en-US", ["Hello, world!"])
    """
    return Document(lang=lang, children=list(children))


def text(content: object) -> Text:
    return Text(str(content))


def meta(raw: str) -> Meta:
    return Meta(raw)


def breaks(
    value: BreakStrength | TimeDesignation | str | float | None = None,
    *,
    strength: BreakStrength | str | None = None,
    time: TimeDesignation | str | float | None = None,
) -> Break:
    """Create a ``break``.

    *value* is a strength keyword (``"strong"``) or a time
    (``"500ms"``, ``TimeDesignation``); ``strength`` and ``time`` may
    also be given explicitly.
    """
    if value is not None:
        if isinstance(value, BreakStrength) or value in {m.value for m in BreakStrength}:
            strength = value  # type: ignore[assignment]
        else:
            time = value  # type: ignore[assignment]
    return Break(strength=strength, time=time)  # type: ignore[arg-type]


def emphasis(level: EmphasisLevel | str = EmphasisLevel.MODERATE, children: Children = ()) -> Emphasis:
    return Emphasis(level=level, children=list(children))  # type: ignore[arg-type]


def prosody(
    children: Children = (),
    *,
    pitch: ProsodyPitch | str | None = None,
    contour: ProsodyContour | str | None = None,
    pitch_range: ProsodyPitch | str | None = None,
    rate: ProsodyRate | str | float | None = None,
    duration: TimeDesignation | str | None = None,
    volume: ProsodyVolume | str | float | None = None,
) -> Prosody:
    return Prosody(
        pitch=pitch,  # type: ignore[arg-type]
        contour=contour,  # type: ignore[arg-type]
        pitch_range=pitch_range,  # type: ignore[arg-type]
        rate=rate,  # type: ignore[arg-type]
        duration=duration,  # type: ignore[arg-type]
        volume=volume,  # type: ignore[arg-type]
        children=list(children),
    )


def say_as(
    interpret_as: str,
    content: Node | str,
    *,
    format: str | None = None,
    detail: str | None = None,
) -> SayAs:
    return SayAs(interpret_as=interpret_as, format=format, detail=detail, children=[content])


def audio(
    src: AudioSource | str,
    *,
    alternate: Children = (),
    desc: str | None = None,
    clip_begin: TimeDesignation | str | None = None,
    clip_end: TimeDesignation | str | None = None,
    repeat_count: float | None = None,
    repeat_dur: TimeDesignation | str | None = None,
    sound_level: Decibels | str | float | None = None,
    speed: Percent | str | float | None = None,
) -> Audio:
    """Create an ``audio`` element; *alternate* is spoken if the source fails."""
    return Audio(
        src=src,  # type: ignore[arg-type]
        clip_begin=clip_begin,  # type: ignore[arg-type]
        clip_end=clip_end,  # type: ignore[arg-type]
        repeat_count=repeat_count,
        repeat_dur=repeat_dur,  # type: ignore[arg-type]
        sound_level=sound_level,  # type: ignore[arg-type]
        speed=speed,  # type: ignore[arg-type]
        desc=desc,
        children=list(alternate),
    )


def voice(
    name: VoiceName | str | Iterable[VoiceName | str] | None = None,
    children: Children = (),
    *,
    gender: VoiceGender | str | None = None,
    age: int | None = None,
    variant: str | None = None,
    languages: Iterable[LanguageTag | str] | str | None = None,
    effect: VoiceEffect | str | None = None,
) -> Voice:
    return Voice(
        gender=gender,  # type: ignore[arg-type]
        age=age,
        names=name,  # type: ignore[arg-type]
        variant=variant,
        languages=languages,  # type: ignore[arg-type]
        effect=effect,  # type: ignore[arg-type]
        children=list(children),
    )


def paragraph(children: Children = ()) -> Paragraph:
    return Paragraph(children=list(children))


def sentence(children: Children = ()) -> Sentence:
    return Sentence(children=list(children))


def mark(name: str) -> Mark:
    return Mark(name=name)


def lang(language: LanguageTag | str, children: Children = (), *, on_failure: LangFailure | str | None = None) -> Lang:
    return Lang(language=language, on_failure=on_failure, children=list(children))  # type: ignore[arg-type]


def phoneme(ph: str, content: str, *, alphabet: PhoneticAlphabet | str | None = None) -> Phoneme:
    return Phoneme(ph=ph, alphabet=alphabet, children=[content])  # type: ignore[arg-type]


def sub(alias: str, content: str) -> Sub:
    return Sub(alias=alias, children=[content])


def group(children: Children = ()) -> Group:
    return Group(children=list(children))


def express(style: str, children: Children = (), *, degree: float | None = None, role: str | None = None) -> Express:
    return Express(style=style, degree=degree, role=role, children=list(children))


def viseme(viseme_type: VisemeType | str) -> Viseme:
    return Viseme(viseme_type=viseme_type)  # type: ignore[arg-type]


def custom(
    name: str,
    children: Children = (),
    attributes: Mapping[str, object] | Iterable[tuple[str, object]] = (),
) -> Custom:
    """Create a caller-defined element.

    ::

        custom("amazon:effect", ["psst"], {"name": "whispered"})
    """
    return Custom(name=name, attributes=attributes, children=list(children))  # type: ignore[arg-type]
