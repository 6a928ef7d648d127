"""ssml-flavors -- one SSML document model, many speech-engine dialects.

Build a tree once, validate it against a target flavor and serialize it::

    from ssml_flavors import Flavor, serialize_to_string, speak

    doc = speak("en-US", ["Hello, world!"])
    serialize_to_string(doc, Flavor.AMAZON_POLLY)
    # '<speak xml:lang="en-US">Hello, world! </speak>'
"""

from ._version import __version__
from .config import Settings
from .exceptions import (
    AttributeOutOfRange,
    CapabilityTableError,
    MissingAttribute,
    RangeError,
    SerializeError,
    ShapeError,
    SSMLError,
    SSMLParseError,
    UnsupportedAttribute,
    UnsupportedElement,
    ValidationError,
    ValueFormatError,
)
from .flavors import (
    Flavor,
    FlavorProfile,
    FlavorRegistry,
    Rule,
    capability,
    default_registry,
    element_allowed,
    element_supported,
)
from .models import (
    Audio,
    Break,
    Custom,
    Document,
    ElementKind,
    Emphasis,
    Express,
    Group,
    Lang,
    Mark,
    Meta,
    Paragraph,
    Phoneme,
    Prosody,
    SayAs,
    Sentence,
    Sub,
    Text,
    Viseme,
    Voice,
    audio,
    breaks,
    custom,
    emphasis,
    express,
    group,
    lang,
    mark,
    meta,
    paragraph,
    phoneme,
    prosody,
    say_as,
    sentence,
    speak,
    sub,
    text,
    viseme,
    voice,
)
from .reader import SSMLReader
from .serializer import SSMLSerializer, serialize, serialize_to_string
from .validator import FlavorValidator, ValidatedDocument, ValidationResult, validate
from .visit import Visitor, walk
from .values import (
    BreakStrength,
    Decibels,
    EmphasisLevel,
    Hertz,
    LangFailure,
    LanguageTag,
    Percent,
    PhoneticAlphabet,
    PitchLevel,
    ProsodyContour,
    RateLevel,
    Semitones,
    TimeDesignation,
    VisemeType,
    VoiceEffect,
    VoiceGender,
    VoiceName,
    VolumeLevel,
)

__all__ = [
    "__version__",
    "Settings",
    # Core
    "speak",
    "validate",
    "serialize",
    "serialize_to_string",
    "FlavorValidator",
    "ValidatedDocument",
    "ValidationResult",
    "SSMLSerializer",
    "SSMLReader",
    "Visitor",
    "walk",
    # Flavors
    "Flavor",
    "FlavorProfile",
    "FlavorRegistry",
    "Rule",
    "capability",
    "default_registry",
    "element_allowed",
    "element_supported",
    # Models
    "Document",
    "ElementKind",
    "Text",
    "Meta",
    "Break",
    "Emphasis",
    "Prosody",
    "SayAs",
    "Audio",
    "Voice",
    "Paragraph",
    "Sentence",
    "Mark",
    "Lang",
    "Phoneme",
    "Sub",
    "Group",
    "Express",
    "Viseme",
    "Custom",
    "text",
    "meta",
    "breaks",
    "emphasis",
    "prosody",
    "say_as",
    "audio",
    "voice",
    "paragraph",
    "sentence",
    "mark",
    "lang",
    "phoneme",
    "sub",
    "group",
    "express",
    "viseme",
    "custom",
    # Values
    "TimeDesignation",
    "Decibels",
    "Percent",
    "Semitones",
    "Hertz",
    "ProsodyContour",
    "LanguageTag",
    "VoiceName",
    "BreakStrength",
    "EmphasisLevel",
    "PitchLevel",
    "RateLevel",
    "VolumeLevel",
    "VoiceGender",
    "LangFailure",
    "PhoneticAlphabet",
    "VoiceEffect",
    "VisemeType",
    # Exceptions
    "SSMLError",
    "ShapeError",
    "ValueFormatError",
    "RangeError",
    "ValidationError",
    "UnsupportedElement",
    "UnsupportedAttribute",
    "AttributeOutOfRange",
    "MissingAttribute",
    "SerializeError",
    "CapabilityTableError",
    "SSMLParseError",
]
