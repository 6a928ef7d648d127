"""Shared test fixtures for the ssml_flavors test suite."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from ssml_flavors import (
    Audio,
    Break,
    Custom,
    Document,
    Emphasis,
    Express,
    FlavorRegistry,
    Lang,
    Mark,
    Paragraph,
    Phoneme,
    Prosody,
    SayAs,
    Sentence,
    Sub,
    Viseme,
    Voice,
    breaks,
    default_registry,
    emphasis,
    paragraph,
    prosody,
    say_as,
    sentence,
    speak,
)
from ssml_flavors.models import Element

# Attributes every instance of a kind must carry.
REQUIRED_SAMPLES: dict[type, dict[str, Any]] = {
    Document: {"lang": "en-US"},
    SayAs: {"interpret_as": "characters"},
    Audio: {"src": "https://example.com/chime.mp3"},
    Voice: {"names": "en-US-JennyNeural"},
    Mark: {"name": "here"},
    Lang: {"language": "fr-FR"},
    Phoneme: {"ph": "təˈmeɪtoʊ"},
    Sub: {"alias": "World Wide Web"},
    Express: {"style": "cheerful"},
    Viseme: {"viseme_type": "redlips_front"},
    Custom: {"name": "amazon:effect"},
}

# One plausible value per optional attribute field.
ATTRIBUTE_SAMPLES: dict[tuple[type, str], Any] = {
    (Document, "start_mark"): "intro",
    (Document, "end_mark"): "outro",
    (Break, "strength"): "weak",
    (Break, "time"): "100ms",
    (Emphasis, "level"): "strong",
    (Prosody, "pitch"): "high",
    (Prosody, "contour"): "(0%,+10Hz) (100%,-2st)",
    (Prosody, "pitch_range"): "low",
    (Prosody, "rate"): "slow",
    (Prosody, "duration"): "2s",
    (Prosody, "volume"): "loud",
    (SayAs, "format"): "mdy",
    (SayAs, "detail"): "1",
    (Audio, "clip_begin"): "1s",
    (Audio, "clip_end"): "2s",
    (Audio, "repeat_count"): 2,
    (Audio, "repeat_dur"): "3s",
    (Audio, "sound_level"): "+1dB",
    (Audio, "speed"): "100%",
    (Audio, "desc"): "a chime",
    (Voice, "gender"): "female",
    (Voice, "age"): 30,
    (Voice, "variant"): "2",
    (Voice, "languages"): "en-US",
    (Voice, "effect"): "eq_car",
    (Lang, "on_failure"): "ignoretext",
    (Phoneme, "alphabet"): "ipa",
    (Express, "degree"): 1.0,
    (Express, "role"): "Girl",
}

_CLASSES_WITH_TEXT = (
    Emphasis, Prosody, SayAs, Audio, Voice, Paragraph, Sentence, Lang, Phoneme, Sub, Express, Custom,
)


def make_sample(cls: type, field_name: str | None = None) -> Element:
    """Build a minimal *cls* node, optionally with one extra attribute set."""
    kwargs = dict(REQUIRED_SAMPLES.get(cls, {}))
    if field_name is not None:
        kwargs[field_name] = ATTRIBUTE_SAMPLES[(cls, field_name)]
    if cls in _CLASSES_WITH_TEXT:
        kwargs["children"] = ["word"]
    return cls(**kwargs)


# ---------------------------------------------------------------------------
# Sample SSML strings
# ---------------------------------------------------------------------------

SIMPLE_SPEAK = '<speak xml:lang="en-US">Hello, world!</speak>'

AZURE_DOCUMENT = (
    '<speak version="1.0" xmlns="http://www.w3.org/2001/10/synthesis"'
    ' xmlns:mstts="https://www.w3.org/2001/mstts" xml:lang="en-US">'
    '  <voice name="en-US-JennyNeural">'
    '    <mstts:express-as style="cheerful" styledegree="1.5">'
    "      Good morning!"
    "    </mstts:express-as>"
    '    <bookmark mark="greeting-done"/>'
    "  </voice>"
    "</speak>"
)

MIXED_CONTENT = (
    "<speak>"
    "  Before"
    '  <break time="1s"/>'
    "  after the pause,"
    '  <emphasis level="strong">loud</emphasis>'
    "  and done."
    "</speak>"
)

UNKNOWN_ELEMENT = (
    "<speak>"
    "  Start"
    "  <amazon:effect name=\"whispered\" xmlns:amazon=\"https://amazon.com\">secret</amazon:effect>"
    "  end."
    "</speak>"
)

MALFORMED = "<speak><p>unclosed</speak>"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _fresh_default_registry() -> Iterator[None]:
    """Make every test see the registry for its own environment."""
    default_registry.cache_clear()
    yield
    default_registry.cache_clear()


@pytest.fixture()
def registry() -> FlavorRegistry:
    return default_registry()


@pytest.fixture()
def hello_document() -> Document:
    return speak("en-US", ["Hello, world!"])


@pytest.fixture()
def rich_document() -> Document:
    """A document every flavor accepts as-is."""
    return speak(
        "en-US",
        [
            paragraph([
                sentence([
                    "Your total is",
                    say_as("cardinal", "42"),
                    breaks("500ms"),
                    emphasis("strong", ["thank you"]),
                ]),
                sentence([prosody(["slowly now"], rate="slow", pitch="low")]),
            ]),
        ],
    )


@pytest.fixture()
def sample_node() -> Callable[..., Element]:
    return make_sample


@pytest.fixture()
def simple_speak() -> str:
    return SIMPLE_SPEAK


@pytest.fixture()
def azure_document() -> str:
    return AZURE_DOCUMENT


@pytest.fixture()
def mixed_content() -> str:
    return MIXED_CONTENT


@pytest.fixture()
def unknown_element() -> str:
    return UNKNOWN_ELEMENT


@pytest.fixture()
def malformed() -> str:
    return MALFORMED
