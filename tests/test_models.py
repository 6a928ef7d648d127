"""Tests for ssml_flavors.models.

Covers:
- Builders coerce wire strings into typed values
- append() / extend() return values and Text wrapping
- Structural rejection (ShapeError) for every impossible placement
- Group transparency and single ownership
- Canonical attribute order
- Custom element names and attributes
"""

from __future__ import annotations

import pytest

from ssml_flavors import serialize_to_string
from ssml_flavors.exceptions import ShapeError, ValueFormatError
from ssml_flavors.models import (
    Audio,
    Break,
    Custom,
    Document,
    ElementKind,
    Emphasis,
    Group,
    Mark,
    Paragraph,
    Phoneme,
    Prosody,
    SayAs,
    Sentence,
    Text,
    Viseme,
    Voice,
    attribute_specs,
    audio,
    breaks,
    custom,
    emphasis,
    express,
    group,
    mark,
    paragraph,
    phoneme,
    prosody,
    say_as,
    sentence,
    speak,
    structurally_allowed,
    sub,
    viseme,
    voice,
)
from ssml_flavors.values import (
    BreakStrength,
    Decibels,
    EmphasisLevel,
    LanguageTag,
    Percent,
    RateLevel,
    TimeDesignation,
    VisemeType,
    VoiceName,
)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


class TestBuilders:
    def test_speak_wraps_strings(self) -> None:
        doc = speak("en-US", ["Hello, world!"])
        assert isinstance(doc, Document)
        assert doc.lang == LanguageTag("en-US")
        assert doc.children == [Text("Hello, world!")]

    def test_speak_empty(self) -> None:
        doc = speak()
        assert doc.lang is None
        assert doc.children == []

    def test_breaks_by_strength(self) -> None:
        assert breaks("strong") == Break(strength=BreakStrength.STRONG)

    def test_breaks_by_time(self) -> None:
        assert breaks("1s").time == TimeDesignation(1000)
        assert breaks(time="250ms").time == TimeDesignation(250)

    def test_bad_time_rejected(self) -> None:
        with pytest.raises(ValueFormatError):
            breaks(time="5m")

    def test_prosody_values_coerced(self) -> None:
        p = prosody(["hi"], rate="x-slow", volume="-6dB", pitch="+10%")
        assert p.rate is RateLevel.X_SLOW
        assert p.volume == Decibels(-6)
        assert p.pitch == Percent(10, relative=True)

    def test_prosody_numeric_rate_is_multiplier(self) -> None:
        assert prosody(rate=1.5).rate == Percent(150)

    def test_emphasis_defaults_to_moderate(self) -> None:
        assert emphasis().level is EmphasisLevel.MODERATE

    def test_voice_names(self) -> None:
        v = voice(["en-US-JennyNeural", "en-US-GuyNeural"])
        assert v.names == (VoiceName("en-US-JennyNeural"), VoiceName("en-US-GuyNeural"))
        assert voice("a b").names == (VoiceName("a"), VoiceName("b"))

    def test_voice_negative_age(self) -> None:
        with pytest.raises(ValueFormatError):
            voice("a", age=-1)

    @pytest.mark.parametrize("age", ["abc", True, 30.5, float("nan")])
    def test_voice_bad_age(self, age: object) -> None:
        with pytest.raises(ValueFormatError):
            voice("a", age=age)  # type: ignore[arg-type]

    def test_voice_age_from_string(self) -> None:
        assert voice("a", age="42").age == 42

    @pytest.mark.parametrize("degree", ["lots", False, float("inf")])
    def test_bad_style_degree(self, degree: object) -> None:
        with pytest.raises(ValueFormatError):
            express("cheerful", ["hi"], degree=degree)  # type: ignore[arg-type]

    def test_numbers_stored_as_floats(self) -> None:
        assert express("cheerful", degree=1).degree == 1.0
        assert isinstance(express("cheerful", degree=1).degree, float)
        assert audio("https://x/a.mp3", repeat_count="2").repeat_count == 2.0

    def test_audio_speed_multiplier(self) -> None:
        assert audio("https://x/a.mp3", speed=1.25).speed == Percent(125)

    def test_audio_repeat_exclusive(self) -> None:
        with pytest.raises(ValueFormatError):
            audio("https://x/a.mp3", repeat_count=2, repeat_dur="3s")

    def test_viseme_type(self) -> None:
        assert viseme("redlips_front").viseme_type is VisemeType.BY_ID

    def test_unknown_keyword_argument(self) -> None:
        with pytest.raises(TypeError):
            Break(duration="1s")  # type: ignore[call-arg]


# ---------------------------------------------------------------------------
# Appending
# ---------------------------------------------------------------------------


class TestAppend:
    def test_append_returns_child(self) -> None:
        doc = speak()
        p = doc.append(paragraph())
        s = p.append(sentence())
        s.append("nested")
        assert doc.children[0].children[0].children == [Text("nested")]

    def test_append_wraps_text(self) -> None:
        s = sentence()
        node = s.append("plain")
        assert node == Text("plain")

    def test_extend_returns_parent(self) -> None:
        s = sentence()
        assert s.extend(["a", breaks("weak"), "b"]) is s
        assert len(s.children) == 3

    def test_cannot_share_nodes(self) -> None:
        b = breaks("weak")
        sentence([b])
        with pytest.raises(ShapeError, match="another element"):
            sentence([b])

    def test_cannot_create_cycle(self) -> None:
        outer = prosody()
        inner = outer.append(prosody())
        with pytest.raises(ShapeError):
            inner.append(outer)

    def test_not_a_node(self) -> None:
        with pytest.raises(ShapeError):
            sentence().append(42)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Structural rules
# ---------------------------------------------------------------------------


class TestStructure:
    @pytest.mark.parametrize("leaf", [lambda: breaks("weak"), lambda: mark("m"), lambda: viseme("redlips_front")])
    def test_nothing_inside_leaves(self, leaf: object) -> None:
        # Rejected while building, before any flavor is consulted.
        node = leaf()  # type: ignore[operator]
        with pytest.raises(ShapeError):
            node.append(paragraph())
        with pytest.raises(ShapeError):
            node.append("text")

    def test_paragraph_not_in_paragraph(self) -> None:
        with pytest.raises(ShapeError):
            paragraph([paragraph()])

    def test_sentence_rules(self) -> None:
        with pytest.raises(ShapeError):
            sentence([sentence()])
        with pytest.raises(ShapeError):
            sentence([paragraph()])
        paragraph([sentence(["ok"])])

    @pytest.mark.parametrize("parent", [Emphasis, SayAs])
    def test_inline_containers_reject_blocks(self, parent: type) -> None:
        kwargs = {"interpret_as": "characters"} if parent is SayAs else {}
        with pytest.raises(ShapeError):
            parent(**kwargs, children=[sentence()])

    def test_phoneme_and_sub_take_text_only(self) -> None:
        phoneme("təˈmeɪtoʊ", "tomato")
        sub("World Wide Web", "WWW")
        with pytest.raises(ShapeError):
            Phoneme(ph="x", children=[breaks("weak")])

    def test_prosody_inside_say_as_is_structurally_fine(self) -> None:
        say_as("characters", "abc").append(prosody(["x"]))

    def test_nothing_contains_speak(self) -> None:
        with pytest.raises(ShapeError):
            paragraph([speak()])

    def test_structurally_allowed(self) -> None:
        assert structurally_allowed(ElementKind.VOICE, ElementKind.PARAGRAPH)
        assert not structurally_allowed(ElementKind.SENTENCE, ElementKind.SENTENCE)
        assert not structurally_allowed(ElementKind.BREAK, ElementKind.TEXT)


class TestGroup:
    def test_group_children_checked_against_parent(self) -> None:
        g = group([paragraph(["para"])])
        with pytest.raises(ShapeError):
            sentence([g])

    def test_group_into_leaf(self) -> None:
        with pytest.raises(ShapeError):
            breaks("weak").append(group())

    def test_attached_group_checks_later_children(self) -> None:
        s = sentence()
        g = s.append(group())
        assert isinstance(g, Group)
        with pytest.raises(ShapeError):
            g.append(paragraph())
        g.append("fine")

    def test_nested_groups_take_context(self) -> None:
        inner = group()
        outer = group([inner])
        sentence([outer])
        with pytest.raises(ShapeError):
            inner.append(sentence())

    def test_group_renders_children_only(self) -> None:
        doc = speak(None, [group(["one", group(["two"])])])
        assert serialize_to_string(doc, "amazon-polly") == "<speak>one two </speak>"


# ---------------------------------------------------------------------------
# Attribute specs
# ---------------------------------------------------------------------------


class TestAttributeSpecs:
    def test_canonical_prosody_order(self) -> None:
        names = [spec.wire_name for spec in attribute_specs(Prosody)]
        assert names == ["pitch", "contour", "range", "rate", "duration", "volume"]

    def test_audio_desc_is_child(self) -> None:
        specs = {spec.wire_name: spec for spec in attribute_specs(Audio)}
        assert specs["desc"].as_child
        assert not specs["src"].as_child

    def test_voice_wire_names(self) -> None:
        names = [spec.wire_name for spec in attribute_specs(Voice)]
        assert names == ["gender", "age", "name", "variant", "language", "effect"]

    def test_leaf_has_no_children(self) -> None:
        assert Mark(name="m").children == ()
        assert Viseme(viseme_type="FacialExpression").children == ()  # type: ignore[arg-type]

    def test_document_attributes(self) -> None:
        names = [spec.wire_name for spec in attribute_specs(Document)]
        assert names == ["xml:lang", "startmark", "endmark"]

    def test_paragraph_has_none(self) -> None:
        assert attribute_specs(Paragraph) == ()
        assert attribute_specs(Sentence) == ()


# ---------------------------------------------------------------------------
# Custom elements
# ---------------------------------------------------------------------------


class TestCustom:
    def test_builder(self) -> None:
        node = custom("amazon:effect", ["psst"], {"name": "whispered"})
        assert isinstance(node, Custom)
        assert node.kind is ElementKind.CUSTOM
        assert node.attributes == (("name", "whispered"),)
        assert node.children == [Text("psst")]

    def test_attribute_values_rendered(self) -> None:
        node = custom("x-note", attributes=[("z", 1.5), ("a", TimeDesignation(250)), ("m", Percent(10, relative=True))])
        assert node.attributes == (("z", "1.5"), ("a", "250ms"), ("m", "+10%"))

    @pytest.mark.parametrize("name", ["", "1st", "a b", "a:b:c", "<x>", 42])
    def test_bad_names(self, name: object) -> None:
        with pytest.raises(ValueFormatError):
            custom(name)  # type: ignore[arg-type]

    def test_bad_attribute_names(self) -> None:
        with pytest.raises(ValueFormatError, match="invalid attribute name"):
            custom("x-note", attributes={"not ok": "1"})
        with pytest.raises(ValueFormatError, match="duplicate attribute"):
            custom("x-note", attributes=[("a", "1"), ("a", "2")])

    def test_holds_anything_but_speak(self) -> None:
        node = custom("x-note", [paragraph([sentence(["a"])]), breaks("weak")])
        assert len(node.children) == 2
        with pytest.raises(ShapeError):
            node.append(speak())

    def test_placement_follows_parent(self) -> None:
        with pytest.raises(ShapeError):
            Phoneme(ph="x", children=[custom("x-note")])
        sentence([custom("x-note", ["ok"])])
