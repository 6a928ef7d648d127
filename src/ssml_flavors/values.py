"""Typed values for constrained SSML attribute domains.

Every value is immutable, parses from its wire string with ``parse()``
and renders back with ``str()``.  Values also report a *form* -- the
shape a capability rule dispatches on:

  form        values
  ─────────   ─────────────────────────────────────────────
  keyword     any :class:`Keyword` enum member
  ms          TimeDesignation
  dB          Decibels
  %           Percent (absolute or relative)
  st          Semitones
  Hz          Hertz
  contour     ProsodyContour
  language    LanguageTag
  name        VoiceName
  uri         AudioSource
  number      plain int / float
  text        plain str

Numeric forms expose a magnitude that rules compare and replace (clamp).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, TypeAlias, Union
from urllib.parse import urlsplit

from .exceptions import ValueFormatError

_NUMBER = r"(?:\d+(?:\.\d*)?|\.\d+)"


def format_number(value: float) -> str:
    """Render a number without a trailing ``.0`` or exponent."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.4f}".rstrip("0").rstrip(".")


def _signed(value: float) -> str:
    sign = "-" if value < 0 else "+"
    return f"{sign}{format_number(abs(value))}"


def _check_finite(value: float, what: str) -> None:
    if not math.isfinite(value):
        raise ValueFormatError(f"{what} must be a finite number, got {value!r}")


# ---------------------------------------------------------------------------
# Keyword enums
# ---------------------------------------------------------------------------


class Keyword(str, Enum):
    """Base for enumerated attribute values; the member value is the wire token."""

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: str) -> Keyword:
        try:
            return cls(raw)
        except ValueError as exc:
            accepted = ", ".join(m.value for m in cls)
            raise ValueFormatError(f"{raw!r} is not a valid {cls.__name__} (expected one of: {accepted})") from exc


class BreakStrength(Keyword):
    NONE = "none"
    X_WEAK = "x-weak"
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"
    X_STRONG = "x-strong"


class EmphasisLevel(Keyword):
    REDUCED = "reduced"
    NONE = "none"
    MODERATE = "moderate"
    STRONG = "strong"


class PitchLevel(Keyword):
    X_LOW = "x-low"
    LOW = "low"
    MEDIUM = "medium"
    DEFAULT = "default"
    HIGH = "high"
    X_HIGH = "x-high"


class RateLevel(Keyword):
    X_SLOW = "x-slow"
    SLOW = "slow"
    MEDIUM = "medium"
    DEFAULT = "default"
    FAST = "fast"
    X_FAST = "x-fast"


class VolumeLevel(Keyword):
    SILENT = "silent"
    X_SOFT = "x-soft"
    SOFT = "soft"
    MEDIUM = "medium"
    DEFAULT = "default"
    LOUD = "loud"
    X_LOUD = "x-loud"


class VoiceGender(Keyword):
    NEUTRAL = "neutral"
    FEMALE = "female"
    MALE = "male"


class LangFailure(Keyword):
    CHANGE_VOICE = "changevoice"
    IGNORE_TEXT = "ignoretext"
    IGNORE_LANG = "ignorelang"
    PROCESSOR_CHOICE = "processorchoice"


class PhoneticAlphabet(Keyword):
    IPA = "ipa"
    X_SAMPA = "x-sampa"
    SAPI = "sapi"
    UPS = "ups"


class VoiceEffect(Keyword):
    """Azure playback-optimisation effects for a ``voice`` section."""

    AUTOMOBILE = "eq_car"
    TELECOM = "eq_telecomhp8k"


class VisemeType(Keyword):
    """Azure viseme delivery formats."""

    BY_ID = "redlips_front"
    FACIAL_EXPRESSION = "FacialExpression"


# ---------------------------------------------------------------------------
# Quantities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeDesignation:
    """A non-negative offset of time, held in milliseconds.

    Accepts ``"750ms"``, ``"1.5s"`` and ``"+2s"``; rejects negative
    values, other units (``"5m"``, ``"15sec"``) and embedded spaces.
    """

    millis: float
    form: ClassVar[str] = "ms"

    _RE: ClassVar[re.Pattern[str]] = re.compile(rf"^\+?({_NUMBER})(ms|s)$")

    def __post_init__(self) -> None:
        _check_finite(self.millis, "time designation")
        if self.millis < 0:
            raise ValueFormatError(f"time designations cannot be negative, got {self.millis}")

    @classmethod
    def parse(cls, raw: str) -> TimeDesignation:
        m = cls._RE.match(raw.strip())
        if m is None:
            raise ValueFormatError(f"{raw!r} is not a valid time designation (use e.g. 750ms or 1.5s)")
        value = float(m.group(1))
        return cls(value * 1000.0 if m.group(2) == "s" else value)

    @classmethod
    def from_seconds(cls, seconds: float) -> TimeDesignation:
        return cls(seconds * 1000.0)

    @property
    def magnitude(self) -> float:
        return self.millis

    def with_magnitude(self, value: float) -> TimeDesignation:
        return TimeDesignation(value)

    def __str__(self) -> str:
        return f"{format_number(self.millis)}ms"


@dataclass(frozen=True)
class Decibels:
    """A signed amplitude offset, e.g. ``"+6dB"`` or ``"-0.5dB"``."""

    value: float
    form: ClassVar[str] = "dB"

    _RE: ClassVar[re.Pattern[str]] = re.compile(rf"^([+-]?{_NUMBER})dB$")

    def __post_init__(self) -> None:
        _check_finite(self.value, "decibel value")

    @classmethod
    def parse(cls, raw: str) -> Decibels:
        m = cls._RE.match(raw.strip())
        if m is None:
            raise ValueFormatError(f"{raw!r} is not a valid decibel value (use e.g. +6dB)")
        return cls(float(m.group(1)))

    @property
    def magnitude(self) -> float:
        return self.value

    def with_magnitude(self, value: float) -> Decibels:
        return Decibels(value)

    def __str__(self) -> str:
        return f"{_signed(self.value)}dB"


@dataclass(frozen=True)
class Percent:
    """A percentage.

    Relative percentages carry a sign on the wire (``"+10%"``) and may be
    negative; absolute ones (``"150%"``) may not.
    """

    value: float
    relative: bool = False
    form: ClassVar[str] = "%"

    _RE: ClassVar[re.Pattern[str]] = re.compile(rf"^([+-])?({_NUMBER})%$")

    def __post_init__(self) -> None:
        _check_finite(self.value, "percentage")
        if not self.relative and self.value < 0:
            raise ValueFormatError(f"absolute percentages cannot be negative, got {self.value}")

    @classmethod
    def parse(cls, raw: str) -> Percent:
        m = cls._RE.match(raw.strip())
        if m is None:
            raise ValueFormatError(f"{raw!r} is not a valid percentage")
        sign, number = m.groups()
        value = float(number)
        if sign is None:
            return cls(value)
        return cls(-value if sign == "-" else value, relative=True)

    @property
    def magnitude(self) -> float:
        return self.value

    def with_magnitude(self, value: float) -> Percent:
        return Percent(value, relative=self.relative)

    def __str__(self) -> str:
        if self.relative:
            return f"{_signed(self.value)}%"
        return f"{format_number(self.value)}%"


@dataclass(frozen=True)
class Semitones:
    """A relative pitch change in semitones, e.g. ``"+2st"``."""

    value: float
    form: ClassVar[str] = "st"

    _RE: ClassVar[re.Pattern[str]] = re.compile(rf"^([+-]?{_NUMBER})st$")

    def __post_init__(self) -> None:
        _check_finite(self.value, "semitone value")

    @classmethod
    def parse(cls, raw: str) -> Semitones:
        m = cls._RE.match(raw.strip())
        if m is None:
            raise ValueFormatError(f"{raw!r} is not a valid semitone value (use e.g. +2st)")
        return cls(float(m.group(1)))

    @property
    def magnitude(self) -> float:
        return self.value

    def with_magnitude(self, value: float) -> Semitones:
        return Semitones(value)

    def __str__(self) -> str:
        return f"{_signed(self.value)}st"


@dataclass(frozen=True)
class Hertz:
    """A frequency: absolute (``"200Hz"``) or relative (``"+20Hz"``)."""

    value: float
    relative: bool = False
    form: ClassVar[str] = "Hz"

    _RE: ClassVar[re.Pattern[str]] = re.compile(rf"^([+-])?({_NUMBER})Hz$")

    def __post_init__(self) -> None:
        _check_finite(self.value, "frequency")
        if not self.relative and self.value < 0:
            raise ValueFormatError(f"absolute frequencies cannot be negative, got {self.value}")

    @classmethod
    def parse(cls, raw: str) -> Hertz:
        m = cls._RE.match(raw.strip())
        if m is None:
            raise ValueFormatError(f"{raw!r} is not a valid frequency (use e.g. 200Hz or +20Hz)")
        sign, number = m.groups()
        value = float(number)
        if sign is None:
            return cls(value)
        return cls(-value if sign == "-" else value, relative=True)

    @property
    def magnitude(self) -> float:
        return self.value

    def with_magnitude(self, value: float) -> Hertz:
        return Hertz(value, relative=self.relative)

    def __str__(self) -> str:
        if self.relative:
            return f"{_signed(self.value)}Hz"
        return f"{format_number(self.value)}Hz"


# ---------------------------------------------------------------------------
# Prosody descriptors
# ---------------------------------------------------------------------------

ProsodyPitch: TypeAlias = Union[PitchLevel, Percent, Semitones, Hertz]
ProsodyRate: TypeAlias = Union[RateLevel, Percent]
ProsodyVolume: TypeAlias = Union[VolumeLevel, Decibels, Percent]


def parse_pitch(raw: str) -> ProsodyPitch:
    """Parse a ``pitch`` / ``range`` wire value."""
    raw = raw.strip()
    if raw.endswith("%"):
        pct = Percent.parse(raw)
        if not pct.relative:
            raise ValueFormatError(f"pitch percentages must be signed (e.g. +10%), got {raw!r}")
        return pct
    if raw.endswith("st"):
        return Semitones.parse(raw)
    if raw.endswith("Hz"):
        return Hertz.parse(raw)
    return PitchLevel.parse(raw)  # type: ignore[return-value]


def parse_rate(raw: str) -> ProsodyRate:
    """Parse a ``rate`` wire value (keyword or non-negative percentage)."""
    raw = raw.strip()
    if raw.endswith("%"):
        pct = Percent.parse(raw)
        if pct.relative:
            raise ValueFormatError(f"rates are unsigned percentages (e.g. 150%), got {raw!r}")
        return pct
    return RateLevel.parse(raw)  # type: ignore[return-value]


def parse_volume(raw: str) -> ProsodyVolume:
    """Parse a ``volume`` wire value (keyword, dB offset or signed percentage)."""
    raw = raw.strip()
    if raw.endswith("dB"):
        return Decibels.parse(raw)
    if raw.endswith("%"):
        pct = Percent.parse(raw)
        if not pct.relative:
            raise ValueFormatError(f"volume percentages must be signed (e.g. +50%), got {raw!r}")
        return pct
    return VolumeLevel.parse(raw)  # type: ignore[return-value]


@dataclass(frozen=True)
class ProsodyContour:
    """Pitch targets at positions (0-100 %) through the span.

    Renders as ``"(0%,+20Hz) (50%,-2st)"``.
    """

    points: tuple[tuple[float, ProsodyPitch], ...] = ()
    form: ClassVar[str] = "contour"

    _POINT_RE: ClassVar[re.Pattern[str]] = re.compile(rf"\(\s*({_NUMBER})%\s*,\s*([^)]+?)\s*\)")

    def __post_init__(self) -> None:
        for position, _ in self.points:
            if not 0.0 <= position <= 100.0:
                raise ValueFormatError(f"contour positions must lie in [0, 100], got {position}")

    @classmethod
    def parse(cls, raw: str) -> ProsodyContour:
        points: list[tuple[float, ProsodyPitch]] = []
        consumed = 0
        for m in cls._POINT_RE.finditer(raw):
            if raw[consumed:m.start()].strip():
                raise ValueFormatError(f"{raw!r} is not a valid pitch contour")
            points.append((float(m.group(1)), parse_pitch(m.group(2))))
            consumed = m.end()
        if not points or raw[consumed:].strip():
            raise ValueFormatError(f"{raw!r} is not a valid pitch contour")
        return cls(tuple(points))

    def and_point(self, position: float, pitch: ProsodyPitch | str) -> ProsodyContour:
        """Return a copy with one more point appended."""
        if isinstance(pitch, str) and not isinstance(pitch, Keyword):
            pitch = parse_pitch(pitch)
        return ProsodyContour(self.points + ((position, pitch),))

    def __str__(self) -> str:
        return " ".join(f"({format_number(pos)}%,{pitch})" for pos, pitch in self.points)


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LanguageTag:
    """A BCP-47 shaped language tag such as ``en-US`` or ``zh-Hant-TW``."""

    tag: str
    form: ClassVar[str] = "language"

    _RE: ClassVar[re.Pattern[str]] = re.compile(r"^[A-Za-z]{2,8}(-[A-Za-z0-9]{1,8})*$")

    def __post_init__(self) -> None:
        if not self._RE.match(self.tag):
            raise ValueFormatError(f"{self.tag!r} is not a valid language tag")

    @classmethod
    def parse(cls, raw: str) -> LanguageTag:
        return cls(raw.strip())

    def __str__(self) -> str:
        return self.tag


@dataclass(frozen=True)
class VoiceName:
    """A synthesis voice name, e.g. ``en-US-JennyNeural``."""

    name: str
    form: ClassVar[str] = "name"

    def __post_init__(self) -> None:
        if not self.name or any(c.isspace() for c in self.name):
            raise ValueFormatError(f"voice names must be non-empty without whitespace, got {self.name!r}")

    @classmethod
    def parse(cls, raw: str) -> VoiceName:
        return cls(raw.strip())

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class AudioSource:
    """A reference to an audio resource (absolute URI or relative name)."""

    uri: str
    form: ClassVar[str] = "uri"

    def __post_init__(self) -> None:
        if not self.uri or any(c.isspace() for c in self.uri):
            raise ValueFormatError(f"audio sources must be non-empty without whitespace, got {self.uri!r}")

    @classmethod
    def parse(cls, raw: str) -> AudioSource:
        return cls(raw.strip())

    @property
    def scheme(self) -> str:
        return urlsplit(self.uri).scheme.lower()

    def __str__(self) -> str:
        return self.uri


# ---------------------------------------------------------------------------
# Form helpers used by capability rules
# ---------------------------------------------------------------------------


def value_form(value: Any) -> str:
    """Return the form name a capability rule dispatches on."""
    if isinstance(value, Keyword):
        return "keyword"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "text"
    return getattr(value, "form", "text")


def magnitude_of(value: Any) -> float | None:
    """Return the numeric magnitude of *value*, or None for non-numeric forms."""
    if isinstance(value, Keyword) or isinstance(value, str):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return getattr(value, "magnitude", None)


def with_magnitude(value: Any, magnitude: float) -> Any:
    """Return *value* with its magnitude replaced."""
    if isinstance(value, int):
        # Stay integral only when the fitted bound is integral.
        return int(magnitude) if float(magnitude).is_integer() else float(magnitude)
    if isinstance(value, float):
        return float(magnitude)
    return value.with_magnitude(magnitude)


def render_value(value: Any) -> str:
    """Render an attribute value to its wire string (unescaped)."""
    if isinstance(value, tuple):
        return " ".join(render_value(v) for v in value)
    if isinstance(value, Keyword):
        return value.value
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)
