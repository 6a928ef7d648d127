"""Custom exception hierarchy for the ssml_flavors package."""

from __future__ import annotations

from typing import Any


def format_path(path: tuple[int, ...]) -> str:
    """Render a node path (child indices from the root) as ``/0/2/1``."""
    if not path:
        return "/"
    return "/" + "/".join(str(i) for i in path)


class SSMLError(Exception):
    """Base exception for all ssml_flavors errors."""


class ShapeError(SSMLError):
    """Raised when a child is placed where no flavor could ever accept it."""


class ValueFormatError(SSMLError, ValueError):
    """Raised when a string or number cannot form a typed attribute value."""


class RangeError(SSMLError):
    """Raised by a capability rule when a value falls outside its domain."""

    def __init__(self, value: Any, domain: str) -> None:
        self.value = value
        self.domain = domain
        super().__init__(f"{value} is outside the accepted domain: {domain}")


class CapabilityTableError(SSMLError):
    """Raised when a capability table cannot be loaded or is malformed."""


class ValidationError(SSMLError):
    """Raised when a document is not legal for a flavor.

    ``path`` holds the child indices leading to the offending node; the
    empty tuple denotes the ``speak`` root.
    """

    def __init__(self, message: str, *, path: tuple[int, ...], flavor: str, element: str) -> None:
        self.path = path
        self.flavor = flavor
        self.element = element
        super().__init__(f"{message} (flavor {flavor}, at {format_path(path)})")


class UnsupportedElement(ValidationError):
    """The flavor does not support the element here (or at all)."""


class UnsupportedAttribute(ValidationError):
    """The flavor does not support an attribute set on an element."""

    def __init__(self, *, attribute: str, path: tuple[int, ...], flavor: str, element: str) -> None:
        self.attribute = attribute
        super().__init__(
            f"<{element}> attribute '{attribute}' is not supported",
            path=path,
            flavor=flavor,
            element=element,
        )


class AttributeOutOfRange(ValidationError):
    """An attribute value lies outside the flavor's accepted domain."""

    def __init__(
        self,
        *,
        attribute: str,
        value: Any,
        domain: str,
        path: tuple[int, ...],
        flavor: str,
        element: str,
    ) -> None:
        self.attribute = attribute
        self.value = value
        self.domain = domain
        super().__init__(
            f"<{element}> {attribute}={str(value)!r} is out of range; accepted: {domain}",
            path=path,
            flavor=flavor,
            element=element,
        )


class MissingAttribute(ValidationError):
    """The flavor requires an attribute the element does not set."""

    def __init__(self, *, attribute: str, path: tuple[int, ...], flavor: str, element: str) -> None:
        self.attribute = attribute
        super().__init__(
            f"<{element}> is missing required attribute '{attribute}'",
            path=path,
            flavor=flavor,
            element=element,
        )


class SerializeError(SSMLError):
    """Raised when serialization cannot produce markup.

    Wraps the :class:`ValidationError` from implicit validation in
    ``cause``, or reports a broken internal invariant (``cause`` is None).
    """

    def __init__(self, message: str, cause: ValidationError | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class SSMLParseError(SSMLError):
    """Raised when SSML markup cannot be read into a document."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        self.line = line
        self.column = column
        location = ""
        if line is not None:
            location = f" (line {line}"
            if column is not None:
                location += f", column {column}"
            location += ")"
        super().__init__(f"{message}{location}")
