"""Walk the nodes of a document.

:func:`walk` yields every node depth-first together with its path (the
same child-index tuples validation errors report).  :class:`Visitor`
dispatches on node class, ``ast.NodeVisitor`` style: ``visit_voice`` is
called for :class:`~ssml_flavors.models.Voice`, ``visit_say_as`` for
:class:`~ssml_flavors.models.SayAs` and so on.  Methods receive the live
nodes, so a visitor may also edit attributes in place::

    class VoiceNames(Visitor):
        def __init__(self) -> None:
            self.names = []

        def visit_voice(self, node):
            self.names.extend(str(n) for n in node.names or ())
            self.generic_visit(node)
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from functools import lru_cache
from typing import Any

from .models import Node

NodePath = tuple[int, ...]


def walk(node: Node, path: NodePath = ()) -> Iterator[tuple[NodePath, Node]]:
    """Yield ``(path, node)`` for *node* and all its descendants, in document order."""
    yield path, node
    for i, child in enumerate(getattr(node, "children", ())):
        yield from walk(child, path + (i,))


@lru_cache(maxsize=None)
def _method_name(cls: type) -> str:
    return "visit_" + re.sub(r"(?<!^)(?=[A-Z])", "_", cls.__name__).lower()


class Visitor:
    """Base class for document visitors.

    Override ``visit_<node>`` methods (``visit_document``, ``visit_text``,
    ``visit_break``, ``visit_custom``, ...).  Call :meth:`generic_visit`
    from an override to keep descending into children.
    """

    def visit(self, node: Node) -> Any:
        method = getattr(self, _method_name(type(node)), self.generic_visit)
        return method(node)

    def generic_visit(self, node: Node) -> None:
        # Iterate over a snapshot so visitors may append to the children.
        for child in list(getattr(node, "children", ())):
            self.visit(child)
