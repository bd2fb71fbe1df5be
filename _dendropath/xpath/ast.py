# Copyright (C) 2024-'26  The dendropath authors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
The classes of the abstract syntax tree that :func:`_dendropath.xpath.parser.parse`
produces. They carry no behaviour, the evaluator dispatches on their types. All
instances are immutable and compare structurally.
"""

from __future__ import annotations

from collections.abc import Iterable
from textwrap import indent
from typing import TYPE_CHECKING, Any, Optional


if TYPE_CHECKING:
    from typing import Final


def nested_repr(obj: Any) -> str:  # pragma: no cover
    result = f"{obj.__class__.__name__}(\n"
    for name, value in ((x, getattr(obj, x)) for x in obj.__slots__):
        result += f"  {name}="
        if isinstance(value, Iterable) and not isinstance(value, str):
            result += (
                "[\n" + "\n".join(indent(repr(x), "    ") for x in value) + "\n]\n"
            )
        else:
            result += f"{value!r}\n"
    result += ")"
    return result


# base classes


class Node:
    __slots__: tuple[str, ...] = ()

    def __eq__(self, other):
        return type(self) is type(other) and all(
            getattr(self, x) == getattr(other, x) for x in self.__slots__
        )

    def __hash__(self):
        return hash((type(self), *(getattr(self, x) for x in self.__slots__)))

    def __repr__(self):
        return (
            f"{self.__class__.__qualname__}("
            f"{', '.join(f'{x}={getattr(self, x)!r}' for x in self.__slots__)})"
        )

    def __setattr__(self, name: str, value: Any):
        if hasattr(self, name):
            raise AttributeError(f"{self.__class__.__name__} instances are immutable.")
        super().__setattr__(name, value)


class ExpressionNode(Node):
    """Base class of everything that evaluates to a value."""

    __slots__ = ()


class NodeTestNode(Node):
    __slots__ = ()


# expressions


class BinaryOperation(ExpressionNode):
    """
    One of the operators ``or``, ``and``, ``=``, ``!=``, ``<``, ``<=``, ``>``, ``>=``,
    ``+``, ``-``, ``*``, ``div`` and ``mod`` applied on two operands.
    """

    __slots__ = ("operator", "left", "right")

    def __init__(self, operator: str, left: ExpressionNode, right: ExpressionNode):
        self.operator: Final = operator
        self.left: Final = left
        self.right: Final = right


class FilterExpression(ExpressionNode):
    """A primary expression, e.g. ``(//a)`` or ``$nodes``, that is filtered."""

    __slots__ = ("primary", "predicates")

    def __init__(self, primary: ExpressionNode, predicates: Iterable[Predicate]):
        self.primary: Final = primary
        self.predicates: Final = tuple(predicates)


class FunctionCall(ExpressionNode):
    __slots__ = ("name", "arguments")

    def __init__(self, name: str, arguments: Iterable[ExpressionNode] = ()):
        self.name: Final = name
        self.arguments: Final = tuple(arguments)


class Literal(ExpressionNode):
    """A string or a number."""

    __slots__ = ("value",)

    def __init__(self, value: str | float):
        self.value: Final = value


class LocationPath(ExpressionNode):
    __slots__ = ("steps", "absolute")

    def __init__(self, steps: Iterable[Step], absolute: bool = False):
        self.steps: Final = tuple(steps)
        self.absolute: Final = absolute

    def __repr__(self):
        return nested_repr(self)


class PathExpression(ExpressionNode):
    """A relative location path that continues from a filter expression's nodes."""

    __slots__ = ("filter", "path")

    def __init__(self, filter: ExpressionNode, path: LocationPath):
        self.filter: Final = filter
        self.path: Final = path


class Predicate(Node):
    __slots__ = ("expression",)

    def __init__(self, expression: ExpressionNode):
        self.expression: Final = expression


class Step(Node):
    __slots__ = ("axis", "node_test", "predicates")

    def __init__(
        self,
        axis: str,
        node_test: NodeTestNode,
        predicates: Iterable[Predicate] = (),
    ):
        self.axis: Final = axis
        self.node_test: Final = node_test
        self.predicates: Final = tuple(predicates)


class UnaryMinus(ExpressionNode):
    __slots__ = ("operand",)

    def __init__(self, operand: ExpressionNode):
        self.operand: Final = operand


class Union(ExpressionNode):
    __slots__ = ("left", "right")

    def __init__(self, left: ExpressionNode, right: ExpressionNode):
        self.left: Final = left
        self.right: Final = right


class VariableReference(ExpressionNode):
    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name: Final = name


class XPathExpression(Node):
    """The root of a parsed expression, it holds the source text for reference."""

    __slots__ = ("root", "source")

    def __init__(self, root: ExpressionNode, source: str):
        self.root: Final = root
        self.source: Final = source

    def __repr__(self):
        return nested_repr(self)


# node tests


class AnyNameTest(NodeTestNode):
    """Matches ``*`` or ``prefix:*``."""

    __slots__ = ("prefix",)

    def __init__(self, prefix: Optional[str] = None):
        self.prefix: Final = prefix


class NameTest(NodeTestNode):
    __slots__ = ("prefix", "local_name")

    def __init__(self, prefix: Optional[str], local_name: str):
        self.prefix: Final = prefix
        self.local_name: Final = local_name


class NodeTypeTest(NodeTestNode):
    """One of ``node()``, ``text()`` and ``comment()``."""

    __slots__ = ("type_name",)

    def __init__(self, type_name: str):
        self.type_name: Final = type_name


class ProcessingInstructionTest(NodeTestNode):
    __slots__ = ("target",)

    def __init__(self, target: Optional[str] = None):
        self.target: Final = target


__all__ = (
    AnyNameTest.__name__,
    BinaryOperation.__name__,
    ExpressionNode.__name__,
    FilterExpression.__name__,
    FunctionCall.__name__,
    Literal.__name__,
    LocationPath.__name__,
    NameTest.__name__,
    NodeTestNode.__name__,
    NodeTypeTest.__name__,
    PathExpression.__name__,
    Predicate.__name__,
    ProcessingInstructionTest.__name__,
    Step.__name__,
    UnaryMinus.__name__,
    Union.__name__,
    VariableReference.__name__,
    XPathExpression.__name__,
)
