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

"""The core function library of XPath 1.0."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, Optional

from _dendropath.grammar import whitespace_characters
from _dendropath.names import XML_NAMESPACE
from _dendropath.nodes import AttributeNode, ElementNode, NodeBase
from _dendropath.plugins import plugin_manager
from _dendropath.utils import _crunch_whitespace
from _dendropath.xpath.evaluator import to_boolean, to_number, to_string
from _dendropath.xpath.nodeset import NodeSet

if TYPE_CHECKING:
    from _dendropath.xpath.evaluator import EvaluationContext


def _context_node_or_first(
    context: EvaluationContext, nodes: Optional[NodeSet]
) -> Optional[NodeBase]:
    if nodes is None:
        return context.node
    return nodes.first


def xpath_round(value: float) -> float:
    """Rounds half up, negative values that are rounded to zero become ``-0``."""
    if math.isnan(value) or math.isinf(value) or abs(value) >= 2**52:
        # such floats have no fractional part
        return value
    if -0.5 <= value < 0 or (value == 0 and math.copysign(1.0, value) < 0):
        return -0.0
    return float(math.floor(value + 0.5))


# node-set functions


@plugin_manager.register_xpath_function
def last(context: EvaluationContext) -> float:
    return float(context.size)


@plugin_manager.register_xpath_function
def position(context: EvaluationContext) -> float:
    return float(context.position)


@plugin_manager.register_xpath_function
def count(_: EvaluationContext, nodes: NodeSet) -> float:
    return float(len(nodes))


@plugin_manager.register_xpath_function("id")
def _id(context: EvaluationContext, value: Any) -> NodeSet:
    """
    Selects the elements whose ``xml:id`` or ``id`` attribute matches one of the
    whitespace separated tokens of the argument.
    """
    if isinstance(value, NodeSet):
        tokens = {t for n in value for t in n.string_value.split()}
    else:
        tokens = set(to_string(value).split())
    if not tokens:
        return NodeSet()

    root = context.tree_roots.root_of(context.node)
    result = []
    for node in root.iterate_descendants():
        if not isinstance(node, ElementNode):
            continue
        attribute = node.get_attribute("id", XML_NAMESPACE)
        if attribute is None:
            attribute = node.get_attribute("id")
        if attribute is not None and attribute.value in tokens:
            result.append(node)
    return NodeSet(result)


@plugin_manager.register_xpath_function("local-name")
def local_name(context: EvaluationContext, nodes: Optional[NodeSet] = None) -> str:
    if (node := _context_node_or_first(context, nodes)) is None:
        return ""
    return node.local_name


@plugin_manager.register_xpath_function("namespace-uri")
def namespace_uri(context: EvaluationContext, nodes: Optional[NodeSet] = None) -> str:
    if (node := _context_node_or_first(context, nodes)) is None:
        return ""
    return node.namespace or ""


@plugin_manager.register_xpath_function
def name(context: EvaluationContext, nodes: Optional[NodeSet] = None) -> str:
    if (node := _context_node_or_first(context, nodes)) is None:
        return ""
    return node.qualified_name


# string functions


@plugin_manager.register_xpath_function
def string(context: EvaluationContext, value: Any = None) -> str:
    if value is None:
        return context.node.string_value
    return to_string(value)


@plugin_manager.register_xpath_function
def concat(_: EvaluationContext, first: str, second: str, *strings: str) -> str:
    return "".join((first, second, *strings))


@plugin_manager.register_xpath_function("starts-with")
def starts_with(_: EvaluationContext, string: str, prefix: str) -> bool:
    return string.startswith(prefix)


@plugin_manager.register_xpath_function
def contains(_: EvaluationContext, string: str, substring: str) -> bool:
    return substring in string


@plugin_manager.register_xpath_function("substring-before")
def substring_before(_: EvaluationContext, string: str, separator: str) -> str:
    if (index := string.find(separator)) == -1:
        return ""
    return string[:index]


@plugin_manager.register_xpath_function("substring-after")
def substring_after(_: EvaluationContext, string: str, separator: str) -> str:
    if (index := string.find(separator)) == -1:
        return ""
    return string[index + len(separator) :]


@plugin_manager.register_xpath_function
def substring(
    _: EvaluationContext, string: str, start: float, length: Optional[float] = None
) -> str:
    """
    Characters are counted from ``1``, a character is included if its position ``p``
    satisfies ``round(start) <= p < round(start) + round(length)``.
    """
    begin = xpath_round(start)
    end = math.inf if length is None else begin + xpath_round(length)
    return "".join(
        c for p, c in enumerate(string, start=1) if begin <= p < end
    )


@plugin_manager.register_xpath_function("string-length")
def string_length(context: EvaluationContext, string: Optional[str] = None) -> float:
    if string is None:
        string = context.node.string_value
    return float(len(string))


@plugin_manager.register_xpath_function("normalize-space")
def normalize_space(context: EvaluationContext, string: Optional[str] = None) -> str:
    if string is None:
        string = context.node.string_value
    return _crunch_whitespace(string).strip(whitespace_characters)


@plugin_manager.register_xpath_function
def translate(
    _: EvaluationContext, string: str, characters: str, replacements: str
) -> str:
    table: dict[int, Optional[str]] = {}
    for index, character in enumerate(characters):
        # only the first occurrence of a character counts
        if (key := ord(character)) not in table:
            table[key] = replacements[index] if index < len(replacements) else None
    return string.translate(table)


# boolean functions


@plugin_manager.register_xpath_function
def boolean(_: EvaluationContext, value: Any = None) -> bool:
    if value is None:
        # the context node makes a non-empty node-set
        return True
    return to_boolean(value)


@plugin_manager.register_xpath_function("not")
def _not(_: EvaluationContext, value: bool) -> bool:
    return not value


@plugin_manager.register_xpath_function("true")
def _true(_: EvaluationContext) -> bool:
    return True


@plugin_manager.register_xpath_function("false")
def _false(_: EvaluationContext) -> bool:
    return False


@plugin_manager.register_xpath_function
def lang(context: EvaluationContext, language: str) -> bool:
    """
    Tests whether the language that is declared with ``xml:lang`` on the context node
    or its closest ancestor equals or is a sublanguage of the argument.
    """
    node: Optional[NodeBase] = context.node
    if isinstance(node, AttributeNode):
        node = node.parent

    while node is not None:
        if isinstance(node, ElementNode) and (
            (attribute := node.get_attribute("lang", XML_NAMESPACE)) is not None
        ):
            declared = attribute.value.lower()
            language = language.lower()
            return declared == language or declared.startswith(f"{language}-")
        node = node.parent

    return False


# number functions


@plugin_manager.register_xpath_function
def number(context: EvaluationContext, value: Any = None) -> float:
    if value is None:
        value = NodeSet((context.node,))
    return to_number(value)


@plugin_manager.register_xpath_function("sum")
def _sum(_: EvaluationContext, nodes: NodeSet) -> float:
    return sum((to_number(s) for s in nodes.string_values), 0.0)


@plugin_manager.register_xpath_function
def floor(_: EvaluationContext, value: float) -> float:
    if math.isnan(value) or math.isinf(value):
        return value
    return float(math.floor(value))


@plugin_manager.register_xpath_function
def ceiling(_: EvaluationContext, value: float) -> float:
    if math.isnan(value) or math.isinf(value):
        return value
    if -1 < value < 0:
        return -0.0
    return float(math.ceil(value))


@plugin_manager.register_xpath_function("round")
def _round(_: EvaluationContext, value: float) -> float:
    return xpath_round(value)


__all__ = (xpath_round.__name__,)
