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
Evaluation of syntax trees against nodes and the conversions between the four value
types of XPath 1.0: node-sets (:class:`_dendropath.xpath.NodeSet`), strings
(:class:`str`), numbers (:class:`float`) and booleans (:class:`bool`).
"""

from __future__ import annotations

import math
import operator
from collections.abc import Iterable, Mapping
from decimal import Decimal
from itertools import chain
from typing import TYPE_CHECKING, Any, NamedTuple

from _dendropath.exceptions import (
    InvalidCodePath,
    UnboundNamespaceError,
    UnboundVariableError,
    XPathTypeError,
)
from _dendropath.grammar import _match_xpath_number
from _dendropath.nodes import (
    AttributeNode,
    CommentNode,
    ElementNode,
    NodeBase,
    ProcessingInstructionNode,
    TextNode,
)
from _dendropath.plugins import plugin_manager
from _dendropath.utils import _sort_nodes_in_document_order
from _dendropath.xpath.ast import (
    AnyNameTest,
    BinaryOperation,
    FilterExpression,
    FunctionCall,
    Literal,
    LocationPath,
    NameTest,
    NodeTypeTest,
    PathExpression,
    ProcessingInstructionTest,
    Step,
    UnaryMinus,
    Union,
    VariableReference,
)
from _dendropath.xpath.axes import AXES, TreeRoots
from _dendropath.xpath.nodeset import NodeSet


if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Final

    from _dendropath.names import Namespaces
    from _dendropath.typing import VariableBindings, XPathValue
    from _dendropath.xpath.ast import (
        ExpressionNode,
        NodeTestNode,
        Predicate,
        XPathExpression,
    )


COMPARISON_OPERATORS: Final = {
    "=": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}
MIRRORED_OPERATORS: Final = {
    "=": "=",
    "!=": "!=",
    "<": ">",
    "<=": ">=",
    ">": "<",
    ">=": "<=",
}


# options & context


class QueryOptions(NamedTuple):
    """
    The configuration of an evaluation.

    :param strict_namespaces: Whether a namespace prefix that isn't bound in the
                              namespaces mapping raises an
                              :exc:`_dendropath.exceptions.UnboundNamespaceError`.
                              Otherwise the prefix is looked up in the in-scope
                              namespaces of the node that is tested.
    """

    strict_namespaces: bool = True


DEFAULT_OPTIONS: Final = QueryOptions()


class EvaluationContext(NamedTuple):
    """
    Instances of this class are passed to XPath functions as first argument.
    """

    node: NodeBase
    """ The node that is currently evaluated. """
    position: int
    """
    The proximity position of the :attr:`node` within the evaluated node-set, starting
    at ``1``.
    """
    size: int
    """ The number of nodes in the evaluated node-set. """
    namespaces: Namespaces
    """ A mapping of prefixes to namespaces that is used in the expression. """
    variables: Mapping[str, XPathValue]
    """ The bound variables. """
    tree_roots: TreeRoots
    """ Provides the root nodes of the involved trees. """
    options: QueryOptions = DEFAULT_OPTIONS


# conversions


def number_to_string(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == int(value):
        # this also turns negative zero into "0"
        return str(int(value))
    return format(Decimal(repr(value)), "f")


def string_to_number(value: str) -> float:
    if (match := _match_xpath_number(value)) is None:
        return math.nan
    return float(match.group(1))


def to_boolean(value: XPathValue) -> bool:
    match value:
        case bool():
            return value
        case float():
            return not (value == 0 or math.isnan(value))
        case str() | NodeSet():
            return len(value) > 0
    raise InvalidCodePath


def to_number(value: XPathValue) -> float:
    match value:
        case bool():
            return 1.0 if value else 0.0
        case float():
            return value
        case str():
            return string_to_number(value)
        case NodeSet():
            return string_to_number(to_string(value))
    raise InvalidCodePath


def to_string(value: XPathValue) -> str:
    match value:
        case bool():
            return "true" if value else "false"
        case float():
            return number_to_string(value)
        case str():
            return value
        case NodeSet():
            if (node := value.first) is None:
                return ""
            return node.string_value
    raise InvalidCodePath


def to_xpath_value(value: Any) -> XPathValue:
    """
    Converts the values that are bound to variables or returned by functions to one of
    the four value types.
    """
    match value:
        case bool() | float() | str() | NodeSet():
            return value
        case int():
            return float(value)
        case NodeBase():
            return NodeSet((value,))
        case Iterable():
            nodes = list(value)
            if not all(isinstance(n, NodeBase) for n in nodes):
                raise TypeError(
                    "Only nodes can be contained in a node-set, got "
                    f"{[n for n in nodes if not isinstance(n, NodeBase)]!r}."
                )
            return NodeSet.from_nodes(nodes)
    raise TypeError(f"{value!r} can't be used as XPath value.")


def normalize_variables(variables: VariableBindings) -> dict[str, XPathValue]:
    return {name: to_xpath_value(value) for name, value in variables.items()}


CONVERTERS: Final = {
    "boolean": to_boolean,
    "number": to_number,
    "string": to_string,
}


# comparisons & arithmetics


def compare(operator_symbol: str, left: XPathValue, right: XPathValue) -> bool:
    """Compares two values as described in section 3.4 of the XPath 1.0 specs."""
    left_is_node_set = isinstance(left, NodeSet)
    right_is_node_set = isinstance(right, NodeSet)

    if left_is_node_set and right_is_node_set:
        assert isinstance(left, NodeSet) and isinstance(right, NodeSet)
        return _compare_node_sets(operator_symbol, left, right)
    if left_is_node_set:
        assert isinstance(left, NodeSet)
        return _compare_node_set_with_value(operator_symbol, left, right)
    if right_is_node_set:
        assert isinstance(right, NodeSet)
        return _compare_node_set_with_value(
            MIRRORED_OPERATORS[operator_symbol], right, left
        )
    return _compare_values(operator_symbol, left, right)


def _compare_node_sets(operator_symbol: str, left: NodeSet, right: NodeSet) -> bool:
    if not left or not right:
        return False

    if operator_symbol == "=":
        return not set(left.string_values).isdisjoint(right.string_values)

    if operator_symbol == "!=":
        right_values = set(right.string_values)
        return any(
            len(right_values - {x}) > 0 for x in set(left.string_values)
        )

    _operator = COMPARISON_OPERATORS[operator_symbol]
    right_numbers = [string_to_number(x) for x in right.string_values]
    return any(
        _operator(string_to_number(x), y)
        for x in left.string_values
        for y in right_numbers
    )


def _compare_node_set_with_value(
    operator_symbol: str, node_set: NodeSet, value: XPathValue
) -> bool:
    _operator = COMPARISON_OPERATORS[operator_symbol]

    match value:
        case bool():
            return _compare_values(operator_symbol, to_boolean(node_set), value)
        case float():
            return any(
                _operator(string_to_number(x), value) for x in node_set.string_values
            )
        case str():
            if operator_symbol in ("=", "!="):
                return any(_operator(x, value) for x in node_set.string_values)
            number = string_to_number(value)
            return any(
                _operator(string_to_number(x), number)
                for x in node_set.string_values
            )
    raise InvalidCodePath


def _compare_values(operator_symbol: str, left: XPathValue, right: XPathValue) -> bool:
    _operator = COMPARISON_OPERATORS[operator_symbol]

    if operator_symbol in ("=", "!="):
        if isinstance(left, bool) or isinstance(right, bool):
            return _operator(to_boolean(left), to_boolean(right))
        if isinstance(left, float) or isinstance(right, float):
            return _operator(to_number(left), to_number(right))
        return _operator(to_string(left), to_string(right))

    return _operator(to_number(left), to_number(right))


def divide(dividend: float, divisor: float) -> float:
    try:
        return dividend / divisor
    except ZeroDivisionError:
        if dividend == 0 or math.isnan(dividend):
            return math.nan
        return math.copysign(math.inf, dividend) * math.copysign(1.0, divisor)


def modulo(dividend: float, divisor: float) -> float:
    # the result has the sign of the dividend as with the % operator in Java
    try:
        return math.fmod(dividend, divisor)
    except ValueError:
        return math.nan


ARITHMETIC_OPERATORS: Final = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "div": divide,
    "mod": modulo,
}


# evaluation


def evaluate(
    expression: XPathExpression,
    nodes: Sequence[NodeBase],
    namespaces: Namespaces,
    variables: Mapping[str, XPathValue],
    options: QueryOptions = DEFAULT_OPTIONS,
) -> XPathValue:
    """
    Evaluates a parsed expression. Relative location paths that aren't part of a
    predicate start from all given context ``nodes``, the first one is the context node
    for everything else.
    """
    assert nodes
    context = EvaluationContext(
        node=nodes[0],
        position=1,
        size=1,
        namespaces=namespaces,
        variables=variables,
        options=options,
        tree_roots=TreeRoots(),
    )
    return _evaluate(expression.root, context, nodes)


def _evaluate(  # noqa: C901
    node: ExpressionNode, context: EvaluationContext, nodes: Sequence[NodeBase]
) -> XPathValue:
    match node:
        case LocationPath():
            return NodeSet(_evaluate_location_path(node, context, nodes))

        case BinaryOperation(operator="or"):
            return to_boolean(_evaluate(node.left, context, nodes)) or to_boolean(
                _evaluate(node.right, context, nodes)
            )

        case BinaryOperation(operator="and"):
            return to_boolean(_evaluate(node.left, context, nodes)) and to_boolean(
                _evaluate(node.right, context, nodes)
            )

        case BinaryOperation(operator=operator_symbol) if (
            operator_symbol in COMPARISON_OPERATORS
        ):
            return compare(
                operator_symbol,
                _evaluate(node.left, context, nodes),
                _evaluate(node.right, context, nodes),
            )

        case BinaryOperation(operator=operator_symbol):
            return ARITHMETIC_OPERATORS[operator_symbol](
                to_number(_evaluate(node.left, context, nodes)),
                to_number(_evaluate(node.right, context, nodes)),
            )

        case UnaryMinus():
            return -to_number(_evaluate(node.operand, context, nodes))

        case Literal():
            return node.value

        case VariableReference():
            try:
                return context.variables[node.name]
            except KeyError as e:
                raise UnboundVariableError(node.name) from e

        case FunctionCall():
            return _call_function(node, context, nodes)

        case Union():
            left = _evaluate(node.left, context, nodes)
            right = _evaluate(node.right, context, nodes)
            if not isinstance(left, NodeSet) or not isinstance(right, NodeSet):
                raise XPathTypeError("The operands of a union must be node-sets.")
            return NodeSet.from_nodes(chain(left, right))

        case FilterExpression():
            value = _evaluate(node.primary, context, nodes)
            if not isinstance(value, NodeSet):
                raise XPathTypeError("Only node-sets can be filtered by predicates.")
            return NodeSet(
                _apply_predicates(value.as_list(), node.predicates, context)
            )

        case PathExpression():
            value = _evaluate(node.filter, context, nodes)
            if not isinstance(value, NodeSet):
                raise XPathTypeError(
                    "A location path can only continue from a node-set."
                )
            return NodeSet(_evaluate_location_path(node.path, context, value))

    raise InvalidCodePath


def _call_function(
    call: FunctionCall, context: EvaluationContext, nodes: Sequence[NodeBase]
) -> XPathValue:
    signature = plugin_manager.get_xpath_function(call.name)
    signature.check_arity(call.name, len(call.arguments))

    arguments = []
    for index, argument in enumerate(call.arguments):
        value = _evaluate(argument, context, nodes)
        match signature.type_of_argument(index):
            case None:
                arguments.append(value)
            case "node-set":
                if not isinstance(value, NodeSet):
                    raise XPathTypeError(
                        f"Argument {index + 1} of the function `{call.name}` must be "
                        "a node-set."
                    )
                arguments.append(value)
            case type_name:
                arguments.append(CONVERTERS[type_name](value))

    return to_xpath_value(signature.function(context, *arguments))


# location paths


def _evaluate_location_path(
    path: LocationPath, context: EvaluationContext, nodes: Iterable[NodeBase]
) -> list[NodeBase]:
    result: list[NodeBase]
    if path.absolute:
        result = _sort_nodes_in_document_order(
            context.tree_roots.root_of(n) for n in nodes
        )
    else:
        result = list(nodes)

    for step in path.steps:
        result = _evaluate_step(step, context, result)

    return result


def _evaluate_step(
    step: Step, context: EvaluationContext, nodes: Iterable[NodeBase]
) -> list[NodeBase]:
    axis = AXES[step.axis]
    node_test = step.node_test

    if (
        context.options.strict_namespaces
        and (prefix := getattr(node_test, "prefix", None))
        and prefix not in context.namespaces
    ):
        raise UnboundNamespaceError(prefix)

    result: list[NodeBase] = []
    for node in nodes:
        candidates = [
            n
            for n in axis.generator(node, context.tree_roots)
            if _node_test_matches(node_test, n, axis.principal_node_type, context)
        ]
        if step.predicates:
            # the proximity positions follow the axis order
            candidates = _apply_predicates(candidates, step.predicates, context)
        result.extend(candidates)

    return _sort_nodes_in_document_order(result)


def _apply_predicates(
    nodes: list[NodeBase],
    predicates: Iterable[Predicate],
    context: EvaluationContext,
) -> list[NodeBase]:
    for predicate in predicates:
        size = len(nodes)
        nodes = [
            node
            for position, node in enumerate(nodes, start=1)
            if _predicate_is_satisfied(
                predicate,
                context._replace(node=node, position=position, size=size),
            )
        ]
    return nodes


def _predicate_is_satisfied(predicate: Predicate, context: EvaluationContext) -> bool:
    value = _evaluate(predicate.expression, context, (context.node,))
    if isinstance(value, float):
        return value == context.position
    return to_boolean(value)


# node tests


def _node_test_matches(
    node_test: NodeTestNode,
    node: NodeBase,
    principal_node_type: type[NodeBase],
    context: EvaluationContext,
) -> bool:
    match node_test:
        case NameTest():
            return (
                isinstance(node, principal_node_type)
                and node.local_name == node_test.local_name
                and _namespace_matches(node_test.prefix, node, context)
            )

        case AnyNameTest():
            if not isinstance(node, principal_node_type):
                return False
            if node_test.prefix is None:
                return True
            return _namespace_matches(node_test.prefix, node, context)

        case NodeTypeTest(type_name="node"):
            return True

        case NodeTypeTest(type_name="text"):
            return isinstance(node, TextNode)

        case NodeTypeTest(type_name="comment"):
            return isinstance(node, CommentNode)

        case ProcessingInstructionTest():
            return isinstance(node, ProcessingInstructionNode) and (
                node_test.target is None or node.target == node_test.target
            )

    raise InvalidCodePath


def _namespace_matches(
    prefix: str | None, node: NodeBase, context: EvaluationContext
) -> bool:
    namespaces = context.namespaces

    if prefix is None:
        # a default namespace only applies to element names
        if isinstance(node, ElementNode):
            return node.namespace == namespaces.default
        return node.namespace is None

    if prefix in namespaces:
        return node.namespace == namespaces[prefix]

    # only reached with lax namespace handling
    element = node.parent if isinstance(node, AttributeNode) else node
    if isinstance(element, ElementNode) and (
        (namespace := element.in_scope_namespaces.get(prefix)) is not None
    ):
        return node.namespace == namespace
    return False


__all__ = (
    EvaluationContext.__name__,
    QueryOptions.__name__,
    compare.__name__,
    evaluate.__name__,
    normalize_variables.__name__,
    number_to_string.__name__,
    string_to_number.__name__,
    to_boolean.__name__,
    to_number.__name__,
    to_string.__name__,
    to_xpath_value.__name__,
)
