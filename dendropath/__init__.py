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
Queries trees of nodes with XPath 1.0 expressions:

    >>> from dendropath import first, match, parse_tree
    >>> document = parse_tree("<shelf><book id='a'/><book id='b'/></shelf>")
    >>> match(document, "//book/@id").size
    2
    >>> first(document, "//book[last()]").get_attribute("id").value
    'b'
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Optional

from _dendropath.builder import BuilderOptions, from_lxml, parse_tree
from _dendropath.exceptions import (
    DendropathBaseException,
    FunctionArityError,
    UnboundNamespaceError,
    UnboundVariableError,
    UnknownFunctionError,
    XPathError,
    XPathEvaluationError,
    XPathSyntaxError,
    XPathTypeError,
)
from _dendropath.names import Namespaces
from _dendropath.nodes import (
    AttributeNode,
    CommentNode,
    DocumentNode,
    ElementNode,
    NamespaceNode,
    NodeBase,
    ProcessingInstructionNode,
    TextNode,
)
from _dendropath.plugins import plugin_manager
from _dendropath.utils import _unique_nodes
from _dendropath.xpath import (
    EvaluationContext,
    NodeSet,
    QueryOptions,
    css_to_xpath,
    evaluate as _evaluate,
    to_string,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from _dendropath.typing import (
        ContextNodes,
        NamespaceDeclarations,
        VariableBindings,
        XPathValue,
    )


# plugin loading


plugin_manager.load_plugins()


# api


def _context_nodes(node: ContextNodes) -> tuple[NodeBase, ...]:
    if isinstance(node, NodeBase):
        return (node,)

    if not isinstance(node, Iterable):
        raise TypeError("A node or an iterable of nodes is required as context.")

    result = tuple(_unique_nodes(node))
    if not result:
        raise ValueError("At least one context node is required.")
    for item in result:
        if not isinstance(item, NodeBase):
            raise TypeError(f"{item!r} is not a node.")
    return result


def evaluate(
    node: ContextNodes,
    expression: str,
    namespaces: Optional[NamespaceDeclarations] = None,
    variables: Optional[VariableBindings] = None,
    options: Optional[QueryOptions] = None,
) -> XPathValue:
    """
    Evaluates an expression and returns its value, which is either a
    :class:`NodeSet`, a :class:`str`, a :class:`float` or a :class:`bool`.

    :param node: The context node or an iterable of context nodes. Relative location
                 paths start from all of them.
    :param expression: An XPath 1.0 expression.
    :param namespaces: A mapping of prefixes to namespaces that are used in the
                       expression. A default namespace for element names can be
                       declared with the key ``""`` or :obj:`None`.
    :param variables: A mapping of variable names to values. Other values than
                      strings, booleans and numbers must be nodes or iterables of
                      nodes.
    :param options: See :class:`QueryOptions`.
    """
    if not isinstance(expression, str):
        raise TypeError("The expression must be a string.")
    return _evaluate(
        _context_nodes(node),
        expression,
        namespaces=namespaces,
        variables=variables,
        options=options,
    )


def evaluate_scalar(
    node: ContextNodes,
    expression: str,
    namespaces: Optional[NamespaceDeclarations] = None,
    variables: Optional[VariableBindings] = None,
    options: Optional[QueryOptions] = None,
) -> str | float | bool:
    """
    Like :func:`evaluate`, but a resulting node-set is converted to the string-value of
    its first node.
    """
    result = evaluate(node, expression, namespaces, variables, options)
    if isinstance(result, NodeSet):
        return to_string(result)
    return result


def match(
    node: ContextNodes,
    expression: str = "*",
    namespaces: Optional[NamespaceDeclarations] = None,
    variables: Optional[VariableBindings] = None,
    options: Optional[QueryOptions] = None,
) -> NodeSet:
    """
    Returns the nodes that an expression selects, see :func:`evaluate` regarding the
    arguments. An :exc:`XPathTypeError` is raised when the expression doesn't
    evaluate to a node-set, scalar values are returned by :func:`evaluate` and
    :func:`evaluate_scalar`.
    """
    result = evaluate(node, expression, namespaces, variables, options)
    if not isinstance(result, NodeSet):
        raise XPathTypeError(
            f"The expression `{expression}` evaluates to a "
            f"{type(result).__name__}, not to a node-set."
        )
    return result


def first(
    node: ContextNodes,
    expression: str = "*",
    namespaces: Optional[NamespaceDeclarations] = None,
    variables: Optional[VariableBindings] = None,
    options: Optional[QueryOptions] = None,
) -> Optional[NodeBase]:
    """
    Returns the first selected node in document order or :obj:`None`. Like
    :func:`match`, this requires the expression to select nodes. Expressions such as
    ``count(//a)`` raise an :exc:`XPathTypeError`, use :func:`evaluate_scalar` to
    obtain their value.
    """
    return match(node, expression, namespaces, variables, options).first


def each(
    node: ContextNodes,
    expression: str = "*",
    namespaces: Optional[NamespaceDeclarations] = None,
    variables: Optional[VariableBindings] = None,
    options: Optional[QueryOptions] = None,
) -> Iterator[NodeBase]:
    """
    Yields the selected nodes in document order. The expression is evaluated
    completely before the first node is yielded.
    """
    yield from match(node, expression, namespaces, variables, options)


def css_select(
    node: ContextNodes,
    selector: str,
    namespaces: Optional[NamespaceDeclarations] = None,
) -> NodeSet:
    """
    Returns the descendants of the context nodes that a CSS selector matches. Only
    what the translated XPath expression supports can be used.
    """
    return match(node, css_to_xpath(selector), namespaces)


__all__ = (
    # functions
    css_select.__name__,
    each.__name__,
    evaluate.__name__,
    evaluate_scalar.__name__,
    first.__name__,
    from_lxml.__name__,
    match.__name__,
    parse_tree.__name__,
    # classes
    AttributeNode.__name__,
    BuilderOptions.__name__,
    CommentNode.__name__,
    DocumentNode.__name__,
    ElementNode.__name__,
    EvaluationContext.__name__,
    NamespaceNode.__name__,
    Namespaces.__name__,
    NodeBase.__name__,
    NodeSet.__name__,
    ProcessingInstructionNode.__name__,
    QueryOptions.__name__,
    TextNode.__name__,
    # exceptions
    DendropathBaseException.__name__,
    FunctionArityError.__name__,
    UnboundNamespaceError.__name__,
    UnboundVariableError.__name__,
    UnknownFunctionError.__name__,
    XPathError.__name__,
    XPathEvaluationError.__name__,
    XPathSyntaxError.__name__,
    XPathTypeError.__name__,
    # objects
    "plugin_manager",
)
