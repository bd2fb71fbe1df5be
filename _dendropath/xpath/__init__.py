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
*dendropath* implements the expression language of the `XPath 1.0 specs`_: location
paths over all thirteen axes with node tests and predicates, filter expressions,
variables, the boolean, relational and arithmetic operators and the complete core
function library. CSS selectors are converted to XPath expressions with a third-party
library before evaluation.

These are the deliberate deviations from the standard:

- The default namespace can be addressed in element name tests by using no prefix. It
  is declared with the key ``""`` (or :obj:`None`) in the namespaces mapping.
- When the option ``strict_namespaces`` is disabled, prefixes that aren't declared in
  the namespaces mapping are resolved against the namespace declarations that are in
  scope of the tested nodes.
- A tree that has no :class:`_dendropath.nodes.DocumentNode` as top node behaves as if
  it had one.

See :meth:`_dendropath.plugins.PluginManager.register_xpath_function` regarding the use
of custom functions.

.. _XPath 1.0 specs: https://www.w3.org/TR/1999/REC-xpath-19991116/
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Optional

from cssselect import GenericTranslator

from _dendropath.names import Namespaces
from _dendropath.xpath import functions  # noqa: F401
from _dendropath.xpath.evaluator import (
    DEFAULT_OPTIONS,
    EvaluationContext,
    QueryOptions,
    evaluate as _evaluate,
    normalize_variables,
    to_boolean,
    to_number,
    to_string,
)
from _dendropath.xpath.nodeset import NodeSet
from _dendropath.xpath.parser import parse


if TYPE_CHECKING:
    from collections.abc import Sequence

    from _dendropath.nodes import NodeBase
    from _dendropath.typing import NamespaceDeclarations, VariableBindings, XPathValue


_css_translator = GenericTranslator()


def css_to_xpath(expression: str) -> str:
    """
    Translates a CSS selector into an equivalent XPath expression that selects
    descendants of the context nodes.
    """
    return _css_translator.css_to_xpath(expression, prefix="descendant::")


def evaluate(
    nodes: Sequence[NodeBase],
    expression: str,
    namespaces: Optional[NamespaceDeclarations] = None,
    variables: Optional[VariableBindings] = None,
    options: Optional[QueryOptions] = None,
) -> XPathValue:
    """
    Parses and evaluates an expression with the given context nodes. The expression
    is parsed anew with each call.
    """
    # global namespaces are guaranteed by the Namespaces implementation
    if namespaces is None:
        _namespaces = Namespaces()
    elif isinstance(namespaces, Mapping):
        _namespaces = Namespaces(namespaces)
    else:
        raise TypeError("The namespaces must be given as mapping.")

    if variables is None:
        _variables = {}
    elif isinstance(variables, Mapping):
        _variables = normalize_variables(variables)
    else:
        raise TypeError("The variables must be given as mapping.")

    if options is None:
        options = DEFAULT_OPTIONS
    elif not isinstance(options, QueryOptions):
        raise TypeError("The options must be given as QueryOptions instance.")

    return _evaluate(
        parse(expression),
        nodes=nodes,
        namespaces=_namespaces,
        variables=_variables,
        options=options,
    )


__all__ = (
    css_to_xpath.__name__,
    evaluate.__name__,
    parse.__name__,
    to_boolean.__name__,
    to_number.__name__,
    to_string.__name__,
    EvaluationContext.__name__,
    NodeSet.__name__,
    QueryOptions.__name__,
)
