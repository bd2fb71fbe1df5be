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

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeAlias, TypeVar

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from _dendropath.nodes import AttributeNode, NodeBase
    from _dendropath.xpath.evaluator import EvaluationContext
    from _dendropath.xpath.nodeset import NodeSet


# aliases


QualifiedName: TypeAlias = tuple["str | None", str]
AttributesSource: TypeAlias = (
    "Mapping[str | QualifiedName, str] | Iterable[AttributeNode | tuple[str, str]]"
)

GenericDecorated = TypeVar("GenericDecorated", bound=Callable[..., Any])
SecondOrderDecorator: TypeAlias = "Callable[[GenericDecorated], GenericDecorated]"

Filter: TypeAlias = "Callable[[NodeBase], bool]"
NamespaceDeclarations: TypeAlias = "Mapping[str | None, str]"
ContextNodes: TypeAlias = "NodeBase | Iterable[NodeBase]"

XPathValue: TypeAlias = "NodeSet | str | float | bool"
VariableBindings: TypeAlias = "Mapping[str, Any]"
XPathFunction: TypeAlias = "Callable[[EvaluationContext, *Any], Any]"


#


__all__ = (
    "AttributesSource",
    "ContextNodes",
    "Filter",
    "GenericDecorated",
    "NamespaceDeclarations",
    "QualifiedName",
    "SecondOrderDecorator",
    "VariableBindings",
    "XPathFunction",
    "XPathValue",
)
