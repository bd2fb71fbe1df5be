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
The thirteen axes of XPath 1.0. Each axis is a generator function that takes a
context node and the evaluation's :class:`TreeRoots` and yields the nodes on the
axis in axis order, that is in reverse document order for the reverse axes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, NamedTuple, Optional

from _dendropath.nodes import (
    AttributeNode,
    DocumentNode,
    ElementNode,
    NamespaceNode,
    NodeBase,
)


if TYPE_CHECKING:
    from typing import Final


# root nodes


class DetachedTreeRoot(NodeBase):
    """
    Stands in for the root node of a tree whose top node isn't a
    :class:`_dendropath.nodes.DocumentNode`. The top node doesn't refer to it as its
    parent, it is only reachable through :class:`TreeRoots`.
    """

    __slots__ = ("__top",)

    def __init__(self, top: NodeBase):
        super().__init__()
        self.__top: Final = top

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.__top!r}) [{hex(id(self))}]>"

    @property
    def _child_nodes(self) -> tuple[NodeBase, ...]:
        return (self.__top,)

    def _document_order_key(
        self, locations: dict[int, tuple[int, int]]
    ) -> tuple[int, ...]:
        return id(self.__top), -1

    @property
    def string_value(self) -> str:
        return self.__top.string_value


def is_root_node(node: NodeBase) -> bool:
    return isinstance(node, (DetachedTreeRoot, DocumentNode))


class TreeRoots:
    """
    Provides the root nodes of trees. A :class:`DetachedTreeRoot` is created once per
    instance and tree so that its identity is stable during an evaluation.
    """

    __slots__ = ("__detached",)

    def __init__(self):
        self.__detached: dict[int, tuple[NodeBase, DetachedTreeRoot]] = {}

    def parent_of(self, node: NodeBase) -> Optional[NodeBase]:
        if (parent := node.parent) is not None:
            return parent
        if is_root_node(node):
            return None
        return self.__detached_root(node)

    def root_of(self, node: NodeBase) -> NodeBase:
        while (parent := node.parent) is not None:
            node = parent
        if is_root_node(node):
            return node
        return self.__detached_root(node)

    def __detached_root(self, top: NodeBase) -> DetachedTreeRoot:
        # the top node is kept in the value so that its id can't be reused
        if (entry := self.__detached.get(id(top))) is None:
            entry = self.__detached[id(top)] = (top, DetachedTreeRoot(top))
        return entry[1]


# axes


def ancestor(node: NodeBase, roots: TreeRoots) -> Iterator[NodeBase]:
    while (node := roots.parent_of(node)) is not None:  # type: ignore
        yield node


def ancestor_or_self(node: NodeBase, roots: TreeRoots) -> Iterator[NodeBase]:
    yield node
    yield from ancestor(node, roots)


def attribute(node: NodeBase, roots: TreeRoots) -> Iterator[NodeBase]:
    if isinstance(node, ElementNode):
        yield from node.attributes


def child(node: NodeBase, roots: TreeRoots) -> Iterator[NodeBase]:
    yield from node._child_nodes


def descendant(node: NodeBase, roots: TreeRoots) -> Iterator[NodeBase]:
    yield from node.iterate_descendants()


def descendant_or_self(node: NodeBase, roots: TreeRoots) -> Iterator[NodeBase]:
    yield node
    yield from node.iterate_descendants()


def following(node: NodeBase, roots: TreeRoots) -> Iterator[NodeBase]:
    if isinstance(node, (AttributeNode, NamespaceNode)):
        parent = node.parent
        assert parent is not None
        node = parent
        yield from node.iterate_descendants()

    current: Optional[NodeBase] = node
    while current is not None:
        for sibling in current.iterate_following_siblings():
            yield sibling
            yield from sibling.iterate_descendants()
        current = current.parent


def following_sibling(node: NodeBase, roots: TreeRoots) -> Iterator[NodeBase]:
    yield from node.iterate_following_siblings()


def namespace(node: NodeBase, roots: TreeRoots) -> Iterator[NodeBase]:
    if isinstance(node, ElementNode):
        yield from node.namespace_nodes


def parent(node: NodeBase, roots: TreeRoots) -> Iterator[NodeBase]:
    if (result := roots.parent_of(node)) is not None:
        yield result


def preceding(node: NodeBase, roots: TreeRoots) -> Iterator[NodeBase]:
    if isinstance(node, (AttributeNode, NamespaceNode)):
        parent = node.parent
        assert parent is not None
        node = parent

    current: Optional[NodeBase] = node
    while current is not None:
        for sibling in current.iterate_preceding_siblings():
            yield from sibling._iterate_reversed_descendants_or_self()
        current = current.parent


def preceding_sibling(node: NodeBase, roots: TreeRoots) -> Iterator[NodeBase]:
    yield from node.iterate_preceding_siblings()


def self_(node: NodeBase, roots: TreeRoots) -> Iterator[NodeBase]:
    yield node


#


class Axis(NamedTuple):
    generator: Callable[[NodeBase, TreeRoots], Iterator[NodeBase]]
    reverse: bool
    principal_node_type: type[NodeBase]


AXES: Final = {
    "ancestor": Axis(ancestor, True, ElementNode),
    "ancestor-or-self": Axis(ancestor_or_self, True, ElementNode),
    "attribute": Axis(attribute, False, AttributeNode),
    "child": Axis(child, False, ElementNode),
    "descendant": Axis(descendant, False, ElementNode),
    "descendant-or-self": Axis(descendant_or_self, False, ElementNode),
    "following": Axis(following, False, ElementNode),
    "following-sibling": Axis(following_sibling, False, ElementNode),
    "namespace": Axis(namespace, False, NamespaceNode),
    "parent": Axis(parent, True, ElementNode),
    "preceding": Axis(preceding, True, ElementNode),
    "preceding-sibling": Axis(preceding_sibling, True, ElementNode),
    "self": Axis(self_, False, ElementNode),
}


__all__ = (
    "AXES",
    Axis.__name__,
    DetachedTreeRoot.__name__,
    TreeRoots.__name__,
    is_root_node.__name__,
)
