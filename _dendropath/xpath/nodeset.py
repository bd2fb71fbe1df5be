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

from collections.abc import Collection, Sequence
from typing import TYPE_CHECKING, Optional

from _dendropath.utils import _sort_nodes_in_document_order


if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from typing import Final

    from _dendropath.nodes import NodeBase
    from _dendropath.typing import Filter


class NodeSet(Sequence):
    """
    A sequence of unique nodes in document order, the value of a path expression.
    Nodes are compared by identity.
    """

    __slots__ = ("__items",)

    def __init__(self, nodes: Iterable[NodeBase] = ()):
        # the given nodes are expected to be unique and in document order already
        self.__items: Final[tuple[NodeBase, ...]] = tuple(nodes)

    @classmethod
    def from_nodes(cls, nodes: Iterable[NodeBase]) -> NodeSet:
        """Creates a node-set from arbitrary nodes."""
        return cls(_sort_nodes_in_document_order(nodes))

    def __contains__(self, item) -> bool:
        return any(item is x for x in self.__items)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Collection) or isinstance(other, str):
            return NotImplemented
        return len(self) == len(other) and all(
            a is b for a, b in zip(self.__items, other)
        )

    __hash__ = None  # type: ignore

    def __getitem__(self, item):
        if isinstance(item, slice):
            return self.__class__(self.__items[item])
        return self.__items[item]

    def __iter__(self) -> Iterator[NodeBase]:
        return iter(self.__items)

    def __len__(self) -> int:
        return len(self.__items)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {list(self.__items)!r}>"

    def as_list(self) -> list[NodeBase]:
        """The contained nodes as a new :class:`list`."""
        return list(self.__items)

    @property
    def as_tuple(self) -> tuple[NodeBase, ...]:
        """The contained nodes as :class:`tuple`."""
        return self.__items

    def filtered_by(self, *filters: Filter) -> NodeSet:
        """
        Returns a new node-set with the nodes that all given filter functions return a
        truthy value for.
        """
        return self.__class__(
            n for n in self.__items if all(f(n) for f in filters)
        )

    @property
    def first(self) -> Optional[NodeBase]:
        """The first node in document order, :obj:`None` if the set is empty."""
        return self.__items[0] if self.__items else None

    @property
    def last(self) -> Optional[NodeBase]:
        """The last node in document order, :obj:`None` if the set is empty."""
        return self.__items[-1] if self.__items else None

    @property
    def size(self) -> int:
        return len(self.__items)

    @property
    def string_values(self) -> tuple[str, ...]:
        return tuple(n.string_value for n in self.__items)


__all__ = (NodeSet.__name__,)
