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

import re
from functools import partial
from typing import TYPE_CHECKING, Any, Final, Optional

from _dendropath.grammar import whitespace_characters

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from _dendropath.nodes import NodeBase


_crunch_whitespace: Final = partial(
    re.compile(f"[{whitespace_characters}]+").sub, " "
)


def _unique_nodes(nodes: Iterable[NodeBase]) -> Iterator[NodeBase]:
    yielded_nodes: set[int] = set()
    for node in nodes:
        _id = id(node)
        if _id not in yielded_nodes:
            yielded_nodes.add(_id)
            yield node


def _sort_nodes_in_document_order(nodes: Iterable[NodeBase]) -> list[NodeBase]:
    """
    Returns the given nodes without duplicates, which are determined by identity, in
    document order.
    """
    unique_nodes = list(_unique_nodes(nodes))
    if len(unique_nodes) < 2:
        return unique_nodes
    locations: dict[int, tuple[int, int]] = {}
    return sorted(unique_nodes, key=lambda n: n._document_order_key(locations))


def first(iterable: Iterable) -> Optional[Any]:
    """
    Returns the first item of the given :term:`iterable` or :obj:`None` if it's empty.
    Note that the first item is consumed when the argument is an iterator.
    """
    return next(iter(iterable), None)


__all__ = (first.__name__,)
