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
The node model that path expressions are evaluated against. Trees are assembled
bottom-up by passing child nodes to their parent's constructor; afterwards they are
not supposed to be changed. A parent holds its children, the children refer back to
their parent with a weak reference only.
"""

from __future__ import annotations

import weakref
from collections.abc import Iterable, Iterator, Mapping
from functools import cached_property
from types import MappingProxyType
from typing import TYPE_CHECKING, Optional

from _dendropath.exceptions import InvalidOperation
from _dendropath.grammar import _is_ncname
from _dendropath.names import XML_NAMESPACE, deconstruct_clark_notation

if TYPE_CHECKING:
    from typing import Final

    from _dendropath.typing import AttributesSource


# order of a parent's dependent nodes, see NodeBase.document_order_key

_NAMESPACES_RANK: Final = 0
_ATTRIBUTES_RANK: Final = 1
_CHILDREN_RANK: Final = 2


def _validate_name(name: str, kind: str):
    if not isinstance(name, str) or not _is_ncname(name):
        raise ValueError(f"Invalid {kind}: {name!r}")


# base classes


class NodeBase:
    """The common interface of all node types."""

    __slots__ = ("__parent", "__weakref__")

    def __init__(self):
        self.__parent: Optional[weakref.ref[NodeBase]] = None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} [{hex(id(self))}]>"

    def _adopt(self, parent: NodeBase):
        if self.__parent is not None:
            raise InvalidOperation(
                f"{self!r} is already attached to a tree. Nodes can only be "
                "contained in one tree."
            )
        self.__parent = weakref.ref(parent)

    @property
    def _child_nodes(self) -> tuple[NodeBase, ...]:
        return ()

    @property
    def depth(self) -> int:
        """The number of ancestors."""
        result = 0
        node = self
        while (node := node.parent) is not None:  # type: ignore
            result += 1
        return result

    @property
    def document_order_key(self) -> tuple[int, ...]:
        """
        A value that sorts nodes of one tree in document order: a node comes before its
        namespace nodes, which come before its attributes, which come before its
        children. Nodes of different trees are ordered by the identity of their top
        nodes.
        """
        return self._document_order_key({})

    def _document_order_key(
        self, locations: dict[int, tuple[int, int]]
    ) -> tuple[int, ...]:
        # locations maps node ids to their rank and index, it can be shared among the
        # keys of nodes that are sorted together
        path: list[int] = []
        node: NodeBase = self
        while (parent := node.parent) is not None:
            if (location := locations.get(id(node))) is None:
                # all siblings of the same kind are indexed at once
                rank, siblings = node._siblings_in(parent)
                for index, sibling in enumerate(siblings):
                    locations[id(sibling)] = (rank, index)
                location = locations[id(node)]
            path.extend(reversed(location))
            node = parent
        # the zero leaves room for a synthetic root before the top node
        path.extend((0, id(node)))
        path.reverse()
        return tuple(path)

    def _siblings_in(self, parent: NodeBase) -> tuple[int, Iterable[NodeBase]]:
        return _CHILDREN_RANK, parent._child_nodes

    @property
    def index(self) -> Optional[int]:
        """The node's index among its parent's child nodes."""
        if (parent := self.parent) is None:
            return None
        return _index_by_identity(parent._child_nodes, self)

    def iterate_ancestors(self) -> Iterator[NodeBase]:
        """Yields the node's ancestors, beginning with the parent."""
        node: Optional[NodeBase] = self
        while (node := node.parent) is not None:  # type: ignore
            yield node

    def iterate_children(self) -> Iterator[NodeBase]:
        yield from self._child_nodes

    def iterate_descendants(self) -> Iterator[NodeBase]:
        """Yields all descendants in document order."""
        stack = [(self._child_nodes, 0)]

        while stack:
            siblings, pointer = stack.pop()

            for node in siblings[pointer:]:
                pointer += 1
                yield node

                if node._child_nodes:
                    stack.extend(((siblings, pointer), (node._child_nodes, 0)))
                    break

    def iterate_following_siblings(self) -> Iterator[NodeBase]:
        if (index := self.index) is None:
            return
        assert self.parent is not None
        yield from self.parent._child_nodes[index + 1 :]

    def iterate_preceding_siblings(self) -> Iterator[NodeBase]:
        """Yields the preceding siblings, beginning with the closest one."""
        if (index := self.index) is None:
            return
        assert self.parent is not None
        yield from reversed(self.parent._child_nodes[:index])

    def _iterate_reversed_descendants_or_self(self) -> Iterator[NodeBase]:
        if not self._child_nodes:
            yield self
            return

        stack = [(self, list(self._child_nodes))]

        while stack:
            parent, children = stack[-1]

            if children:
                node = children.pop()
                if node._child_nodes:
                    stack.append((node, list(node._child_nodes)))
                else:
                    yield node
            else:
                stack.pop()
                yield parent

    @property
    def local_name(self) -> str:
        """The local part of the node's expanded name, empty if it has none."""
        return ""

    @property
    def namespace(self) -> Optional[str]:
        """The namespace URI of the node's expanded name."""
        return None

    @property
    def parent(self) -> Optional[NodeBase]:
        if self.__parent is None:
            return None
        return self.__parent()

    @property
    def qualified_name(self) -> str:
        """
        The name as it would appear in serialized XML, ``prefix:local-name`` if the
        node was bound with a prefix.
        """
        return self.local_name

    @property
    def string_value(self) -> str:
        """The string-value as defined in section 5 of the XPath 1.0 specs."""
        raise NotImplementedError


class _ParentNode(NodeBase):
    __slots__ = ("__children",)

    def __init__(self, children: Iterable[NodeBase | str] = ()):
        super().__init__()
        nodes = []
        for child in children:
            if isinstance(child, str):
                child = TextNode(child)
            elif not isinstance(child, (ElementNode, _LeafNode)) or isinstance(
                child, (AttributeNode, NamespaceNode)
            ):
                raise TypeError(f"{child!r} can't be a child node.")
            child._adopt(self)
            nodes.append(child)
        self.__children: Final = tuple(nodes)

    def __len__(self) -> int:
        return len(self.__children)

    def __getitem__(self, index: int) -> NodeBase:
        return self.__children[index]

    @property
    def _child_nodes(self) -> tuple[NodeBase, ...]:
        return self.__children

    @property
    def string_value(self) -> str:
        return "".join(
            n.content for n in self.iterate_descendants() if isinstance(n, TextNode)
        )


class _LeafNode(NodeBase):
    __slots__ = ()

    def __len__(self) -> int:
        return 0


# node classes


class DocumentNode(_ParentNode):
    """
    Represents what is defined as "root node" in `section 5.1`_ of the XPath 1.0 specs.
    Its children are the root element and the comments and processing instructions
    around it.

    .. _section 5.1: https://www.w3.org/TR/1999/REC-xpath-19991116/#root-node
    """

    __slots__ = ()

    def _adopt(self, parent: NodeBase):
        raise InvalidOperation("A document node can't be attached to another node.")

    @property
    def root(self) -> Optional[ElementNode]:
        """The document's root element."""
        for node in self._child_nodes:
            if isinstance(node, ElementNode):
                return node
        return None


class ElementNode(_ParentNode):
    """
    Represents an element.

    :param local_name: The element's local name.
    :param namespace: The namespace URI, :obj:`None` for no namespace.
    :param attributes: Either :class:`AttributeNode` instances and / or pairs of names
                       and values, or a mapping of names to values. Names may be given
                       in Clark notation or as tuples of namespace and local name.
    :param children: Child nodes, strings are turned into :class:`TextNode`\\s.
    :param prefix: The prefix that the element's name was bound with.
    :param namespace_declarations: The prefixes that are declared on this element,
                                   ``""`` is used for a default namespace.
    """

    # __dict__ is used by the cached_property getter
    __slots__ = (
        "__attributes",
        "__local_name",
        "__namespace",
        "__namespace_declarations",
        "__prefix",
        "__dict__",
    )

    def __init__(
        self,
        local_name: str,
        namespace: Optional[str] = None,
        attributes: Optional[AttributesSource] = None,
        children: Iterable[NodeBase | str] = (),
        prefix: Optional[str] = None,
        namespace_declarations: Optional[Mapping[str, str]] = None,
    ):
        _validate_name(local_name, "local name")
        if prefix is not None:
            _validate_name(prefix, "prefix")
        super().__init__(children)

        self.__local_name: Final = local_name
        self.__namespace: Final = namespace or None
        self.__prefix: Final = prefix
        self.__namespace_declarations: Final = MappingProxyType(
            dict(namespace_declarations or {})
        )

        result = []
        for attribute in _normalize_attributes(attributes):
            attribute._adopt(self)
            result.append(attribute)
        self.__attributes: Final = tuple(result)

    def __repr__(self) -> str:
        if self.__namespace:
            name = f"{{{self.__namespace}}}{self.__local_name}"
        else:
            name = self.__local_name
        return f'<{self.__class__.__name__}("{name}") [{hex(id(self))}]>'

    @property
    def attributes(self) -> tuple[AttributeNode, ...]:
        return self.__attributes

    def get_attribute(
        self, local_name: str, namespace: Optional[str] = None
    ) -> Optional[AttributeNode]:
        namespace = namespace or None
        for attribute in self.__attributes:
            if (
                attribute.local_name == local_name
                and attribute.namespace == namespace
            ):
                return attribute
        return None

    @property
    def in_scope_namespaces(self) -> dict[str, str]:
        """
        All namespace declarations that are effective on this element, including the
        ones of its ancestors and the ``xml`` prefix. An undeclared default namespace
        (``xmlns=""``) removes the inherited one.
        """
        declarations: list[Mapping[str, str]] = []
        node: Optional[NodeBase] = self
        while isinstance(node, ElementNode):
            declarations.append(node.namespace_declarations)
            node = node.parent

        result = {"xml": XML_NAMESPACE}
        for declaration in reversed(declarations):
            result.update(declaration)
        if not result.get(""):
            result.pop("", None)
        return result

    @property
    def local_name(self) -> str:
        return self.__local_name

    @property
    def namespace(self) -> Optional[str]:
        return self.__namespace

    @property
    def namespace_declarations(self) -> Mapping[str, str]:
        return self.__namespace_declarations

    @cached_property
    def namespace_nodes(self) -> tuple[NamespaceNode, ...]:
        """
        The namespace nodes of the element, one per in-scope namespace. They're created
        once per element so that their identity is stable.
        """
        result = []
        for prefix, uri in sorted(self.in_scope_namespaces.items()):
            node = NamespaceNode(prefix, uri)
            node._adopt(self)
            result.append(node)
        return tuple(result)

    @property
    def prefix(self) -> Optional[str]:
        return self.__prefix

    @property
    def qualified_name(self) -> str:
        if self.__prefix:
            return f"{self.__prefix}:{self.__local_name}"
        return self.__local_name


class AttributeNode(_LeafNode):
    __slots__ = ("__local_name", "__namespace", "__prefix", "__value")

    def __init__(
        self,
        local_name: str,
        value: str,
        namespace: Optional[str] = None,
        prefix: Optional[str] = None,
    ):
        _validate_name(local_name, "attribute name")
        if not isinstance(value, str):
            raise TypeError("Attribute values must be strings.")
        super().__init__()
        if prefix is None and namespace == XML_NAMESPACE:
            prefix = "xml"
        self.__local_name: Final = local_name
        self.__namespace: Final = namespace or None
        self.__prefix: Final = prefix
        self.__value: Final = value

    def __repr__(self) -> str:
        return (
            f'<{self.__class__.__name__}({self.qualified_name}="{self.__value}") '
            f"[{hex(id(self))}]>"
        )

    def _siblings_in(self, parent: NodeBase) -> tuple[int, Iterable[NodeBase]]:
        assert isinstance(parent, ElementNode)
        return _ATTRIBUTES_RANK, parent.attributes

    @property
    def index(self) -> Optional[int]:
        return None

    @property
    def local_name(self) -> str:
        return self.__local_name

    @property
    def namespace(self) -> Optional[str]:
        return self.__namespace

    @property
    def prefix(self) -> Optional[str]:
        return self.__prefix

    @property
    def qualified_name(self) -> str:
        if self.__prefix:
            return f"{self.__prefix}:{self.__local_name}"
        return self.__local_name

    @property
    def string_value(self) -> str:
        return self.__value

    @property
    def value(self) -> str:
        return self.__value


class NamespaceNode(_LeafNode):
    """
    Namespace nodes are only instantiated by elements, see
    :attr:`ElementNode.namespace_nodes`.
    """

    __slots__ = ("__prefix", "__uri")

    def __init__(self, prefix: str, uri: str):
        super().__init__()
        self.__prefix: Final = prefix
        self.__uri: Final = uri

    def __repr__(self) -> str:
        return (
            f'<{self.__class__.__name__}("{self.__prefix}"="{self.__uri}") '
            f"[{hex(id(self))}]>"
        )

    def _siblings_in(self, parent: NodeBase) -> tuple[int, Iterable[NodeBase]]:
        assert isinstance(parent, ElementNode)
        return _NAMESPACES_RANK, parent.namespace_nodes

    @property
    def index(self) -> Optional[int]:
        return None

    @property
    def local_name(self) -> str:
        return self.__prefix

    @property
    def prefix(self) -> str:
        return self.__prefix

    @property
    def string_value(self) -> str:
        return self.__uri

    @property
    def uri(self) -> str:
        return self.__uri


class CommentNode(_LeafNode):
    """
    The instances of this class represent comment nodes of a tree.

    :param content: The comment's content a.k.a. text.
    """

    __slots__ = ("__content",)

    def __init__(self, content: str):
        super().__init__()
        if "--" in content or content.endswith("-"):
            raise ValueError("Invalid Comment content.")
        self.__content: Final = content

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}("{self.content}") [{hex(id(self))}]>'

    @property
    def content(self) -> str:
        return self.__content

    @property
    def string_value(self) -> str:
        return self.__content


class ProcessingInstructionNode(_LeafNode):
    """
    The instances of this class represent processing instructions.

    :param target: The processing instruction's target name.
    :param content: The processing instruction's text.
    """

    __slots__ = ("__content", "__target")

    def __init__(self, target: str, content: str = ""):
        _validate_name(target, "processing instruction target")
        if target.lower() == "xml":
            raise ValueError(f"Invalid target name: {target}")
        super().__init__()
        self.__target: Final = target
        self.__content: Final = content

    def __repr__(self) -> str:
        return (
            f'<{self.__class__.__name__}("{self.__target}", "{self.__content}") '
            f"[{hex(id(self))}]>"
        )

    @property
    def content(self) -> str:
        return self.__content

    @property
    def local_name(self) -> str:
        return self.__target

    @property
    def string_value(self) -> str:
        return self.__content

    @property
    def target(self) -> str:
        return self.__target


class TextNode(_LeafNode):
    """
    TextNodes contain the textual data of a document.

    :param content: The text.
    """

    __slots__ = ("__content",)

    def __init__(self, content: str):
        if not isinstance(content, str):
            raise TypeError("The content of a text node must be a string.")
        super().__init__()
        self.__content: Final = content

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}("{self.__content}") [{hex(id(self))}]>'

    @property
    def content(self) -> str:
        return self.__content

    @property
    def string_value(self) -> str:
        return self.__content


# helpers


def _index_by_identity(nodes: Iterable[NodeBase], node: NodeBase) -> int:
    for index, candidate in enumerate(nodes):
        if candidate is node:
            return index
    raise ValueError(f"{node!r} is not contained.")


def _normalize_attributes(
    attributes: Optional[AttributesSource],
) -> Iterator[AttributeNode]:
    if attributes is None:
        return

    items: Iterable
    if isinstance(attributes, Mapping):
        items = attributes.items()
    else:
        items = attributes

    seen = set()
    for item in items:
        if isinstance(item, AttributeNode):
            attribute = item
        else:
            name, value = item
            if isinstance(name, tuple):
                namespace, local_name = name
            else:
                namespace, local_name = deconstruct_clark_notation(name)
            attribute = AttributeNode(local_name, value, namespace=namespace)

        key = (attribute.namespace, attribute.local_name)
        if key in seen:
            raise ValueError(f"Redundant attribute: {attribute.qualified_name}")
        seen.add(key)
        yield attribute


__all__ = (
    AttributeNode.__name__,
    CommentNode.__name__,
    DocumentNode.__name__,
    ElementNode.__name__,
    NamespaceNode.__name__,
    NodeBase.__name__,
    ProcessingInstructionNode.__name__,
    TextNode.__name__,
)
