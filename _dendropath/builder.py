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
Builds trees of :mod:`_dendropath.nodes` from XML documents that are parsed with
*lxml* or from existing *lxml* trees.
"""

from __future__ import annotations

import warnings
from typing import TYPE_CHECKING, NamedTuple, Optional

from lxml import etree

from _dendropath.grammar import whitespace_characters
from _dendropath.nodes import (
    AttributeNode,
    CommentNode,
    DocumentNode,
    ElementNode,
    ProcessingInstructionNode,
)


if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping
    from typing import Final

    from _dendropath.nodes import NodeBase


class BuilderOptions(NamedTuple):
    """
    The configuration options that define how a tree is built.
    """

    remove_comments: bool = False
    """Ignore comments.  Default: :obj:`False`."""
    remove_processing_instructions: bool = False
    """Ignore processing instructions.  Default: :obj:`False`."""
    strip_whitespace: bool = False
    """
    Drop text nodes that only consist of whitespace, e.g. the indentation between
    elements.  Default: :obj:`False`.
    """


DEFAULT_OPTIONS: Final = BuilderOptions()
LEAF_TYPES: Final = (etree._Comment, etree._Entity, etree._ProcessingInstruction)


def parse_tree(
    data: str | bytes, options: Optional[BuilderOptions] = None
) -> DocumentNode:
    """
    Parses an XML document and returns its :class:`_dendropath.nodes.DocumentNode`.
    Loading of external resources is disabled. Syntax errors are reported with
    :exc:`lxml.etree.XMLSyntaxError`.
    """
    if options is None:
        options = DEFAULT_OPTIONS

    if isinstance(data, str):
        # lxml refuses strings with an encoding declaration
        data = data.encode("utf-8")
        encoding: Optional[str] = "utf-8"
    else:
        encoding = None

    parser = etree.XMLParser(
        encoding=encoding,
        load_dtd=False,
        no_network=True,
        remove_blank_text=False,
        remove_comments=options.remove_comments,
        remove_pis=options.remove_processing_instructions,
        resolve_entities=False,
        strip_cdata=True,
    )
    root = etree.fromstring(data, parser)
    return _document_from_root(root, options)


def from_lxml(
    source: etree._Element | etree._ElementTree,
    options: Optional[BuilderOptions] = None,
) -> DocumentNode | ElementNode:
    """
    Converts an *lxml* tree. A :class:`_dendropath.nodes.DocumentNode` is returned for
    an element tree and for root elements, a nested element is converted into an
    :class:`_dendropath.nodes.ElementNode` without a document.
    """
    if options is None:
        options = DEFAULT_OPTIONS

    if isinstance(source, etree._ElementTree):
        source = source.getroot()
    if not isinstance(source, etree._Element) or isinstance(source, LEAF_TYPES):
        raise TypeError("Only element trees and elements can be converted.")

    if source.getparent() is None:
        return _document_from_root(source, options)

    # all in-scope namespaces are declared on a detached element
    return _convert_element(source, {}, options)


# conversion


def _document_from_root(root: etree._Element, options: BuilderOptions) -> DocumentNode:
    children: list[NodeBase] = []

    for sibling in reversed(tuple(root.itersiblings(preceding=True))):
        if (node := _convert_leaf(sibling, options)) is not None:
            children.append(node)
    children.append(_convert_element(root, {}, options))
    for sibling in root.itersiblings():
        if (node := _convert_leaf(sibling, options)) is not None:
            children.append(node)

    return DocumentNode(children)


def _convert_element(
    element: etree._Element,
    parent_namespaces: Mapping[Optional[str], str],
    options: BuilderOptions,
) -> ElementNode:
    namespaces = element.nsmap
    qualified_name = etree.QName(element)

    children: list[NodeBase | str] = []
    if element.text:
        children.append(element.text)
    for child in element:
        if isinstance(child, LEAF_TYPES):
            if (node := _convert_leaf(child, options)) is not None:
                children.append(node)
        else:
            children.append(_convert_element(child, namespaces, options))
        if child.tail:
            children.append(child.tail)

    return ElementNode(
        local_name=qualified_name.localname,
        namespace=qualified_name.namespace,
        attributes=list(_convert_attributes(element.attrib, namespaces)),
        children=_merge_texts(children, options.strip_whitespace),
        prefix=element.prefix,
        namespace_declarations=_namespace_declarations(namespaces, parent_namespaces),
    )


def _convert_attributes(
    attributes: etree._Attrib, namespaces: Mapping[Optional[str], str]
) -> Iterator[AttributeNode]:
    for name, value in attributes.items():
        assert isinstance(name, str)
        assert isinstance(value, str)
        qualified_name = etree.QName(name)
        namespace = qualified_name.namespace
        prefix = None
        if namespace is not None:
            for candidate, uri in namespaces.items():
                if candidate is not None and uri == namespace:
                    prefix = candidate
                    break
        yield AttributeNode(
            qualified_name.localname, value, namespace=namespace, prefix=prefix
        )


def _convert_leaf(
    node: etree._Element, options: BuilderOptions
) -> Optional[CommentNode | ProcessingInstructionNode]:
    if isinstance(node, etree._Comment):
        if options.remove_comments:
            return None
        return CommentNode(node.text or "")

    if isinstance(node, etree._ProcessingInstruction):
        if options.remove_processing_instructions:
            return None
        assert isinstance(node.target, str)
        return ProcessingInstructionNode(node.target, node.text or "")

    if isinstance(node, etree._Entity):
        warnings.warn(
            f"The unresolved entity reference {node.text} is ignored.",
            category=UserWarning,
        )
        return None

    raise TypeError(f"Unexpected node type: {type(node)}")


def _merge_texts(
    children: Iterable[NodeBase | str], strip_whitespace: bool
) -> list[NodeBase | str]:
    # adjacent strings become one text node
    result: list[NodeBase | str] = []
    for child in children:
        if isinstance(child, str) and result and isinstance(result[-1], str):
            result[-1] += child
        else:
            result.append(child)

    if strip_whitespace:
        result = [
            x
            for x in result
            if not (isinstance(x, str) and not x.strip(whitespace_characters))
        ]

    return result


def _namespace_declarations(
    namespaces: Mapping[Optional[str], str],
    parent_namespaces: Mapping[Optional[str], str],
) -> dict[str, str]:
    result = {
        prefix or "": uri
        for prefix, uri in namespaces.items()
        if parent_namespaces.get(prefix) != uri
    }
    if None in parent_namespaces and None not in namespaces:
        # an undeclared default namespace
        result[""] = ""
    return result


__all__ = (
    BuilderOptions.__name__,
    from_lxml.__name__,
    parse_tree.__name__,
)
