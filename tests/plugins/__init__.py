from __future__ import annotations

from typing import TYPE_CHECKING

from _dendropath.nodes import ElementNode
from _dendropath.plugins import plugin_manager

if TYPE_CHECKING:
    from _dendropath.xpath import EvaluationContext, NodeSet


@plugin_manager.register_xpath_function("is-last")
def is_last(context: EvaluationContext) -> bool:
    return context.position == context.size


@plugin_manager.register_xpath_function
def lowercase(_, string: str) -> str:
    return string.lower()


@plugin_manager.register_xpath_function("local-names")
def local_names(_, nodes: NodeSet) -> str:
    return " ".join(n.local_name for n in nodes)


@plugin_manager.register_xpath_function("element-children")
def element_children(context: EvaluationContext) -> list:
    return [n for n in context.node.iterate_children() if isinstance(n, ElementNode)]
