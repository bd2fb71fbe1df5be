import pytest

from _dendropath.xpath import NodeSet
from dendropath import ElementNode, css_select, match, parse_tree


def _n(node):
    attribute = node.get_attribute("n")
    return None if attribute is None else attribute.value


def test_as_sequences(queries_sample):
    results = css_select(queries_sample, "node")

    as_list = results.as_list()
    assert isinstance(as_list, list)
    assert len(as_list) == 4
    as_list.clear()
    assert results.size == 4

    as_tuple = results.as_tuple
    assert isinstance(as_tuple, tuple)
    assert len(as_tuple) == 4


def test_equality():
    document = parse_tree(
        """\
        <root>
            <s corresp="src:tlaIBUBd4DTggLNoE2MvPgWWka2UdY">
                <w corresp="src:tlaIBUBdzQ3wWIW60TVhNy3cRxYmgg"><unclear/></w>
                <w corresp="src:tlaIBUBd7n0fy1OPU1DjVU66j2B4Qc"><unclear/></w>
            </s>
        </root>
        """
    )
    word_nodes = css_select(document, "s w")
    assert word_nodes == word_nodes.filtered_by(lambda n: True)
    assert word_nodes == word_nodes.as_list()
    assert word_nodes == match(document, "//w")
    assert word_nodes != tuple(reversed(word_nodes.as_list()))
    assert word_nodes != 2 * word_nodes.as_list()
    assert word_nodes != "ww"

    assert NodeSet() == []
    assert NodeSet() == ()
    assert NodeSet() != ""
    assert not NodeSet() == ""
    assert match(document, "//magazine") != ""


def test_identity_not_value(queries_sample):
    other = parse_tree(
        '<root><node n="1"/><node n="2"/><node/><node n="3"/></root>'
    )
    nodes = match(queries_sample, "//node")
    other_nodes = match(other, "//node")

    assert nodes.string_values == other_nodes.string_values
    assert nodes != other_nodes
    assert nodes[0] in nodes
    assert other_nodes[0] not in nodes


def test_unhashable(queries_sample):
    with pytest.raises(TypeError):
        hash(match(queries_sample, "//node"))


def test_filtered_by(queries_sample):
    def has_n_attribute(node):
        return node.get_attribute("n") is not None

    def is_odd(node):
        return int(_n(node)) % 2

    nodes = css_select(queries_sample, "node")
    assert nodes.filtered_by(has_n_attribute).size == 3
    assert [_n(n) for n in nodes.filtered_by(has_n_attribute, is_odd)] == ["1", "3"]


def test_first_and_last(queries_sample):
    assert _n(css_select(queries_sample, "node").first) == "1"
    assert _n(css_select(queries_sample, "node").last) == "3"

    assert css_select(queries_sample, "note").first is None
    assert css_select(queries_sample, "note").last is None


def test_from_nodes(queries_sample):
    nodes = match(queries_sample, "//node")
    result = NodeSet.from_nodes([nodes[3], nodes[1], nodes[3], nodes[0]])
    assert [_n(n) for n in result] == ["1", "2", "3"]


def test_from_nodes_of_wide_trees():
    document = parse_tree(
        "<root xmlns:p='https://p'>" + "<w a='1' b='2'/>" * 2000 + "</root>"
    )
    expected = []
    for child in document.root.iterate_children():
        expected.extend((child, *child.namespace_nodes, *child.attributes))

    result = NodeSet.from_nodes(reversed(expected))
    assert result.size == 10000
    assert result == expected


def test_slicing(queries_sample):
    nodes = match(queries_sample, "//node")
    head = nodes[:2]
    assert isinstance(head, NodeSet)
    assert [_n(n) for n in head] == ["1", "2"]
    assert isinstance(nodes[-1], ElementNode)
    assert nodes[::-1] != nodes


def test_size(queries_sample):
    assert css_select(queries_sample, "node").size == 4
    assert len(css_select(queries_sample, "node")) == 4
    assert not css_select(queries_sample, "note")
    assert NodeSet().size == 0


def test_repr(queries_sample):
    assert repr(NodeSet()) == "<NodeSet: []>"
    assert repr(match(queries_sample, "/*")).startswith(
        '<NodeSet: [<ElementNode("root") ['
    )
