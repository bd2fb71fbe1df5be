import pytest

# keep this before imports from dendropath!
from tests import plugins  # noqa: F401

from dendropath import BuilderOptions, parse_tree


BOOKSTORE = """\
<?xml version="1.0" encoding="UTF-8"?>
<!-- inventory -->
<bookstore>
  <book category="cooking">
    <title lang="en">Everyday Italian</title>
    <author>Giada De Laurentiis</author>
    <year>2005</year>
    <price>30.00</price>
  </book>
  <book category="children">
    <title lang="en">Harry Potter</title>
    <author>J K. Rowling</author>
    <year>2005</year>
    <price>29.99</price>
  </book>
  <book category="web">
    <title lang="en">XQuery Kick Start</title>
    <author>James McGovern</author>
    <author>Per Bothner</author>
    <author>Kurt Cagle</author>
    <year>2003</year>
    <price>49.99</price>
  </book>
  <book category="web" cover="paperback">
    <title lang="en">Learning XML</title>
    <author>Erik T. Ray</author>
    <year>2003</year>
    <price>39.95</price>
  </book>
</bookstore>
"""


@pytest.fixture
def bookstore():
    return parse_tree(BOOKSTORE, BuilderOptions(strip_whitespace=True))


@pytest.fixture
def queries_sample():
    return parse_tree(
        """\
            <root>
                <node n="1"/>
                <node n="2"/>
                <node/>
                <node n="3"/>
            </root>
        """,
        BuilderOptions(strip_whitespace=True),
    )
