import re

import pytest

from _dendropath.exceptions import XPathSyntaxError
from _dendropath.xpath.tokenizer import named_group, string_pattern, tokenize, TokenType


@pytest.mark.parametrize(
    ("in_", "out"),
    (
        ("foo", ""),
        ("'foo'", "'foo'"),
        ("'foo", ""),
        ("foo'", ""),
        ("bar'foo'bar", "'foo'"),
        ('"it\'s"', '"it\'s"'),
        ("'say \"hi\"'", "'say \"hi\"'"),
    ),
)
def test_string_pattern(in_, out):
    result = re.compile(named_group("STRING", string_pattern), re.UNICODE).search(in_)
    if out:
        assert result is not None
        assert result.group("STRING") == out
    else:
        assert result is None


@pytest.mark.parametrize(
    ("in_", "out"),
    (
        (
            "starts-with(@foo,'a(b(c)')",
            ["starts-with", "(", "@", "foo", ",", "'a(b(c)'", ")"],
        ),
        (
            './/a[@href and not(starts-with(@href, "https://"))]',
            [
                ".",
                "//",
                "a",
                "[",
                "@",
                "href",
                "and",
                "not",
                "(",
                "starts-with",
                "(",
                "@",
                "href",
                ",",
                '"https://"',
                ")",
                ")",
                "]",
            ],
        ),
        (
            "//book[price>35.00]/title",
            ["//", "book", "[", "price", ">", "35.00", "]", "/", "title"],
        ),
        ("$x+-1", ["$x", "+", "-", "1"]),
        ("$p:name", ["$p:name"]),
        ("child::p:*", ["child", "::", "p", ":", "*"]),
        ("a!=b<=c>=d", ["a", "!=", "b", "<=", "c", ">=", "d"]),
        ("..//.", ["..", "//", "."]),
        ("a|b", ["a", "|", "b"]),
        (".5 div 2.", [".5", "div", "2."]),
        ("ancestor-or-self::*", ["ancestor-or-self", "::", "*"]),
    ),
)
def test_tokenize(in_, out):
    assert [x.string for x in tokenize(in_)] == out


@pytest.mark.parametrize(
    ("in_", "out"),
    (
        ("'foo'", TokenType.STRING),
        ('"foo"', TokenType.STRING),
        ("foo", TokenType.NAME),
        (" foo", TokenType.NAME),
        ("f-o-o", TokenType.NAME),
        ("f.oo", TokenType.NAME),
        ("🔥", TokenType.NAME),
        ("and", TokenType.NAME),
        ("$foo", TokenType.VARIABLE),
        ("/", TokenType.SLASH),
        ("//", TokenType.SLASH_SLASH),
        ("*", TokenType.ASTERISK),
        ("::", TokenType.AXIS_SEPARATOR),
        (":", TokenType.COLON),
        ("..", TokenType.DOT_DOT),
        (".", TokenType.DOT),
        ("[", TokenType.OPEN_BRACKET),
        ("]", TokenType.CLOSE_BRACKET),
        ("@", TokenType.STRUDEL),
        ("(", TokenType.OPEN_PARENS),
        (" (", TokenType.OPEN_PARENS),
        (")", TokenType.CLOSE_PARENS),
        (",", TokenType.COMMA),
        (", ", TokenType.COMMA),
        ("|", TokenType.PASEQ),
        ("=", TokenType.OPERATOR),
        ("+", TokenType.OPERATOR),
        ("-", TokenType.OPERATOR),
        ("!=", TokenType.OPERATOR),
        (" != ", TokenType.OPERATOR),
        ("<", TokenType.OPERATOR),
        (">", TokenType.OPERATOR),
        ("<=", TokenType.OPERATOR),
        (">=", TokenType.OPERATOR),
        ("0", TokenType.NUMBER),
        ("99", TokenType.NUMBER),
        ("3.14", TokenType.NUMBER),
        (".5", TokenType.NUMBER),
    ),
)
def test_type_detection(in_, out):
    result = tokenize(in_)
    assert len(result) == 1, result
    assert result[0].type is out


@pytest.mark.parametrize("in_", (" ", "\t", "\n", ""))
def test_ignored_whitespace(in_):
    assert not tokenize(in_)


def test_token_positions():
    assert [x.position for x in tokenize("a / b[ 1 ]")] == [0, 2, 4, 5, 7, 9]


@pytest.mark.parametrize(
    ("expression", "position", "message"),
    (
        ("a[~b]", 2, "Unrecognized token."),
        ("a # b", 2, "Unrecognized token."),
        ("!a", 0, "Unrecognized token."),
        ("$", 0, "Unrecognized token."),
        ("a['b]", 2, "Unterminated string literal."),
        ('concat("a, "b")', 13, "Unterminated string literal."),
    ),
)
def test_invalid_tokens(expression, position, message):
    with pytest.raises(XPathSyntaxError) as exception_info:
        tokenize(expression)

    exception = exception_info.value
    assert exception.position == position
    assert exception.message == message
    assert exception.expression == expression
