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
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

from _dendropath.exceptions import XPathSyntaxError
from _dendropath.grammar import ncname_pattern, number_pattern, whitespace_characters


if TYPE_CHECKING:
    from typing import Final


# constants & data structures

TokenType: Final = Enum(
    "TokenType",
    "STRING NUMBER VARIABLE NAME SLASH_SLASH SLASH ASTERISK AXIS_SEPARATOR COLON "
    "DOT_DOT DOT OPEN_BRACKET CLOSE_BRACKET STRUDEL OPEN_PARENS CLOSE_PARENS COMMA "
    "PASEQ OPERATOR",
)


class Token(NamedTuple):
    position: int
    string: str
    type: TokenType


# token definition


def alternatives(*choices: str) -> str:
    return "|".join(choices)


def named_group(name: str, content: str) -> str:
    return f"(?P<{name}>{content})"


# https://www.w3.org/TR/1999/REC-xpath-19991116/#NT-Literal
string_pattern: Final = alternatives('"[^"]*"', "'[^']*'")


iterate_tokens: Final = re.compile(
    alternatives(
        named_group("STRING", string_pattern),
        named_group("UNTERMINATED_STRING", "[\"']"),
        named_group("NUMBER", number_pattern),
        named_group("VARIABLE", rf"\$(?:{ncname_pattern}:)?{ncname_pattern}"),
        named_group("NAME", ncname_pattern),
        named_group("SLASH_SLASH", "//"),
        named_group("SLASH", "/"),
        named_group("ASTERISK", r"\*"),
        named_group("AXIS_SEPARATOR", "::"),
        named_group("COLON", ":"),
        named_group("DOT_DOT", r"\.\."),
        named_group("DOT", r"\."),
        named_group("OPEN_BRACKET", r"\["),
        named_group("CLOSE_BRACKET", r"\]"),
        named_group("STRUDEL", "@"),
        named_group("OPEN_PARENS", r"\("),
        named_group("CLOSE_PARENS", r"\)"),
        named_group("COMMA", ","),
        named_group("PASEQ", r"\|"),
        named_group(
            "OPERATOR", alternatives("!=", "<=", ">=", "<", ">", "=", r"\+", "-")
        ),
        named_group("WHITESPACE", f"[{whitespace_characters}]+"),
        named_group("ERROR", "."),
    ),
    re.DOTALL | re.UNICODE,
).finditer


# interface


def tokenize(expression: str) -> list[Token]:
    """
    Splits an expression into :class:`Token` s, whitespace is dropped. Raises
    :exc:`_dendropath.exceptions.XPathSyntaxError` on unrecognized characters and
    unterminated string literals.
    """
    result = []

    for match in iterate_tokens(expression):
        assert match is not None
        match token_type := match.lastgroup:
            case "ERROR":
                raise XPathSyntaxError(
                    expression=expression,
                    position=match.start(),
                    message="Unrecognized token.",
                )
            case "UNTERMINATED_STRING":
                raise XPathSyntaxError(
                    expression=expression,
                    position=match.start(),
                    message="Unterminated string literal.",
                )
            case "WHITESPACE":
                pass
            case _:
                assert token_type is not None
                result.append(
                    Token(
                        position=match.start(),
                        string=match.group(),
                        type=TokenType[token_type],
                    )
                )

    return result


__all__ = (Token.__name__, "TokenType", tokenize.__name__)
