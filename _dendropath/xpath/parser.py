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
A recursive descent parser for the expression grammar of XPath 1.0. Each ``parse_``
method of :class:`Parser` consumes the tokens of one production, the methods for
operators are ordered from the loosest binding to the tightest binding one.

Whether an asterisk or one of the names ``and``, ``or``, ``div`` and ``mod`` is an
operator is decided by the position where it is encountered, operators are only
expected after a complete operand.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from _dendropath.exceptions import XPathSyntaxError
from _dendropath.plugins import plugin_manager
from _dendropath.xpath.ast import (
    AnyNameTest,
    BinaryOperation,
    ExpressionNode,
    FilterExpression,
    FunctionCall,
    Literal,
    LocationPath,
    NameTest,
    NodeTestNode,
    NodeTypeTest,
    PathExpression,
    Predicate,
    ProcessingInstructionTest,
    Step,
    UnaryMinus,
    Union,
    VariableReference,
    XPathExpression,
)
from _dendropath.xpath.axes import AXES
from _dendropath.xpath.tokenizer import Token, TokenType, tokenize


if TYPE_CHECKING:
    from typing import Final


NODE_TYPE_NAMES: Final = frozenset(("comment", "node", "processing-instruction", "text"))

EQUALITY_OPERATORS: Final = ("=", "!=")
RELATIONAL_OPERATORS: Final = ("<", "<=", ">", ">=")
ADDITIVE_OPERATORS: Final = ("+", "-")
MULTIPLICATIVE_NAMES: Final = ("div", "mod")

STEP_STARTING_TOKEN_TYPES: Final = frozenset(
    (
        TokenType.ASTERISK,
        TokenType.DOT,
        TokenType.DOT_DOT,
        TokenType.NAME,
        TokenType.STRUDEL,
    )
)


def _descendant_or_self_step() -> Step:
    return Step("descendant-or-self", NodeTypeTest("node"))


class Parser:
    """
    Produces the syntax tree for a sequence of tokens. Function calls are validated
    against the functions that are registered with the
    :obj:`_dendropath.plugins.plugin_manager` at the time of parsing.
    """

    __slots__ = ("expression", "pointer", "tokens")

    def __init__(self, tokens: list[Token], expression: str):
        self.expression: Final = expression
        self.pointer = 0
        self.tokens: Final = tokens

    # token stream

    @property
    def at_end(self) -> bool:
        return self.pointer >= len(self.tokens)

    @property
    def current(self) -> Optional[Token]:
        if self.at_end:
            return None
        return self.tokens[self.pointer]

    @property
    def current_position(self) -> int:
        if (token := self.current) is None:
            return len(self.expression)
        return token.position

    def consume(self) -> Token:
        token = self.tokens[self.pointer]
        self.pointer += 1
        return token

    def error(self, message: str, position: Optional[int] = None) -> XPathSyntaxError:
        return XPathSyntaxError(
            expression=self.expression,
            position=self.current_position if position is None else position,
            message=message,
        )

    def expect_closing(self, opener: Token, token_type: TokenType, string: str):
        if self.at_end:
            raise self.error(
                f"`{opener.string}` at position {opener.position} is never closed."
            )
        if not self.matches(token_type):
            raise self.error(f"Expected `{string}`.")
        self.consume()

    def lookahead(self, offset: int) -> Optional[Token]:
        index = self.pointer + offset
        if index < len(self.tokens):
            return self.tokens[index]
        return None

    def matches(self, token_type: TokenType, string: Optional[str] = None) -> bool:
        token = self.current
        return (
            token is not None
            and token.type is token_type
            and (string is None or token.string == string)
        )

    def operator_follows(self, candidates: tuple[str, ...]) -> bool:
        return (token := self.current) is not None and (
            token.type is TokenType.OPERATOR and token.string in candidates
        )

    # entrypoint

    def parse(self) -> XPathExpression:
        if not self.tokens:
            raise self.error("Missing expression.")
        root = self.parse_expression()
        if not self.at_end:
            raise self.error("Unexpected token.")
        return XPathExpression(root, self.expression)

    # operators

    def parse_expression(self) -> ExpressionNode:
        return self.parse_or_expression()

    def parse_or_expression(self) -> ExpressionNode:
        result = self.parse_and_expression()
        while self.matches(TokenType.NAME, "or"):
            self.consume()
            result = BinaryOperation("or", result, self.parse_and_expression())
        return result

    def parse_and_expression(self) -> ExpressionNode:
        result = self.parse_equality_expression()
        while self.matches(TokenType.NAME, "and"):
            self.consume()
            result = BinaryOperation("and", result, self.parse_equality_expression())
        return result

    def parse_equality_expression(self) -> ExpressionNode:
        result = self.parse_relational_expression()
        while self.operator_follows(EQUALITY_OPERATORS):
            operator = self.consume().string
            result = BinaryOperation(
                operator, result, self.parse_relational_expression()
            )
        return result

    def parse_relational_expression(self) -> ExpressionNode:
        result = self.parse_additive_expression()
        while self.operator_follows(RELATIONAL_OPERATORS):
            operator = self.consume().string
            result = BinaryOperation(operator, result, self.parse_additive_expression())
        return result

    def parse_additive_expression(self) -> ExpressionNode:
        result = self.parse_multiplicative_expression()
        while self.operator_follows(ADDITIVE_OPERATORS):
            operator = self.consume().string
            result = BinaryOperation(
                operator, result, self.parse_multiplicative_expression()
            )
        return result

    def parse_multiplicative_expression(self) -> ExpressionNode:
        result = self.parse_unary_expression()
        while True:
            if self.matches(TokenType.ASTERISK):
                operator = "*"
            elif (token := self.current) is not None and (
                token.type is TokenType.NAME and token.string in MULTIPLICATIVE_NAMES
            ):
                operator = token.string
            else:
                return result
            self.consume()
            result = BinaryOperation(operator, result, self.parse_unary_expression())

    def parse_unary_expression(self) -> ExpressionNode:
        if self.matches(TokenType.OPERATOR, "-"):
            self.consume()
            return UnaryMinus(self.parse_unary_expression())
        return self.parse_union_expression()

    def parse_union_expression(self) -> ExpressionNode:
        result = self.parse_path_expression()
        while self.matches(TokenType.PASEQ):
            self.consume()
            result = Union(result, self.parse_path_expression())
        return result

    # paths

    def parse_path_expression(self) -> ExpressionNode:
        if self.at_end:
            raise self.error("Missing expression.")

        if not self.filter_expression_follows():
            return self.parse_location_path()

        primary = self.parse_primary_expression()
        predicates = self.parse_predicates()
        result = FilterExpression(primary, predicates) if predicates else primary

        if self.matches(TokenType.SLASH):
            self.consume()
            return PathExpression(result, LocationPath(self.parse_relative_steps()))
        if self.matches(TokenType.SLASH_SLASH):
            self.consume()
            return PathExpression(
                result,
                LocationPath(
                    (_descendant_or_self_step(), *self.parse_relative_steps())
                ),
            )
        return result

    def filter_expression_follows(self) -> bool:
        token = self.current
        assert token is not None

        if token.type in (
            TokenType.NUMBER,
            TokenType.OPEN_PARENS,
            TokenType.STRING,
            TokenType.VARIABLE,
        ):
            return True

        if token.type is not TokenType.NAME or token.string in NODE_TYPE_NAMES:
            return False

        # a function call with a name that is possibly prefixed
        following = self.lookahead(1)
        if following is not None and following.type is TokenType.COLON:
            local_name, following = self.lookahead(2), self.lookahead(3)
            if local_name is None or local_name.type is not TokenType.NAME:
                return False
        return following is not None and following.type is TokenType.OPEN_PARENS

    def parse_location_path(self) -> LocationPath:
        if self.matches(TokenType.SLASH):
            self.consume()
            if (token := self.current) is None or (
                token.type not in STEP_STARTING_TOKEN_TYPES
            ):
                return LocationPath((), absolute=True)
            return LocationPath(self.parse_relative_steps(), absolute=True)

        if self.matches(TokenType.SLASH_SLASH):
            self.consume()
            return LocationPath(
                (_descendant_or_self_step(), *self.parse_relative_steps()),
                absolute=True,
            )

        return LocationPath(self.parse_relative_steps())

    def parse_relative_steps(self) -> list[Step]:
        result = [self.parse_location_step()]
        while True:
            if self.matches(TokenType.SLASH):
                self.consume()
            elif self.matches(TokenType.SLASH_SLASH):
                self.consume()
                result.append(_descendant_or_self_step())
            else:
                return result
            result.append(self.parse_location_step())

    def parse_location_step(self) -> Step:
        if self.at_end:
            raise self.error("Missing location step.")

        if self.matches(TokenType.DOT):
            self.consume()
            return Step("self", NodeTypeTest("node"))
        if self.matches(TokenType.DOT_DOT):
            self.consume()
            return Step("parent", NodeTypeTest("node"))

        if self.matches(TokenType.STRUDEL):
            self.consume()
            axis = "attribute"
        elif (following := self.lookahead(1)) is not None and (
            following.type is TokenType.AXIS_SEPARATOR
        ):
            token = self.consume()
            if token.type is not TokenType.NAME or token.string not in AXES:
                raise self.error(
                    f"Invalid axis: `{token.string}`", position=token.position
                )
            self.consume()
            axis = token.string
        else:
            axis = "child"

        node_test = self.parse_node_test()
        return Step(axis, node_test, self.parse_predicates())

    def parse_node_test(self) -> NodeTestNode:
        if self.at_end:
            raise self.error("Missing node test.")

        if self.matches(TokenType.ASTERISK):
            self.consume()
            return AnyNameTest()

        if not self.matches(TokenType.NAME):
            raise self.error("Unrecognized node test.")

        name = self.consume()

        if self.matches(TokenType.OPEN_PARENS) and name.string in NODE_TYPE_NAMES:
            opener = self.consume()
            if name.string == "processing-instruction" and self.matches(
                TokenType.STRING
            ):
                target: Optional[str] = self.consume().string[1:-1]
            else:
                target = None
            self.expect_closing(opener, TokenType.CLOSE_PARENS, ")")
            if name.string == "processing-instruction":
                return ProcessingInstructionTest(target)
            return NodeTypeTest(name.string)

        if self.qualified_name_continues(name):
            self.consume()
            if self.matches(TokenType.ASTERISK):
                self.consume()
                return AnyNameTest(name.string)
            return NameTest(name.string, self.consume().string)

        return NameTest(None, name.string)

    def qualified_name_continues(self, prefix: Token) -> bool:
        # no whitespace is allowed around the colon of a qualified name
        colon = self.current
        local_part = self.lookahead(1)
        return (
            colon is not None
            and colon.type is TokenType.COLON
            and colon.position == prefix.position + len(prefix.string)
            and local_part is not None
            and local_part.type in (TokenType.ASTERISK, TokenType.NAME)
            and local_part.position == colon.position + 1
        )

    def parse_predicates(self) -> list[Predicate]:
        result = []
        while self.matches(TokenType.OPEN_BRACKET):
            opener = self.consume()
            if self.at_end:
                raise self.error(
                    f"`[` at position {opener.position} is never closed."
                )
            if self.matches(TokenType.CLOSE_BRACKET):
                raise self.error("Missing predicate expression.")
            expression = self.parse_expression()
            self.expect_closing(opener, TokenType.CLOSE_BRACKET, "]")
            result.append(Predicate(expression))
        return result

    # primaries

    def parse_primary_expression(self) -> ExpressionNode:
        token = self.current
        assert token is not None

        match token.type:
            case TokenType.NUMBER:
                self.consume()
                return Literal(float(token.string))
            case TokenType.STRING:
                self.consume()
                return Literal(token.string[1:-1])
            case TokenType.VARIABLE:
                self.consume()
                return VariableReference(token.string[1:])
            case TokenType.OPEN_PARENS:
                self.consume()
                if self.at_end:
                    raise self.error(
                        f"`(` at position {token.position} is never closed."
                    )
                result = self.parse_expression()
                self.expect_closing(token, TokenType.CLOSE_PARENS, ")")
                return result
            case _:
                return self.parse_function_call()

    def parse_function_call(self) -> FunctionCall:
        name_token = self.consume()
        name = name_token.string
        if self.matches(TokenType.COLON):
            self.consume()
            name = f"{name}:{self.consume().string}"

        opener = self.consume()
        assert opener.type is TokenType.OPEN_PARENS

        arguments: list[ExpressionNode] = []
        if self.at_end:
            raise self.error(f"`(` at position {opener.position} is never closed.")
        if not self.matches(TokenType.CLOSE_PARENS):
            arguments.append(self.parse_expression())
            while self.matches(TokenType.COMMA):
                self.consume()
                arguments.append(self.parse_expression())
        self.expect_closing(opener, TokenType.CLOSE_PARENS, ")")

        plugin_manager.get_xpath_function(name).check_arity(name, len(arguments))
        return FunctionCall(name, arguments)


def parse(expression: str) -> XPathExpression:
    """
    Parses an expression into a syntax tree. Raises
    :exc:`_dendropath.exceptions.XPathSyntaxError` for malformed expressions,
    :exc:`_dendropath.exceptions.UnknownFunctionError` and
    :exc:`_dendropath.exceptions.FunctionArityError` for calls that no registered
    function can serve.
    """
    try:
        return Parser(tokenize(expression), expression).parse()
    except XPathSyntaxError as e:
        e.expression = expression
        raise e


__all__ = (Parser.__name__, parse.__name__)
