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

"""These are the specific dendropath exceptions."""

from __future__ import annotations

from typing import Optional


class DendropathBaseException(Exception):
    pass


class InvalidCodePath(DendropathBaseException, RuntimeError):
    """Raised when a code path that is not expected to be executed is reached."""

    def __init__(self):  # pragma: no cover
        super().__init__(
            "An unintended path was taken through the code. Please report this bug."
        )


class InvalidOperation(DendropathBaseException):
    """Raised when an invalid operation is attempted by the client code."""

    pass


class XPathError(DendropathBaseException):
    """The base class of all errors that are raised while parsing or evaluating."""

    pass


class XPathSyntaxError(XPathError):
    """Raised when an XPath expression can't be parsed."""

    def __init__(
        self,
        expression: Optional[str] = None,
        position: Optional[int] = None,
        message: Optional[str] = None,
    ):
        self.expression = expression
        self.position = position
        self.message = message

    def __str__(self):
        expression = self.expression
        assert expression is not None
        assert self.message is not None
        position = self.position
        assert position is not None

        expression_length = len(expression)
        snippet_end = min(position + 16, expression_length)

        if expression_length > snippet_end:
            snippet = f"`{expression[position:snippet_end]}…`"
        else:
            snippet = f"`{expression[position:snippet_end]}`"

        if len(snippet) > 2:
            return (
                f"XPath syntax error at character {position} ({snippet}): "
                f"{self.message}"
            )
        else:
            return f"XPath syntax error at character {position}: {self.message}"


class UnknownFunctionError(XPathError):
    """Raised when an expression calls a function that isn't registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown function: `{name}`")


class FunctionArityError(XPathError):
    """
    Raised when a function is called with a number of arguments that its signature
    doesn't accept. ``expected`` is a human-readable description of the accepted
    amounts.
    """

    def __init__(self, name: str, expected: str, got: int):
        self.name = name
        self.expected = expected
        self.got = got
        super().__init__(
            f"The function `{name}` expects {expected} argument(s), got {got}."
        )


class XPathEvaluationError(XPathError):
    def __init__(self, message: str):
        super().__init__(message)


class UnboundNamespaceError(XPathEvaluationError):
    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(
            f"The namespace prefix `{prefix}` is unknown in the evaluation context."
        )


class UnboundVariableError(XPathEvaluationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"The variable `${name}` is not bound.")


class XPathTypeError(XPathEvaluationError):
    """Raised when an operation requires a node-set and gets another value type."""

    pass


__all__ = (
    DendropathBaseException.__name__,
    FunctionArityError.__name__,
    InvalidCodePath.__name__,
    InvalidOperation.__name__,
    UnboundNamespaceError.__name__,
    UnboundVariableError.__name__,
    UnknownFunctionError.__name__,
    XPathError.__name__,
    XPathEvaluationError.__name__,
    XPathSyntaxError.__name__,
    XPathTypeError.__name__,
)
