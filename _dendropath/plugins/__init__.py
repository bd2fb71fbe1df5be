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

import inspect
import warnings
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any, NamedTuple, Optional, overload

from _dendropath.exceptions import FunctionArityError, UnknownFunctionError


if TYPE_CHECKING:
    from typing import Final

    from _dendropath.typing import (
        GenericDecorated,
        SecondOrderDecorator,
        XPathFunction,
    )


ANNOTATIONS_TO_ARGUMENT_TYPES: Final = {
    "str": "string",
    "float": "number",
    "int": "number",
    "bool": "boolean",
    "NodeSet": "node-set",
}


def _argument_type(annotation: Any) -> Optional[str]:
    # annotations are strings when postponed evaluation is in effect
    if annotation is inspect.Parameter.empty:
        return None
    if not isinstance(annotation, str):
        annotation = getattr(annotation, "__name__", None)
    elif annotation.startswith("Optional[") and annotation.endswith("]"):
        annotation = annotation[9:-1]
    return ANNOTATIONS_TO_ARGUMENT_TYPES.get(annotation)


class FunctionSignature(NamedTuple):
    """
    The contract of a registered XPath function that is derived from its Python
    signature. The first parameter of a function always receives the
    :class:`_dendropath.xpath.EvaluationContext` and is not part of the contract.
    """

    function: XPathFunction
    min_arity: int
    max_arity: Optional[int]
    """ :obj:`None` signals that an arbitrary number of arguments is accepted. """
    argument_types: tuple[Optional[str], ...]
    """
    The XPath types that the positional arguments are coerced to, one of
    ``"string"``, ``"number"``, ``"boolean"`` and ``"node-set"``. :obj:`None` means no
    coercion.
    """
    variadic_type: Optional[str] = None

    @classmethod
    def from_function(cls, function: XPathFunction) -> FunctionSignature:
        parameters = tuple(inspect.signature(function).parameters.values())[1:]

        min_arity = 0
        max_arity: Optional[int] = 0
        argument_types = []
        variadic_type = None

        for parameter in parameters:
            annotation = _argument_type(parameter.annotation)
            match parameter.kind:
                case inspect.Parameter.VAR_POSITIONAL:
                    max_arity = None
                    variadic_type = annotation
                case (
                    inspect.Parameter.POSITIONAL_ONLY
                    | inspect.Parameter.POSITIONAL_OR_KEYWORD
                ):
                    assert max_arity is not None
                    max_arity += 1
                    if parameter.default is inspect.Parameter.empty:
                        min_arity += 1
                    argument_types.append(annotation)
                case _:
                    raise TypeError(
                        "XPath functions can only have positional parameters."
                    )

        return cls(
            function=function,
            min_arity=min_arity,
            max_arity=max_arity,
            argument_types=tuple(argument_types),
            variadic_type=variadic_type,
        )

    def check_arity(self, name: str, got: int):
        max_arity = self.max_arity
        if got < self.min_arity or (max_arity is not None and got > max_arity):
            if self.max_arity is None:
                expected = f"at least {self.min_arity}"
            elif self.min_arity == self.max_arity:
                expected = str(self.min_arity)
            else:
                expected = f"{self.min_arity} to {self.max_arity}"
            raise FunctionArityError(name=name, expected=expected, got=got)

    def type_of_argument(self, index: int) -> Optional[str]:
        if index < len(self.argument_types):
            return self.argument_types[index]
        return self.variadic_type


class PluginManager:
    __slots__ = ("xpath_functions",)

    def __init__(self):
        self.xpath_functions: dict[str, FunctionSignature] = {}

    def get_xpath_function(self, name: str) -> FunctionSignature:
        if (signature := self.xpath_functions.get(name)) is None:
            raise UnknownFunctionError(name)
        return signature

    @staticmethod
    def load_plugins():
        """
        Loads all modules that are registered as entrypoint in the ``dendropath``
        group. These are supposed to register XPath functions.
        """
        for entrypoint in entry_points(group="dendropath"):
            entrypoint.load()

    @overload
    def register_xpath_function(self, arg: str) -> SecondOrderDecorator: ...

    @overload
    def register_xpath_function(self, arg: GenericDecorated) -> GenericDecorated: ...

    def register_xpath_function(
        self, arg: str | GenericDecorated
    ) -> SecondOrderDecorator | GenericDecorated:
        """
        Custom XPath functions can be defined as shown in the following example. The
        first argument to a function is always an instance of
        :class:`_dendropath.xpath.EvaluationContext` followed by the expression's
        arguments. The arguments are coerced according to the parameters' annotations
        (:class:`str`, :class:`float`, :class:`bool`), parameters that are annotated
        with :class:`_dendropath.xpath.NodeSet` require node-sets. Parameters with
        default values are optional.

        .. testcode::

            from dendropath import match, parse_tree
            from _dendropath.plugins import plugin_manager
            from _dendropath.xpath import EvaluationContext


            @plugin_manager.register_xpath_function("is-last")
            def is_last(context: EvaluationContext) -> bool:
                return context.position == context.size

            @plugin_manager.register_xpath_function
            def lowercase(_, string: str) -> str:
                return string.lower()


            document = parse_tree("<root><node/><node foo='BAR'/></root>")
            print(match(document, "//*[is-last() and lowercase(@foo)='bar']").first)

        .. testoutput::

            <ElementNode("node") [...]>
        """
        if isinstance(arg, str):

            def wrapper(func: XPathFunction) -> XPathFunction:
                self._register(arg, func)
                return func

            return wrapper

        if callable(arg):
            self._register(arg.__name__, arg)
            return arg

        raise TypeError

    def _register(self, name: str, function: XPathFunction):
        if name in self.xpath_functions:
            warnings.warn(
                f"The XPath function `{name}` is overridden by {function!r}.",
                category=UserWarning,
            )
        self.xpath_functions[name] = FunctionSignature.from_function(function)


plugin_manager = PluginManager()


__all__ = (FunctionSignature.__name__, PluginManager.__name__, "plugin_manager")
