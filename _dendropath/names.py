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

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from typing import Final

    from _dendropath.typing import NamespaceDeclarations


XML_NAMESPACE: Final = "http://www.w3.org/XML/1998/namespace"
XMLNS_NAMESPACE: Final = "http://www.w3.org/2000/xmlns/"

GLOBAL_NAMESPACES: Final = MappingProxyType({"xml": XML_NAMESPACE})
GLOBAL_PREFIXES: Final = (*GLOBAL_NAMESPACES, "xmlns")

DEFAULT_PREFIX: Final = ""
""" The key under which a default namespace for element name tests is declared. """


def deconstruct_clark_notation(name: str) -> tuple[Optional[str], str]:
    """
    Deconstructs a name in Clark notation, that may or may not include a namespace.

    :param name: An attribute's or element's name.
    :return: A tuple with the extracted namespace and local name.

    >>> deconstruct_clark_notation('{http://www.tei-c.org/ns/1.0}text')
    ('http://www.tei-c.org/ns/1.0', 'text')

    >>> deconstruct_clark_notation('div')
    (None, 'div')
    """
    if name.startswith("{"):
        a, b = name.split("}", maxsplit=1)
        return a[1:] or None, b
    else:
        return None, name


class Namespaces(Mapping):
    """
    An immutable :term:`mapping` of prefixes to namespaces that ensures the globally
    defined ``xml`` prefix is available and unchanged. A default namespace that is
    declared with the key :obj:`None` is stored under ``""``.
    """

    __slots__ = ("__data",)

    def __init__(self, namespaces: Optional[NamespaceDeclarations] = None):
        self.__data: dict[str, str]

        if namespaces is None:
            self.__data = dict(GLOBAL_NAMESPACES)
        elif isinstance(namespaces, Namespaces):
            self.__data = namespaces.__data
        elif isinstance(namespaces, Mapping):
            self.__data = self.__normalize_declarations(namespaces)
        else:
            raise TypeError

    def __contains__(self, item: object):
        return item in self.__data

    def __getitem__(self, item: str) -> str:
        return self.__data.__getitem__(item)

    def __iter__(self) -> Iterator[str]:
        yield from self.__data

    def __len__(self) -> int:
        return len(self.__data)

    def __repr__(self) -> str:
        return f"<{self.__class__.__qualname__}({self.__data}) [{hex(id(self))}]>"

    def __str__(self) -> str:
        return str(self.__data)

    @property
    def default(self) -> Optional[str]:
        """The declared default namespace or :obj:`None`."""
        return self.__data.get(DEFAULT_PREFIX) or None

    @staticmethod
    def __normalize_declarations(
        declarations: NamespaceDeclarations,
    ) -> dict[str, str]:
        if None in declarations and DEFAULT_PREFIX in declarations:
            raise ValueError(
                "A default namespace has been defined redundantly with '' and `None.`"
            )

        result: dict[str, str] = dict(GLOBAL_NAMESPACES)

        for prefix, namespace in declarations.items():
            if prefix in GLOBAL_PREFIXES:
                if GLOBAL_NAMESPACES.get(prefix) == namespace:
                    continue
                # https://www.w3.org/TR/xml-names/#xmlReserved
                raise ValueError(
                    f"One must not override the global prefix `{prefix}`."
                )

            if not isinstance(namespace, str):
                raise TypeError(f"The namespace for `{prefix}` must be a string.")

            result[DEFAULT_PREFIX if prefix is None else prefix] = namespace

        return result


__all__ = (
    "DEFAULT_PREFIX",
    "GLOBAL_NAMESPACES",
    "GLOBAL_PREFIXES",
    "XML_NAMESPACE",
    "XMLNS_NAMESPACE",
    deconstruct_clark_notation.__name__,
    Namespaces.__name__,
)
