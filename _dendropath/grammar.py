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
from typing import Final


# constants

# https://www.w3.org/TR/REC-xml-names/#NT-NCName
# https://www.w3.org/TR/REC-xml/#NT-Name
name_start_characters: Final = (
    "A-Z_a-z"
    r"\u00c0-\u00d6\u00d8-\u00f6\u00f8-\u02ff\u0370-\u037d\u037f-\u1fff"
    r"\u200c-\u200d\u2070-\u218f\u2c00-\u2fef"
    r"\u3001-\ud7ff"
    r"\uf900-\ufdcf\ufdf0-\ufffd"
    r"\U00010000-\U000effff"
)
name_characters: Final = (
    name_start_characters + r"\.0-9\u00b7\u0300-\u036f\u203f-\u2040-"
)
ncname_pattern: Final = f"[{name_start_characters}][{name_characters}]*"

# https://www.w3.org/TR/1999/REC-xpath-19991116/#NT-Number
number_pattern: Final = r"[0-9]+(?:\.[0-9]*)?|\.[0-9]+"

# https://www.w3.org/TR/REC-xml/#NT-S
whitespace_characters: Final = " \n\r\t"


# functions

_is_ncname: Final = re.compile(ncname_pattern).fullmatch
_match_xpath_number: Final = re.compile(
    rf"[{whitespace_characters}]*(-?(?:{number_pattern}))[{whitespace_characters}]*"
).fullmatch
