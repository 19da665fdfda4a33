"""
Identifier helpers

Local-name allocation for imports and exports. Allocation is explicit: the
caller owns the set of names already in use and passes it in.
"""

import posixpath
import re
from typing import AbstractSet, Sequence

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_DASH_LOWER_RE = re.compile(r"-([a-z])")
_NON_IDENTIFIER_CHAR_RE = re.compile(r"[^A-Za-z0-9_$]")

RESERVED_WORDS = frozenset([
    "await", "break", "case", "catch", "class", "const", "continue",
    "debugger", "default", "delete", "do", "else", "enum", "export",
    "extends", "false", "finally", "for", "function", "if", "implements",
    "import", "in", "instanceof", "interface", "let", "new", "null",
    "package", "private", "protected", "public", "return", "static",
    "super", "switch", "this", "throw", "true", "try", "typeof", "var",
    "void", "while", "with", "yield", "undefined", "arguments", "eval",
])


def is_valid_identifier(name: str) -> bool:
    return bool(_IDENTIFIER_RE.match(name)) and name not in RESERVED_WORDS


def find_available_identifier(requested: str, used: AbstractSet[str]) -> str:
    """
    Return `requested` if it is free, otherwise the first free `requested$N`.

    Examples:
        find_available_identifier('util', set()) → 'util'
        find_available_identifier('util', {'util'}) → 'util$0'
        find_available_identifier('util', {'util', 'util$0'}) → 'util$1'
    """
    if requested not in used and requested not in RESERVED_WORDS:
        return requested
    suffix = 0
    while f"{requested}${suffix}" in used:
        suffix += 1
    return f"{requested}${suffix}"


def allocate_identifier(requested: str, used: set) -> str:
    """find_available_identifier that also records the chosen name as used."""
    name = find_available_identifier(requested, used)
    used.add(name)
    return name


def dash_to_camel_case(name: str) -> str:
    return _DASH_LOWER_RE.sub(lambda m: m.group(1).upper(), name)


def get_module_id(url: str) -> str:
    """
    Name used for a whole-module namespace import of url.

    Examples:
        get_module_id('./foo/paper-button.js') → '$$paperButton'
    """
    base_name = posixpath.basename(url)
    main_name = base_name.rsplit(".", 1)[0] if "." in base_name else base_name
    return "$$" + _NON_IDENTIFIER_CHAR_RE.sub("_", dash_to_camel_case(main_name))


def get_setter_name(member_path: Sequence[str]) -> str:
    """
    Dotted name of the setter for a member path.

    Examples:
        get_setter_name(['Polymer', 'foo', 'bar']) → 'Polymer.foo.setBar'
    """
    last = member_path[-1]
    setter = "set" + last[:1].upper() + last[1:]
    return ".".join(list(member_path[:-1]) + [setter])
