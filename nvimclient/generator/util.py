"""Naming helpers for generated methods."""

import re

_WORD = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+")


def to_camel_case(name: str) -> str:
    """Convert ``name`` to camelCase.

    Words are split on separators, case changes and digit runs, then joined
    with the first word lower-cased and every later word capitalized:
    ``buf_get_lines`` -> ``bufGetLines``.
    """
    words = _WORD.findall(name)
    if not words:
        return ""
    first, *rest = words
    return first.lower() + "".join(word[:1].upper() + word[1:].lower() for word in rest)
