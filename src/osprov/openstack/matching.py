"""Image and flavor lookup by id, exact name or regular expression."""

import re
from collections.abc import Iterable
from typing import Any, Optional

REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.DOTALL, "x": re.VERBOSE}

_REGEX_LITERAL = re.compile(r"^/(?P<pattern>.*)/(?P<flags>[a-z]*)$", re.DOTALL)


def compile_reference(reference: str) -> re.Pattern[str]:
    """
    Compile a ``/pattern/flags`` reference into a regular expression.

    Supported flags are ``i`` (ignore case), ``m`` (dot matches newline) and
    ``x`` (verbose). A reference without a closing slash is treated as the
    pattern itself.

    Raises:
        ValueError: If the flags or the pattern are invalid
    """
    match = _REGEX_LITERAL.match(reference)
    pattern = match.group("pattern") if match else reference[1:]

    flags = 0
    for flag in match.group("flags") if match else "":
        if flag not in REGEX_FLAGS:
            raise ValueError(f"Unsupported regex flag '{flag}' in {reference}")
        flags |= REGEX_FLAGS[flag]

    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise ValueError(f"Invalid regex {reference}: {e}") from e


def find_matching(collection: Iterable[Any], name: Any) -> Optional[Any]:
    """
    Find the first item in ``collection`` matching ``name``.

    A name starting with ``/`` is a regex searched against each item's name.
    Otherwise an exact id match anywhere in the collection wins over an exact
    name match.

    Args:
        collection: Items exposing ``id`` and ``name`` (may be a lazy listing)
        name: Reference to look for

    Returns:
        The matching item, or None
    """
    name = str(name)
    items = list(collection)

    if name.startswith("/"):
        regex = compile_reference(name)
        for single in items:
            if single.name is not None and regex.search(single.name):
                return single
        return None

    for single in items:
        if single.id == name:
            return single

    for single in items:
        if single.name == name:
            return single

    return None
