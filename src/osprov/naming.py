"""Unique server name generation."""

import getpass
import random
import socket
import string

NAME_SEPARATOR = "-"
MAX_NAME_LENGTH = 64
MAX_HOSTNAME_PIECE = 24
MAX_LOGIN_PIECE = 16
MAX_BASE_PIECE = 16
RANDOM_SUFFIX_LENGTH = 8

_BASE36 = string.digits + string.ascii_lowercase


def current_login() -> str:
    """Login name of the invoking user, "unknown" when it cannot be determined."""
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def random_suffix(length: int = RANDOM_SUFFIX_LENGTH) -> str:
    return "".join(random.choice(_BASE36) for _ in range(length))


def generate_name(base: str) -> str:
    """
    Generate what should be a unique server name.

    The name is ``<base>-<login>-<hostname>-<random>``, trimmed to at most 64
    characters by shortening the hostname, then the login, then the base.
    """
    pieces = [base, current_login(), socket.gethostname(), random_suffix()]

    while len(NAME_SEPARATOR.join(pieces)) > MAX_NAME_LENGTH:
        if len(pieces[2]) > MAX_HOSTNAME_PIECE:
            pieces[2] = pieces[2][:-1]
        elif len(pieces[1]) > MAX_LOGIN_PIECE:
            pieces[1] = pieces[1][:-1]
        elif len(pieces[0]) > MAX_BASE_PIECE:
            pieces[0] = pieces[0][:-1]
        else:
            # all pieces at their limits still exceed the maximum
            pieces[2] = pieces[2][:-1]

    return NAME_SEPARATOR.join(pieces)
