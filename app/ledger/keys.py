"""
Composite keys for the ledger.

A composite key is a type tag followed by one or more component strings:

    "\\x00" + esc(type_tag) + "\\x00" + esc(c1) + "\\x00" + esc(c2) + "\\x00" ...

``esc`` doubles the escape byte ``"\\x01"`` and replaces ``"\\x00"`` with
``"\\x01\\x02"``, so escaped text never contains the separator. Two distinct
``(type_tag, components)`` pairs therefore never produce the same key, and the
prefix of a tag matches only the keys carrying that tag.
"""
from typing import List, Sequence, Tuple

from app.core.exceptions import InvalidKeyError

SEPARATOR = "\x00"
ESCAPE = "\x01"


def _escape(text: str) -> str:
    return text.replace(ESCAPE, ESCAPE + ESCAPE).replace(SEPARATOR, ESCAPE + "\x02")


def _unescape(text: str) -> str:
    out = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != ESCAPE:
            out.append(ch)
            i += 1
            continue
        if i + 1 >= len(text):
            raise InvalidKeyError(f"dangling escape in key segment {text!r}")
        nxt = text[i + 1]
        if nxt == ESCAPE:
            out.append(ESCAPE)
        elif nxt == "\x02":
            out.append(SEPARATOR)
        else:
            raise InvalidKeyError(f"invalid escape sequence in key segment {text!r}")
        i += 2
    return "".join(out)


def composite_key_prefix(type_tag: str, components: Sequence[str] = ()) -> str:
    """Partial key shared by every key with ``type_tag`` and leading ``components``."""
    if not type_tag:
        raise InvalidKeyError("type tag must not be empty")
    parts = [_escape(type_tag)] + [_escape(c) for c in components]
    return SEPARATOR + SEPARATOR.join(parts) + SEPARATOR


def create_composite_key(type_tag: str, components: Sequence[str]) -> str:
    if not components:
        raise InvalidKeyError("a composite key needs at least one component")
    return composite_key_prefix(type_tag, components)


def split_composite_key(key: str) -> Tuple[str, List[str]]:
    if not key.startswith(SEPARATOR) or not key.endswith(SEPARATOR) or len(key) < 2:
        raise InvalidKeyError(f"not a composite key: {key!r}")
    segments = [_unescape(s) for s in key[1:-1].split(SEPARATOR)]
    return segments[0], segments[1:]
