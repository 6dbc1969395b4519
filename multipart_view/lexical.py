"""Character classes and small scanners shared by the header grammar."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .cursor import Cursor

# Get constants.  Iterating over bytes gives you integers, so we save these.
CR = b"\r"[0]
LF = b"\n"[0]
TAB = b"\t"[0]
SPACE = b" "[0]
QUOTE = b'"'[0]
BACKSLASH = b"\\"[0]
SEMICOLON = b";"[0]
NULL = b"\x00"[0]
DEL = 127

CRLF = b"\r\n"

# fmt: off
# These are the separators from section 2.2 of RFC 2616; together with control
# and non-ASCII bytes they are not allowed in a header field-name.
SEPARATOR_CHARS_SET = frozenset(b'()<>@,;:\\"/[]?={} ')
# fmt: on

TRIM_CHARS_SET = frozenset((SPACE, BACKSLASH, QUOTE))


def is_horizontal_space(c: int) -> bool:
    return c == SPACE or c == TAB


def is_whitespace(c: int) -> bool:
    return c == SPACE or c == TAB or c == CR or c == LF


def is_visible_ascii(c: int) -> bool:
    # Bytes above 127 are obs-text in RFC 7230 and allowed in field values.
    return (c >= 32 and c != DEL) or c == TAB


def is_token(c: int) -> bool:
    return 32 <= c < DEL and c not in SEPARATOR_CHARS_SET


def is_quoted_char(c: int) -> bool:
    return c != QUOTE and c != CR and c != LF and c != NULL


def trim(value: memoryview) -> memoryview:
    """Strip spaces, backslashes and double quotes from both ends of a value.

    Quoted and bare values go through this alike, so ``"foo"`` and ``foo``
    normalize the same way.  The result is a view of the same buffer.
    """
    start = 0
    end = len(value)

    while start < end and value[start] in TRIM_CHARS_SET:
        start += 1

    while end > start and value[end - 1] in TRIM_CHARS_SET:
        end -= 1

    return value[start:end]


def skip_ws(cursor: Cursor, at: int | None = None) -> int:
    """Offset just past any spaces and tabs at ``at``."""
    return cursor.span_while(is_horizontal_space, at)


def skip_whitespace(cursor: Cursor, at: int | None = None) -> int:
    """Offset just past any spaces, tabs, CRs and LFs at ``at``."""
    return cursor.span_while(is_whitespace, at)


def match_crlf(cursor: Cursor, at: int | None = None) -> int:
    """Offset past a CRLF at ``at``, or -1 if there is none."""
    start = cursor.pos if at is None else at
    if cursor.startswith(CRLF, start):
        return start + 2
    return -1


def match_line_end(cursor: Cursor, at: int | None = None) -> int:
    """Offset past optional horizontal whitespace and a CRLF, or -1."""
    return match_crlf(cursor, skip_ws(cursor, at))


def match_quoted_string(cursor: Cursor, at: int | None = None) -> tuple[int, int, int] | None:
    """Match ``"..."`` at ``at``.

    Returns ``(start, end, next)`` where ``start:end`` is the content between
    the quotes and ``next`` is the offset after the closing quote.  Returns
    None if there is no complete quoted string.
    """
    i = cursor.pos if at is None else at
    if cursor.byte_at(i) != QUOTE:
        return None
    end = cursor.span_while(is_quoted_char, i + 1)
    if cursor.byte_at(end) != QUOTE:
        return None
    return i + 1, end, end + 1


def find_crlf(cursor: Cursor, at: int | None = None) -> int:
    """Offset of the next CRLF at or after ``at``, or -1."""
    return cursor.find(CRLF, at)
