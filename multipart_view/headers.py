"""The header block of a single part.

Only two headers are understood: ``Content-Disposition`` (for the ``name``
and ``filename`` fields) and ``Content-Type`` (captured verbatim).  Any other
header must still be well formed, but its value is discarded.

All values returned from here are views into the parser's buffer.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import TYPE_CHECKING

from .exceptions import MissingContentDispositionError, MissingNameError, MultipartParseError
from .lexical import (
    SEMICOLON,
    find_crlf,
    is_token,
    is_visible_ascii,
    match_line_end,
    match_quoted_string,
    skip_ws,
    trim,
)

if TYPE_CHECKING:  # pragma: no cover
    from typing import Optional, Tuple, Union

    from .cursor import Cursor

    HeaderValue = Union[memoryview, Tuple[memoryview, Optional[memoryview]], None]

logger = logging.getLogger(__name__)

COLON = b":"[0]
EQUALS = b"="[0]

CONTENT_DISPOSITION = b"content-disposition:"
CONTENT_TYPE = b"content-type:"
FORM_DATA = b"form-data"


class FieldKind(IntEnum):
    """The fields of a ``Content-Disposition`` header that we care about."""

    FORM_DATA = 0
    NAME = 1
    FILENAME = 2
    OTHER = 3


class HeaderKind(IntEnum):
    CONTENT_DISPOSITION = 0
    CONTENT_TYPE = 1
    OTHER = 2


def _error(cls: type[MultipartParseError], msg: str, offset: int) -> MultipartParseError:
    logger.warning(msg)
    e = cls(msg)
    e.offset = offset
    return e


def is_value_char(c: int) -> bool:
    return is_visible_ascii(c) and c != SEMICOLON


def match_value(cursor: Cursor, at: int) -> tuple[memoryview, int] | None:
    """Match a quoted or bare field value at ``at``.

    Returns the trimmed value and the offset after it, or None.
    """
    quoted = match_quoted_string(cursor, at)
    if quoted is not None:
        start, end, after = quoted
        return trim(cursor.slice(start, end)), skip_ws(cursor, after)

    end = cursor.span_while(is_value_char, at)
    if end > at:
        return trim(cursor.slice(at, end)), end

    return None


def parse_field(cursor: Cursor) -> tuple[FieldKind, memoryview | None]:
    """Parse one ``;``-separated field of a ``Content-Disposition`` value."""
    i = skip_ws(cursor)

    if cursor.startswith(FORM_DATA, i):
        cursor.advance_to(i + len(FORM_DATA))
        return FieldKind.FORM_DATA, None

    for keyword, kind in ((b"name", FieldKind.NAME), (b"filename", FieldKind.FILENAME)):
        if not cursor.startswith(keyword, i):
            continue
        j = skip_ws(cursor, i + len(keyword))
        if cursor.byte_at(j) != EQUALS:
            continue
        matched = match_value(cursor, skip_ws(cursor, j + 1))
        if matched is not None:
            value, after = matched
            cursor.advance_to(after)
            return kind, value

    # Anything else (e.g. ``size=3`` or ``filename*=...``) is skipped.
    cursor.advance_to(cursor.span_while(is_value_char, i))
    return FieldKind.OTHER, None


def parse_content_disposition(cursor: Cursor) -> tuple[memoryview, memoryview | None]:
    """Parse the value of a ``Content-Disposition`` header.

    ``name`` and ``filename`` only count once the ``form-data`` marker has been
    seen in the same list.  If one of them appears more than once, the last
    one wins.
    """
    name = None
    filename = None
    seen_form_data = False

    while True:
        kind, value = parse_field(cursor)
        if kind == FieldKind.FORM_DATA:
            seen_form_data = True
        elif kind == FieldKind.NAME and seen_form_data:
            name = value
        elif kind == FieldKind.FILENAME and seen_form_data:
            filename = value

        sep = skip_ws(cursor)
        if cursor.byte_at(sep) != SEMICOLON:
            break
        cursor.advance_to(skip_ws(cursor, sep + 1))

    if name is None:
        raise _error(
            MissingNameError,
            "name field is missing from content-disposition header (%d)" % cursor.pos,
            cursor.pos,
        )

    return name, filename


def parse_content_type(cursor: Cursor) -> memoryview:
    end = cursor.span_while(is_visible_ascii)
    if end == cursor.pos:
        raise _error(MultipartParseError, "Empty Content-Type header (%d)" % cursor.pos, cursor.pos)
    return trim(cursor.take_to(end))


def parse_header(cursor: Cursor) -> tuple[HeaderKind, HeaderValue]:
    """Parse a single header line, including its trailing CRLF."""
    i = skip_ws(cursor)

    if cursor.startswith(CONTENT_DISPOSITION, i, caseless=True):
        cursor.advance_to(i + len(CONTENT_DISPOSITION))
        kind, value = HeaderKind.CONTENT_DISPOSITION, parse_content_disposition(cursor)

    elif cursor.startswith(CONTENT_TYPE, i, caseless=True):
        cursor.advance_to(i + len(CONTENT_TYPE))
        kind, value = HeaderKind.CONTENT_TYPE, parse_content_type(cursor)

    else:
        # No whitespace is allowed between the field-name and the colon
        # (RFC 7230, section 3.2.4).
        end = cursor.span_while(is_token)
        if end == cursor.pos or cursor.byte_at(end) != COLON:
            raise _error(MultipartParseError, "Invalid header field name (%d)" % end, end)

        crlf = find_crlf(cursor, end + 1)
        if crlf < 0:
            raise _error(MultipartParseError, "Did not find CRLF at end of header (%d)" % end, end)

        cursor.advance_to(crlf)
        kind, value = HeaderKind.OTHER, None

    line_end = match_line_end(cursor)
    if line_end < 0:
        raise _error(
            MultipartParseError,
            "Did not find CRLF at end of header (%d)" % cursor.pos,
            cursor.pos,
        )
    cursor.advance_to(line_end)

    return kind, value


def parse_header_block(cursor: Cursor) -> tuple[memoryview, memoryview | None, memoryview | None]:
    """Parse headers up to and including the blank line that ends them.

    Returns ``(name, filename, content_type)``, folded in header order.
    """
    if match_line_end(cursor) >= 0:
        raise _error(
            MissingContentDispositionError,
            "Part has no headers (%d)" % cursor.pos,
            cursor.pos,
        )

    headers = []
    while True:
        headers.append(parse_header(cursor))

        end = match_line_end(cursor)
        if end >= 0:
            cursor.advance_to(end)
            break

    name = None
    filename = None
    content_type = None
    for kind, value in headers:
        if kind == HeaderKind.CONTENT_DISPOSITION:
            name, filename = value  # type: ignore[misc]
        elif kind == HeaderKind.CONTENT_TYPE:
            content_type = value

    if name is None:
        raise _error(
            MissingContentDispositionError,
            "content-disposition is missing from headers (%d)" % cursor.pos,
            cursor.pos,
        )

    return name, filename, content_type  # type: ignore[return-value]
