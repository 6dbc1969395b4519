from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .cursor import Cursor
from .exceptions import InvalidBoundaryError, MultipartParseError
from .headers import EQUALS, is_value_char, parse_header_block
from .lexical import (
    CRLF,
    SEMICOLON,
    match_line_end,
    match_quoted_string,
    skip_whitespace,
    skip_ws,
    trim,
)

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterator
    from typing import NoReturn

    from .cursor import Buffer

# Get logger for this module.
logger = logging.getLogger(__name__)

END_MARKER = b"--"
MULTIPART_FORM_DATA = b"multipart/form-data"
BOUNDARY = b"boundary"


def _preview(value: memoryview | None) -> str:
    if value is None:
        return "None"
    if len(value) > 97:
        return repr(value[:97].tobytes())[:-1] + "...'"
    return repr(value.tobytes())


class EntryInfo:
    """Metadata of a single part, taken from its headers.

    :param name: The ``name`` field of the ``Content-Disposition`` header.

    :param filename: The ``filename`` field of the ``Content-Disposition``
                     header, if any.

    :param content_type: The value of the ``Content-Type`` header, if any.
    """

    __slots__ = ("name", "filename", "content_type")

    def __init__(
        self, name: memoryview, filename: memoryview | None = None, content_type: memoryview | None = None
    ) -> None:
        self.name = name
        self.filename = filename
        self.content_type = content_type

    def __eq__(self, other: object) -> bool:
        if isinstance(other, EntryInfo):
            return (
                self.name == other.name
                and self.filename == other.filename
                and self.content_type == other.content_type
            )
        else:
            return NotImplemented

    def __repr__(self) -> str:
        return "%s(name=%s, filename=%s, content_type=%s)" % (
            self.__class__.__name__,
            _preview(self.name),
            _preview(self.filename),
            _preview(self.content_type),
        )


class Entry:
    """A single part of a ``multipart/form-data`` body.

    Every attribute is a :class:`memoryview` into the buffer the parser was
    created with; nothing is copied.  An entry stays valid for as long as
    that buffer does, independently of the parser that produced it.  Use
    ``bytes(entry.value)`` to take a copy that outlives the buffer.
    """

    __slots__ = ("info", "_value")

    def __init__(self, info: EntryInfo, value: memoryview) -> None:
        self.info = info
        self._value = value

    @property
    def name(self) -> memoryview:
        """The ``name`` field of the ``Content-Disposition`` header."""
        return self.info.name

    @property
    def filename(self) -> memoryview | None:
        """The ``filename`` field of the ``Content-Disposition`` header."""
        return self.info.filename

    @property
    def content_type(self) -> memoryview | None:
        """The ``Content-Type`` header of this part."""
        return self.info.content_type

    @property
    def value(self) -> memoryview:
        """The raw content of this part."""
        return self._value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Entry):
            return self.info == other.info and self.value == other.value
        else:
            return NotImplemented

    def __repr__(self) -> str:
        return "%s(name=%s, filename=%s, content_type=%s, value=%s)" % (
            self.__class__.__name__,
            _preview(self.name),
            _preview(self.filename),
            _preview(self.content_type),
            _preview(self.value),
        )


class MultipartParser:
    """This class is a zero-copy parser for ``multipart/form-data`` bodies.
    The whole body must already be in memory.  Each call to
    :meth:`parse_next` moves through one part and returns it::

        parser = MultipartParser(body, "X-BOUNDARY")
        for entry in parser:
            print(bytes(entry.name), len(entry.value))

    Errors are raised as subclasses of
    :class:`~multipart_view.exceptions.MultipartParseError`.  The parser does
    not try to recover from them; the cursor is left where the failing rule
    stopped, so callers should stop parsing after an error.

    A parser must only be used from one thread at a time.

    :param data: The complete body.  It must not change while the parser, or
                 any entry it returned, is in use.  ``bytes``, ``bytearray``
                 and ``mmap`` are used without copying; a ``memoryview`` is
                 copied to ``bytes`` once, so entries will not be views of
                 the caller's memoryview.

    :param boundary: The boundary from the ``Content-Type`` header, without
                     the leading ``--``.
    """

    def __init__(self, data: Buffer, boundary: str | bytes) -> None:
        self.logger = logging.getLogger(__name__)

        if isinstance(boundary, str):
            boundary = boundary.encode("utf-8")
        self.boundary = boundary
        self.cursor = Cursor(data, boundary)

    def _raise(self, cls: type[MultipartParseError], msg: str) -> NoReturn:
        self.logger.warning(msg)
        e = cls(msg)
        e.offset = self.cursor.pos
        raise e

    def parse_next(self) -> Entry | None:
        """Parse the next part.

        Returns the :class:`Entry`, or None once the closing boundary has been
        reached.  Raises a
        :class:`~multipart_view.exceptions.MultipartParseError` for a
        malformed body.
        """
        cursor = self.cursor
        boundary = self.boundary

        # Skip any preamble, then move past the next boundary.
        found = cursor.find(boundary, skip_whitespace(cursor))
        if found < 0:
            self._raise(MultipartParseError, "Did not find boundary %r after %d" % (boundary, cursor.pos))
        cursor.advance_to(found + len(boundary))

        # A boundary followed by two dashes closes the body.
        if cursor.startswith(END_MARKER):
            cursor.advance_to(cursor.pos + len(END_MARKER))
            self.logger.debug("Found closing boundary at %d", found)
            return None

        # Trailing spaces and tabs are allowed on the boundary line.
        line_end = match_line_end(cursor)
        if line_end < 0:
            self._raise(MultipartParseError, "Did not find CRLF at end of boundary (%d)" % cursor.pos)
        cursor.advance_to(line_end)

        name, filename, content_type = parse_header_block(cursor)
        info = EntryInfo(name, filename, content_type)
        value = self._parse_value()

        self.logger.debug("Parsed part ending at %d (%d bytes)", cursor.pos, len(value))
        return Entry(info, value)

    def _parse_value(self) -> memoryview:
        cursor = self.cursor
        start = cursor.pos

        found = cursor.find(self.boundary)
        if found < 0:
            self._raise(MultipartParseError, "Did not find boundary after part data (%d)" % start)

        # Leave the cursor on the boundary so the next call sees it again.
        cursor.advance_to(found)
        end = found

        # The dashes in front of the boundary are not part of the value.
        if end - start >= 2 and cursor.startswith(END_MARKER, end - 2):
            end -= 2

        if end - start < 2 or not cursor.startswith(CRLF, end - 2):
            self._raise(InvalidBoundaryError, "Invalid boundary position, CRLF not found (%d)" % end)

        return cursor.slice(start, end - 2)

    def __iter__(self) -> Iterator[Entry]:
        while True:
            entry = self.parse_next()
            if entry is None:
                return
            yield entry

    def __repr__(self) -> str:
        return "%s(boundary=%r)" % (self.__class__.__name__, self.boundary)


def boundary_from_content_type(value: str | bytes) -> memoryview | None:
    """Find the boundary in a ``Content-Type`` header value.

    The value must be ``multipart/form-data`` (in any case) followed by a
    ``;`` and a ``boundary`` parameter, which may be quoted.  Returns the
    boundary as a view into ``value``, or None if it isn't there.

        >>> bytes(boundary_from_content_type(b"multipart/form-data; boundary=X-BOUNDARY"))
        b'X-BOUNDARY'
    """
    if isinstance(value, str):
        value = value.encode("utf-8")

    cursor = Cursor(value)

    i = skip_ws(cursor)
    if not cursor.startswith(MULTIPART_FORM_DATA, i, caseless=True):
        return None

    i = skip_ws(cursor, i + len(MULTIPART_FORM_DATA))
    if cursor.byte_at(i) != SEMICOLON:
        return None

    # Find the parameter name without caring about case; the value itself is
    # sliced out of the original buffer.
    lowered = Cursor(cursor.view.tobytes().lower())
    found = lowered.find(BOUNDARY, i + 1)
    while found >= 0:
        j = skip_ws(cursor, found + len(BOUNDARY))
        if cursor.byte_at(j) == EQUALS:
            return _boundary_value(cursor, skip_ws(cursor, j + 1))
        found = lowered.find(BOUNDARY, found + len(BOUNDARY))

    logger.debug("No boundary parameter in Content-Type %r", cursor.view.tobytes())
    return None


def _boundary_value(cursor: Cursor, at: int) -> memoryview | None:
    quoted = match_quoted_string(cursor, at)
    if quoted is not None:
        start, end, _ = quoted
        value = trim(cursor.slice(start, end))
        return value if len(value) else None

    # A bare boundary ends at ";", which RFC 2046 does not allow inside one.
    end = cursor.span_while(is_value_char, at)
    if end == at:
        return None
    value = trim(cursor.slice(at, end))
    return value if len(value) else None
