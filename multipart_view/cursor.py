from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable
    from typing import Protocol, Union

    class SupportsFind(Protocol):
        def find(self, __sub: bytes, __start: int = ...) -> int: ...

        def __len__(self) -> int: ...

    Buffer = Union[bytes, bytearray, SupportsFind]


class Cursor:
    """A read position over an immutable byte buffer.

    The cursor also carries the boundary of the body being parsed.  The
    boundary travels with the cursor but is never part of the consumed bytes.

    Grammar rules look ahead with absolute offsets (:meth:`startswith`,
    :meth:`span_while`, :meth:`find`) and only ever commit forward with
    :meth:`advance_to`, so the position never moves backwards.

    :param data: The buffer to read from.  Anything with a ``find`` method and
                 the buffer protocol (``bytes``, ``bytearray``, ``mmap``) is
                 used as-is; other buffers are converted to ``bytes`` once.

    :param boundary: The boundary token, without the leading ``--``.
    """

    __slots__ = ("data", "view", "pos", "boundary")

    def __init__(self, data: Buffer, boundary: bytes = b"") -> None:
        if not hasattr(data, "find"):
            data = bytes(data)
        self.data = data
        self.view = memoryview(data)
        if self.view.ndim != 1 or self.view.itemsize != 1:
            self.view = self.view.cast("B")
        self.pos = 0
        self.boundary = boundary

    def __len__(self) -> int:
        return len(self.view)

    @property
    def remaining(self) -> memoryview:
        return self.view[self.pos :]

    def byte_at(self, at: int) -> int | None:
        """Return the byte at offset ``at``, or None past the end."""
        if at < len(self.view):
            return self.view[at]
        return None

    def startswith(self, literal: bytes, at: int | None = None, caseless: bool = False) -> bool:
        """Check whether ``literal`` occurs at offset ``at``.

        With ``caseless``, ``literal`` must already be lower-case.
        """
        start = self.pos if at is None else at
        end = start + len(literal)
        if end > len(self.view):
            return False
        if caseless:
            return self.view[start:end].tobytes().lower() == literal
        return self.view[start:end] == literal

    def span_while(self, predicate: Callable[[int], bool], at: int | None = None) -> int:
        """Return the offset of the first byte from ``at`` not matching
        ``predicate`` (or the end of the buffer).
        """
        i = self.pos if at is None else at
        view = self.view
        length = len(view)
        while i < length and predicate(view[i]):
            i += 1
        return i

    def find(self, needle: bytes, at: int | None = None) -> int:
        """Literal search from ``at``.  Returns an absolute offset or -1."""
        return self.data.find(needle, self.pos if at is None else at)

    def slice(self, start: int, end: int) -> memoryview:
        return self.view[start:end]

    def advance_to(self, pos: int) -> None:
        if pos < self.pos or pos > len(self.view):
            raise ValueError("Cannot move cursor from %d to %d" % (self.pos, pos))
        self.pos = pos

    def take_to(self, pos: int) -> memoryview:
        """Advance to ``pos`` and return the bytes consumed."""
        start = self.pos
        self.advance_to(pos)
        return self.view[start:pos]

    def __repr__(self) -> str:
        return "%s(pos=%d, length=%d, boundary=%r)" % (
            self.__class__.__name__,
            self.pos,
            len(self.view),
            self.boundary,
        )
