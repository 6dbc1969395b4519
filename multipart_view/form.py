from __future__ import annotations

import logging
from numbers import Number
from typing import TYPE_CHECKING

from .exceptions import FormParserError
from .multipart import MultipartParser, boundary_from_content_type

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable
    from typing import Any, TypedDict, Union

    from .cursor import Buffer
    from .multipart import Entry

    class FormParserConfig(TypedDict, total=False):
        MAX_BODY_SIZE: float
        DEFAULT_FILE_CONTENT_TYPE: bytes

    OnFieldCallback = Callable[["Field"], None]
    OnFileCallback = Callable[["File"], None]
    BytesLike = Union[bytes, memoryview]

# Get logger for this module.
logger = logging.getLogger(__name__)


def _short_repr(value: BytesLike | None) -> str:
    if value is None:
        return "None"
    value = bytes(value)
    if len(value) > 97:
        return repr(value[:97])[:-1] + "...'"
    return repr(value)


class Field:
    """A form field: a part without a ``filename``.

    ``field_name`` and ``value`` are kept exactly as given, so fields built
    from an :class:`~multipart_view.multipart.Entry` are views into the body.
    """

    def __init__(self, name: BytesLike, value: BytesLike = b"") -> None:
        self._name = name
        self._value = value

    @classmethod
    def from_entry(cls, entry: Entry) -> Field:
        return cls(entry.name, entry.value)

    @property
    def field_name(self) -> BytesLike:
        return self._name

    @property
    def value(self) -> BytesLike:
        return self._value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Field):
            return self.field_name == other.field_name and self.value == other.value
        else:
            return NotImplemented

    def __repr__(self) -> str:
        return "%s(field_name=%s, value=%s)" % (
            self.__class__.__name__,
            _short_repr(self.field_name),
            _short_repr(self.value),
        )


class File:
    """An uploaded file: a part with a ``filename``.

    :param file_name: The ``filename`` from the part's headers.

    :param field_name: The ``name`` from the part's headers.

    :param value: The file's contents.

    :param content_type: The part's ``Content-Type``, if it had one.
    """

    def __init__(
        self,
        file_name: BytesLike | None,
        field_name: BytesLike | None = None,
        value: BytesLike = b"",
        content_type: BytesLike | None = None,
    ) -> None:
        self._file_name = file_name
        self._field_name = field_name
        self._value = value
        self._content_type = content_type

    @classmethod
    def from_entry(cls, entry: Entry, default_content_type: bytes | None = None) -> File:
        content_type = entry.content_type
        if content_type is None or not len(content_type):
            content_type = default_content_type
        return cls(entry.filename, entry.name, entry.value, content_type)

    @property
    def field_name(self) -> BytesLike | None:
        return self._field_name

    @property
    def file_name(self) -> BytesLike | None:
        return self._file_name

    @property
    def content_type(self) -> BytesLike | None:
        return self._content_type

    @property
    def value(self) -> BytesLike:
        return self._value

    @property
    def size(self) -> int:
        return len(self._value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, File):
            return (
                self.field_name == other.field_name
                and self.file_name == other.file_name
                and self.content_type == other.content_type
                and self.value == other.value
            )
        else:
            return NotImplemented

    def __repr__(self) -> str:
        return "%s(file_name=%s, field_name=%s, content_type=%s)" % (
            self.__class__.__name__,
            _short_repr(self.file_name),
            _short_repr(self.field_name),
            _short_repr(self.content_type),
        )


class FormParser:
    """This class is the all-in-one form parser.  Given all the information
    necessary to parse a ``multipart/form-data`` body, it will run the
    :class:`~multipart_view.multipart.MultipartParser` over the whole body and
    call ``on_field`` for every plain field and ``on_file`` for every part
    that has a ``filename``.

    Any parse error propagates out of :meth:`parse` unchanged, and no more
    parts are dispatched after it.

    :param content_type: The Content-Type of the incoming request, without
                         parameters.  Only ``multipart/form-data`` is
                         supported.

    :param on_field: Callback to call with each parsed field.

    :param on_file: Callback to call with each parsed file.

    :param on_end: An optional callback to call when all parts are parsed.

    :param boundary: The boundary, without the leading ``--``.

    :param FileClass: The class to use for files.  Defaults to :class:`File`.

    :param FieldClass: The class to use for fields.  Defaults to
                       :class:`Field`.

    :param config: Configuration to use for this FormParser.  The default
                   values are taken from the DEFAULT_CONFIG value, and then
                   any keys present in this dictionary will overwrite the
                   default values.
    """

    #: This is the default configuration for our form parser.
    #: Note: all sizes should be in bytes.
    DEFAULT_CONFIG: FormParserConfig = {
        "MAX_BODY_SIZE": float("inf"),
        # Files without a Content-Type header get this one.
        "DEFAULT_FILE_CONTENT_TYPE": b"text/plain",
    }

    def __init__(
        self,
        content_type: str,
        on_field: OnFieldCallback | None,
        on_file: OnFileCallback | None,
        on_end: Callable[[], None] | None = None,
        boundary: str | bytes | None = None,
        FileClass: type[File] = File,
        FieldClass: type[Field] = Field,
        config: dict[Any, Any] = {},
    ) -> None:
        self.logger = logging.getLogger(__name__)

        self.content_type = content_type
        self.boundary = boundary
        self.bytes_received = 0

        self.on_field = on_field
        self.on_file = on_file
        self.on_end = on_end

        self.FileClass = FileClass
        self.FieldClass = FieldClass

        # Set configuration options.
        self.config: FormParserConfig = self.DEFAULT_CONFIG.copy()
        self.config.update(config)  # type: ignore[typeddict-item]

        max_size = self.config["MAX_BODY_SIZE"]
        if not isinstance(max_size, Number) or max_size < 1:
            raise ValueError("MAX_BODY_SIZE must be a positive number, not %r" % max_size)

        if content_type != "multipart/form-data":
            self.logger.warning("Unknown Content-Type: %r", content_type)
            raise FormParserError(f"Unknown Content-Type: {content_type}")

        if boundary is None:
            self.logger.error("No boundary given")
            raise FormParserError("No boundary given")

    def parse(self, body: Buffer) -> int:
        """Parse a complete body and dispatch every part.

        Returns the number of parts found.
        """
        size = len(body)
        if size > self.config["MAX_BODY_SIZE"]:
            msg = "Body is %d bytes (max %d)" % (size, self.config["MAX_BODY_SIZE"])
            self.logger.warning(msg)
            raise FormParserError(msg)
        self.bytes_received += size

        # An empty request body has no parts.
        if not size:
            self.logger.debug("Empty body, no parts")
            if self.on_end is not None:
                self.on_end()
            return 0

        assert self.boundary is not None
        parser = MultipartParser(body, self.boundary)
        default_content_type = self.config["DEFAULT_FILE_CONTENT_TYPE"]

        count = 0
        for entry in parser:
            count += 1
            if entry.filename is None:
                field = self.FieldClass.from_entry(entry)
                if self.on_field is not None:
                    self.on_field(field)
            else:
                file = self.FileClass.from_entry(entry, default_content_type)
                if self.on_file is not None:
                    self.on_file(file)

        self.logger.debug("Parsed %d parts from %d bytes", count, size)
        if self.on_end is not None:
            self.on_end()
        return count

    def __repr__(self) -> str:
        return "%s(content_type=%r, boundary=%r)" % (
            self.__class__.__name__,
            self.content_type,
            self.boundary,
        )


def create_form_parser(
    headers: dict[str, Any],
    on_field: OnFieldCallback | None,
    on_file: OnFileCallback | None,
    config: dict[Any, Any] = {},
) -> FormParser:
    """This function is a helper function to aid in creating a FormParser
    instances.  Given a dictionary-like headers object, it will determine
    the correct information needed, instantiate a FormParser with the
    appropriate values and given callbacks, and then return the
    corresponding parser.

    :param headers: A dictionary-like object of HTTP headers.  The only
                    required header is Content-Type.

    :param on_field: Callback to call with each parsed field.

    :param on_file: Callback to call with each parsed file.

    :param config: Configuration variables to pass to the FormParser.
    """
    content_type: str | bytes | None = headers.get("Content-Type")
    if content_type is None:
        logger.warning("No Content-Type header given")
        raise ValueError("No Content-Type header given!")

    if isinstance(content_type, str):
        content_type = content_type.encode("utf-8")

    boundary = boundary_from_content_type(content_type)
    mime_type = content_type.split(b";", 1)[0].strip().lower().decode("latin-1")

    return FormParser(
        mime_type,
        on_field,
        on_file,
        boundary=bytes(boundary) if boundary is not None else None,
        config=config,
    )


def parse_form(
    headers: dict[str, Any],
    body: Buffer,
    on_field: OnFieldCallback | None,
    on_file: OnFileCallback | None,
    config: dict[Any, Any] = {},
) -> int:
    """This function is useful if you just want to parse a request body,
    given the request headers and the complete body.  It will create a
    FormParser, parse the whole body and call the given callbacks for every
    part.  Returns the number of parts found.

    :param headers: A dictionary-like object of HTTP headers.  The only
                    required header is Content-Type.

    :param body: The complete request body.

    :param on_field: Callback to call with each parsed field.

    :param on_file: Callback to call with each parsed file.

    :param config: Configuration variables to pass to the FormParser.
    """
    parser = create_form_parser(headers, on_field, on_file, config=config)
    return parser.parse(body)
