class FormParserError(ValueError):
    """Base error class for our form parser."""


class ParseError(FormParserError):
    """This exception (or a subclass) is raised when there is an error while
    parsing something.
    """

    #: This is the offset in the input buffer at which the failing rule
    #: stopped.  It will be -1 if not specified.
    offset = -1


class MultipartParseError(ParseError):
    """This is a specific error that is raised when the MultipartParser detects
    an error while parsing.
    """


class MissingNameError(MultipartParseError):
    """A ``Content-Disposition: form-data`` header had no ``name`` field."""


class InvalidBoundaryError(MultipartParseError):
    """The bytes before a boundary occurrence did not end in CRLF."""


class MissingContentDispositionError(MultipartParseError):
    """A part's header block ended without a usable ``Content-Disposition``."""
