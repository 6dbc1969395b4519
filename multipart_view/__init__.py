# This is the canonical package information.
__author__ = "Andrew Dunham"
__license__ = "Apache"

from ._version import __version__
from .exceptions import (
    FormParserError,
    InvalidBoundaryError,
    MissingContentDispositionError,
    MissingNameError,
    MultipartParseError,
    ParseError,
)
from .form import Field, File, FormParser, create_form_parser, parse_form
from .multipart import Entry, EntryInfo, MultipartParser, boundary_from_content_type

__all__ = (
    "__version__",
    "Entry",
    "EntryInfo",
    "Field",
    "File",
    "FormParser",
    "FormParserError",
    "InvalidBoundaryError",
    "MissingContentDispositionError",
    "MissingNameError",
    "MultipartParseError",
    "MultipartParser",
    "ParseError",
    "boundary_from_content_type",
    "create_form_parser",
    "parse_form",
)
