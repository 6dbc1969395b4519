from __future__ import annotations

import logging
import os
import unittest

import pytest

from multipart_view.exceptions import FormParserError, InvalidBoundaryError, MissingNameError
from multipart_view.form import Field, File, FormParser, create_form_parser, parse_form

# Get the current directory for our later test cases.
curr_dir = os.path.abspath(os.path.dirname(__file__))
http_tests_dir = os.path.join(curr_dir, "test_data", "http")


def load(name: str) -> bytes:
    with open(os.path.join(http_tests_dir, name + ".http"), "rb") as f:
        return f.read()


class TestField(unittest.TestCase):
    def setUp(self) -> None:
        self.f = Field(b"foo", b"test123")

    def test_name(self) -> None:
        self.assertEqual(self.f.field_name, b"foo")

    def test_data(self) -> None:
        self.assertEqual(self.f.value, b"test123")

    def test_equality(self) -> None:
        self.assertEqual(Field(b"name", b"value"), Field(memoryview(b"name"), memoryview(b"value")))

    def test_equality_with_other(self) -> None:
        f = Field(b"foo", b"bar")
        self.assertFalse(f == b"foo")
        self.assertFalse(b"foo" == f)

    def test_repr(self) -> None:
        self.assertEqual(repr(self.f), "Field(field_name=b'foo', value=b'test123')")

    def test_long_repr(self) -> None:
        f = Field(b"foo", b"x" * 200)
        self.assertEqual(repr(f), "Field(field_name=b'foo', value=b'" + "x" * 97 + "...')")


def test_file_content_type() -> None:
    """Test that content_type is properly stored and accessible."""
    file_with_ct = File(b"test.png", b"image", b"\x89PNG", content_type=b"image/png")
    assert file_with_ct.content_type == b"image/png"
    assert file_with_ct.file_name == b"test.png"
    assert file_with_ct.field_name == b"image"
    assert file_with_ct.size == 4

    # Test without content_type (defaults to None)
    file_without_ct = File(b"test.txt", b"document")
    assert file_without_ct.content_type is None
    assert file_without_ct.value == b""


def test_file_repr_with_content_type() -> None:
    """Test that the repr includes content_type."""
    repr_str = repr(File(b"test.png", b"image", content_type=b"image/png"))
    assert "content_type=b'image/png'" in repr_str
    assert "file_name=b'test.png'" in repr_str
    assert "field_name=b'image'" in repr_str

    assert "content_type=None" in repr(File(b"test.txt", b"doc"))


class TestFormParser(unittest.TestCase):
    def make(self, boundary: str | bytes, config: dict = {}) -> None:
        self.ended = False
        self.files: list[File] = []
        self.fields: list[Field] = []

        def on_field(f: Field) -> None:
            self.fields.append(f)

        def on_file(f: File) -> None:
            self.files.append(f)

        def on_end() -> None:
            self.ended = True

        # Get a form-parser instance.
        self.f = FormParser("multipart/form-data", on_field, on_file, on_end, boundary=boundary, config=config)

    def test_fields_and_files(self) -> None:
        data = load("single_field_single_file")
        self.make("boundary")

        self.assertEqual(self.f.parse(data), 2)
        self.assertTrue(self.ended)
        self.assertEqual(self.f.bytes_received, len(data))

        self.assertEqual(self.fields, [Field(b"field", b"test1")])
        self.assertEqual(self.files, [File(b"file.txt", b"file", b"test2", b"text/plain")])

        # Everything handed out is a view into the body.
        self.assertIs(self.fields[0].value.obj, data)  # type: ignore[union-attr]
        self.assertIs(self.files[0].value.obj, data)  # type: ignore[union-attr]

    def test_file_without_content_type(self) -> None:
        data = (
            b"--b\r\nContent-Disposition: form-data; name=up; filename=a.bin\r\n\r\n"
            b"abc\r\n--b\r\nContent-Disposition: form-data; name=up2; filename=b.bin\r\n"
            b"Content-Type: \r\n\r\nxyz\r\n--b--\r\n"
        )
        self.make("b")
        self.f.parse(data)

        self.assertEqual([f.content_type for f in self.files], [b"text/plain", b"text/plain"])

    def test_default_file_content_type_config(self) -> None:
        data = b"--b\r\nContent-Disposition: form-data; name=up; filename=a.bin\r\n\r\nabc\r\n--b--\r\n"
        self.make("b", config={"DEFAULT_FILE_CONTENT_TYPE": b"application/octet-stream"})
        self.f.parse(data)

        self.assertEqual(self.files[0].content_type, b"application/octet-stream")

    def test_empty_body(self) -> None:
        self.make("X-BOUNDARY")
        self.assertEqual(self.f.parse(load("empty_body")), 0)
        self.assertTrue(self.ended)

    def test_zero_length_body(self) -> None:
        self.make("b")
        self.assertEqual(self.f.parse(b""), 0)
        self.assertTrue(self.ended)
        self.assertEqual(self.fields, [])
        self.assertEqual(self.files, [])

    def test_max_body_size(self) -> None:
        data = load("single_field_single_file")
        self.make("boundary", config={"MAX_BODY_SIZE": 10})

        with self.assertRaises(FormParserError):
            self.f.parse(data)
        self.assertEqual(self.fields, [])
        self.assertFalse(self.ended)

    def test_invalid_max_size(self) -> None:
        with self.assertRaises(ValueError):
            self.make("boundary", config={"MAX_BODY_SIZE": 0})

    def test_error_stops_dispatch(self) -> None:
        self.make("X-BOUNDARY")

        with self.assertRaises(InvalidBoundaryError):
            self.f.parse(load("no_crlf_before_boundary"))

        # The part before the bad one was already handed out.
        self.assertEqual([bytes(f.field_name) for f in self.fields], [b"ok"])  # type: ignore[arg-type]
        self.assertFalse(self.ended)

    def test_missing_name(self) -> None:
        self.make("X-BOUNDARY")
        with self.assertRaises(MissingNameError):
            self.f.parse(load("missing_name"))

    def test_no_callbacks(self) -> None:
        f = FormParser("multipart/form-data", None, None, boundary="boundary")
        self.assertEqual(f.parse(load("single_field_single_file")), 2)

    def test_custom_classes(self) -> None:
        class MyField(Field):
            pass

        class MyFile(File):
            pass

        fields: list[Field] = []
        files: list[File] = []
        f = FormParser(
            "multipart/form-data",
            fields.append,
            files.append,
            boundary="boundary",
            FileClass=MyFile,
            FieldClass=MyField,
        )
        f.parse(load("single_field_single_file"))

        self.assertIsInstance(fields[0], MyField)
        self.assertIsInstance(files[0], MyFile)

    def test_bad_content_type(self) -> None:
        with self.assertRaises(FormParserError):
            FormParser("application/x-www-form-urlencoded", None, None, boundary="b")

    def test_no_boundary(self) -> None:
        with self.assertRaises(FormParserError):
            FormParser("multipart/form-data", None, None)

    def test_repr(self) -> None:
        self.make("boundary")
        self.assertEqual(repr(self.f), "FormParser(content_type='multipart/form-data', boundary='boundary')")


def test_create_form_parser() -> None:
    parser = create_form_parser({"Content-Type": "multipart/form-data; boundary=boundary"}, None, None)
    assert parser.content_type == "multipart/form-data"
    assert parser.boundary == b"boundary"


def test_create_form_parser_bytes_header() -> None:
    parser = create_form_parser({"Content-Type": b'Multipart/Form-Data; boundary="X-BOUNDARY"'}, None, None)
    assert parser.content_type == "multipart/form-data"
    assert parser.boundary == b"X-BOUNDARY"


def test_create_form_parser_no_content_type() -> None:
    with pytest.raises(ValueError):
        create_form_parser({}, None, None)


def test_create_form_parser_no_boundary() -> None:
    with pytest.raises(FormParserError, match="No boundary given"):
        create_form_parser({"Content-Type": "multipart/form-data"}, None, None)


def test_create_form_parser_other_content_type(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="multipart_view.form"):
        with pytest.raises(FormParserError, match="Unknown Content-Type"):
            create_form_parser({"Content-Type": "application/json"}, None, None)
    assert "Unknown Content-Type" in caplog.text


def test_parse_form() -> None:
    fields: list[Field] = []
    files: list[File] = []

    count = parse_form(
        {"Content-Type": "multipart/form-data; boundary=--BoundaryjXo5N4HEAXWcKrw7"},
        load("boundary_in_headers_dashes"),
        fields.append,
        files.append,
    )

    assert count == 3
    assert [(bytes(f.field_name), bytes(f.value)) for f in fields] == [  # type: ignore[arg-type]
        (b"field1", b"value1"),
        (b"field2", b"value2"),
    ]
    assert len(files) == 1
    assert files[0].file_name == b"dummy.txt"
    assert files[0].content_type == b"foo"
    assert files[0].value == b"Hello World!"


def test_parse_error_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="multipart_view"):
        with pytest.raises(FormParserError):
            parse_form(
                {"Content-Type": "multipart/form-data; boundary=X-BOUNDARY"},
                load("missing_content_disposition"),
                None,
                None,
            )
    assert "content-disposition is missing" in caplog.text
