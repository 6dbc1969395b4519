import sys
from unittest.mock import Mock

import atheris
from helpers import EnhancedDataProvider

with atheris.instrument_imports():
    from multipart_view.exceptions import FormParserError
    from multipart_view.form import parse_form

on_field = Mock()
on_file = Mock()


def parse_random_content_type(fdp: EnhancedDataProvider) -> None:
    header = {"Content-Type": fdp.ConsumeRandomBytes()}
    parse_form(header, b"--boundary--\r\n", on_field, on_file)


def parse_multipart_form_data(fdp: EnhancedDataProvider) -> None:
    boundary = "boundary"
    header = {"Content-Type": f"multipart/form-data; boundary={boundary}"}
    body = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{fdp.ConsumeUnicodeNoSurrogates(16)}"\r\n'
        f"Content-Type: multipart/form-data; boundary={boundary}\r\n\r\n"
        f"{fdp.ConsumeRandomString()}\r\n"
        f"--{boundary}--\r\n"
    )
    parse_form(header, body.encode("latin1", errors="ignore"), on_field, on_file)


def TestOneInput(data: bytes) -> None:
    fdp = EnhancedDataProvider(data)
    targets = [parse_random_content_type, parse_multipart_form_data]
    target = fdp.PickValueInList(targets)

    try:
        target(fdp)
    except FormParserError:
        return


def main():
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
