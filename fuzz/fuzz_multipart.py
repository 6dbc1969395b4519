import sys

import atheris
from helpers import EnhancedDataProvider

with atheris.instrument_imports():
    from multipart_view.exceptions import MultipartParseError
    from multipart_view.multipart import MultipartParser

# Enough parts for any input the fuzzer will produce.
MAX_PARTS = 1000


def parse_random_body(fdp: EnhancedDataProvider) -> None:
    parser = MultipartParser(fdp.ConsumeRandomBytes(), b"X-BOUNDARY")
    for _ in range(MAX_PARTS):
        if parser.parse_next() is None:
            break


def parse_framed_body(fdp: EnhancedDataProvider) -> None:
    boundary = fdp.ConsumeBoundary()
    body = b"--" + boundary + b"\r\n" + fdp.ConsumeRandomBytes() + b"\r\n--" + boundary + b"--\r\n"
    parser = MultipartParser(body, boundary)
    size = len(body)

    last = 0
    for entry in parser:
        # Parts never overlap and never leave the body.
        assert parser.cursor.pos >= last
        assert parser.cursor.pos <= size
        assert len(entry.value) <= size
        last = parser.cursor.pos


def TestOneInput(data: bytes) -> None:
    fdp = EnhancedDataProvider(data)
    targets = [parse_random_body, parse_framed_body]
    target = fdp.PickValueInList(targets)

    try:
        target(fdp)
    except MultipartParseError:
        return


def main():
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
