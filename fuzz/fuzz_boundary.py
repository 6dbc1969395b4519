import sys

import atheris
from helpers import EnhancedDataProvider

with atheris.instrument_imports():
    from multipart_view.multipart import boundary_from_content_type


def TestOneInput(data: bytes) -> None:
    fdp = EnhancedDataProvider(data)
    value = fdp.ConsumeRandomBytes()

    boundary = boundary_from_content_type(value)
    if boundary is not None:
        assert len(boundary) > 0
        assert boundary.obj is value


def main():
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
