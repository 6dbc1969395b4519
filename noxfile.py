import nox

nox.needs_version = ">=2024.4.15"
nox.options.default_venv_backend = "uv|virtualenv"


@nox.session
@nox.parametrize("editable", [True, False])
def tests(session: nox.Session, editable: bool) -> None:
    session.install("-e.[test]" if editable else ".[test]")
    session.run("pytest", "--timeout=30", "tests")


@nox.session
def import_check(session: nox.Session) -> None:
    session.install(".")
    # The package must import without any of the test or fuzz dependencies.
    out = session.run(
        "python",
        "-c",
        "import multipart_view; print(multipart_view.__version__)",
        silent=True,
    )
    assert out.strip() == session.run(
        "python", "-c", "from multipart_view._version import __version__; print(__version__)", silent=True
    ).strip()
