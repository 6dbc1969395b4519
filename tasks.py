import os
import re

from invoke import run, task

version_file = os.path.join("multipart_view", "_version.py")
version_regex = re.compile(r"((?:\d+)\.(?:\d+)\.(?:\d+))")


@task
def test(ctx):
    test_cmd = [
        "pytest",  # Test command
        "--cov-report term-missing",  # Print only uncovered lines to stdout
        "--cov multipart_view",  # Test only this module
        "--timeout=30",  # Each test should timeout after 30 sec
    ]

    # Test in this directory
    test_cmd.append("tests")

    # Run the command.
    run(" ".join(test_cmd), pty=False)


@task
def version(ctx):
    with open(version_file) as f:
        print(version_regex.search(f.read()).group(0))
