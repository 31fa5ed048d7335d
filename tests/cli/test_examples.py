"""Smoke tests for the bundled example scripts."""

import io
from pathlib import Path

from weave.runner import run_source

EXAMPLES = Path(__file__).resolve().parents[2] / "examples"


def run_example(relpath, *argv):
    path = EXAMPLES / relpath
    out, err = io.StringIO(), io.StringIO()
    status = run_source(path.read_text(encoding="utf-8"), list(argv),
                        filename=str(path), stdout=out, stderr=err)
    return status, out.getvalue(), err.getvalue()


class TestEXAMPLES:
    """EX-001: Example scripts.
    Pass Criteria: each example runs to completion with the documented arguments.
    """

    def test_hello(self):
        assert run_example("hello.wv", "Sam") == (0, "Hello, Sam.\n", "")

    def test_pizza(self):
        status, out, err = run_example("shop/pizza.wv", "large")
        assert status == 0, err
        lines = out.splitlines()
        assert lines[0] == 'Pizza { size: "large", price: 12 }'
        assert lines[1].startswith("tax: 0.9")
        assert lines[1][len("tax: "):] == lines[2][len("same as: "):]
        assert lines[3] == "a large pizza"
        assert lines[4].startswith("total for 3: ")

    def test_pizza_rejects_unknown_size(self):
        status, out, err = run_example("shop/pizza.wv", "huge")
        assert status == 1
        assert out == ""
        assert err.startswith("type error at ")

    def test_status(self):
        status, out, _ = run_example("accounts/status.wv", "active")
        assert status == 0
        assert out == "sam can log in\n3\n2\n1\n"

    def test_status_rejects_bogus(self):
        status, out, err = run_example("accounts/status.wv", "bogus")
        assert status == 1
        assert out == ""
        assert "status" in err
